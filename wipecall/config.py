from functools import lru_cache

from pydantic import BaseModel, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class WCLConfig(BaseModel):
    client_id: str = ""
    client_secret: SecretStr = SecretStr("")
    api_url: str = "https://www.warcraftlogs.com/api/v2/client"
    oauth_url: str = "https://www.warcraftlogs.com/oauth/token"
    timeout: float = 30.0
    max_event_pages: int = 100


class AnalysisConfig(BaseModel):
    wipe_death_threshold: int = 5
    wipe_time_window: float = 10.0  # seconds
    wipe_min_fight_fraction: float = 0.5
    max_reports: int = 4
    baseline_region: str = "US"
    baseline_difficulty: int | None = None  # None = use the attempts' difficulty


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    debug: bool = False
    log_level: str = "INFO"
    wcl: WCLConfig = WCLConfig()
    analysis: AnalysisConfig = AnalysisConfig()

    @model_validator(mode="after")
    def _check_analysis_bounds(self):
        if self.analysis.wipe_death_threshold < 2:
            raise ValueError(
                "ANALYSIS__WIPE_DEATH_THRESHOLD must be >= 2"
            )
        if self.analysis.wipe_time_window <= 0:
            raise ValueError(
                "ANALYSIS__WIPE_TIME_WINDOW must be > 0"
            )
        if not 0 <= self.analysis.wipe_min_fight_fraction < 1:
            raise ValueError(
                "ANALYSIS__WIPE_MIN_FIGHT_FRACTION must be in [0, 1)"
            )
        if self.analysis.max_reports < 1:
            raise ValueError("ANALYSIS__MAX_REPORTS must be >= 1")
        if self.wcl.max_event_pages < 1:
            raise ValueError("WCL__MAX_EVENT_PAGES must be >= 1")
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
