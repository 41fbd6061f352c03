"""Request bodies for the analysis endpoints."""

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class RequestModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CompareRequest(RequestModel):
    report_codes: list[str] = Field(min_length=1)
    boss_name: str = Field(min_length=1)
    difficulty: int | None = None


class DPSRequest(CompareRequest):
    start_time: float | None = Field(None, ge=0)  # seconds since pull
    end_time: float | None = Field(None, gt=0)

    @model_validator(mode="after")
    def _check_window(self):
        if (
            self.start_time is not None
            and self.end_time is not None
            and self.end_time <= self.start_time
        ):
            raise ValueError("endTime must be greater than startTime")
        return self
