from datetime import UTC, datetime


def session_date(start_time_ms: int) -> str:
    """Format a report start timestamp (epoch ms) as a UTC ``YYYY-MM-DD`` date."""
    return datetime.fromtimestamp(start_time_ms / 1000, tz=UTC).strftime("%Y-%m-%d")


def ms_to_seconds(ms: float) -> float:
    return ms / 1000
