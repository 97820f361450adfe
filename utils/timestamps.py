from datetime import datetime, timezone
from typing import Optional, Union


def to_datetime(value: Union[datetime, str, None]) -> Optional[datetime]:
    """
    Normalize a timestamp column value. Textual SQL results are untyped, so SQLite hands
    back "YYYY-MM-DD HH:MM:SS" strings where MySQL/PostgreSQL drivers return datetimes.
    Naive values are UTC (CURRENT_TIMESTAMP).
    """
    if value is None:
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def to_millis(value: Optional[datetime]) -> int:
    if value is None:
        return 0
    return int(value.timestamp() * 1000)
