"""Date parsing utilities for provider timestamps"""

from datetime import date, datetime, time, timezone


def parse_provider_date(value: str) -> datetime:
    """
    Parse a Plaid date ("2024-03-01") or an Appwrite timestamp
    ("2024-03-01T10:15:00.000+00:00") into an aware UTC datetime.

    Date-only values are pinned to midnight UTC so both sources sort together.
    """
    if len(value) == 10:
        return datetime.combine(date.fromisoformat(value), time.min, tzinfo=timezone.utc)

    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)
