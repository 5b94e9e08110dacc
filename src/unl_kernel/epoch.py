"""
Network epoch conversion.

Ledger timestamps count seconds since 2000-01-01T00:00:00Z. Converting
to and from Unix time is a fixed affine offset.
"""

from datetime import datetime, timezone

from .errors import ParameterError


NETWORK_EPOCH_OFFSET = 946684800
NETWORK_EPOCH = datetime(2000, 1, 1, tzinfo=timezone.utc)


def to_network_time(unix_timestamp: int) -> int:
    return int(unix_timestamp) - NETWORK_EPOCH_OFFSET


def to_unix_time(network_timestamp: int) -> int:
    return int(network_timestamp) + NETWORK_EPOCH_OFFSET


def as_utc(moment: datetime) -> datetime:
    """Attach UTC to a naive datetime; aware values are returned unchanged."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def network_time_from_datetime(moment: datetime) -> int:
    """Convert a datetime (naive values are taken as UTC)."""
    return to_network_time(int(as_utc(moment).timestamp()))


def datetime_from_network_time(network_timestamp: int) -> datetime:
    return datetime.fromtimestamp(to_unix_time(network_timestamp), tz=timezone.utc)


def format_network_time(network_timestamp: int) -> str:
    """Human-readable UTC rendering, e.g. ``2027-06-01 00:00:00 UTC``."""
    return datetime_from_network_time(network_timestamp).strftime("%Y-%m-%d %H:%M:%S UTC")


def parse_effective(date_text: str, time_text: str | None = None) -> datetime:
    """
    Parse the effective date (``YYYY-MM-DD``) and optional time
    (``HH:MM`` or ``HH:MM:SS``) of a version 2 blob as UTC.

    Raises:
        ParameterError: If either part is malformed
    """
    time_text = (time_text or "00:00").strip()
    for time_format in ("%H:%M:%S", "%H:%M"):
        try:
            parsed = datetime.strptime(f"{date_text.strip()} {time_text}", f"%Y-%m-%d {time_format}")
        except ValueError:
            continue
        return parsed.replace(tzinfo=timezone.utc)

    raise ParameterError(
        f"invalid effective date/time: {date_text!r} {time_text!r}",
        {"date": date_text, "time": time_text},
    )
