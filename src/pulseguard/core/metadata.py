"""Request metadata so the model never has to guess the date."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class RequestMetadata:
    iso_datetime: str
    timezone: str
    utc_offset: str
    day_of_week: str
    date: str
    time: str
    timestamp: int

    @classmethod
    def at(cls, now: datetime) -> "RequestMetadata":
        """Build from an aware datetime in the user's timezone."""
        offset = now.strftime("%z") or "+0000"
        return cls(
            iso_datetime=now.replace(microsecond=0).isoformat(),
            timezone=str(now.tzinfo) if now.tzinfo else "UTC",
            utc_offset=f"{offset[:3]}:{offset[3:]}",
            day_of_week=now.strftime("%A"),
            date=now.date().isoformat(),
            time=now.strftime("%H:%M:%S"),
            timestamp=int(now.timestamp() * 1000),
        )


def format_metadata(meta: RequestMetadata) -> str:
    return (
        "CURRENT CONTEXT:\n"
        f"- Current Date & Time: {meta.iso_datetime} ({meta.timezone}, {meta.utc_offset})\n"
        f"- Date: {meta.date} ({meta.day_of_week})\n"
        f"- Time: {meta.time}\n"
        f"- Timestamp: {meta.timestamp}\n\n"
        "Use this date and time. Do not guess or infer the date; this is the "
        "current moment in the user's timezone."
    )
