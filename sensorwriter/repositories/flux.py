from __future__ import annotations

from datetime import datetime, timezone


def to_rfc3339(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def epoch_to_rfc3339(seconds: int) -> str:
    return to_rfc3339(datetime.fromtimestamp(seconds, tz=timezone.utc))


def flux_str(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def flux_str_list(values: list[str]) -> str:
    return "[" + ", ".join(flux_str(v) for v in values) + "]"
