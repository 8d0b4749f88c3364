from typing import Iterable, List, Optional

from fastapi import Request

from livestreams.enums.streams import Visibility

TRUTHY = {"1", "true"}


def get_client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return str(forwarded.split(",")[0].strip())

    if request.client is not None:
        return str(request.client.host)

    return "unknown"


def is_truthy(value: Optional[str]) -> bool:
    return value is not None and value.strip().lower() in TRUTHY


def parse_bool(value: Optional[str]) -> Optional[bool]:
    """Tri-state query flag: "true" / "false" / anything else means unset."""
    if value == "true":
        return True
    if value == "false":
        return False
    return None


def parse_int(value: Optional[str], default: int) -> int:
    if value is None:
        return default
    try:
        return int(value.strip())
    except ValueError:
        return default


def clamp(value: int, lower: int, upper: Optional[int] = None) -> int:
    value = max(value, lower)
    if upper is not None:
        value = min(value, upper)
    return value


def parse_visibilities(values: Optional[Iterable[str]]) -> List[Visibility]:
    """Keep the recognised visibility values, silently dropping the rest."""
    allowed = {v.value: v for v in Visibility}
    seen: List[Visibility] = []
    for value in values or []:
        visibility = allowed.get(value)
        if visibility is not None and visibility not in seen:
            seen.append(visibility)
    return seen
