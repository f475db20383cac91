"""
KeepAlive - how long the server keeps a model loaded after a request.

Four variants:
    DEFAULT   - field omitted, the server decides
    NONE      - unload immediately after the request
    SECONDS   - keep loaded for n seconds
    FOREVER   - keep loaded indefinitely

SECONDS(0) normalizes to NONE and SECONDS(n < 0) normalizes to FOREVER,
so equal policies always serialize identically.
"""

import re
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import Optional, Union

from modelwire.errors import LocalValidationError


class KeepAliveKind(Enum):
    DEFAULT = "default"
    NONE = "none"
    SECONDS = "seconds"
    FOREVER = "forever"


# Go-style duration units accepted by the server ("5m", "1h30m", "250ms")
_UNIT_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")
_NUMERIC = re.compile(r"^[+-]?(\d+(?:\.\d*)?|\.\d+)$")


def parse_go_duration(text: str) -> float:
    """
    Parse a duration string into seconds.

    Accepts bare numbers ("300", "-1") and Go-style unit sequences
    ("5m", "1h30m", "-2h").

    Raises:
        LocalValidationError: if the string is not a duration
    """
    s = text.strip()
    if _NUMERIC.match(s):
        return float(s)

    sign = 1.0
    if s and s[0] in "+-":
        sign = -1.0 if s[0] == "-" else 1.0
        s = s[1:]

    if not s:
        raise LocalValidationError(f"invalid duration: {text!r}")

    total = 0.0
    pos = 0
    for match in _DURATION_PART.finditer(s):
        if match.start() != pos:
            raise LocalValidationError(f"invalid duration: {text!r}")
        total += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        pos = match.end()
    if pos != len(s):
        raise LocalValidationError(f"invalid duration: {text!r}")
    return sign * total


@dataclass(frozen=True)
class KeepAlive:
    """Normalized keep-alive policy. Build with the classmethods or parse()."""
    kind: KeepAliveKind
    seconds: Optional[float] = None

    @classmethod
    def default(cls) -> "KeepAlive":
        return cls(KeepAliveKind.DEFAULT)

    @classmethod
    def none(cls) -> "KeepAlive":
        return cls(KeepAliveKind.NONE)

    @classmethod
    def forever(cls) -> "KeepAlive":
        return cls(KeepAliveKind.FOREVER)

    @classmethod
    def of_seconds(cls, seconds: float) -> "KeepAlive":
        if seconds == 0:
            return cls.none()
        if seconds < 0:
            return cls.forever()
        return cls(KeepAliveKind.SECONDS, float(seconds))

    @classmethod
    def parse(cls, value: "KeepAliveLike") -> "KeepAlive":
        """Normalize any accepted caller value into a KeepAlive."""
        if value is None:
            return cls.default()
        if isinstance(value, KeepAlive):
            # Re-normalize in case it was constructed directly
            if value.kind is KeepAliveKind.SECONDS:
                return cls.of_seconds(value.seconds or 0)
            return value
        if isinstance(value, bool):
            raise LocalValidationError("keep_alive must be a duration, not a bool")
        if isinstance(value, timedelta):
            return cls.of_seconds(value.total_seconds())
        if isinstance(value, (int, float)):
            return cls.of_seconds(value)
        if isinstance(value, str):
            return cls.of_seconds(parse_go_duration(value))
        raise LocalValidationError(f"unsupported keep_alive value: {value!r}")

    def to_wire(self) -> Optional[Union[int, float]]:
        """
        Wire representation: None means "omit the field".

        NONE -> 0, FOREVER -> -1, SECONDS(n) -> n (int when integral).
        """
        if self.kind is KeepAliveKind.DEFAULT:
            return None
        if self.kind is KeepAliveKind.NONE:
            return 0
        if self.kind is KeepAliveKind.FOREVER:
            return -1
        seconds = self.seconds or 0.0
        return int(seconds) if float(seconds).is_integer() else seconds


KeepAliveLike = Union[KeepAlive, timedelta, int, float, str, None]


def keep_alive_to_wire(value: KeepAliveLike) -> Optional[Union[int, float]]:
    """Shorthand for KeepAlive.parse(value).to_wire()."""
    return KeepAlive.parse(value).to_wire()
