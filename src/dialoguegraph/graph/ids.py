"""Identifier generation and technical-name sanitizing.

Two kinds of identifiers are used in a dialogue graph:

- Short string ids (``generate_id``) for every internal entity: nodes, ports,
  connections, variables, characters and the graph itself.
- 128-bit composite ids (``CompositeId``) for externally-facing character
  entities, rendered as a fixed 32-hex-digit string.

Neither is cryptographically secure. Uniqueness is guaranteed within a
process by a shared monotonic counter, not across processes.
"""

from __future__ import annotations

import random
import string
import threading
import time

from pydantic import BaseModel, ConfigDict, Field

from dialoguegraph.graph.errors import InvalidCompositeIdError

MAX_TECHNICAL_NAME_LENGTH = 64

_U64_MASK = 0xFFFF_FFFF_FFFF_FFFF
_U32_MASK = 0xFFFF_FFFF
_HEX_DIGITS = frozenset(string.hexdigits)

_counter = 0
_counter_lock = threading.Lock()


def _next_counter() -> int:
    """Return the next value of the process-wide id counter."""
    global _counter
    with _counter_lock:
        value = _counter
        _counter += 1
    return value


def _now_millis() -> int:
    return time.time_ns() // 1_000_000


def generate_id() -> str:
    """Generate a short, time-ordered id unique within this process.

    Format is ``{timestamp:x}-{random:x}-{counter:x}``: a millisecond
    timestamp, 24 random bits and the process-wide counter.
    """
    timestamp = _now_millis()
    counter = _next_counter()
    noise = random.getrandbits(24)
    return f"{timestamp:x}-{noise:x}-{counter:x}"


class CompositeId(BaseModel):
    """128-bit identifier made of two 64-bit halves.

    Persisted as ``{"low": int, "high": int}``; exchanged as text via
    :meth:`format` / :meth:`parse`.
    """

    model_config = ConfigDict(frozen=True)

    low: int = Field(default=0, ge=0, le=_U64_MASK)
    high: int = Field(default=0, ge=0, le=_U64_MASK)

    @classmethod
    def new(cls) -> CompositeId:
        """Generate a fresh composite id.

        The high half mixes the millisecond clock with a random value; the
        low half places the process counter above 32 random bits.
        """
        noise = random.getrandbits(64)
        counter = _next_counter()
        return cls(
            high=(_now_millis() ^ noise) & _U64_MASK,
            low=((counter << 32) | (noise & _U32_MASK)) & _U64_MASK,
        )

    @classmethod
    def parse(cls, text: str) -> CompositeId:
        """Parse the 32-hex-digit form, with or without a ``0x`` prefix.

        Raises:
            InvalidCompositeIdError: If the digits are not exactly 32 hex
                characters.
        """
        digits = text[2:] if text.startswith("0x") else text
        if len(digits) != 32:
            raise InvalidCompositeIdError(text, f"expected 32 hex digits, got {len(digits)}")
        if not _HEX_DIGITS.issuperset(digits):
            raise InvalidCompositeIdError(text, "contains a non-hex character")
        return cls(high=int(digits[:16], 16), low=int(digits[16:], 16))

    def format(self) -> str:
        """Render as ``0x`` followed by 32 lower-case hex digits."""
        return f"0x{self.high:016x}{self.low:016x}"

    @property
    def is_null(self) -> bool:
        """True for the degenerate all-zero id."""
        return self.high == 0 and self.low == 0

    def __str__(self) -> str:
        return self.format()


def to_technical_name(display_name: str) -> str:
    """Derive an identifier-safe name from free text.

    Alphanumerics are kept; each run of whitespace, ``-`` or ``_`` becomes a
    single underscore (never at either edge); a leading digit gets an
    underscore prefix; the result is capped at 64 characters.

    Examples:
        >>> to_technical_name("Hello World")
        'Hello_World'
        >>> to_technical_name("123 Start")
        '_123_Start'
        >>> to_technical_name("Test---Name")
        'Test_Name'
    """
    chars: list[str] = []
    prev_underscore = False

    for c in display_name:
        if c.isalnum():
            chars.append(c)
            prev_underscore = False
        elif (c.isspace() or c in "-_") and not prev_underscore and chars:
            chars.append("_")
            prev_underscore = True

    if chars and chars[-1] == "_":
        chars.pop()

    if chars and chars[0].isnumeric():
        chars.insert(0, "_")

    # Truncation can expose an underscore that used to sit mid-string
    return "".join(chars[:MAX_TECHNICAL_NAME_LENGTH]).rstrip("_")
