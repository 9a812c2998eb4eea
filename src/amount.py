import math
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_DOWN, ROUND_HALF_EVEN, ROUND_HALF_UP
from enum import Enum

from errors import AmountOverflow, MalformedAmount

SCALE = 10_000
PLACES = 4
MAX_SCALED = 2**63 - 1
MIN_SCALED = -(2**63)

_QUANTUM = Decimal(1).scaleb(-PLACES)

# Plain ASCII decimal text only: no digit separators, no NaN/Infinity spellings
_DECIMAL_TEXT = re.compile(r"[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?", re.ASCII)


class RoundingPolicy(Enum):
    """How extra fractional digits are dropped at ingestion."""

    TRUNCATE = "truncate"
    HALF_UP = "half_up"
    HALF_EVEN = "half_even"

    @property
    def decimal_rounding(self) -> str:
        return _DECIMAL_ROUNDING[self]


_DECIMAL_ROUNDING = {
    RoundingPolicy.TRUNCATE: ROUND_DOWN,
    RoundingPolicy.HALF_UP: ROUND_HALF_UP,
    RoundingPolicy.HALF_EVEN: ROUND_HALF_EVEN,
}


def _checked(scaled: int) -> int:
    if scaled > MAX_SCALED or scaled < MIN_SCALED:
        raise AmountOverflow(f"Scaled amount {scaled} out of 64-bit range")
    return scaled


@dataclass(frozen=True, order=True)
class Amount:
    """
    Money with exactly four fractional digits.
    Stored as an integer count of 1/10000 units so add/sub are exact.
    """

    scaled: int = 0

    @classmethod
    def zero(cls) -> "Amount":
        return cls(0)

    @classmethod
    def from_scaled(cls, scaled: int) -> "Amount":
        return cls(_checked(scaled))

    @classmethod
    def from_decimal(cls, value: Decimal, rounding: RoundingPolicy = RoundingPolicy.TRUNCATE) -> "Amount":
        if not value.is_finite():
            raise MalformedAmount(f"Amount must be finite, got {value}")
        try:
            quantized = value.quantize(_QUANTUM, rounding=rounding.decimal_rounding)
        except InvalidOperation as e:
            raise MalformedAmount(f"Amount {value} out of range") from e
        scaled = int(quantized.scaleb(PLACES))
        if scaled > MAX_SCALED or scaled < MIN_SCALED:
            raise MalformedAmount(f"Amount {value} out of range")
        return cls(scaled)

    @classmethod
    def from_text(cls, text: str, rounding: RoundingPolicy = RoundingPolicy.TRUNCATE) -> "Amount":
        """
        Parse decimal text such as "1.5" or " 2.71828 ".

        Digits past the fourth decimal place are dropped according to
        `rounding` (truncation by default, so "1.23456" becomes 1.2345).

        Raises:
            MalformedAmount: text is not plain ASCII decimal notation or is out of range.
        """
        if not isinstance(text, str) or not _DECIMAL_TEXT.fullmatch(text.strip()):
            raise MalformedAmount(f"Invalid amount {text!r}")
        return cls.from_decimal(Decimal(text.strip()), rounding)

    @classmethod
    def from_bytes(cls, data: bytes, rounding: RoundingPolicy = RoundingPolicy.TRUNCATE) -> "Amount":
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedAmount(f"Invalid amount bytes {data!r}") from e
        return cls.from_text(text, rounding)

    @classmethod
    def from_float(cls, value: float, rounding: RoundingPolicy = RoundingPolicy.TRUNCATE) -> "Amount":
        # repr gives the shortest string that round-trips, so 1.15 stays 1.15
        if not math.isfinite(value):
            raise MalformedAmount(f"Amount must be finite, got {value}")
        return cls.from_decimal(Decimal(repr(float(value))), rounding)

    def add(self, other: "Amount") -> "Amount":
        return Amount(_checked(self.scaled + other.scaled))

    def sub(self, other: "Amount") -> "Amount":
        return Amount(_checked(self.scaled - other.scaled))

    def compare(self, other: "Amount") -> int:
        return (self.scaled > other.scaled) - (self.scaled < other.scaled)

    def is_negative(self) -> bool:
        return self.scaled < 0

    def is_positive(self) -> bool:
        return self.scaled > 0

    def to_text(self) -> str:
        units, fraction = divmod(abs(self.scaled), SCALE)
        sign = "-" if self.scaled < 0 else ""
        return f"{sign}{units}.{fraction:0{PLACES}d}"

    def to_decimal(self) -> Decimal:
        return Decimal(self.scaled).scaleb(-PLACES)

    def to_float(self) -> float:
        return self.scaled / SCALE

    def __add__(self, other: "Amount") -> "Amount":
        if not isinstance(other, Amount):
            return NotImplemented
        return self.add(other)

    def __sub__(self, other: "Amount") -> "Amount":
        if not isinstance(other, Amount):
            return NotImplemented
        return self.sub(other)

    def __str__(self) -> str:
        return self.to_text()

    def __repr__(self) -> str:
        return f"Amount({self.to_text()})"
