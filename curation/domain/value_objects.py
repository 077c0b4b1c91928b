"""Value objects and closed enumerations shared by the curation entities."""

from dataclasses import dataclass
from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation
from enum import Enum
from typing import Union

from curation.core.exceptions import ConfidenceRangeError

RawConfidence = Union[int, float, str, Decimal]

_MIN = Decimal("0.0")
_MAX = Decimal("1.0")
_QUANTUM = Decimal("0.01")
HIGH_CONFIDENCE = Decimal("0.80")
LOW_CONFIDENCE = Decimal("0.50")


class AutonomyLevel(str, Enum):
    """How much an agent may do without a human in the loop."""

    REVIEW_REQUIRED = "ReviewRequired"
    SEMI_AUTONOMOUS = "SemiAutonomous"
    FULLY_AUTONOMOUS = "FullyAutonomous"


class ReviewStatus(str, Enum):
    """Review state of an elevation proposal."""

    PENDING = "Pending"
    APPROVED = "Approved"
    DENIED = "Denied"
    EXPIRED = "Expired"

    @property
    def is_terminal(self) -> bool:
        return self is not ReviewStatus.PENDING


class ProcessingStatus(str, Enum):
    """Lifecycle of a processing queue item."""

    QUEUED = "Queued"
    PROCESSING = "Processing"
    COMPLETED = "Completed"
    FAILED = "Failed"


@dataclass(frozen=True, order=True)
class ConfidenceScore:
    """Agent certainty in [0.0, 1.0], kept to two decimal places.

    Raw values are validated before rounding, so 1.004 is rejected even
    though it would round to 1.00.
    """

    value: Decimal

    def __post_init__(self) -> None:
        raw = self.value
        if isinstance(raw, bool):
            raise ConfidenceRangeError(f"Confidence score must be numeric, got {raw!r}")
        try:
            # str() keeps floats like 0.85 from turning into 0.84999...
            number = raw if isinstance(raw, Decimal) else Decimal(str(raw))
        except (InvalidOperation, ValueError) as e:
            raise ConfidenceRangeError(
                f"Confidence score must be numeric, got {raw!r}", original_error=e
            )
        if not number.is_finite() or number < _MIN or number > _MAX:
            raise ConfidenceRangeError(
                f"Confidence score must be between 0.0 and 1.0, got {raw}"
            )
        object.__setattr__(self, "value", number.quantize(_QUANTUM, rounding=ROUND_HALF_EVEN))

    @classmethod
    def coerce(cls, value: Union["ConfidenceScore", RawConfidence]) -> "ConfidenceScore":
        if isinstance(value, ConfidenceScore):
            return value
        return cls(value)

    @property
    def is_high_confidence(self) -> bool:
        return self.value >= HIGH_CONFIDENCE

    @property
    def is_low_confidence(self) -> bool:
        return self.value < LOW_CONFIDENCE

    def __float__(self) -> float:
        return float(self.value)

    def __str__(self) -> str:
        return f"{self.value * 100:.0f}%"
