"""Column types mapping value objects to storage."""

from decimal import Decimal
from typing import Optional

from sqlalchemy import Enum, Numeric
from sqlalchemy.types import TypeDecorator

from curation.domain.value_objects import ConfidenceScore


class ConfidenceScoreType(TypeDecorator):
    """Stores a ConfidenceScore as NUMERIC(3, 2)."""

    impl = Numeric(3, 2)
    cache_ok = True

    def process_bind_param(self, value, dialect) -> Optional[Decimal]:
        if value is None:
            return None
        return ConfidenceScore.coerce(value).value

    def process_result_value(self, value, dialect) -> Optional[ConfidenceScore]:
        if value is None:
            return None
        return ConfidenceScore(value)


def text_enum(enum_cls: type) -> Enum:
    """Enum column stored as its text value; allowed values are enforced by named check constraints."""
    return Enum(
        enum_cls,
        native_enum=False,
        create_constraint=False,
        length=20,
        values_callable=lambda members: [member.value for member in members],
        validate_strings=True,
    )
