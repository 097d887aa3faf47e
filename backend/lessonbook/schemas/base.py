"""
Base schemas with standardized field naming for consistent API payloads.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from ..core.timezone_utils import to_reference


class StandardizedModel(BaseModel):
    """Response base: camelCase aliases, enum values, ORM attribute access."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
        from_attributes=True,
    )


class StrictRequestModel(StandardizedModel):
    """Request DTO base that always forbids unexpected fields."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)


def reference_time(value: Optional[datetime]) -> Optional[datetime]:
    """Render a stored UTC instant in the reference timezone."""
    return to_reference(value) if value is not None else None
