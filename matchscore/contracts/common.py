"""
Common data types and base models for the scoring engine.
All models use Pydantic V2.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class TeamSide(int, Enum):
    """Riot team identifiers."""

    BLUE = 100
    RED = 200


class Position(BaseModel):
    """2D position on the map."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    x: int = Field(..., description="X coordinate on the map")
    y: int = Field(..., description="Y coordinate on the map")


class BaseContract(BaseModel):
    """Base model for engine-owned data contracts."""

    model_config = ConfigDict(
        # Validate data on assignment
        validate_assignment=True,
        # Use enum values in JSON
        use_enum_values=True,
        json_schema_extra={"examples": []},
        # Forbid extra fields to ensure data integrity
        extra="forbid",
    )


class FrozenContract(BaseContract):
    """Immutable contract; derived results are never mutated after creation."""

    model_config = ConfigDict(frozen=True)


class RiotContract(BaseModel):
    """Base model for payloads coming from Riot Match-V5.

    Riot uses camelCase keys and adds fields between patches, so unknown keys
    are ignored and both naming styles are accepted.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )
