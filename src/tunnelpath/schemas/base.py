"""Base Pydantic model with strict defaults for tunnelpath schemas.

All configuration and metadata schemas inherit from this base to ensure
consistent validation behavior across stage, user, CLI and runtime configs.
"""

from pydantic import BaseModel, ConfigDict


class TunnelBaseModel(BaseModel):
    """Base model for all tunnelpath schemas.

    Enforces strict validation:
    - No extra fields allowed
    - Validates assignments after initialization
    - Strips whitespace from strings
    - Frozen: pipeline records are never mutated, only copied
    """

    model_config = ConfigDict(
        extra='forbid',           # Reject unknown fields
        validate_assignment=True, # Validate on field mutation
        use_enum_values=True,     # Convert enums to values
        str_strip_whitespace=True,# Strip whitespace from strings
        frozen=True,              # Immutable after construction
    )


class ForgivingBaseModel(TunnelBaseModel):
    """Base for user-facing schemas that are built up incrementally."""

    model_config = ConfigDict(
        extra='forbid',
        validate_assignment=True,
        use_enum_values=True,
        str_strip_whitespace=True,
        populate_by_name=True,    # Accept both 'desired_percent' and 'DESIRED_PERCENT'
    )
