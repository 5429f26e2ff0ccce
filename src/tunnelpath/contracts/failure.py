"""Centralized error types for the tunnel pipeline.

Stages fail fast, loud, and once. Every error carries the offending
parameter (or column) and the constraint it violated so callers can
report problems without parsing messages.
"""

from typing import Optional


class TunnelPathError(Exception):
    """Base class for all pipeline errors.

    Parameters
    ----------
    message : str
        Human readable description.
    parameter : str, optional
        Name of the parameter, column or metadata field at fault.
    constraint : str, optional
        The constraint that was violated (e.g. "0 < p <= 100").
    """

    def __init__(self, message: str, parameter: Optional[str] = None,
                 constraint: Optional[str] = None):
        self.parameter = parameter
        self.constraint = constraint
        details = []
        if parameter is not None:
            details.append(f"parameter={parameter!r}")
        if constraint is not None:
            details.append(f"constraint: {constraint}")
        if details:
            message = f"{message} ({'; '.join(details)})"
        super().__init__(message)


class ConfigError(TunnelPathError, ValueError):
    """Invalid or missing parameters.

    Raised for incomplete tunnel geometry, percentages out of range,
    unmapped axes and similar caller mistakes.
    """


class InsufficientDataError(TunnelPathError):
    """A landmark or subject stream lacks the rows needed for a result."""


class ValidationError(TunnelPathError):
    """Input table breaks a stage precondition.

    Missing canonical columns, or a table that has not been through a
    stage the current one depends on.

    Key distinction:
    - ConfigError: caller passed bad parameters
    - ValidationError: the data handed to a stage is not what it promised
    - pydantic.ValidationError: a config schema rejected its input
    """
