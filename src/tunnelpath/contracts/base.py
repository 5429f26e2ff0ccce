"""Base contract enforcement utilities.

The require() function is the single enforcement mechanism for all contracts.
"""

from typing import Optional, Type

from tunnelpath.contracts.failure import TunnelPathError, ValidationError


def require(condition: bool, message: str,
            error: Type[TunnelPathError] = ValidationError,
            parameter: Optional[str] = None,
            constraint: Optional[str] = None) -> None:
    """Enforce a pipeline contract.

    Called at stage boundaries to verify the preceding stage produced the
    guaranteed invariants, and at stage entry to validate parameters.
    Fail-fast: no recovery, no fallback, no silence.

    Parameters
    ----------
    condition : bool
        The invariant that must be true.
    message : str
        Error message explaining the violation.
    error : type, optional
        Error class to raise (default ValidationError).
    parameter, constraint : str, optional
        Forwarded to the error for structured reporting.

    Raises
    ------
    TunnelPathError
        The requested subclass, if condition is False.

    Examples
    --------
    >>> require("frame" in df.columns, "missing 'frame' column", parameter="frame")
    >>> require(0 < p <= 100, "desired_percent out of range", ConfigError,
    ...         parameter="desired_percent", constraint="0 < p <= 100")
    """
    if not condition:
        raise error(message, parameter=parameter, constraint=constraint)
