"""
Parameter checks run at the boundary of every endpoint call.

All checks happen before any request is built, so a malformed call never
touches the network.
"""

from __future__ import annotations

from typing import Any

from act_client.exceptions import InvalidParameterError

_SIZED_KINDS = (str, bytes, bytearray)


def _normalise_kinds(kinds: type | tuple[type, ...]) -> tuple[type, ...]:
    if isinstance(kinds, tuple):
        return kinds
    return (kinds,)


def describe_kinds(kinds: type | tuple[type, ...], *, optional: bool = False) -> str:
    """Return a readable shape such as ``"bytes | str"`` or ``"Optional[int]"``."""
    label = " | ".join(kind.__name__ for kind in _normalise_kinds(kinds))
    return f"Optional[{label}]" if optional else label


def check_param(
    value: Any,
    name: str,
    kinds: type | tuple[type, ...],
    *,
    optional: bool = False,
    allow_empty: bool = False,
) -> Any:
    """Validate a single call parameter and return it unchanged.

    Args:
        value: Value supplied by the caller.
        name: Parameter name reported in the error.
        kinds: Accepted type or tuple of types.
        optional: Whether ``None`` is accepted.
        allow_empty: Whether empty strings/bytes are accepted.

    Raises:
        InvalidParameterError: If the value does not have the expected shape.
    """
    accepted = _normalise_kinds(kinds)
    expected = describe_kinds(accepted, optional=optional)

    if value is None:
        if optional:
            return value
        raise InvalidParameterError(name, expected, value)

    # bool is an int subclass; never let True pass as a number
    if isinstance(value, bool) and bool not in accepted:
        raise InvalidParameterError(name, expected, value)

    if not isinstance(value, accepted):
        raise InvalidParameterError(name, expected, value)

    if isinstance(value, _SIZED_KINDS) and not allow_empty and len(value) == 0:
        raise InvalidParameterError(name, f"non-empty {expected}", value)

    return value


__all__ = ["check_param", "describe_kinds"]
