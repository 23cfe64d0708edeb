"""
Field validators shared by the request schemas.
"""

from typing import Optional


def not_blank(value: str) -> str:
    """Strip surrounding whitespace and reject values that end up empty."""
    value = value.strip()
    if not value:
        raise ValueError("must not be blank")
    return value


def blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None
