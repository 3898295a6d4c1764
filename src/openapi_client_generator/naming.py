"""Naming helpers for generated Python identifiers.

Case conversion here only touches the first character. Separators such as
``_`` or ``-`` are kept as they are, so ``pet_id`` stays ``pet_id`` and
``pet-id`` stays ``pet-id``.
"""

from __future__ import annotations

import keyword
from typing import Optional


def to_upper_lead(text: str) -> str:
    """Upper-case the first character and keep the rest untouched."""
    if not text:
        return text
    return text[0].upper() + text[1:]


def to_lower_lead(text: str) -> str:
    """Lower-case the first character and keep the rest untouched."""
    if not text:
        return text
    return text[0].lower() + text[1:]


def python_identifier(name: str, *, reserved: frozenset[str] = frozenset()) -> str:
    """Suffix ``name`` with ``_`` when it is a Python keyword or reserved."""
    if keyword.iskeyword(name) or name in reserved:
        return f"{name}_"
    return name


def method_name(method: str, path: str, operation_id: Optional[str] = None) -> str:
    """Derive a client method name from an operation id or from verb and path.

    Examples:
        ``operation_id="getPetById"`` gives ``GetPetById``.
        ``GET /store/order/{orderId}`` gives ``GetStoreOrder``.
    """
    if operation_id:
        return to_upper_lead(operation_id)

    segments = [
        segment for segment in path.split("/") if segment and not segment.startswith("{")
    ]
    return to_upper_lead(method.lower()) + "".join(to_upper_lead(segment) for segment in segments)
