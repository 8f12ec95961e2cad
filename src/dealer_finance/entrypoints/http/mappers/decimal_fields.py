from __future__ import annotations

from decimal import Decimal, InvalidOperation


def parse_decimal(field: str, raw: str, errors: list[dict[str, str]]) -> Decimal:
    """
    Convert a monetary string at the boundary.

    Appends a field error instead of raising so callers can report every bad
    field at once; the returned placeholder is 0 in that case.
    """
    try:
        value = Decimal(raw)
    except (InvalidOperation, ValueError):
        value = None
    if value is None or not value.is_finite():
        errors.append(
            {
                "field": field,
                "message": f"Must be a valid decimal: {raw}",
                "code": "INVALID_DECIMAL",
            }
        )
        return Decimal("0")  # Placeholder to continue validation
    return value
