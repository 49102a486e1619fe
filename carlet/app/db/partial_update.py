"""
Allow-listed partial updates.

Request bodies are merged into ORM rows only through these per-entity
field sets; any other key is rejected instead of reaching the database.
"""

from typing import Any, List, Mapping

from carlet.app.core.exceptions import ValidationError

LOCATION_UPDATABLE_FIELDS = frozenset({"name", "timezone"})

CAR_UPDATABLE_FIELDS = frozenset({
    "vin", "year", "make", "model", "trim", "license_plate",
    "customer_name", "customer_phone", "customer_email",
})

PART_UPDATABLE_FIELDS = frozenset({"name", "quantity", "status", "vendor", "cost", "eta", "notes"})

USER_UPDATABLE_FIELDS = frozenset({"full_name", "role", "is_platform_admin", "location_id", "is_active"})


def apply_partial_update(entity: Any, changes: Mapping[str, Any], allowed: frozenset, resource: str) -> List[str]:
    """
    Copy ``changes`` onto ``entity``.

    Returns:
        Names of the fields that were set

    Raises:
        ValidationError: ``changes`` names a field outside ``allowed``
    """
    unknown = sorted(set(changes) - allowed)
    if unknown:
        raise ValidationError(
            f"Fields not updatable on {resource}: {', '.join(unknown)}",
            details={"fields": unknown}
        )

    for field, value in changes.items():
        setattr(entity, field, value)
    return list(changes.keys())
