# backend/plotbook/domain/owners.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class OwnerKind(str, Enum):
    individual = "individual"
    entity = "entity"


# Fallbacks differ by where the name is shown.
UNKNOWN_OWNER = "Unknown Owner"  # primary owner of a property
UNKNOWN_PARTY = "Unknown"  # buyer/seller on a transaction
UNKNOWN_ENTITY = "Unknown Entity"  # entity owner without a recorded name


@dataclass(frozen=True)
class OwnerName:
    kind: OwnerKind
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    entity_name: Optional[str] = None

    @classmethod
    def from_row(cls, owner: Any) -> "OwnerName":
        return cls(
            kind=OwnerKind(str(owner.type)),
            first_name=owner.first_name,
            last_name=owner.last_name,
            entity_name=owner.entity_name,
        )


def resolve_owner_name(name: OwnerName, *, missing: str = UNKNOWN_OWNER) -> str:
    if name.kind is OwnerKind.individual:
        full = f"{name.first_name or ''} {name.last_name or ''}".strip()
        return full or missing
    if name.kind is OwnerKind.entity:
        return (name.entity_name or "").strip() or UNKNOWN_ENTITY
    raise ValueError(f"unhandled owner kind: {name.kind!r}")


def owner_display_name(owner: Any, *, missing: str = UNKNOWN_OWNER) -> str:
    """Display name for an Owner row (or None, which yields `missing`)."""
    if owner is None:
        return missing
    return resolve_owner_name(OwnerName.from_row(owner), missing=missing)


def party_display_name(owner: Any) -> str:
    return owner_display_name(owner, missing=UNKNOWN_PARTY)


def primary_ownership(ownerships: list[Any]) -> Any | None:
    """Largest active stake wins; ties go to the earliest ownership row."""
    active = [o for o in ownerships if o.is_active]
    if not active:
        return None
    return sorted(active, key=lambda o: (-(o.ownership_percent or 0.0), o.id))[0]
