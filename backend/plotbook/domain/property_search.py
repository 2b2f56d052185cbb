# backend/plotbook/domain/property_search.py
"""
Property search: flat query-string parameters -> typed params -> SQL predicates.

Each filter is a small function that looks at PropertySearchParams and returns
zero or one SQLAlchemy clause. build_conditions() runs them in order and the
caller ANDs the result into a select(Property).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional

from sqlalchemy import and_, asc, desc, func, or_
from sqlalchemy.sql.elements import ColumnElement

from ..errors import ValidationError
from ..models import City, Owner, Property, PropertyOwnership, State


SORT_KEYS = ("relevance", "price", "size", "year")
SORT_ORDERS = ("asc", "desc")

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Range:
    min: Optional[float] = None
    max: Optional[float] = None

    @property
    def is_open(self) -> bool:
        return self.min is None and self.max is None


@dataclass(frozen=True)
class PropertySearchParams:
    owner_name: Optional[str] = None
    address: Optional[str] = None
    state: Optional[str] = None
    city: Optional[str] = None
    property_types: tuple[str, ...] = ()
    min_bedrooms: Optional[int] = None
    min_bathrooms: Optional[float] = None
    square_footage: Range = field(default_factory=Range)
    price: Range = field(default_factory=Range)
    year_built: Range = field(default_factory=Range)
    has_owner_info: bool = False
    search: Optional[str] = None
    sort_by: Optional[str] = None
    sort_order: str = "desc"

    @property
    def search_type(self) -> str:
        if self.owner_name:
            return "owner"
        if self.address:
            return "address"
        if self.search:
            return "general"
        return "filter"

    @property
    def general_search(self) -> Optional[str]:
        # owner/address searches already target specific columns; the broad
        # free-text match would only duplicate them.
        if self.owner_name or self.address:
            return None
        return self.search


# -----------------------------
# Parsing
# -----------------------------
def _text(raw: Mapping[str, Any], key: str) -> Optional[str]:
    v = raw.get(key)
    if v is None:
        return None
    s = str(v).strip()
    return s or None


def _int(raw: Mapping[str, Any], key: str) -> Optional[int]:
    s = _text(raw, key)
    if s is None:
        return None
    try:
        return int(s)
    except ValueError:
        raise ValidationError(f"{key} must be an integer")


def _float(raw: Mapping[str, Any], key: str) -> Optional[float]:
    s = _text(raw, key)
    if s is None:
        return None
    try:
        v = float(s)
    except ValueError:
        raise ValidationError(f"{key} must be a number")
    if v != v or v in (float("inf"), float("-inf")):
        raise ValidationError(f"{key} must be a finite number")
    return v


def _bool(raw: Mapping[str, Any], key: str) -> bool:
    s = _text(raw, key)
    if s is None:
        return False
    s = s.lower()
    if s in _TRUE:
        return True
    if s in _FALSE:
        return False
    raise ValidationError(f"{key} must be true or false")


def _range(raw: Mapping[str, Any], min_key: str, max_key: str) -> Range:
    return Range(min=_float(raw, min_key), max=_float(raw, max_key))


def _price_range(raw: Mapping[str, Any]) -> Range:
    """
    minValue/maxValue (legacy) and minPrice/maxPrice both filter current value.
    Merge order is fixed: legacy names first, then the *Price names, so a
    *Price bound overrides a *Value bound when both are sent.
    """
    lo: Optional[float] = None
    hi: Optional[float] = None
    for min_key, max_key in (("minValue", "maxValue"), ("minPrice", "maxPrice")):
        v = _float(raw, min_key)
        if v is not None:
            lo = v
        v = _float(raw, max_key)
        if v is not None:
            hi = v
    return Range(min=lo, max=hi)


def _property_types(raw: Mapping[str, Any]) -> tuple[str, ...]:
    plural = _text(raw, "propertyTypes")
    if plural:
        return tuple(t.strip() for t in plural.split(",") if t.strip())
    single = _text(raw, "propertyType")
    return (single,) if single else ()


def parse_search_params(raw: Mapping[str, Any]) -> PropertySearchParams:
    """Parse query-string values. Malformed numbers raise ValidationError (400)."""
    sort_by = _text(raw, "sortBy")
    if sort_by is not None:
        sort_by = sort_by.lower()
        if sort_by not in SORT_KEYS:
            raise ValidationError(f"sortBy must be one of {', '.join(SORT_KEYS)}")

    sort_order = (_text(raw, "sortOrder") or "desc").lower()
    if sort_order not in SORT_ORDERS:
        raise ValidationError("sortOrder must be asc or desc")

    return PropertySearchParams(
        owner_name=_text(raw, "ownerName"),
        address=_text(raw, "address"),
        state=_text(raw, "state"),
        city=_text(raw, "city"),
        property_types=_property_types(raw),
        min_bedrooms=_int(raw, "minBedrooms"),
        min_bathrooms=_float(raw, "minBathrooms"),
        square_footage=_range(raw, "minSquareFootage", "maxSquareFootage"),
        price=_price_range(raw),
        year_built=Range(min=_int(raw, "minYearBuilt"), max=_int(raw, "maxYearBuilt")),
        has_owner_info=_bool(raw, "hasOwnerInfo"),
        search=_text(raw, "search"),
        sort_by=sort_by,
        sort_order=sort_order,
    )


# -----------------------------
# Predicates
# -----------------------------
def _like(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def ilike_contains(col, term: str) -> ColumnElement:
    return col.ilike(_like(term), escape="\\")


def _owner_name_matches(term: str) -> ColumnElement:
    full_name = func.coalesce(Owner.first_name, "") + " " + func.coalesce(Owner.last_name, "")
    return or_(
        ilike_contains(Owner.first_name, term),
        ilike_contains(Owner.last_name, term),
        ilike_contains(Owner.entity_name, term),
        ilike_contains(full_name, term),
    )


def _bounded(col, r: Range) -> Optional[ColumnElement]:
    if r.is_open:
        return None
    parts = []
    if r.min is not None:
        parts.append(col >= r.min)
    if r.max is not None:
        parts.append(col <= r.max)
    return and_(*parts)


def _f_owner_name(p: PropertySearchParams) -> Optional[ColumnElement]:
    if not p.owner_name:
        return None
    return Property.ownerships.any(
        and_(PropertyOwnership.is_active.is_(True), PropertyOwnership.owner.has(_owner_name_matches(p.owner_name)))
    )


def _f_address(p: PropertySearchParams) -> Optional[ColumnElement]:
    if not p.address:
        return None
    return ilike_contains(Property.address, p.address)


def _f_state(p: PropertySearchParams) -> Optional[ColumnElement]:
    if not p.state:
        return None
    return Property.state.has(or_(ilike_contains(State.name, p.state), func.upper(State.code) == p.state.upper()))


def _f_city(p: PropertySearchParams) -> Optional[ColumnElement]:
    if not p.city:
        return None
    return Property.city.has(ilike_contains(City.name, p.city))


def _f_property_types(p: PropertySearchParams) -> Optional[ColumnElement]:
    if not p.property_types:
        return None
    return func.lower(Property.property_type).in_([t.lower() for t in p.property_types])


def _f_bedrooms(p: PropertySearchParams) -> Optional[ColumnElement]:
    if p.min_bedrooms is None:
        return None
    return Property.bedrooms >= p.min_bedrooms


def _f_bathrooms(p: PropertySearchParams) -> Optional[ColumnElement]:
    if p.min_bathrooms is None:
        return None
    return Property.bathrooms >= p.min_bathrooms


def _f_square_footage(p: PropertySearchParams) -> Optional[ColumnElement]:
    return _bounded(Property.square_footage, p.square_footage)


def _f_price(p: PropertySearchParams) -> Optional[ColumnElement]:
    return _bounded(Property.current_value, p.price)


def _f_year_built(p: PropertySearchParams) -> Optional[ColumnElement]:
    return _bounded(Property.year_built, p.year_built)


def _f_has_owner_info(p: PropertySearchParams) -> Optional[ColumnElement]:
    if not p.has_owner_info:
        return None
    return Property.ownerships.any(PropertyOwnership.is_active.is_(True))


def _f_general_search(p: PropertySearchParams) -> Optional[ColumnElement]:
    term = p.general_search
    if not term:
        return None
    return or_(
        ilike_contains(Property.address, term),
        ilike_contains(Property.property_type, term),
        Property.city.has(ilike_contains(City.name, term)),
        Property.state.has(ilike_contains(State.name, term)),
    )


FILTERS: tuple[Callable[[PropertySearchParams], Optional[ColumnElement]], ...] = (
    _f_owner_name,
    _f_address,
    _f_state,
    _f_city,
    _f_property_types,
    _f_bedrooms,
    _f_bathrooms,
    _f_square_footage,
    _f_price,
    _f_year_built,
    _f_has_owner_info,
    _f_general_search,
)


def build_conditions(p: PropertySearchParams) -> list[ColumnElement]:
    out: list[ColumnElement] = []
    for f in FILTERS:
        clause = f(p)
        if clause is not None:
            out.append(clause)
    return out


_SORT_COLUMNS = {
    "price": Property.current_value,
    "size": Property.square_footage,
    "year": Property.year_built,
}


def build_order_by(p: PropertySearchParams) -> list[Any]:
    """
    relevance (and no sortBy) -> current value descending, whatever sortOrder says.
    Property.id ascending breaks ties so pages are stable.
    """
    if p.sort_by is None or p.sort_by == "relevance":
        primary = desc(Property.current_value)
    else:
        col = _SORT_COLUMNS[p.sort_by]
        primary = asc(col) if p.sort_order == "asc" else desc(col)
    return [primary, asc(Property.id)]


def filters_echo(p: PropertySearchParams) -> dict[str, Any]:
    """Normalized filters as returned to the client next to the results."""
    return {
        "ownerName": p.owner_name,
        "address": p.address,
        "state": p.state,
        "city": p.city,
        "propertyTypes": list(p.property_types),
        "minBedrooms": p.min_bedrooms,
        "minBathrooms": p.min_bathrooms,
        "minSquareFootage": p.square_footage.min,
        "maxSquareFootage": p.square_footage.max,
        "minPrice": p.price.min,
        "maxPrice": p.price.max,
        "minYearBuilt": p.year_built.min,
        "maxYearBuilt": p.year_built.max,
        "hasOwnerInfo": p.has_owner_info,
        "search": p.search,
        "sortBy": p.sort_by or "relevance",
        "sortOrder": p.sort_order,
    }
