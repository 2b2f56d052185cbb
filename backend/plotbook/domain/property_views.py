# backend/plotbook/domain/property_views.py
"""
Row -> JSON shaping for properties. Routers stay thin and every endpoint that
returns a property goes through one of these builders.
"""
from __future__ import annotations

from typing import Any, Optional

from ..models import Property, PropertyOwnership, PropertyTransaction, SavedProperty
from .formatting import format_currency, price_per_sqft, property_age
from .owners import owner_display_name, party_display_name, primary_ownership

UNKNOWN_PLACE = "Unknown"
UNKNOWN_STATE_CODE = "XX"

RECENT_TRANSACTIONS = 10


def _state_name(p: Property) -> str:
    return p.state.name if p.state is not None else UNKNOWN_PLACE


def _state_code(p: Property) -> str:
    return p.state.code if p.state is not None else UNKNOWN_STATE_CODE


def _city_name(p: Property) -> str:
    return p.city.name if p.city is not None else UNKNOWN_PLACE


def _num(v: Optional[float]) -> str:
    if v is None:
        return "0"
    f = float(v)
    return str(int(f)) if f.is_integer() else str(f)


def location_line(p: Property) -> str:
    return f"{p.address}, {_city_name(p)}, {_state_code(p)}"


def marker_title_description(p: Property, *, search_type: str) -> tuple[str, str]:
    if search_type == "owner":
        primary = primary_ownership(list(p.ownerships))
        title = owner_display_name(primary.owner if primary is not None else None)
        return title, f"{location_line(p)} • {format_currency(p.current_value)}"

    sqft = f"{p.square_footage:,}" if p.square_footage is not None else "N/A"
    desc = f"{p.property_type} • {sqft} sq ft • {_num(p.bedrooms)}bd/{_num(p.bathrooms)}ba"
    return location_line(p), desc


def property_marker(p: Property, *, search_type: str) -> dict[str, Any]:
    title, description = marker_title_description(p, search_type=search_type)
    primary = primary_ownership(list(p.ownerships))
    return {
        "id": p.id,
        "address": p.address,
        "latitude": p.latitude,
        "longitude": p.longitude,
        "propertyType": p.property_type,
        "currentValue": p.current_value or 0,
        "squareFootage": p.square_footage,
        "bedrooms": p.bedrooms,
        "bathrooms": p.bathrooms,
        "yearBuilt": p.year_built,
        "city": _city_name(p),
        "state": _state_name(p),
        "stateCode": _state_code(p),
        "ownerName": owner_display_name(primary.owner) if primary is not None else None,
        "formattedValue": format_currency(p.current_value),
        "title": title,
        "description": description,
    }


def _ownership_view(o: PropertyOwnership) -> dict[str, Any]:
    owner = o.owner
    return {
        "id": o.id,
        "ownershipType": o.ownership_type,
        "ownershipPercent": o.ownership_percent,
        "startDate": o.start_date,
        "owner": {
            "id": owner.id,
            "name": owner_display_name(owner),
            "type": owner.type,
            "estimatedNetWorth": owner.estimated_net_worth,
            "occupation": owner.occupation,
            "employer": owner.employer,
            "industry": owner.industry,
            "email": owner.email,
            "phone": owner.phone,
            "mailingAddress": owner.mailing_address,
        },
    }


def _transaction_view(t: PropertyTransaction) -> dict[str, Any]:
    return {
        "id": t.id,
        "type": t.transaction_type,
        "amount": t.amount,
        "date": t.transaction_date,
        "buyerName": party_display_name(t.buyer),
        "sellerName": party_display_name(t.seller),
        "documentType": t.document_type,
        "recordingDate": t.recording_date,
        "formattedAmount": format_currency(t.amount),
    }


def property_detail(p: Property) -> dict[str, Any]:
    ownerships = sorted(
        (o for o in p.ownerships if o.is_active),
        key=lambda o: (-(o.ownership_percent or 0.0), o.id),
    )
    transactions = sorted(p.transactions, key=lambda t: (t.transaction_date, t.id), reverse=True)[
        :RECENT_TRANSACTIONS
    ]

    county = p.county
    city = p.city
    return {
        "id": p.id,
        "address": p.address,
        "streetNumber": p.street_number,
        "streetName": p.street_name,
        "unit": p.unit,
        "zipCode": p.zip_code,
        "latitude": p.latitude,
        "longitude": p.longitude,
        "propertyType": p.property_type,
        "buildingType": p.building_type,
        "yearBuilt": p.year_built,
        "propertyAge": property_age(p.year_built),
        "squareFootage": p.square_footage,
        "lotSize": p.lot_size,
        "bedrooms": p.bedrooms,
        "bathrooms": p.bathrooms,
        "stories": p.stories,
        "currentValue": p.current_value,
        "assessedValue": p.assessed_value,
        "taxAmount": p.tax_amount,
        "lastSalePrice": p.last_sale_price,
        "lastSaleDate": p.last_sale_date,
        "pricePerSqFt": price_per_sqft(p.current_value, p.square_footage),
        "formattedCurrentValue": format_currency(p.current_value),
        "formattedAssessedValue": format_currency(p.assessed_value, compact=False),
        "formattedTaxAmount": format_currency(p.tax_amount, compact=False),
        "formattedLastSalePrice": format_currency(p.last_sale_price, compact=False),
        "location": {
            "state": _state_name(p),
            "stateCode": _state_code(p),
            "county": county.name if county is not None else UNKNOWN_PLACE,
            "city": _city_name(p),
            "countyInfo": (
                {
                    "fipsCode": county.fips_code,
                    "population": county.population,
                    "medianIncome": county.median_income,
                }
                if county is not None
                else None
            ),
            "cityInfo": (
                {
                    "population": city.population,
                    "medianIncome": city.median_income,
                    "zipCodes": city.zip_codes,
                }
                if city is not None
                else None
            ),
        },
        "ownerships": [_ownership_view(o) for o in ownerships],
        "transactions": [_transaction_view(t) for t in transactions],
        "dataSource": p.data_source,
        "confidence": p.confidence,
        "createdAt": p.created_at,
        "updatedAt": p.updated_at,
    }


def property_summary(p: Property) -> dict[str, Any]:
    return {
        "id": p.id,
        "address": p.address,
        "propertyType": p.property_type,
        "currentValue": p.current_value,
        "city": p.city.name if p.city is not None else None,
        "state": _state_name(p),
        "stateCode": _state_code(p),
    }


def saved_property_view(sp: SavedProperty, *, with_owners: bool = False) -> dict[str, Any]:
    p = sp.property
    prop = property_summary(p)
    if with_owners:
        prop.update(
            {
                "squareFootage": p.square_footage,
                "bedrooms": p.bedrooms,
                "bathrooms": p.bathrooms,
                "yearBuilt": p.year_built,
                "latitude": p.latitude,
                "longitude": p.longitude,
                "owners": [
                    {"name": owner_display_name(o.owner), "ownershipPercent": o.ownership_percent}
                    for o in p.ownerships
                    if o.is_active
                ],
            }
        )
    return {
        "id": sp.id,
        "propertyId": sp.property_id,
        "notes": sp.notes,
        "tags": sp.tags,
        "createdAt": sp.created_at,
        "property": prop,
    }
