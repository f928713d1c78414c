import logging
from dataclasses import dataclass, field
from datetime import date, time
from decimal import Decimal, InvalidOperation
from typing import Optional

from .exceptions import InvalidDateError, ValidationError
from .opening_hours import OpeningHours

logger = logging.getLogger(__name__)


@dataclass
class ShopDocument:
    """A shop as stored in the search index. Mirrors the attribute names of Shop."""

    id: int
    name: str
    created_at: date
    in_vacations: bool = False
    nb_products: int = 0
    opening_hours: list = field(default_factory=list)


def parse_date(value, field_name: str) -> Optional[date]:
    """Parse an ISO ``YYYY-MM-DD`` string. ``None`` and ``''`` mean absent."""
    if value is None or value == '':
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError as exc:
        raise InvalidDateError(
            f"{field_name} must be an ISO date (YYYY-MM-DD), got {value!r}"
        ) from exc


def _parse_time(value) -> time:
    if isinstance(value, time):
        return value
    return time.fromisoformat(str(value))


def _parse_id(value, label: str, errors: list):
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        errors.append(f"{label} must be an integer, got {value!r}")
        return None
    return value


def _transform_opening_hours(raw_entries, errors: list) -> list:
    entries = []
    if not isinstance(raw_entries, list):
        errors.append('opening_hours must be a list')
        return entries
    for index, raw in enumerate(raw_entries):
        label = f"opening_hours[{index}]"
        if not isinstance(raw, dict):
            errors.append(f"{label} must be an object")
            continue
        day = raw.get('day')
        if isinstance(day, bool) or not isinstance(day, int) or not 0 <= day <= 6:
            errors.append(f"{label}.day must be an integer between 0 and 6, got {day!r}")
            continue
        try:
            open_at = _parse_time(raw.get('open_at'))
            close_at = _parse_time(raw.get('close_at'))
        except (TypeError, ValueError):
            errors.append(f"{label} open_at/close_at must be times (HH:MM)")
            continue
        if not open_at < close_at:
            errors.append(f"{label} open_at must be before close_at")
            continue
        entries.append(OpeningHours(day=day, open_at=open_at, close_at=close_at))
    return entries


def transform_shop(raw: dict, require_id: bool = False) -> dict:
    """
    Validate a raw shop payload and split it into row fields and opening hours.

    Every field-level problem is collected; if any are found a single
    ValidationError listing all of them is raised.
    """
    errors = []

    shop_id = _parse_id(raw.get('id'), 'id', errors)
    if require_id and raw.get('id') is None:
        errors.append('id is required')

    name = raw.get('name')
    if not isinstance(name, str) or not name.strip():
        errors.append('name must not be blank')

    created_at = None
    try:
        created_at = parse_date(raw.get('created_at'), 'created_at')
    except InvalidDateError as exc:
        errors.append(str(exc))

    in_vacations = raw.get('in_vacations', False)
    if not isinstance(in_vacations, bool):
        errors.append(f"in_vacations must be a boolean, got {in_vacations!r}")

    opening_hours = _transform_opening_hours(raw.get('opening_hours') or [], errors)

    if errors:
        raise ValidationError.from_errors(errors)

    fields = {'name': name.strip(), 'in_vacations': in_vacations}
    if created_at is not None:
        fields['created_at'] = created_at

    return {'id': shop_id, 'fields': fields, 'opening_hours': opening_hours}


def transform_product(raw: dict, require_id: bool = False) -> dict:
    """Validate a raw product payload. Same error collection rules as transform_shop."""
    errors = []

    product_id = _parse_id(raw.get('id'), 'id', errors)
    if require_id and raw.get('id') is None:
        errors.append('id is required')

    name = raw.get('name')
    if not isinstance(name, str) or not name.strip():
        errors.append('name must not be blank')

    description = raw.get('description') or ''
    if not isinstance(description, str):
        errors.append('description must be a string')

    price = None
    try:
        price = Decimal(str(raw.get('price', 0)))
    except InvalidOperation:
        errors.append(f"price must be a number, got {raw.get('price')!r}")
    else:
        if not price.is_finite():
            errors.append(f"price must be a number, got {raw.get('price')!r}")
        elif price < 0:
            errors.append('price must be zero or positive')

    shop_id = _parse_id(raw.get('shop_id'), 'shop_id', errors)
    category_id = _parse_id(raw.get('category_id'), 'category_id', errors)

    if errors:
        raise ValidationError.from_errors(errors)

    return {
        'id': product_id,
        'fields': {'name': name.strip(), 'description': description, 'price': price},
        'shop_id': shop_id,
        'category_id': category_id,
    }


def shop_to_payload(shop) -> dict:
    """Turn a persisted shop back into the payload shape accepted by transform_shop."""
    return {
        'id': shop.pk,
        'name': shop.name,
        'created_at': shop.created_at.isoformat(),
        'in_vacations': shop.in_vacations,
        'opening_hours': [
            {'day': oh.day, 'open_at': oh.open_at.isoformat(), 'close_at': oh.close_at.isoformat()}
            for oh in shop.opening_hours.all()
        ],
    }


def shop_to_document(shop) -> dict:
    """Flatten a persisted shop into its search index document."""
    nb_products = getattr(shop, 'nb_products', None)
    if nb_products is None:
        nb_products = shop.products.count()
    return {
        'id': shop.pk,
        'name': shop.name,
        'created_at': shop.created_at.isoformat(),
        'in_vacations': shop.in_vacations,
        'nb_products': nb_products,
        'opening_hours': [
            {'day': oh.day, 'open_at': oh.open_at.isoformat(), 'close_at': oh.close_at.isoformat()}
            for oh in shop.opening_hours.all()
        ],
    }


def document_to_shop(source: dict) -> ShopDocument:
    """Rebuild a ShopDocument from the ``_source`` of a search hit."""
    opening_hours = []
    for entry in source.get('opening_hours') or []:
        try:
            opening_hours.append(OpeningHours(
                day=entry['day'],
                open_at=_parse_time(entry['open_at']),
                close_at=_parse_time(entry['close_at']),
            ))
        except (KeyError, TypeError, ValueError):
            logger.warning("Shop document %s has a malformed opening hours entry %r – dropping it.",
                           source.get('id'), entry)

    return ShopDocument(
        id=source['id'],
        name=source.get('name', ''),
        created_at=date.fromisoformat(source['created_at']),
        in_vacations=bool(source.get('in_vacations', False)),
        nb_products=int(source.get('nb_products') or 0),
        opening_hours=opening_hours,
    )
