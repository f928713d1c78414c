from datetime import date, time
from decimal import Decimal

import pytest

from catalog.exceptions import InvalidDateError, ValidationError
from catalog.transformer import (
    document_to_shop,
    parse_date,
    transform_product,
    transform_shop,
)

SHOP_PAYLOAD = {
    'name': '  Boulangerie Paul ',
    'created_at': '2023-05-17',
    'in_vacations': False,
    'opening_hours': [
        {'day': 0, 'open_at': '09:00', 'close_at': '12:00'},
        {'day': 0, 'open_at': '13:00', 'close_at': '18:00'},
    ],
}


# ---------------------------------------------------------------------------
# parse_date
# ---------------------------------------------------------------------------

class TestParseDate:
    def test_iso_string_is_parsed(self):
        assert parse_date('2024-01-01', 'created_before') == date(2024, 1, 1)

    def test_none_and_empty_string_mean_absent(self):
        assert parse_date(None, 'x') is None
        assert parse_date('', 'x') is None

    def test_date_object_passes_through(self):
        assert parse_date(date(2020, 2, 29), 'x') == date(2020, 2, 29)

    @pytest.mark.parametrize('value', ['2024-13-01', '01/02/2024', 'yesterday'])
    def test_malformed_date_raises(self, value):
        with pytest.raises(InvalidDateError, match='created_after'):
            parse_date(value, 'created_after')

    def test_invalid_date_error_is_a_validation_error(self):
        with pytest.raises(ValidationError):
            parse_date('nope', 'created_after')


# ---------------------------------------------------------------------------
# transform_shop
# ---------------------------------------------------------------------------

class TestTransformShop:
    def test_basic_transformation(self):
        result = transform_shop(SHOP_PAYLOAD)
        assert result['id'] is None
        assert result['fields'] == {
            'name': 'Boulangerie Paul',
            'in_vacations': False,
            'created_at': date(2023, 5, 17),
        }
        assert [(oh.day, oh.open_at, oh.close_at) for oh in result['opening_hours']] == [
            (0, time(9, 0), time(12, 0)),
            (0, time(13, 0), time(18, 0)),
        ]

    def test_missing_created_at_is_left_to_the_default(self):
        payload = {**SHOP_PAYLOAD, 'created_at': None}
        assert 'created_at' not in transform_shop(payload)['fields']

    def test_missing_opening_hours_gives_empty_list(self):
        assert transform_shop({'name': 'A'})['opening_hours'] == []

    def test_all_field_errors_are_collected(self):
        payload = {
            'name': '',
            'created_at': 'not-a-date',
            'in_vacations': 'yes',
            'opening_hours': [{'day': 9, 'open_at': '09:00', 'close_at': '10:00'}],
        }
        with pytest.raises(ValidationError) as excinfo:
            transform_shop(payload)
        assert len(excinfo.value.errors) == 4
        assert str(excinfo.value) == '; '.join(excinfo.value.errors)

    def test_close_before_open_is_rejected(self):
        payload = {'name': 'A', 'opening_hours': [{'day': 1, 'open_at': '18:00', 'close_at': '09:00'}]}
        with pytest.raises(ValidationError, match='open_at must be before close_at'):
            transform_shop(payload)

    def test_unparseable_time_is_rejected(self):
        payload = {'name': 'A', 'opening_hours': [{'day': 1, 'open_at': 'noon', 'close_at': '13:00'}]}
        with pytest.raises(ValidationError, match='opening_hours\\[0\\]'):
            transform_shop(payload)

    @pytest.mark.parametrize('entry', [None, 'Mon 9-12', ['0', '09:00', '12:00']])
    def test_non_object_opening_hours_entry_is_rejected(self, entry):
        payload = {'name': 'A', 'opening_hours': [{'day': 1, 'open_at': '09:00', 'close_at': '12:00'}, entry]}
        with pytest.raises(ValidationError) as excinfo:
            transform_shop(payload)
        assert excinfo.value.errors == ['opening_hours[1] must be an object']

    @pytest.mark.parametrize('value', ['Mon 9-12', {'day': 0}, 42])
    def test_opening_hours_must_be_a_list(self, value):
        with pytest.raises(ValidationError) as excinfo:
            transform_shop({'name': 'A', 'opening_hours': value})
        assert excinfo.value.errors == ['opening_hours must be a list']

    def test_require_id(self):
        with pytest.raises(ValidationError, match='id is required'):
            transform_shop(SHOP_PAYLOAD, require_id=True)

    def test_non_integer_id_is_rejected(self):
        with pytest.raises(ValidationError, match='id must be an integer'):
            transform_shop({**SHOP_PAYLOAD, 'id': '12'})


# ---------------------------------------------------------------------------
# transform_product
# ---------------------------------------------------------------------------

class TestTransformProduct:
    def test_basic_transformation(self):
        result = transform_product({'name': 'Baguette', 'price': '1.20', 'shop_id': 3})
        assert result['fields'] == {'name': 'Baguette', 'description': '', 'price': Decimal('1.20')}
        assert result['shop_id'] == 3
        assert result['category_id'] is None

    def test_zero_price_is_valid(self):
        assert transform_product({'name': 'Free', 'price': 0})['fields']['price'] == Decimal('0')

    def test_negative_price_is_rejected(self):
        with pytest.raises(ValidationError, match='zero or positive'):
            transform_product({'name': 'X', 'price': -1})

    def test_non_numeric_price_is_rejected(self):
        with pytest.raises(ValidationError, match='price must be a number'):
            transform_product({'name': 'X', 'price': 'cheap'})

    def test_missing_name_and_bad_ids_are_collected(self):
        with pytest.raises(ValidationError) as excinfo:
            transform_product({'price': 1, 'shop_id': 'a', 'category_id': 2.5})
        assert len(excinfo.value.errors) == 3


# ---------------------------------------------------------------------------
# document_to_shop
# ---------------------------------------------------------------------------

class TestDocumentToShop:
    def test_source_is_rebuilt(self):
        shop = document_to_shop({
            'id': 7,
            'name': 'Paul',
            'created_at': '2023-05-17',
            'in_vacations': True,
            'nb_products': 4,
            'opening_hours': [{'day': 2, 'open_at': '09:00:00', 'close_at': '12:00:00'}],
        })
        assert shop.id == 7
        assert shop.created_at == date(2023, 5, 17)
        assert shop.in_vacations is True
        assert shop.nb_products == 4
        assert shop.opening_hours[0].open_at == time(9, 0)

    def test_malformed_opening_hours_entry_is_dropped(self):
        shop = document_to_shop({
            'id': 1,
            'name': 'Paul',
            'created_at': '2023-05-17',
            'opening_hours': [{'day': 2}],
        })
        assert shop.opening_hours == []
        assert shop.nb_products == 0
