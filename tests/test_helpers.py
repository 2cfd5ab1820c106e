import re
import pytest
from decimal import Decimal
from datetime import datetime, timezone
from app.utils.helpers import (
    base_username,
    calculate_platform_fee,
    generate_order_number,
    is_valid_username,
    slugify,
)
from app.utils.validators import validate_pagination, paginate


class TestHelpers:
    """Test helper functions"""

    def test_generate_order_number_format(self):
        number = generate_order_number(datetime(2024, 3, 9, tzinfo=timezone.utc))
        assert re.fullmatch(r"ORD-20240309-\d{4}", number)

    @pytest.mark.parametrize(
        "amount,fee",
        [
            (Decimal("100.00"), Decimal("5.00")),
            (Decimal("19.99"), Decimal("1.00")),
            (Decimal("0.10"), Decimal("0.01")),
            (Decimal("0.09"), Decimal("0.00")),
            (Decimal("0"), Decimal("0.00")),
        ],
    )
    def test_platform_fee_rounds_half_up(self, amount, fee):
        assert calculate_platform_fee(amount) == fee

    def test_platform_fee_rejects_negative(self):
        with pytest.raises(ValueError):
            calculate_platform_fee(Decimal("-1"))

    def test_slugify(self):
        assert slugify("Silk Midi Dress") == "silk-midi-dress"

    def test_base_username(self):
        assert base_username("Jane.Doe@example.com") == "jane_doe"
        assert base_username("jo@example.com") == "jo_user"
        assert is_valid_username(base_username("x" * 60 + "@example.com"))

    def test_is_valid_username(self):
        assert is_valid_username("closet_42")
        assert not is_valid_username("No Spaces")
        assert not is_valid_username("ab")


class TestValidators:
    """Test validator utilities"""

    def test_validate_pagination_default(self, app):
        with app.test_request_context():
            assert validate_pagination() == (1, 20)

    def test_validate_pagination_out_of_range(self, app):
        with app.test_request_context("/?page=0&per_page=500"):
            assert validate_pagination() == (1, 20)

    def test_paginate(self):
        items, total, pages = paginate(list(range(45)), 3, 20)
        assert items == list(range(40, 45))
        assert total == 45
        assert pages == 3
