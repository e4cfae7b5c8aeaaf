"""Tests for variation pricing."""

import pytest

from storefront.domain.exceptions import ValidationError
from storefront.domain.pricing import (
    display_price,
    normalize_option,
    normalize_variations,
    unit_price,
    validate_selection,
)

STORAGE_AND_COLOR = [
    {
        "name": "Storage",
        "options": [
            {"value": "128GB", "price": 79900},
            {"value": "256GB", "price": 89900},
        ],
    },
    {"name": "Color", "options": ["Black", {"value": "Gold", "price": 99900}]},
]


class TestNormalize:
    """Tests for option normalization."""

    def test_bare_string_option(self) -> None:
        """Bare strings become options without a price."""
        assert normalize_option("Black") == {"value": "Black", "price": None}

    def test_priced_option(self) -> None:
        """Mapping options keep an integer price."""
        assert normalize_option({"value": "1TB", "price": "129900"}) == {"value": "1TB", "price": 129900}

    def test_groups_without_name_are_dropped(self) -> None:
        """Unnamed groups and empty option values are discarded."""
        result = normalize_variations(
            [
                {"name": "", "options": ["x"]},
                {"name": " Size ", "options": ["", "Large"]},
            ]
        )
        assert result == [{"name": "Size", "options": [{"value": "Large", "price": None}]}]

    def test_none_is_empty(self) -> None:
        """Missing variations normalize to an empty list."""
        assert normalize_variations(None) == []


class TestDisplayPrice:
    """Tests for listing price."""

    def test_no_priced_options_uses_base(self) -> None:
        """Base price is shown when no option carries a price."""
        assert display_price(5000, [{"name": "Color", "options": ["Red", "Blue"]}]) == 5000

    def test_cheapest_priced_option(self) -> None:
        """Cheapest priced option across all groups is shown."""
        assert display_price(100000, STORAGE_AND_COLOR) == 79900


class TestUnitPrice:
    """Tests for selection pricing."""

    def test_first_priced_selection_wins(self) -> None:
        """Group order decides which priced option applies."""
        selection = {"Storage": "256GB", "Color": "Gold"}
        assert unit_price(100000, STORAGE_AND_COLOR, selection) == 89900

    def test_unpriced_selection_falls_through(self) -> None:
        """An unpriced option lets later groups set the price."""
        variations = [
            {"name": "Color", "options": ["Black", "Gold"]},
            {"name": "Storage", "options": [{"value": "512GB", "price": 119900}]},
        ]
        assert unit_price(100000, variations, {"Color": "Black", "Storage": "512GB"}) == 119900

    def test_base_price_without_selection(self) -> None:
        """No selection means the base price."""
        assert unit_price(100000, STORAGE_AND_COLOR, None) == 100000


class TestValidateSelection:
    """Tests for selection validation."""

    def test_complete_selection(self) -> None:
        """A full, valid selection is returned."""
        selection = {"Storage": "128GB", "Color": "Black"}
        assert validate_selection(STORAGE_AND_COLOR, selection) == selection

    def test_missing_group(self) -> None:
        """Every group with options must be chosen."""
        with pytest.raises(ValidationError, match="Please select Color"):
            validate_selection(STORAGE_AND_COLOR, {"Storage": "128GB"})

    def test_unknown_option(self) -> None:
        """Options must exist in the group."""
        with pytest.raises(ValidationError) as exc_info:
            validate_selection(STORAGE_AND_COLOR, {"Storage": "2TB", "Color": "Black"})

        assert exc_info.value.details["options"] == ["128GB", "256GB"]

    def test_unknown_group(self) -> None:
        """Groups the product does not have are rejected."""
        with pytest.raises(ValidationError, match="Unknown variation: Size"):
            validate_selection(STORAGE_AND_COLOR, {"Storage": "128GB", "Color": "Black", "Size": "XL"})

    def test_product_without_variations(self) -> None:
        """Products without variations accept an empty selection."""
        assert validate_selection([], {}) == {}
