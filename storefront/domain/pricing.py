"""Variation pricing rules.

A product's ``variations`` is a list of option groups. Options are stored
either as a bare string or as ``{"value": ..., "price": ...}`` where
``price`` (minor units) replaces the product's base price when selected.
"""

from collections.abc import Mapping, Sequence
from typing import Any

from storefront.domain.exceptions import ValidationError


def normalize_option(option: Any) -> dict[str, Any]:
    """Coerce a stored option into ``{"value": str, "price": int | None}``."""
    if isinstance(option, Mapping):
        price = option.get("price")
        return {
            "value": str(option.get("value", "")),
            "price": int(price) if price is not None else None,
        }
    return {"value": str(option), "price": None}


def normalize_variations(variations: Sequence[Mapping[str, Any]] | None) -> list[dict[str, Any]]:
    """Normalize every option group, dropping groups without a name."""
    normalized = []
    for group in variations or []:
        name = str(group.get("name") or "").strip()
        if not name:
            continue
        options = [normalize_option(o) for o in group.get("options") or []]
        normalized.append({"name": name, "options": [o for o in options if o["value"]]})
    return normalized


def display_price(base_price: int, variations: Sequence[Mapping[str, Any]] | None) -> int:
    """Price shown in listings.

    Returns the cheapest priced option when any option carries a price,
    otherwise the base price.
    """
    prices = [
        option["price"]
        for group in normalize_variations(variations)
        for option in group["options"]
        if option["price"] is not None
    ]
    return min(prices) if prices else base_price


def unit_price(
    base_price: int,
    variations: Sequence[Mapping[str, Any]] | None,
    selection: Mapping[str, str] | None,
) -> int:
    """Price of one unit for a variation selection.

    Groups are visited in their stored order; the first selected option that
    carries a price wins. Falls back to the base price.
    """
    selection = selection or {}
    for group in normalize_variations(variations):
        chosen = selection.get(group["name"])
        if chosen is None:
            continue
        for option in group["options"]:
            if option["value"] == chosen and option["price"] is not None:
                return option["price"]
    return base_price


def validate_selection(
    variations: Sequence[Mapping[str, Any]] | None,
    selection: Mapping[str, str] | None,
) -> dict[str, str]:
    """Check that a selection names every group with one of its options.

    Args:
        variations: Product option groups.
        selection: Mapping of group name to chosen option value.

    Returns:
        The selection restricted to known groups.

    Raises:
        ValidationError: If a group is missing or an option is unknown.
    """
    selection = selection or {}
    groups = normalize_variations(variations)
    known = {group["name"] for group in groups}

    unknown = sorted(set(selection) - known)
    if unknown:
        raise ValidationError(
            f"Unknown variation: {', '.join(unknown)}",
            details={"unknown": unknown},
        )

    cleaned: dict[str, str] = {}
    for group in groups:
        if not group["options"]:
            continue
        chosen = selection.get(group["name"])
        if chosen is None:
            raise ValidationError(
                f"Please select {group['name']}",
                details={"variation": group["name"]},
            )
        values = [option["value"] for option in group["options"]]
        if chosen not in values:
            raise ValidationError(
                f"Invalid option '{chosen}' for {group['name']}",
                details={"variation": group["name"], "options": values},
            )
        cleaned[group["name"]] = chosen
    return cleaned
