"""Sizing heuristics, try-on selection rules, photo validation and briefing copy."""

import pytest

from logic.briefing import briefing_for_hour, greeting_for_hour, time_of_day
from logic.image_validation import is_clothing
from logic.outfit_rules import validate_selection
from logic.sizing import garment_dimensions, size_from_measurements
from models.clothing_item import ClothingItem


def _item(item_id: str, category: str, subcategory: str = "Other") -> ClothingItem:
    return ClothingItem(
        item_id=item_id,
        owner_email="ana@example.com",
        image_url=f"http://testserver/media/clothes/{item_id}.jpg",
        category=category,
        subcategory=subcategory,
    )


@pytest.mark.parametrize(
    "width, expected",
    [(18.9, "S"), (19.0, "M"), (20.5, "M"), (22.9, "L"), (23.0, "XL")],
)
def test_top_sizes_follow_width_thresholds(width, expected) -> None:
    assert size_from_measurements(width, 27, "Top") == expected


def test_bottom_size_reports_waist_and_length() -> None:
    assert size_from_measurements(16.4, 30.8, "bottom") == "W32 L30"
    assert size_from_measurements(10, 10, "Shoes") == "Unknown"
    with pytest.raises(ValueError):
        size_from_measurements(10, 10, "Hat")


def test_garment_dimensions_projects_bbox_with_depth() -> None:
    width, length = garment_dimensions((0.5, 0.25), (1000, 2000), 1.0, 1000.0, 1000.0)

    assert width == pytest.approx(0.5 * 39.37)
    assert length == pytest.approx(0.5 * 39.37)
    with pytest.raises(ValueError):
        garment_dimensions((0.5, 0.5), (100, 100), 0, 1.0, 1.0)


def test_selection_rules_in_order() -> None:
    assert validate_selection([]) == "Select at least one item."
    assert (
        validate_selection([_item("s1", "Shoes"), _item("s2", "Shoes"), _item("d1", "Top", "Dress")])
        == "Please select only 1 pair of shoes."
    )
    assert (
        validate_selection([_item("d1", "Top", "Dress"), _item("b1", "Bottom", "Pants")])
        == "You cannot wear a Dress and Bottoms together."
    )
    assert (
        validate_selection([_item("d1", "Top", "Dress"), _item("d2", "Top", "Jumpsuit")])
        == "Please select only 1 Full-Body outfit."
    )
    assert (
        validate_selection([_item("b1", "Bottom"), _item("b2", "Bottom")])
        == "Please select only 1 Bottom."
    )
    assert (
        validate_selection([_item("t1", "Top"), _item("t2", "Top"), _item("t3", "Top")])
        == "Layering Limit: Max 2 Tops."
    )


def test_wearable_selection_passes() -> None:
    outfit = [
        _item("t1", "Top", "T-Shirt"),
        _item("t2", "Top", "Blouse"),
        _item("b1", "Bottom", "Pants"),
        _item("s1", "Shoes", "Sneakers"),
        _item("a1", "Accessories", "Bag"),
    ]
    assert validate_selection(outfit) is None
    assert validate_selection([_item("d1", "Top", "Dress"), _item("t1", "Top", "Cardigan")]) is None


def test_image_validation_uses_top_labels_only() -> None:
    assert is_clothing(["shirt", "clothing", "apparel"])
    assert is_clothing(["cardigan", "sweater"])
    assert not is_clothing(["dog", "shirt", "clothing"])
    assert not is_clothing(["cars", "wheel"])
    assert not is_clothing(["table", "wood", "floor", "shirt"])
    assert not is_clothing([])


@pytest.mark.parametrize(
    "hour, band",
    [(5, "morning"), (11, "morning"), (12, "afternoon"), (18, "evening"), (22, "night"), (2, "night")],
)
def test_time_of_day_bands(hour, band) -> None:
    assert time_of_day(hour) == band
    assert greeting_for_hour(hour) == f"Good {band}"


def test_briefing_splits_morning() -> None:
    assert briefing_for_hour(7) == "Light layers are recommended for cooler mornings."
    assert briefing_for_hour(10) == "A casual smart look works well for mixed plans."
    assert "breathable" in briefing_for_hour(14)
    with pytest.raises(ValueError):
        briefing_for_hour(24)
