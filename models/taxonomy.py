"""Canonical taxonomy definitions for closet items.

Categories are a closed set; subcategories are suggestions that depend on the
wearer's gender and are stored as free text on each item.
"""

from enum import Enum
from typing import Dict, List, Tuple


class ClothingCategory(str, Enum):
    TOP = "Top"
    BOTTOM = "Bottom"
    SHOES = "Shoes"
    ACCESSORIES = "Accessories"


_SUBCATEGORIES: Dict[Tuple[ClothingCategory, str], List[str]] = {
    (ClothingCategory.TOP, "male"): ["T-Shirt", "Polo", "Polo Shirt", "Sando"],
    (ClothingCategory.TOP, "female"): ["T-Shirt", "Blouse", "Dress", "Cropped Top"],
    (ClothingCategory.SHOES, "male"): ["Sneakers", "Slippers", "Clogs"],
    (ClothingCategory.SHOES, "female"): ["Sneakers", "Slippers", "Heels"],
}

_UNGENDERED_SUBCATEGORIES: Dict[ClothingCategory, List[str]] = {
    ClothingCategory.BOTTOM: ["Shorts", "Pants"],
    ClothingCategory.ACCESSORIES: ["Bag", "Belt", "Hat", "Scarf", "Jewelry"],
}

FULL_BODY_KEYWORDS = ("dress", "jumpsuit", "romper", "gown", "one-piece")
DEFAULT_SUBCATEGORY = "Other"
DEFAULT_SIZE = "Unknown"


def validate_category(value: "str | ClothingCategory") -> ClothingCategory:
    """Parse a category case-insensitively.

    Raises a :class:`ValueError` if the category is not part of the taxonomy.
    """

    if isinstance(value, ClothingCategory):
        return value
    key = str(value).strip().lower()
    for category in ClothingCategory:
        if category.value.lower() == key:
            return category
    raise ValueError(
        f"Unsupported category '{value}'. Allowed: {[c.value for c in ClothingCategory]}"
    )


def subcategories_for(category: "str | ClothingCategory", gender: str) -> List[str]:
    """Return the suggested subcategories for a category and gender.

    Unknown genders get the union of the male and female suggestions.
    """

    category_key = validate_category(category)
    if category_key in _UNGENDERED_SUBCATEGORIES:
        return list(_UNGENDERED_SUBCATEGORIES[category_key])

    gender_key = (gender or "").strip().lower()
    if (category_key, gender_key) in _SUBCATEGORIES:
        return list(_SUBCATEGORIES[(category_key, gender_key)])

    merged: List[str] = []
    for key in ("male", "female"):
        for value in _SUBCATEGORIES[(category_key, key)]:
            if value not in merged:
                merged.append(value)
    return merged


def is_full_body(subcategory: str) -> bool:
    """True for one-piece garments such as dresses and jumpsuits."""

    lowered = (subcategory or "").lower()
    return any(keyword in lowered for keyword in FULL_BODY_KEYWORDS)


__all__ = [
    "ClothingCategory",
    "DEFAULT_SIZE",
    "DEFAULT_SUBCATEGORY",
    "FULL_BODY_KEYWORDS",
    "is_full_body",
    "subcategories_for",
    "validate_category",
]
