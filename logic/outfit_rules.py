"""Selection rules applied before an outfit is sent for virtual try-on."""

from __future__ import annotations

from typing import List, Optional, Sequence

from models.clothing_item import ClothingItem
from models.taxonomy import ClothingCategory, is_full_body

MAX_TOP_LAYERS = 2


def validate_selection(items: Sequence[ClothingItem]) -> Optional[str]:
    """Return the first rule a selection breaks, or ``None`` when it is wearable.

    Full-body garments (dresses, jumpsuits and the like) are counted on their
    own, never as tops or bottoms.
    """

    if not items:
        return "Select at least one item."

    full_body: List[ClothingItem] = [item for item in items if is_full_body(item.subcategory)]
    full_body_ids = {item.item_id for item in full_body}
    tops = [
        item
        for item in items
        if item.category is ClothingCategory.TOP and item.item_id not in full_body_ids
    ]
    bottoms = [
        item
        for item in items
        if item.category is ClothingCategory.BOTTOM and item.item_id not in full_body_ids
    ]
    shoes = [item for item in items if item.category is ClothingCategory.SHOES]

    if len(shoes) > 1:
        return "Please select only 1 pair of shoes."
    if full_body:
        if bottoms:
            return "You cannot wear a Dress and Bottoms together."
        if len(full_body) > 1:
            return "Please select only 1 Full-Body outfit."
    elif len(bottoms) > 1:
        return "Please select only 1 Bottom."
    if len(tops) > MAX_TOP_LAYERS:
        return "Layering Limit: Max 2 Tops."
    return None


__all__ = ["MAX_TOP_LAYERS", "validate_selection"]
