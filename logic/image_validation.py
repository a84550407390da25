"""Reject uploads that an image classifier says are not clothing.

The classifier returns labels ordered by confidence. Only the top few are
trusted: any blocked scene label fails the image outright, otherwise one of the
top labels has to name a garment or accessory.
"""

from __future__ import annotations

import re
from typing import Iterable, List

TOP_LABELS = 3

BLOCKED_TERMS = (
    "tree", "plant", "flower", "grass", "nature", "forest",
    "vehicle", "car", "truck", "bicycle", "wheel",
    "food", "dish", "vegetable", "fruit", "meat",
    "animal", "dog", "cat", "bird",
    "building", "room", "furniture",
)

CLOTHING_TERMS = (
    "clothing", "apparel", "shirt", "blouse", "top", "t-shirt", "sweatshirt", "hoodie",
    "pants", "trousers", "jeans", "shorts", "skirt", "leggings",
    "dress", "gown", "robe", "jumpsuit",
    "jacket", "coat", "blazer", "sweater", "cardigan", "vest", "suit",
    "shoe", "sneaker", "boot", "sandal", "heel", "loafer", "footwear",
    "hat", "cap", "bag", "purse", "accessory", "jersey", "uniform",
)

_WORD = re.compile(r"[a-z]+")


def _top_labels(labels: Iterable[str]) -> List[str]:
    top: List[str] = []
    for label in labels:
        if len(top) == TOP_LABELS:
            break
        top.append(str(label).lower())
    return top


def is_clothing(labels: Iterable[str]) -> bool:
    top = _top_labels(labels)
    for label in top:
        # Whole words only, so "cardigan" is not blocked by "car".
        words = set(_WORD.findall(label))
        words |= {word[:-1] for word in words if word.endswith("s")}
        if words.intersection(BLOCKED_TERMS):
            return False
    return any(term in label for label in top for term in CLOTHING_TERMS)


__all__ = ["BLOCKED_TERMS", "CLOTHING_TERMS", "is_clothing"]
