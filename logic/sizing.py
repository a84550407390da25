"""Garment size heuristics for smart (camera-measured) item capture."""

from __future__ import annotations

from typing import Tuple

from models.taxonomy import ClothingCategory, validate_category

METERS_TO_INCHES = 39.37


def garment_dimensions(
    bbox: Tuple[float, float],
    image_size: Tuple[int, int],
    distance_m: float,
    focal_x: float,
    focal_y: float,
) -> Tuple[float, float]:
    """Project a normalized bounding box to real-world width and length in inches.

    ``bbox`` is the (width, height) of the detected garment as a fraction of the
    frame, ``distance_m`` the camera-to-surface distance from a depth raycast,
    and ``focal_x``/``focal_y`` the camera intrinsics in pixels.
    """

    if distance_m <= 0:
        raise ValueError("distance_m must be positive")
    if focal_x <= 0 or focal_y <= 0:
        raise ValueError("focal lengths must be positive")

    pixel_width = bbox[0] * image_size[0]
    pixel_height = bbox[1] * image_size[1]
    width_m = (pixel_width * distance_m) / focal_x
    height_m = (pixel_height * distance_m) / focal_y
    return width_m * METERS_TO_INCHES, height_m * METERS_TO_INCHES


def size_from_measurements(width: float, length: float, category: "str | ClothingCategory") -> str:
    """Map flat-lay width/length (inches) to a label size."""

    category_key = validate_category(category)
    if category_key is ClothingCategory.TOP:
        if width < 19:
            return "S"
        if width < 21:
            return "M"
        if width < 23:
            return "L"
        return "XL"
    if category_key is ClothingCategory.BOTTOM:
        waist = int(width * 2)
        return f"W{waist} L{int(length)}"
    return "Unknown"


__all__ = ["garment_dimensions", "size_from_measurements"]
