"""Model package exports."""

from models.taxonomy import *  # noqa: F401,F403
from models.clothing_item import ClothingItem, DraftItem, SavedLook
from models.socials_post import SocialsPost
from models.user import BodyMeasurements, User

__all__ = ["BodyMeasurements", "ClothingItem", "DraftItem", "SavedLook", "SocialsPost", "User"]
