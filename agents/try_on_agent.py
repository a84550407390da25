"""Virtual try-on: renders the user's mannequin avatar wearing closet items."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from fitpick_app.logging_config import get_logger, log_event, operation_context
from logic.outfit_rules import validate_selection
from logic.prompts import (
    TRY_ON_FINAL_INSTRUCTION,
    TRY_ON_GARMENTS_HEADER,
    TRY_ON_REFERENCE_HEADER,
    avatar_prompt,
    build_measurement_string,
    try_on_prompt,
)
from models.clothing_item import ClothingItem, SavedLook, normalize_email
from tools.genai_client import InlineImage
from tools.imaging import (
    AVATAR_QUALITY,
    AVATAR_SIZE,
    GARMENT_QUALITY,
    GARMENT_SIZE,
    LOOK_QUALITY,
    resize_to_fit,
    to_jpeg,
)
from tools.media_store import MediaStore, avatar_path, fetch_image, generated_look_path
from tools.social_store import SQLiteSocialStore
from tools.wardrobe_store import WardrobeStore

LOGGER = get_logger(__name__)

STYLING_ERROR = "Error: Could not finish styling. Try fewer items."


@dataclass
class TryOnResult:
    status: str
    image: Optional[bytes] = None
    message: Optional[str] = None
    items_used: List[str] = field(default_factory=list)


class TryOnAgent:
    """Builds try-on prompts, calls the image model and manages saved looks."""

    def __init__(
        self,
        wardrobe_store: WardrobeStore,
        social_store: SQLiteSocialStore,
        media_store: MediaStore,
        generator=None,
    ) -> None:
        self.wardrobe_store = wardrobe_store
        self.social_store = social_store
        self.media_store = media_store
        self.generator = generator

    def _load_items(self, user_email: str, item_ids: Sequence[str]) -> List[ClothingItem]:
        owner = normalize_email(user_email)
        items: List[ClothingItem] = []
        for item_id in item_ids:
            item = self.wardrobe_store.get_item(item_id)
            if item is None:
                raise LookupError(f"Unknown closet item: {item_id}")
            if item.owner_email != owner:
                raise PermissionError("Only items from your own closet can be tried on")
            items.append(item)
        return items

    def generate_try_on(self, user_email: str, item_ids: Sequence[str]) -> TryOnResult:
        """Render ``user_email``'s avatar wearing the selected items.

        Selection problems and a missing avatar come back as user-facing
        messages. Download or model failures collapse into one generic error
        message so the client can suggest a smaller selection.
        """

        with operation_context("agent:try_on.generate_try_on") as correlation_id:
            items_used = [str(item_id) for item_id in dict.fromkeys(item_ids)]
            items = self._load_items(user_email, items_used)

            problem = validate_selection(items)
            if problem:
                return TryOnResult(status="invalid_selection", message=problem, items_used=items_used)

            user = self.social_store.get_user(user_email)
            if user is None or not user.avatar_url:
                return TryOnResult(status="no_avatar", message="Avatar not found.", items_used=items_used)
            if self.generator is None:
                return TryOnResult(status="error", message=STYLING_ERROR, items_used=items_used)

            gender = user.gender if user.gender != "Unspecified" else "Neutral"
            measurement_string = build_measurement_string(user.measurements)

            try:
                avatar = resize_to_fit(
                    fetch_image(user.avatar_url, self.media_store), AVATAR_SIZE, AVATAR_QUALITY
                )
                parts: list = [
                    try_on_prompt(gender, measurement_string),
                    TRY_ON_REFERENCE_HEADER,
                    InlineImage(avatar),
                    TRY_ON_GARMENTS_HEADER,
                ]
                for item in items:
                    garment = fetch_image(item.image_url, self.media_store)
                    parts.append(InlineImage(resize_to_fit(garment, GARMENT_SIZE, GARMENT_QUALITY)))
                parts.append(TRY_ON_FINAL_INSTRUCTION)
                generated = self.generator.generate_image(parts)
            except Exception as exc:  # any download or model failure maps to one message
                log_event(
                    LOGGER,
                    logging.ERROR,
                    "try_on_failed",
                    correlation_id=correlation_id,
                    error=str(exc),
                    item_count=len(items),
                )
                return TryOnResult(status="error", message=STYLING_ERROR, items_used=items_used)

            if generated.data:
                result = TryOnResult(status="ok", image=generated.data, items_used=items_used)
            elif generated.text:
                result = TryOnResult(
                    status="note", message=f"Stylist Note: {generated.text}", items_used=items_used
                )
            else:
                result = TryOnResult(status="error", message=STYLING_ERROR, items_used=items_used)

            log_event(
                LOGGER,
                level=logging.INFO,
                event="agent_call_completed",
                agent="try_on",
                method="generate_try_on",
                correlation_id=correlation_id,
                status=result.status,
                item_count=len(items),
            )
            return result

    def save_look(self, user_email: str, image: bytes, items_used: Sequence[str]) -> SavedLook:
        owner = normalize_email(user_email)
        url = self.media_store.put(generated_look_path(), to_jpeg(image, LOOK_QUALITY), "image/jpeg")
        look = SavedLook(
            look_id=f"{owner}_{int(time.time())}",
            owner_email=owner,
            image_url=url,
            items_used=list(items_used),
        )
        replaced = self.wardrobe_store.get_look(look.look_id)
        saved = self.wardrobe_store.create_look(look)
        # A save within the same second overwrites the row; drop its old image.
        if replaced is not None and replaced.image_url != url:
            self.media_store.delete(replaced.image_url)
        return saved

    def _owned_look(self, user_email: str, look_id: str) -> SavedLook:
        look = self.wardrobe_store.get_look(look_id)
        if look is None:
            raise LookupError(f"Unknown look: {look_id}")
        if look.owner_email != normalize_email(user_email):
            raise PermissionError("Looks can only be managed by their owner")
        return look

    def list_looks(self, user_email: str) -> List[SavedLook]:
        return self.wardrobe_store.list_looks(user_email)

    def delete_look(self, user_email: str, look_id: str) -> None:
        look = self._owned_look(user_email, look_id)
        self.wardrobe_store.delete_look(look.look_id)
        if not self.media_store.delete(look.image_url):
            log_event(LOGGER, logging.WARNING, "look_blob_missing", look_id=look.look_id)

    def restore_look(self, user_email: str, look_id: str) -> Tuple[bytes, List[str]]:
        look = self._owned_look(user_email, look_id)
        return fetch_image(look.image_url, self.media_store), list(look.items_used)

    def generate_avatar(self, user_email: str) -> Optional[str]:
        """Generate a mannequin avatar from the stored selfie; returns its URL."""

        with operation_context("agent:try_on.generate_avatar") as correlation_id:
            user = self.social_store.get_user(user_email)
            if user is None:
                raise LookupError(f"Unknown user: {user_email}")
            if not user.selfie_url:
                raise LookupError("Selfie not found.")
            if self.generator is None:
                return None

            gender = user.gender if user.gender != "Unspecified" else "Neutral"
            try:
                selfie = fetch_image(user.selfie_url, self.media_store)
                generated = self.generator.generate_image(
                    [avatar_prompt(gender, build_measurement_string(user.measurements)), InlineImage(selfie)]
                )
            except Exception as exc:  # model or download failure leaves the old avatar in place
                log_event(
                    LOGGER,
                    logging.ERROR,
                    "avatar_generation_failed",
                    correlation_id=correlation_id,
                    error=str(exc),
                )
                return None

            if not generated.data:
                log_event(LOGGER, logging.WARNING, "avatar_image_missing", correlation_id=correlation_id)
                return None

            url = self.media_store.put(
                avatar_path(user.email), generated.data, generated.mime_type or "image/png"
            )
            self.social_store.update_profile(user.email, avatar_url=url)
            log_event(
                LOGGER,
                level=logging.INFO,
                event="agent_call_completed",
                agent="try_on",
                method="generate_avatar",
                correlation_id=correlation_id,
            )
            return url


__all__ = ["STYLING_ERROR", "TryOnAgent", "TryOnResult"]
