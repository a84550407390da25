"""Closet agent: cataloguing, sizing and bulk upload of clothing photos."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Callable, Iterable, List, Optional, Sequence, Tuple
from uuid import uuid4

from fitpick_app.logging_config import get_logger, log_event, operation_context
from logic.image_validation import is_clothing
from logic.sizing import size_from_measurements
from models.clothing_item import ClothingItem, DraftItem, normalize_email, utcnow
from models.taxonomy import DEFAULT_SIZE, DEFAULT_SUBCATEGORY, ClothingCategory, validate_category
from tools.imaging import CLOTHES_QUALITY, to_jpeg
from tools.media_store import MediaStore, clothes_path
from tools.wardrobe_store import WardrobeStore

LOGGER = get_logger(__name__)

LabelClassifier = Callable[[bytes], Sequence[str]]

VALID_MESSAGE = "Valid"
INVALID_MESSAGE = "Not a clothing item"


class ClosetAgent:
    """Stores closet photos and the item records that point at them."""

    def __init__(
        self,
        wardrobe_store: WardrobeStore,
        media_store: MediaStore,
        classifier: Optional[LabelClassifier] = None,
    ) -> None:
        self.wardrobe_store = wardrobe_store
        self.media_store = media_store
        self.classifier = classifier

    def _save(
        self,
        owner_email: str,
        image: bytes,
        category: "str | ClothingCategory",
        subcategory: str,
        size: str,
        measurements=None,
        smart: bool = False,
    ) -> ClothingItem:
        owner = normalize_email(owner_email)
        category = validate_category(category)
        url = self.media_store.put(clothes_path(smart), to_jpeg(image, CLOTHES_QUALITY), "image/jpeg")
        item = ClothingItem(
            item_id=uuid4().hex,
            owner_email=owner,
            image_url=url,
            category=category,
            subcategory=subcategory,
            size=size,
            measurements=measurements,
            is_auto_measured=smart,
        )
        return self.wardrobe_store.create_item(item)

    def save_manual_item(
        self,
        owner_email: str,
        image: bytes,
        category: "str | ClothingCategory",
        subcategory: str = DEFAULT_SUBCATEGORY,
        size: str = DEFAULT_SIZE,
    ) -> ClothingItem:
        with operation_context("agent:closet.save_manual_item") as correlation_id:
            item = self._save(owner_email, image, category, subcategory, size)
            log_event(
                LOGGER,
                level=logging.INFO,
                event="agent_call_completed",
                agent="closet",
                method="save_manual_item",
                correlation_id=correlation_id,
                category=item.category.value,
            )
            return item

    def save_auto_measured_item(
        self,
        owner_email: str,
        image: bytes,
        category: "str | ClothingCategory",
        subcategory: str,
        size: str,
        width: float,
        length: float,
    ) -> ClothingItem:
        """Save an item sized from a depth-measured photo."""

        with operation_context("agent:closet.save_auto_measured_item") as correlation_id:
            item = self._save(
                owner_email,
                image,
                category,
                subcategory,
                size,
                measurements={"width": width, "length": length},
                smart=True,
            )
            log_event(
                LOGGER,
                level=logging.INFO,
                event="agent_call_completed",
                agent="closet",
                method="save_auto_measured_item",
                correlation_id=correlation_id,
                category=item.category.value,
                size=item.size,
            )
            return item

    @staticmethod
    def estimate_size(width: float, length: float, category: "str | ClothingCategory") -> str:
        return size_from_measurements(width, length, category)

    def validate_image(self, image: bytes) -> bool:
        if self.classifier is None:
            return False
        try:
            labels = list(self.classifier(image))
        except Exception as exc:  # an unreadable photo is treated as not clothing
            log_event(LOGGER, logging.WARNING, "image_classification_failed", error=str(exc))
            return False
        verdict = is_clothing(labels)
        log_event(LOGGER, logging.INFO, "image_classified", labels=labels[:3], is_clothing=verdict)
        return verdict

    def _owned_item(self, owner_email: str, item_id: str) -> ClothingItem:
        item = self.wardrobe_store.get_item(item_id)
        if item is None:
            raise LookupError(f"Unknown closet item: {item_id}")
        if item.owner_email != normalize_email(owner_email):
            raise PermissionError("Closet items can only be changed by their owner")
        return item

    def update_item_size(self, owner_email: str, item_id: str, size: str) -> ClothingItem:
        self._owned_item(owner_email, item_id)
        updated = self.wardrobe_store.update_item_size(item_id, size)
        if updated is None:
            raise LookupError(f"Unknown closet item: {item_id}")
        return updated

    def delete_item(self, owner_email: str, item_id: str) -> None:
        item = self._owned_item(owner_email, item_id)
        self.wardrobe_store.delete_item(item.item_id)
        if not self.media_store.delete(item.image_url):
            log_event(LOGGER, logging.WARNING, "item_blob_missing", item_id=item.item_id)

    def list_items(
        self, owner_email: str, category: "str | ClothingCategory | None" = None
    ) -> List[ClothingItem]:
        return self.wardrobe_store.filter_items(owner_email, category)

    def wardrobe_pulse(self, owner_email: str, last_days: int = 7) -> Tuple[int, int]:
        """Items uploaded and distinct items worn in looks over the last days."""

        since = utcnow() - timedelta(days=last_days)
        uploaded = self.wardrobe_store.items_created_since(owner_email, since)
        used = self.wardrobe_store.items_used_since(owner_email, since)
        return uploaded, used


class BulkUpload:
    """Staging area for a batch of photos before they become closet items."""

    def __init__(self, agent: ClosetAgent) -> None:
        self.agent = agent
        self.drafts: List[DraftItem] = []
        self.saved_count = 0
        self.total_to_save = 0

    def load(self, images: Iterable[bytes]) -> List[DraftItem]:
        new_drafts = [DraftItem(image=image) for image in images]
        self.drafts.extend(new_drafts)
        return new_drafts

    def validate_all(self) -> List[DraftItem]:
        for draft in self.drafts:
            draft.is_validating = True
            draft.is_clothing = self.agent.validate_image(draft.image)
            draft.validation_message = VALID_MESSAGE if draft.is_clothing else INVALID_MESSAGE
            draft.is_validating = False
        return list(self.drafts)

    def remove_draft(self, draft_id: str) -> bool:
        before = len(self.drafts)
        self.drafts = [draft for draft in self.drafts if draft.draft_id != draft_id]
        return len(self.drafts) < before

    def apply_category_to_all(self, category: "str | ClothingCategory") -> None:
        chosen = validate_category(category)
        for draft in self.drafts:
            draft.category = chosen
            draft.subcategory = ""

    @property
    def valid_drafts(self) -> List[DraftItem]:
        return [draft for draft in self.drafts if draft.is_clothing]

    def save_all_valid(self, owner_email: str) -> List[ClothingItem]:
        """Save validated drafts one by one; saved drafts leave the batch."""

        pending = self.valid_drafts
        self.total_to_save = len(pending)
        self.saved_count = 0
        saved: List[ClothingItem] = []
        with operation_context("agent:closet.bulk_save") as correlation_id:
            for draft in pending:
                item = self.agent.save_manual_item(
                    owner_email,
                    draft.image,
                    draft.category,
                    draft.subcategory or DEFAULT_SUBCATEGORY,
                    draft.size or DEFAULT_SIZE,
                )
                saved.append(item)
                self.saved_count += 1
                self.drafts.remove(draft)
            log_event(
                LOGGER,
                level=logging.INFO,
                event="agent_call_completed",
                agent="closet",
                method="bulk_save",
                correlation_id=correlation_id,
                saved_count=self.saved_count,
                skipped=len(self.drafts),
            )
        return saved


__all__ = ["BulkUpload", "ClosetAgent", "INVALID_MESSAGE", "VALID_MESSAGE"]
