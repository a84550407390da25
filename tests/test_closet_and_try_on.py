"""Closet cataloguing, bulk upload and the virtual try-on pipeline."""

from datetime import timedelta

import pytest

from agents.closet_agent import BulkUpload, ClosetAgent
from agents.try_on_agent import STYLING_ERROR, TryOnAgent
from models.clothing_item import SavedLook, utcnow
from models.taxonomy import ClothingCategory
from tests.support import FakeGenerator, make_image
from tools.genai_client import GeneratedImage, InlineImage
from tools.imaging import image_size
from tools.media_store import avatar_path


def _label_by_size(image: bytes):
    """Wide photos are clothing, tall ones are a dog."""

    width, height = image_size(image)
    return ["shirt", "clothing"] if width >= height else ["dog", "animal"]


@pytest.fixture()
def closet_agent(wardrobe_store, media_store) -> ClosetAgent:
    return ClosetAgent(wardrobe_store, media_store, classifier=_label_by_size)


def test_manual_item_is_stored_as_jpeg(closet_agent, media_store) -> None:
    item = closet_agent.save_manual_item("Ana@example.com", make_image(), "top", "Blouse", "M")

    assert item.owner_email == "ana@example.com"
    assert item.image_url.startswith("http://testserver/media/clothes/")
    assert not item.is_auto_measured
    assert media_store.get(item.image_url)[:2] == b"\xff\xd8"


def test_auto_measured_item_keeps_dimensions(closet_agent) -> None:
    size = closet_agent.estimate_size(20.0, 27.0, "Top")
    item = closet_agent.save_auto_measured_item(
        "ana@example.com", make_image(), "Top", "T-Shirt", size, 20.0, 27.0
    )

    assert item.size == "M"
    assert item.is_auto_measured
    assert item.measurements == {"width": 20.0, "length": 27.0}
    assert "/clothes/smart_" in item.image_url


def test_invalid_category_is_rejected_before_upload(closet_agent, media_store) -> None:
    with pytest.raises(ValueError):
        closet_agent.save_manual_item("ana@example.com", make_image(), "Capes")
    assert not (media_store.base_dir / "clothes").exists()


def test_validate_image(closet_agent, wardrobe_store, media_store) -> None:
    assert closet_agent.validate_image(make_image((60, 40)))
    assert not closet_agent.validate_image(make_image((40, 60)))

    def broken(_image):
        raise RuntimeError("classifier offline")

    assert not ClosetAgent(wardrobe_store, media_store, classifier=broken).validate_image(make_image())
    assert not ClosetAgent(wardrobe_store, media_store).validate_image(make_image())


def test_owner_only_size_update_and_delete(closet_agent, media_store) -> None:
    item = closet_agent.save_manual_item("ana@example.com", make_image(), "Bottom", "Pants")

    with pytest.raises(PermissionError):
        closet_agent.update_item_size("ben@example.com", item.item_id, "L")
    assert closet_agent.update_item_size("ana@example.com", item.item_id, "W30 L32").size == "W30 L32"

    with pytest.raises(PermissionError):
        closet_agent.delete_item("ben@example.com", item.item_id)
    closet_agent.delete_item("ana@example.com", item.item_id)
    assert closet_agent.list_items("ana@example.com") == []
    with pytest.raises(LookupError):
        media_store.get(item.image_url)
    with pytest.raises(LookupError):
        closet_agent.delete_item("ana@example.com", item.item_id)


def test_bulk_upload_saves_only_valid_drafts_with_defaults(closet_agent) -> None:
    batch = BulkUpload(closet_agent)
    drafts = batch.load([make_image((60, 40)), make_image((40, 60)), make_image((80, 40))])
    batch.apply_category_to_all("Bottom")
    drafts[2].subcategory = "Shorts"

    batch.validate_all()
    assert [d.validation_message for d in drafts] == ["Valid", "Not a clothing item", "Valid"]

    saved = batch.save_all_valid("ana@example.com")

    assert batch.saved_count == batch.total_to_save == 2
    assert [(i.category, i.subcategory, i.size) for i in saved] == [
        (ClothingCategory.BOTTOM, "Other", "Unknown"),
        (ClothingCategory.BOTTOM, "Shorts", "Unknown"),
    ]
    assert [d.validation_message for d in batch.drafts] == ["Not a clothing item"]


def test_remove_draft(closet_agent) -> None:
    batch = BulkUpload(closet_agent)
    first, second = batch.load([make_image(), make_image()])

    assert batch.remove_draft(first.draft_id)
    assert not batch.remove_draft("missing")
    assert batch.drafts == [second]


def test_wardrobe_pulse(closet_agent, wardrobe_store) -> None:
    item = closet_agent.save_manual_item("ana@example.com", make_image(), "Top")
    assert closet_agent.wardrobe_pulse("ana@example.com") == (1, 0)

    wardrobe_store.create_look(
        SavedLook(look_id="l1", owner_email="ana@example.com", image_url="u", items_used=[item.item_id])
    )
    wardrobe_store.create_look(
        SavedLook(
            look_id="l0",
            owner_email="ana@example.com",
            image_url="u0",
            created_at=utcnow() - timedelta(days=10),
            items_used=["x"],
        )
    )
    assert closet_agent.wardrobe_pulse("ana@example.com") == (1, 1)


# Try-on


@pytest.fixture()
def outfit(closet_agent, social_store, media_store):
    social_store.upsert_user("ana@example.com", gender="Female")
    avatar_url = media_store.put(avatar_path("ana@example.com"), make_image((300, 600)), "image/png")
    social_store.update_profile("ana@example.com", avatar_url=avatar_url)
    top = closet_agent.save_manual_item("ana@example.com", make_image((800, 600)), "Top", "Blouse")
    bottom = closet_agent.save_manual_item("ana@example.com", make_image((600, 800)), "Bottom", "Pants")
    return [top.item_id, bottom.item_id]


def _try_on_agent(wardrobe_store, social_store, media_store, generator) -> TryOnAgent:
    return TryOnAgent(wardrobe_store, social_store, media_store, generator=generator)


def test_try_on_sends_prompt_avatar_and_resized_garments(outfit, wardrobe_store, social_store, media_store) -> None:
    generator = FakeGenerator(image=GeneratedImage(data=make_image(), mime_type="image/png"))
    agent = _try_on_agent(wardrobe_store, social_store, media_store, generator)

    result = agent.generate_try_on("ana@example.com", outfit)

    assert result.status == "ok"
    assert result.image
    assert result.items_used == outfit
    parts = generator.image_calls[0]
    assert "Target Gender: Female." in parts[0]
    assert "Standard Average Build" in parts[0]
    assert parts[1].startswith("\n\nREFERENCE IMAGE")
    assert isinstance(parts[2], InlineImage) and image_size(parts[2].data) == (512, 1024)
    assert parts[3] == "\n\nGARMENTS TO WEAR:"
    assert image_size(parts[4].data) == (512, 384)
    assert image_size(parts[5].data) == (384, 512)
    assert parts[-1] == "\n\nGENERATE: The final mannequin image."


def test_try_on_uses_stored_measurements(outfit, wardrobe_store, social_store, media_store) -> None:
    social_store.update_measurements("ana@example.com", {"height": 165, "bodyWeight": 55})
    generator = FakeGenerator(image=GeneratedImage(data=make_image()))

    _try_on_agent(wardrobe_store, social_store, media_store, generator).generate_try_on("ana@example.com", outfit)

    assert "Height: 165.0cm, Weight: 55.0kg, Chest: 0.0cm" in generator.image_calls[0][0]


def test_try_on_text_only_and_failures(outfit, wardrobe_store, social_store, media_store) -> None:
    note = _try_on_agent(
        wardrobe_store, social_store, media_store, FakeGenerator(image=GeneratedImage(data=None, text="Too many layers."))
    ).generate_try_on("ana@example.com", outfit)
    assert (note.status, note.message) == ("note", "Stylist Note: Too many layers.")

    failed = _try_on_agent(
        wardrobe_store, social_store, media_store, FakeGenerator(error=RuntimeError("timeout"))
    ).generate_try_on("ana@example.com", outfit)
    assert (failed.status, failed.message) == ("error", STYLING_ERROR)


def test_try_on_rejects_bad_selection_and_missing_avatar(closet_agent, wardrobe_store, social_store, media_store) -> None:
    agent = _try_on_agent(wardrobe_store, social_store, media_store, FakeGenerator())
    first = closet_agent.save_manual_item("ben@example.com", make_image(), "Bottom", "Pants")
    second = closet_agent.save_manual_item("ben@example.com", make_image(), "Bottom", "Shorts")

    invalid = agent.generate_try_on("ben@example.com", [first.item_id, second.item_id])
    assert (invalid.status, invalid.message) == ("invalid_selection", "Please select only 1 Bottom.")

    missing = agent.generate_try_on("ben@example.com", [first.item_id])
    assert (missing.status, missing.message) == ("no_avatar", "Avatar not found.")

    with pytest.raises(LookupError):
        agent.generate_try_on("ben@example.com", ["nope"])


def test_try_on_refuses_items_from_another_closet(outfit, closet_agent, wardrobe_store, social_store, media_store) -> None:
    generator = FakeGenerator(image=GeneratedImage(data=make_image()))
    agent = _try_on_agent(wardrobe_store, social_store, media_store, generator)
    bens_shoes = closet_agent.save_manual_item("ben@example.com", make_image(), "Shoes", "Boots")

    with pytest.raises(PermissionError):
        agent.generate_try_on("ana@example.com", [outfit[0], bens_shoes.item_id])
    assert generator.image_calls == []


def test_saving_twice_in_one_second_keeps_one_image(outfit, wardrobe_store, social_store, media_store, monkeypatch) -> None:
    monkeypatch.setattr("agents.try_on_agent.time.time", lambda: 1_700_000_000.0)
    agent = _try_on_agent(wardrobe_store, social_store, media_store, FakeGenerator())

    first = agent.save_look("ana@example.com", make_image(), outfit[:1])
    second = agent.save_look("ana@example.com", make_image(), outfit)

    assert first.look_id == second.look_id
    assert [look.image_url for look in agent.list_looks("ana@example.com")] == [second.image_url]
    assert media_store.get(second.image_url)[:2] == b"\xff\xd8"
    with pytest.raises(LookupError):
        media_store.get(first.image_url)


def test_save_restore_and_delete_look(outfit, wardrobe_store, social_store, media_store) -> None:
    agent = _try_on_agent(wardrobe_store, social_store, media_store, FakeGenerator())

    look = agent.save_look("Ana@example.com", make_image(), outfit)

    assert look.look_id.startswith("ana@example.com_")
    assert "/generated_looks/generated_" in look.image_url
    image, items_used = agent.restore_look("ana@example.com", look.look_id)
    assert image[:2] == b"\xff\xd8"
    assert items_used == outfit
    assert [saved.look_id for saved in agent.list_looks("ana@example.com")] == [look.look_id]

    with pytest.raises(PermissionError):
        agent.delete_look("ben@example.com", look.look_id)
    agent.delete_look("ana@example.com", look.look_id)
    assert agent.list_looks("ana@example.com") == []
    with pytest.raises(LookupError):
        media_store.get(look.image_url)


def test_generate_avatar_from_selfie(wardrobe_store, social_store, media_store) -> None:
    social_store.upsert_user("ana@example.com", gender="Female")
    selfie_url = media_store.put("ana@example.com/selfie.jpg", make_image(fmt="JPEG"))
    social_store.update_profile("ana@example.com", selfie_url=selfie_url)
    generator = FakeGenerator(image=GeneratedImage(data=b"avatar-png", mime_type="image/png"))
    agent = _try_on_agent(wardrobe_store, social_store, media_store, generator)

    url = agent.generate_avatar("ana@example.com")

    assert url == "http://testserver/media/ana%40example.com/avatar.png"
    assert social_store.get_user("ana@example.com").avatar_url == url
    assert media_store.get(url) == b"avatar-png"
    assert "Female physique" in generator.image_calls[0][0]


def test_generate_avatar_needs_a_selfie_and_an_image(wardrobe_store, social_store, media_store) -> None:
    social_store.upsert_user("ana@example.com")
    agent = _try_on_agent(wardrobe_store, social_store, media_store, FakeGenerator())

    with pytest.raises(LookupError):
        agent.generate_avatar("ana@example.com")

    selfie_url = media_store.put("ana@example.com/selfie.jpg", make_image(fmt="JPEG"))
    social_store.update_profile("ana@example.com", selfie_url=selfie_url)
    assert agent.generate_avatar("ana@example.com") is None
    assert social_store.get_user("ana@example.com").avatar_url is None
