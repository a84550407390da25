"""Feed, follows, account sync and wardrobe reminders."""

from datetime import datetime, timedelta, timezone

import pytest

from agents.account_agent import (
    REMINDER_TOPIC,
    AccountAgent,
    LoggingNotifier,
    WardrobeReminderService,
)
from agents.calendar_agent import CalendarAgent
from agents.closet_agent import ClosetAgent
from agents.social_agent import SocialAgent, liked_by_summary
from models.clothing_item import SavedLook
from models.socials_post import SocialsPost
from tests.support import make_image
from tools.calendar_provider import (
    CalendarEvent,
    FallbackCalendarProvider,
    MockCalendarProvider,
    StubCalendarProvider,
)


@pytest.fixture()
def social_agent(social_store, media_store) -> SocialAgent:
    return SocialAgent(social_store, media_store)


def test_create_post_uses_profile_username(social_agent, social_store, media_store) -> None:
    social_store.upsert_user("ana@example.com", username="Ana")

    post = social_agent.create_post("Ana@example.com", make_image(), "Sunday fit", ["t1", "t2"])
    anonymous = social_agent.create_post("ghost@example.com", make_image(), "")

    assert post.username == "Ana"
    assert post.tagged_items == ["t1", "t2"]
    assert "/media/posts/" in post.image_url
    assert media_store.get(post.image_url)[:2] == b"\xff\xd8"
    assert anonymous.username == "Anonymous"
    assert [p.post_id for p in social_agent.feed()] == [anonymous.post_id, post.post_id]


def test_toggle_like_and_summary(social_agent, social_store) -> None:
    social_store.upsert_user("ben@example.com", username="Ben")
    post = social_agent.create_post("ana@example.com", make_image())

    liked = social_agent.toggle_like(post.post_id, "ben@example.com")
    assert liked.likes == 1
    assert liked_by_summary(liked) == "Liked by Ben"

    liked = social_agent.like(post.post_id, "cy@example.com")
    assert social_agent.liked_by_summary(liked) == "Liked by cy and 1 other"

    unliked = social_agent.toggle_like(post.post_id, "ben@example.com")
    assert unliked.liked_by == ["cy@example.com"]


def test_liked_by_summary_variants() -> None:
    post = SocialsPost(post_id="p", author_email="a@b.com", username="A", caption="", image_url="u")
    assert liked_by_summary(post) == "0 likes"

    post.likes, post.liked_by_names = 4, ["Ana", "Ben", "Cy", "Dee"]
    assert liked_by_summary(post) == "Liked by Dee and 3 others"


def test_delete_post_removes_image(social_agent, media_store) -> None:
    post = social_agent.create_post("ana@example.com", make_image(), "bye")

    with pytest.raises(PermissionError):
        social_agent.delete_post(post.post_id, "ben@example.com")
    social_agent.delete_post(post.post_id, "ana@example.com")

    assert social_agent.feed() == []
    with pytest.raises(LookupError):
        media_store.get(post.image_url)


def test_edit_caption(social_agent) -> None:
    post = social_agent.create_post("ana@example.com", make_image(), "draft")

    assert social_agent.edit_caption(post.post_id, "ana@example.com", "final").caption == "final"
    with pytest.raises(LookupError):
        social_agent.edit_caption("missing", "ana@example.com", "final")


def test_connections_and_closet_visibility(social_agent, social_store) -> None:
    social_store.upsert_user("ana@example.com")
    social_store.upsert_user("ben@example.com")

    assert social_agent.follow("ana@example.com", "ben@example.com")

    assert social_agent.connections("ben@example.com") == {"followers": ["ana@example.com"], "following": []}
    assert social_agent.can_view_closet("ana@example.com", "ben@example.com")
    assert not social_agent.can_view_closet("ben@example.com", "ana@example.com")
    assert social_agent.can_view_closet("ben@example.com", "BEN@example.com")

    social_agent.unfollow("ana@example.com", "ben@example.com")
    assert not social_agent.can_view_closet("ana@example.com", "ben@example.com")


def test_upload_selfie_is_heavily_compressed(social_agent, media_store) -> None:
    user = social_agent.upload_selfie("Ana@example.com", make_image((400, 400)))

    assert user.selfie_url == "http://testserver/media/ana%40example.com/selfie.jpg"
    assert media_store.get(user.selfie_url)[:2] == b"\xff\xd8"


# Account


def test_sync_user_creates_and_refreshes(social_store) -> None:
    agent = AccountAgent(social_store)
    first = datetime(2020, 1, 1, tzinfo=timezone.utc)

    created = agent.sync_user("New@Example.com", now=first)
    refreshed = agent.sync_user("new@example.com")

    assert created.email == "new@example.com"
    assert created.last_active == first
    assert refreshed.last_active > first


def test_save_profile_merges_measurements(social_store) -> None:
    agent = AccountAgent(social_store)

    user = agent.save_profile("ana@example.com", username="Ana", gender="Female", measurements={"height": 165})
    user = agent.save_profile("ana@example.com", measurements={"waist": 70})

    assert user.username == "Ana"
    assert user.measurements == {"height": 165.0, "waist": 70.0}


def test_register_device_subscribes_to_reminders(social_store) -> None:
    notifier = LoggingNotifier()
    agent = AccountAgent(social_store, notifier)
    agent.sync_user("ana@example.com")

    agent.register_device("ana@example.com", " fcm-token ")

    assert notifier.subscriptions == [("fcm-token", REMINDER_TOPIC)]
    assert social_store.get_user("ana@example.com").fcm_token == "fcm-token"
    with pytest.raises(ValueError):
        agent.register_device("ana@example.com", "  ")
    with pytest.raises(LookupError):
        agent.register_device("ghost@example.com", "token")


def _reminders(wardrobe_store, media_store, events):
    notifier = LoggingNotifier()
    closet = ClosetAgent(wardrobe_store, media_store)
    service = WardrobeReminderService(CalendarAgent(MockCalendarProvider(events)), closet, notifier)
    return service, closet, notifier


def test_reminder_nudges_new_unworn_items(wardrobe_store, media_store) -> None:
    now = datetime.now(timezone.utc)
    service, closet, notifier = _reminders(
        wardrobe_store, media_store, [CalendarEvent("Gala", now + timedelta(days=1))]
    )
    closet.save_manual_item("ana@example.com", make_image(), "Top")

    reminder = service.run_reminder_check("ana@example.com", now=now)

    assert reminder.title == "New Outfit Opportunity!"
    assert reminder.body == "You have 'Gala' coming up. Try those new items you recently added!"
    assert notifier.sent == [reminder]


def test_reminder_general_when_new_items_were_worn(wardrobe_store, media_store) -> None:
    now = datetime.now(timezone.utc)
    service, closet, _ = _reminders(
        wardrobe_store, media_store, [CalendarEvent("Brunch", now + timedelta(hours=2))]
    )
    item = closet.save_manual_item("ana@example.com", make_image(), "Top")
    wardrobe_store.create_look(
        SavedLook(look_id="l1", owner_email="ana@example.com", image_url="u", items_used=[item.item_id])
    )

    reminder = service.run_reminder_check("ana@example.com", now=now)

    assert reminder.title == "Event Reminder"
    assert reminder.body == "Don't forget to pick an outfit for 'Brunch' from your collection today!"


def test_no_reminder_without_upcoming_event(wardrobe_store, media_store) -> None:
    service, _, notifier = _reminders(wardrobe_store, media_store, [])

    assert service.run_reminder_check("ana@example.com") is None
    assert notifier.sent == []


def test_reminder_names_event_by_its_description(wardrobe_store, media_store) -> None:
    now = datetime.now(timezone.utc)
    event = CalendarEvent("Dinner", now + timedelta(days=1), description="  Black tie gala ")
    service, _, _ = _reminders(wardrobe_store, media_store, [event])

    reminder = service.run_reminder_check("ana@example.com", now=now)

    assert reminder.body == "Don't forget to pick an outfit for 'Black tie gala' from your collection today!"


def test_sample_events_never_trigger_reminders(wardrobe_store, media_store) -> None:
    notifier = LoggingNotifier()
    preview = FallbackCalendarProvider(MockCalendarProvider([]), StubCalendarProvider())
    service = WardrobeReminderService(
        CalendarAgent(preview), ClosetAgent(wardrobe_store, media_store), notifier
    )

    assert service.run_reminder_check("ana@example.com") is None
    assert notifier.sent == []


def test_reminder_reads_the_given_calendar(wardrobe_store, media_store) -> None:
    now = datetime.now(timezone.utc)
    service, _, _ = _reminders(wardrobe_store, media_store, [])
    personal = CalendarAgent(MockCalendarProvider([CalendarEvent("Recital", now + timedelta(hours=4))]))

    reminder = service.run_reminder_check("ana@example.com", now=now, calendar_agent=personal)

    assert "'Recital'" in reminder.body
