"""Social agent: feed posts, likes, follows and profile selfies."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence
from uuid import uuid4

from fitpick_app.logging_config import get_logger, log_event, operation_context
from models.clothing_item import normalize_email
from models.socials_post import SocialsPost
from models.user import User
from tools.imaging import POST_QUALITY, SELFIE_QUALITY, to_jpeg
from tools.media_store import MediaStore, post_path, selfie_path
from tools.social_store import SQLiteSocialStore

LOGGER = get_logger(__name__)


def liked_by_summary(post: SocialsPost) -> str:
    names = post.liked_by_names
    if not names:
        return f"{post.likes} likes"
    if len(names) == 1:
        return f"Liked by {names[0]}"
    others = post.likes - 1
    return f"Liked by {names[-1]} and {others} {'other' if others == 1 else 'others'}"


class SocialAgent:
    def __init__(self, social_store: SQLiteSocialStore, media_store: MediaStore) -> None:
        self.social_store = social_store
        self.media_store = media_store

    def create_post(
        self,
        author_email: str,
        image: bytes,
        caption: str = "",
        tagged_items: Optional[Sequence[str]] = None,
    ) -> SocialsPost:
        with operation_context("agent:social.create_post") as correlation_id:
            author = normalize_email(author_email)
            profile = self.social_store.get_user(author)
            url = self.media_store.put(post_path(), to_jpeg(image, POST_QUALITY), "image/jpeg")
            post = self.social_store.create_post(
                SocialsPost(
                    post_id=uuid4().hex,
                    author_email=author,
                    username=profile.username if profile else "",
                    caption=caption,
                    image_url=url,
                    tagged_items=[str(item_id) for item_id in tagged_items or []],
                )
            )
            log_event(
                LOGGER,
                level=logging.INFO,
                event="agent_call_completed",
                agent="social",
                method="create_post",
                correlation_id=correlation_id,
                tagged_count=len(post.tagged_items),
            )
            return post

    def feed(self, limit: int = 50) -> List[SocialsPost]:
        return self.social_store.list_feed(limit)

    def like(self, post_id: str, user_email: str) -> SocialsPost:
        return self.social_store.like(post_id, user_email)

    def unlike(self, post_id: str, user_email: str) -> SocialsPost:
        return self.social_store.unlike(post_id, user_email)

    def toggle_like(self, post_id: str, user_email: str) -> SocialsPost:
        if self.social_store.has_liked(post_id, user_email):
            return self.unlike(post_id, user_email)
        return self.like(post_id, user_email)

    def edit_caption(self, post_id: str, author_email: str, caption: str) -> SocialsPost:
        return self.social_store.update_caption(post_id, author_email, caption)

    def delete_post(self, post_id: str, author_email: str) -> None:
        removed = self.social_store.delete_post(post_id, author_email)
        if not self.media_store.delete(removed.image_url):
            log_event(LOGGER, logging.WARNING, "post_blob_missing", post_id=post_id)

    def follow(self, follower: str, followee: str) -> bool:
        return self.social_store.follow(follower, followee)

    def unfollow(self, follower: str, followee: str) -> bool:
        return self.social_store.unfollow(follower, followee)

    def connections(self, email: str) -> Dict[str, List[str]]:
        return {
            "followers": self.social_store.followers(email),
            "following": self.social_store.following(email),
        }

    def can_view_closet(self, viewer_email: str, owner_email: str) -> bool:
        """Closets are visible to their owner and to the owner's followers."""

        viewer = normalize_email(viewer_email)
        owner = normalize_email(owner_email)
        return viewer == owner or self.social_store.is_following(viewer, owner)

    def upload_selfie(self, email: str, image: bytes) -> User:
        user = self.social_store.upsert_user(email)
        url = self.media_store.put(selfie_path(user.email), to_jpeg(image, SELFIE_QUALITY), "image/jpeg")
        return self.social_store.update_profile(user.email, selfie_url=url)

    liked_by_summary = staticmethod(liked_by_summary)


__all__ = ["SocialAgent", "liked_by_summary"]
