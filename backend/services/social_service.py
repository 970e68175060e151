"""
social_service.py — Shared progress feed
Posts, comments and likes. Likes are tracked per user, so a post's like count
is always the size of its `liked_by` list.
"""

import logging
import uuid
from datetime import datetime

from errors import NotFoundError, PersistenceError, ValidationError
from schemas import Comment, Identity, SocialFeed, SocialPost
from services.storage_service import decode_collection, encode_collection

logger = logging.getLogger(__name__)


def _clean_content(content) -> str:
    if not isinstance(content, str) or not content.strip():
        raise ValidationError("Content cannot be empty")
    return content.strip()


class SocialService:
    @staticmethod
    def list_posts(feed: SocialFeed, limit: int = 20) -> list[SocialPost]:
        if limit < 1:
            raise ValidationError("limit must be at least 1")
        posts = sorted(feed.posts, key=lambda p: p.created_at, reverse=True)
        return posts[:limit]

    @staticmethod
    def get_post(feed: SocialFeed, post_id: str) -> SocialPost:
        for post in feed.posts:
            if post.id == post_id:
                return post
        raise NotFoundError("post", post_id)

    @staticmethod
    def create_post(feed: SocialFeed, author: Identity, content: str, now: datetime,
                    achievement_id: str | None = None) -> SocialPost:
        post = SocialPost(
            id=str(uuid.uuid4()),
            author_id=author.user_id,
            author_name=author.display_name,
            content=_clean_content(content),
            achievement_id=achievement_id,
            created_at=now,
        )
        feed.posts.insert(0, post)
        logger.info("Post created by %s: %s", author.user_id, post.id)
        return post

    @staticmethod
    def delete_post(feed: SocialFeed, post_id: str, user_id: str) -> SocialPost:
        post = SocialService.get_post(feed, post_id)
        if post.author_id != user_id:
            raise ValidationError("Only the author can delete a post")
        feed.posts = [p for p in feed.posts if p.id != post_id]
        return post

    @staticmethod
    def toggle_like(feed: SocialFeed, post_id: str, user_id: str) -> dict:
        post = SocialService.get_post(feed, post_id)
        if user_id in post.liked_by:
            post.liked_by.remove(user_id)
            liked = False
        else:
            post.liked_by.append(user_id)
            liked = True
        return {"liked": liked, "likes": post.likes}

    @staticmethod
    def add_comment(feed: SocialFeed, post_id: str, author: Identity, content: str,
                    now: datetime) -> Comment:
        post = SocialService.get_post(feed, post_id)
        comment = Comment(
            id=str(uuid.uuid4()),
            author_id=author.user_id,
            author_name=author.display_name,
            content=_clean_content(content),
            created_at=now,
        )
        post.comments.append(comment)
        return comment

    @staticmethod
    def delete_comment(feed: SocialFeed, post_id: str, comment_id: str, user_id: str) -> Comment:
        post = SocialService.get_post(feed, post_id)
        for comment in post.comments:
            if comment.id == comment_id:
                if comment.author_id != user_id:
                    raise ValidationError("Only the author can delete a comment")
                post.comments.remove(comment)
                return comment
        raise NotFoundError("comment", comment_id)

    @staticmethod
    def interactions(feed: SocialFeed, user_id: str) -> int:
        """Posts written + comments written + likes given."""
        total = 0
        for post in feed.posts:
            if post.author_id == user_id:
                total += 1
            if user_id in post.liked_by:
                total += 1
            total += len([c for c in post.comments if c.author_id == user_id])
        return total


class SocialBoard:
    """The shared feed plus its persistence under the `public` owner."""

    OWNER = "public"

    def __init__(self, store, clock):
        self.store = store
        self.clock = clock
        self.feed = SocialFeed()

    def load(self) -> SocialFeed:
        try:
            payload = self.store.load(self.OWNER, "feed")
            self.feed = decode_collection("feed", payload) if payload is not None else SocialFeed()
        except PersistenceError as e:
            logger.warning("Could not load social feed, starting empty: %s", e)
            self.feed = SocialFeed()
        return self.feed

    def save(self) -> bool:
        try:
            self.store.save(self.OWNER, "feed", encode_collection("feed", self.feed))
            return True
        except PersistenceError as e:
            logger.warning("Saving social feed failed: %s", e)
            return False

    def interactions(self, user_id: str) -> int:
        return SocialService.interactions(self.feed, user_id)
