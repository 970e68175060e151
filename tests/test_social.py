from datetime import datetime, timezone

import pytest

from errors import NotFoundError, ValidationError
from schemas import Identity, SocialFeed
from services.social_service import SocialBoard, SocialService
from services.storage_service import MemoryStore

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)
ADA = Identity(user_id="ada", display_name="Ada")
BOB = Identity(user_id="bob", display_name="Bob")


@pytest.fixture
def feed():
    return SocialFeed()


def test_create_post_requires_content(feed):
    with pytest.raises(ValidationError):
        SocialService.create_post(feed, ADA, "   ", NOW)
    post = SocialService.create_post(feed, ADA, " Grew a tree! ", NOW, achievement_id="first_sprout")
    assert post.content == "Grew a tree!"
    assert post.author_name == "Ada"
    assert post.likes == 0


def test_likes_are_tracked_per_user(feed):
    post = SocialService.create_post(feed, ADA, "Hello", NOW)

    assert SocialService.toggle_like(feed, post.id, "bob") == {"liked": True, "likes": 1}
    assert SocialService.toggle_like(feed, post.id, "carol") == {"liked": True, "likes": 2}
    assert SocialService.toggle_like(feed, post.id, "bob") == {"liked": False, "likes": 1}
    assert post.to_view("carol")["liked"] is True
    assert post.to_view("bob")["liked"] is False


def test_comments_and_author_only_deletes(feed):
    post = SocialService.create_post(feed, ADA, "Hello", NOW)
    comment = SocialService.add_comment(feed, post.id, BOB, "Nice", NOW)
    assert post.comments_count == 1

    with pytest.raises(ValidationError):
        SocialService.delete_comment(feed, post.id, comment.id, "ada")
    SocialService.delete_comment(feed, post.id, comment.id, "bob")
    assert post.comments_count == 0
    with pytest.raises(NotFoundError):
        SocialService.delete_comment(feed, post.id, comment.id, "bob")

    with pytest.raises(ValidationError):
        SocialService.delete_post(feed, post.id, "bob")
    SocialService.delete_post(feed, post.id, "ada")
    with pytest.raises(NotFoundError):
        SocialService.toggle_like(feed, post.id, "bob")


def test_list_posts_newest_first(feed):
    older = SocialService.create_post(feed, ADA, "Old", NOW)
    newer = SocialService.create_post(feed, BOB, "New", NOW.replace(hour=13))
    assert [p.id for p in SocialService.list_posts(feed)] == [newer.id, older.id]
    assert len(SocialService.list_posts(feed, limit=1)) == 1


def test_interactions_count_posts_comments_and_likes(feed):
    post = SocialService.create_post(feed, ADA, "Hello", NOW)
    SocialService.add_comment(feed, post.id, BOB, "Hi", NOW)
    SocialService.add_comment(feed, post.id, BOB, "Again", NOW)
    SocialService.toggle_like(feed, post.id, "bob")

    assert SocialService.interactions(feed, "bob") == 3
    assert SocialService.interactions(feed, "ada") == 1


def test_board_persists_feed():
    store = MemoryStore()
    board = SocialBoard(store, lambda: NOW)
    SocialService.create_post(board.feed, ADA, "Saved", NOW)
    assert board.save()

    reloaded = SocialBoard(store, lambda: NOW)
    reloaded.load()
    assert [p.content for p in reloaded.feed.posts] == ["Saved"]


def test_list_posts_rejects_limit_below_one(feed):
    SocialService.create_post(feed, ADA, "Hello", NOW)
    with pytest.raises(ValidationError):
        SocialService.list_posts(feed, limit=0)
    with pytest.raises(ValidationError):
        SocialService.list_posts(feed, limit=-1)
