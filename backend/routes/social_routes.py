from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from auth import get_current_user
from dependencies import GardenRegistry, get_engine, get_registry
from schemas import Identity
from services.garden_service import GardenEngine
from services.social_service import SocialService

router = APIRouter(prefix="/api/v1/social", tags=["social"])


class PostCreate(BaseModel):
    content: str
    achievement_id: Optional[str] = None


class CommentCreate(BaseModel):
    content: str


@router.get("/feed")
async def get_feed(limit: int = Query(20, ge=1, le=100), registry: GardenRegistry = Depends(get_registry),
                   identity: Identity = Depends(get_current_user)):
    """Most recent posts first, with the caller's like state."""
    posts = SocialService.list_posts(registry.board.feed, limit=limit)
    return {"status": "success", "data": [p.to_view(identity.user_id) for p in posts]}


@router.post("/posts")
async def create_post(body: PostCreate, engine: GardenEngine = Depends(get_engine),
                      registry: GardenRegistry = Depends(get_registry)):
    board = registry.board
    post = SocialService.create_post(board.feed, engine.identity, body.content, board.clock(),
                                     achievement_id=body.achievement_id)
    board.save()
    engine.evaluate_achievements()
    return {"status": "success", "data": post.to_view(engine.user_id)}


@router.delete("/posts/{post_id}")
async def delete_post(post_id: str, registry: GardenRegistry = Depends(get_registry),
                      identity: Identity = Depends(get_current_user)):
    SocialService.delete_post(registry.board.feed, post_id, identity.user_id)
    registry.board.save()
    return {"status": "success"}


@router.post("/posts/{post_id}/like")
async def toggle_like(post_id: str, engine: GardenEngine = Depends(get_engine),
                      registry: GardenRegistry = Depends(get_registry)):
    result = SocialService.toggle_like(registry.board.feed, post_id, engine.user_id)
    registry.board.save()
    engine.evaluate_achievements()
    return {"status": "success", "data": result}


@router.post("/posts/{post_id}/comments")
async def add_comment(post_id: str, body: CommentCreate, engine: GardenEngine = Depends(get_engine),
                      registry: GardenRegistry = Depends(get_registry)):
    board = registry.board
    comment = SocialService.add_comment(board.feed, post_id, engine.identity, body.content, board.clock())
    board.save()
    engine.evaluate_achievements()
    return {"status": "success", "data": comment.model_dump(mode="json")}


@router.delete("/posts/{post_id}/comments/{comment_id}")
async def delete_comment(post_id: str, comment_id: str, registry: GardenRegistry = Depends(get_registry),
                         identity: Identity = Depends(get_current_user)):
    SocialService.delete_comment(registry.board.feed, post_id, comment_id, identity.user_id)
    registry.board.save()
    return {"status": "success"}


@router.get("/challenges")
async def list_challenges(engine: GardenEngine = Depends(get_engine)):
    """This week's challenges with the caller's progress."""
    return {"status": "success", "data": engine.challenges()}


@router.get("/leaderboard")
async def weekly_leaderboard(limit: int = Query(10, ge=1, le=100), registry: GardenRegistry = Depends(get_registry),
                             identity: Identity = Depends(get_current_user)):
    """Focus sessions finished this week, ranked across loaded gardens."""
    return {"status": "success", "data": registry.leaderboard(limit=limit)}
