"""
routers/posts.py - Memory (Post) Endpoints

Endpoints scoped to a group:
- POST /api/groups/{group_id}/posts: Post a memory (group password required)
- GET  /api/groups/{group_id}/posts: List a group's memories

Endpoints on a single memory:
- GET    /api/posts/{post_id}
- PUT    /api/posts/{post_id}                   (post password required)
- DELETE /api/posts/{post_id}                   (post password required)
- POST   /api/posts/{post_id}/verify-password
- POST   /api/posts/{post_id}/like
- GET    /api/posts/{post_id}/public-status
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

import crud
import schemas
from config import INTERNAL_SERVER_MSG_ERROR
from database import get_db
from routers.params import list_query_request
from services.query_planner import ListQueryRequest, plan_list_query
from utils.validators import require_found, require_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Posts"])

POST_SORT_KEYS = ("latest", "mostCommented", "mostLiked")


@router.post(
    "/groups/{group_id}/posts",
    response_model=schemas.PostDetail,
    status_code=201,
    summary="Post a memory to a group",
)
def create_post(group_id: int, post: schemas.PostCreate, db: Session = Depends(get_db)):
    """
    Create a memory in a group.

    - groupPassword must match the group's password (403 otherwise)
    - postPassword protects later edits of this memory
    - The group's memory count and badges are updated
    """
    try:
        group = require_found(crud.get_group(db, group_id), "Group", group_id)
        require_password(post.group_password, group.password)

        created = crud.create_post(db, group, post)
        return schemas.PostDetail.model_validate(created)
    except (HTTPException, ValueError):
        raise
    except Exception as exc:
        logger.error(f"Error creating post in group {group_id}: {exc}")
        raise HTTPException(status_code=500, detail=INTERNAL_SERVER_MSG_ERROR)


@router.get(
    "/groups/{group_id}/posts",
    response_model=schemas.PostList,
    summary="List a group's memories",
    description="sortBy: latest, mostCommented, mostLiked. keyword matches the title."
)
def list_posts(
        group_id: int,
        request: ListQueryRequest = Depends(list_query_request),
        db: Session = Depends(get_db),
):
    plan = plan_list_query(
        request,
        search_field="title",
        sort_keys=POST_SORT_KEYS,
        scope={"group_id": group_id},
    )
    require_found(crud.get_group(db, group_id), "Group", group_id)

    posts, envelope = crud.list_posts(db, plan)
    return schemas.PostList(
        **envelope.to_dict(),
        data=[schemas.PostSummary.model_validate(post) for post in posts],
    )


@router.get("/posts/{post_id}", response_model=schemas.PostDetail, summary="Get memory details")
def read_post(post_id: int, db: Session = Depends(get_db)):
    post = require_found(crud.get_post(db, post_id), "Post", post_id)
    return schemas.PostDetail.model_validate(post)


@router.put("/posts/{post_id}", response_model=schemas.PostDetail, summary="Update memory")
def update_post(post_id: int, post: schemas.PostUpdate, db: Session = Depends(get_db)):
    try:
        existing = require_found(crud.get_post(db, post_id), "Post", post_id)
        require_password(post.post_password, existing.password)

        updated = crud.update_post(db, existing, post)
        return schemas.PostDetail.model_validate(updated)
    except (HTTPException, ValueError):
        raise
    except Exception as exc:
        logger.error(f"Error updating post {post_id}: {exc}")
        raise HTTPException(status_code=500, detail=INTERNAL_SERVER_MSG_ERROR)


@router.delete("/posts/{post_id}", response_model=schemas.MessageResponse, summary="Delete memory")
def delete_post(post_id: int, body: schemas.PostPasswordBody, db: Session = Depends(get_db)):
    try:
        existing = require_found(crud.get_post(db, post_id), "Post", post_id)
        require_password(body.post_password, existing.password)

        crud.delete_post(db, existing)
        return {"message": "Post deleted successfully"}
    except (HTTPException, ValueError):
        raise
    except Exception as exc:
        logger.error(f"Error deleting post {post_id}: {exc}")
        raise HTTPException(status_code=500, detail=INTERNAL_SERVER_MSG_ERROR)


@router.post(
    "/posts/{post_id}/verify-password",
    response_model=schemas.MessageResponse,
    summary="Verify memory password",
)
def verify_post_password(post_id: int, body: schemas.PostPasswordBody, db: Session = Depends(get_db)):
    post = require_found(crud.get_post(db, post_id), "Post", post_id)
    require_password(body.post_password, post.password, status_code=401)
    return {"message": "Password verified"}


@router.post("/posts/{post_id}/like", response_model=schemas.MessageResponse, summary="Like a memory")
def like_post(post_id: int, db: Session = Depends(get_db)):
    if not crud.increment_post_likes(db, post_id):
        raise HTTPException(status_code=404, detail=f"Post with ID {post_id} not found")
    return {"message": "Post liked"}


@router.get("/posts/{post_id}/public-status", response_model=schemas.VisibilityStatus, summary="Memory visibility")
def read_post_visibility(post_id: int, db: Session = Depends(get_db)):
    post = require_found(crud.get_post(db, post_id), "Post", post_id)
    return schemas.VisibilityStatus(id=post.id, is_public=post.is_public)
