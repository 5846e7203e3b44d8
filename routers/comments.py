"""
routers/comments.py - Comment Endpoints

- POST   /api/posts/{post_id}/comments: Add a comment to a memory
- GET    /api/posts/{post_id}/comments: List a memory's comments (newest first)
- PUT    /api/comments/{comment_id}: Edit a comment (password required)
- DELETE /api/comments/{comment_id}: Delete a comment (password required)
"""

import logging
from dataclasses import replace

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

router = APIRouter(prefix="/api", tags=["Comments"])

COMMENT_SORT_KEYS = ("latest",)


@router.post(
    "/posts/{post_id}/comments",
    response_model=schemas.Comment,
    status_code=201,
    summary="Comment on a memory",
)
def create_comment(post_id: int, comment: schemas.CommentCreate, db: Session = Depends(get_db)):
    try:
        require_found(crud.get_post(db, post_id), "Post", post_id)
        created = crud.create_comment(db, post_id, comment)
        return schemas.Comment.model_validate(created)
    except (HTTPException, ValueError):
        raise
    except Exception as exc:
        logger.error(f"Error creating comment on post {post_id}: {exc}")
        raise HTTPException(status_code=500, detail=INTERNAL_SERVER_MSG_ERROR)


@router.get("/posts/{post_id}/comments", response_model=schemas.CommentList, summary="List comments")
def list_comments(
        post_id: int,
        request: ListQueryRequest = Depends(list_query_request),
        db: Session = Depends(get_db),
):
    """
    List a memory's comments, newest first.

    Comments have no visibility flag, so isPublic is ignored. keyword
    matches the comment content.
    """
    plan = plan_list_query(
        replace(request, visibility=None),
        search_field="content",
        sort_keys=COMMENT_SORT_KEYS,
        scope={"post_id": post_id},
    )
    require_found(crud.get_post(db, post_id), "Post", post_id)

    comments, envelope = crud.list_comments(db, plan)
    return schemas.CommentList(
        **envelope.to_dict(),
        data=[schemas.Comment.model_validate(comment) for comment in comments],
    )


@router.put("/comments/{comment_id}", response_model=schemas.Comment, summary="Edit comment")
def update_comment(comment_id: int, comment: schemas.CommentCreate, db: Session = Depends(get_db)):
    try:
        existing = require_found(crud.get_comment(db, comment_id), "Comment", comment_id)
        require_password(comment.password, existing.password)

        updated = crud.update_comment(db, existing, comment)
        return schemas.Comment.model_validate(updated)
    except (HTTPException, ValueError):
        raise
    except Exception as exc:
        logger.error(f"Error updating comment {comment_id}: {exc}")
        raise HTTPException(status_code=500, detail=INTERNAL_SERVER_MSG_ERROR)


@router.delete("/comments/{comment_id}", response_model=schemas.MessageResponse, summary="Delete comment")
def delete_comment(comment_id: int, body: schemas.PasswordBody, db: Session = Depends(get_db)):
    try:
        existing = require_found(crud.get_comment(db, comment_id), "Comment", comment_id)
        require_password(body.password, existing.password)

        crud.delete_comment(db, existing)
        return {"message": "Comment deleted successfully"}
    except (HTTPException, ValueError):
        raise
    except Exception as exc:
        logger.error(f"Error deleting comment {comment_id}: {exc}")
        raise HTTPException(status_code=500, detail=INTERNAL_SERVER_MSG_ERROR)
