"""
routers/groups.py - Group Endpoints

- POST   /api/groups                          Create a group
- GET    /api/groups                          List groups (paged, sorted, filtered)
- GET    /api/groups/{group_id}               Group details with badges
- PUT    /api/groups/{group_id}               Update a group (password required)
- DELETE /api/groups/{group_id}               Delete a group (password required)
- POST   /api/groups/{group_id}/verify-password
- POST   /api/groups/{group_id}/like
- GET    /api/groups/{group_id}/public-status
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

router = APIRouter(prefix="/api/groups", tags=["Groups"])

GROUP_SORT_KEYS = ("latest", "mostPosted", "mostLiked", "mostBadge")


@router.post(
    "",
    response_model=schemas.GroupDetail,
    status_code=201,
    summary="Create a new group",
)
def create_group(group: schemas.GroupCreate, db: Session = Depends(get_db)):
    """Create a group. Its badges are evaluated immediately."""
    try:
        created = crud.create_group(db, group)
        return schemas.GroupDetail.model_validate(created)
    except (HTTPException, ValueError):
        raise
    except Exception as exc:
        logger.error(f"Error creating group: {exc}")
        raise HTTPException(status_code=500, detail=INTERNAL_SERVER_MSG_ERROR)


@router.get(
    "",
    response_model=schemas.GroupList,
    summary="List groups with pagination",
    description="sortBy: latest, mostPosted, mostLiked, mostBadge. keyword matches the group name."
)
def list_groups(
        request: ListQueryRequest = Depends(list_query_request),
        db: Session = Depends(get_db),
):
    plan = plan_list_query(request, search_field="name", sort_keys=GROUP_SORT_KEYS)
    groups, envelope = crud.list_groups(db, plan)
    return schemas.GroupList(
        **envelope.to_dict(),
        data=[schemas.GroupSummary.model_validate(group) for group in groups],
    )


@router.get("/{group_id}", response_model=schemas.GroupDetail, summary="Get group details")
def read_group(group_id: int, db: Session = Depends(get_db)):
    group = require_found(crud.get_group(db, group_id), "Group", group_id)
    return schemas.GroupDetail.model_validate(group)


@router.put("/{group_id}", response_model=schemas.GroupDetail, summary="Update group")
def update_group(group_id: int, group: schemas.GroupUpdate, db: Session = Depends(get_db)):
    """
    Update a group's name, visibility, image and introduction.

    - Password must match the group's password (403 otherwise)
    - Empty imageUrl / introduction keep the current values
    """
    try:
        existing = require_found(crud.get_group(db, group_id), "Group", group_id)
        require_password(group.password, existing.password)

        updated = crud.update_group(db, existing, group)
        return schemas.GroupDetail.model_validate(updated)
    except (HTTPException, ValueError):
        raise
    except Exception as exc:
        logger.error(f"Error updating group {group_id}: {exc}")
        raise HTTPException(status_code=500, detail=INTERNAL_SERVER_MSG_ERROR)


@router.delete("/{group_id}", response_model=schemas.MessageResponse, summary="Delete group")
def delete_group(group_id: int, body: schemas.PasswordBody, db: Session = Depends(get_db)):
    """Delete a group with all of its memories and comments."""
    try:
        existing = require_found(crud.get_group(db, group_id), "Group", group_id)
        require_password(body.password, existing.password)

        crud.delete_group(db, existing)
        return {"message": "Group deleted successfully"}
    except (HTTPException, ValueError):
        raise
    except Exception as exc:
        logger.error(f"Error deleting group {group_id}: {exc}")
        raise HTTPException(status_code=500, detail=INTERNAL_SERVER_MSG_ERROR)


@router.post(
    "/{group_id}/verify-password",
    response_model=schemas.MessageResponse,
    summary="Verify group password",
)
def verify_group_password(group_id: int, body: schemas.PasswordBody, db: Session = Depends(get_db)):
    group = require_found(crud.get_group(db, group_id), "Group", group_id)
    require_password(body.password, group.password, status_code=401)
    return {"message": "Password verified"}


@router.post("/{group_id}/like", response_model=schemas.MessageResponse, summary="Like a group")
def like_group(group_id: int, db: Session = Depends(get_db)):
    group = require_found(crud.increment_group_likes(db, group_id), "Group", group_id)
    logger.info(f"Group {group_id} liked ({group.like_count} likes)")
    return {"message": "Group liked"}


@router.get("/{group_id}/public-status", response_model=schemas.VisibilityStatus, summary="Group visibility")
def read_group_visibility(group_id: int, db: Session = Depends(get_db)):
    group = require_found(crud.get_group(db, group_id), "Group", group_id)
    return schemas.VisibilityStatus(id=group.id, is_public=group.is_public)
