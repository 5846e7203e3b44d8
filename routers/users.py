"""
routers/users.py - User Account Endpoints

Endpoints for user accounts:
- POST  /api/users/register: Register a new user
- GET   /api/users/{user_id}: Get a user's profile
- PATCH /api/users/{user_id}: Update username, email or profile picture
- PATCH /api/users/{user_id}/password: Change password (old password required)

Passwords are hashed with Argon2 (see crud.get_password_hash). Issuing
login tokens is left to an external auth service.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

import crud
import schemas
from config import INTERNAL_SERVER_MSG_ERROR
from database import get_db
from utils.validators import require_found, require_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.post(
    "/register",
    response_model=schemas.User,
    status_code=201,
    summary="Register a new user",
    description="Create a user account; username and email must be unique"
)
def register_user(user: schemas.UserRegister, db: Session = Depends(get_db)):
    """
    Register a new user.

    - Validates username and email uniqueness before insert
    - Hashes password using Argon2
    """
    try:
        created_user = crud.create_user(db, user)
        return schemas.User.model_validate(created_user)
    except (HTTPException, ValueError):
        raise
    except Exception as exc:
        logger.error(f"Error registering user: {exc}")
        raise HTTPException(status_code=500, detail=INTERNAL_SERVER_MSG_ERROR)


@router.get(
    "/{user_id}",
    response_model=schemas.User,
    summary="Get user by ID",
)
def read_user(user_id: int, db: Session = Depends(get_db)):
    """Get a specific user by ID"""
    user = require_found(crud.get_user(db, user_id), "User", user_id)
    return schemas.User.model_validate(user)


@router.patch(
    "/{user_id}",
    response_model=schemas.User,
    summary="Update user profile",
)
def update_user(user_id: int, user: schemas.UserUpdate, db: Session = Depends(get_db)):
    """
    Update any of username, email and profilePicture.

    At least one field must be provided.
    """
    if not (user.username or user.email or user.profile_picture):
        raise HTTPException(status_code=400, detail="Provide at least one field to update")

    try:
        existing_user = require_found(crud.get_user(db, user_id), "User", user_id)
        updated_user = crud.update_user(db, existing_user, user)
        return schemas.User.model_validate(updated_user)
    except (HTTPException, ValueError):
        raise
    except Exception as exc:
        logger.error(f"Error updating user {user_id}: {exc}")
        raise HTTPException(status_code=500, detail=INTERNAL_SERVER_MSG_ERROR)


@router.patch(
    "/{user_id}/password",
    response_model=schemas.MessageResponse,
    summary="Change password",
)
def change_password(user_id: int, body: schemas.PasswordChange, db: Session = Depends(get_db)):
    """Change a user's password. A wrong old password answers 401."""
    try:
        existing_user = require_found(crud.get_user(db, user_id), "User", user_id)
        require_password(body.old_password, existing_user.password, status_code=401)

        crud.change_password(db, existing_user, body.new_password)
        return {"message": "Password changed successfully"}
    except (HTTPException, ValueError):
        raise
    except Exception as exc:
        logger.error(f"Error changing password for user {user_id}: {exc}")
        raise HTTPException(status_code=500, detail=INTERNAL_SERVER_MSG_ERROR)
