# users.py
from typing import Optional

from fastapi import UploadFile
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

import models
from exceptions import ConflictError, InvalidCredentialsError, NotFoundError, ValidationError
from logger import logger
from security import get_password_hash, verify_password
from storage import has_upload, save_upload

USER_SEARCH_LIMIT = 10


def get_user(db: Session, user_id: int) -> models.User:
    user = db.query(models.User).filter(models.User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")
    return user


def register(db: Session, username: str, email: str, password: str) -> models.User:
    username = (username or "").strip()
    email = (email or "").strip()
    if not username or not email or not password:
        raise ValidationError("Username, email and password are required")

    existing = db.query(models.User).filter(
        or_(models.User.username == username, models.User.email == email)
    ).first()
    if existing:
        raise ConflictError("User already exists")

    db_user = models.User(
        username=username,
        email=email,
        password=get_password_hash(password),
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    logger.info(f"Registered user {db_user.id} ({db_user.username})")
    return db_user


def authenticate_user(db: Session, identifier: Optional[str], password: str) -> models.User:
    """Look up a user by username or email and check the password."""
    if not identifier or not password:
        raise InvalidCredentialsError("Username or email and password are required")

    user = db.query(models.User).filter(
        or_(models.User.username == identifier, models.User.email == identifier)
    ).first()
    if not user:
        raise InvalidCredentialsError("User does not exist")
    if not verify_password(password, user.password):
        raise InvalidCredentialsError("Incorrect password")
    return user


def update_avatar(db: Session, user: models.User, avatar: UploadFile) -> str:
    if not has_upload(avatar):
        raise ValidationError("No file uploaded")

    user.avatar_url = save_upload(avatar)
    db.commit()
    logger.info(f"User {user.id} uploaded avatar {user.avatar_url}")
    return user.avatar_url


def list_avatars(db: Session):
    return db.query(models.User).order_by(models.User.id).all()


def search_users(db: Session, query: Optional[str], exclude_user_id: int):
    if not query or len(query) < 2:
        return []

    return (
        db.query(models.User)
        .filter(func.lower(models.User.username).contains(query.lower(), autoescape=True))
        .filter(models.User.id != exclude_user_id)
        .order_by(models.User.username)
        .limit(USER_SEARCH_LIMIT)
        .all()
    )
