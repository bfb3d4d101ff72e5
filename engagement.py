# engagement.py
from typing import Optional

from sqlalchemy.orm import Session

import models
from catalog import get_product
from exceptions import ConflictError, NotFoundError, ValidationError
from logger import logger
from notifications import notify


def toggle_like(db: Session, user: models.User, product_id: int):
    """Like the product, or remove the like if it already exists.

    Returns ``(liked, likes_count)`` after the toggle.
    """
    product = get_product(db, product_id)
    like = db.query(models.Like).filter(
        models.Like.user_id == user.id,
        models.Like.product_id == product.id,
    ).first()

    if like:
        db.delete(like)
        liked = False
    else:
        db.add(models.Like(user_id=user.id, product_id=product.id))
        liked = True
    db.commit()
    db.refresh(product)
    return liked, product.likes_count


def _add_saved(db: Session, model, user: models.User, product_id: int, label: str):
    product = get_product(db, product_id)
    if product.user_id == user.id:
        raise ValidationError(f"Cannot add your own product to {label}")

    existing = db.query(model).filter(model.user_id == user.id, model.product_id == product.id).first()
    if existing:
        raise ConflictError(f"Product is already in {label}")

    entry = model(user_id=user.id, product_id=product.id)
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry


def _remove_saved(db: Session, model, user: models.User, product_id: int, label: str):
    entry = db.query(model).filter(model.user_id == user.id, model.product_id == product_id).first()
    if not entry:
        raise NotFoundError(f"Product is not in {label}")
    db.delete(entry)
    db.commit()


def _list_saved(db: Session, model, user: models.User):
    return (
        db.query(model)
        .filter(model.user_id == user.id)
        .order_by(model.created_at.desc(), model.id.desc())
        .all()
    )


def add_favorite(db: Session, user: models.User, product_id: int):
    return _add_saved(db, models.Favorite, user, product_id, "favorites")

def remove_favorite(db: Session, user: models.User, product_id: int):
    _remove_saved(db, models.Favorite, user, product_id, "favorites")

def list_favorites(db: Session, user: models.User):
    return _list_saved(db, models.Favorite, user)

def add_to_cart(db: Session, user: models.User, product_id: int):
    return _add_saved(db, models.CartItem, user, product_id, "cart")

def remove_from_cart(db: Session, user: models.User, product_id: int):
    _remove_saved(db, models.CartItem, user, product_id, "cart")

def list_cart(db: Session, user: models.User):
    return _list_saved(db, models.CartItem, user)


def add_comment(
    db: Session,
    user: models.User,
    product_id: int,
    content: str,
    parent_id: Optional[int] = None,
) -> models.Comment:
    product = get_product(db, product_id)
    if not content or not content.strip():
        raise ValidationError("Comment cannot be empty")

    parent = None
    if parent_id:
        parent = db.query(models.Comment).filter(models.Comment.id == parent_id).first()
        if not parent:
            raise NotFoundError("Parent comment not found")
        if parent.product_id != product.id:
            raise ValidationError("Parent comment belongs to another product")

    comment = models.Comment(
        product_id=product.id,
        user_id=user.id,
        parent_id=parent.id if parent else None,
        content=content,
    )
    db.add(comment)
    db.flush()

    if parent:
        if parent.user_id != user.id:
            notify(
                db,
                parent.user_id,
                models.NOTIFY_COMMENT_REPLY,
                f"{user.username} replied to your comment on \"{product.title}\": {content}",
                product_id=product.id,
                product_title=product.title,
                comment_id=comment.id,
                parent_comment_id=parent.id,
                sender_id=user.id,
                sender_name=user.username,
            )
    elif product.user_id != user.id:
        notify(
            db,
            product.user_id,
            models.NOTIFY_COMMENT,
            f"{user.username} commented on your product \"{product.title}\": {content}",
            product_id=product.id,
            product_title=product.title,
            comment_id=comment.id,
            sender_id=user.id,
            sender_name=user.username,
        )

    db.commit()
    db.refresh(comment)
    logger.info(f"User {user.id} commented on product {product.id}")
    return comment


def list_comments(db: Session, product_id: int):
    return (
        db.query(models.Comment)
        .filter(models.Comment.product_id == product_id)
        .order_by(models.Comment.created_at, models.Comment.id)
        .all()
    )
