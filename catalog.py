# catalog.py
"""Product listings: browsing, creation, editing with audit trail, deletion."""
from datetime import datetime
from typing import Optional

from fastapi import UploadFile
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

import models
from exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from logger import logger
from storage import has_upload, save_upload

REQUIRED_FIELDS = ("title", "description", "category", "condition_desc")
EDITABLE_FIELDS = REQUIRED_FIELDS + ("price", "quantity", "image_url")


def _newest_first(query):
    return query.order_by(models.Product.created_at.desc(), models.Product.id.desc())


def _check_numbers(price, quantity):
    if price is not None and price < 0:
        raise ValidationError("Price cannot be negative")
    if quantity is not None and quantity < 1:
        raise ValidationError("Quantity must be at least 1")


def _snapshot_value(value):
    # JSON columns cannot hold datetimes
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def list_products(db: Session, category: Optional[str] = None, search: Optional[str] = None):
    query = db.query(models.Product)

    if category and category != "all":
        query = query.filter(models.Product.category == category)

    if search:
        term = search.lower()
        query = query.filter(
            or_(
                func.lower(models.Product.title).contains(term, autoescape=True),
                func.lower(models.Product.description).contains(term, autoescape=True),
            )
        )

    return _newest_first(query).all()


def list_user_products(db: Session, user_id: int):
    return _newest_first(db.query(models.Product).filter(models.Product.user_id == user_id)).all()


def get_product(db: Session, product_id: int) -> models.Product:
    product = db.query(models.Product).filter(models.Product.id == product_id).first()
    if not product:
        raise NotFoundError("Product not found")
    return product


def get_owned_product(db: Session, owner: models.User, product_id: int) -> models.Product:
    product = get_product(db, product_id)
    if product.user_id != owner.id:
        raise ForbiddenError("Only the owner can manage this product")
    return product


def create_product(
    db: Session,
    owner: models.User,
    title: Optional[str],
    description: Optional[str],
    category: Optional[str],
    condition_desc: Optional[str],
    price: Optional[int] = None,
    quantity: Optional[int] = None,
    image: Optional[UploadFile] = None,
) -> models.Product:
    fields = {
        "title": title,
        "description": description,
        "category": category,
        "condition_desc": condition_desc,
    }
    missing = [name for name in REQUIRED_FIELDS if not (fields[name] or "").strip()]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")
    _check_numbers(price, quantity)

    product = models.Product(
        user_id=owner.id,
        price=price if price is not None else 0,
        quantity=quantity if quantity is not None else 1,
        image_url=save_upload(image) if has_upload(image) else None,
        status=models.STATUS_AVAILABLE,
        is_sold=False,
        **fields,
    )
    db.add(product)
    db.commit()
    db.refresh(product)
    logger.info(f"User {owner.id} listed product {product.id} ({product.title})")
    return product


def update_product(
    db: Session,
    owner: models.User,
    product_id: int,
    image: Optional[UploadFile] = None,
    **changes,
) -> models.Product:
    """Apply the provided fields and record one edit entry if anything changed.

    Blank strings and ``None`` count as "not provided". The edit entry holds
    old and new values only for fields whose value actually changed.
    """
    product = get_product(db, product_id)
    if product.user_id != owner.id:
        raise ForbiddenError("Only the owner can edit this product")
    if product.is_sold:
        raise ConflictError("Sold products cannot be edited")

    provided = {}
    for name, value in changes.items():
        if name not in EDITABLE_FIELDS:
            raise ValidationError(f"Unknown field: {name}")
        if value is None or (isinstance(value, str) and not value.strip()):
            continue
        provided[name] = value
    _check_numbers(provided.get("price"), provided.get("quantity"))
    if has_upload(image):
        provided["image_url"] = save_upload(image)

    old_data, new_data = {}, {}
    for name, value in provided.items():
        current = getattr(product, name)
        if current != value:
            old_data[name] = _snapshot_value(current)
            new_data[name] = _snapshot_value(value)
            setattr(product, name, value)

    if not new_data:
        return product

    product.updated_at = datetime.utcnow()
    db.add(models.ProductEdit(
        product_id=product.id,
        user_id=owner.id,
        old_data=old_data,
        new_data=new_data,
    ))
    db.commit()
    db.refresh(product)
    logger.info(f"User {owner.id} edited product {product.id}: {sorted(new_data)}")
    return product


def delete_product(db: Session, owner: models.User, product_id: int):
    product = get_owned_product(db, owner, product_id)
    if product.is_sold:
        raise ConflictError("Sold products cannot be deleted")

    # Notifications and conversations outlive the listing
    notifications = db.query(models.Notification).filter(
        models.Notification.product_id == product.id
    ).all()
    for notification in notifications:
        if (notification.type == models.NOTIFY_PURCHASE_REQUEST
                and notification.status == models.REQUEST_PENDING):
            notification.status = models.REQUEST_CANCELLED
        notification.product_id = None
    db.query(models.Conversation).filter(
        models.Conversation.product_id == product.id
    ).update({models.Conversation.product_id: None}, synchronize_session=False)

    # Detach replies so the thread can be removed in any order
    db.query(models.Comment).filter(
        models.Comment.product_id == product.id
    ).update({models.Comment.parent_id: None}, synchronize_session=False)
    db.delete(product)
    db.commit()
    logger.info(f"User {owner.id} deleted product {product_id}")


def get_edit_history(db: Session, owner: models.User, product_id: int):
    product = get_owned_product(db, owner, product_id)
    return (
        db.query(models.ProductEdit)
        .filter(models.ProductEdit.product_id == product.id)
        .order_by(models.ProductEdit.edited_at.desc(), models.ProductEdit.id.desc())
        .all()
    )
