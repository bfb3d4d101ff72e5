# transactions.py
"""Purchase requests and bids.

A product moves ``available -> processing`` when a buyer asks to purchase it
and ``processing -> sold`` once the owner accepts one request. Rejecting the
last pending request sends it back to ``available``. Several buyers may have
pending requests on the same product; accepting one rejects the rest.

Bids are informational records and never change a product's status.
"""
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

import models
from catalog import get_product
from exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from logger import logger
from notifications import notify

ACCEPT = "accept"
REJECT = "reject"
BID_TYPES = ("buy", "offer")


def _pending_requests(db: Session, product_id: int):
    return db.query(models.Notification).filter(
        models.Notification.product_id == product_id,
        models.Notification.type == models.NOTIFY_PURCHASE_REQUEST,
        models.Notification.status == models.REQUEST_PENDING,
    ).order_by(models.Notification.id).all()


def request_purchase(
    db: Session,
    buyer: models.User,
    product_id: int,
    message: Optional[str] = None,
) -> models.Notification:
    product = get_product(db, product_id)
    if product.user_id == buyer.id:
        raise ValidationError("Cannot purchase your own product")
    if product.is_sold:
        raise ConflictError("Product is already sold")

    product.status = models.STATUS_PROCESSING
    product.processing_buyer_id = buyer.id

    request = notify(
        db,
        product.user_id,
        models.NOTIFY_PURCHASE_REQUEST,
        f"{buyer.username} wants to buy your product \"{product.title}\"",
        product_id=product.id,
        product_title=product.title,
        buyer_id=buyer.id,
        buyer_name=buyer.username,
        buyer_email=buyer.email,
        message=message or "",
        status=models.REQUEST_PENDING,
    )
    db.commit()
    db.refresh(request)
    logger.info(f"User {buyer.id} requested to purchase product {product.id} (request {request.id})")
    return request


def _accept(db: Session, request: models.Notification, product: models.Product):
    seller = product.owner
    buyer = db.query(models.User).filter(models.User.id == request.buyer_id).first()
    buyer_name = buyer.username if buyer else "Unknown buyer"

    product.is_sold = True
    product.status = models.STATUS_SOLD
    product.sold_to = request.buyer_id
    product.sold_at = datetime.utcnow()
    product.processing_buyer_id = None

    notify(
        db,
        request.buyer_id,
        models.NOTIFY_PURCHASE_ACCEPTED,
        f"Your purchase request was accepted, \"{product.title}\" is now yours",
        product_id=product.id,
        product_title=product.title,
        seller_id=seller.id,
        seller_name=seller.username,
        seller_email=seller.email,
        status=models.REQUEST_COMPLETED,
    )
    notify(
        db,
        seller.id,
        models.NOTIFY_ITEM_SOLD,
        f"Your product \"{product.title}\" was sold to {buyer_name}",
        product_id=product.id,
        product_title=product.title,
        buyer_id=request.buyer_id,
        buyer_name=buyer_name,
        buyer_email=buyer.email if buyer else None,
        status=models.REQUEST_COMPLETED,
    )

    rejected_buyers = []
    for other in _pending_requests(db, product.id):
        if other.id == request.id:
            continue
        other.status = models.REQUEST_REJECTED
        if other.buyer_id != request.buyer_id and other.buyer_id not in rejected_buyers:
            rejected_buyers.append(other.buyer_id)

    # One notice per buyer, however many requests they sent
    for buyer_id in rejected_buyers:
        notify(
            db,
            buyer_id,
            models.NOTIFY_PURCHASE_REJECTED,
            f"Sorry, \"{product.title}\" was sold to another buyer",
            product_id=product.id,
            product_title=product.title,
        )


def _reject(db: Session, request: models.Notification, product: models.Product):
    notify(
        db,
        request.buyer_id,
        models.NOTIFY_PURCHASE_REJECTED,
        f"Sorry, the seller declined your purchase request for \"{product.title}\"",
        product_id=product.id,
        product_title=product.title,
    )

    remaining = [n for n in _pending_requests(db, product.id) if n.id != request.id]
    if remaining:
        product.status = models.STATUS_PROCESSING
        product.processing_buyer_id = remaining[-1].buyer_id
    else:
        product.status = models.STATUS_AVAILABLE
        product.processing_buyer_id = None


def respond_to_purchase(db: Session, owner: models.User, notification_id: int, action: str) -> models.Notification:
    if action not in (ACCEPT, REJECT):
        raise ValidationError("Action must be 'accept' or 'reject'")

    request = db.query(models.Notification).filter(models.Notification.id == notification_id).first()
    if not request:
        raise NotFoundError("Notification not found")
    if request.user_id != owner.id:
        raise ForbiddenError("Not allowed to respond to this request")
    if request.type != models.NOTIFY_PURCHASE_REQUEST:
        raise ValidationError("Notification is not a purchase request")
    if request.status != models.REQUEST_PENDING:
        raise ConflictError(f"Purchase request is already {request.status}")
    if request.product_id is None:
        raise NotFoundError("Product not found")

    product = get_product(db, request.product_id)
    if product.is_sold:
        raise ConflictError("Product is already sold")

    if action == ACCEPT:
        _accept(db, request, product)
        request.status = models.REQUEST_ACCEPTED
    else:
        _reject(db, request, product)
        request.status = models.REQUEST_REJECTED
    request.is_read = True

    db.commit()
    db.refresh(request)
    logger.info(f"User {owner.id} {request.status} purchase request {request.id} for product {product.id}")
    return request


def create_bid(db: Session, user: models.User, product_id: int, type: str, amount: float) -> models.Bid:
    product = get_product(db, product_id)
    if product.user_id == user.id:
        raise ValidationError("Cannot bid on your own product")
    if type not in BID_TYPES:
        raise ValidationError(f"Bid type must be one of: {', '.join(BID_TYPES)}")
    if amount < 0:
        raise ValidationError("Amount cannot be negative")

    bid = models.Bid(product_id=product.id, user_id=user.id, type=type, amount=amount)
    db.add(bid)
    db.commit()
    db.refresh(bid)
    logger.info(f"User {user.id} placed a {type} bid of {amount} on product {product.id}")
    return bid


def list_user_bids(db: Session, user: models.User):
    """Bids placed by the user or received on the user's products."""
    return (
        db.query(models.Bid)
        .join(models.Product, models.Bid.product_id == models.Product.id)
        .filter((models.Bid.user_id == user.id) | (models.Product.user_id == user.id))
        .order_by(models.Bid.created_at.desc(), models.Bid.id.desc())
        .all()
    )
