# models.py
from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from datetime import datetime

from database import Base

# Product lifecycle
STATUS_AVAILABLE = "available"
STATUS_PROCESSING = "processing"
STATUS_SOLD = "sold"

# Notification types
NOTIFY_PURCHASE_REQUEST = "purchase_request"
NOTIFY_PURCHASE_ACCEPTED = "purchase_accepted"
NOTIFY_PURCHASE_REJECTED = "purchase_rejected"
NOTIFY_ITEM_SOLD = "item_sold"
NOTIFY_COMMENT = "comment"
NOTIFY_COMMENT_REPLY = "comment_reply"
NOTIFY_PRIVATE_MESSAGE = "private_message"

# Purchase request statuses
REQUEST_PENDING = "pending"
REQUEST_ACCEPTED = "accepted"
REQUEST_REJECTED = "rejected"
REQUEST_CANCELLED = "cancelled"
REQUEST_COMPLETED = "completed"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), unique=True, index=True, nullable=False)
    email = Column(String(120), unique=True, index=True, nullable=False)
    password = Column(String(100), nullable=False)
    avatar_url = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    products = relationship("Product", back_populates="owner", foreign_keys="Product.user_id")
    comments = relationship("Comment", back_populates="user")


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String(50), nullable=False, index=True)
    condition_desc = Column(String(100), nullable=False)
    price = Column(Integer, nullable=False, default=0)
    quantity = Column(Integer, nullable=False, default=1)
    image_url = Column(String(255), nullable=True)
    status = Column(String(20), nullable=False, default=STATUS_AVAILABLE)
    is_sold = Column(Boolean, nullable=False, default=False)
    processing_buyer_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    sold_to = Column(Integer, ForeignKey("users.id"), nullable=True)
    sold_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=True)

    # Relationships
    owner = relationship("User", back_populates="products", foreign_keys=[user_id])
    comments = relationship("Comment", back_populates="product", cascade="all, delete-orphan")
    likes = relationship("Like", back_populates="product", cascade="all, delete-orphan")
    favorites = relationship("Favorite", back_populates="product", cascade="all, delete-orphan")
    cart_items = relationship("CartItem", back_populates="product", cascade="all, delete-orphan")
    edits = relationship("ProductEdit", back_populates="product", cascade="all, delete-orphan")
    bids = relationship("Bid", back_populates="product", cascade="all, delete-orphan")

    @property
    def username(self):
        return self.owner.username if self.owner else "Unknown"

    @property
    def likes_count(self):
        return len(self.likes)


class Comment(Base):
    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    parent_id = Column(Integer, ForeignKey("comments.id"), nullable=True)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    product = relationship("Product", back_populates="comments")
    user = relationship("User", back_populates="comments")

    @property
    def username(self):
        return self.user.username if self.user else "Unknown"


class Like(Base):
    __tablename__ = "likes"
    __table_args__ = (UniqueConstraint("user_id", "product_id"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    product = relationship("Product", back_populates="likes")


class Favorite(Base):
    __tablename__ = "favorites"
    __table_args__ = (UniqueConstraint("user_id", "product_id"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    product = relationship("Product", back_populates="favorites")


class CartItem(Base):
    __tablename__ = "cart_items"
    __table_args__ = (UniqueConstraint("user_id", "product_id"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, default=datetime.utcnow)

    product = relationship("Product", back_populates="cart_items")


class ProductEdit(Base):
    __tablename__ = "product_edits"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    # Only the fields whose value changed
    old_data = Column(JSON, nullable=False)
    new_data = Column(JSON, nullable=False)
    edited_at = Column(DateTime, default=datetime.utcnow)

    product = relationship("Product", back_populates="edits")


class Bid(Base):
    __tablename__ = "bids"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    type = Column(String(10), nullable=False)
    amount = Column(Float, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    product = relationship("Product", back_populates="bids")
    user = relationship("User")

    @property
    def product_title(self):
        return self.product.title if self.product else None

    @property
    def bidder_name(self):
        return self.user.username if self.user else "Unknown"


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    type = Column(String(30), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=True)
    product_title = Column(String(200), nullable=True)
    content = Column(Text, nullable=False)
    message = Column(Text, nullable=True)
    is_read = Column(Boolean, nullable=False, default=False)
    status = Column(String(20), nullable=True)
    # Snapshots taken when the notification is created
    buyer_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    buyer_name = Column(String(50), nullable=True)
    buyer_email = Column(String(120), nullable=True)
    seller_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    seller_name = Column(String(50), nullable=True)
    seller_email = Column(String(120), nullable=True)
    sender_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    sender_name = Column(String(50), nullable=True)
    comment_id = Column(Integer, nullable=True)
    parent_comment_id = Column(Integer, nullable=True)
    conversation_id = Column(Integer, ForeignKey("conversations.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class Conversation(Base):
    __tablename__ = "conversations"

    id = Column(Integer, primary_key=True, index=True)
    user1_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    user2_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=True)
    product_title = Column(String(200), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    messages = relationship("Message", back_populates="conversation", order_by="Message.id")
    user1 = relationship("User", foreign_keys=[user1_id])
    user2 = relationship("User", foreign_keys=[user2_id])

    def has_participant(self, user_id):
        return user_id in (self.user1_id, self.user2_id)

    def other_participant(self, user_id):
        return self.user2 if self.user1_id == user_id else self.user1


class Message(Base):
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, index=True)
    conversation_id = Column(Integer, ForeignKey("conversations.id"), nullable=False, index=True)
    sender_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    content = Column(Text, nullable=False)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    conversation = relationship("Conversation", back_populates="messages")
