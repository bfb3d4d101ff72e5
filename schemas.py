# schemas.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, Optional
from datetime import datetime

# Token schemas
class Token(BaseModel):
    access_token: str
    token_type: str

# User schemas
class UserBase(BaseModel):
    username: str
    email: str

class UserCreate(UserBase):
    password: str

class UserLogin(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None
    password: str

class UserSummary(BaseModel):
    id: int
    username: str
    email: str

    model_config = ConfigDict(from_attributes=True)

class UserResponse(UserSummary):
    avatar_url: Optional[str] = None
    created_at: datetime

class PublicUserResponse(BaseModel):
    id: int
    username: str
    avatar_url: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

class AvatarResponse(BaseModel):
    avatar_url: Optional[str] = None

class AvatarUploadResponse(BaseModel):
    success: bool = True
    message: str
    avatar_url: str = Field(alias="avatarUrl")

    model_config = ConfigDict(populate_by_name=True)

class RegisterResponse(BaseModel):
    message: str
    user_id: int = Field(alias="userId")

    model_config = ConfigDict(populate_by_name=True)

class LoginResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    username: str
    user: UserSummary

class MessageResponse(BaseModel):
    message: str

# Product schemas
class ProductResponse(BaseModel):
    id: int
    title: str
    description: str
    category: str
    condition_desc: str
    price: int
    quantity: int
    image_url: Optional[str] = None
    user_id: int
    username: str
    likes_count: int
    status: str
    is_sold: bool
    processing_buyer_id: Optional[int] = None
    sold_to: Optional[int] = None
    sold_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class ProductCreatedResponse(BaseModel):
    message: str
    product_id: int = Field(alias="productId")

    model_config = ConfigDict(populate_by_name=True)

class ProductUpdatedResponse(BaseModel):
    message: str
    product: ProductResponse

class EditHistoryResponse(BaseModel):
    id: int
    product_id: int
    user_id: int
    old_data: Dict[str, Any]
    new_data: Dict[str, Any]
    edited_at: datetime

    model_config = ConfigDict(from_attributes=True)

# Engagement schemas
class ProductRef(BaseModel):
    product_id: int = Field(alias="productId")

    model_config = ConfigDict(populate_by_name=True)

class LikeResponse(BaseModel):
    message: str
    liked: bool
    likes_count: int

class FavoriteResponse(BaseModel):
    id: int
    product_id: int
    created_at: datetime
    product: ProductResponse

    model_config = ConfigDict(from_attributes=True)

class CartItemResponse(FavoriteResponse):
    quantity: int

class CommentCreate(BaseModel):
    product_id: int
    content: str
    parent_id: Optional[int] = None

class CommentResponse(BaseModel):
    id: int
    product_id: int
    user_id: int
    username: str
    parent_id: Optional[int] = None
    content: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class CommentCreatedResponse(BaseModel):
    message: str
    comment: CommentResponse

# Transaction schemas
class PurchaseRequestCreate(BaseModel):
    product_id: int
    message: Optional[str] = None

class PurchaseResponseCreate(BaseModel):
    notification_id: int
    action: str

class BidCreate(BaseModel):
    product_id: int = Field(alias="productId")
    type: str
    amount: float

    model_config = ConfigDict(populate_by_name=True)

class BidResponse(BaseModel):
    id: int
    product_id: int
    product_title: Optional[str] = None
    user_id: int
    bidder_name: str
    type: str
    amount: float
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class NotificationResponse(BaseModel):
    id: int
    user_id: int
    type: str
    product_id: Optional[int] = None
    product_title: Optional[str] = None
    content: str
    message: Optional[str] = None
    is_read: bool
    status: Optional[str] = None
    buyer_id: Optional[int] = None
    buyer_name: Optional[str] = None
    buyer_email: Optional[str] = None
    seller_id: Optional[int] = None
    seller_name: Optional[str] = None
    seller_email: Optional[str] = None
    sender_id: Optional[int] = None
    sender_name: Optional[str] = None
    comment_id: Optional[int] = None
    parent_comment_id: Optional[int] = None
    conversation_id: Optional[int] = None
    created_at: datetime
    is_sent_request: bool = Field(False, alias="isSentRequest")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

class MarkAllReadResponse(BaseModel):
    success: bool = True
    marked_count: int

class SuccessResponse(BaseModel):
    success: bool = True

# Messaging schemas
class ConversationCreate(BaseModel):
    other_user_id: Optional[int] = None
    product_id: Optional[int] = None
    product_title: Optional[str] = None
    initial_message: Optional[str] = None

class ConversationResponse(BaseModel):
    id: int
    user1_id: int
    user2_id: int
    product_id: Optional[int] = None
    product_title: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class MessageCreate(BaseModel):
    content: str

class ChatMessageResponse(BaseModel):
    id: int
    conversation_id: int
    sender_id: int
    content: str
    is_read: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class LatestMessage(BaseModel):
    content: str
    sender_id: int
    created_at: datetime

class ConversationSummary(BaseModel):
    id: int
    product_id: Optional[int] = None
    product_title: Optional[str] = None
    other_user: PublicUserResponse
    latest_message: Optional[LatestMessage] = None
    unread_count: int
    updated_at: datetime

