# main.py
from fastapi import FastAPI, Depends, File, Form, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.security import OAuth2PasswordRequestForm
from fastapi.staticfiles import StaticFiles
from typing import List, Optional
from sqlalchemy.orm import Session

from config import CORS_ORIGINS, UPLOAD_DIRECTORY, UPLOAD_URL_PREFIX
from database import engine, get_db
from exceptions import register_exception_handlers
from logger import logger
from security import create_user_token, get_current_user
from storage import ensure_upload_directory
import catalog
import engagement
import messaging
import models
import notifications
import schemas
import transactions
import users

# Create database tables
models.Base.metadata.create_all(bind=engine)

# Create FastAPI instance
app = FastAPI(title="Secondhand Market API")
register_exception_handlers(app)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Mount static files directory for serving uploaded images
ensure_upload_directory()
app.mount(UPLOAD_URL_PREFIX, StaticFiles(directory=UPLOAD_DIRECTORY), name="uploads")


# Auth endpoints
@app.post("/register", response_model=schemas.RegisterResponse)
async def register(user: schemas.UserCreate, db: Session = Depends(get_db)):
    db_user = users.register(db, user.username, user.email, user.password)
    return schemas.RegisterResponse(message="Registration successful", user_id=db_user.id)

@app.post("/login", response_model=schemas.LoginResponse)
async def login(user_login: schemas.UserLogin, db: Session = Depends(get_db)):
    user = users.authenticate_user(db, user_login.username or user_login.email, user_login.password)
    logger.info(f"User {user.id} logged in")
    return schemas.LoginResponse(
        token=create_user_token(user),
        username=user.username,
        user=schemas.UserSummary.model_validate(user),
    )

# Token endpoint
@app.post("/token", response_model=schemas.Token)
async def login_for_access_token(form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
    user = users.authenticate_user(db, form_data.username, form_data.password)
    return {"access_token": create_user_token(user), "token_type": "bearer"}


# User endpoints
@app.get("/users/me", response_model=schemas.UserResponse)
async def read_users_me(current_user: models.User = Depends(get_current_user)):
    return current_user

@app.get("/user/profile", response_model=schemas.UserResponse)
async def read_profile(current_user: models.User = Depends(get_current_user)):
    return current_user

@app.post("/upload-avatar", response_model=schemas.AvatarUploadResponse)
async def upload_avatar(
    avatar: Optional[UploadFile] = File(None),
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    avatar_url = users.update_avatar(db, current_user, avatar)
    return schemas.AvatarUploadResponse(message="Avatar uploaded", avatar_url=avatar_url)

@app.get("/users/avatars", response_model=List[schemas.PublicUserResponse])
async def get_user_avatars(db: Session = Depends(get_db)):
    return users.list_avatars(db)

@app.get("/users/search", response_model=List[schemas.PublicUserResponse])
async def search_users(
    q: Optional[str] = None,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return users.search_users(db, q, current_user.id)

@app.get("/users/{user_id}", response_model=schemas.PublicUserResponse)
async def get_user(
    user_id: int,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return users.get_user(db, user_id)

@app.get("/users/{user_id}/avatar", response_model=schemas.AvatarResponse)
async def get_user_avatar(user_id: int, db: Session = Depends(get_db)):
    return schemas.AvatarResponse(avatar_url=users.get_user(db, user_id).avatar_url)


# Product endpoints
@app.get("/products", response_model=List[schemas.ProductResponse])
async def get_products(
    category: Optional[str] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db)
):
    return catalog.list_products(db, category=category, search=search)

@app.post("/products", response_model=schemas.ProductCreatedResponse)
async def create_product(
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    condition_desc: Optional[str] = Form(None),
    price: Optional[int] = Form(None),
    quantity: Optional[int] = Form(None),
    image: Optional[UploadFile] = File(None),
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    product = catalog.create_product(
        db,
        current_user,
        title=title,
        description=description,
        category=category,
        condition_desc=condition_desc,
        price=price,
        quantity=quantity,
        image=image,
    )
    return schemas.ProductCreatedResponse(message="Product listed", product_id=product.id)

@app.get("/user/products", response_model=List[schemas.ProductResponse])
async def get_my_products(
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return catalog.list_user_products(db, current_user.id)

@app.get("/products/{product_id}", response_model=schemas.ProductResponse)
async def get_product(product_id: int, db: Session = Depends(get_db)):
    return catalog.get_product(db, product_id)

@app.put("/products/{product_id}", response_model=schemas.ProductUpdatedResponse)
async def update_product(
    product_id: int,
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    condition_desc: Optional[str] = Form(None),
    price: Optional[int] = Form(None),
    quantity: Optional[int] = Form(None),
    image: Optional[UploadFile] = File(None),
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    product = catalog.update_product(
        db,
        current_user,
        product_id,
        image=image,
        title=title,
        description=description,
        category=category,
        condition_desc=condition_desc,
        price=price,
        quantity=quantity,
    )
    return schemas.ProductUpdatedResponse(
        message="Product updated",
        product=schemas.ProductResponse.model_validate(product),
    )

@app.delete("/products/{product_id}", response_model=schemas.MessageResponse)
async def delete_product(
    product_id: int,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    catalog.delete_product(db, current_user, product_id)
    return {"message": "Product deleted"}

@app.get("/products/{product_id}/history", response_model=List[schemas.EditHistoryResponse])
async def get_product_history(
    product_id: int,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return catalog.get_edit_history(db, current_user, product_id)


# Like, favorite and cart endpoints
@app.post("/likes", response_model=schemas.LikeResponse)
async def toggle_like(
    ref: schemas.ProductRef,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    liked, likes_count = engagement.toggle_like(db, current_user, ref.product_id)
    return schemas.LikeResponse(message="liked" if liked else "unliked", liked=liked, likes_count=likes_count)

@app.post("/favorites", response_model=schemas.MessageResponse)
async def add_favorite(
    ref: schemas.ProductRef,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    engagement.add_favorite(db, current_user, ref.product_id)
    return {"message": "Added to favorites"}

@app.get("/user/favorites", response_model=List[schemas.FavoriteResponse])
async def get_favorites(
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return engagement.list_favorites(db, current_user)

@app.delete("/user/favorites", response_model=schemas.MessageResponse)
async def remove_favorite(
    ref: schemas.ProductRef,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    engagement.remove_favorite(db, current_user, ref.product_id)
    return {"message": "Removed from favorites"}

@app.post("/cart", response_model=schemas.MessageResponse)
async def add_to_cart(
    ref: schemas.ProductRef,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    engagement.add_to_cart(db, current_user, ref.product_id)
    return {"message": "Added to cart"}

@app.get("/user/cart", response_model=List[schemas.CartItemResponse])
async def get_cart(
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return engagement.list_cart(db, current_user)

@app.delete("/user/cart", response_model=schemas.MessageResponse)
async def remove_from_cart(
    ref: schemas.ProductRef,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    engagement.remove_from_cart(db, current_user, ref.product_id)
    return {"message": "Removed from cart"}


# Comment endpoints
@app.post("/comments", response_model=schemas.CommentCreatedResponse)
async def create_comment(
    comment: schemas.CommentCreate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    db_comment = engagement.add_comment(
        db, current_user, comment.product_id, comment.content, comment.parent_id
    )
    return schemas.CommentCreatedResponse(
        message="Comment posted",
        comment=schemas.CommentResponse.model_validate(db_comment),
    )

@app.get("/comments/{product_id}", response_model=List[schemas.CommentResponse])
async def get_product_comments(product_id: int, db: Session = Depends(get_db)):
    return engagement.list_comments(db, product_id)


# Purchase and bid endpoints
@app.post("/purchase-request", response_model=schemas.MessageResponse)
async def create_purchase_request(
    body: schemas.PurchaseRequestCreate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    transactions.request_purchase(db, current_user, body.product_id, body.message)
    return {"message": "Purchase request sent"}

@app.post("/purchase-response", response_model=schemas.MessageResponse)
async def respond_to_purchase_request(
    body: schemas.PurchaseResponseCreate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    transactions.respond_to_purchase(db, current_user, body.notification_id, body.action)
    if body.action == transactions.ACCEPT:
        return {"message": "Purchase request accepted"}
    return {"message": "Purchase request rejected"}

@app.post("/transactions", response_model=schemas.BidResponse)
async def create_bid(
    body: schemas.BidCreate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return transactions.create_bid(db, current_user, body.product_id, body.type, body.amount)

@app.get("/user/exchanges", response_model=List[schemas.BidResponse])
async def get_user_exchanges(
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return transactions.list_user_bids(db, current_user)


# Notification endpoints
@app.get("/notifications", response_model=List[schemas.NotificationResponse])
async def get_notifications(
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return notifications.list_notifications(db, current_user)

@app.put("/notifications/mark-all-read", response_model=schemas.MarkAllReadResponse)
async def mark_all_notifications_read(
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return schemas.MarkAllReadResponse(marked_count=notifications.mark_all_read(db, current_user))

@app.put("/notifications/{notification_id}/read", response_model=schemas.SuccessResponse)
async def mark_notification_read(
    notification_id: int,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    notifications.mark_read(db, current_user, notification_id)
    return {"success": True}


# Conversation endpoints
@app.post("/conversations", response_model=schemas.ConversationResponse)
async def open_conversation(
    body: schemas.ConversationCreate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return messaging.get_or_create_conversation(
        db,
        current_user,
        body.other_user_id,
        product_id=body.product_id,
        product_title=body.product_title,
        initial_message=body.initial_message,
    )

@app.get("/conversations", response_model=List[schemas.ConversationSummary])
async def get_conversations(
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return messaging.list_conversations(db, current_user)

@app.get("/conversations/{conversation_id}/messages", response_model=List[schemas.ChatMessageResponse])
async def get_conversation_messages(
    conversation_id: int,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return messaging.list_messages(db, current_user, conversation_id)

@app.post("/conversations/{conversation_id}/messages", response_model=schemas.ChatMessageResponse)
async def post_conversation_message(
    conversation_id: int,
    body: schemas.MessageCreate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return messaging.send_message(db, current_user, conversation_id, body.content)

@app.put("/conversations/{conversation_id}/read", response_model=schemas.SuccessResponse)
async def mark_conversation_read(
    conversation_id: int,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    messaging.mark_conversation_read(db, current_user, conversation_id)
    return {"success": True}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
