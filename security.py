# security.py
from datetime import datetime, timedelta
from typing import Optional

import bcrypt
import jwt
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

import models
from config import ACCESS_TOKEN_EXPIRE_MINUTES, ALGORITHM, SECRET_KEY
from database import get_db
from exceptions import ForbiddenError, UnauthenticatedError
from logger import logger

# OAuth2 setup; missing tokens are reported by get_current_user
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token", auto_error=False)


# Authentication functions
def verify_password(plain_password, hashed_password):
    return bcrypt.checkpw(plain_password.encode('utf-8'), hashed_password.encode('utf-8'))

def get_password_hash(password):
    salt = bcrypt.gensalt()
    return bcrypt.hashpw(password.encode('utf-8'), salt).decode('utf-8')

def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    to_encode = data.copy()
    if expires_delta is None and ACCESS_TOKEN_EXPIRE_MINUTES:
        expires_delta = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    if expires_delta:
        to_encode.update({"exp": datetime.utcnow() + expires_delta})
    encoded_jwt = jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)
    return encoded_jwt

def create_user_token(user: models.User):
    # "sub" must be a string for PyJWT to accept it on decode
    return create_access_token(data={"sub": str(user.id), "username": user.username})

def decode_user_id(token: str) -> int:
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        user_id = int(payload.get("sub"))
    except (jwt.PyJWTError, TypeError, ValueError):
        logger.warning("Rejected bearer token")
        raise ForbiddenError("Invalid or expired token")
    return user_id

async def get_current_user(token: Optional[str] = Depends(oauth2_scheme), db: Session = Depends(get_db)):
    if not token:
        raise UnauthenticatedError("Not authenticated")

    user_id = decode_user_id(token)
    user = db.query(models.User).filter(models.User.id == user_id).first()
    if user is None:
        logger.warning(f"Token refers to unknown user {user_id}")
        raise ForbiddenError("Invalid or expired token")
    return user
