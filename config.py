# config.py
import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./marketplace.db")

# JWT configuration
SECRET_KEY = os.getenv("SECRET_KEY", "your-marketplace-secret-key")
ALGORITHM = "HS256"
# Tokens never expire unless a lifetime is configured
ACCESS_TOKEN_EXPIRE_MINUTES = os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES")
if ACCESS_TOKEN_EXPIRE_MINUTES:
    ACCESS_TOKEN_EXPIRE_MINUTES = int(ACCESS_TOKEN_EXPIRE_MINUTES)
else:
    ACCESS_TOKEN_EXPIRE_MINUTES = None

UPLOAD_DIRECTORY = os.getenv("UPLOAD_DIRECTORY", "uploads")
UPLOAD_URL_PREFIX = "/uploads"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

CORS_ORIGINS = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",")]
