# storage.py
import os
import shutil
import time

from fastapi import UploadFile

from config import UPLOAD_DIRECTORY, UPLOAD_URL_PREFIX


def ensure_upload_directory():
    # Create uploads directory if it doesn't exist
    if not os.path.exists(UPLOAD_DIRECTORY):
        os.makedirs(UPLOAD_DIRECTORY)


def save_upload(upload: UploadFile) -> str:
    """Store an uploaded file and return the public URL it is served from."""
    ensure_upload_directory()

    filename = f"{int(time.time() * 1000)}-{os.path.basename(upload.filename)}"
    file_location = os.path.join(UPLOAD_DIRECTORY, filename)
    with open(file_location, "wb+") as file_object:
        shutil.copyfileobj(upload.file, file_object)

    return f"{UPLOAD_URL_PREFIX}/{filename}"


def has_upload(upload) -> bool:
    # Browsers send an empty part when no file was picked
    return upload is not None and bool(upload.filename)
