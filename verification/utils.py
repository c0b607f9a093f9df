import base64
import os

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".heic"}
PDF_EXTENSION = ".pdf"


def get_file_extension(filename: str) -> str:
    """Get file extension from filename"""
    return os.path.splitext(filename or "")[1].lower()


def is_supported_upload(filename: str) -> bool:
    """Check if file is an image or PDF we can convert"""
    ext = get_file_extension(filename)
    return ext in IMAGE_EXTENSIONS or ext == PDF_EXTENSION


def to_data_url(image_bytes: bytes, mime_type: str = "image/jpeg") -> str:
    """Encode image bytes as a base64 data URL"""
    b64 = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:{mime_type};base64,{b64}"
