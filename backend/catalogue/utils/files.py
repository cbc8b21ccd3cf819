# backend/catalogue/utils/files.py
from pathlib import Path
from uuid import uuid4
from fastapi import UploadFile
from ..config import settings
from .logging import service_logger

PDF_MEDIA_TYPES = {"application/pdf", "application/x-pdf"}

def is_pdf_upload(upload_file: UploadFile) -> bool:
    """Accept by content type, falling back to the file extension"""
    if upload_file.content_type in PDF_MEDIA_TYPES:
        return True
    return Path(upload_file.filename or "").suffix.lower() == ".pdf"

def save_bytes(data: bytes, directory: Path, suffix: str = ".pdf") -> Path:
    """Write bytes under a unique file name and return the path"""
    directory.mkdir(parents=True, exist_ok=True)
    file_path = directory / f"{uuid4()}{suffix}"
    file_path.write_bytes(data)
    return file_path

def delete_file(file_path: Path) -> bool:
    """Delete a file if it exists; returns whether something was removed"""
    try:
        if file_path.exists():
            file_path.unlink()
            return True
    except OSError as e:
        service_logger.error(f"Error deleting file {file_path}: {e}")
        raise
    return False

def get_relative_path(absolute_path: Path, base_path: Path) -> str:
    """Convert absolute path to relative path for database storage"""
    absolute_path = Path(absolute_path).absolute()
    base_path = Path(base_path).absolute()
    return absolute_path.relative_to(base_path).as_posix()

def public_url(relative_path: str) -> str:
    """URL under which the content store serves a stored file"""
    return f"{settings.PUBLIC_BASE_URL.rstrip('/')}/storage/{relative_path}"

def display_name(filename: str | None) -> str:
    """Catalogue name derived from an uploaded file name"""
    name = Path(filename or "").name
    if name.lower().endswith(".pdf"):
        name = name[:-4]
    return name or "Untitled catalogue"
