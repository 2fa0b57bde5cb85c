"""
File Upload Utility - validate uploaded files before they go to storage.

Allowed: images, PDF, Word, Excel, plain text, XML
Max file size: 5MB, max 10 files per request
"""

from typing import List, NamedTuple, Optional

from fastapi import HTTPException, UploadFile


MAX_FILE_SIZE_MB = 5
MAX_FILE_SIZE_BYTES = MAX_FILE_SIZE_MB * 1024 * 1024
MAX_FILES = 10

IMAGE_CONTENT_TYPES = {
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
    "image/webp",
}

ALLOWED_CONTENT_TYPES = IMAGE_CONTENT_TYPES | {
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "text/plain",
    "text/xml",
    "application/xml",
}


class ValidatedFile(NamedTuple):
    filename: str
    content_type: str
    content: bytes


def get_file_extension(filename: str) -> str:
    """Get lowercase file extension."""
    if "." not in filename:
        return ""
    return "." + filename.rsplit(".", 1)[1].lower()


async def read_upload(file: UploadFile, allowed_types: Optional[set] = None) -> ValidatedFile:
    """
    Validate and read one uploaded file.

    Raises:
        HTTPException 400 for missing/empty/unsupported files, 413 when too large
    """
    allowed_types = allowed_types or ALLOWED_CONTENT_TYPES

    if not file or not file.filename:
        raise HTTPException(status_code=400, detail="No file uploaded")

    content_type = (file.content_type or "").lower()
    if content_type not in allowed_types:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid file type '{content_type or get_file_extension(file.filename)}'. "
                   "Only images, PDF, Word, Excel, text and XML files are allowed",
        )

    content = await file.read()

    if not content:
        raise HTTPException(status_code=400, detail=f"File '{file.filename}' is empty")

    if len(content) > MAX_FILE_SIZE_BYTES:
        raise HTTPException(
            status_code=413,
            detail=f"File too large. Maximum size: {MAX_FILE_SIZE_MB}MB",
        )

    return ValidatedFile(file.filename, content_type, content)


async def read_uploads(files: Optional[List[UploadFile]], required: bool = True) -> List[ValidatedFile]:
    """Validate a multi-file upload field."""
    files = [f for f in (files or []) if f is not None and f.filename]
    if not files:
        if required:
            raise HTTPException(status_code=400, detail="No files uploaded")
        return []
    if len(files) > MAX_FILES:
        raise HTTPException(status_code=400, detail=f"Too many files. Maximum is {MAX_FILES}")
    return [await read_upload(f) for f in files]


async def read_image(file: UploadFile) -> ValidatedFile:
    """Validate an image-only upload (avatars, chat images)."""
    return await read_upload(file, allowed_types=IMAGE_CONTENT_TYPES)
