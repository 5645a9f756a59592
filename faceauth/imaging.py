"""
Image decoding and upload validation helpers
"""
import numpy as np
import cv2
from PIL import Image
from io import BytesIO
import logging

from fastapi import HTTPException, UploadFile

from faceauth.config import MAX_IMAGE_SIZE, SUPPORTED_FORMATS, SUPPORTED_VIDEO_FORMATS

logger = logging.getLogger(__name__)


def preprocess_image(image_bytes: bytes) -> np.ndarray:
    """
    Preprocess image bytes into a BGR numpy array.

    Steps:
    1. Load image from bytes
    2. Convert to RGB
    3. Resize if too large (preserving aspect ratio)
    4. Convert to BGR, the channel order OpenCV-based detectors expect

    Raises:
        ValueError: If image cannot be processed
    """
    try:
        image = Image.open(BytesIO(image_bytes))

        # Convert to RGB (handles PNG with alpha, grayscale, etc.)
        if image.mode != "RGB":
            image = image.convert("RGB")

        if image.size[0] > MAX_IMAGE_SIZE[0] or image.size[1] > MAX_IMAGE_SIZE[1]:
            image.thumbnail(MAX_IMAGE_SIZE, Image.Resampling.LANCZOS)
            logger.debug(f"Image resized to {image.size}")

        return cv2.cvtColor(np.array(image), cv2.COLOR_RGB2BGR)

    except Exception as e:
        logger.error(f"Image preprocessing failed: {e}")
        raise ValueError(f"Failed to process image: {str(e)}")


def _extension(filename: str) -> str:
    return "." + filename.lower().split(".")[-1] if "." in filename else ""


def validate_image_file(file: UploadFile) -> None:
    """Validate uploaded image file."""
    if not file.filename:
        raise HTTPException(status_code=400, detail="No filename provided")

    if _extension(file.filename) not in SUPPORTED_FORMATS:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported file format. Supported: {', '.join(sorted(SUPPORTED_FORMATS))}"
        )

    if file.content_type and not file.content_type.startswith("image/"):
        raise HTTPException(status_code=400, detail="File must be an image")


def validate_video_file(file: UploadFile) -> str:
    """Validate uploaded video file and return its extension."""
    if not file.filename:
        raise HTTPException(status_code=400, detail="No filename provided")

    ext = _extension(file.filename)
    if ext not in SUPPORTED_VIDEO_FORMATS:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported video format. Supported: {', '.join(sorted(SUPPORTED_VIDEO_FORMATS))}"
        )
    return ext


async def read_upload(file: UploadFile) -> bytes:
    """Read an upload, rejecting unreadable or empty files."""
    try:
        data = await file.read()
    except Exception as e:
        raise HTTPException(status_code=400, detail=f"Failed to read {file.filename}: {str(e)}")

    if len(data) == 0:
        raise HTTPException(status_code=400, detail=f"Empty file: {file.filename}")
    return data
