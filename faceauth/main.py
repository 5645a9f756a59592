"""
Face Fuzzy-Hash Verification API

Stores one fuzzy hash per identity and verifies fresh scans against it.

Endpoints:
- POST /facescan - Enroll an identity from several face images
- GET /facescan/{identity_number} - Get a stored face scan
- DELETE /facescan/{identity_number} - Delete a stored face scan
- POST /facescan/{identity_number}/verify - Verify a face image against the stored scan
- POST /verify - Compare two fuzzy hashes
- POST /liveness - Run a liveness check on a short video
"""
import asyncio
import contextlib
import os
import tempfile
import time
import logging
from typing import List, Optional
from contextlib import asynccontextmanager

import cv2
from fastapi import FastAPI, File, UploadFile, Form, HTTPException, Query, Depends, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.ext.asyncio import AsyncSession

from faceauth.config import (
    API_TITLE,
    API_DESCRIPTION,
    API_VERSION,
    FACE_RECOGNITION_MODEL,
    FACE_DETECTOR_BACKEND,
    LIVENESS_DURATION_MS
)
from faceauth.deepface_detector import DeepFaceDetector
from faceauth.errors import ErrorCode
from faceauth.face_auth import FaceAuthSystem
from faceauth.imaging import (
    preprocess_image,
    read_upload,
    validate_image_file,
    validate_video_file
)
from faceauth.schemas import (
    DeleteResponse,
    ErrorResponse,
    FaceScanRecord,
    FaceScanResponse,
    IdentityVerifyResponse,
    LivenessReport,
    MatchResult,
    VerifyHashesRequest
)
from faceauth.database import async_session_maker, init_db, close_db
from faceauth.repository import FaceScanRepository

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Singleton instance
face_auth = FaceAuthSystem(DeepFaceDetector())


async def get_db() -> AsyncSession:
    """Dependency to get database session."""
    async with async_session_maker() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


def get_face_auth() -> FaceAuthSystem:
    """Dependency to get the face authentication system."""
    return face_auth


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info("Starting Face Fuzzy-Hash Verification API...")
    logger.info(f"Model: {FACE_RECOGNITION_MODEL}")
    logger.info(f"Detector: {FACE_DETECTOR_BACKEND}")

    await init_db()

    if not face_auth.initialize():
        logger.error("Face detection models failed to load; detection endpoints will return 503")
    yield

    await close_db()
    logger.info("Shutting down Face Fuzzy-Hash Verification API...")


app = FastAPI(
    title=API_TITLE,
    description=API_DESCRIPTION,
    version=API_VERSION,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _status_for(error: Optional[ErrorCode]) -> int:
    """HTTP status for a failed core result."""
    return 503 if error == ErrorCode.NOT_INITIALIZED else 422


async def _decode_image(file: UploadFile):
    validate_image_file(file)
    image_bytes = await read_upload(file)
    try:
        return preprocess_image(image_bytes)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.get("/", include_in_schema=False)
async def root(db: AsyncSession = Depends(get_db)):
    """Root endpoint with API info."""
    total_scans = await FaceScanRepository.count(db)
    return {
        "name": API_TITLE,
        "version": API_VERSION,
        "model": FACE_RECOGNITION_MODEL,
        "detector": FACE_DETECTOR_BACKEND,
        "total_face_scans": total_scans,
        "endpoints": {
            "enroll": "POST /facescan",
            "get": "GET /facescan/{identity_number}",
            "delete": "DELETE /facescan/{identity_number}",
            "verify_identity": "POST /facescan/{identity_number}/verify",
            "verify_hashes": "POST /verify",
            "liveness": "POST /liveness"
        }
    }


@app.get("/health")
async def health_check(
    db: AsyncSession = Depends(get_db),
    auth: FaceAuthSystem = Depends(get_face_auth)
):
    """Health check endpoint."""
    try:
        db_count = await FaceScanRepository.count(db)
        db_status = "healthy"
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        db_count = 0
        db_status = "unhealthy"

    healthy = db_status == "healthy" and auth.is_initialized
    return {
        "status": "healthy" if healthy else "degraded",
        "model_loaded": auth.is_initialized,
        "database_status": db_status,
        "total_face_scans": db_count
    }


# ============================================================================
# ENROLL
# ============================================================================
@app.post(
    "/facescan",
    response_model=FaceScanResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid input"},
        422: {"model": ErrorResponse, "description": "Not enough usable face samples"},
        503: {"model": ErrorResponse, "description": "Models not loaded"}
    },
    summary="Enroll an identity",
    description="""
    Capture several face samples for an identity and store their fuzzy hash.

    **Pipeline:**
    1. Detect the most confident face in each sample
    2. Average the descriptors of usable samples (at least 2 required)
    3. L2-normalize, quantize and threshold into a 128-bit fuzzy hash
    4. Store the hash against the identity number (replacing any previous one)
    """
)
async def enroll_face_scan(
    images: List[UploadFile] = File(..., description="Face images of the same person"),
    identity_number: str = Form(..., min_length=1, max_length=64, description="Identity number"),
    db: AsyncSession = Depends(get_db),
    auth: FaceAuthSystem = Depends(get_face_auth)
):
    """Enroll an identity from uploaded face images."""
    start_time = time.time()

    samples = [await _decode_image(image) for image in images]

    result = auth.enroll(samples)
    if not result.success:
        raise HTTPException(status_code=_status_for(result.error), detail=result.message)

    try:
        db_scan = await FaceScanRepository.save(
            session=db,
            identity_number=identity_number,
            fuzzy_hash=result.fuzzy_hash,
            samples_used=result.samples_used
        )
    except Exception as e:
        logger.error(f"Failed to store face scan in database: {e}")
        raise HTTPException(status_code=500, detail="Failed to store face scan in database")

    processing_time = (time.time() - start_time) * 1000
    logger.info(
        f"Enrolled identity {identity_number} from {result.samples_used} samples "
        f"in {processing_time:.1f}ms"
    )

    return FaceScanResponse(
        success=True,
        message=f"Face scan stored for identity '{identity_number}'",
        record=FaceScanRepository.db_to_schema(db_scan)
    )


@app.get(
    "/facescan/{identity_number}",
    response_model=FaceScanRecord,
    responses={404: {"model": ErrorResponse, "description": "Face scan not found"}},
    summary="Get a stored face scan"
)
async def get_face_scan(identity_number: str, db: AsyncSession = Depends(get_db)):
    """Get the face scan stored for an identity."""
    db_scan = await FaceScanRepository.get(db, identity_number)
    if not db_scan:
        raise HTTPException(
            status_code=404,
            detail=f"No face scan registered for identity '{identity_number}'"
        )
    return FaceScanRepository.db_to_schema(db_scan)


@app.delete(
    "/facescan/{identity_number}",
    response_model=DeleteResponse,
    responses={404: {"model": ErrorResponse, "description": "Face scan not found"}},
    summary="Delete a stored face scan"
)
async def delete_face_scan(identity_number: str, db: AsyncSession = Depends(get_db)):
    """Delete the face scan of an identity."""
    deleted = await FaceScanRepository.delete(db, identity_number)
    if not deleted:
        raise HTTPException(
            status_code=404,
            detail=f"No face scan registered for identity '{identity_number}'"
        )

    return DeleteResponse(
        success=True,
        message=f"Successfully deleted face scan for identity '{identity_number}'",
        deleted_id=identity_number
    )


# ============================================================================
# VERIFY
# ============================================================================
@app.post(
    "/facescan/{identity_number}/verify",
    response_model=IdentityVerifyResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Face scan not found"},
        422: {"model": ErrorResponse, "description": "No face detected"},
        503: {"model": ErrorResponse, "description": "Models not loaded"}
    },
    summary="Verify a face against a stored scan",
    description="""
    Hash a fresh face image and compare it with the identity's stored fuzzy hash.

    **Output:**
    - `verified`: True if the Hamming distance is within the threshold
    - `match`: Raw comparison result including the distance
    """
)
async def verify_identity(
    identity_number: str,
    image: UploadFile = File(..., description="Face image to verify"),
    db: AsyncSession = Depends(get_db),
    auth: FaceAuthSystem = Depends(get_face_auth)
):
    """Verify an uploaded face against the stored face scan."""
    start_time = time.time()

    db_scan = await FaceScanRepository.get(db, identity_number)
    if not db_scan:
        raise HTTPException(
            status_code=404,
            detail=f"No face scan registered for identity '{identity_number}'"
        )

    sample = await _decode_image(image)
    match = auth.verify_image(sample, db_scan.fuzzy_hash)
    if not match.success and match.error != ErrorCode.INVALID_HASH_INPUT:
        raise HTTPException(status_code=_status_for(match.error), detail=match.message)

    processing_time = (time.time() - start_time) * 1000
    logger.info(
        f"Verified identity {identity_number}: match={match.is_match} "
        f"(distance: {match.hamming_distance}) in {processing_time:.1f}ms"
    )

    return IdentityVerifyResponse(
        identity_number=identity_number,
        verified=match.success and match.is_match,
        match=match,
        processing_time_ms=round(processing_time, 2)
    )


@app.post(
    "/verify",
    response_model=MatchResult,
    summary="Compare two fuzzy hashes",
    description="Hamming-distance comparison of two fuzzy hashes. Malformed input yields `success: false`."
)
async def verify_hashes(
    request: VerifyHashesRequest,
    auth: FaceAuthSystem = Depends(get_face_auth)
):
    """Compare two fuzzy hashes."""
    return auth.verify(request.hash_a, request.hash_b)


# ============================================================================
# LIVENESS
# ============================================================================
@app.post(
    "/liveness",
    response_model=LivenessReport,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid input"},
        503: {"model": ErrorResponse, "description": "Models not loaded"}
    },
    summary="Run a liveness check",
    description="""
    Sample a short video of the subject and decide whether it shows a live person.

    A subject is live when the face center moves or expression scores fluctuate
    more than the configured thresholds. The check stops early if the client
    disconnects.
    """
)
async def check_liveness(
    request: Request,
    video: UploadFile = File(..., description="Short video of the subject's face"),
    duration_ms: int = Query(LIVENESS_DURATION_MS, ge=200, le=10000, description="Sampling window"),
    auth: FaceAuthSystem = Depends(get_face_auth)
):
    """Run a liveness check on an uploaded video."""
    ext = validate_video_file(video)
    video_bytes = await read_upload(video)

    if not auth.is_initialized:
        raise HTTPException(status_code=503, detail="Face detection models not loaded")

    with tempfile.NamedTemporaryFile(suffix=ext, delete=False) as tmp:
        tmp.write(video_bytes)
        video_path = tmp.name

    capture = cv2.VideoCapture(video_path)
    cancel_event = asyncio.Event()

    async def watch_disconnect():
        while not cancel_event.is_set():
            if await request.is_disconnected():
                logger.info("Client disconnected, cancelling liveness check")
                cancel_event.set()
                return
            await asyncio.sleep(0.1)

    watcher = asyncio.create_task(watch_disconnect())
    try:
        if not capture.isOpened():
            raise HTTPException(status_code=400, detail="Could not decode video")
        return await auth.check_liveness_report(capture, duration_ms, cancel_event)
    finally:
        watcher.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await watcher
        capture.release()
        os.unlink(video_path)


# Exception handlers
@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc):
    """Custom HTTP exception handler."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": "HTTPException",
            "detail": exc.detail
        }
    )


@app.exception_handler(Exception)
async def general_exception_handler(request, exc):
    """General exception handler."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "InternalServerError",
            "detail": "An unexpected error occurred"
        }
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
