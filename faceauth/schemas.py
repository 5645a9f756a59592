"""
Pydantic models for core results and API request/response schemas
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime

from faceauth.errors import ErrorCode


# ============================================================================
# Core results
# ============================================================================
class MatchResult(BaseModel):
    """Outcome of comparing two fuzzy hashes"""
    success: bool = Field(..., description="Whether the comparison was well-formed")
    is_match: bool = Field(default=False, description="Whether both hashes belong to the same person")
    hamming_distance: Optional[int] = Field(default=None, ge=0, description="Number of differing bits")
    message: str = Field(default="", description="Status message")
    error: Optional[ErrorCode] = Field(default=None, description="Failure reason when success is false")

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "success": True,
            "is_match": True,
            "hamming_distance": 6,
            "message": "Face scan verified successfully",
            "error": None
        }
    })


class EnrollmentResult(BaseModel):
    """Outcome of a multi-sample enrollment"""
    success: bool = Field(..., description="Whether a fuzzy hash was produced")
    message: str = Field(..., description="Status message")
    fuzzy_hash: Optional[str] = Field(default=None, description="Binary fuzzy hash of the averaged descriptor")
    samples_used: int = Field(default=0, ge=0, description="Samples that yielded a usable descriptor")
    error: Optional[ErrorCode] = Field(default=None, description="Failure reason when success is false")


class ScanResult(BaseModel):
    """Outcome of hashing a single verification sample"""
    success: bool = Field(..., description="Whether a fuzzy hash was produced")
    message: str = Field(..., description="Status message")
    fuzzy_hash: Optional[str] = Field(default=None, description="Binary fuzzy hash of the sample")
    confidence: Optional[float] = Field(default=None, description="Detection confidence of the hashed face")
    error: Optional[ErrorCode] = Field(default=None, description="Failure reason when success is false")


class LivenessReport(BaseModel):
    """Decision and signals of a liveness check"""
    is_live: bool = Field(..., description="Whether the subject appears live")
    movement_variance: float = Field(default=0.0, description="Summed variance of face centers (pixel^2)")
    expression_variance: float = Field(default=0.0, description="Mean per-frame expression score variance")
    frames_sampled: int = Field(default=0, ge=0, description="Frames with a detected face")
    cancelled: bool = Field(default=False, description="Whether sampling was cancelled early")
    message: str = Field(default="", description="Status message")
    error: Optional[ErrorCode] = Field(default=None, description="Failure reason, if any")

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "is_live": True,
            "movement_variance": 42.7,
            "expression_variance": 0.004,
            "frames_sampled": 10,
            "cancelled": False,
            "message": "Liveness confirmed",
            "error": None
        }
    })


# ============================================================================
# API schemas
# ============================================================================
class FaceScanRecord(BaseModel):
    """Schema for a stored face scan"""
    identity_number: str = Field(..., description="Identity the fuzzy hash is bound to")
    fuzzy_hash: str = Field(..., description="Stored binary fuzzy hash")
    samples_used: int = Field(..., description="Samples averaged at enrollment")
    created_at: datetime = Field(..., description="Timestamp when the scan was first stored")
    updated_at: datetime = Field(..., description="Timestamp of the last re-enrollment")

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "identity_number": "EMP-00042",
            "fuzzy_hash": "0110" * 32,
            "samples_used": 3,
            "created_at": "2024-01-15T10:30:00",
            "updated_at": "2024-01-15T10:30:00"
        }
    })


class FaceScanResponse(BaseModel):
    """Schema for enroll response"""
    success: bool = Field(..., description="Whether the operation succeeded")
    message: str = Field(..., description="Status message")
    record: Optional[FaceScanRecord] = Field(default=None, description="Stored face scan")


class VerifyHashesRequest(BaseModel):
    """Schema for comparing two fuzzy hashes"""
    hash_a: str = Field(..., description="First fuzzy hash")
    hash_b: str = Field(..., description="Second fuzzy hash")


class IdentityVerifyResponse(BaseModel):
    """Schema for verifying a fresh image against a stored face scan"""
    identity_number: str = Field(..., description="Identity that was verified")
    verified: bool = Field(..., description="Whether the face matches the stored scan")
    match: MatchResult = Field(..., description="Raw comparison result")
    processing_time_ms: float = Field(..., description="Processing time in milliseconds")


class DeleteResponse(BaseModel):
    """Schema for delete face scan response"""
    success: bool = Field(..., description="Whether the operation succeeded")
    message: str = Field(..., description="Status message")
    deleted_id: Optional[str] = Field(default=None, description="Identity number of the deleted scan")


class ErrorResponse(BaseModel):
    """Schema for error responses"""
    error: str = Field(..., description="Error type")
    detail: str = Field(..., description="Detailed error message")

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "error": "HTTPException",
            "detail": "Insufficient face descriptors extracted"
        }
    })
