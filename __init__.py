"""
Face Fuzzy-Hash Verification

A biometric verification system using:
- DeepFace with Facenet for 128-d face descriptors
- Quantized, mean-thresholded fuzzy hashes compared by Hamming distance
- Motion/expression variance for liveness
- FastAPI + PostgreSQL for storing one hash per identity
"""

__version__ = "1.0.0"
