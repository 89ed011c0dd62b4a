"""Upload models."""
from ...media import CandidateFile, MediaKind, guess_mime_type
from .upload_models import (
    AssetDescriptor,
    DeleteResult,
    UploadStatus,
    UploadSession,
    UploadProgress,
    InvalidTransition,
    TERMINAL_STATUSES,
)

__all__ = [
    'MediaKind',
    'CandidateFile',
    'guess_mime_type',
    'AssetDescriptor',
    'DeleteResult',
    'UploadStatus',
    'UploadSession',
    'UploadProgress',
    'InvalidTransition',
    'TERMINAL_STATUSES',
]
