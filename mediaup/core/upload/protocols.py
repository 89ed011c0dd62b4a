"""
Protocol definitions for upload module.

Defines the seams the UploadManager depends on, so tests and embedding
applications can substitute their own implementations.
"""
from typing import Callable, Optional, Protocol, Union

from .cancellation import CancelToken
from .models import AssetDescriptor, DeleteResult, UploadProgress
from ..media import CandidateFile, MediaKind


ProgressCallback = Callable[[UploadProgress], None]


class AssetStoreProtocol(Protocol):
    """Remote asset store operations."""
    
    async def upload(
        self,
        file: CandidateFile,
        kind: Union[str, MediaKind],
        folder: str,
        on_bytes_sent: Optional[Callable[[int], None]] = None,
        cancel_token: Optional[CancelToken] = None
    ) -> AssetDescriptor:
        """
        Transmit a file.
        
        Args:
            file: File to send
            kind: Media kind
            folder: Destination folder hint
            on_bytes_sent: Called with cumulative bytes written, in order
            cancel_token: Must abort the transfer when cancelled
            
        Returns:
            Descriptor of the stored asset
        """
        ...
    
    async def delete(
        self,
        public_id: str,
        resource_type: Optional[Union[str, MediaKind]] = None
    ) -> DeleteResult:
        """Remove an asset; raises AssetNotFoundError if it does not exist."""
        ...


class NetworkStateProtocol(Protocol):
    """Read-only connectivity view."""
    
    @property
    def is_online(self) -> bool:
        ...
