"""
Async asset store client.

Multipart uploads and deletions against the asset store HTTP endpoints.
Every failure is translated into the mediaup error taxonomy so callers
can decide what to retry.
"""
import asyncio
import time
from typing import Any, AsyncIterator, Callable, Dict, Optional, Union
from urllib.parse import quote

import aiohttp

from .config import APIConfig
from .errors import error_for_status, StoreErrorMessages
from ..exceptions import (
    AssetNotFoundError,
    RemoteRejectionError,
    TransientTransportError,
)
from ..logging import get_logger
from ..media import CandidateFile, MediaKind
from ..upload.cancellation import CancelToken
from ..upload.models import AssetDescriptor, DeleteResult


class AssetStoreClient:
    """
    Asynchronous asset store client.
    
    Features:
    - Streaming multipart upload with per-chunk byte callbacks
    - Cancellation through a CancelToken
    - Request-level timeout reported as a transient error
    - Connection pooling through a shared aiohttp session
    
    Example:
        >>> async with AssetStoreClient(APIConfig(base_url=url)) as store:
        ...     asset = await store.upload(file, MediaKind.IMAGE, 'articles')
    """
    
    UPLOAD_PATH = '/cloudinary/upload/{kind}'
    DELETE_PATH = '/cloudinary/{public_id}'
    HEALTH_PATH = '/cloudinary/health'
    
    def __init__(
        self,
        config: Optional[APIConfig] = None,
        session: Optional[aiohttp.ClientSession] = None,
        chunk_size: int = 64 * 1024
    ):
        """
        Initialize client.
        
        Args:
            config: API configuration (uses defaults if not provided)
            session: Optional shared session (closed by its owner, not here)
            chunk_size: Bytes per streamed body chunk
        """
        self._config = config or APIConfig.default()
        self._session = session
        self._owns_session = False
        self._chunk_size = chunk_size
        self._logger = get_logger('mediaup.upload.store')
    
    @property
    def config(self) -> APIConfig:
        return self._config
    
    @property
    def health_url(self) -> str:
        return f"{self._config.base_url}{self.HEALTH_PATH}"
    
    async def __aenter__(self) -> 'AssetStoreClient':
        await self._get_session()
        return self
    
    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
    
    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                connector=aiohttp.TCPConnector(**self._config.get_connector_kwargs()),
                **self._config.get_session_kwargs()
            )
            self._owns_session = True
        return self._session
    
    async def close(self):
        """Close session if we own it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
        if self._owns_session:
            self._session = None
            self._owns_session = False
    
    def upload_url(self, kind: MediaKind, folder: str) -> str:
        path = self.UPLOAD_PATH.format(kind=kind.value)
        return f"{self._config.base_url}{path}?folder={quote(folder, safe='')}"
    
    def delete_url(self, public_id: str) -> str:
        path = self.DELETE_PATH.format(public_id=quote(public_id, safe='/'))
        return f"{self._config.base_url}{path}"
    
    async def _stream(
        self,
        file: CandidateFile,
        on_bytes_sent: Optional[Callable[[int], None]],
        cancel_token: Optional[CancelToken]
    ) -> AsyncIterator[bytes]:
        sent = 0
        async for chunk in file.iter_chunks(self._chunk_size):
            if cancel_token:
                cancel_token.raise_if_cancelled()
            yield chunk
            # aiohttp only asks for the next chunk once this one is written
            sent += len(chunk)
            if on_bytes_sent:
                on_bytes_sent(sent)
    
    def _build_form(
        self,
        file: CandidateFile,
        kind: MediaKind,
        folder: str,
        on_bytes_sent: Optional[Callable[[int], None]],
        cancel_token: Optional[CancelToken]
    ) -> aiohttp.FormData:
        form = aiohttp.FormData()
        form.add_field(
            'file',
            self._stream(file, on_bytes_sent, cancel_token),
            filename=file.name,
            content_type=file.mime_type
        )
        form.add_field('folder', folder)
        form.add_field('resourceType', kind.value)
        return form
    
    async def upload(
        self,
        file: CandidateFile,
        kind: Union[str, MediaKind],
        folder: str,
        on_bytes_sent: Optional[Callable[[int], None]] = None,
        cancel_token: Optional[CancelToken] = None
    ) -> AssetDescriptor:
        """
        Upload one file in a single multipart request.
        
        Args:
            file: File to send
            kind: Media kind, selects the endpoint
            folder: Destination folder hint
            on_bytes_sent: Called with cumulative bytes written
            cancel_token: Aborts the request when cancelled
            
        Returns:
            Descriptor of the stored asset
            
        Raises:
            TransientTransportError: Timeout, connection failure or 5xx/408/429
            RemoteRejectionError: Other 4xx or malformed response
            UploadCancelled: If the token fires
        """
        kind = MediaKind.coerce(kind)
        url = self.upload_url(kind, folder)
        size_kb = file.size_bytes / 1024
        self._logger.debug(f"POST {url} ({file.name}, {size_kb:.1f} KB)")
        
        request = self._post(url, self._build_form(file, kind, folder, on_bytes_sent, cancel_token))
        if cancel_token is not None:
            data = await cancel_token.run(request)
        else:
            data = await request
        
        try:
            asset = AssetDescriptor.from_response(data)
        except (ValueError, AttributeError) as e:
            self._logger.error(f"Malformed upload response for {file.name}: {data!r}")
            raise RemoteRejectionError(f"Malformed asset store response: {e}") from e
        
        self._logger.info(f"Stored {file.name} as {asset.public_id}")
        return asset
    
    async def _post(self, url: str, form: aiohttp.FormData) -> Dict[str, Any]:
        session = await self._get_session()
        start = time.time()
        try:
            async with session.post(
                url,
                data=form,
                proxy=self._proxy()
            ) as response:
                if response.status >= 400:
                    detail = await self._error_detail(response)
                    raise error_for_status(response.status, detail)
                data = await response.json(content_type=None)
                elapsed = time.time() - start
                self._logger.debug(f"Upload request finished in {elapsed:.2f}s")
                return data
        except asyncio.TimeoutError as e:
            elapsed = time.time() - start
            self._logger.error(f"Upload timed out after {elapsed:.2f}s")
            raise TransientTransportError(StoreErrorMessages.TIMEOUT) from e
        except aiohttp.ContentTypeError as e:
            raise RemoteRejectionError(f"Malformed asset store response: {e.message}") from e
        except ValueError as e:
            raise RemoteRejectionError(f"Malformed asset store response: {e}") from e
        except aiohttp.ClientError as e:
            elapsed = time.time() - start
            self._logger.error(f"Upload transport failure after {elapsed:.2f}s: {e}")
            raise TransientTransportError(f"{StoreErrorMessages.GENERIC}: {e}") from e
    
    async def delete(
        self,
        public_id: str,
        resource_type: Optional[Union[str, MediaKind]] = None
    ) -> DeleteResult:
        """
        Remove an asset.
        
        Args:
            public_id: Identifier returned on upload
            resource_type: 'image' or 'video' (inferred from the id if omitted)
            
        Returns:
            DeleteResult with result 'ok'
            
        Raises:
            AssetNotFoundError: If the store reports the asset missing
            TransientTransportError / RemoteRejectionError: As for uploads
        """
        kind = MediaKind.coerce(resource_type) if resource_type else infer_resource_type(public_id)
        url = self.delete_url(public_id)
        session = await self._get_session()
        self._logger.debug(f"DELETE {url} (resource_type={kind.value})")
        
        try:
            async with session.delete(
                url,
                params={'resource_type': kind.value},
                proxy=self._proxy()
            ) as response:
                if response.status == 404:
                    raise AssetNotFoundError(public_id)
                if response.status >= 400:
                    detail = await self._error_detail(response)
                    raise error_for_status(response.status, detail)
                body = await response.json(content_type=None)
        except asyncio.TimeoutError as e:
            raise TransientTransportError(StoreErrorMessages.TIMEOUT) from e
        except (aiohttp.ContentTypeError, ValueError):
            body = {}
        except aiohttp.ClientError as e:
            raise TransientTransportError(f"Delete failed: {e}") from e
        
        body = body if isinstance(body, dict) else {}
        if body.get('result') == 'not found':
            raise AssetNotFoundError(public_id, 200)
        if body.get('result') not in (None, 'ok'):
            raise RemoteRejectionError(f"Delete failed for {public_id}: {body.get('result')}")
        return DeleteResult(public_id=public_id, result='ok', message=body.get('message', ''))
    
    def _proxy(self) -> Optional[str]:
        return self._config.proxy.to_aiohttp_proxy() if self._config.proxy else None
    
    @staticmethod
    async def _error_detail(response: aiohttp.ClientResponse) -> Optional[str]:
        try:
            body = await response.json(content_type=None)
        except (ValueError, aiohttp.ClientError):
            return None
        if isinstance(body, dict):
            message = body.get('message') or body.get('error')
            if isinstance(message, dict):
                message = message.get('message')
            return str(message) if message else None
        return None


def infer_resource_type(public_id: str) -> MediaKind:
    """Video assets live under a '/videos/' folder."""
    return MediaKind.VIDEO if '/videos/' in public_id else MediaKind.IMAGE
