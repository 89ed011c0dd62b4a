"""
MediaClient - High-level async client for validated media uploads.

Example:
    >>> async with MediaClient("https://api.example.com", auth_token=token) as media:
    ...     error = await media.validate_image_file(photo)
    ...     if error is None:
    ...         asset = await media.upload(photo, 'image', 'articles')
    ...         print(asset.url)
"""
from dataclasses import replace
from pathlib import Path
from typing import Optional, Union

from .core.api import (
    AssetStoreClient,
    APIConfig,
    ProxyConfig,
    SSLConfig,
    TimeoutConfig,
    RetryConfig,
    UploadSettings,
)
from .core.logging import get_logger
from .core.network import HealthCheckSource, NetworkMonitor, NetworkState
from .core.upload import (
    AssetDescriptor,
    CandidateFile,
    DeleteResult,
    MediaKind,
    ProgressCallback,
    UploadManager,
    UploadSession,
    format_speed,
)
from .core.upload.protocols import AssetStoreProtocol
from .core.exceptions import FileValidationError
from .core.validation import ConstraintSet, FileValidator, LocalProbeHost, ProbeHost


class MediaClient:
    """
    Caller-facing entry point.
    
    Owns one NetworkMonitor and one asset store transport for its lifetime
    and wires them into a FileValidator and an UploadManager.
    """
    
    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        auth_token: Optional[str] = None,
        config: Optional[APIConfig] = None,
        settings: Optional[UploadSettings] = None,
        network_monitor: Optional[NetworkMonitor] = None,
        probe_host: Optional[ProbeHost] = None,
        store: Optional[AssetStoreProtocol] = None,
        watch_connectivity: bool = False
    ):
        """
        Initialize media client.
        
        Args:
            base_url: Asset store base URL (overrides config.base_url)
            auth_token: Bearer token (overrides config.auth_token)
            config: Optional API configuration
            settings: Upload pipeline settings
            network_monitor: Shared monitor (one is created if omitted)
            probe_host: Media probe implementation (Pillow/ffprobe by default)
            store: Asset store transport (aiohttp client by default)
            watch_connectivity: Poll the store's health endpoint when creating
                the default monitor
        """
        overrides = {}
        if base_url:
            overrides['base_url'] = base_url
        if auth_token:
            overrides['auth_token'] = auth_token
        # The caller's config is never mutated
        self._config = replace(config or APIConfig.default(), **overrides)
        self._settings = settings or UploadSettings()
        self._logger = get_logger('mediaup.client')
        
        self._owns_store = store is None
        self._store = store or AssetStoreClient(self._config, chunk_size=self._settings.chunk_size)
        
        if network_monitor is None:
            source = None
            if watch_connectivity and isinstance(self._store, AssetStoreClient):
                source = HealthCheckSource(self._store.health_url)
            network_monitor = NetworkMonitor(source)
        self._monitor = network_monitor
        
        self._validator = FileValidator(probe_host or LocalProbeHost())
        self._manager = UploadManager(
            self._store,
            self._validator,
            self._monitor,
            retry_config=self._config.retry,
            settings=self._settings,
        )
    
    # =========================================================================
    # Configuration helpers
    # =========================================================================
    
    @staticmethod
    def create_config(
        base_url: str = 'http://localhost:3000',
        auth_token: Optional[str] = None,
        proxy: Optional[str] = None,
        proxy_user: Optional[str] = None,
        proxy_pass: Optional[str] = None,
        timeout: float = 60,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        verify_ssl: bool = True,
        user_agent: Optional[str] = None
    ) -> APIConfig:
        """
        Create API configuration with common options.
        
        Args:
            base_url: Asset store base URL
            auth_token: Bearer token
            proxy: Proxy URL (e.g., "http://proxy:8080")
            proxy_user: Proxy username
            proxy_pass: Proxy password
            timeout: Request timeout in seconds
            max_retries: Retries after the first attempt
            retry_delay: Base delay of the linear backoff
            verify_ssl: Whether to verify SSL certificates
            user_agent: Custom user agent string
        """
        proxy_config = None
        if proxy:
            proxy_config = ProxyConfig(
                url=proxy,
                username=proxy_user,
                password=proxy_pass
            )
        
        return APIConfig(
            base_url=base_url,
            auth_token=auth_token,
            proxy=proxy_config,
            timeout=TimeoutConfig(total=timeout),
            retry=RetryConfig(max_retries=max_retries, base_delay=retry_delay),
            ssl=SSLConfig(verify=verify_ssl),
            user_agent=user_agent or 'mediaup/1.0.0'
        )
    
    # =========================================================================
    # Lifecycle
    # =========================================================================
    
    async def start(self) -> 'MediaClient':
        """Start connectivity monitoring."""
        await self._monitor.start()
        self._logger.debug(f"Media client started against {self._config.base_url}")
        return self
    
    async def close(self):
        """Stop monitoring and release the HTTP session."""
        await self._monitor.stop()
        if self._owns_store and isinstance(self._store, AssetStoreClient):
            await self._store.close()
    
    async def __aenter__(self) -> 'MediaClient':
        return await self.start()
    
    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
    
    # =========================================================================
    # State for UI binding
    # =========================================================================
    
    @property
    def network(self) -> NetworkMonitor:
        return self._monitor
    
    @property
    def network_state(self) -> NetworkState:
        return self._monitor.state
    
    @property
    def is_online(self) -> bool:
        return self._monitor.is_online
    
    @property
    def connection_type(self) -> str:
        return self._monitor.connection_type
    
    @property
    def upload_speed(self) -> float:
        """Most recent transfer speed in bytes/second (0 when idle)."""
        return self._manager.upload_speed
    
    @property
    def manager(self) -> UploadManager:
        return self._manager
    
    @staticmethod
    def format_speed(bytes_per_second: float) -> str:
        return format_speed(bytes_per_second)
    
    # =========================================================================
    # Validation
    # =========================================================================
    
    async def validate_image_file(
        self,
        file: Union[CandidateFile, str, Path, None],
        max_size_bytes: Optional[int] = None
    ) -> Optional[FileValidationError]:
        """Validate an image; returns the violated constraint or None."""
        return await self._validator.validate_image(self._resolve(file), max_size_bytes)
    
    async def validate_video_file(
        self,
        file: Union[CandidateFile, str, Path, None],
        max_size_bytes: Optional[int] = None
    ) -> Optional[FileValidationError]:
        """Validate a video; returns the violated constraint or None."""
        return await self._validator.validate_video(self._resolve(file), max_size_bytes)
    
    # =========================================================================
    # Upload / delete
    # =========================================================================
    
    def create_session(
        self,
        file: Union[CandidateFile, str, Path],
        kind: Union[str, MediaKind] = MediaKind.IMAGE,
        folder: Optional[str] = None
    ) -> UploadSession:
        """Create a session up front so it can be cancelled by id."""
        return self._manager.create_session(self._coerce(file), kind, folder)
    
    async def upload(
        self,
        file: Union[CandidateFile, str, Path, UploadSession],
        kind: Union[str, MediaKind] = MediaKind.IMAGE,
        folder: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
        max_size_bytes: Optional[int] = None
    ) -> AssetDescriptor:
        """
        Validate and upload a file to the asset store.
        
        Args:
            file: Candidate file, path, or a session from `create_session`
            kind: 'image' or 'video'
            folder: Destination folder (default from settings)
            on_progress: Called with UploadProgress at a bounded rate
            max_size_bytes: Override the kind's size ceiling
            
        Returns:
            Descriptor with url and public id
        """
        if isinstance(file, UploadSession):
            session = file
        else:
            session = self.create_session(file, kind, folder)
        constraints = ConstraintSet.for_kind(session.kind).with_max_size(max_size_bytes)
        return await self._manager.run(session, on_progress, constraints)
    
    def cancel(self, session_id: str) -> bool:
        """Cancel an upload by session id. No-op for finished sessions."""
        return self._manager.cancel(session_id)
    
    async def delete(self, public_id: str) -> DeleteResult:
        """Remove an asset; already-deleted assets count as success."""
        return await self._manager.delete_asset(public_id)
    
    @staticmethod
    def _coerce(file: Union[CandidateFile, str, Path, None]) -> Optional[CandidateFile]:
        if file is None or isinstance(file, CandidateFile):
            return file
        return CandidateFile.from_path(file)
    
    def _resolve(self, file: Union[CandidateFile, str, Path, None]) -> Optional[CandidateFile]:
        # A path that does not resolve to a file is reported as "no file selected"
        try:
            return self._coerce(file)
        except (FileNotFoundError, ValueError) as e:
            self._logger.debug(f"Cannot read candidate {file}: {e}")
            return None
