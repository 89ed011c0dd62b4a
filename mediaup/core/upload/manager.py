"""
Upload manager.

Orchestrates validate -> transmit -> retry -> resolve for each upload
session, with cooperative cancellation and throttled progress telemetry.
Depends on abstractions (validator, network state, asset store) injected
by the caller.
"""
import time
from typing import Dict, Optional, Union

from .models import (
    AssetDescriptor,
    CandidateFile,
    DeleteResult,
    MediaKind,
    UploadProgress,
    UploadSession,
    UploadStatus,
)
from .protocols import AssetStoreProtocol, NetworkStateProtocol, ProgressCallback
from .telemetry import SpeedMeter, format_speed
from ..api.config import RetryConfig, UploadSettings
from ..api.errors import StoreErrorMessages
from ..api.retry import with_retry
from ..exceptions import (
    AssetNotFoundError,
    FileValidationError,
    OfflineError,
    TransientTransportError,
    UploadCancelled,
)
from ..logging import get_logger
from ..validation import ConstraintSet, FileValidator

logger = get_logger('mediaup.upload.manager')


class UploadManager:
    """
    Coordinates uploads to the asset store.
    
    Each call to `upload` (or `create_session` + `run`) owns its own
    UploadSession; concurrent uploads share nothing but the read-only
    network state and the transport.
    
    Example:
        >>> manager = UploadManager(store, validator, monitor)
        >>> asset = await manager.upload(photo, 'image', 'articles', on_progress=print)
        >>> asset.url
        'https://res.cloudinary.com/.../articles/photo.jpg'
    """
    
    def __init__(
        self,
        store: AssetStoreProtocol,
        validator: Optional[FileValidator] = None,
        network: Optional[NetworkStateProtocol] = None,
        retry_config: Optional[RetryConfig] = None,
        settings: Optional[UploadSettings] = None
    ):
        """
        Initialize upload manager.
        
        Args:
            store: Remote asset store transport
            validator: File validator (default probes locally)
            network: Connectivity view; None means always online
            retry_config: Retry ceiling and backoff
            settings: Folder default and progress throttling
        """
        self._store = store
        self._validator = validator or FileValidator()
        self._network = network
        self._retry = retry_config or RetryConfig()
        self._settings = settings or UploadSettings()
        self._sessions: Dict[str, UploadSession] = {}
        self._reporters: Dict[str, _ProgressReporter] = {}
        self.upload_speed: float = 0.0
    
    @property
    def is_online(self) -> bool:
        return self._network.is_online if self._network is not None else True
    
    @property
    def retry_config(self) -> RetryConfig:
        return self._retry
    
    @staticmethod
    def format_speed(bytes_per_second: float) -> str:
        return format_speed(bytes_per_second)
    
    def get_session(self, session_id: str) -> Optional[UploadSession]:
        return self._sessions.get(session_id)
    
    @property
    def active_sessions(self) -> Dict[str, UploadSession]:
        return dict(self._sessions)
    
    def create_session(
        self,
        file: CandidateFile,
        kind: Union[str, MediaKind] = MediaKind.IMAGE,
        destination_folder: Optional[str] = None
    ) -> UploadSession:
        """Register a new idle session that `cancel` can reach."""
        session = UploadSession(
            file=file,
            kind=MediaKind.coerce(kind),
            destination_folder=destination_folder or self._settings.default_folder,
        )
        session.cancel_token.session_id = session.id
        self._sessions[session.id] = session
        return session
    
    async def upload(
        self,
        file: CandidateFile,
        kind: Union[str, MediaKind] = MediaKind.IMAGE,
        destination_folder: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
        constraints: Optional[ConstraintSet] = None
    ) -> AssetDescriptor:
        """
        Validate and upload a file.
        
        Returns:
            Descriptor of the stored asset
            
        Raises:
            FileValidationError: The file failed admission; nothing was sent
            OfflineError: No connectivity at the start of an attempt
            TransientTransportError: Last error once retries are exhausted
            RemoteRejectionError: The store refused the file
            UploadCancelled: `cancel` was called for this session
        """
        session = self.create_session(file, kind, destination_folder)
        return await self.run(session, on_progress, constraints)
    
    async def run(
        self,
        session: UploadSession,
        on_progress: Optional[ProgressCallback] = None,
        constraints: Optional[ConstraintSet] = None
    ) -> AssetDescriptor:
        """Drive a session created by `create_session` to a terminal state."""
        self._sessions.setdefault(session.id, session)
        try:
            return await self._run(session, on_progress, constraints)
        finally:
            self._sessions.pop(session.id, None)
    
    async def _run(
        self,
        session: UploadSession,
        on_progress: Optional[ProgressCallback],
        constraints: Optional[ConstraintSet]
    ) -> AssetDescriptor:
        file = session.file
        if not session.advance(UploadStatus.VALIDATING):
            raise UploadCancelled(session.id)
        logger.info(
            f"Starting upload {session.id}: {file.name} "
            f"({file.size_bytes / (1024 * 1024):.2f} MB, {session.kind.value})"
        )
        
        reporter = _ProgressReporter(self, session, on_progress, self._settings.progress_interval)
        self._reporters[session.id] = reporter
        
        def on_retry(attempt_number: int, exc: BaseException, delay: float) -> None:
            session.advance(UploadStatus.RETRYING)
            logger.warning(
                f"Upload {session.id} attempt {attempt_number} failed: {exc}; "
                f"retrying in {delay:.1f}s"
            )
        
        try:
            error = await session.cancel_token.run(
                self._validator.validate_for_kind(file, session.kind, constraints)
            )
            if error:
                raise error
            
            session.advance(UploadStatus.TRANSMITTING)
            asset = await with_retry(
                lambda: self._attempt(session, reporter),
                self._retry.max_retries,
                self._retry.base_delay,
                should_retry=lambda exc: isinstance(exc, TransientTransportError),
                sleep=session.cancel_token.sleep,
                on_retry=on_retry,
            )
        except UploadCancelled:
            self._mark_cancelled(session, reporter)
            logger.info(f"Upload {session.id} cancelled")
            raise
        except Exception as e:
            if session.status is UploadStatus.CANCELLED:
                raise UploadCancelled(session.id) from e
            self._fail(session, e)
            raise
        finally:
            self.upload_speed = 0.0
            self._reporters.pop(session.id, None)
        
        if session.is_terminal:
            raise UploadCancelled(session.id)
        reporter.complete()
        session.advance(UploadStatus.COMPLETED)
        session.result = asset
        elapsed = time.monotonic() - session.started_at
        logger.info(
            f"Upload {session.id} completed in {elapsed:.2f}s after "
            f"{session.attempt_count} attempt(s): {asset.public_id}"
        )
        return asset
    
    async def _attempt(self, session: UploadSession, reporter: '_ProgressReporter') -> AssetDescriptor:
        session.cancel_token.raise_if_cancelled()
        if not self.is_online:
            logger.warning(f"Upload {session.id} blocked: network offline")
            raise OfflineError(StoreErrorMessages.OFFLINE)
        
        if session.status is UploadStatus.RETRYING:
            session.advance(UploadStatus.TRANSMITTING)
        session.attempt_count += 1
        session.bytes_sent = 0
        reporter.begin_attempt()
        
        return await self._store.upload(
            session.file,
            session.kind,
            session.destination_folder,
            on_bytes_sent=reporter.on_bytes_sent,
            cancel_token=session.cancel_token,
        )
    
    def cancel(self, session_id: str) -> bool:
        """
        Cancel a session.
        
        Returns:
            True if a live session was cancelled; False for unknown or
            already-terminal sessions (no-op)
        """
        session = self._sessions.get(session_id)
        if session is None or session.is_terminal:
            return False
        never_started = session.status is UploadStatus.IDLE
        session.advance(UploadStatus.CANCELLED)
        if never_started:
            # Idle sessions have no run() to release them
            self._sessions.pop(session_id, None)
        session.error = UploadCancelled(session.id)
        session.cancel_token.cancel()
        reporter = self._reporters.pop(session.id, None)
        if reporter is not None:
            reporter.notify_cancelled()
        logger.info(f"Cancellation requested for upload {session_id}")
        return True
    
    def _mark_cancelled(self, session: UploadSession, reporter: '_ProgressReporter') -> None:
        if session.advance(UploadStatus.CANCELLED):
            session.error = UploadCancelled(session.id)
            reporter.notify_cancelled()
    
    def _fail(self, session: UploadSession, error: BaseException) -> None:
        if session.advance(UploadStatus.FAILED):
            session.error = error
            if isinstance(error, FileValidationError):
                logger.info(f"Upload {session.id} rejected: {error.message}")
            else:
                logger.error(f"Upload {session.id} failed: {error}")
    
    async def delete_asset(self, public_id: str) -> DeleteResult:
        """
        Remove an asset from the store.
        
        Deleting an asset that no longer exists succeeds with result
        'not found', so repeated deletes are safe. Transient failures are
        retried; anything else propagates.
        """
        if not public_id or not public_id.strip():
            logger.info("Empty public id, skipping asset deletion")
            return DeleteResult(public_id=public_id or '', result='skipped',
                                message='Skipped deletion: empty public id')
        
        logger.info(f"Deleting asset {public_id}")
        try:
            return await with_retry(
                lambda: self._store.delete(public_id),
                self._retry.max_retries,
                self._retry.base_delay,
                should_retry=lambda exc: isinstance(exc, TransientTransportError),
            )
        except AssetNotFoundError:
            logger.info(f"Asset {public_id} not found, treating as already deleted")
            return DeleteResult(public_id=public_id, result='not found',
                                message='Resource not found (already deleted)')
        except Exception as e:
            logger.error(f"Failed to delete asset {public_id}: {e}")
            raise


class _ProgressReporter:
    """
    Throttled, monotonic progress delivery for one session.
    
    Bytes delivered never decrease across retries: a retried attempt stays
    silent until it passes the furthest point already reported.
    """
    
    def __init__(
        self,
        manager: UploadManager,
        session: UploadSession,
        callback: Optional[ProgressCallback],
        interval: float
    ):
        self._manager = manager
        self._session = session
        self._callback = callback
        self._interval = interval
        self._meter = SpeedMeter()
        self._reported_bytes = -1
        self._last_emit: Optional[float] = None
    
    def begin_attempt(self) -> None:
        self._meter.start()
    
    def on_bytes_sent(self, sent: int) -> None:
        session = self._session
        if session.is_terminal:
            return
        session.bytes_sent = sent
        now = time.monotonic()
        session.last_progress_at = now
        
        done = sent >= session.total_bytes
        if not done and self._last_emit is not None and now - self._last_emit < self._interval:
            return
        if sent <= self._reported_bytes:
            return
        
        speed = self._meter.sample(sent)
        self._manager.upload_speed = speed
        self._emit(sent, speed)
    
    def _emit(self, sent: int, speed: float) -> None:
        self._reported_bytes = sent
        self._last_emit = time.monotonic()
        if self._callback is None:
            return
        session = self._session
        self._callback(UploadProgress(
            session_id=session.id,
            percent=session.percent,
            speed_label=format_speed(speed),
            bytes_sent=sent,
            total_bytes=session.total_bytes,
            attempt=session.attempt_count,
            eta_seconds=self._meter.eta(session.total_bytes - sent),
        ))
    
    def complete(self) -> None:
        """Deliver the 100 % sample if the transport never reported it."""
        session = self._session
        session.bytes_sent = session.total_bytes
        if self._reported_bytes < session.total_bytes:
            self._emit(session.total_bytes, self._meter.bytes_per_second)
    
    def notify_cancelled(self) -> None:
        """Final notice for a cancelled session; nothing follows it."""
        if self._callback is None:
            return
        session = self._session
        callback, self._callback = self._callback, None
        callback(UploadProgress(
            session_id=session.id,
            percent=None,
            speed_label=format_speed(0),
            bytes_sent=session.bytes_sent,
            total_bytes=session.total_bytes,
            attempt=session.attempt_count,
            cancelled=True,
        ))
