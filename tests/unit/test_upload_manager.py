"""Tests for UploadManager."""
import asyncio
from unittest.mock import Mock

import pytest

from mediaup.core.api.config import RetryConfig, UploadSettings
from mediaup.core.exceptions import (
    FileValidationError,
    OfflineError,
    RemoteRejectionError,
    TransientTransportError,
    UploadCancelled,
    ValidationCategory,
)
from mediaup.core.network import NetworkMonitor, StaticSource
from mediaup.core.upload import CandidateFile, UploadManager, UploadStatus
from mediaup.core.validation import FileValidator
from tests.conftest import FakeProbeHost, FakeStore, HangingStore


def make_manager(store, network=None, interval=0.0, max_retries=3, probe=None, base_delay=0):
    return UploadManager(
        store,
        FileValidator(probe or FakeProbeHost()),
        network,
        RetryConfig(max_retries=max_retries, base_delay=base_delay),
        UploadSettings(progress_interval=interval),
    )


class TestUploadSuccess:
    """Test suite for successful uploads."""
    
    @pytest.mark.asyncio
    async def test_upload_image(self, fake_store, image_file):
        """Test a valid image is stored and described."""
        manager = make_manager(fake_store)
        
        asset = await manager.upload(image_file, 'image', 'articles')
        
        assert asset.public_id == 'articles/cover'
        assert asset.url.endswith('articles/cover.png')
        assert fake_store.uploads == [('cover.png', 'image', 'articles')]
    
    @pytest.mark.asyncio
    async def test_default_folder(self, fake_store, video_file):
        """Test the configured default folder is used."""
        manager = make_manager(fake_store)
        
        asset = await manager.upload(video_file, 'video')
        
        assert asset.public_id == 'wuridao/clip'
    
    @pytest.mark.asyncio
    async def test_session_lifecycle(self, fake_store, image_file):
        """Test explicit sessions end completed and are released."""
        manager = make_manager(fake_store)
        session = manager.create_session(image_file, 'image')
        
        assert manager.get_session(session.id) is session
        asset = await manager.run(session)
        
        assert session.status is UploadStatus.COMPLETED
        assert session.result == asset
        assert session.attempt_count == 1
        assert session.bytes_sent == image_file.size_bytes
        assert manager.get_session(session.id) is None
        assert manager.upload_speed == 0.0
    
    @pytest.mark.asyncio
    async def test_progress_reaches_hundred(self, fake_store, image_file):
        """Test progress ends at 100 percent."""
        manager = make_manager(fake_store)
        updates = []
        
        await manager.upload(image_file, 'image', on_progress=updates.append)
        
        assert updates
        assert updates[-1].percent == 100
        assert updates[-1].bytes_sent == image_file.size_bytes
        assert not any(u.cancelled for u in updates)
    
    @pytest.mark.asyncio
    async def test_progress_throttled(self, image_file):
        """Test bursts of byte reports are coalesced by the interval."""
        store = FakeStore(steps=50)
        manager = make_manager(store, interval=60.0)
        updates = []
        
        await manager.upload(image_file, 'image', on_progress=updates.append)
        
        assert len(updates) == 2
        assert updates[-1].percent == 100
    
    @pytest.mark.asyncio
    async def test_concurrent_uploads_independent(self, fake_store, image_file, video_file):
        """Test concurrent sessions do not share state."""
        manager = make_manager(fake_store)
        image_updates, video_updates = [], []
        
        image_asset, video_asset = await asyncio.gather(
            manager.upload(image_file, 'image', 'a', on_progress=image_updates.append),
            manager.upload(video_file, 'video', 'b', on_progress=video_updates.append),
        )
        
        assert image_asset.public_id == 'a/cover'
        assert video_asset.public_id == 'b/clip'
        assert {u.session_id for u in image_updates}.isdisjoint(
            {u.session_id for u in video_updates}
        )
        assert image_updates[-1].total_bytes == image_file.size_bytes
        assert video_updates[-1].total_bytes == video_file.size_bytes


class TestValidationGate:
    """Test suite for validation before transmission."""
    
    @pytest.mark.asyncio
    async def test_invalid_file_never_sent(self, fake_store):
        """Test a rejected file causes no store call."""
        manager = make_manager(fake_store)
        empty = CandidateFile.from_bytes('empty.png', b'', 'image/png')
        
        with pytest.raises(FileValidationError) as exc_info:
            await manager.upload(empty, 'image')
        
        assert exc_info.value.category is ValidationCategory.EMPTY
        assert fake_store.calls == 0
    
    @pytest.mark.asyncio
    async def test_wrong_kind_rejected(self, fake_store, video_file):
        """Test a video uploaded as an image fails the type check."""
        manager = make_manager(fake_store)
        
        with pytest.raises(FileValidationError) as exc_info:
            await manager.upload(video_file, 'image')
        
        assert exc_info.value.category is ValidationCategory.TYPE
        assert fake_store.calls == 0
    
    @pytest.mark.asyncio
    async def test_failed_session_state(self, fake_store):
        """Test the session records the validation failure."""
        manager = make_manager(fake_store, probe=FakeProbeHost(dimensions=(50, 50)))
        small = CandidateFile.from_bytes('small.png', b'\x89PNG' + b'\x00' * 64, 'image/png')
        session = manager.create_session(small, 'image')
        
        with pytest.raises(FileValidationError):
            await manager.run(session)
        
        assert session.status is UploadStatus.FAILED
        assert session.error.category is ValidationCategory.DIMENSION


class TestRetries:
    """Test suite for retry behaviour."""
    
    @pytest.mark.asyncio
    async def test_transient_then_success(self, image_file):
        """Test two transient failures then success uses three attempts."""
        store = FakeStore([
            TransientTransportError('reset'),
            TransientTransportError('timeout'),
        ])
        manager = make_manager(store)
        session = manager.create_session(image_file, 'image')
        
        asset = await manager.run(session)
        
        assert asset.public_id == 'wuridao/cover'
        assert session.attempt_count == 3
        assert store.calls == 3
    
    @pytest.mark.asyncio
    async def test_exhausted_raises_last_error(self, image_file):
        """Test the last transient error propagates once retries run out."""
        errors = [TransientTransportError(f"fail {i}", 503) for i in range(4)]
        store = FakeStore(list(errors))
        manager = make_manager(store)
        session = manager.create_session(image_file, 'image')
        
        with pytest.raises(TransientTransportError) as exc_info:
            await manager.run(session)
        
        assert exc_info.value is errors[-1]
        assert store.calls == 4
        assert session.status is UploadStatus.FAILED
    
    @pytest.mark.asyncio
    async def test_rejection_not_retried(self, image_file):
        """Test a 4xx rejection fails immediately."""
        store = FakeStore([RemoteRejectionError('Unsupported file format', 415)])
        manager = make_manager(store)
        
        with pytest.raises(RemoteRejectionError):
            await manager.upload(image_file, 'image')
        
        assert store.calls == 1
    
    @pytest.mark.asyncio
    async def test_zero_retries(self, image_file):
        """Test max_retries=0 gives a single attempt."""
        store = FakeStore([TransientTransportError('reset')])
        manager = make_manager(store, max_retries=0)
        
        with pytest.raises(TransientTransportError):
            await manager.upload(image_file, 'image')
        
        assert store.calls == 1
    
    @pytest.mark.asyncio
    async def test_progress_monotonic_across_retries(self, image_file):
        """Test a retried attempt never reports less than already shown."""
        store = FakeStore([TransientTransportError('reset')])
        manager = make_manager(store)
        updates = []
        
        await manager.upload(image_file, 'image', on_progress=updates.append)
        
        sent = [u.bytes_sent for u in updates]
        assert sent == sorted(sent)
        assert len(sent) == len(set(sent))
        assert updates[-1].percent == 100


class TestConnectivity:
    """Test suite for the online gate."""
    
    @pytest.mark.asyncio
    async def test_offline_fails_fast(self, fake_store, image_file):
        """Test no transmission happens while offline."""
        monitor = NetworkMonitor(StaticSource(is_online=False))
        await monitor.start()
        manager = make_manager(fake_store, network=monitor)
        
        with pytest.raises(OfflineError):
            await manager.upload(image_file, 'image')
        
        assert fake_store.calls == 0
    
    @pytest.mark.asyncio
    async def test_connection_lost_before_retry(self, image_file):
        """Test a retry attempt after losing connectivity fails with OfflineError."""
        monitor = NetworkMonitor()
        
        class DroppingStore(FakeStore):
            async def upload(self, *args, **kwargs):
                monitor.handle_offline()
                return await super().upload(*args, **kwargs)
        
        store = DroppingStore([TransientTransportError('connection reset')])
        manager = make_manager(store, network=monitor)
        
        with pytest.raises(OfflineError):
            await manager.upload(image_file, 'image')
        
        assert store.calls == 1
    
    @pytest.mark.asyncio
    async def test_no_monitor_means_online(self, fake_store):
        """Test managers without a network view assume connectivity."""
        assert make_manager(fake_store).is_online is True


class TestCancellation:
    """Test suite for cancel()."""
    
    @pytest.mark.asyncio
    async def test_cancel_during_transmit(self, image_file):
        """Test cancelling mid-transfer resolves as cancelled with a final notice."""
        store = HangingStore()
        manager = make_manager(store)
        session = manager.create_session(image_file, 'image')
        updates = []
        
        task = asyncio.create_task(manager.run(session, on_progress=updates.append))
        await asyncio.wait_for(store.started.wait(), 1)
        
        assert manager.cancel(session.id) is True
        with pytest.raises(UploadCancelled):
            await asyncio.wait_for(task, 1)
        
        assert session.status is UploadStatus.CANCELLED
        assert updates[-1].cancelled is True
        assert updates[-1].percent is None
        assert sum(1 for u in updates if u.cancelled) == 1
        assert not isinstance(session.error, FileValidationError)
    
    @pytest.mark.asyncio
    async def test_cancel_is_not_a_failure(self, image_file):
        """Test cancellation is distinguishable from upload failure."""
        store = HangingStore()
        manager = make_manager(store)
        session = manager.create_session(image_file, 'image')
        
        task = asyncio.create_task(manager.run(session))
        await asyncio.wait_for(store.started.wait(), 1)
        manager.cancel(session.id)
        
        result = await asyncio.gather(task, return_exceptions=True)
        
        assert isinstance(result[0], UploadCancelled)
        assert session.status is not UploadStatus.FAILED
    
    @pytest.mark.asyncio
    async def test_cancel_before_run(self, fake_store, image_file):
        """Test a session cancelled while idle never transmits."""
        manager = make_manager(fake_store)
        session = manager.create_session(image_file, 'image')
        
        assert manager.cancel(session.id) is True
        with pytest.raises(UploadCancelled):
            await manager.run(session)
        
        assert fake_store.calls == 0
    
    def test_cancel_idle_releases_session(self, fake_store, image_file):
        """Test a cancelled session that never ran leaves the registry."""
        manager = make_manager(fake_store)
        session = manager.create_session(image_file, 'image')
        
        assert manager.cancel(session.id) is True
        assert manager.get_session(session.id) is None
        assert manager.active_sessions == {}
    
    @pytest.mark.asyncio
    async def test_cancel_during_backoff(self, image_file):
        """Test cancelling while waiting to retry stops all further activity."""
        store = FakeStore([TransientTransportError('connection reset')])
        manager = make_manager(store, base_delay=30)
        session = manager.create_session(image_file, 'image')
        updates = []
        
        task = asyncio.create_task(manager.run(session, on_progress=updates.append))
        for _ in range(200):
            if session.status is UploadStatus.RETRYING:
                break
            await asyncio.sleep(0.005)
        assert session.status is UploadStatus.RETRYING
        seen_before_cancel = len(updates)
        
        assert manager.cancel(session.id) is True
        with pytest.raises(UploadCancelled):
            await asyncio.wait_for(task, 1)
        await asyncio.sleep(0.01)
        
        assert store.calls == 1
        assert session.status is UploadStatus.CANCELLED
        assert sum(1 for u in updates if u.cancelled) == 1
        assert updates[-1].cancelled is True
        assert len(updates) == seen_before_cancel + 1
    
    @pytest.mark.asyncio
    async def test_cancel_completed_session_is_noop(self, fake_store, image_file):
        """Test cancelling a finished session changes nothing."""
        manager = make_manager(fake_store)
        session = manager.create_session(image_file, 'image')
        await manager.run(session)
        
        assert manager.cancel(session.id) is False
        assert session.status is UploadStatus.COMPLETED
    
    def test_cancel_unknown_session(self, fake_store):
        """Test unknown ids are ignored."""
        assert make_manager(fake_store).cancel('missing') is False
    
    @pytest.mark.asyncio
    async def test_cancel_one_of_two(self, image_file, video_file):
        """Test cancelling one session leaves a concurrent one untouched."""
        hanging = HangingStore()
        manager = make_manager(hanging)
        other = make_manager(FakeStore())
        session = manager.create_session(image_file, 'image')
        
        task = asyncio.create_task(manager.run(session))
        video_asset = await other.upload(video_file, 'video')
        await asyncio.wait_for(hanging.started.wait(), 1)
        manager.cancel(session.id)
        
        with pytest.raises(UploadCancelled):
            await task
        assert video_asset.public_id == 'wuridao/clip'


class TestDeleteAsset:
    """Test suite for delete_asset."""
    
    @pytest.mark.asyncio
    async def test_delete_idempotent(self, fake_store, image_file):
        """Test deleting twice succeeds both times."""
        manager = make_manager(fake_store)
        asset = await manager.upload(image_file, 'image', 'articles')
        
        first = await manager.delete_asset(asset.public_id)
        second = await manager.delete_asset(asset.public_id)
        
        assert first.result == 'ok'
        assert first.deleted is True
        assert second.result == 'not found'
        assert second.deleted is False
    
    @pytest.mark.asyncio
    async def test_delete_empty_id(self, fake_store):
        """Test an empty id is skipped without contacting the store."""
        result = await make_manager(fake_store).delete_asset('')
        
        assert result.result == 'skipped'
        assert fake_store.delete_calls == 0
    
    @pytest.mark.asyncio
    async def test_delete_retries_transient(self, fake_store):
        """Test transient delete failures are retried."""
        fake_store.assets.add('articles/cover')
        fake_store.delete_outcomes = [TransientTransportError('reset')]
        
        result = await make_manager(fake_store).delete_asset('articles/cover')
        
        assert result.result == 'ok'
        assert fake_store.delete_calls == 2
    
    @pytest.mark.asyncio
    async def test_delete_failure_propagates(self, fake_store):
        """Test non-transient delete failures are raised."""
        fake_store.assets.add('articles/cover')
        fake_store.delete_outcomes = [RemoteRejectionError('Forbidden', 403)]
        
        with pytest.raises(RemoteRejectionError):
            await make_manager(fake_store).delete_asset('articles/cover')


class TestSpeedFormatting:
    """Test suite for the manager's speed helpers."""
    
    def test_format_speed(self):
        """Test the static formatter."""
        assert UploadManager.format_speed(1500) == '1.5 KB/s'
    
    def test_retry_config_exposed(self, fake_store):
        """Test retry_config accessor."""
        assert make_manager(fake_store, max_retries=5).retry_config.max_attempts == 6


class TestProgressPayload:
    """Test suite for UploadProgress contents."""
    
    @pytest.mark.asyncio
    async def test_attempt_reported(self, image_file):
        """Test notices carry the session id and the attempt number."""
        store = FakeStore()
        manager = make_manager(store)
        on_progress = Mock()
        session = manager.create_session(image_file, 'image')
        
        await manager.run(session, on_progress=on_progress)
        
        progress = on_progress.call_args_list[-1].args[0]
        assert progress.session_id == session.id
        assert progress.attempt == 1
        assert progress.total_bytes == image_file.size_bytes
        assert progress.speed_label.endswith('/s')
