"""Tests for CancelToken."""
import asyncio

import pytest

from mediaup.core.exceptions import UploadCancelled
from mediaup.core.upload import CancelToken


class TestCancelToken:
    """Test suite for CancelToken."""
    
    def test_cancel_once(self):
        """Test cancel reports whether it changed anything."""
        token = CancelToken('s1')
        
        assert token.cancelled is False
        assert token.cancel() is True
        assert token.cancel() is False
        assert token.cancelled is True
    
    def test_raise_if_cancelled(self):
        """Test the error carries the session id."""
        token = CancelToken('s1')
        token.raise_if_cancelled()
        token.cancel()
        
        with pytest.raises(UploadCancelled) as exc_info:
            token.raise_if_cancelled()
        
        assert exc_info.value.session_id == 's1'
    
    @pytest.mark.asyncio
    async def test_run_returns_result(self):
        """Test run passes results through."""
        async def work():
            return 42
        
        assert await CancelToken().run(work()) == 42
    
    @pytest.mark.asyncio
    async def test_run_propagates_errors(self):
        """Test run re-raises the awaitable's own error."""
        async def work():
            raise ValueError('bad')
        
        with pytest.raises(ValueError):
            await CancelToken().run(work())
    
    @pytest.mark.asyncio
    async def test_run_aborts_on_cancel(self):
        """Test a pending awaitable is cancelled when the token fires."""
        token = CancelToken()
        started = asyncio.Event()
        aborted = asyncio.Event()
        
        async def work():
            started.set()
            try:
                await asyncio.sleep(60)
            except asyncio.CancelledError:
                aborted.set()
                raise
        
        task = asyncio.create_task(token.run(work()))
        await started.wait()
        token.cancel()
        
        with pytest.raises(UploadCancelled):
            await asyncio.wait_for(task, 1)
        assert aborted.is_set()
    
    @pytest.mark.asyncio
    async def test_run_when_already_cancelled(self):
        """Test nothing runs after cancellation."""
        token = CancelToken()
        token.cancel()
        ran = []
        
        async def work():
            ran.append(True)
        
        with pytest.raises(UploadCancelled):
            await token.run(work())
        assert ran == []
    
    @pytest.mark.asyncio
    async def test_sleep_interrupted(self):
        """Test a backoff sleep ends early on cancel."""
        token = CancelToken()
        
        async def cancel_soon():
            await asyncio.sleep(0.01)
            token.cancel()
        
        asyncio.create_task(cancel_soon())
        with pytest.raises(UploadCancelled):
            await asyncio.wait_for(token.sleep(60), 1)
    
    @pytest.mark.asyncio
    async def test_sleep_elapses(self):
        """Test an uncancelled sleep returns normally."""
        await CancelToken().sleep(0.01)
