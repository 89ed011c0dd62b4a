"""
Cooperative cancellation for uploads.

A CancelToken is passed into every suspension point of a session: the
transport call (`run`), the backoff delay (`sleep`) and the chunk stream
(`raise_if_cancelled`).
"""
import asyncio
from typing import Awaitable, Optional, TypeVar

from ..exceptions import UploadCancelled

T = TypeVar('T')


class CancelToken:
    """
    One-shot cancellation signal.
    
    Example:
        >>> token = CancelToken()
        >>> task = asyncio.create_task(token.run(store.upload(...)))
        >>> token.cancel()
        >>> await task  # raises UploadCancelled
    """
    
    def __init__(self, session_id: Optional[str] = None):
        self.session_id = session_id
        self._event = asyncio.Event()
    
    @property
    def cancelled(self) -> bool:
        return self._event.is_set()
    
    def cancel(self) -> bool:
        """Signal cancellation. Returns False if already cancelled."""
        if self._event.is_set():
            return False
        self._event.set()
        return True
    
    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise UploadCancelled(self.session_id)
    
    async def wait(self) -> None:
        """Block until cancellation is signalled."""
        await self._event.wait()
    
    async def sleep(self, delay: float) -> None:
        """
        Sleep for `delay` seconds unless cancelled first.
        
        Raises:
            UploadCancelled: If the token fires before the delay elapses
        """
        self.raise_if_cancelled()
        try:
            await asyncio.wait_for(self._event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return
        raise UploadCancelled(self.session_id)
    
    async def run(self, awaitable: Awaitable[T]) -> T:
        """
        Await `awaitable`, aborting it as soon as the token fires.
        
        Raises:
            UploadCancelled: If cancelled before or while the awaitable runs
        """
        if self._event.is_set():
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise UploadCancelled(self.session_id)
        
        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            done, _ = await asyncio.wait(
                {task, waiter},
                return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            waiter.cancel()
        
        if task not in done:
            task.cancel()
            # Let the transport unwind; its CancelledError is expected here
            await asyncio.gather(task, return_exceptions=True)
            raise UploadCancelled(self.session_id)
        
        if self._event.is_set() and task.exception() is not None:
            raise UploadCancelled(self.session_id)
        return task.result()
