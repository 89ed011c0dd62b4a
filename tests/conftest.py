"""Pytest fixtures for mediaup tests."""
import asyncio
import io
from pathlib import Path

import pytest
from PIL import Image

from mediaup.core.exceptions import AssetNotFoundError
from mediaup.core.upload.models import AssetDescriptor, CandidateFile, DeleteResult
from mediaup.core.validation import ImageDimensions


def make_image_bytes(width: int = 200, height: int = 200, fmt: str = 'PNG') -> bytes:
    """Encodes a solid-color image of the given size."""
    buffer = io.BytesIO()
    Image.new('RGB', (width, height), (200, 30, 30)).save(buffer, format=fmt)
    return buffer.getvalue()


class FakeProbeHost:
    """Probe host returning canned results."""
    
    def __init__(self, dimensions=(800, 600), duration=10.0):
        self.dimensions = dimensions
        self.duration = duration
        self.image_calls = 0
        self.video_calls = 0
    
    async def probe_image(self, file):
        self.image_calls += 1
        if isinstance(self.dimensions, BaseException):
            raise self.dimensions
        return ImageDimensions(*self.dimensions)
    
    async def probe_video(self, file):
        self.video_calls += 1
        if isinstance(self.duration, BaseException):
            raise self.duration
        return self.duration


class FakeStore:
    """
    In-memory asset store.
    
    `outcomes` is consumed one entry per upload call: an exception instance
    is raised after the bytes are "sent", anything else means success.
    """
    
    def __init__(self, outcomes=None, steps: int = 4):
        self.outcomes = list(outcomes or [])
        self.steps = steps
        self.calls = 0
        self.uploads = []
        self.assets = set()
        self.delete_outcomes = []
        self.delete_calls = 0
    
    async def upload(self, file, kind, folder, on_bytes_sent=None, cancel_token=None):
        self.calls += 1
        outcome = self.outcomes.pop(0) if self.outcomes else None
        
        step = max(1, file.size_bytes // self.steps)
        sent = 0
        while sent < file.size_bytes:
            if cancel_token:
                cancel_token.raise_if_cancelled()
            sent = min(file.size_bytes, sent + step)
            if on_bytes_sent:
                on_bytes_sent(sent)
            await asyncio.sleep(0)
        
        if isinstance(outcome, BaseException):
            raise outcome
        
        public_id = f"{folder}/{Path(file.name).stem}"
        self.assets.add(public_id)
        self.uploads.append((file.name, getattr(kind, 'value', kind), folder))
        return AssetDescriptor(
            url=f"https://cdn.example.com/{public_id}{file.suffix}",
            public_id=public_id,
            format=file.suffix.lstrip('.') or None,
        )
    
    async def delete(self, public_id, resource_type=None):
        self.delete_calls += 1
        if self.delete_outcomes:
            outcome = self.delete_outcomes.pop(0)
            if isinstance(outcome, BaseException):
                raise outcome
        if public_id not in self.assets:
            raise AssetNotFoundError(public_id)
        self.assets.discard(public_id)
        return DeleteResult(public_id=public_id, result='ok')


class HangingStore(FakeStore):
    """Store whose transfer never finishes until cancelled."""
    
    def __init__(self):
        super().__init__()
        self.started = asyncio.Event()
    
    async def upload(self, file, kind, folder, on_bytes_sent=None, cancel_token=None):
        self.calls += 1
        if on_bytes_sent:
            on_bytes_sent(file.size_bytes // 2)
        self.started.set()
        await cancel_token.run(asyncio.Event().wait())


@pytest.fixture
def png_bytes():
    """A 200x200 PNG."""
    return make_image_bytes(200, 200)


@pytest.fixture
def image_file(png_bytes):
    """A valid in-memory image candidate."""
    return CandidateFile.from_bytes('cover.png', png_bytes, 'image/png')


@pytest.fixture
def video_file():
    """An in-memory video candidate (content is not a real video)."""
    return CandidateFile.from_bytes('clip.mp4', b'\x00\x00\x00\x18ftypmp42' + b'\x00' * 1000, 'video/mp4')


@pytest.fixture
def probe_host():
    return FakeProbeHost()


@pytest.fixture
def fake_store():
    return FakeStore()
