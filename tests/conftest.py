"""Pytest configuration and fixtures"""

import asyncio
import time
from pathlib import Path
from typing import Callable, List

import pytest

from rootfs.application.services import FilesystemService
from rootfs.core.config import Settings
from rootfs.core.types import FsEvent, FsEventType
from rootfs.infrastructure.filesystem import PathSandbox


@pytest.fixture
def test_settings() -> Settings:
    """Settings isolated from the environment and any .env file"""
    return Settings(_env_file=None, watcher_settle_seconds=0.3)


@pytest.fixture
def root_dir(tmp_path: Path) -> Path:
    """Create a populated sandbox root

    root/
      dir-1/
        dir-11/
          file-111
          file-112
        dir-12/
        file-11
      dir-2/
      file-1
      file-2
    """
    root = tmp_path / "root"
    (root / "dir-1" / "dir-11").mkdir(parents=True)
    (root / "dir-1" / "dir-12").mkdir()
    (root / "dir-2").mkdir()
    (root / "file-1").write_text("file-1 contents")
    (root / "file-2").write_text("file-2 contents")
    (root / "dir-1" / "file-11").write_text("file-11 contents")
    (root / "dir-1" / "dir-11" / "file-111").write_text("file-111 contents")
    (root / "dir-1" / "dir-11" / "file-112").write_text("file-112 contents")
    return root


@pytest.fixture
def sandbox(root_dir: Path) -> PathSandbox:
    return PathSandbox(root_dir)


@pytest.fixture
def filesystem(root_dir: Path, test_settings: Settings) -> FilesystemService:
    """Filesystem service rooted at the populated test root"""
    return FilesystemService(root_dir, settings=test_settings)


class EventRecorder:
    """Subscribes to every event type and keeps what it receives in order"""

    def __init__(self):
        self.events: List[FsEvent] = []

    def attach(self, subscribe: Callable) -> "EventRecorder":
        for event_type in FsEventType:
            subscribe(event_type, self.events.append)
        return self

    def of_type(self, event_type: FsEventType) -> List[FsEvent]:
        return [event for event in self.events if event.type is event_type]

    def pairs(self) -> List[tuple]:
        return [(event.type, event.path) for event in self.events]


@pytest.fixture
def recorder(filesystem: FilesystemService) -> EventRecorder:
    return EventRecorder().attach(filesystem.subscribe)


async def wait_for(condition: Callable[[], bool], timeout: float = 5.0) -> bool:
    """Poll ``condition`` on the running loop until it holds or time runs out"""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if condition():
            return True
        await asyncio.sleep(0.05)
    return condition()
