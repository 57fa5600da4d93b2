"""Tests for the existence probe and the delegate error boundary"""

import errno
from pathlib import Path

import pytest

from rootfs.core.types import NodeType
from rootfs.infrastructure.exceptions import FilesystemError, IOErrorKind, io_boundary
from rootfs.infrastructure.filesystem import DirectoryManager, ExistenceProbe


class TestIOBoundary:
    """Test translation of OSError into kind-tagged failures"""

    @pytest.mark.parametrize("code, kind", [
        (errno.ENOENT, IOErrorKind.NOT_FOUND),
        (errno.EEXIST, IOErrorKind.EXISTS),
        (errno.EISDIR, IOErrorKind.IS_DIRECTORY),
        (errno.ENOTDIR, IOErrorKind.NOT_DIRECTORY),
        (errno.EACCES, IOErrorKind.OTHER),
    ])
    def test_errno_to_kind(self, code: int, kind: IOErrorKind):
        original = OSError(code, "boom", "/somewhere")

        with pytest.raises(FilesystemError) as exc_info:
            with io_boundary("/somewhere"):
                raise original

        assert exc_info.value.kind is kind
        assert exc_info.value.cause is original
        assert exc_info.value.path == Path("/somewhere")

    def test_other_exceptions_pass_through(self):
        with pytest.raises(ValueError):
            with io_boundary("/somewhere"):
                raise ValueError("not an OS error")


class TestExistenceProbe:
    """Test stat and path_exists on real paths"""

    @pytest.fixture
    def probe(self) -> ExistenceProbe:
        return ExistenceProbe()

    @pytest.mark.asyncio
    async def test_stat_file(self, probe: ExistenceProbe, root_dir: Path):
        node = await probe.stat(root_dir / "file-1")
        assert node.is_file
        assert not node.is_directory

    @pytest.mark.asyncio
    async def test_stat_directory(self, probe: ExistenceProbe, root_dir: Path):
        node = await probe.stat(root_dir / "dir-1")
        assert node.is_directory
        assert not node.is_file

    @pytest.mark.asyncio
    async def test_stat_missing_is_tagged(self, probe: ExistenceProbe, root_dir: Path):
        with pytest.raises(FilesystemError) as exc_info:
            await probe.stat(root_dir / "missing")

        assert exc_info.value.kind is IOErrorKind.NOT_FOUND

    @pytest.mark.asyncio
    async def test_path_exists(self, probe: ExistenceProbe, root_dir: Path):
        assert await probe.path_exists(root_dir / "dir-1") is True
        assert await probe.path_exists(root_dir / "path" / "that" / "does-not-exist") is False

    @pytest.mark.asyncio
    async def test_file_in_ancestor_position_means_absent(self, probe: ExistenceProbe, root_dir: Path):
        assert await probe.path_exists(root_dir / "file-1" / "child") is False

    @pytest.mark.asyncio
    async def test_path_exists_with_type(self, probe: ExistenceProbe, root_dir: Path):
        assert await probe.path_exists(root_dir / "dir-1", NodeType.DIRECTORY) is True
        assert await probe.path_exists(root_dir / "file-1", NodeType.DIRECTORY) is False
        assert await probe.path_exists(root_dir / "dir-1", NodeType.FILE) is False
        assert await probe.path_exists(root_dir / "file-1", NodeType.FILE) is True

    @pytest.mark.asyncio
    async def test_stable_without_mutation(self, probe: ExistenceProbe, root_dir: Path):
        results = [await probe.path_exists(root_dir / "file-2") for _ in range(5)]
        assert results == [True] * 5

    @pytest.mark.asyncio
    async def test_other_failures_propagate(self, probe: ExistenceProbe, root_dir: Path, monkeypatch):
        async def denied(path):
            raise PermissionError(errno.EACCES, "Permission denied", str(path))

        monkeypatch.setattr("aiofiles.os.stat", denied)

        with pytest.raises(FilesystemError) as exc_info:
            await probe.path_exists(root_dir / "file-1")

        assert exc_info.value.kind is IOErrorKind.OTHER
        assert isinstance(exc_info.value.cause, PermissionError)


class TestDirectoryManager:
    """Test the subtree delegates"""

    @pytest.fixture
    def manager(self) -> DirectoryManager:
        return DirectoryManager()

    @pytest.mark.asyncio
    async def test_copy_tree_copies_directory(self, manager: DirectoryManager, root_dir: Path):
        await manager.copy_tree(root_dir / "dir-1", root_dir / "copy")

        assert (root_dir / "copy" / "dir-11" / "file-111").read_text() == "file-111 contents"
        assert (root_dir / "dir-1" / "file-11").exists()

    @pytest.mark.asyncio
    async def test_copy_tree_never_overwrites(self, manager: DirectoryManager, root_dir: Path):
        with pytest.raises(FilesystemError) as exc_info:
            await manager.copy_tree(root_dir / "file-1", root_dir / "file-2")

        assert exc_info.value.kind is IOErrorKind.EXISTS
        assert (root_dir / "file-2").read_text() == "file-2 contents"

    @pytest.mark.asyncio
    async def test_copy_tree_discards_partial_destination(
        self, manager: DirectoryManager, root_dir: Path, monkeypatch
    ):
        import shutil

        def failing_copytree(src, dst, *args, **kwargs):
            Path(dst).mkdir()
            (Path(dst) / "half-written").write_text("partial")
            raise OSError(errno.EIO, "Input/output error", str(src))

        monkeypatch.setattr(shutil, "copytree", failing_copytree)

        with pytest.raises(FilesystemError) as exc_info:
            await manager.copy_tree(root_dir / "dir-1", root_dir / "copy")

        assert exc_info.value.kind is IOErrorKind.OTHER
        assert not (root_dir / "copy").exists()

    @pytest.mark.asyncio
    async def test_remove_tree(self, manager: DirectoryManager, root_dir: Path):
        await manager.remove_tree(root_dir / "dir-1")
        await manager.remove_tree(root_dir / "file-1")

        assert not (root_dir / "dir-1").exists()
        assert not (root_dir / "file-1").exists()

    @pytest.mark.asyncio
    async def test_remove_tree_missing(self, manager: DirectoryManager, root_dir: Path):
        with pytest.raises(FilesystemError) as exc_info:
            await manager.remove_tree(root_dir / "missing")

        assert exc_info.value.kind is IOErrorKind.NOT_FOUND

    @pytest.mark.asyncio
    async def test_ensure_directory_is_idempotent(self, manager: DirectoryManager, root_dir: Path):
        await manager.ensure_directory(root_dir / "a" / "b")
        await manager.ensure_directory(root_dir / "a" / "b")

        assert (root_dir / "a" / "b").is_dir()
