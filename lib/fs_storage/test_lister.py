"""
Tests for recursive container listing, dood!

Covers flattening of nested files, traversal ordering, concurrent stats
reassembled in directory order and fail-fast behaviour.
"""

import asyncio
import os
import shutil
import tempfile

import pytest

from . import fsops
from .exceptions import InvalidNameError, NotFoundError, PartialIOError
from .lister import listContainerDirectory, listFiles


@pytest.fixture
def storageRoot():
    """Create a temporary storage root, dood!"""
    tmpDir = tempfile.mkdtemp()
    yield os.path.realpath(tmpDir)
    shutil.rmtree(tmpDir, ignore_errors=True)


def makeFile(root: str, relPath: str, content: bytes = b"data") -> str:
    path = os.path.join(root, *relPath.split("/"))
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "wb") as f:
        f.write(content)
    return path


def expectedTraversal(dirPath: str, location: str) -> list:
    """Reference depth-first walk in os.listdir order"""
    result = []
    for name in os.listdir(dirPath):
        entryPath = os.path.join(dirPath, name)
        if os.path.islink(entryPath):
            continue
        if os.path.isdir(entryPath):
            result.extend(expectedTraversal(entryPath, f"{location}/{name}"))
        elif os.path.isfile(entryPath):
            result.append(f"{location}/{name}")
    return result


class TestListFiles:
    """Test listFiles() results, dood!"""

    @pytest.mark.asyncio
    async def testEmptyContainer(self, storageRoot):
        """Test that an empty container gives an empty list"""
        os.makedirs(os.path.join(storageRoot, "c1"))
        assert await listFiles(storageRoot, "c1") == []

    @pytest.mark.asyncio
    async def testOnlySubdirectories(self, storageRoot):
        """Test that a container with only empty directories gives an empty list"""
        os.makedirs(os.path.join(storageRoot, "c1", "a", "b"))
        os.makedirs(os.path.join(storageRoot, "c1", "c"))
        assert await listFiles(storageRoot, "c1") == []

    @pytest.mark.asyncio
    async def testNestedFilesAtSeveralDepths(self, storageRoot):
        """Test one descriptor per file at depth 0, 1 and 2"""
        makeFile(storageRoot, "c1/top.txt", b"0")
        makeFile(storageRoot, "c1/a/mid.txt", b"11")
        makeFile(storageRoot, "c1/a/b/deep.txt", b"222")

        files = await listFiles(storageRoot, "c1")

        assert sorted(f.path for f in files) == ["c1/a/b/deep.txt", "c1/a/mid.txt", "c1/top.txt"]
        for storedFile in files:
            assert storedFile.container == "c1"
            realPath = os.path.join(storageRoot, *storedFile.location.split("/"), storedFile.name)
            assert os.path.isfile(realPath)
            assert storedFile.size == os.path.getsize(realPath)

        byName = {f.name: f for f in files}
        assert byName["top.txt"].location == "c1"
        assert byName["mid.txt"].location == "c1/a"
        assert byName["deep.txt"].location == "c1/a/b"
        assert byName["deep.txt"].remote == "a/b/deep.txt"

    @pytest.mark.asyncio
    async def testSameNameInDifferentDirectories(self, storageRoot):
        """Test that equal base names are distinguished by location"""
        makeFile(storageRoot, "c1/x/file")
        makeFile(storageRoot, "c1/y/file")

        files = await listFiles(storageRoot, "c1")

        assert sorted(f.location for f in files) == ["c1/x", "c1/y"]
        assert {f.name for f in files} == {"file"}

    @pytest.mark.asyncio
    async def testDepthFirstDirectoryOrder(self, storageRoot):
        """Test that results follow depth-first traversal in directory-entry order"""
        for relPath in ["c1/f1", "c1/d1/f2", "c1/d1/d2/f3", "c1/f4", "c1/d3/f5", "c1/d3/f6", "c1/f7"]:
            makeFile(storageRoot, relPath)

        files = await listFiles(storageRoot, "c1")

        assert [f.path for f in files] == expectedTraversal(os.path.join(storageRoot, "c1"), "c1")

    @pytest.mark.asyncio
    async def testSymlinksAreSkipped(self, storageRoot):
        """Test that symlinks are neither listed nor followed"""
        target = makeFile(storageRoot, "c1/real.txt")
        os.makedirs(os.path.join(storageRoot, "c2", "inner"))
        makeFile(storageRoot, "c2/inner/other.txt")
        os.symlink(target, os.path.join(storageRoot, "c1", "link.txt"))
        os.symlink(os.path.join(storageRoot, "c2"), os.path.join(storageRoot, "c1", "dirlink"))

        files = await listFiles(storageRoot, "c1")

        assert [f.path for f in files] == ["c1/real.txt"]

    @pytest.mark.asyncio
    async def testDeepNestingBeyondRecursionLimit(self, storageRoot):
        """Test that very deep trees are walked without recursion errors"""
        depth = 1100
        dirPath = os.path.join(storageRoot, "c1")
        os.mkdir(dirPath)
        for _ in range(depth):
            dirPath = os.path.join(dirPath, "d")
            os.mkdir(dirPath)
        leafPath = os.path.join(dirPath, "leaf.txt")
        with open(leafPath, "wb") as f:
            f.write(b"leaf")

        try:
            files = await listFiles(storageRoot, "c1")

            assert len(files) == 1
            assert files[0].location == "c1" + "/d" * depth
        finally:
            # shutil.rmtree may recurse too deep on this tree
            os.remove(leafPath)
            for _ in range(depth):
                os.rmdir(dirPath)
                dirPath = os.path.dirname(dirPath)

    @pytest.mark.asyncio
    async def testMissingContainer(self, storageRoot):
        """Test that a missing container is NotFoundError"""
        with pytest.raises(NotFoundError):
            await listFiles(storageRoot, "missing")

    @pytest.mark.asyncio
    async def testFileInsteadOfContainer(self, storageRoot):
        """Test that a plain file is not a container"""
        makeFile(storageRoot, "notadir")
        with pytest.raises(NotFoundError):
            await listFiles(storageRoot, "notadir")

    @pytest.mark.asyncio
    async def testInvalidContainerName(self, storageRoot):
        """Test that traversal in container name is rejected"""
        with pytest.raises(InvalidNameError):
            await listFiles(storageRoot, "..")


class TestListConcurrency:
    """Test concurrent sibling stats and failure handling, dood!"""

    @pytest.mark.asyncio
    async def testOrderIndependentOfStatCompletion(self, storageRoot, monkeypatch):
        """Test that results keep directory order when stats finish in reverse"""
        for i in range(6):
            makeFile(storageRoot, f"c1/file{i}")
        containerDir = os.path.join(storageRoot, "c1")
        names = os.listdir(containerDir)
        delays = {name: 0.01 * (len(names) - index) for index, name in enumerate(names)}
        completed = []
        originalStat = fsops.statEntry

        async def slowStat(entryPath):
            name = os.path.basename(entryPath)
            await asyncio.sleep(delays.get(name, 0))
            completed.append(name)
            return await originalStat(entryPath)

        monkeypatch.setattr(fsops, "statEntry", slowStat)

        files = await listContainerDirectory(containerDir, "c1")

        assert completed == list(reversed(names))
        assert [f.name for f in files] == names

    @pytest.mark.asyncio
    async def testStatFailureFailsWholeListing(self, storageRoot, monkeypatch):
        """Test that one failed stat aborts listing with no partial result"""
        makeFile(storageRoot, "c1/good1")
        makeFile(storageRoot, "c1/sub/bad")
        makeFile(storageRoot, "c1/good2")
        originalStat = fsops.statEntry

        async def failingStat(entryPath):
            if os.path.basename(entryPath) == "bad":
                raise PermissionError(13, "Permission denied", entryPath)
            return await originalStat(entryPath)

        monkeypatch.setattr(fsops, "statEntry", failingStat)

        with pytest.raises(PartialIOError) as excInfo:
            await listFiles(storageRoot, "c1")
        assert excInfo.value.path == os.path.join(storageRoot, "c1", "sub")
        assert isinstance(excInfo.value.originalError, PermissionError)

    @pytest.mark.asyncio
    async def testFileVanishingDuringWalk(self, storageRoot, monkeypatch):
        """Test that an entry removed between readdir and stat is a hard failure"""
        makeFile(storageRoot, "c1/sub/gone")
        originalList = fsops.listDirectory

        async def racingList(dirPath):
            names = await originalList(dirPath)
            if dirPath.endswith("sub"):
                os.remove(os.path.join(dirPath, "gone"))
            return names

        monkeypatch.setattr(fsops, "listDirectory", racingList)

        with pytest.raises(PartialIOError) as excInfo:
            await listFiles(storageRoot, "c1")
        assert isinstance(excInfo.value.originalError, FileNotFoundError)

    @pytest.mark.asyncio
    async def testTopLevelFileVanishingIsNotMissingContainer(self, storageRoot, monkeypatch):
        """Test that a vanished top-level entry is PartialIOError, not NotFoundError"""
        makeFile(storageRoot, "c1/gone")
        originalList = fsops.listDirectory

        async def racingList(dirPath):
            names = await originalList(dirPath)
            os.remove(os.path.join(dirPath, "gone"))
            return names

        monkeypatch.setattr(fsops, "listDirectory", racingList)

        with pytest.raises(PartialIOError) as excInfo:
            await listFiles(storageRoot, "c1")
        assert excInfo.value.path == os.path.join(storageRoot, "c1")
