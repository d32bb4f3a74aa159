"""Tests for FlatFileStorageProvider."""
import pytest

from nodebox import NodeboxService, NodeServiceContext
from nodebox.core.auth import UserPrincipal
from nodebox.core.events import DomainEventBus, NodeDeletedEvent
from nodebox.core.exceptions import BadRequestError, NodeNotFoundError, UnknownError
from nodebox.core.nodes import ADMINS_GROUP_UUID, FOLDER_MIMETYPE, FileNode
from nodebox.core.storage import FlatFileStorageProvider, InMemoryNodeRepository, NodeFile, WriteFileOpts

UUID = "abcdef-0001"


@pytest.fixture
def flat_storage(tmp_path):
    return FlatFileStorageProvider(tmp_path / "store")


class TestFlatFileStorage:
    """Test suite for the local filesystem provider."""

    def test_sharded_path(self, flat_storage):
        path = flat_storage.path_for(UUID)

        assert path == flat_storage.base_path / "ab" / "cd" / UUID

    @pytest.mark.parametrize("uuid", ["../../outside", "..", "", "ab/../../../x"])
    def test_path_outside_root_rejected(self, flat_storage, uuid):
        with pytest.raises(BadRequestError):
            flat_storage.path_for(uuid)

    @pytest.mark.asyncio
    async def test_absolute_uuid_cannot_write_elsewhere(self, tmp_path, flat_storage):
        target = tmp_path / "escaped"

        with pytest.raises(BadRequestError):
            await flat_storage.write("../" + str(target), b"content")

        assert not target.exists()

    @pytest.mark.asyncio
    async def test_write_then_read(self, flat_storage):
        await flat_storage.write(UUID, b"content", WriteFileOpts(title="a.txt", mimetype="text/plain"))

        assert await flat_storage.read(UUID) == b"content"
        assert flat_storage.path_for(UUID).is_file()

    @pytest.mark.asyncio
    async def test_overwrite(self, flat_storage):
        await flat_storage.write(UUID, b"first")
        await flat_storage.write(UUID, b"second")

        assert await flat_storage.read(UUID) == b"second"

    @pytest.mark.asyncio
    async def test_read_missing(self, flat_storage):
        with pytest.raises(NodeNotFoundError):
            await flat_storage.read("missing-uuid")

    @pytest.mark.asyncio
    async def test_delete(self, flat_storage):
        await flat_storage.write(UUID, b"content")

        await flat_storage.delete(UUID)

        assert not flat_storage.path_for(UUID).exists()

    @pytest.mark.asyncio
    async def test_delete_missing_is_silent(self, flat_storage):
        await flat_storage.delete("missing-uuid")

    @pytest.mark.asyncio
    async def test_write_failure_wrapped(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_bytes(b"not a directory")
        storage = FlatFileStorageProvider(blocker)

        with pytest.raises(UnknownError) as exc_info:
            await storage.write(UUID, b"content")

        assert exc_info.value.error_code == "UnknownError"


class TestShardPruning:
    """Tests for the NodeDeletedEvent listener."""

    @pytest.fixture
    def bus(self, flat_storage):
        bus = DomainEventBus()
        flat_storage.start_listeners(bus.subscribe)
        return bus

    @pytest.mark.asyncio
    async def test_empty_shards_removed(self, flat_storage, bus):
        await flat_storage.write(UUID, b"content")
        await flat_storage.delete(UUID)

        await bus.notify(NodeDeletedEvent.of("u", FileNode(uuid=UUID, title="a.txt")))

        assert not (flat_storage.base_path / "ab").exists()
        assert flat_storage.base_path.exists()

    @pytest.mark.asyncio
    async def test_shared_shard_kept(self, flat_storage, bus):
        sibling = "abcdxx-0002"
        await flat_storage.write(UUID, b"one")
        await flat_storage.write(sibling, b"two")
        await flat_storage.delete(UUID)

        await bus.notify(NodeDeletedEvent.of("u", FileNode(uuid=UUID, title="a.txt")))

        assert await flat_storage.read(sibling) == b"two"

    @pytest.mark.asyncio
    async def test_nothing_stored(self, flat_storage, bus):
        await bus.notify(NodeDeletedEvent.of("u", FileNode(uuid=UUID, title="meta")))

        assert not flat_storage.base_path.exists()


class TestFlatFileNodebox:
    """Tests for a nodebox backed by flat-file storage."""

    @pytest.fixture
    def admin(self):
        return UserPrincipal(email="admin@example.com", group=ADMINS_GROUP_UUID, groups=(ADMINS_GROUP_UUID,))

    @pytest.fixture
    def nodebox(self, flat_storage):
        return NodeboxService(NodeServiceContext(repository=InMemoryNodeRepository(), storage=flat_storage))

    @pytest.mark.asyncio
    async def test_traversal_uuid_rejected(self, tmp_path, nodebox, admin):
        folder = await nodebox.create(admin, {'title': 'Docs', 'mimetype': FOLDER_MIMETYPE})
        target = tmp_path / "escaped"

        with pytest.raises(BadRequestError):
            await nodebox.create_file(
                admin,
                NodeFile("a.txt", "text/plain", b"content"),
                {'parent': folder.uuid, 'uuid': "../" + str(target)},
            )

        assert not target.exists()
        assert await nodebox.list(admin, folder.uuid) == []

    @pytest.mark.asyncio
    async def test_cascade_prunes_every_shard(self, flat_storage, nodebox, admin):
        folder = await nodebox.create(admin, {'title': 'Docs', 'mimetype': FOLDER_MIMETYPE})
        sub = await nodebox.create(admin, {'title': 'Sub', 'mimetype': FOLDER_MIMETYPE, 'parent': folder.uuid})
        first = await nodebox.create_file(admin, NodeFile("a.txt", "text/plain", b"a"), {'parent': folder.uuid})
        second = await nodebox.create_file(admin, NodeFile("b.txt", "text/plain", b"b"), {'parent': sub.uuid})

        await nodebox.delete(admin, folder.uuid)

        assert not flat_storage.path_for(first.uuid).exists()
        assert not flat_storage.path_for(second.uuid).exists()
        assert list(flat_storage.base_path.iterdir()) == []
