"""Pytest fixtures for nodebox tests."""
import pytest
import pytest_asyncio

from nodebox import NodeboxService, NodeServiceContext
from nodebox.core.auth import UserPrincipal
from nodebox.core.events import DomainEventBus
from nodebox.core.nodes import ADMINS_GROUP_UUID, FOLDER_MIMETYPE
from nodebox.core.services import NodeService
from nodebox.core.storage import InMemoryNodeRepository, InMemoryStorageProvider

EDITORS_GROUP = "--editors--"
READERS_GROUP = "--readers--"


@pytest.fixture
def repository():
    """In-memory node repository."""
    return InMemoryNodeRepository()


@pytest.fixture
def storage():
    """In-memory content storage."""
    return InMemoryStorageProvider()


@pytest.fixture
def context(repository, storage):
    return NodeServiceContext(repository=repository, storage=storage)


@pytest.fixture
def node_service(context):
    """Principal-agnostic node service."""
    return NodeService(context)


@pytest.fixture
def bus():
    return DomainEventBus()


@pytest.fixture
def nodebox(context, bus):
    """Fully wired façade over in-memory adapters."""
    return NodeboxService(context, bus=bus)


@pytest.fixture
def admin():
    return UserPrincipal(email="admin@example.com", group=ADMINS_GROUP_UUID, groups=(ADMINS_GROUP_UUID,))


@pytest.fixture
def alice():
    """Editor, member of the editors group."""
    return UserPrincipal(email="alice@example.com", group=EDITORS_GROUP, groups=(EDITORS_GROUP,))


@pytest.fixture
def bob():
    """Reader, outside the editors group."""
    return UserPrincipal(email="bob@example.com", group=READERS_GROUP, groups=(READERS_GROUP,))


@pytest.fixture
def anonymous():
    return UserPrincipal.anonymous()


@pytest.fixture
def shared_folder_data():
    """Folder record writable by editors and readable by any authenticated user."""
    return {
        'title': 'Shared',
        'mimetype': FOLDER_MIMETYPE,
        'group': EDITORS_GROUP,
        'permissions': {
            'anonymous': [],
            'group': ['Read', 'Write', 'Export'],
            'authenticated': ['Read'],
        },
    }


@pytest_asyncio.fixture
async def shared_folder(nodebox, admin, shared_folder_data):
    """Shared folder created by an administrator under root."""
    folder = await nodebox.create(admin, shared_folder_data)
    # Folders take the creator's group; hand this one to the editors
    return await nodebox.update(admin, folder.uuid, {'group': EDITORS_GROUP})
