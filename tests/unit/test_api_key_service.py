"""Tests for ApiKeyService."""
import pytest
import pytest_asyncio

from nodebox.core.exceptions import NodeNotFoundError
from nodebox.core.nodes import API_KEY_MIMETYPE, API_KEYS_FOLDER_UUID
from nodebox.core.nodes.api_key_node import mask_secret
from nodebox.core.services import ApiKeyService
from nodebox.core.services.api_key_service import generate_secret

GROUP = "--editors--"


@pytest.fixture
def api_keys(node_service):
    return ApiKeyService(node_service)


@pytest_asyncio.fixture
async def key(api_keys):
    return await api_keys.create(GROUP, "admin@example.com")


class TestSecrets:

    def test_generate_secret(self):
        secret = generate_secret()

        assert len(secret) == 32
        int(secret, 16)
        assert generate_secret() != secret

    @pytest.mark.parametrize("secret,masked", [
        ("abcdef", "abcd**"),
        ("abcd", "****"),
        ("", ""),
    ])
    def test_mask_secret(self, secret, masked):
        assert mask_secret(secret) == masked


class TestApiKeyService:
    """Test suite for issuing and resolving API keys."""

    @pytest.mark.asyncio
    async def test_create_exposes_secret(self, key):
        assert key.mimetype == API_KEY_MIMETYPE
        assert key.parent == API_KEYS_FOLDER_UUID
        assert key.group == GROUP
        assert key.owner == "admin@example.com"
        assert len(key.secret) == 32
        assert key.title == mask_secret(key.secret)

    @pytest.mark.asyncio
    async def test_get_is_censored(self, api_keys, key):
        fetched = await api_keys.get(key.uuid)

        assert fetched.uuid == key.uuid
        assert fetched.secret == mask_secret(key.secret)

    @pytest.mark.asyncio
    async def test_get_by_secret(self, api_keys, key):
        found = await api_keys.get_by_secret(key.secret)

        assert found.uuid == key.uuid
        assert found.group == GROUP

    @pytest.mark.asyncio
    async def test_unknown_secret(self, api_keys, key):
        with pytest.raises(NodeNotFoundError):
            await api_keys.get_by_secret("0" * 32)

    @pytest.mark.asyncio
    async def test_list_is_censored(self, api_keys, key):
        keys = await api_keys.list()

        assert [k.uuid for k in keys] == [key.uuid]
        assert keys[0].secret != key.secret

    @pytest.mark.asyncio
    async def test_delete(self, api_keys, key):
        await api_keys.delete(key.uuid)

        assert await api_keys.list() == []
        with pytest.raises(NodeNotFoundError):
            await api_keys.get_by_secret(key.secret)

    @pytest.mark.asyncio
    async def test_get_non_key(self, api_keys):
        with pytest.raises(NodeNotFoundError):
            await api_keys.get("move_up")
