"""Tests for configuration dataclasses."""
import logging

import pytest

from nodebox.core.config import NodeboxConfig, QueryConfig, StorageConfig


class TestQueryConfig:
    """Test suite for QueryConfig."""

    @pytest.mark.parametrize("requested,expected", [
        (None, 25),
        (0, 25),
        (-3, 25),
        (10, 10),
        (5000, 1000),
    ])
    def test_clamp(self, requested, expected):
        assert QueryConfig().clamp(requested) == expected


class TestNodeboxConfig:
    """Test suite for NodeboxConfig."""

    def test_default(self):
        config = NodeboxConfig.default()

        assert config.query.default_page_size == 25
        assert config.storage.base_path is None
        assert config.actions_path is None
        assert config.system_user_email == 'root@nodebox.io'
        assert config.log_level == logging.INFO

    def test_from_dict(self):
        config = NodeboxConfig.from_dict({
            'query': {'default_page_size': 10, 'max_page_size': 50},
            'storage': {'base_path': '/var/lib/nodebox'},
            'actions_path': '/etc/nodebox/actions',
            'system_user_email': 'automation@example.com',
            'log_level': logging.DEBUG,
        })

        assert config.query == QueryConfig(default_page_size=10, max_page_size=50)
        assert config.storage == StorageConfig(base_path='/var/lib/nodebox')
        assert config.actions_path == '/etc/nodebox/actions'
        assert config.system_user_email == 'automation@example.com'
        assert config.log_level == logging.DEBUG

    def test_from_empty_dict(self):
        assert NodeboxConfig.from_dict({}) == NodeboxConfig.default()

    def test_unknown_query_key(self):
        with pytest.raises(TypeError):
            NodeboxConfig.from_dict({'query': {'page': 3}})
