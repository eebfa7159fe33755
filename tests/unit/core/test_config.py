"""
Tests for Config management components.
"""
import os
import pytest
import yaml
from unittest.mock import patch

from iterm_mcp.core import config as config_module
from iterm_mcp.core.config import ConfigManager
from iterm_mcp.core.env_config import EnvironmentConfig
from iterm_mcp.core.models import ChannelConfig


@pytest.mark.core
class TestConfigManager:
    """Test ConfigManager functionality."""

    @pytest.fixture
    def config_manager(self, config_file):
        """Create ConfigManager with test config."""
        return ConfigManager(str(config_file))

    def test_get_server_config(self, config_manager):
        """Test getting server configuration."""
        server_config = config_manager.get_server_config()

        assert server_config.name == 'iterm-mcp-test'
        assert server_config.version == '9.9.9'
        assert server_config.log_level == 'DEBUG'

    def test_get_enabled_connectors(self, config_manager):
        """Test getting only enabled connectors."""
        enabled = config_manager.get_enabled_connectors()

        assert [c.name for c in enabled] == ['iterm']
        assert enabled[0].config == {'channel': {'timeout_ms': 2000, 'max_retries': 1}}

    def test_get_connector_config(self, config_manager):
        """Test getting specific connector configuration."""
        assert config_manager.get_connector_config('disabled_connector').enabled is False
        assert config_manager.get_connector_config('nonexistent') is None

    def test_missing_file_uses_defaults(self, temp_config_dir):
        """Test a missing config file falls back to defaults."""
        manager = ConfigManager(str(temp_config_dir / "nonexistent.yaml"))

        assert manager.get_server_config().name == 'iterm-mcp'
        assert [c.name for c in manager.get_enabled_connectors()] == ['iterm']

    def test_invalid_yaml_uses_defaults(self, temp_config_dir):
        """Test unreadable YAML falls back to defaults instead of failing."""
        invalid_config_path = temp_config_dir / "invalid.yaml"
        invalid_config_path.write_text("invalid: yaml: content: [unclosed")

        manager = ConfigManager(str(invalid_config_path))

        assert manager.get_server_config().name == 'iterm-mcp'

    def test_partial_server_section_merges_with_defaults(self, temp_config_dir):
        config_path = temp_config_dir / "config.yaml"
        config_path.write_text("server:\n  log_level: WARNING\n")

        manager = ConfigManager(str(config_path))
        server_config = manager.get_server_config()

        assert server_config.log_level == 'WARNING'
        assert server_config.name == 'iterm-mcp'
        assert [c.name for c in manager.get_enabled_connectors()] == ['iterm']

    def test_defaults_not_mutated_between_instances(self, temp_config_dir):
        config_path = temp_config_dir / "config.yaml"
        config_path.write_text("server:\n  name: custom\n")

        ConfigManager(str(config_path))

        assert ConfigManager.DEFAULT_CONFIG['server']['name'] == 'iterm-mcp'

    def test_reload_config(self, config_manager, sample_config):
        """Test reloading configuration."""
        sample_config['server']['name'] = 'modified'
        with open(config_manager.config_path, 'w') as f:
            yaml.dump(sample_config, f)

        config_manager.reload()

        assert config_manager.get_server_config().name == 'modified'

    @patch.dict(os.environ, {'ITERM_MCP_TEST_TIMEOUT': 'env-override'})
    def test_environment_variable_substitution(self, temp_config_dir):
        """Test environment variable substitution in config."""
        config_path = temp_config_dir / "config.yaml"
        with open(config_path, 'w') as f:
            yaml.dump({'server': {'name': '${ITERM_MCP_TEST_TIMEOUT}'}}, f)

        manager = ConfigManager(str(config_path))

        assert manager.get_server_config().name == 'env-override'

    def test_unset_environment_variable_left_as_is(self, temp_config_dir):
        config_path = temp_config_dir / "config.yaml"
        with open(config_path, 'w') as f:
            yaml.dump({'server': {'name': '${ITERM_MCP_DEFINITELY_UNSET}'}}, f)

        manager = ConfigManager(str(config_path))

        assert manager.get_server_config().name == '${ITERM_MCP_DEFINITELY_UNSET}'

    def test_config_path_from_environment(self, config_file, monkeypatch):
        """Test ITERM_MCP_CONFIG selects the config file."""
        monkeypatch.setattr(config_module.env_config, 'ITERM_MCP_CONFIG', str(config_file))

        manager = ConfigManager()

        assert manager.config_path == str(config_file)
        assert manager.get_server_config().name == 'iterm-mcp-test'

    def test_config_path_falls_back_to_home(self, temp_config_dir, monkeypatch):
        monkeypatch.setattr(config_module.env_config, 'ITERM_MCP_CONFIG', None)
        monkeypatch.chdir(temp_config_dir)

        manager = ConfigManager()

        assert manager.config_path.endswith(os.path.join('.iterm-mcp', 'config.yaml'))


@pytest.mark.core
class TestChannelConfig:
    """Test ChannelConfig defaults and bounds."""

    def test_defaults(self):
        channel = ChannelConfig()

        assert channel.timeout_ms == 10000
        assert channel.max_retries == 2
        assert channel.retry_delay_ms == 500
        assert channel.timeout_seconds == 10
        assert channel.retry_delay_seconds == 0.5

    @pytest.mark.parametrize("field,value", [
        ("timeout_ms", 0),
        ("max_retries", -1),
        ("retry_delay_ms", -5),
    ])
    def test_rejects_out_of_range(self, field, value):
        with pytest.raises(ValueError):
            ChannelConfig(**{field: value})


@pytest.mark.core
class TestEnvironmentConfig:
    """Test EnvironmentConfig functionality."""

    def test_defaults(self):
        env = EnvironmentConfig()

        assert env.ITERM_MCP_LOG_FILE
        assert isinstance(env.ITERM_MCP_LOG_JSON, bool)

    def test_dev_mode_forces_debug(self, monkeypatch):
        env = EnvironmentConfig()
        monkeypatch.setattr(env, 'ITERM_MCP_DEV_MODE', True)

        assert env.effective_log_level == 'DEBUG'

    def test_log_level_without_dev_mode(self, monkeypatch):
        env = EnvironmentConfig()
        monkeypatch.setattr(env, 'ITERM_MCP_DEV_MODE', False)
        monkeypatch.setattr(env, 'ITERM_MCP_LOG_LEVEL', 'WARNING')

        assert env.effective_log_level == 'WARNING'

    def test_get_safe_dict(self):
        safe = EnvironmentConfig.get_safe_dict()

        assert 'ITERM_MCP_LOG_LEVEL' in safe
        assert 'ITERM_MCP_CONFIG' in safe
        assert all(key.startswith('ITERM_MCP_') for key in safe)


@pytest.mark.core
class TestConfigFileShapes:
    """Test unusual but valid config files."""

    def test_embedded_environment_variable(self, temp_config_dir, monkeypatch):
        monkeypatch.setenv('ITERM_MCP_TEST_SUFFIX', 'dev')
        config_path = temp_config_dir / "config.yaml"
        config_path.write_text("server:\n  name: iterm-mcp-${ITERM_MCP_TEST_SUFFIX}\n")

        assert ConfigManager(str(config_path)).get_server_config().name == 'iterm-mcp-dev'

    def test_empty_connector_list(self, temp_config_dir):
        config_path = temp_config_dir / "config.yaml"
        config_path.write_text("connectors:\n")

        assert ConfigManager(str(config_path)).get_enabled_connectors() == []

    def test_non_mapping_file_ignored(self, temp_config_dir):
        config_path = temp_config_dir / "config.yaml"
        config_path.write_text("- just\n- a list\n")

        assert ConfigManager(str(config_path)).get_server_config().name == 'iterm-mcp'


@pytest.mark.core
@pytest.mark.parametrize("dev_mode,level,expected", [
    (False, None, False),
    (False, "ERROR", True),
    (True, None, True),
])
def test_log_level_from_env(monkeypatch, dev_mode, level, expected):
    env = EnvironmentConfig()
    monkeypatch.setattr(env, 'ITERM_MCP_DEV_MODE', dev_mode)
    monkeypatch.setattr(env, 'ITERM_MCP_LOG_LEVEL', level)

    assert env.log_level_from_env is expected
    assert env.effective_log_level == ('DEBUG' if dev_mode else level or 'INFO')
