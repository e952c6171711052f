"""
Unit tests for the ConfigAccessor class and CLI defaults in gitversioning.config.
"""

import pytest

from gitversioning.config import (
    ConfigAccessor,
    config_dir,
    get_cloud_provider,
    get_output_format,
)


@pytest.fixture
def temp_config_file(tmp_path):
    """Create a temporary settings file for testing."""
    path = tmp_path / "gitversioning.cfg"
    path.write_text("""
[output]
format = json

[cloud]
provider = gitlab
""")
    return path


@pytest.mark.short
def test_config_accessor_get_existing(temp_config_file):
    """Test reading values present in the settings file."""
    config = ConfigAccessor(temp_config_file)

    assert config.get("output", "format") == "json"
    assert config.get("cloud", "provider") == "gitlab"


@pytest.mark.short
def test_config_accessor_get_missing_with_default(temp_config_file):
    """Test that missing sections and keys return the default."""
    config = ConfigAccessor(temp_config_file)

    assert config.get("output", "missing_key", default="default") == "default"
    assert config.get("missing_section", "key", default="default") == "default"
    assert config.get("missing_section", "key") is None


@pytest.mark.short
def test_default_config_path():
    """Test that the settings file lives in the config directory."""
    config = ConfigAccessor()

    assert config.config_path == config_dir / "gitversioning.cfg"


@pytest.mark.short
class TestCliDefaults:
    def test_output_format(self, temp_config_file):
        """Test reading the default output format."""
        assert get_output_format(ConfigAccessor(temp_config_file)) == "json"

    def test_output_format_default(self, tmp_path):
        """Test that a missing settings file means text output."""
        assert get_output_format(ConfigAccessor(tmp_path / "missing.cfg")) == "text"

    def test_unknown_output_format(self, tmp_path, capture_logs):
        """Test that an unknown output format falls back to text."""
        path = tmp_path / "gitversioning.cfg"
        path.write_text("[output]\nformat = xml\n")

        assert get_output_format(ConfigAccessor(path)) == "text"
        assert "unknown output format" in capture_logs.getvalue()

    def test_cloud_provider(self, temp_config_file, tmp_path):
        """Test reading the forced CI provider."""
        assert get_cloud_provider(ConfigAccessor(temp_config_file)) == "gitlab"
        assert get_cloud_provider(ConfigAccessor(tmp_path / "missing.cfg")) is None
