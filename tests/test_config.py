"""
Unit tests for configuration management.
"""

import os
import tempfile

import pytest

from kcatalog.utils.config import Config, ConfigNamespace, config


def write_config(content):
    with tempfile.NamedTemporaryFile(mode="w", suffix=".cfg", delete=False) as f:
        f.write(content)
        return f.name


class TestConfig:
    """Test configuration loading."""

    def test_config_attributes(self):
        """Test that config has expected sections."""
        assert hasattr(config, "catalog")
        assert hasattr(config, "registry")
        assert hasattr(config, "logging")
        assert hasattr(config, "registryAuth")

    def test_config_defaults(self):
        """Test configuration default values."""
        assert config.catalog.repository == "quay.io/lvh-images/kernel-images"
        assert config.registry.pageSize == 100
        assert config.registry.pageCrawlLimit == 1000
        assert config.registry.timeout == 30
        assert config.logging.level == "WARNING"
        assert config.logging.file == ""
        assert config.registryAuth.enabled is False

    def test_missing_file_uses_defaults(self, tmp_path):
        """Test that a missing file is not an error."""
        cfg = Config(str(tmp_path / "missing.cfg"))
        assert cfg.catalog.repository == "quay.io/lvh-images/kernel-images"

    def test_config_file_overrides(self):
        """Test that file values win over defaults."""
        path = write_config("""
[catalog]
repository = quay.io/lvh-images/kernel-images-ci

[registry]
pageSize = 50

[logging]
level = DEBUG
""")
        try:
            cfg = Config(path)
            assert cfg.catalog.repository == "quay.io/lvh-images/kernel-images-ci"
            assert cfg.registry.pageSize == 50
            assert cfg.registry.timeout == 30
            assert cfg.logging.level == "DEBUG"
        finally:
            os.unlink(path)

    def test_config_path_from_environment(self, monkeypatch):
        """Test the KCATALOG_CONFIG environment variable."""
        path = write_config("""
[catalog]
repository = localhost:5000/kernels
""")
        try:
            monkeypatch.setenv("KCATALOG_CONFIG", path)
            cfg = Config()
            assert cfg.config_path == path
            assert cfg.catalog.repository == "localhost:5000/kernels"
        finally:
            os.unlink(path)

    def test_unknown_section(self):
        """Test accessing a section that does not exist."""
        with pytest.raises(AttributeError):
            config.doesNotExist

    def test_string_keys_not_cast(self):
        """Test that keys with a textual default keep numeric or boolean looking values as strings."""
        path = write_config("""
[catalog]
repository = 2024

[registryAuth]
credentialsFile = true
""")
        try:
            cfg = Config(path)
            assert cfg.catalog.repository == "2024"
            assert cfg.registryAuth.credentialsFile == "true"
            assert cfg.registryAuth.enabled is False
        finally:
            os.unlink(path)


class TestConfigNamespace:
    """Test automatic type casting."""

    def test_auto_cast(self):
        """Test bool, int, float and string values."""
        ns = ConfigNamespace("custom", {"flag": "True", "count": "12", "ratio": "0.5", "name": "kernels", "empty": ""})
        assert ns.flag is True
        assert ns.count == 12
        assert ns.ratio == 0.5
        assert ns.name == "kernels"
        assert ns.empty == ""
        assert ns.missing is None


class TestConfigValidation:
    """Test configuration validation logic."""

    def test_valid_configuration(self):
        """Test that the defaults pass validation."""
        try:
            Config(os.devnull)
        except ValueError as e:
            pytest.fail(f"Valid configuration failed validation: {e}")

    @pytest.mark.parametrize(
        "content, message",
        [
            ("[logging]\nlevel = INVALID_LEVEL\n", "logging.level must be one of"),
            ("[registry]\npageSize = abc\n", "registry.pageSize must be a positive integer"),
            ("[registry]\npageCrawlLimit = 0\n", "registry.pageCrawlLimit must be a positive integer"),
            ("[registry]\ntimeout = -5\n", "registry.timeout must be a positive integer"),
            ("[catalog]\nrepository =\n", "catalog.repository must not be empty"),
            ("[registryAuth]\nenabled = maybe\n", "registryAuth.enabled must be a boolean"),
        ],
    )
    def test_invalid_values(self, content, message):
        """Test that invalid values are reported."""
        path = write_config(content)
        try:
            with pytest.raises(ValueError) as excinfo:
                Config(path)
            assert message in str(excinfo.value)
        finally:
            os.unlink(path)

    def test_all_errors_reported(self):
        """Test that every problem is listed at once."""
        path = write_config("[logging]\nlevel = loud\n\n[registry]\ntimeout = soon\n")
        try:
            with pytest.raises(ValueError) as excinfo:
                Config(path)
            assert "logging.level" in str(excinfo.value)
            assert "registry.timeout" in str(excinfo.value)
        finally:
            os.unlink(path)
