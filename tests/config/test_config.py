"""
Unit tests for configuration loading in extver.config.
"""

from pathlib import Path

import pytest

from extver.config import (
    ConfigAccessor,
    ReconcileConfig,
    load_config,
    resolve_config_path,
)
from extver.utils import parse_bool


@pytest.fixture
def config_file(tmp_path):
    """Create a config file in the run root."""
    path = tmp_path / "extver.cfg"
    path.write_text(
        """
[extver]
publisher_id = contoso
counter_file = ci/.counter
units_root = extensions
registry_tool = /opt/tfx
registry_timeout = 45
force_update = no
"""
    )
    return path


@pytest.mark.short
def test_config_accessor_get_existing(config_file):
    config = ConfigAccessor(config_file)

    assert config.get("extver", "publisher_id") == "contoso"
    assert config.get("extver", "missing", default="x") == "x"
    assert config.get("missing", "publisher_id") is None


@pytest.mark.short
def test_config_accessor_without_file(tmp_path):
    config = ConfigAccessor(tmp_path / "nope.cfg")

    assert config.get("extver", "publisher_id", default="fallback") == "fallback"


@pytest.mark.short
def test_config_accessor_unparsable_file(tmp_path, capture_logs):
    path = tmp_path / "broken.cfg"
    path.write_text("no section header\n")

    config = ConfigAccessor(path)

    assert config.get("extver", "publisher_id") is None
    assert "Could not parse configuration" in capture_logs.getvalue()


@pytest.mark.short
def test_defaults_without_file_or_env(tmp_path):
    config = load_config(tmp_path, environ={})

    assert config == ReconcileConfig(root=tmp_path)
    assert config.counter_path == tmp_path / ".version-counter"
    assert config.manifest_pattern == "azure-devops-extension-*.json"


@pytest.mark.short
def test_values_from_file(tmp_path, config_file):
    config = load_config(tmp_path, environ={})

    assert config.publisher_id == "contoso"
    assert config.counter_path == tmp_path / "ci" / ".counter"
    assert config.units_root == "extensions"
    assert config.registry_tool == "/opt/tfx"
    assert config.registry_timeout == 45.0
    assert config.force_update is False


@pytest.mark.short
def test_environment_overrides_file(tmp_path, config_file):
    config = load_config(
        tmp_path, environ={"PUBLISHER_ID": "fabrikam", "FORCE_UPDATE": "true"}
    )

    assert config.publisher_id == "fabrikam"
    assert config.force_update is True


@pytest.mark.short
def test_cli_overrides_environment(tmp_path):
    config = load_config(tmp_path, environ={"PUBLISHER_ID": "fabrikam"}).override(
        publisher_id="wingtip", force_update=None, counter_file="/abs/counter"
    )

    assert config.publisher_id == "wingtip"
    assert config.force_update is False
    assert config.counter_path == Path("/abs/counter")


@pytest.mark.short
def test_blank_publisher_is_none(tmp_path):
    assert load_config(tmp_path, environ={"PUBLISHER_ID": "  "}).publisher_id is None


@pytest.mark.short
def test_invalid_force_update(tmp_path):
    with pytest.raises(ValueError, match="Not a boolean"):
        load_config(tmp_path, environ={"FORCE_UPDATE": "maybe"})


@pytest.mark.short
@pytest.mark.parametrize("raw", ["soon", "-1", "0"])
def test_invalid_timeout_is_ignored(tmp_path, raw):
    (tmp_path / "extver.cfg").write_text(f"[extver]\nregistry_timeout = {raw}\n")

    assert load_config(tmp_path, environ={}).registry_timeout is None


@pytest.mark.short
def test_resolve_config_path(tmp_path):
    assert resolve_config_path(tmp_path, environ={}) == tmp_path / "extver.cfg"
    assert resolve_config_path(
        tmp_path, environ={"EXTVER_CONFIG": "/etc/extver.cfg"}
    ) == Path("/etc/extver.cfg")
    assert resolve_config_path(
        tmp_path, Path("own.cfg"), environ={"EXTVER_CONFIG": "/etc/extver.cfg"}
    ) == Path("own.cfg")


@pytest.mark.short
@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, False),
        ("", False),
        ("1", True),
        ("TRUE", True),
        (" yes ", True),
        ("on", True),
        ("0", False),
        ("false", False),
        ("Off", False),
    ],
)
def test_parse_bool(raw, expected):
    assert parse_bool(raw) is expected
