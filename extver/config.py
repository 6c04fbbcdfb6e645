"""Configuration: optional cfg file, environment variables and CLI overrides."""

import configparser
import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Optional

from extver.model.manifest import DEFAULT_MANIFEST_PATTERN, DEFAULT_UNITS_ROOT
from extver.registry.tfx import DEFAULT_REGISTRY_TOOL
from extver.utils import parse_bool
from extver.versioning.counter import DEFAULT_COUNTER_FILE

logger = logging.getLogger(__name__)

APP_NAME = "extver"
CONFIG_SECTION = APP_NAME
DEFAULT_CONFIG_FILE = f"{APP_NAME}.cfg"

ENV_PUBLISHER_ID = "PUBLISHER_ID"
ENV_FORCE_UPDATE = "FORCE_UPDATE"
ENV_CONFIG = "EXTVER_CONFIG"


class ConfigAccessor:
    """
    A dict-like accessor for configuration files.

    This class provides a way to access configuration options with a dictionary-like
    interface while handling missing files, sections or keys gracefully.

    Usage:
        config = ConfigAccessor(Path("extver.cfg"))
        value = config.get('extver', 'counter_file', default='.version-counter')
    """

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize a ConfigAccessor with an optional config file path.

        Args:
            config_path: Path to the configuration file. If None or missing,
                every lookup returns its default.
        """
        self.config_path = Path(config_path) if config_path is not None else None

        self.config = configparser.ConfigParser()
        if self.config_path is not None and self.config_path.exists():
            try:
                self.config.read(self.config_path)
            except configparser.Error as e:
                logger.warning(
                    f"Could not parse configuration {self.config_path}: {e}. "
                    "Using defaults."
                )
                self.config = configparser.ConfigParser()

    def get(self, section: str, key: str, default: Any = None) -> Any:
        """
        Get a configuration value from the specified section and key.

        Args:
            section: The configuration section
            key: The configuration key
            default: Value to return if the section or key doesn't exist

        Returns:
            The configuration value if it exists, otherwise the default value
        """
        try:
            return self.config[section][key]
        except (KeyError, configparser.NoSectionError, configparser.NoOptionError):
            return default


@dataclass(frozen=True)
class ReconcileConfig:
    """Resolved settings for one run."""

    root: Path
    publisher_id: Optional[str] = None
    force_update: bool = False
    manifest_pattern: str = DEFAULT_MANIFEST_PATTERN
    units_root: str = DEFAULT_UNITS_ROOT
    counter_file: str = DEFAULT_COUNTER_FILE
    registry_tool: str = DEFAULT_REGISTRY_TOOL
    registry_timeout: Optional[float] = None

    @property
    def counter_path(self) -> Path:
        path = Path(self.counter_file)
        return path if path.is_absolute() else self.root / path

    def override(self, **values) -> "ReconcileConfig":
        """Return a copy with every non-None value applied."""
        return replace(self, **{k: v for k, v in values.items() if v is not None})


def resolve_config_path(
    root: Path, config_path: Optional[Path] = None, environ=None
) -> Path:
    environ = os.environ if environ is None else environ
    if config_path is not None:
        return Path(config_path)
    env_path = environ.get(ENV_CONFIG)
    if env_path:
        return Path(env_path)
    return Path(root) / DEFAULT_CONFIG_FILE


def _parse_timeout(raw: Optional[str]) -> Optional[float]:
    if raw is None or str(raw).strip() == "":
        return None
    try:
        timeout = float(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid registry_timeout {raw!r}")
        return None
    if timeout <= 0:
        logger.warning(f"Ignoring non-positive registry_timeout {raw!r}")
        return None
    return timeout


def load_config(
    root: Path, config_path: Optional[Path] = None, environ=None
) -> ReconcileConfig:
    """
    Build the run configuration from the cfg file and the environment.

    Environment variables take precedence over the cfg file; CLI flags are
    applied afterwards by the caller through ReconcileConfig.override().

    Raises:
        ValueError: If FORCE_UPDATE is not a recognizable boolean
    """
    environ = os.environ if environ is None else environ
    root = Path(root)
    accessor = ConfigAccessor(resolve_config_path(root, config_path, environ))

    def cfg(key: str, default: Any) -> Any:
        return accessor.get(CONFIG_SECTION, key, default)

    publisher_id = environ.get(ENV_PUBLISHER_ID) or cfg("publisher_id", None)
    force_raw = environ.get(ENV_FORCE_UPDATE)
    if force_raw is None:
        force_raw = cfg("force_update", None)

    return ReconcileConfig(
        root=root,
        publisher_id=(publisher_id or "").strip() or None,
        force_update=parse_bool(force_raw, default=False),
        manifest_pattern=cfg("manifest_pattern", DEFAULT_MANIFEST_PATTERN),
        units_root=cfg("units_root", DEFAULT_UNITS_ROOT),
        counter_file=cfg("counter_file", DEFAULT_COUNTER_FILE),
        registry_tool=cfg("registry_tool", DEFAULT_REGISTRY_TOOL),
        registry_timeout=_parse_timeout(cfg("registry_timeout", None)),
    )
