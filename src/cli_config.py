"""Runtime configuration for the sandbox CLI.

Values come from an optional YAML (or JSON) file and are overridden by CLI
flags, which take highest precedence.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Iterable, Optional

import yaml

from constants import Constants
from bundler.assembler import SandboxOptions

logger = logging.getLogger(__name__)


class ConfigError(ValueError):
    """Raised for unreadable or malformed configuration."""


def load_config_file(config_path: Optional[str]) -> Dict[str, Any]:
    """Load the sandbox section of a configuration file.

    Args:
        config_path: Path to a YAML/JSON config file.

    Returns:
        The ``sandbox:`` section if present, otherwise the whole document.
        A missing path yields an empty dict.

    Raises:
        ConfigError: If the file cannot be parsed or is not a mapping.
    """
    if not config_path:
        return {}

    if not os.path.isfile(config_path):
        logger.warning("Config file not found: %s", config_path)
        return {}

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Failed to load config {config_path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config {config_path} must contain a mapping")
    section = data.get(Constants.CONFIG_SECTION, data)
    if not isinstance(section, dict):
        raise ConfigError(f"'{Constants.CONFIG_SECTION}' section must be a mapping")
    return section


def parse_preferred_versions(pairs: Optional[Iterable[str]]) -> Dict[str, str]:
    """Turn ``NAME=VERSION`` strings into a mapping.

    Raises:
        ConfigError: On an entry without a name or a version.
    """
    preferred: Dict[str, str] = {}
    for pair in pairs or []:
        name, sep, version = pair.partition("=")
        name, version = name.strip(), version.strip()
        if not sep or not name or not version:
            raise ConfigError(f"Invalid --prefer value {pair!r}; expected NAME=VERSION")
        preferred[name] = version
    return preferred


@dataclass
class SandboxConfig:
    """Configuration for one CLI run."""

    cdn: str = Constants.DEFAULT_CDN
    cache_file: Optional[str] = Constants.DEFAULT_CACHE_FILE
    timeout: int = Constants.REQUEST_TIMEOUT
    name: Optional[str] = None
    iframe_head: str = ""
    iframe_body: str = ""
    iframe_style: str = ""
    iframe_sandbox: str = ""
    preferred_versions: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "SandboxConfig":
        """Build a config from a file section, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning("Ignoring unknown config keys: %s", ", ".join(unknown))
        values = {k: v for k, v in data.items() if k in known}
        if "preferred_versions" in values:
            prefs = values["preferred_versions"] or {}
            if not isinstance(prefs, dict):
                raise ConfigError("'preferred_versions' must be a mapping")
            values["preferred_versions"] = {str(k): str(v) for k, v in prefs.items()}
        if "timeout" in values:
            try:
                values["timeout"] = int(values["timeout"])
            except (TypeError, ValueError) as exc:
                raise ConfigError(f"'timeout' must be an integer, got {values['timeout']!r}") from exc
        if "cdn" in values and not (isinstance(values["cdn"], str) and values["cdn"]):
            raise ConfigError("'cdn' must be a non-empty string")
        for key in ("iframe_head", "iframe_body", "iframe_style", "iframe_sandbox"):
            if key in values and not isinstance(values[key], str):
                raise ConfigError(f"'{key}' must be a string")
        for key in ("name", "cache_file"):
            if key in values and values[key] is not None and not isinstance(values[key], str):
                raise ConfigError(f"'{key}' must be a string")
        return cls(**values)

    @classmethod
    def from_args(cls, args: Any) -> "SandboxConfig":
        """Create config from CLI arguments.

        Args:
            args: Parsed CLI arguments namespace.

        Returns:
            SandboxConfig instance.
        """
        config = cls.from_mapping(load_config_file(getattr(args, "CONFIG", None)))

        if getattr(args, "CDN", None):
            config.cdn = args.CDN
        if getattr(args, "CACHE_FILE", None):
            config.cache_file = args.CACHE_FILE
        if getattr(args, "NO_CACHE", False):
            config.cache_file = None
        if getattr(args, "TIMEOUT", None) is not None:
            config.timeout = int(args.TIMEOUT)
        if getattr(args, "NAME", None):
            config.name = args.NAME
        if getattr(args, "SANDBOX", None) is not None:
            config.iframe_sandbox = args.SANDBOX

        config.preferred_versions.update(parse_preferred_versions(getattr(args, "PREFER", None)))
        return config

    def to_options(self) -> SandboxOptions:
        return SandboxOptions(
            name=self.name,
            iframe_head=self.iframe_head,
            iframe_body=self.iframe_body,
            iframe_style=self.iframe_style,
            iframe_sandbox=self.iframe_sandbox,
        )
