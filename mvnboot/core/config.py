"""
Bootstrap configuration.

All settings that influence a run are collected once into an immutable
BootstrapConfig and passed explicitly to every component, instead of each
component reading the process environment on its own.

Sources, lowest precedence first:
    1. Built-in defaults
    2. YAML file (``mvnboot.yaml`` in the project root, or an explicit path)
    3. Environment variables (``APACHE_MIRROR``, ``MVNBOOT_*``)
    4. Keyword overrides (CLI flags)

Example mvnboot.yaml:
    install_root: build
    pom: pom.xml
    mirror: https://dlcdn.apache.org
    transports: [requests, curl]
    require_checksum: true
"""

import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

from mvnboot.core.exceptions import ConfigError
from mvnboot.core.version import DEFAULT_VERSION_MARKER

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "mvnboot.yaml"

KNOWN_TRANSPORTS = ("requests", "curl", "wget")

DEFAULT_TIMEOUT = 30
DEFAULT_MAX_RETRIES = 3

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class BootstrapConfig:
    """Settings for one bootstrap run."""

    project_root: Path
    """Directory containing the project (and its pom.xml)"""

    pom: Path
    """Project configuration file the version is read from"""

    install_root: Path
    """Directory toolchains are unpacked into"""

    version_marker: str = DEFAULT_VERSION_MARKER
    """Element name holding the required version"""

    mirror: Optional[str] = None
    """Primary mirror override (None uses the Apache CDN resolver)"""

    transports: Tuple[str, ...] = KNOWN_TRANSPORTS
    """Transport preference order"""

    require_checksum: bool = False
    """Fail the run if the checksum descriptor cannot be fetched"""

    timeout: int = DEFAULT_TIMEOUT
    """Network timeout in seconds"""

    max_retries: int = DEFAULT_MAX_RETRIES
    """Attempts made by the preferred transport"""

    force: bool = False
    """Ignore a matching mvn found on PATH"""

    extra: Dict[str, Any] = field(default_factory=dict, compare=False)
    """Unrecognized YAML keys, kept for diagnostics"""

    def with_overrides(self, **overrides: Any) -> "BootstrapConfig":
        """Return a copy with the given non-None fields replaced."""
        values = {k: v for k, v in overrides.items() if v is not None}
        if "transports" in values:
            values["transports"] = _parse_transports(values["transports"])
        return replace(self, **values)


def load_yaml_config(config_file: Path, required: bool = False) -> Dict[str, Any]:
    """
    Load and parse a YAML configuration file.

    Args:
        config_file: Path to YAML configuration file
        required: If True, raise error if file doesn't exist

    Returns:
        Configuration dictionary (empty if the file is absent and optional)

    Raises:
        ConfigError: If the file is required but missing, or is invalid YAML
    """
    if not config_file.exists():
        if required:
            raise ConfigError(
                "Configuration file not found", resource=str(config_file)
            )
        logger.debug(f"Config file not found (optional): {config_file}")
        return {}

    logger.debug(f"Loading configuration from {config_file}")

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML: {e}", resource=str(config_file)) from e

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ConfigError(
            "Configuration must be a mapping", resource=str(config_file)
        )
    return config


def load_config(
    project_root: Path,
    config_file: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
    **overrides: Any,
) -> BootstrapConfig:
    """
    Assemble a BootstrapConfig for a project.

    Args:
        project_root: Project root directory
        config_file: Explicit YAML file (required to exist if given)
        environ: Environment mapping (defaults to os.environ)
        **overrides: Field values taking precedence over everything else
            (a relative install_root is taken relative to project_root)

    Returns:
        Frozen BootstrapConfig

    Raises:
        ConfigError: If any source holds an invalid value
    """
    project_root = Path(project_root).resolve()
    environ = os.environ if environ is None else environ

    if config_file is not None:
        data = load_yaml_config(Path(config_file), required=True)
    else:
        data = load_yaml_config(project_root / CONFIG_FILENAME)

    data = dict(data)
    pom = _project_path(project_root, data.pop("pom", "pom.xml"))
    install_root = _project_path(project_root, data.pop("install_root", "build"))

    config = BootstrapConfig(
        project_root=project_root,
        pom=pom,
        install_root=install_root,
        version_marker=str(data.pop("version_marker", DEFAULT_VERSION_MARKER)),
        mirror=data.pop("mirror", None),
        transports=_parse_transports(data.pop("transports", KNOWN_TRANSPORTS)),
        require_checksum=_parse_bool(
            data.pop("require_checksum", False), "require_checksum"
        ),
        timeout=_parse_int(data.pop("timeout", DEFAULT_TIMEOUT), "timeout"),
        max_retries=_parse_int(
            data.pop("max_retries", DEFAULT_MAX_RETRIES), "max_retries"
        ),
        force=_parse_bool(data.pop("force", False), "force"),
        extra=data,
    )
    if data:
        logger.warning(f"Ignoring unknown configuration keys: {sorted(data)}")

    config = config.with_overrides(**_from_environment(project_root, environ))
    if overrides.get("install_root") is not None:
        overrides["install_root"] = _project_path(project_root, overrides["install_root"])
    return config.with_overrides(**overrides)


def _from_environment(project_root: Path, environ: Mapping[str, str]) -> Dict[str, Any]:
    """Read the supported environment variables."""
    values: Dict[str, Any] = {}

    mirror = environ.get("APACHE_MIRROR")
    if mirror:
        values["mirror"] = mirror

    install_root = environ.get("MVNBOOT_INSTALL_ROOT")
    if install_root:
        values["install_root"] = _project_path(project_root, install_root)

    transports = environ.get("MVNBOOT_TRANSPORTS")
    if transports:
        values["transports"] = transports

    if "MVNBOOT_REQUIRE_CHECKSUM" in environ:
        values["require_checksum"] = _parse_bool(
            environ["MVNBOOT_REQUIRE_CHECKSUM"], "MVNBOOT_REQUIRE_CHECKSUM"
        )

    if "MVNBOOT_FORCE" in environ:
        values["force"] = _parse_bool(environ["MVNBOOT_FORCE"], "MVNBOOT_FORCE")

    return values


def _project_path(project_root: Path, value: Any) -> Path:
    path = Path(str(value)).expanduser()
    return path if path.is_absolute() else project_root / path


def _parse_transports(value: Any) -> Tuple[str, ...]:
    if isinstance(value, str):
        names = [part.strip() for part in value.split(",")]
    elif isinstance(value, (list, tuple)):
        names = [str(part).strip() for part in value]
    else:
        raise ConfigError(f"transports must be a list of names, got {value!r}")

    names = [name.lower() for name in names if name]
    if not names:
        raise ConfigError("transports must name at least one transport")

    unknown = [name for name in names if name not in KNOWN_TRANSPORTS]
    if unknown:
        raise ConfigError(
            f"Unknown transport(s): {', '.join(unknown)}. "
            f"Supported: {', '.join(KNOWN_TRANSPORTS)}"
        )
    return tuple(dict.fromkeys(names))


def _parse_bool(value: Any, name: str) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ConfigError(f"{name} must be a boolean, got {value!r}")


def _parse_int(value: Any, name: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from e
    if number < 1:
        raise ConfigError(f"{name} must be at least 1, got {number}")
    return number
