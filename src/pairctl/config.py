"""Configuration management for pairctl."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

import yaml

from pairctl.errors import ConfigError


# Upper-case letters and digits without the easily confused 0/O and 1/I
DEFAULT_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"

DEFAULT_STORE_PATH = "~/.config/pairctl/session.json"


@dataclass
class PairingConfig:
    """Session code and notification polling configuration."""

    code_length: int = 6
    code_alphabet: str = DEFAULT_CODE_ALPHABET
    poll_interval: float = 1.0  # seconds


@dataclass
class Config:
    """pairctl configuration."""

    log_level: str = "INFO"
    log_file: str | None = None
    store_path: str = DEFAULT_STORE_PATH
    pairing: PairingConfig = field(default_factory=PairingConfig)

    def resolved_store_path(self) -> Path:
        """Session store path with ~ expanded."""
        return Path(self.store_path).expanduser()


def get_config_path(custom_path: Path | None = None) -> Path:
    """Get the configuration file path.

    Args:
        custom_path: Override path. If None, returns default.

    Returns:
        Path to config file.
    """
    if custom_path is not None:
        return custom_path
    return Path.home() / ".config" / "pairctl" / "config.yaml"


def _default_file_reader(path: Path) -> dict[str, Any] | None:
    """Default file reader that loads YAML from disk."""
    if not path.exists():
        return None
    try:
        content = path.read_text()
        if not content.strip():
            return None
        return yaml.safe_load(content)
    except yaml.YAMLError:
        return None


def _convert(section: dict[str, Any], key: str, kind: type) -> Any:
    """Read a numeric pairing setting, falling back to the default."""
    value = section.get(key, getattr(PairingConfig, key))
    # bool is an int subclass, "code_length: yes" is not a length
    if isinstance(value, bool):
        raise ConfigError(f"{key} must be a number, got {value!r}")
    try:
        return kind(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{key} must be a number, got {value!r}") from None


def _validate_pairing(pairing: PairingConfig) -> None:
    """Reject pairing settings the code generator cannot work with."""
    if pairing.code_length < 4:
        raise ConfigError(f"code_length must be at least 4, got {pairing.code_length}")
    if len(set(pairing.code_alphabet)) < 2:
        raise ConfigError("code_alphabet needs at least two distinct characters")
    if pairing.poll_interval <= 0:
        raise ConfigError(
            f"poll_interval must be positive, got {pairing.poll_interval}"
        )


def load_config(
    path: Path | None = None,
    file_reader: Callable[[Path], dict[str, Any] | None] | None = None,
) -> Config:
    """Load configuration from file.

    Args:
        path: Path to config file. If None, uses default path.
        file_reader: Injectable file reader for testing.

    Returns:
        Config object with values from file or defaults.

    Raises:
        ConfigError: If a pairing setting is out of range.
    """
    config_path = get_config_path(path)
    reader = file_reader or _default_file_reader

    data = reader(config_path)

    if not isinstance(data, dict):
        return Config()

    # Parse pairing config section
    pairing_data = data.get("pairing") or {}
    if not isinstance(pairing_data, dict):
        raise ConfigError("pairing must be a mapping")
    pairing_config = PairingConfig(
        code_length=_convert(pairing_data, "code_length", int),
        code_alphabet=str(
            pairing_data.get("code_alphabet", PairingConfig.code_alphabet)
        ),
        poll_interval=_convert(pairing_data, "poll_interval", float),
    )
    _validate_pairing(pairing_config)

    return Config(
        log_level=data.get("log_level", Config.log_level),
        log_file=data.get("log_file", Config.log_file),
        store_path=data.get("store_path", Config.store_path),
        pairing=pairing_config,
    )
