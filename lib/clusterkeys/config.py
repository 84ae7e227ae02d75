"""Configuration directory and config.yml settings."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import yaml

from clusterkeys.ssh_keys import DEFAULT_KEY_BITS, MIN_KEY_BITS

DEFAULT_CONFIG_DIR = '~/.clusterkeys'
CONFIG_ENVVAR = 'CLUSTERKEYS_CONFIG'
CONFIG_FILENAME = 'config.yml'
KNOWN_FIELDS = {'environment', 'key_bits'}


def resolve_config_dir(value: Union[str, Path, None] = None) -> Path:
    """Expand ``~`` and make the configuration directory absolute."""
    return Path(value or DEFAULT_CONFIG_DIR).expanduser().resolve()


@dataclass
class Settings:
    """Tool settings from <config_dir>/config.yml."""
    environment: Optional[str] = None
    key_bits: int = DEFAULT_KEY_BITS

    @classmethod
    def load(cls, config_dir: Path) -> 'Settings':
        """Load config.yml from the config directory. Returns defaults if not present."""
        config_file = config_dir / CONFIG_FILENAME
        if not config_file.exists():
            return cls()

        with open(config_file, encoding='utf-8') as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ValueError(f"Malformed {config_file}: {e}") from e

        if not isinstance(data, dict):
            raise ValueError(f"{config_file} must contain a mapping")

        unknown = set(data.keys()) - KNOWN_FIELDS
        if unknown:
            raise ValueError(f"Unknown {CONFIG_FILENAME} field(s): {', '.join(sorted(unknown))}")

        key_bits = data.get('key_bits', DEFAULT_KEY_BITS)
        if isinstance(key_bits, bool) or not isinstance(key_bits, int) or key_bits < MIN_KEY_BITS:
            raise ValueError(f"key_bits must be an integer >= {MIN_KEY_BITS}, got {key_bits!r}")

        environment = data.get('environment')
        if environment is not None and not isinstance(environment, str):
            raise ValueError(f"environment must be a string, got {environment!r}")

        return cls(environment=environment, key_bits=key_bits)
