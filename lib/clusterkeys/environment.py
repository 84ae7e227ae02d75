"""Environment (named cluster context) and its SSH credential."""

from pathlib import Path

import paramiko
from cryptography.hazmat.primitives.asymmetric import rsa

from clusterkeys.ssh_keys import DEFAULT_KEY_BITS, CredentialManager, public_key_openssh


def validate_environment_name(name: str) -> str:
    """Check that an environment name is safe to use as one path segment.

    Raises:
        ValueError: empty name, separators, '.'/'..' or NUL bytes
    """
    if not name:
        raise ValueError("Environment name must not be empty")
    if name in ('.', '..') or '/' in name or '\\' in name or '\0' in name:
        raise ValueError(f"Invalid environment name: {name!r}")
    return name


class Environment:
    """A cluster environment bound to a configuration directory.

    Example:
        env = Environment('staging', Path.home() / '.clusterkeys')
        key = env.ssh_private_key()
        subprocess.run(['ssh', '-i', str(env.ssh_private_key_path()), host])
    """

    def __init__(self, name: str, config_dir: Path, key_bits: int = DEFAULT_KEY_BITS):
        self.name = validate_environment_name(name)
        self._config_dir = Path(config_dir)
        self.credentials = CredentialManager(self._config_dir, self.name, key_bits=key_bits)

    def config_path(self) -> Path:
        return self._config_dir

    def ssh_private_key_path(self) -> Path:
        return self.credentials.key_path

    def ssh_private_key(self) -> rsa.RSAPrivateKey:
        """Private key for this environment, generated on first use."""
        return self.credentials.load_or_generate()

    def ssh_signer(self) -> paramiko.RSAKey:
        return self.credentials.signer()

    def ssh_public_key(self) -> str:
        """OpenSSH public key line, commented with the environment name."""
        return public_key_openssh(self.ssh_private_key(), comment=f'clusterkeys@{self.name}')
