"""Generation and loading of the RSA signing key."""

import os
from pathlib import Path
from typing import Self

from attrs import define
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from pyvider.telemetry import logger

from .crypto import generate_private_key, private_key_pem, public_key_der
from .exceptions import (
    AlreadyExistsError,
    InvalidKeyError,
    NotFoundError,
    WriteError,
)

PRIVATE_KEY_FILE_MODE = 0o600


@define(frozen=True, slots=True)
class KeyPair:
    """A loaded private key and the public key derived from it."""

    private_key: rsa.RSAPrivateKey
    public_key: rsa.RSAPublicKey

    @classmethod
    def from_private_key(cls, private_key: rsa.RSAPrivateKey) -> Self:
        return cls(private_key=private_key, public_key=private_key.public_key())

    @property
    def public_key_der(self) -> bytes:
        return public_key_der(self.public_key)


def generate_key_file(path: str | Path, overwrite: bool = False) -> Path:
    """
    Generates a new RSA key and writes the private half to `path` as PKCS#8 PEM.

    The public key is never written; it is derived from the private key
    whenever a package is signed.
    """
    key_path = Path(path)
    if key_path.exists() and not overwrite:
        raise AlreadyExistsError(
            f"Private key file '{key_path}' already exists", path=key_path
        )

    logger.info("Generating RSA signing key", path=str(key_path))
    pem = private_key_pem(generate_private_key())

    try:
        fd = os.open(
            key_path, os.O_CREAT | os.O_WRONLY | os.O_TRUNC, PRIVATE_KEY_FILE_MODE
        )
        with os.fdopen(fd, "wb") as f:
            # An existing file keeps its old mode through O_CREAT.
            os.chmod(key_path, PRIVATE_KEY_FILE_MODE)
            f.write(pem)
    except OSError as e:
        raise WriteError(
            f"Cannot write private key file '{key_path}': {e}", path=key_path
        ) from e
    logger.debug("Private key written", path=str(key_path), size=len(pem))
    return key_path


def load_key_pair(path: str | Path) -> KeyPair:
    """Loads the private key at `path` and derives its public key."""
    key_path = Path(path)
    try:
        pem = key_path.read_bytes()
    except FileNotFoundError as e:
        raise NotFoundError(
            f"Private key file '{key_path}' does not exist", path=key_path
        ) from e
    except OSError as e:
        raise InvalidKeyError(
            f"Private key file '{key_path}' cannot be read: {e}", path=key_path
        ) from e

    try:
        private_key = serialization.load_pem_private_key(pem, password=None)
    except (ValueError, TypeError) as e:
        raise InvalidKeyError(
            f"Private key file '{key_path}' is not a valid private key: {e}",
            path=key_path,
        ) from e

    if not isinstance(private_key, rsa.RSAPrivateKey):
        raise InvalidKeyError(
            f"Private key file '{key_path}' does not contain an RSA key",
            path=key_path,
        )

    return KeyPair.from_private_key(private_key)
