"""Pytest fixtures for the entire extpack test suite."""

from collections.abc import Callable
import io
from pathlib import Path
import zipfile

from cryptography.hazmat.primitives.asymmetric import rsa
import pytest

from extpack.crypto import generate_private_key, private_key_pem


@pytest.fixture(scope="session")
def private_key() -> rsa.RSAPrivateKey:
    """Generates a single RSA private key for the entire test session."""
    return generate_private_key()


@pytest.fixture(scope="session")
def public_key(private_key: rsa.RSAPrivateKey) -> rsa.RSAPublicKey:
    return private_key.public_key()


@pytest.fixture(scope="session")
def private_key_bytes(private_key: rsa.RSAPrivateKey) -> bytes:
    """Provides the private key serialized as PKCS#8 PEM."""
    return private_key_pem(private_key)


@pytest.fixture
def key_file(tmp_path: Path, private_key_bytes: bytes) -> Path:
    """Writes the session private key to a file and returns its path."""
    path = tmp_path / "private.pem"
    path.write_bytes(private_key_bytes)
    return path


@pytest.fixture
def extension_dir(tmp_path: Path) -> Path:
    """Creates a small extension source tree."""
    src = tmp_path / "my-extension"
    (src / "lib").mkdir(parents=True)
    (src / "a.txt").write_text("hello")
    (src / "manifest.json").write_text('{"name": "sample", "version": "1.0.0"}')
    (src / "lib" / "main.js").write_text("export const answer = 42;\n")
    return src


def _read_zip(payload: bytes) -> dict[str, bytes]:
    with zipfile.ZipFile(io.BytesIO(payload)) as zf:
        return {
            info.filename: zf.read(info)
            for info in zf.infolist()
            if not info.is_dir()
        }


@pytest.fixture
def unzip() -> Callable[[bytes], dict[str, bytes]]:
    """Returns a helper mapping each file entry of a zip payload to its content."""
    return _read_zip
