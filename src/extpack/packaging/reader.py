"""Python-based reader for extension package containers."""

from pathlib import Path

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from ..crypto import verify_signature
from ..exceptions import InvalidContainerError, SignatureVerificationError
from ..models import ExtContainer


class ExtReader:
    """Reads and interprets a signed extension package."""

    def __init__(self, package_path: Path) -> None:
        if not package_path.is_file():
            raise FileNotFoundError(f"Package not found at: {package_path}")
        self.package_path = package_path
        self.container = ExtContainer.unpack(package_path.read_bytes())

    def load_public_key(self) -> rsa.RSAPublicKey:
        """Parses the embedded SPKI DER public key."""
        try:
            public_key = serialization.load_der_public_key(
                self.container.public_key_der
            )
        except ValueError as e:
            raise InvalidContainerError(f"Embedded public key is invalid: {e}") from e
        if not isinstance(public_key, rsa.RSAPublicKey):
            raise InvalidContainerError("Embedded public key is not an RSA key.")
        return public_key

    def verify(self) -> None:
        """Checks the embedded signature against the payload using the embedded key."""
        c = self.container
        if not verify_signature(c.payload, c.signature, self.load_public_key()):
            raise SignatureVerificationError(
                f"Signature of '{self.package_path}' does not match its payload.",
                path=self.package_path,
            )

    def extract_payload(self) -> bytes:
        return self.container.payload

    def get_info(self) -> str:
        """Returns a human-readable string of the package information."""
        h = self.container.header
        return (
            f"Extension Package Information:\n"
            f"  Format Version: {h.version}\n"
            f"  Public Key Size: {h.public_key_size} bytes\n"
            f"  Signature Size: {h.signature_size} bytes\n"
            f"  Payload Size: {len(self.container.payload)} bytes"
        )
