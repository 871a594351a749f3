"""
Centralized cryptographic operations for extension packages.

Packages are signed with RSA PKCS#1 v1.5 over a SHA-1 digest, which is what
extension hosts consuming the `.ext` format expect.
"""

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from .exceptions import SigningError

RSA_KEY_SIZE = 2048
RSA_PUBLIC_EXPONENT = 65537


def generate_private_key() -> rsa.RSAPrivateKey:
    """Generates a new 2048-bit RSA private key."""
    return rsa.generate_private_key(
        public_exponent=RSA_PUBLIC_EXPONENT, key_size=RSA_KEY_SIZE
    )


def private_key_pem(private_key: rsa.RSAPrivateKey) -> bytes:
    """Serializes a private key as unencrypted PKCS#8 PEM."""
    return private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


def public_key_der(public_key: rsa.RSAPublicKey) -> bytes:
    """Serializes a public key as SubjectPublicKeyInfo DER."""
    return public_key.public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )


def sign_payload(payload: bytes, private_key: rsa.RSAPrivateKey) -> bytes:
    """Signs the exact payload bytes using RSA PKCS#1 v1.5 with SHA-1."""
    if not isinstance(payload, bytes):
        raise SigningError("Payload must be bytes.")

    try:
        return private_key.sign(payload, padding.PKCS1v15(), hashes.SHA1())
    except (TypeError, ValueError) as e:
        raise SigningError(f"Failed to sign payload: {e}") from e


def verify_signature(
    payload: bytes, signature: bytes, public_key: rsa.RSAPublicKey
) -> bool:
    """Returns True if `signature` is a valid signature of `payload`."""
    try:
        public_key.verify(signature, payload, padding.PKCS1v15(), hashes.SHA1())
    except InvalidSignature:
        return False
    return True
