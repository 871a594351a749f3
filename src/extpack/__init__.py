"""
This package builds signed extension packages: a zip payload, an RSA
signature over it, and the signing public key, laid out in a single
self-verifying container.
"""

from .keys import KeyPair, generate_key_file, load_key_pair
from .models import (
    EXT_MAGIC,
    EXT_VERSION_NUMBER,
    ExtContainer,
    ExtHeader,
    assemble_container,
)
from .packaging.orchestrator import PackOrchestrator, keygen, pack

__all__ = [
    "EXT_MAGIC",
    "EXT_VERSION_NUMBER",
    "ExtContainer",
    "ExtHeader",
    "KeyPair",
    "PackOrchestrator",
    "assemble_container",
    "generate_key_file",
    "keygen",
    "load_key_pair",
    "pack",
]
