import struct
from typing import Self

from attrs import define, field

from .exceptions import ContainerSizeError, InvalidContainerError

# Extension package container constants
EXT_MAGIC: bytes = b"EXT8"
EXT_VERSION_NUMBER: int = 0x0002

# magic, version, public key length, signature length
HEADER_STRUCT_FORMAT = "<4sIII"
HEADER_SIZE = struct.calcsize(HEADER_STRUCT_FORMAT)

MAX_SECTION_SIZE = 0xFFFFFFFF

if HEADER_SIZE != 16:
    raise AssertionError(
        f"Calculated extension header size is {HEADER_SIZE}, expected 16."
    )


@define(frozen=True, slots=True)
class ExtHeader:
    public_key_size: int
    signature_size: int
    version: int = field(default=EXT_VERSION_NUMBER)
    magic: bytes = field(default=EXT_MAGIC)

    def __attrs_post_init__(self) -> None:
        for name in ("public_key_size", "signature_size"):
            size = getattr(self, name)
            if not 0 <= size <= MAX_SECTION_SIZE:
                raise ContainerSizeError(
                    f"{name} of {size} bytes does not fit a 32-bit length field"
                )

    @property
    def payload_offset(self) -> int:
        return HEADER_SIZE + self.public_key_size + self.signature_size

    def pack(self) -> bytes:
        return struct.pack(
            HEADER_STRUCT_FORMAT,
            self.magic,
            self.version,
            self.public_key_size,
            self.signature_size,
        )

    @classmethod
    def unpack(cls, buffer: bytes) -> Self:
        if len(buffer) < HEADER_SIZE:
            raise InvalidContainerError(
                f"Buffer of {len(buffer)} bytes is shorter than the {HEADER_SIZE}-byte header."
            )

        magic, version, public_key_size, signature_size = struct.unpack(
            HEADER_STRUCT_FORMAT, buffer[:HEADER_SIZE]
        )
        if magic != EXT_MAGIC:
            raise InvalidContainerError(f"Invalid extension magic. Found {magic!r}.")
        if version != EXT_VERSION_NUMBER:
            raise InvalidContainerError(
                f"Unsupported extension format version {version}."
            )

        return cls(
            public_key_size=public_key_size,
            signature_size=signature_size,
            version=version,
            magic=magic,
        )


@define(frozen=True, slots=True)
class ExtContainer:
    """The three sections of a signed extension package."""

    public_key_der: bytes
    signature: bytes
    payload: bytes

    @property
    def header(self) -> ExtHeader:
        return ExtHeader(
            public_key_size=len(self.public_key_der),
            signature_size=len(self.signature),
        )

    def pack(self) -> bytes:
        if len(self.payload) > MAX_SECTION_SIZE:
            raise ContainerSizeError(
                f"Payload of {len(self.payload)} bytes exceeds the supported maximum."
            )
        return b"".join(
            (self.header.pack(), self.public_key_der, self.signature, self.payload)
        )

    @classmethod
    def unpack(cls, buffer: bytes) -> Self:
        header = ExtHeader.unpack(buffer)
        if header.payload_offset > len(buffer):
            raise InvalidContainerError(
                f"Declared key and signature sections ({header.public_key_size} + "
                f"{header.signature_size} bytes) overrun the {len(buffer)}-byte container."
            )

        sig_offset = HEADER_SIZE + header.public_key_size
        return cls(
            public_key_der=bytes(buffer[HEADER_SIZE:sig_offset]),
            signature=bytes(buffer[sig_offset : header.payload_offset]),
            payload=bytes(buffer[header.payload_offset :]),
        )


def assemble_container(public_key_der: bytes, signature: bytes, payload: bytes) -> bytes:
    """Serializes the public key, signature and payload into container bytes."""
    return ExtContainer(
        public_key_der=public_key_der, signature=signature, payload=payload
    ).pack()
