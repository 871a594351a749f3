"""Core logic for building signed extension packages."""

import os
from pathlib import Path
import stat

from provide.foundation.errors import FoundationError
from provide.foundation.file import atomic_write
from provide.foundation.file.directory import ensure_parent_dir
from pyvider.telemetry import logger

from ..crypto import sign_payload
from ..exceptions import (
    AlreadyExistsError,
    NotFoundError,
    SourceReadError,
    UnsupportedSourceTypeError,
    WriteError,
)
from ..keys import KeyPair, generate_key_file, load_key_pair
from ..models import assemble_container
from .archive import produce_zip

DEFAULT_FILE_MODE = 0o666


def _output_mode(path: Path) -> int:
    """Keeps the mode of a file being replaced; new files follow the umask."""
    try:
        return stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return DEFAULT_FILE_MODE & ~umask


def write_atomic(path: Path, data: bytes) -> None:
    """Writes `data` to `path` via a sibling temp file and a rename."""
    try:
        mode = _output_mode(path)
        ensure_parent_dir(path)
        atomic_write(path, data)
        os.chmod(path, mode)
    except (OSError, FoundationError) as e:
        raise WriteError(f"Cannot write output file '{path}': {e}", path=path) from e


class PackOrchestrator:
    def __init__(
        self,
        private_key_file: str | Path,
        source_path: str | Path,
        out_file: str | Path,
        force: bool = False,
    ) -> None:
        self.private_key_file = Path(private_key_file)
        self.source_path = Path(source_path)
        self.out_file = Path(out_file)
        self.force = force

    def validate(self) -> None:
        """Checks every input path before any key, archive or signing work."""
        if not self.private_key_file.exists():
            raise NotFoundError(
                f"Private key file '{self.private_key_file}' does not exist",
                path=self.private_key_file,
            )
        if not self.source_path.exists():
            raise NotFoundError(
                f"Source path '{self.source_path}' does not exist",
                path=self.source_path,
            )
        if not self.force and self.out_file.exists():
            raise AlreadyExistsError(
                f"Output file '{self.out_file}' already exists", path=self.out_file
            )

    def read_payload(self) -> bytes:
        """Zips a source directory, or reads a pre-zipped source file verbatim."""
        source = self.source_path
        if source.is_dir():
            logger.info("Archiving source directory", source=str(source))
            return produce_zip(source)
        if source.is_file():
            logger.info("Reading pre-zipped source file", source=str(source))
            try:
                return source.read_bytes()
            except OSError as e:
                raise SourceReadError(
                    f"Cannot read source file '{source}': {e}", path=source
                ) from e
        raise UnsupportedSourceTypeError(
            f"Source path '{source}' is not a directory or a file", path=source
        )

    def build_container(self, key_pair: KeyPair, payload: bytes) -> bytes:
        signature = sign_payload(payload, key_pair.private_key)
        logger.debug(
            "Payload signed",
            payload_size=len(payload),
            signature_size=len(signature),
        )
        return assemble_container(key_pair.public_key_der, signature, payload)

    def pack(self) -> Path:
        logger.info("Packaging extension...", source=str(self.source_path))
        self.validate()

        key_pair = load_key_pair(self.private_key_file)
        payload = self.read_payload()
        container = self.build_container(key_pair, payload)

        write_atomic(self.out_file, container)
        logger.info(
            "Extension package written",
            out_file=str(self.out_file),
            size=len(container),
        )
        return self.out_file


def pack(
    private_key_file: str | Path,
    source_path: str | Path,
    out_file: str | Path,
    force: bool = False,
) -> Path:
    """Packages and signs `source_path` into the container at `out_file`."""
    return PackOrchestrator(
        private_key_file=private_key_file,
        source_path=source_path,
        out_file=out_file,
        force=force,
    ).pack()


def keygen(private_key_file: str | Path, force: bool = False) -> Path:
    """Generates a new signing key at `private_key_file`."""
    return generate_key_file(private_key_file, overwrite=force)
