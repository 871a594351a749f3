"""Builds the zip payload of an extension package from a source directory."""

from collections.abc import Iterator
import os
from pathlib import Path
import tempfile
import zipfile

from pyvider.telemetry import logger

from ..exceptions import PackagingError, SourceReadError

ZIP_COMPRESSION_LEVEL = 9
STAGING_ARCHIVE_NAME = "extension.zip"


def _iter_entries(source_dir: Path) -> Iterator[tuple[Path, str]]:
    """
    Yields (path, arcname) pairs for every entry under `source_dir`, sorted.

    Symlinked directories are followed and archived under the link's name. A
    link back to one of its own ancestors raises `PackagingError`.
    """

    def on_error(error: OSError) -> None:
        raise SourceReadError(
            f"Cannot read source directory '{error.filename}': {error.strerror}",
            path=error.filename,
        ) from error

    top = os.fspath(source_dir)
    ancestors = {top: frozenset({os.path.realpath(top)})}
    for dir_path_str, dir_names, file_names in os.walk(
        top, onerror=on_error, followlinks=True
    ):
        chain = ancestors.pop(dir_path_str)
        dir_names.sort()
        for name in dir_names:
            child = os.path.join(dir_path_str, name)
            real = os.path.realpath(child)
            if real in chain:
                raise PackagingError(
                    f"Symlink cycle in source directory at '{child}'", path=child
                )
            ancestors[child] = chain | {real}

        dir_path = Path(dir_path_str)
        if dir_path != source_dir and not dir_names and not file_names:
            yield dir_path, dir_path.relative_to(source_dir).as_posix()
        for name in sorted(file_names):
            file_path = dir_path / name
            yield file_path, file_path.relative_to(source_dir).as_posix()


def produce_zip(source_dir: str | Path) -> bytes:
    """
    Zips the contents of `source_dir` at maximum compression and returns the
    finished archive.

    Entries are stored relative to `source_dir`, so the directory's own name
    never appears in the archive. The archive is staged in a private temporary
    directory which is removed on every exit path.
    """
    source_dir = Path(source_dir)
    with tempfile.TemporaryDirectory(prefix="extpack_zip_") as temp_dir_str:
        archive_path = Path(temp_dir_str) / STAGING_ARCHIVE_NAME
        entry_count = 0

        try:
            with zipfile.ZipFile(
                archive_path,
                "w",
                compression=zipfile.ZIP_DEFLATED,
                compresslevel=ZIP_COMPRESSION_LEVEL,
            ) as zf:
                for entry_path, arcname in _iter_entries(source_dir):
                    try:
                        zf.write(entry_path, arcname=arcname)
                    except OSError as e:
                        raise SourceReadError(
                            f"Cannot read source file '{entry_path}': {e}",
                            path=entry_path,
                        ) from e
                    entry_count += 1
        except (OSError, zipfile.BadZipFile) as e:
            raise PackagingError(
                f"Failed to finalize archive of '{source_dir}': {e}",
                path=source_dir,
            ) from e

        payload = archive_path.read_bytes()

    logger.debug(
        "Source directory archived",
        source=str(source_dir),
        entries=entry_count,
        size=len(payload),
    )
    return payload
