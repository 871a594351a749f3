"""Tests for the PackOrchestrator pipeline."""

from collections.abc import Iterator
import os
from pathlib import Path
from unittest.mock import patch

import pytest

from extpack.crypto import verify_signature
from extpack.exceptions import (
    AlreadyExistsError,
    InvalidKeyError,
    NotFoundError,
    UnsupportedSourceTypeError,
    WriteError,
)
from extpack.keys import load_key_pair
from extpack.models import ExtContainer
from extpack.packaging.archive import produce_zip
from extpack.packaging.orchestrator import PackOrchestrator, pack, write_atomic


def test_pack_directory(key_file: Path, extension_dir: Path, tmp_path: Path) -> None:
    out_file = tmp_path / "out.ext"

    assert pack(key_file, extension_dir, out_file) == out_file

    container = ExtContainer.unpack(out_file.read_bytes())
    key_pair = load_key_pair(key_file)
    assert container.public_key_der == key_pair.public_key_der
    assert verify_signature(container.payload, container.signature, key_pair.public_key)


def test_pack_zip_file_is_embedded_verbatim(
    key_file: Path, extension_dir: Path, tmp_path: Path
) -> None:
    zip_file = tmp_path / "my-extension.zip"
    zip_file.write_bytes(produce_zip(extension_dir))
    out_file = tmp_path / "out.ext"

    pack(key_file, zip_file, out_file)

    container = ExtContainer.unpack(out_file.read_bytes())
    assert container.payload == zip_file.read_bytes()


def test_pack_file_is_not_validated_as_zip(key_file: Path, tmp_path: Path) -> None:
    source = tmp_path / "opaque.bin"
    source.write_bytes(b"not a zip at all")

    pack(key_file, source, tmp_path / "out.ext")

    container = ExtContainer.unpack((tmp_path / "out.ext").read_bytes())
    assert container.payload == b"not a zip at all"


def test_signed_payload_is_assembled_payload(
    key_file: Path, extension_dir: Path, tmp_path: Path
) -> None:
    """The exact bytes handed to the signer are the bytes written to the container."""
    out_file = tmp_path / "out.ext"
    with patch(
        "extpack.packaging.orchestrator.sign_payload", return_value=b"SIG"
    ) as mock_sign:
        pack(key_file, extension_dir, out_file)

    signed_payload = mock_sign.call_args.args[0]
    container = ExtContainer.unpack(out_file.read_bytes())
    assert container.signature == b"SIG"
    assert container.payload == signed_payload


def test_missing_key_fails_first(extension_dir: Path, tmp_path: Path) -> None:
    with pytest.raises(NotFoundError, match="Private key file"):
        pack(tmp_path / "nope.pem", extension_dir, tmp_path / "out.ext")


def test_missing_source_fails_before_any_work(key_file: Path, tmp_path: Path) -> None:
    out_file = tmp_path / "out.ext"
    with patch("extpack.packaging.orchestrator.load_key_pair") as mock_load:
        with pytest.raises(NotFoundError, match="Source path") as exc_info:
            pack(key_file, tmp_path / "missing", out_file)

    assert exc_info.value.path == tmp_path / "missing"
    mock_load.assert_not_called()
    assert not out_file.exists()


def test_existing_output_requires_force(
    key_file: Path, extension_dir: Path, tmp_path: Path
) -> None:
    out_file = tmp_path / "out.ext"
    out_file.write_bytes(b"old")

    with patch("extpack.packaging.orchestrator.produce_zip") as mock_zip:
        with pytest.raises(AlreadyExistsError, match="Output file"):
            pack(key_file, extension_dir, out_file)
    mock_zip.assert_not_called()
    assert out_file.read_bytes() == b"old"

    pack(key_file, extension_dir, out_file, force=True)
    assert out_file.read_bytes()[:4] == b"EXT8"


def test_invalid_key_leaves_no_output(extension_dir: Path, tmp_path: Path) -> None:
    key_path = tmp_path / "bad.pem"
    key_path.write_text("garbage")
    out_file = tmp_path / "out.ext"

    with pytest.raises(InvalidKeyError):
        pack(key_path, extension_dir, out_file)
    assert not out_file.exists()


@pytest.mark.skipif(not hasattr(os, "mkfifo"), reason="requires named pipes")
def test_unsupported_source_type(key_file: Path, tmp_path: Path) -> None:
    fifo = tmp_path / "pipe"
    os.mkfifo(fifo)

    with pytest.raises(UnsupportedSourceTypeError, match="not a directory or a file"):
        pack(key_file, fifo, tmp_path / "out.ext")


def test_write_failure_is_reported(
    key_file: Path, extension_dir: Path, tmp_path: Path
) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("a file, not a directory")

    with pytest.raises(WriteError, match="Cannot write output file"):
        pack(key_file, extension_dir, blocker / "out.ext")


def test_write_atomic_leaves_no_temp_files(tmp_path: Path) -> None:
    target = tmp_path / "nested" / "out.ext"

    write_atomic(target, b"data")

    assert target.read_bytes() == b"data"
    assert [p.name for p in target.parent.iterdir()] == ["out.ext"]


def test_write_atomic_wraps_library_failures(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    def broken_atomic_write(path: object, data: bytes) -> None:
        raise OSError(28, "No space left on device")

    monkeypatch.setattr(
        "extpack.packaging.orchestrator.atomic_write", broken_atomic_write
    )

    with pytest.raises(WriteError, match="No space left") as exc_info:
        write_atomic(tmp_path / "out.ext", b"data")
    assert exc_info.value.path == tmp_path / "out.ext"
    assert not (tmp_path / "out.ext").exists()


@pytest.fixture
def umask_022() -> Iterator[None]:
    previous = os.umask(0o022)
    yield
    os.umask(previous)


def test_new_package_follows_umask(
    key_file: Path, extension_dir: Path, tmp_path: Path, umask_022: None
) -> None:
    out_file = pack(key_file, extension_dir, tmp_path / "out.ext")
    assert out_file.stat().st_mode & 0o777 == 0o644


def test_overwritten_package_keeps_its_mode(
    key_file: Path, extension_dir: Path, tmp_path: Path, umask_022: None
) -> None:
    out_file = tmp_path / "out.ext"
    out_file.write_bytes(b"old")
    out_file.chmod(0o640)

    pack(key_file, extension_dir, out_file, force=True)

    assert out_file.read_bytes()[:4] == b"EXT8"
    assert out_file.stat().st_mode & 0o777 == 0o640


def test_directory_as_key_is_invalid_key(
    extension_dir: Path, tmp_path: Path
) -> None:
    key_dir = tmp_path / "kd"
    key_dir.mkdir()

    with pytest.raises(InvalidKeyError, match="cannot be read"):
        pack(key_dir, extension_dir, tmp_path / "out.ext")
    assert not (tmp_path / "out.ext").exists()


def test_orchestrator_paths_are_normalized(tmp_path: Path) -> None:
    orchestrator = PackOrchestrator(
        private_key_file=str(tmp_path / "k.pem"),
        source_path=str(tmp_path / "src"),
        out_file=str(tmp_path / "out.ext"),
    )
    assert orchestrator.private_key_file == tmp_path / "k.pem"
    assert orchestrator.source_path == tmp_path / "src"
    assert orchestrator.out_file == tmp_path / "out.ext"
    assert orchestrator.force is False
