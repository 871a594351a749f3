"""Loads packager defaults from the `[tool.extpack]` table of a manifest."""

from pathlib import Path
import tomllib
from typing import Any, Self

from attrs import define, field

DEFAULT_PRIVATE_KEY_PATH = "private.pem"


@define(frozen=True, slots=True)
class PackagerConfig:
    private_key_path: Path = field(default=Path(DEFAULT_PRIVATE_KEY_PATH))
    output_path: Path | None = field(default=None)
    force: bool = field(default=False)

    @classmethod
    def from_table(cls, table: dict[str, Any], base_dir: Path) -> Self:
        """Builds a config from a `[tool.extpack]` table, resolving paths against `base_dir`."""
        output_path = table.get("output_path")
        return cls(
            private_key_path=base_dir
            / table.get("private_key_path", DEFAULT_PRIVATE_KEY_PATH),
            output_path=base_dir / output_path if output_path else None,
            force=bool(table.get("force", False)),
        )


def load_config(manifest_path: str | Path = "pyproject.toml") -> PackagerConfig:
    """
    Reads `[tool.extpack]` from `manifest_path`.

    A missing manifest, or one without the table, yields the defaults with
    paths relative to the current directory.
    """
    manifest_path = Path(manifest_path)
    if not manifest_path.is_file():
        return PackagerConfig()

    with manifest_path.open("rb") as f:
        pyproject_data = tomllib.load(f)

    extpack_conf = pyproject_data.get("tool", {}).get("extpack", {})
    if not extpack_conf:
        return PackagerConfig()
    return PackagerConfig.from_table(extpack_conf, manifest_path.parent)


def default_out_file(source_path: str) -> str:
    """`foo.zip` becomes `foo.ext`; anything else gets `.ext` appended."""
    source_path = source_path.rstrip("/\\") or source_path
    if source_path.endswith(".zip") and len(source_path) > len(".zip"):
        return source_path[: -len(".zip")] + ".ext"
    return source_path + ".ext"
