"""Copying Terraform code between folders, tracked by a manifest."""

from __future__ import annotations

import os
import shutil
from pathlib import Path

# Manifest for files copied from the source given in the terraform { source = ... } config.
SOURCE_MANIFEST_NAME = ".terragrunt-source-manifest"

_CACHE_DIR = ".terragrunt-cache"


def _read_manifest(manifest: Path) -> list[str]:
    if not manifest.is_file():
        return []
    return [line for line in manifest.read_text(encoding="utf-8").splitlines() if line]


def _clean_previous_copy(destination: Path, manifest: Path) -> None:
    entries = [destination / entry for entry in _read_manifest(manifest)]
    for path in entries:
        if path.is_file() or path.is_symlink():
            path.unlink()
    # Deepest directories first, so parents become empty before they are checked.
    for path in sorted((p for p in entries if p.is_dir()), key=lambda p: len(p.parts), reverse=True):
        if not any(path.iterdir()):
            path.rmdir()


def copy_folder_contents(source: str | os.PathLike[str], destination: str | os.PathLike[str], manifest_name: str) -> None:
    """Copy everything in ``source`` into ``destination``.

    Whatever an earlier copy recorded in the manifest is removed first, so files
    that have gone from the source do not linger in the destination.
    """
    source_dir = Path(source).resolve()
    destination_dir = Path(destination).resolve()
    destination_dir.mkdir(parents=True, exist_ok=True)
    manifest = destination_dir / manifest_name

    _clean_previous_copy(destination_dir, manifest)

    copied: list[str] = []
    for root, dirs, files in os.walk(source_dir):
        root_path = Path(root)
        dirs[:] = sorted(
            d for d in dirs if d != _CACHE_DIR and (root_path / d).resolve() != destination_dir
        )
        for name in dirs:
            relative = (root_path / name).relative_to(source_dir)
            (destination_dir / relative).mkdir(parents=True, exist_ok=True)
            copied.append(relative.as_posix())
        for name in sorted(files):
            if name == manifest_name:
                continue
            relative = (root_path / name).relative_to(source_dir)
            target = destination_dir / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(root_path / name, target)
            copied.append(relative.as_posix())

    manifest.write_text("".join(f"{entry}\n" for entry in copied), encoding="utf-8")


class FileCopyGetter:
    """Fetches local sources by copying files rather than linking them."""

    def get(self, destination: str | os.PathLike[str], source_path: str | os.PathLike[str]) -> None:
        """Copy the directory ``source_path`` into ``destination``."""
        path = Path(source_path)
        try:
            is_dir = path.stat() and path.is_dir()
        except OSError as exc:
            raise FileNotFoundError(f"source path error: {exc}") from exc
        if not is_dir:
            raise NotADirectoryError("source path must be a directory")
        copy_folder_contents(path, destination, SOURCE_MANIFEST_NAME)

    def get_file(self, destination: str | os.PathLike[str], source_path: str | os.PathLike[str]) -> None:
        """Copy the single file ``source_path`` to ``destination``."""
        path = Path(source_path)
        if not path.is_file():
            raise FileNotFoundError(f"source path error: {path} is not a file")
        target = Path(destination)
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(path, target)