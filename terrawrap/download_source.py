"""Deciding whether downloaded Terraform source is current, and where it comes from."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from terrawrap.options import TerragruntConfig, TerragruntOptions
from terrawrap.source_url import SourceUrl, encode_source_version, is_local_source

# Manifest for files copied from the folder that holds the current config file.
MODULE_MANIFEST_NAME = ".terragrunt-module-manifest"

VERSION_FILE_NAME = ".terragrunt-source-version"


@dataclass
class TerraformSource:
    """Terraform source code that is to be downloaded, and where it goes."""

    # A canonical version of the raw source, in URL form.
    canonical_source_url: SourceUrl
    # The folder the source is downloaded into.
    download_dir: str
    # The folder inside download_dir that Terraform runs in.
    working_dir: str
    # A file in download_dir that records the version of the downloaded code.
    version_file: str

    def __str__(self) -> str:
        return (
            f"TerraformSource{{CanonicalSourceURL = {self.canonical_source_url}, "
            f"DownloadDir = {self.download_dir}, WorkingDir = {self.working_dir}, "
            f"VersionFile = {self.version_file}}}"
        )


def already_have_latest_code(terraform_source: TerraformSource, options: TerragruntOptions) -> bool:
    """Return True if this exact version of the source is already downloaded.

    Local sources are always treated as stale, so local edits are picked up on
    every run.
    """
    if (
        is_local_source(terraform_source.canonical_source_url)
        or not os.path.exists(terraform_source.download_dir)
        or not os.path.exists(terraform_source.working_dir)
        or not os.path.exists(terraform_source.version_file)
    ):
        return False

    if not any(Path(terraform_source.working_dir).glob("*.tf")):
        options.logger.info(
            "Working dir %s exists but contains no Terraform files, so assuming code needs to be downloaded again.",
            terraform_source.working_dir,
        )
        return False

    current_version = encode_source_version(terraform_source.canonical_source_url)
    return read_version_file(terraform_source) == current_version


def read_version_file(terraform_source: TerraformSource) -> str:
    """Return the version recorded in the download folder."""
    return Path(terraform_source.version_file).read_text(encoding="utf-8")


def write_version_file(terraform_source: TerraformSource) -> None:
    """Record the version of the source in the download folder."""
    version = encode_source_version(terraform_source.canonical_source_url)
    fd = os.open(terraform_source.version_file, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o640)
    with os.fdopen(fd, "w", encoding="utf-8") as handle:
        handle.write(version)


def get_terraform_source_url(options: TerragruntOptions, config: TerragruntConfig) -> str:
    """Return the source URL from the command line or the config, or an empty string."""
    if options.source:
        return options.source
    if config.terraform is not None and config.terraform.source is not None:
        return config.terraform.source
    return ""