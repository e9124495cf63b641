"""Run options and configuration structures shared by the wrapper."""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, TextIO

if TYPE_CHECKING:
    from terrawrap.version_check import Version

TERRAFORM_DEFAULT_PATH = "terraform"
TERRAGRUNT_CACHE_DIR = ".terragrunt-cache"
DEFAULT_TERRAGRUNT_CONFIG_PATH = "terragrunt.hcl"


def _to_slash(path: str) -> str:
    return path.replace(os.sep, "/") if os.sep != "/" else path


def _join_path(*parts: str) -> str:
    return _to_slash(os.path.normpath(os.path.join(*parts)))


def _dir_of(path: str) -> str:
    return _to_slash(os.path.dirname(path) or ".")


def default_config_path(working_dir: str) -> str:
    """Return the default config file path inside ``working_dir``."""
    return _join_path(working_dir, DEFAULT_TERRAGRUNT_CONFIG_PATH)


@dataclass
class TerragruntOptions:
    """Everything that controls one run of the wrapper."""

    terragrunt_config_path: str = ""
    terraform_path: str = TERRAFORM_DEFAULT_PATH
    terraform_version: Version | None = None
    auto_init: bool = True
    auto_retry: bool = True
    non_interactive: bool = False
    terraform_cli_args: list[str] = field(default_factory=list)
    terraform_command: str = ""
    working_dir: str = ""
    download_dir: str = ""
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("terrawrap"))
    source: str = ""
    source_update: bool = False
    ignore_dependency_errors: bool = False
    ignore_external_dependencies: bool = False
    writer: TextIO = field(default_factory=lambda: sys.stdout)
    err_writer: TextIO = field(default_factory=lambda: sys.stderr)
    env: dict[str, str] = field(default_factory=dict)
    iam_role: str = ""
    exclude_dirs: list[str] = field(default_factory=list)
    include_dirs: list[str] = field(default_factory=list)
    check: bool = False
    max_retry_attempts: int = 3
    sleep: float = 5.0
    retryable_errors: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.working_dir:
            self.working_dir = _dir_of(self.terragrunt_config_path)
        if not self.download_dir:
            self.download_dir = _join_path(self.working_dir, TERRAGRUNT_CACHE_DIR)

    def insert_terraform_cli_args(self, *args: str) -> None:
        """Insert ``args`` right after the command in the Terraform arguments."""
        if not self.terraform_cli_args:
            self.terraform_cli_args = list(args)
            return
        head, *tail = self.terraform_cli_args
        self.terraform_cli_args = [head, *args, *tail]

    def clone(self, terragrunt_config_path: str) -> TerragruntOptions:
        """Return an independent copy that uses another config path."""
        return replace(
            self,
            terragrunt_config_path=terragrunt_config_path,
            working_dir=_dir_of(terragrunt_config_path),
            terraform_cli_args=list(self.terraform_cli_args),
            env=dict(self.env),
            exclude_dirs=list(self.exclude_dirs),
            include_dirs=list(self.include_dirs),
            retryable_errors=list(self.retryable_errors),
        )


@dataclass
class TerraformExtraArguments:
    """Extra arguments, var files and env vars for some Terraform commands."""

    name: str = ""
    commands: list[str] = field(default_factory=list)
    arguments: list[str] | None = None
    required_var_files: list[str] | None = None
    optional_var_files: list[str] | None = None
    env_vars: dict[str, str] | None = None


@dataclass
class Hook:
    """A command run before or after Terraform."""

    name: str = ""
    commands: list[str] = field(default_factory=list)
    execute: list[str] = field(default_factory=list)
    run_on_error: bool | None = None


@dataclass
class TerraformConfig:
    """The ``terraform`` block of a configuration."""

    extra_args: list[TerraformExtraArguments] = field(default_factory=list)
    source: str | None = None
    before_hooks: list[Hook] = field(default_factory=list)
    after_hooks: list[Hook] = field(default_factory=list)

    def get_before_hooks(self) -> list[Hook]:
        return list(self.before_hooks or [])

    def get_after_hooks(self) -> list[Hook]:
        return list(self.after_hooks or [])


@dataclass
class TerragruntConfig:
    """A parsed configuration file."""

    terraform: TerraformConfig | None = None
    terraform_binary: str = ""
    terraform_version_constraint: str = ""
    remote_state: Any = None
    skip: bool = False
    iam_role: str = ""
    inputs: dict[str, Any] | None = None
    prevent_destroy: bool = False