"""Command-line argument parsing and Terraform argument assembly."""

from __future__ import annotations

import json
import os
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from terrawrap.options import (
    TERRAFORM_DEFAULT_PATH,
    TERRAGRUNT_CACHE_DIR,
    TerragruntConfig,
    TerragruntOptions,
    default_config_path,
)

OPT_TERRAGRUNT_CONFIG = "terragrunt-config"
OPT_TERRAGRUNT_TFPATH = "terragrunt-tfpath"
OPT_TERRAGRUNT_NO_AUTO_INIT = "terragrunt-no-auto-init"
OPT_TERRAGRUNT_NO_AUTO_RETRY = "terragrunt-no-auto-retry"
OPT_NON_INTERACTIVE = "terragrunt-non-interactive"
OPT_WORKING_DIR = "terragrunt-working-dir"
OPT_DOWNLOAD_DIR = "terragrunt-download-dir"
OPT_TERRAGRUNT_SOURCE = "terragrunt-source"
OPT_TERRAGRUNT_SOURCE_UPDATE = "terragrunt-source-update"
OPT_TERRAGRUNT_IAM_ROLE = "terragrunt-iam-role"
OPT_TERRAGRUNT_IGNORE_DEPENDENCY_ERRORS = "terragrunt-ignore-dependency-errors"
OPT_TERRAGRUNT_IGNORE_EXTERNAL_DEPENDENCIES = "terragrunt-ignore-external-dependencies"
OPT_TERRAGRUNT_EXCLUDE_DIR = "terragrunt-exclude-dir"
OPT_TERRAGRUNT_INCLUDE_DIR = "terragrunt-include-dir"
OPT_TERRAGRUNT_CHECK = "terragrunt-check"

ALL_TERRAGRUNT_BOOLEAN_OPTS = (
    OPT_NON_INTERACTIVE,
    OPT_TERRAGRUNT_SOURCE_UPDATE,
    OPT_TERRAGRUNT_IGNORE_DEPENDENCY_ERRORS,
    OPT_TERRAGRUNT_IGNORE_EXTERNAL_DEPENDENCIES,
    OPT_TERRAGRUNT_NO_AUTO_INIT,
    OPT_TERRAGRUNT_NO_AUTO_RETRY,
    OPT_TERRAGRUNT_CHECK,
)
ALL_TERRAGRUNT_STRING_OPTS = (
    OPT_TERRAGRUNT_CONFIG,
    OPT_TERRAGRUNT_TFPATH,
    OPT_WORKING_DIR,
    OPT_DOWNLOAD_DIR,
    OPT_TERRAGRUNT_SOURCE,
    OPT_TERRAGRUNT_IAM_ROLE,
    OPT_TERRAGRUNT_EXCLUDE_DIR,
    OPT_TERRAGRUNT_INCLUDE_DIR,
)

CMD_PLAN_ALL = "plan-all"
CMD_APPLY_ALL = "apply-all"
CMD_DESTROY_ALL = "destroy-all"
CMD_OUTPUT_ALL = "output-all"
CMD_VALIDATE_ALL = "validate-all"

MULTI_MODULE_COMMANDS = (CMD_APPLY_ALL, CMD_DESTROY_ALL, CMD_OUTPUT_ALL, CMD_PLAN_ALL, CMD_VALIDATE_ALL)


class ArgMissingValue(ValueError):
    """A string option was given without a value."""

    def __init__(self, arg_name: str) -> None:
        self.arg_name = arg_name
        super().__init__(f"You must specify a value for the --{arg_name} option")


def _to_slash(path: str) -> str:
    return path.replace(os.sep, "/") if os.sep != "/" else path


def _first(args: Sequence[str]) -> str:
    return args[0] if args else ""


def _last(args: Sequence[str]) -> str:
    return args[-1] if args else ""


def _dedupe_keep_last(items: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    kept: list[str] = []
    for item in reversed(list(items)):
        if item not in seen:
            seen.add(item)
            kept.append(item)
    kept.reverse()
    return kept


def parse_terragrunt_options_from_args(
    args: Sequence[str],
    environ: Mapping[str, str] | None = None,
    cwd: str | None = None,
) -> TerragruntOptions:
    """Build run options from command-line arguments and the environment."""
    environ = os.environ if environ is None else environ
    current_dir = os.getcwd() if cwd is None else cwd
    args = list(args)

    working_dir = parse_string_arg(args, OPT_WORKING_DIR, current_dir)

    download_dir_raw = parse_string_arg(args, OPT_DOWNLOAD_DIR, environ.get("TERRAGRUNT_DOWNLOAD", ""))
    if not download_dir_raw:
        download_dir_raw = os.path.join(working_dir, TERRAGRUNT_CACHE_DIR)
    download_dir = os.path.normpath(os.path.join(current_dir, download_dir_raw))

    config_path = parse_string_arg(args, OPT_TERRAGRUNT_CONFIG, environ.get("TERRAGRUNT_CONFIG", ""))
    if not config_path:
        config_path = default_config_path(working_dir)

    terraform_path = parse_string_arg(args, OPT_TERRAGRUNT_TFPATH, environ.get("TERRAGRUNT_TFPATH", ""))
    if not terraform_path:
        terraform_path = TERRAFORM_DEFAULT_PATH

    terraform_source = parse_string_arg(args, OPT_TERRAGRUNT_SOURCE, environ.get("TERRAGRUNT_SOURCE", ""))
    source_update = parse_boolean_arg(
        args, OPT_TERRAGRUNT_SOURCE_UPDATE, environ.get("TERRAGRUNT_SOURCE_UPDATE") in ("true", "1")
    )
    ignore_dependency_errors = parse_boolean_arg(args, OPT_TERRAGRUNT_IGNORE_DEPENDENCY_ERRORS, False)
    ignore_external_dependencies = parse_boolean_arg(args, OPT_TERRAGRUNT_IGNORE_EXTERNAL_DEPENDENCIES, False)
    iam_role = parse_string_arg(args, OPT_TERRAGRUNT_IAM_ROLE, environ.get("TERRAGRUNT_IAM_ROLE", ""))
    exclude_dirs = parse_multi_string_arg(args, OPT_TERRAGRUNT_EXCLUDE_DIR, [])
    include_dirs = parse_multi_string_arg(args, OPT_TERRAGRUNT_INCLUDE_DIR, [])

    cli_args = filter_terragrunt_args(args)
    return TerragruntOptions(
        terragrunt_config_path=_to_slash(config_path),
        terraform_path=_to_slash(terraform_path),
        auto_init=not parse_boolean_arg(
            args, OPT_TERRAGRUNT_NO_AUTO_INIT, environ.get("TERRAGRUNT_AUTO_INIT") == "false"
        ),
        auto_retry=not parse_boolean_arg(
            args, OPT_TERRAGRUNT_NO_AUTO_RETRY, environ.get("TERRAGRUNT_AUTO_RETRY") == "false"
        ),
        non_interactive=parse_boolean_arg(args, OPT_NON_INTERACTIVE, environ.get("TF_INPUT") in ("false", "0")),
        terraform_cli_args=cli_args,
        terraform_command=_first(cli_args),
        working_dir=_to_slash(working_dir),
        download_dir=_to_slash(download_dir),
        source=terraform_source,
        source_update=source_update,
        ignore_dependency_errors=ignore_dependency_errors,
        ignore_external_dependencies=ignore_external_dependencies,
        env={key.strip(): value for key, value in environ.items()},
        iam_role=iam_role,
        exclude_dirs=exclude_dirs,
        include_dirs=include_dirs,
        check=parse_boolean_arg(args, OPT_TERRAGRUNT_CHECK, environ.get("TERRAGRUNT_CHECK") == "false"),
    )


def filter_terraform_extra_args(options: TerragruntOptions, config: TerragruntConfig) -> list[str]:
    """Return the configured extra arguments that apply to the current command."""
    out: list[str] = []
    cmd = _first(options.terraform_cli_args)
    extra_args = config.terraform.extra_args if config.terraform else []

    for extra in extra_args:
        for extra_cmd in extra.commands:
            if cmd != extra_cmd:
                continue
            # Applying a saved plan file takes no -var or -var-file arguments.
            skip_vars = cmd == "apply" and os.path.isfile(_last(options.terraform_cli_args))

            if extra.arguments is not None:
                if skip_vars:
                    out.extend(a for a in extra.arguments if not a.startswith("-var"))
                else:
                    out.extend(extra.arguments)

            if skip_vars:
                continue

            if extra.required_var_files is not None:
                out.extend(f"-var-file={f}" for f in _dedupe_keep_last(extra.required_var_files))

            if extra.optional_var_files is not None:
                for var_file in _dedupe_keep_last(extra.optional_var_files):
                    if os.path.exists(var_file):
                        out.append(f"-var-file={var_file}")
                    else:
                        options.logger.info("Skipping var-file %s as it does not exist", var_file)
    return out


def filter_terraform_env_vars_from_extra_args(
    options: TerragruntOptions, config: TerragruntConfig
) -> dict[str, str]:
    """Return the configured env vars that apply to the current command."""
    out: dict[str, str] = {}
    cmd = _first(options.terraform_cli_args)
    extra_args = config.terraform.extra_args if config.terraform else []
    for extra in extra_args:
        if extra.env_vars is None:
            continue
        for extra_cmd in extra.commands:
            if cmd == extra_cmd:
                out.update(extra.env_vars)
    return out


def parse_environment_variables(environment: Iterable[str]) -> dict[str, str]:
    """Turn ``KEY=value`` strings into a mapping; entries without ``=`` are dropped."""
    result: dict[str, str] = {}
    for entry in environment:
        key, sep, value = entry.partition("=")
        if sep:
            result[key.strip()] = value
    return result


def filter_terragrunt_args(args: Iterable[str]) -> list[str]:
    """Return the arguments with every wrapper-specific argument removed."""
    out: list[str] = []
    remaining = iter(args)
    for arg in remaining:
        if arg in MULTI_MODULE_COMMANDS:
            continue
        name = arg.removeprefix("--")
        if name in ALL_TERRAGRUNT_STRING_OPTS:
            next(remaining, None)
            continue
        if name in ALL_TERRAGRUNT_BOOLEAN_OPTS:
            continue
        out.append(arg)
    return out


def parse_boolean_arg(args: Sequence[str], arg_name: str, default: bool) -> bool:
    """Return True if ``--arg_name`` is present, otherwise ``default``."""
    return f"--{arg_name}" in args or default


def parse_string_arg(args: Sequence[str], arg_name: str, default: str) -> str:
    """Return the value following ``--arg_name``, or ``default`` if it is absent."""
    flag = f"--{arg_name}"
    for position, arg in enumerate(args):
        if arg == flag:
            if position + 1 < len(args):
                return args[position + 1]
            raise ArgMissingValue(arg_name)
    return default


def parse_multi_string_arg(args: Sequence[str], arg_name: str, default: list[str]) -> list[str]:
    """Return every value given for a repeatable ``--arg_name`` option, or ``default``."""
    flag = f"--{arg_name}"
    values: list[str] = []
    for position, arg in enumerate(args):
        if arg == flag:
            if position + 1 >= len(args):
                raise ArgMissingValue(arg_name)
            values.append(args[position + 1])
    return values or default


def to_terraform_env_vars(variables: Mapping[str, Any]) -> dict[str, str]:
    """Turn input variables into ``TF_VAR_`` environment variables."""
    return {f"TF_VAR_{name}": as_terraform_env_var_json_value(value) for name, value in variables.items()}


_HTML_ESCAPES = {"<": "\\u003c", ">": "\\u003e", "&": "\\u0026", "\u2028": "\\u2028", "\u2029": "\\u2029"}


def as_terraform_env_var_json_value(value: Any) -> str:
    """Encode a value as JSON for Terraform; strings are passed through unquoted."""
    if isinstance(value, str):
        return value
    encoded = json.dumps(value, separators=(",", ":"), sort_keys=True, ensure_ascii=False, allow_nan=False)
    for char, escape in _HTML_ESCAPES.items():
        encoded = encoded.replace(char, escape)
    return encoded