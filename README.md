# terrawrap

`terrawrap` holds the decision-making core of a thin wrapper around
Terraform. It works out which command-line arguments belong to the wrapper
and which go on to Terraform, turns configuration inputs into `TF_VAR_*`
environment variables, checks a Terraform version against a constraint, and
keeps track of where module sources go and whether a downloaded copy is
still current.

It is a plain library with no runtime dependencies.

## Modules

| Module | Contents |
| --- | --- |
| `terrawrap.options` | `TerragruntOptions`, `TerragruntConfig`, `TerraformConfig`, `TerraformExtraArguments`, `Hook`, `default_config_path` |
| `terrawrap.args` | Parsing the wrapper's own `--terragrunt-*` flags, removing them from the argument list, building extra Terraform arguments and environment variables, `ArgMissingValue` |
| `terrawrap.version_check` | `Version`, `Constraints`, `parse_terraform_version`, `check_terraform_version_meets_constraint`, `check_terraform_version`, `InvalidTerraformVersionSyntax`, `InvalidTerraformVersion` |
| `terrawrap.file_copy` | `copy_folder_contents` and `FileCopyGetter`, which copy files instead of linking them and keep a manifest of what was copied |
| `terrawrap.source_url` | `SourceUrl` and helpers that split and encode module source URLs |
| `terrawrap.download_source` | `TerraformSource`, `already_have_latest_code`, `read_version_file`, `write_version_file`, `get_terraform_source_url` |

## Options and configuration

`TerragruntOptions` is a dataclass holding everything that controls one run:
the config path, the Terraform path (default `terraform`), the arguments for
Terraform, the working and download directories, the environment, retry
settings and so on. If no working directory is given it is taken from the
folder of the config path. If no download directory is given it is
`.terragrunt-cache` inside the working directory.

- `insert_terraform_cli_args(*args)` puts arguments straight after the
  Terraform command, for example after `init`.
- `clone(path)` returns an independent copy that uses another config path and
  that path's folder as its working directory.

`TerragruntConfig`, `TerraformConfig`, `TerraformExtraArguments` and `Hook`
are dataclasses for a configuration that has already been read. This package
does not read configuration files itself. `default_config_path(dir)` gives
`<dir>/terragrunt.hcl`.

## Parsing the command line

The wrapper's own options all start with `--terragrunt-`. Everything else
goes on to Terraform unchanged. Multi-module commands such as `apply-all` and
`plan-all` are removed as well.

```python
from terrawrap.args import (
    ArgMissingValue,
    filter_terragrunt_args,
    parse_terragrunt_options_from_args,
)

filter_terragrunt_args(
    ["foo", "--terragrunt-non-interactive", "--bar",
     "--terragrunt-working-dir", "/some/path", "--baz"]
)
# ['foo', '--bar', '--baz']

options = parse_terragrunt_options_from_args(
    ["plan", "--terragrunt-working-dir", "/some/path"],
    environ={},
    cwd="/home/me/project",
)
options.working_dir         # '/some/path'
options.terraform_cli_args  # ['plan']
options.terraform_command   # 'plan'

try:
    parse_terragrunt_options_from_args(["--terragrunt-config"], environ={}, cwd="/tmp")
except ArgMissingValue as err:
    print(err)  # You must specify a value for the --terragrunt-config option
```

If `environ` or `cwd` is left out, the process environment and current
directory are used. Several options fall back on environment variables:
`TERRAGRUNT_CONFIG`, `TERRAGRUNT_TFPATH`, `TERRAGRUNT_DOWNLOAD`,
`TERRAGRUNT_SOURCE`, `TERRAGRUNT_SOURCE_UPDATE`, `TERRAGRUNT_IAM_ROLE`,
`TERRAGRUNT_AUTO_INIT`, `TERRAGRUNT_AUTO_RETRY`, `TERRAGRUNT_CHECK` and
`TF_INPUT`.

The lower-level helpers are `parse_boolean_arg`, `parse_string_arg` and
`parse_multi_string_arg`. The last one handles options that can be repeated:

```python
from terrawrap.args import parse_multi_string_arg

parse_multi_string_arg(["plan-all", "--foo", "bar1", "--foo", "bar2"], "foo", ["default_bar"])
# ['bar1', 'bar2']
```

## Extra arguments and environment variables

`filter_terraform_extra_args(options, config)` collects the configured extra
arguments for the current command. It adds `-var-file=` for each required
var file, and for each optional var file that exists. When the command is
`apply` with a plan file as its last argument, every `-var...` argument and
every var file is left out.
`filter_terraform_env_vars_from_extra_args(options, config)` collects the
configured environment variables for the current command.

Inputs are handed to Terraform as `TF_VAR_<name>` variables. Strings are
passed as they are. Everything else is encoded as compact JSON with sorted
keys.

```python
from terrawrap.args import parse_environment_variables, to_terraform_env_vars

to_terraform_env_vars({"foo": "bar", "list": [1, 2, 3], "map": {"a": "b"}})
# {'TF_VAR_foo': 'bar', 'TF_VAR_list': '[1,2,3]', 'TF_VAR_map': '{"a":"b"}'}

parse_environment_variables(["foo=composite=bar", "foobar"])
# {'foo': 'composite=bar'}
```

## Checking the Terraform version

```python
from terrawrap.version_check import (
    InvalidTerraformVersion,
    Version,
    check_terraform_version_meets_constraint,
    parse_terraform_version,
)

version = parse_terraform_version(
    "Terraform v0.9.4-dev (cad024a5fe131a546936674ef85445215bbc4226+CHANGES)"
)
version == Version.parse("v0.9.4")  # True

check_terraform_version_meets_constraint(Version.parse("v1.0.0"), ">= v0.9.3")  # passes

try:
    check_terraform_version_meets_constraint(Version.parse("v0.8.8"), ">= v0.9.3")
except InvalidTerraformVersion as err:
    print(err)
```

`Constraints.parse` accepts comma-separated constraints using `=`, `!=`,
`>`, `<`, `>=`, `<=` and `~>`, and `Constraints.check(version)` is true only
when all of them hold. Output that does not look like `Terraform vX.Y.Z`
raises `InvalidTerraformVersionSyntax`. `check_terraform_version(constraint,
options)` checks `options.terraform_version`.

## Module sources

A source such as `git::ssh://example.com/modules.git//vpc?ref=v1.2.0` is split
at the double slash. The part before it is the repository, the part after it
is the module's folder inside that repository. The repository without its
query string gives the download folder name (`encode_source_name`); the query
string, such as `ref=v1.2.0`, gives the version (`encode_source_version`).
Both are URL-safe base64 SHA-1 digests.

```python
from terrawrap.options import TerragruntOptions
from terrawrap.source_url import (
    SourceUrl,
    encode_source_name,
    encode_source_version,
    get_forced_getter,
    is_local_source,
    split_source_url,
)

get_forced_getter("git::https://example.com/modules.git")
# ('git', 'https://example.com/modules.git')

root, module_path = split_source_url(SourceUrl.parse("/foo/bar//baz/blah"), TerragruntOptions())
str(root), module_path  # ('/foo/bar', 'baz/blah')

url = SourceUrl.parse("https://example.com/modules.git?ref=v1.2.0")
is_local_source(url)        # False
encode_source_name(url)     # the same for every ref of this repository
encode_source_version(url)  # changes when the ref changes
```

`TerraformSource` records a source URL with its download folder, working
folder and version file. `already_have_latest_code(source, options)` is true
only when all three exist, the working folder has `*.tf` files, and the
stored version matches the requested one. It is always false for `file`
sources, so local code is copied again every time. `write_version_file` and
`read_version_file` store and read that version.
`get_terraform_source_url(options, config)` prefers the source given on the
command line over the one in the configuration.

## Copying files

`copy_folder_contents(source, destination, manifest_name)` copies a folder's
contents into another folder, skipping `.terragrunt-cache` folders, and
records what it copied in a manifest file. On the next copy into the same
destination, the files listed in the old manifest are removed first, so
stale files do not stay behind. `FileCopyGetter.get` copies a local
directory this way; `FileCopyGetter.get_file` copies a single file.

## What this package does not do

`terrawrap` prepares options, arguments and environment variables; it does
not act on them. It has no command-line program, never starts Terraform or
any other process, does not run hooks, does not read or format configuration
files, does not fetch remote sources (only local folders can be copied), does
not set up remote state, assume cloud roles or run commands across several
modules.

## Running the tests

Install the `test` extra, then run `pytest` from the project root.