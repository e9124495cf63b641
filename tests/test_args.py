import os

import pytest

from terrawrap.args import (
    ArgMissingValue,
    filter_terraform_env_vars_from_extra_args,
    filter_terraform_extra_args,
    filter_terragrunt_args,
    parse_boolean_arg,
    parse_environment_variables,
    parse_multi_string_arg,
    parse_string_arg,
    parse_terragrunt_options_from_args,
    to_terraform_env_vars,
)
from terrawrap.options import (
    TerraformConfig,
    TerraformExtraArguments,
    TerragruntConfig,
    TerragruntOptions,
    default_config_path,
)

CONFIG = "/some/path/terragrunt.hcl"


@pytest.fixture
def cwd(tmp_path):
    return str(tmp_path).replace(os.sep, "/")


def _expected(cwd, config=None, working_dir=None, cli_args=(), non_interactive=False, source="",
              ignore_dep=False, iam_role=""):
    working_dir = working_dir or cwd
    return {
        "terragrunt_config_path": config or default_config_path(working_dir),
        "working_dir": working_dir,
        "terraform_cli_args": list(cli_args),
        "non_interactive": non_interactive,
        "source": source,
        "ignore_dependency_errors": ignore_dep,
        "iam_role": iam_role,
    }


def _actual(opts):
    return {
        "terragrunt_config_path": opts.terragrunt_config_path,
        "working_dir": opts.working_dir,
        "terraform_cli_args": opts.terraform_cli_args,
        "non_interactive": opts.non_interactive,
        "source": opts.source,
        "ignore_dependency_errors": opts.ignore_dependency_errors,
        "iam_role": opts.iam_role,
    }


@pytest.mark.parametrize(
    "args, kwargs",
    [
        ([], {}),
        (["foo", "bar"], {"cli_args": ["foo", "bar"]}),
        (["--foo", "--bar"], {"cli_args": ["--foo", "--bar"]}),
        (["--foo", "apply", "--bar"], {"cli_args": ["--foo", "apply", "--bar"]}),
        (["--terragrunt-non-interactive"], {"non_interactive": True}),
        (["--terragrunt-config", CONFIG], {"config": CONFIG}),
        (["--terragrunt-working-dir", "/some/path"], {"working_dir": "/some/path"}),
        (["--terragrunt-source", "/some/path"], {"source": "/some/path"}),
        (["--terragrunt-ignore-dependency-errors"], {"ignore_dep": True}),
        (["--terragrunt-ignore-external-dependencies"], {}),
        (
            ["--terragrunt-iam-role", "arn:aws:iam::ACCOUNT_ID:role/ROLE_NAME"],
            {"iam_role": "arn:aws:iam::ACCOUNT_ID:role/ROLE_NAME"},
        ),
        (["--terragrunt-config", CONFIG, "--terragrunt-non-interactive"], {"config": CONFIG, "non_interactive": True}),
        (
            ["--foo", "--terragrunt-config", CONFIG, "bar", "--terragrunt-non-interactive", "--baz",
             "--terragrunt-working-dir", "/some/path", "--terragrunt-source", "github.com/foo/bar//baz?ref=1.0.3"],
            {"config": CONFIG, "working_dir": "/some/path", "cli_args": ["--foo", "bar", "--baz"],
             "non_interactive": True, "source": "github.com/foo/bar//baz?ref=1.0.3"},
        ),
    ],
)
def test_parse_terragrunt_options_from_args(cwd, args, kwargs):
    opts = parse_terragrunt_options_from_args(args, environ={}, cwd=cwd)
    assert _actual(opts) == _expected(cwd, **kwargs)


@pytest.mark.parametrize(
    "args, missing",
    [
        (["--terragrunt-config"], "terragrunt-config"),
        (["--terragrunt-working-dir"], "terragrunt-working-dir"),
        (["--foo", "bar", "--terragrunt-config"], "terragrunt-config"),
    ],
)
def test_parse_terragrunt_options_missing_value(cwd, args, missing):
    with pytest.raises(ArgMissingValue) as excinfo:
        parse_terragrunt_options_from_args(args, environ={}, cwd=cwd)
    assert excinfo.value.arg_name == missing
    assert str(excinfo.value) == f"You must specify a value for the --{missing} option"


def test_parse_options_reads_environment(cwd):
    environ = {"TERRAGRUNT_SOURCE": "/src", "TF_INPUT": "false", "TERRAGRUNT_AUTO_INIT": "false"}
    opts = parse_terragrunt_options_from_args(["plan"], environ=environ, cwd=cwd)
    assert opts.source == "/src"
    assert opts.non_interactive is True
    assert opts.auto_init is False
    assert opts.auto_retry is True
    assert opts.terraform_command == "plan"
    assert opts.terraform_path == "terraform"
    assert opts.download_dir == cwd + "/.terragrunt-cache"
    assert opts.env == environ


def test_parse_options_multi_dirs(cwd):
    opts = parse_terragrunt_options_from_args(
        ["plan-all", "--terragrunt-exclude-dir", "a", "--terragrunt-exclude-dir", "b"], environ={}, cwd=cwd
    )
    assert opts.exclude_dirs == ["a", "b"]
    assert opts.include_dirs == []
    assert opts.terraform_cli_args == []


@pytest.mark.parametrize(
    "args, expected",
    [
        ([], []),
        (["foo", "--bar"], ["foo", "--bar"]),
        (["foo", "--terragrunt-config", CONFIG], ["foo"]),
        (["foo", "--terragrunt-non-interactive"], ["foo"]),
        (
            ["foo", "--terragrunt-non-interactive", "--bar", "--terragrunt-working-dir", "/some/path", "--baz",
             "--terragrunt-config", CONFIG],
            ["foo", "--bar", "--baz"],
        ),
        (["apply-all", "foo", "bar"], ["foo", "bar"]),
        (["foo", "destroy-all", "--foo", "--bar"], ["foo", "--foo", "--bar"]),
    ],
)
def test_filter_terragrunt_args(args, expected):
    assert filter_terragrunt_args(args) == expected


@pytest.mark.parametrize(
    "args, name, default, expected",
    [
        (["apply-all", "--foo", "bar"], "foo", ["default_bar"], ["bar"]),
        (["apply-all", "--test", "bar"], "foo", ["default_bar"], ["default_bar"]),
        (["plan-all", "--test", "--foo", "bar1", "--foo", "bar2"], "foo", ["default_bar"], ["bar1", "bar2"]),
    ],
)
def test_parse_multi_string_arg(args, name, default, expected):
    assert parse_multi_string_arg(args, name, default) == expected


def test_parse_multi_string_arg_missing_value():
    with pytest.raises(ArgMissingValue) as excinfo:
        parse_multi_string_arg(["plan-all", "--test", "value", "--foo", "bar1", "--foo"], "foo", ["default_bar"])
    assert excinfo.value.arg_name == "foo"


def test_parse_string_and_boolean_args():
    assert parse_string_arg(["--foo", "bar"], "foo", "x") == "bar"
    assert parse_string_arg(["--baz"], "foo", "x") == "x"
    assert parse_boolean_arg(["--foo"], "foo", False) is True
    assert parse_boolean_arg(["foo"], "foo", False) is False


@pytest.mark.parametrize(
    "environment, expected",
    [
        ([], {}),
        (["foobar"], {}),
        (["foo=bar"], {"foo": "bar"}),
        (["foo=bar", "goo=gar"], {"foo": "bar", "goo": "gar"}),
        (["foo=bar   "], {"foo": "bar   "}),
        (["foo   =bar   "], {"foo": "bar   "}),
        (["foo=composite=bar"], {"foo": "composite=bar"}),
    ],
)
def test_parse_environment_variables(environment, expected):
    assert parse_environment_variables(environment) == expected


def _extra(arguments, commands, required, optional):
    return TerraformExtraArguments(
        name="test",
        arguments=arguments,
        commands=commands,
        required_var_files=required,
        optional_var_files=optional,
    )


T = "{tmp}"
D = "{dir}"


@pytest.mark.parametrize(
    "cli_args, extra, expected",
    [
        (["apply"], _extra(["--foo", "bar"], ["apply", "plan", "destroy"], [], []), ["--foo", "bar"]),
        (["apply"], _extra(["--foo", "bar"], ["apply", "plan"], [], [T]), ["--foo", "bar", "-var-file=" + T]),
        (
            ["apply"],
            _extra(["--foo", "bar"], ["apply", "plan"], ["required.tfvars"], [T]),
            ["--foo", "bar", "-var-file=required.tfvars", "-var-file=" + T],
        ),
        (
            ["apply"],
            _extra(["--foo", "bar"], ["apply", "plan"], ["required.tfvars"], ["optional.tfvars"]),
            ["--foo", "bar", "-var-file=required.tfvars"],
        ),
        (
            ["plan", D],
            _extra(["--foo", "bar"], ["plan", "apply"], ["required.tfvars"], [T]),
            ["--foo", "bar", "-var-file=required.tfvars", "-var-file=" + T],
        ),
        (
            ["apply", D],
            _extra(["--foo", "-var-file=test.tfvars", "-var='key=value'"], ["plan", "apply"], ["required.tfvars"], [T]),
            ["--foo", "-var-file=test.tfvars", "-var='key=value'", "-var-file=required.tfvars", "-var-file=" + T],
        ),
        (
            ["apply", T],
            _extra(["--foo", "-var-file=test.tfvars", "bar", "-var='key=value'", "foo"], ["plan", "apply"],
                   ["required.tfvars"], [T]),
            ["--foo", "bar", "foo"],
        ),
        (
            ["apply"],
            _extra(["--foo", "-var-file=test.tfvars", "bar", "-var='key=value'", "foo"], ["plan", "apply"],
                   ["required.tfvars"], [T]),
            ["--foo", "-var-file=test.tfvars", "bar", "-var='key=value'", "foo", "-var-file=required.tfvars",
             "-var-file=" + T],
        ),
        (
            ["apply", "-no-color", "-foo", T],
            _extra(["--foo", "-var-file=test.tfvars", "bar", "-var='key=value'", "foo"], ["plan", "apply"],
                   ["required.tfvars"], [T]),
            ["--foo", "bar", "foo"],
        ),
        (
            ["apply"],
            _extra(["--foo", "bar"], ["plan", "destroy"], ["required.tfvars"], ["optional.tfvars"]),
            [],
        ),
    ],
)
def test_filter_terraform_extra_args(tmp_path, monkeypatch, cli_args, extra, expected):
    run_dir = tmp_path / "run"
    run_dir.mkdir()
    monkeypatch.chdir(run_dir)
    temp_file = tmp_path / "vars.tfvars"
    temp_file.write_text("")
    tmp = str(temp_file).replace(os.sep, "/")
    directory = str(tmp_path).replace(os.sep, "/")

    def fill(values):
        return [v.replace(T, tmp).replace(D, directory) for v in values] if values is not None else None

    opts = TerragruntOptions(
        terragrunt_config_path=default_config_path(directory),
        working_dir=directory,
        terraform_cli_args=fill(cli_args),
        non_interactive=True,
    )
    extra_args = TerraformExtraArguments(
        name=extra.name,
        commands=extra.commands,
        arguments=fill(extra.arguments),
        required_var_files=fill(extra.required_var_files),
        optional_var_files=fill(extra.optional_var_files),
    )
    config = TerragruntConfig(terraform=TerraformConfig(extra_args=[extra_args]))
    assert filter_terraform_extra_args(opts, config) == fill(expected)


def test_filter_terraform_env_vars_from_extra_args():
    opts = TerragruntOptions(terragrunt_config_path=CONFIG, terraform_cli_args=["plan"])
    config = TerragruntConfig(
        terraform=TerraformConfig(
            extra_args=[
                TerraformExtraArguments(commands=["plan"], env_vars={"A": "1"}),
                TerraformExtraArguments(commands=["apply"], env_vars={"B": "2"}),
                TerraformExtraArguments(commands=["plan"], env_vars=None),
            ]
        )
    )
    assert filter_terraform_env_vars_from_extra_args(opts, config) == {"A": "1"}


@pytest.mark.parametrize(
    "variables, expected",
    [
        ({}, {}),
        ({"foo": "bar"}, {"TF_VAR_foo": "bar"}),
        ({"foo": 42}, {"TF_VAR_foo": "42"}),
        ({"foo": True}, {"TF_VAR_foo": "true"}),
        ({"foo": ["a", "b", "c"]}, {"TF_VAR_foo": '["a","b","c"]'}),
        ({"foo": {"a": "b", "c": "d"}}, {"TF_VAR_foo": '{"a":"b","c":"d"}'}),
        ({"foo": {"a": [1, 2, 3], "b": "c", "d": {"e": "f"}}}, {"TF_VAR_foo": '{"a":[1,2,3],"b":"c","d":{"e":"f"}}'}),
        (
            {"str": "bar", "int": 42, "bool": False, "list": [1, 2, 3], "map": {"a": "b"}},
            {"TF_VAR_str": "bar", "TF_VAR_int": "42", "TF_VAR_bool": "false", "TF_VAR_list": "[1,2,3]",
             "TF_VAR_map": '{"a":"b"}'},
        ),
    ],
)
def test_to_terraform_env_vars(variables, expected):
    assert to_terraform_env_vars(variables) == expected