"""Terraform version parsing and version-constraint checks."""

from __future__ import annotations

import functools
import operator
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

# Output looks like: Terraform v0.9.5-dev (cad024a5fe131a546936674ef85445215bbc4226+CHANGES)
TERRAFORM_VERSION_REGEX = re.compile(r"Terraform (v?[\d.]+)(?:-dev)?(?: .+)?")

_IDENT = r"[0-9A-Za-z\-~]+(?:\.[0-9A-Za-z\-~]+)*"
_VERSION_PATTERN = (
    r"v?(?P<segments>[0-9]+(?:\.[0-9]+)*)"
    r"(?:-(?P<pre>" + _IDENT + r")|(?P<pre_bare>[A-Za-z\-~][0-9A-Za-z\-~]*(?:\.[0-9A-Za-z\-~]+)*))?"
    r"(?:\+(?P<meta>" + _IDENT + r"))?"
)
_VERSION_RE = re.compile(r"^" + _VERSION_PATTERN + r"$")
_CONSTRAINT_RE = re.compile(r"^\s*(?P<op>~>|>=|<=|!=|=|>|<)?\s*(?P<version>\S+)\s*$")


@functools.total_ordering
@dataclass(frozen=True, eq=False)
class Version:
    """A version number such as ``v0.12.3`` or ``1.0.0-beta1``."""

    segments: tuple[int, ...]
    specified: int
    prerelease: str = ""
    metadata: str = ""
    original: str = ""

    @classmethod
    def parse(cls, text: str) -> Version:
        match = _VERSION_RE.match(text)
        if match is None:
            raise ValueError(f"Malformed version: {text}")
        numbers = [int(part) for part in match["segments"].split(".")]
        specified = len(numbers)
        numbers.extend([0] * (3 - specified))
        return cls(
            segments=tuple(numbers),
            specified=specified,
            prerelease=match["pre"] or match["pre_bare"] or "",
            metadata=match["meta"] or "",
            original=text,
        )

    def _key(self) -> tuple[Any, ...]:
        width = max(len(self.segments), 3)
        padded = self.segments + (0,) * (width - len(self.segments))
        if not self.prerelease:
            return (padded, (1,))
        parts = tuple((0, int(p), "") if p.isdigit() else (1, 0, p) for p in self.prerelease.split("."))
        return (padded, (0, parts))

    def _cmp_key(self, other: Version) -> tuple[tuple[Any, ...], tuple[Any, ...]]:
        width = max(len(self.segments), len(other.segments))
        left = self.segments + (0,) * (width - len(self.segments))
        right = other.segments + (0,) * (width - len(other.segments))
        return (left, self._key()[1]), (right, other._key()[1])

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        left, right = self._cmp_key(other)
        return left == right

    def __lt__(self, other: Version) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        left, right = self._cmp_key(other)
        return left < right

    def __hash__(self) -> int:
        trimmed = list(self.segments)
        while trimmed and trimmed[-1] == 0:
            trimmed.pop()
        return hash((tuple(trimmed), self.prerelease))

    def __str__(self) -> str:
        text = ".".join(str(s) for s in self.segments)
        if self.prerelease:
            text += f"-{self.prerelease}"
        if self.metadata:
            text += f"+{self.metadata}"
        return text


def _prerelease_check(version: Version, constraint: Version) -> bool:
    if version.prerelease and constraint.prerelease:
        return version.segments == constraint.segments
    return not (version.prerelease and not constraint.prerelease)


def _pessimistic(version: Version, constraint: Version) -> bool:
    if not _prerelease_check(version, constraint) or (constraint.prerelease and not version.prerelease):
        return False
    if version < constraint:
        return False
    fixed = constraint.specified - 1
    if version.segments[:fixed] != constraint.segments[:fixed]:
        return False
    return constraint.segments[fixed] <= version.segments[fixed]


def _ordered(compare: Callable[[Version, Version], bool]) -> Callable[[Version, Version], bool]:
    return lambda v, c: _prerelease_check(v, c) and compare(v, c)


_OPERATORS: dict[str, Callable[[Version, Version], bool]] = {
    "": operator.eq,
    "=": operator.eq,
    "!=": operator.ne,
    ">": _ordered(operator.gt),
    "<": _ordered(operator.lt),
    ">=": _ordered(operator.ge),
    "<=": _ordered(operator.le),
    "~>": _pessimistic,
}


@dataclass(frozen=True)
class _Constraint:
    op: str
    version: Version
    original: str

    def check(self, version: Version) -> bool:
        return _OPERATORS[self.op](version, self.version)


@dataclass(frozen=True)
class Constraints:
    """A comma-separated set of version constraints, all of which must hold."""

    constraints: tuple[_Constraint, ...]

    @classmethod
    def parse(cls, text: str) -> Constraints:
        parsed = []
        for part in text.split(","):
            match = _CONSTRAINT_RE.match(part)
            if match is None:
                raise ValueError(f"Malformed constraint: {part}")
            try:
                version = Version.parse(match["version"])
            except ValueError:
                raise ValueError(f"Malformed constraint: {part}") from None
            parsed.append(_Constraint(match["op"] or "", version, part.strip()))
        return cls(tuple(parsed))

    def check(self, version: Version) -> bool:
        return all(c.check(version) for c in self.constraints)

    def __str__(self) -> str:
        return ",".join(c.original for c in self.constraints)


class InvalidTerraformVersionSyntax(ValueError):
    """The ``terraform --version`` output could not be understood."""

    def __init__(self, output: str) -> None:
        self.output = output
        super().__init__(f"Unable to parse Terraform version output: {output}")


class InvalidTerraformVersion(Exception):
    """The installed Terraform does not satisfy the required constraint."""

    def __init__(self, current_version: Version, version_constraints: Constraints) -> None:
        self.current_version = current_version
        self.version_constraints = version_constraints
        super().__init__(
            f"The currently installed version of Terraform ({current_version}) is not compatible "
            f"with the version Terragrunt requires ({version_constraints})."
        )


def parse_terraform_version(version_command_output: str) -> Version:
    """Extract the version from the output of ``terraform --version``."""
    match = TERRAFORM_VERSION_REGEX.search(version_command_output)
    if match is None:
        raise InvalidTerraformVersionSyntax(version_command_output)
    return Version.parse(match.group(1))


def check_terraform_version_meets_constraint(current_version: Version, constraint: str) -> None:
    """Raise InvalidTerraformVersion if ``current_version`` violates ``constraint``."""
    constraints = Constraints.parse(constraint)
    if not constraints.check(current_version):
        raise InvalidTerraformVersion(current_version, constraints)


def check_terraform_version(constraint: str, options: Any) -> None:
    """Check the Terraform version recorded in ``options`` against ``constraint``."""
    check_terraform_version_meets_constraint(options.terraform_version, constraint)