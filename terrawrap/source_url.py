"""Parsing and encoding of Terraform module source URLs."""

from __future__ import annotations

import base64
import hashlib
import re
from dataclasses import dataclass, replace
from typing import Any
from urllib.parse import parse_qsl, quote, unquote, urlencode

_FORCED_REGEXP = re.compile(r"^([A-Za-z0-9]+)::(.+)$")
_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")

_UNRESERVED = frozenset("ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-._~")
_PATH_SAFE = "$&+,/:;=@-._~"
_FRAGMENT_SAFE = "!$&'()*+,;=:@/?-._~"
_VALID_ENCODED_PATH_CHARS = _UNRESERVED | frozenset("$&+,/:;=@!'()*[]%")
_SCHEME_REST_CHARS = frozenset("0123456789+-.")


def _unescape(text: str) -> str:
    match = _BAD_ESCAPE.search(text)
    if match is not None:
        raise ValueError(f"invalid URL escape {text[match.start():match.start() + 3]!r}")
    return unquote(text)


def _split_scheme(text: str) -> tuple[str, str]:
    for position, char in enumerate(text):
        if char.isascii() and char.isalpha():
            continue
        if char in _SCHEME_REST_CHARS:
            if position == 0:
                return "", text
            continue
        if char == ":":
            if position == 0:
                raise ValueError(f"parse {text!r}: missing protocol scheme")
            return text[:position], text[position + 1:]
        return "", text
    return "", text


def _valid_encoded_path(text: str) -> bool:
    return all(char in _VALID_ENCODED_PATH_CHARS for char in text)


@dataclass(frozen=True)
class SourceUrl:
    """A URL split into its parts, as used for module sources."""

    scheme: str = ""
    opaque: str = ""
    user: str | None = None
    host: str = ""
    path: str = ""
    raw_path: str = ""
    force_query: bool = False
    raw_query: str = ""
    fragment: str = ""

    @classmethod
    def parse(cls, text: str) -> SourceUrl:
        """Parse ``text`` into its parts, raising ValueError if it is malformed."""
        if any(ord(char) < 0x20 or ord(char) == 0x7F for char in text):
            raise ValueError(f"parse {text!r}: invalid control character in URL")

        rest, has_fragment, raw_fragment = text.partition("#")
        fragment = _unescape(raw_fragment) if has_fragment else ""

        scheme, rest = _split_scheme(rest)
        scheme = scheme.lower()

        force_query = False
        raw_query = ""
        if rest.endswith("?") and rest.count("?") == 1:
            force_query = True
            rest = rest[:-1]
        else:
            rest, _, raw_query = rest.partition("?")

        if not rest.startswith("/"):
            if scheme:
                return cls(
                    scheme=scheme,
                    opaque=rest,
                    force_query=force_query,
                    raw_query=raw_query,
                    fragment=fragment,
                )
            if ":" in rest.partition("/")[0]:
                raise ValueError(f"parse {text!r}: first path segment in URL cannot contain colon")

        user: str | None = None
        host = ""
        if (scheme or not rest.startswith("///")) and rest.startswith("//"):
            authority, slash, remainder = rest[2:].partition("/")
            rest = slash + remainder
            userinfo, at, hostpart = authority.rpartition("@")
            if at:
                user = _unescape(userinfo)
                host = hostpart
            else:
                host = authority

        return cls(
            scheme=scheme,
            user=user,
            host=host,
            path=_unescape(rest),
            raw_path=rest,
            force_query=force_query,
            raw_query=raw_query,
            fragment=fragment,
        )

    def escaped_path(self) -> str:
        """Return the path in its escaped form, keeping the original spelling when valid."""
        if self.raw_path and _valid_encoded_path(self.raw_path):
            try:
                if _unescape(self.raw_path) == self.path:
                    return self.raw_path
            except ValueError:
                pass
        if self.path == "*":
            return "*"
        return quote(self.path, safe=_PATH_SAFE)

    def query_encoded(self) -> str:
        """Return the query string re-encoded with its keys in sorted order."""
        pairs = parse_qsl(self.raw_query, keep_blank_values=True)
        pairs.sort(key=lambda pair: pair[0])
        return urlencode(pairs)

    def without_query(self) -> SourceUrl:
        """Return a copy of this URL with its query string removed."""
        return replace(self, raw_query="", force_query=False)

    def __str__(self) -> str:
        parts: list[str] = []
        if self.scheme:
            parts.append(f"{self.scheme}:")
        if self.opaque:
            parts.append(self.opaque)
        else:
            if self.scheme or self.host or self.user is not None:
                if self.host or self.path or self.user is not None:
                    parts.append("//")
                if self.user is not None:
                    parts.append(quote(self.user, safe="!$&'()*+,;=:-._~") + "@")
                if self.host:
                    parts.append(self.host)
            path = self.escaped_path()
            if path and not path.startswith("/") and self.host:
                parts.append("/")
            if not parts:
                colon = path.find(":")
                if colon > -1 and "/" not in path[:colon]:
                    parts.append("./")
            parts.append(path)
        if self.force_query or self.raw_query:
            parts.append(f"?{self.raw_query}")
        if self.fragment:
            parts.append("#" + quote(self.fragment, safe=_FRAGMENT_SAFE))
        return "".join(parts)


def _encode_base64_sha1(text: str) -> str:
    digest = hashlib.sha1(text.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")


def get_forced_getter(source_url: str) -> tuple[str, str]:
    """Split a ``getter::`` prefix such as ``git::`` off a source URL."""
    match = _FORCED_REGEXP.match(source_url)
    if match is not None:
        return match.group(1), match.group(2)
    return "", source_url


def parse_source_url(source: str) -> SourceUrl:
    """Parse a source URL, keeping any forced getter prefix as part of the scheme."""
    forced_getter, raw_source_url = get_forced_getter(source)
    url = SourceUrl.parse(raw_source_url)
    if forced_getter:
        url = replace(url, scheme=f"{forced_getter}::{url.scheme}")
    return url


def split_source_url(source_url: SourceUrl, options: Any) -> tuple[SourceUrl, str]:
    """Split a source URL at its double slash into the root repo and the module path."""
    root, sep, module_path = source_url.path.partition("//")
    if sep:
        modified = parse_source_url(str(source_url))
        return replace(modified, path=root, raw_path=""), module_path
    options.logger.warning(
        "WARNING: no double-slash (//) found in source URL %s. "
        "Relative paths in downloaded Terraform code may not work.",
        source_url.path,
    )
    return source_url, ""


def encode_source_version(source_url: SourceUrl) -> str:
    """Return a version identifier derived from the URL's query string."""
    return _encode_base64_sha1(source_url.query_encoded())


def encode_source_name(source_url: SourceUrl) -> str:
    """Return a module name derived from the URL without its query string."""
    without_query = parse_source_url(str(source_url)).without_query()
    return _encode_base64_sha1(str(without_query))


def is_local_source(source_url: SourceUrl) -> bool:
    """Return True if the URL points at the local file system."""
    return source_url.scheme == "file"