"""Request and response checks run by the HTTP gateway."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Callable, Iterable
from urllib.parse import urlsplit

from .messages import AccessType, access_blocked, not_explicitly_allowed


class AccessDeniedError(Exception):
    """Raised when the gateway refuses access to a domain, file type or content type."""


@dataclass
class RequestMiddleware:
    """A check run on a URL before it is requested; the handler raises to refuse it."""

    name: str
    handler: Callable[[Any, str], None]


@dataclass
class ResponseMiddleware:
    """A check run on a response once it arrives; the handler raises to refuse it."""

    name: str
    handler: Callable[[Any, Any], None]


@dataclass
class MiddlewareStore:
    """A registry of named middleware; names are compared case-insensitively."""

    pre_middleware: list = field(default_factory=list)
    post_middleware: list = field(default_factory=list)

    def has_middleware(self, name: str) -> bool:
        wanted = name.casefold()
        return any(
            mw.name.casefold() == wanted for mw in (*self.pre_middleware, *self.post_middleware)
        )

    def add_pre_middleware(self, mw: RequestMiddleware) -> None:
        if not self.has_middleware(mw.name):
            self.pre_middleware.append(mw)

    def add_post_middleware(self, mw: ResponseMiddleware) -> None:
        if not self.has_middleware(mw.name):
            self.post_middleware.append(mw)

    def get_pre_middleware(self, name: str) -> RequestMiddleware | None:
        wanted = name.casefold()
        return next((mw for mw in self.pre_middleware if mw.name.casefold() == wanted), None)

    def get_post_middleware(self, name: str) -> ResponseMiddleware | None:
        wanted = name.casefold()
        return next((mw for mw in self.post_middleware if mw.name.casefold() == wanted), None)


_WILDCARDS = re.compile(r"(\*\*|\*|\?)")


@lru_cache(maxsize=256)
def _compile_glob(pattern: str, star: str, question: str, flags: int) -> re.Pattern:
    pieces = []
    for token in _WILDCARDS.split(pattern):
        if token == "**":
            pieces.append(".*")
        elif token == "*":
            pieces.append(star)
        elif token == "?":
            pieces.append(question)
        else:
            pieces.append(re.escape(token))
    return re.compile("".join(pieces), flags | re.DOTALL)


def domain_glob_match(pattern: str, value: str) -> bool:
    """Match a host against a domain glob.

    A lone ``*`` matches any host; otherwise ``*`` and ``?`` stay within one
    label and ``**`` spans labels. Case is ignored.
    """
    if pattern == "*":
        return True
    regex = _compile_glob(pattern, r"[^.]*", r"[^.]", re.IGNORECASE)
    return regex.fullmatch(value) is not None


def glob_match(pattern: str, value: str) -> bool:
    """Match a value against a glob where ``*`` and ``?`` match any characters."""
    return _compile_glob(pattern, ".*", ".", 0).fullmatch(value) is not None


def matches_any_domain(patterns: Iterable[str], domain: str) -> bool:
    """True when `domain` equals, or is matched by, any of `patterns`."""
    folded = domain.casefold()
    for pattern in patterns:
        if folded == pattern.casefold() or folded == pattern.removeprefix("*.").casefold():
            return True
        if domain_glob_match(pattern, domain):
            return True
    return False


def _url_host(link: str) -> str:
    return urlsplit(link).netloc.rpartition("@")[2]


def _path_ext(path: str) -> str:
    base = path.rpartition("/")[2]
    dot = base.rfind(".")
    return base[dot:] if dot >= 0 else ""


def validate_url(gateway, link: str) -> None:
    """Refuse hosts that are blocked or not explicitly allowed."""
    if not gateway.enabled:
        return

    host = _url_host(link)

    if matches_any_domain(gateway.allowed_domains, host):
        return

    if matches_any_domain(gateway.denied_domains, host):
        raise AccessDeniedError(access_blocked(AccessType.DOMAIN, host))

    raise AccessDeniedError(not_explicitly_allowed(AccessType.DOMAIN, host))


def _ext_matches(patterns: Iterable[str], ext: str) -> bool:
    folded = ext.casefold()
    return any(glob_match(pattern, ext) or folded == pattern.casefold() for pattern in patterns)


def verify_file_type(gateway, link: str) -> None:
    """Refuse URLs whose file extension is blocked or not explicitly allowed."""
    if not gateway.enabled:
        return

    ext = _path_ext(urlsplit(link).path)
    if ext in ("", "."):
        return

    if _ext_matches(gateway.allowed_file_exts, ext):
        return

    if _ext_matches(gateway.blocked_file_exts, ext):
        raise AccessDeniedError(access_blocked(AccessType.FILE_EXTENSION, ext))

    raise AccessDeniedError(not_explicitly_allowed(AccessType.FILE_EXTENSION, ext))


def verify_content_type(gateway, response) -> None:
    """Refuse responses whose content type is blocked or not explicitly allowed."""
    if not gateway.enabled:
        return

    content_type = (response.headers.get("Content-Type") or "").partition(";")[0]
    host = urlsplit(response.url).hostname or ""

    allowed = gateway.get_domain_content_types(host)
    if not allowed or matches_any_domain(allowed, content_type):
        return

    blocked = gateway.get_blocked_content_types(host)
    if matches_any_domain(blocked, content_type):
        raise AccessDeniedError(access_blocked(AccessType.CONTENT_TYPE, content_type))

    raise AccessDeniedError(not_explicitly_allowed(AccessType.CONTENT_TYPE, content_type))


VALIDATE_URL = RequestMiddleware(name="validateUrl", handler=validate_url)
VERIFY_FILE_TYPE = RequestMiddleware(name="verifyFileType", handler=verify_file_type)
VERIFY_CONTENT_TYPE = ResponseMiddleware(name="verifyContentType", handler=verify_content_type)

GATEWAY_MIDDLEWARE = MiddlewareStore()