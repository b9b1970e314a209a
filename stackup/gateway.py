"""An HTTP gateway that enforces allow and block lists on every request."""

from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass, field
from urllib.parse import urlsplit

import requests

from .cache import Cache, new_cache_entry
from .messages import http_request_failed
from .middleware import (
    GATEWAY_MIDDLEWARE,
    VALIDATE_URL,
    AccessDeniedError,
    RequestMiddleware,
    ResponseMiddleware,
    domain_glob_match,
)

USER_AGENT = "stackup/1.0"


@dataclass
class GatewaySettings:
    """The part of the workflow settings that configures the gateway."""

    allowed_domains: list = field(default_factory=list)
    blocked_domains: list = field(default_factory=list)
    allowed_file_exts: list = field(default_factory=list)
    blocked_file_exts: list = field(default_factory=list)
    middleware: list = field(default_factory=list)
    allowed_content_types: list = field(default_factory=list)
    blocked_content_types: list = field(default_factory=list)
    debug: bool = False


class HttpRequestError(Exception):
    """Raised when a request returns a failing HTTP status."""

    def __init__(self, url: str, code: int):
        super().__init__(http_request_failed(url, code))
        self.url = url
        self.code = code


_ENV_REF = re.compile(r"\$(?:\{([^}]*)\}|([A-Za-z0-9_]+))")


def _expand_env(text: str) -> str:
    return _ENV_REF.sub(
        lambda m: os.environ.get(m.group(1) if m.group(1) is not None else m.group(2), ""),
        text,
    )


def _match_all_if_empty(items: list) -> None:
    if not items:
        items[:] = ["*"]


def _matching_values(mapping: dict, domain: str) -> list:
    result = []
    for pattern, values in list(mapping.items()):
        if domain_glob_match(pattern, domain):
            result.extend(values)
    return result


class Gateway:
    """Fetches URLs after checking them against configured allow and block lists."""

    def __init__(self, cache: Cache | None = None):
        self.enabled = True
        self.allowed_domains: list[str] = []
        self.denied_domains: list[str] = []
        self.allowed_file_exts: list[str] = []
        self.blocked_file_exts: list[str] = []
        self.enabled_middleware: list[str] = []
        self.middleware: list[RequestMiddleware] = []
        self.post_middleware: list[ResponseMiddleware] = []
        self.domain_headers: dict[str, list[str]] = {}
        self.domain_content_types: dict[str, list[str]] = {}
        self.blocked_content_types: dict[str, list[str]] = {}
        self.js_engine = None
        self.http_client = requests.Session()
        self.settings: GatewaySettings | None = None
        self.cache = cache
        self.debug = False
        self.enable()

    def initialize(self, settings: GatewaySettings, js_engine=None, http_client=None) -> None:
        """Apply `settings`; empty allow and block lists are widened to match everything."""
        if settings is None:
            raise ValueError("gateway settings cannot be None")

        _match_all_if_empty(settings.allowed_file_exts)
        _match_all_if_empty(settings.blocked_file_exts)
        _match_all_if_empty(settings.allowed_domains)
        _match_all_if_empty(settings.blocked_domains)

        self.settings = settings
        self.debug = settings.debug
        self.http_client = http_client if http_client is not None else requests.Session()
        self.js_engine = js_engine
        self.middleware = [VALIDATE_URL]
        self.set_allowed_domains(settings.allowed_domains)
        self.set_denied_domains(settings.blocked_domains)
        self.set_allowed_file_exts(settings.allowed_file_exts)
        self.set_blocked_file_exts(settings.blocked_file_exts)
        self.enabled_middleware.extend(settings.middleware)

        self._setup()

    def _setup(self) -> None:
        # the url validator is the core of the allow/block lists and is always enabled
        self.enabled_middleware = ["validateUrl"]
        GATEWAY_MIDDLEWARE.add_pre_middleware(VALIDATE_URL)

        for name in self.enabled_middleware:
            if not GATEWAY_MIDDLEWARE.has_middleware(name):
                continue
            self.add_pre_middleware(GATEWAY_MIDDLEWARE.get_pre_middleware(name))
            self.add_post_middleware(GATEWAY_MIDDLEWARE.get_post_middleware(name))

        self.enable()

    def enable(self) -> None:
        self.enabled = True

    def disable(self) -> None:
        self.enabled = False

    def has_cache(self) -> bool:
        return self.cache is not None

    def set_allowed_file_exts(self, exts: list[str]) -> None:
        self.allowed_file_exts = exts

    def set_blocked_file_exts(self, exts: list[str]) -> None:
        self.blocked_file_exts = exts

    def set_allowed_domains(self, domains: list[str]) -> None:
        self.allowed_domains = self._normalize_domains(domains)

    def set_denied_domains(self, domains: list[str]) -> None:
        self.denied_domains = self._normalize_domains(domains)

    def set_defaults(self) -> None:
        _match_all_if_empty(self.allowed_file_exts)
        _match_all_if_empty(self.blocked_file_exts)
        if self.settings is not None:
            self.set_domain_content_types("*", self.settings.allowed_content_types)
            self.set_blocked_content_types("*", self.settings.blocked_content_types)

    @staticmethod
    def _normalize_domains(domains: list[str]) -> list[str]:
        """Drop blank entries and reduce URLs to their host."""
        result = []
        for domain in domains:
            if "://" in domain:
                try:
                    domain = urlsplit(domain).netloc
                except ValueError:
                    pass
            if domain.strip():
                result.append(domain)
        return result

    def get_domain_headers(self, domain: str) -> list[str]:
        return _matching_values(self.domain_headers, domain)

    def set_blocked_content_types(self, domain: str, content_types: list[str]) -> None:
        self.blocked_content_types[domain] = content_types

    def get_blocked_content_types(self, domain: str) -> list[str]:
        return _matching_values(self.blocked_content_types, domain)

    def set_domain_content_types(self, domain: str, content_types: list[str]) -> None:
        if not content_types:
            self.domain_content_types.pop(domain, None)
            return
        self.domain_content_types[domain] = content_types

    def get_domain_content_types(self, domain: str) -> list[str]:
        return _matching_values(self.domain_content_types, domain)

    def add_pre_middleware(self, mw: RequestMiddleware | None) -> None:
        if mw is None:
            return
        if any(existing.name.casefold() == mw.name.casefold() for existing in self.middleware):
            return
        self.middleware.append(mw)

    def add_post_middleware(self, mw: ResponseMiddleware | None) -> None:
        if mw is None:
            return
        if any(existing.name.casefold() == mw.name.casefold() for existing in self.post_middleware):
            return
        self.post_middleware.append(mw)

    def _run_request_pipeline(self, link: str) -> None:
        if not self.enabled:
            return
        if not link.startswith(("https://", "http://")):
            link = "https://" + link
        for mw in self.middleware:
            mw.handler(self, link)

    def _run_response_pipeline(self, response) -> None:
        if not self.enabled:
            return
        for mw in self.post_middleware:
            mw.handler(self, response)

    def allowed(self, link: str) -> bool:
        """True when the request pipeline accepts `link`."""
        try:
            self._run_request_pipeline(link)
        except (AccessDeniedError, ValueError):
            return False
        return True

    def _process_headers(self, headers) -> list[str]:
        result = []
        for header in headers:
            if not header.strip():
                continue
            engine = self.js_engine
            if engine is not None and engine.is_evaluatable_script_string(header):
                header = engine.get_evaluatable_script_string(header)
            result.append(_expand_env(header))
        return result

    def _gather_headers(self, url: str, headers) -> dict[str, str]:
        result = {"User-Agent": USER_AGENT}
        hostname = urlsplit(url).hostname or ""

        lines = []
        for pattern, values in list(self.domain_headers.items()):
            if domain_glob_match(pattern, hostname):
                lines.extend(self._process_headers(values))
        lines.extend(self._process_headers(headers))

        for line in lines:
            name, sep, value = line.partition(":")
            if sep:
                result[name.strip()] = value.strip()
        return result

    def cache_key_for(self, url: str) -> str:
        return "gateway:" + url

    def _cached_response(self, url: str) -> str | None:
        entry = self.cache.get(self.cache_key_for(url))
        if entry is None:
            return None
        try:
            data = json.loads(entry.value)
        except ValueError:
            return None
        if not isinstance(data, dict) or int(data.get("code", 1)) <= 1:
            return None
        if data["code"] != 200:
            raise HttpRequestError(url, data["code"])
        return str(data.get("contents", ""))

    def _store_response(self, url: str, code: int, contents: str, ttl: int) -> None:
        record = {"url": url, "contents": contents, "code": code}
        self.cache.set(self.cache_key_for(url), new_cache_entry(record, ttl), ttl)

    def get_url(self, url: str, *args: str) -> str:
        """Fetch `url` if the gateway allows it; extra args are "Name: value" header lines.

        Raises AccessDeniedError when refused and HttpRequestError on a failing status.
        """
        try:
            self._run_request_pipeline(url)
        except (AccessDeniedError, ValueError) as err:
            print(f"error: {err}")
            raise

        expire_ttl = min(5, self.cache.default_ttl) if self.has_cache() else 5

        if self.has_cache():
            cached = self._cached_response(url)
            if cached is not None:
                return cached

        if self.debug:
            print(f" [debug] [gateway.get_url]: {url}")

        response = self.http_client.get(url, headers=self._gather_headers(url, args))
        try:
            if self.has_cache():
                self._store_response(url, response.status_code, "", expire_ttl)

            if response.status_code >= 400:
                raise HttpRequestError(url, response.status_code)

            self._run_response_pipeline(response)
            body = response.text
        finally:
            response.close()

        if self.has_cache():
            self._store_response(url, response.status_code, body, expire_ttl)

        return body

    def save_url_to_file(self, url: str, filename) -> None:
        """Fetch `url` and write its contents to `filename`."""
        contents = self.get_url(url)
        with open(filename, "w", encoding="utf-8") as handle:
            handle.write(contents)