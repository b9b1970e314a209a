"""Workflow includes: remote or local files merged into a workflow."""

from __future__ import annotations

import os
import re
import uuid
from dataclasses import dataclass, field
from typing import Any

import requests

from .cache import Cache, CacheEntry, expires_at
from .checksums import (
    ChecksumAlgorithm,
    calculate_sha256_hash,
    determine_checksum_algorithm,
    find_filename_checksum,
    get_checksum_urls,
    hashes_match,
    parse_checksum_algorithm,
)
from .consts import DEFAULT_CACHE_TTL_MINUTES, DISPLAY_URLS_REMOVABLE
from .gateway import HttpRequestError
from .include_types import IncludeType, determine_include_type
from .middleware import AccessDeniedError
from .verification import ChecksumVerificationState

_URL_PREFIXES = {
    "gh:": "https://raw.githubusercontent.com/",
    "s3:": "https://s3.amazonaws.com/",
}

_ENV_REF = re.compile(r"\$(?:\{([^}]*)\}|([A-Za-z0-9_]+))")

_FETCH_ERRORS = (AccessDeniedError, HttpRequestError, requests.RequestException, ValueError)


def _expand_env(text: str) -> str:
    return _ENV_REF.sub(
        lambda m: os.environ.get(m.group(1) if m.group(1) is not None else m.group(2), ""),
        text,
    )


def _base(path: str) -> str:
    if path == "":
        return "."
    stripped = path.rstrip("/")
    if stripped == "":
        return "/"
    return stripped.rsplit("/", 1)[-1]


def _format_display_url(url: str) -> str:
    result = url
    for part in DISPLAY_URLS_REMOVABLE:
        result = result.replace(part, "")
    return result.strip("/")


def expand_url_prefixes(url: str) -> str:
    """Expand the ``gh:`` and ``s3:`` shorthand prefixes into full URLs."""
    for prefix, replacement in _URL_PREFIXES.items():
        if url.startswith(prefix):
            return url.replace(prefix, replacement, 1)
    return url


def is_hash_url_for_file_url(url: str, filename: str) -> bool:
    """True when `url` names the .sha256 or .sha512 file for `filename`."""
    return url.endswith(filename + ".sha256") or url.endswith(filename + ".sha512")


@dataclass
class WorkflowInclude:
    """A file included into a workflow, with its contents and checksum state."""

    url: str = ""
    headers: list = field(default_factory=list)
    file: str = ""
    checksum_url: str = ""
    verify_checksum: bool = False
    access_key: str = ""
    secret_key: str = ""
    secure: bool = False
    validation_state: ChecksumVerificationState = ChecksumVerificationState.NOT_VERIFIED
    contents: str = ""
    hash: str = ""
    found_checksum: str = ""
    hash_algorithm: ChecksumAlgorithm = ChecksumAlgorithm.UNSUPPORTED
    from_cache: bool = False
    checksum_verification: bool = False
    ttl_minutes: int = DEFAULT_CACHE_TTL_MINUTES
    cache: Cache | None = field(default=None, repr=False, compare=False)
    gateway: Any = field(default=None, repr=False, compare=False)

    def initialize(
        self,
        cache: Cache | None,
        gateway,
        checksum_verification: bool,
        ttl_minutes: int = DEFAULT_CACHE_TTL_MINUTES,
    ) -> None:
        """Attach the cache and gateway and apply the workflow's settings."""
        self.cache = cache
        self.gateway = gateway
        self.checksum_verification = checksum_verification
        self.ttl_minutes = ttl_minutes
        self.headers = [_expand_env(header) for header in self.headers]
        self.verify_checksum = checksum_verification
        self.validation_state = ChecksumVerificationState.NOT_VERIFIED

    def include_type(self) -> IncludeType:
        return determine_include_type(self.full_url(), self.filename())

    def set_contents(self, contents: str, store_in_cache: bool) -> None:
        """Replace the contents, rehash them and optionally store them in the cache."""
        self.contents = contents
        self.update_hash()

        if store_in_cache and self.cache is not None:
            self.cache.set(self.identifier(), self.new_cache_entry(), self.ttl_minutes)

    def load_from_cache(self, entry: CacheEntry | None) -> bool:
        """Take contents and hash from a cache entry; False when there is none."""
        self.from_cache = entry is not None
        if entry is None:
            return False

        self.hash = entry.hash
        self.hash_algorithm = parse_checksum_algorithm(entry.algorithm)
        self.set_contents(entry.value, False)
        return True

    def loaded_status_text(self) -> str:
        source = "cached" if self.from_cache else "fetched"
        return f"{source}, {self.validation_state}"

    def update_checksum_from_checksums_file(self, contents: str) -> None:
        checksum = find_filename_checksum(_base(self.full_url()), contents)
        if checksum is not None:
            self.found_checksum = checksum.hash
        self.update_checksum_algorithm()

    def _should_verify_checksum(self) -> bool:
        return (
            self.include_type() is IncludeType.HTTP
            or self.verify_checksum
            or self.checksum_verification
        )

    def validate_checksum(self, checksum_urls=None) -> bool:
        """Look up the published checksum and compare it with the contents' hash.

        `checksum_urls` are the candidate checksum files to try in order; by default
        those beside the include's own URL.
        """
        self.update_hash()
        self.validation_state = ChecksumVerificationState.NOT_VERIFIED

        if not self._should_verify_checksum():
            return True

        if self.gateway is None:
            raise RuntimeError("include has no gateway to fetch checksums with")

        if checksum_urls is None:
            checksum_urls = get_checksum_urls(self.full_url())

        self.validation_state = ChecksumVerificationState.PENDING
        base_name = _base(self.full_url())
        found = False

        for url in checksum_urls:
            try:
                text = self.gateway.get_url(url)
            except _FETCH_ERRORS:
                continue
            if not text:
                continue
            if base_name not in text and not is_hash_url_for_file_url(url, base_name):
                continue

            found = True
            self.checksum_url = url
            self.update_checksum_from_checksums_file(text)
            break

        matched = (
            found
            and not self.validation_state.is_error()
            and hashes_match(self.hash, self.found_checksum)
        )
        self.validation_state = self.validation_state.with_verified(matched)

        if not found:
            self.validation_state = ChecksumVerificationState.ERROR

        return self.validation_state.is_verified()

    def filename(self) -> str:
        if not self.file:
            return ""
        return os.path.abspath(os.path.expanduser(self.file))

    def full_url(self) -> str:
        return expand_url_prefixes(self.url)

    def identifier(self) -> str:
        """A stable id derived from the URL and file name."""
        return str(uuid.uuid5(uuid.NAMESPACE_URL, self.full_url() + self.filename()))

    def display_name(self) -> str:
        for candidate in (_format_display_url(self.full_url()), self.filename()):
            if candidate:
                return candidate
        return "<unknown>"

    def update_checksum_algorithm(self) -> None:
        self.hash_algorithm = determine_checksum_algorithm(
            [self.found_checksum, self.hash], self.checksum_url
        )

    def update_hash(self) -> None:
        """Rehash the contents, resetting verification if the hash changed."""
        original = self.hash
        self.hash, self.hash_algorithm = calculate_sha256_hash(self.contents)
        if self.hash != original:
            self.validation_state = ChecksumVerificationState.NOT_VERIFIED

    def new_cache_entry(self) -> CacheEntry:
        if self.cache is None:
            raise RuntimeError("include has no cache")
        self.update_hash()
        return self.cache.create_entry(
            self.contents,
            expires_at(self.ttl_minutes),
            self.hash,
            str(self.hash_algorithm),
            None,
        )