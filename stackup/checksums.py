"""Checksum algorithms, hashing and checksum-file parsing."""

from __future__ import annotations

import hashlib
import posixpath
import re
from dataclasses import dataclass
from enum import Enum
from urllib.parse import urlsplit, urlunsplit


class UnsupportedAlgorithmError(ValueError):
    """Raised or returned for a checksum algorithm that cannot be verified."""


class ChecksumAlgorithm(Enum):
    SHA1 = 0
    SHA256 = 1
    SHA512 = 2
    UNSUPPORTED = 3
    ERROR = 4

    def __str__(self) -> str:
        return _ALGORITHM_NAMES[self]

    def is_valid(self) -> bool:
        return self in _ALGORITHM_NAMES

    def is_supported_algorithm(self) -> bool:
        return self in (ChecksumAlgorithm.SHA256, ChecksumAlgorithm.SHA512)

    def unsupported_error(self) -> UnsupportedAlgorithmError | None:
        """Return an error describing this algorithm if it is unsupported, else None."""
        if self.is_supported_algorithm():
            return None
        return UnsupportedAlgorithmError(f"algorithm {self} is not supported")

    def hash_length(self) -> int:
        return _ALGORITHM_LENGTHS.get(self, 0)


_ALGORITHM_NAMES = {
    ChecksumAlgorithm.SHA1: "sha1",
    ChecksumAlgorithm.SHA256: "sha256",
    ChecksumAlgorithm.SHA512: "sha512",
    ChecksumAlgorithm.UNSUPPORTED: "unsupported",
    ChecksumAlgorithm.ERROR: "error",
}

_ALGORITHM_VALUES = {name: algorithm for algorithm, name in _ALGORITHM_NAMES.items()}

_ALGORITHM_LENGTHS = {
    ChecksumAlgorithm.SHA256: 64,
    ChecksumAlgorithm.SHA512: 128,
}


def parse_checksum_algorithm(name: str) -> ChecksumAlgorithm:
    """Map a name to an algorithm; unknown names map to UNSUPPORTED."""
    return _ALGORITHM_VALUES.get(name, ChecksumAlgorithm.UNSUPPORTED)


@dataclass
class Checksum:
    hash: str
    algorithm: ChecksumAlgorithm
    filename: str


_HASH_AND_FILENAME = re.compile(r"([a-fA-F0-9]{48,})[\s\t]+([\w\d_\-\.\/\\]+)", re.ASCII)

_URL_PATTERNS = (
    (ChecksumAlgorithm.SHA256, re.compile(r"sha256(sum|\.txt)")),
    (ChecksumAlgorithm.SHA512, re.compile(r"sha512(sum|\.txt)")),
)

_HASH_LENGTHS = {
    16: parse_checksum_algorithm("md4"),
    32: parse_checksum_algorithm("md5"),
    40: parse_checksum_algorithm("sha1"),
    64: parse_checksum_algorithm("sha256"),
    96: parse_checksum_algorithm("sha384"),
    128: parse_checksum_algorithm("sha512"),
}


def _string_to_lines(contents: str) -> list[str]:
    contents = contents.strip()
    contents = contents.replace("\\n", "  # \n")
    contents = contents.replace("\t", " ")
    return contents.split("\\n")[0].split("\n")


def _match_hash_and_filename(line: str) -> tuple[str, str] | None:
    match = _HASH_AND_FILENAME.search(line)
    if match is None:
        return None
    return match.group(1), match.group(2)


def _match_algorithm_by_url(url: str) -> ChecksumAlgorithm:
    for algorithm, pattern in _URL_PATTERNS:
        if pattern.search(url):
            return algorithm
    return ChecksumAlgorithm.UNSUPPORTED


def _match_algorithm_by_length(hashes) -> ChecksumAlgorithm:
    for value in hashes:
        if len(value) in _HASH_LENGTHS:
            return _HASH_LENGTHS[len(value)]
    return ChecksumAlgorithm.UNSUPPORTED


def find_filename_checksum(filename: str, contents: str) -> Checksum | None:
    """Find the checksum listed for `filename` in a checksums file."""
    wanted = filename.casefold()
    for line in _string_to_lines(contents):
        found = _match_hash_and_filename(line)
        if found and found[1].casefold() == wanted:
            return Checksum(hash=found[0], algorithm=ChecksumAlgorithm.SHA256, filename=found[1])
    return None


def determine_checksum_algorithm(hashes, checksum_url: str) -> ChecksumAlgorithm:
    """Guess the algorithm from hash lengths, then from the checksum URL."""
    algorithm = _match_algorithm_by_length(hashes)
    if algorithm.is_supported_algorithm():
        return algorithm

    algorithm = _match_algorithm_by_url(checksum_url)
    if algorithm.is_supported_algorithm():
        return algorithm

    return ChecksumAlgorithm.UNSUPPORTED


def hashes_match(hash1: str, hash2: str) -> bool:
    return hash1 != "" and hash1.casefold() == hash2.casefold()


def calculate_sha256_hash(text: str) -> tuple[str, ChecksumAlgorithm]:
    return hashlib.sha256(text.encode("utf-8")).hexdigest(), ChecksumAlgorithm.SHA256


def calculate_sha512_hash(text: str) -> tuple[str, ChecksumAlgorithm]:
    return hashlib.sha512(text.encode("utf-8")).hexdigest(), ChecksumAlgorithm.SHA512


def calculate_default_hash(text: str) -> tuple[str, ChecksumAlgorithm]:
    return calculate_sha256_hash(text)


def _clean(path: str) -> str:
    if path == "":
        return "."
    cleaned = posixpath.normpath(path)
    if cleaned.startswith("//"):
        cleaned = "/" + cleaned.lstrip("/")
    return cleaned


def _base(path: str) -> str:
    if path == "":
        return "."
    stripped = path.rstrip("/")
    if stripped == "":
        return "/"
    return stripped.rsplit("/", 1)[-1]


def _dir(path: str) -> str:
    head = path[: path.rfind("/") + 1]
    return _clean(head)


def _join_path(base_path: str, name: str) -> str:
    if base_path.startswith("/"):
        return _clean(base_path + "/" + name)
    return _clean("/" + base_path + "/" + name)[1:]


def get_checksum_urls(full_url: str) -> list[str]:
    """Candidate checksum-file URLs that sit beside `full_url`."""
    parts = urlsplit(full_url)
    requested = _base(parts.path)
    directory = _dir(parts.path)

    names = [
        "checksums.txt",
        "checksums.sha256.txt",
        "checksums.sha512.txt",
        "sha256sum",
        "sha512sum",
        "sha512sum",
        requested + ".sha256",
        requested + ".sha512",
    ]

    urls = []
    for name in names:
        path = _join_path(directory, name)
        if parts.netloc and path and not path.startswith("/"):
            path = "/" + path
        urls.append(urlunsplit(parts._replace(path=path)))
    return urls