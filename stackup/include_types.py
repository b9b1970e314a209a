"""Kinds of workflow include sources."""

from __future__ import annotations

import os
from enum import Enum


class InvalidIncludeTypeError(ValueError):
    """Raised when a name is not a valid include type."""


class IncludeType(Enum):
    HTTP = 0
    S3 = 1
    FILE = 2
    UNKNOWN = 3

    def __str__(self) -> str:
        return _INCLUDE_TYPE_NAMES[self]

    def is_valid(self) -> bool:
        return self in _INCLUDE_TYPE_NAMES


_INCLUDE_TYPE_NAMES = {
    IncludeType.HTTP: "http",
    IncludeType.S3: "s3",
    IncludeType.FILE: "file",
    IncludeType.UNKNOWN: "unknown",
}

_INCLUDE_TYPE_VALUES = {name: kind for kind, name in _INCLUDE_TYPE_NAMES.items()}


def determine_include_type(*args: str) -> IncludeType:
    """Classify the first non-empty candidate as http, s3 or file."""
    for candidate in args:
        if candidate.startswith("http"):
            return IncludeType.HTTP
        if candidate.startswith("s3:"):
            return IncludeType.S3
        if candidate and (os.path.isfile(candidate) or len(candidate) > 0):
            return IncludeType.FILE
    return IncludeType.UNKNOWN


def parse_include_type(name: str) -> IncludeType:
    try:
        return _INCLUDE_TYPE_VALUES[name]
    except KeyError:
        raise InvalidIncludeTypeError(f"{name} is not a valid IncludeType") from None