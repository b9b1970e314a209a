"""Fetching remote files to disk and parsing S3 object URLs."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from urllib.parse import urlsplit

import requests

from .gateway import HttpRequestError
from .middleware import AccessDeniedError

_CONTROL_CHARACTERS = re.compile(r"[\x00-\x08\x1A]")

_DOWNLOAD_ERRORS = (
    AccessDeniedError,
    HttpRequestError,
    requests.RequestException,
    ValueError,
    OSError,
)


class Downloader:
    """Saves URLs to files through a gateway, skipping files already present."""

    def __init__(self, gateway):
        self.gateway = gateway

    def download(self, url: str, target_path) -> bool:
        """Fetch `url` into `target_path` unless a non-empty file is already there.

        Returns True when the file is present afterwards, False when the fetch failed.
        """
        if os.path.isfile(target_path):
            if os.path.getsize(target_path) > 0:
                return True
            os.remove(target_path)

        try:
            self.gateway.save_url_to_file(url, target_path)
        except _DOWNLOAD_ERRORS:
            return False
        return True


@dataclass
class S3Url:
    endpoint: str
    bucket_name: str
    file_name: str


def parse_s3_url(url: str) -> S3Url:
    """Split an ``s3://endpoint/bucket/object`` or ``s3:endpoint/bucket/object`` URL."""
    normalized = url.replace("s3://", "", 1).replace("s3:", "", 1)
    parts = urlsplit("s3://" + normalized)

    bucket_name = parts.path.removeprefix("/")
    bucket_name, _, file_name = bucket_name.partition("/")

    return S3Url(endpoint=parts.netloc, bucket_name=bucket_name, file_name=file_name)


def remove_control_characters(text: str) -> str:
    """Strip NUL through BS and SUB characters."""
    return _CONTROL_CHARACTERS.sub("", text)