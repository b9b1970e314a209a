"""Creation of a starter workflow configuration file."""

from __future__ import annotations

import os
import re
from pathlib import Path

import requests

from .consts import APP_NEW_CONFIG_TEMPLATE_URL
from .gateway import HttpRequestError
from .middleware import AccessDeniedError

CONFIG_FILENAME = "stackup.yaml"

_PROJECT_MARKERS = (
    ("composer.json", "php"),
    ("package.json", "node"),
    ("requirements.txt", "python"),
)
_DEFAULT_PROJECT_TYPE = "php"

_PLACEHOLDER = re.compile(r"\{\{-?\s*\.(\w+)\s*-?\}\}")

_FETCH_ERRORS = (AccessDeniedError, HttpRequestError, requests.RequestException, ValueError)


def _project_type() -> str:
    for marker, project_type in _PROJECT_MARKERS:
        if os.path.isfile(marker):
            return project_type
    return _DEFAULT_PROJECT_TYPE


def _render(template: str, values: dict) -> str:
    return _PLACEHOLDER.sub(lambda m: values.get(m.group(1), "<no value>"), template)


def create_new_config_file(gateway) -> Path | None:
    """Write a new stackup.yaml in the current directory from the remote template.

    Returns the path written, or None when the file exists or the template
    could not be fetched.
    """
    target = Path(CONFIG_FILENAME)
    if target.exists():
        print(f"{CONFIG_FILENAME} already exists.")
        return None

    project_type = _project_type()

    try:
        template = gateway.get_url(APP_NEW_CONFIG_TEMPLATE_URL)
    except _FETCH_ERRORS as err:
        print(f"error retrieving configuration file template: {err}")
        return None

    target.write_text(_render(template, {"ProjectType": project_type}), encoding="utf-8")
    return target