"""User-facing message builders."""

from enum import Enum


class AccessType(Enum):
    """The kind of resource the gateway is deciding access to."""

    DOMAIN = "domain"
    CONTENT_TYPE = "content type"
    FILE_EXTENSION = "file extension"

    def __str__(self) -> str:
        return self.value


def task_not_found(name: str) -> str:
    return f"Task {name} not found."


def not_explicitly_allowed(access_type: AccessType, value: str) -> str:
    return f"Access to {access_type} '{value}' has not been explicitly allowed."


def access_blocked(access_type: AccessType, value: str) -> str:
    return f"Access to {access_type} '{value}' has is blocked."


def http_request_failed(url: str, code: int) -> str:
    return f"HTTP request failed: error {code} (url: {url})"


def exit_due_to_checksum_mismatch() -> str:
    return "Exiting due to checksum mismatch."


def remote_include_status(status: str, name: str) -> str:
    return "remote include (" + status + "): " + name


def remote_include_checksum_mismatch(name: str) -> str:
    return "checksum verification failed: " + name


def remote_include_cannot_load(name: str) -> str:
    return "unable to load remote include: " + name