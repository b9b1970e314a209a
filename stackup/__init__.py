"""Workflow building blocks: checksums, an allow/block-list HTTP gateway, an expiring cache and remote includes."""

__version__ = "0.1.0"