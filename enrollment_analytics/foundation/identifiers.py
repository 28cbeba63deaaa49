"""Identifier helpers for playbooks, batches and device candidates."""

from __future__ import annotations

import hashlib
from uuid import uuid4


def new_id() -> str:
    """Generate a new random UUID v4 string."""
    return str(uuid4())


def hash_device_name(device_name: str) -> str:
    """Short, stable SHA-256 digest of a device name for telemetry payloads.

    Only the first 12 upper-case hex characters are kept.
    """
    digest = hashlib.sha256(device_name.encode("utf-8")).hexdigest()
    return digest[:12].upper()
