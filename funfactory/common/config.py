"""
Environment-backed configuration lookups shared by the remote clients and storage.
"""

from __future__ import annotations

import os
from pathlib import Path


def resolve_timeout(explicit: float | None, default: float) -> float:
    """
    Return ``explicit`` when given, else ``FUNFACTORY_REQUEST_TIMEOUT``, else ``default``.
    """
    if explicit is not None:
        timeout = float(explicit)
    else:
        configured = os.getenv("FUNFACTORY_REQUEST_TIMEOUT")
        if not configured:
            return default
        try:
            timeout = float(configured)
        except ValueError as exc:
            raise ValueError(
                f"FUNFACTORY_REQUEST_TIMEOUT must be a number of seconds, got {configured!r}."
            ) from exc

    if timeout <= 0:
        raise ValueError(f"Request timeout must be positive, got {timeout}.")
    return timeout


def resolve_state_dir(explicit: str | Path | None = None) -> Path:
    """
    Directory holding persisted records: ``explicit``, ``FUNFACTORY_STATE_DIR``, or ``~/.funfactory``.
    """
    candidate = explicit or os.getenv("FUNFACTORY_STATE_DIR") or Path.home() / ".funfactory"
    return Path(candidate).expanduser()
