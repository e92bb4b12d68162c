"""Process-wide session defaults.

One flat mapping shared by every tool: an agent sets ``scheme`` or
``simulatorId`` once and later calls may omit them. Values are not validated
here; each tool validates what it consumes at call time.
"""

from __future__ import annotations

import copy
import threading
from collections.abc import Iterable, Mapping
from typing import Any

import structlog

from src.infra.errors import SessionError

logger = structlog.get_logger()


class SessionStore:
    """Thread-safe key/value store of default parameter values.

    Every accessor takes the same lock, so a tool invoked from a worker thread
    never observes a half-applied set_defaults(). Readers get copies.
    """

    def __init__(self, initial: Mapping[str, Any] | None = None) -> None:
        self._lock = threading.Lock()
        self._defaults: dict[str, Any] = dict(initial or {})

    def set_defaults(
        self, partial: Mapping[str, Any], *, drop: Iterable[str] = ()
    ) -> list[str]:
        """Merge keys into the store. New keys overwrite, others are kept.

        Keys in drop are removed under the same lock; readers never see the
        store between the removal and the merge. Returns the keys removed.

        Raises SessionError if partial is not a mapping.
        """
        if not isinstance(partial, Mapping):
            raise SessionError(
                f"Session defaults must be a mapping (got {type(partial).__name__})",
                code="INVALID_DEFAULTS",
            )
        with self._lock:
            dropped = [k for k in drop if k in self._defaults and k not in partial]
            for key in dropped:
                del self._defaults[key]
            self._defaults.update(copy.deepcopy(dict(partial)))
            keys = sorted(self._defaults)
        logger.info(
            "session_defaults_set", updated=sorted(partial), dropped=dropped, keys=keys
        )
        return dropped

    def clear(self, keys: Iterable[str] | None = None) -> None:
        """Remove the given keys, or everything when keys is None."""
        with self._lock:
            if keys is None:
                self._defaults.clear()
                removed: list[str] = ["*"]
            else:
                removed = [k for k in keys if k in self._defaults]
                for key in removed:
                    del self._defaults[key]
        logger.info("session_defaults_cleared", removed=removed)

    def get(self, key: str) -> Any | None:
        with self._lock:
            return copy.deepcopy(self._defaults.get(key))

    def get_all(self) -> dict[str, Any]:
        """Snapshot of every stored default."""
        with self._lock:
            return copy.deepcopy(self._defaults)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._defaults

    def __len__(self) -> int:
        with self._lock:
            return len(self._defaults)


_default_store = SessionStore()


def get_session_store() -> SessionStore:
    """Return the process-global store used when none is injected."""
    return _default_store
