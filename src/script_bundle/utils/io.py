"""Best-effort release of handles that nothing depends on any more."""

from __future__ import annotations

import logging
from typing import Protocol

logger = logging.getLogger(__name__)


class Closeable(Protocol):
    def close(self) -> None: ...


def close_quietly(handle: Closeable | None, description: str = "") -> None:
    """Close *handle*, logging instead of raising when closing fails.

    Only for disposal: any close whose failure could affect a result must
    call ``close()`` directly and let the error propagate.
    """
    if handle is None:
        return
    try:
        handle.close()
    except Exception:
        logger.warning("Failed to close %s", description or handle, exc_info=True)
