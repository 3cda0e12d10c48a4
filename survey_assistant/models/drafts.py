# survey_assistant/models/drafts.py
"""
Hand-off draft storage.

The draft store is an opaque key-value put/get; the survey editor reads the
confirmed draft back by key.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any

logger = logging.getLogger(__name__)


class DraftStore(ABC):
    """Abstract key-value store for confirmed drafts."""

    @abstractmethod
    async def put(self, key: str, draft: dict[str, Any]) -> None:
        """
        Store a draft, replacing any previous value under the key.

        Args:
            key: Storage key
            draft: JSON-compatible hand-off draft
        """
        pass

    @abstractmethod
    async def get(self, key: str) -> dict[str, Any] | None:
        """
        Returns:
            The stored draft, or None if nothing was stored under the key
        """
        pass


class InMemoryDraftStore(DraftStore):
    """Process-local draft store."""

    def __init__(self) -> None:
        self._drafts: dict[str, dict[str, Any]] = {}

    async def put(self, key: str, draft: dict[str, Any]) -> None:
        self._drafts[key] = dict(draft)
        logger.info(f"Stored draft under '{key}' ({len(draft.get('questions', []))} questions)")

    async def get(self, key: str) -> dict[str, Any] | None:
        draft = self._drafts.get(key)
        return dict(draft) if draft is not None else None
