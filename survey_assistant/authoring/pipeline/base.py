# survey_assistant/authoring/pipeline/base.py
"""
Base class for authoring stages.

Each stage tries the generation adapter once and falls back to its local
strategy on any adapter failure. Stages never raise; they report through
StageResult.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from survey_assistant.authoring.adapter import GenerationAdapter
from survey_assistant.authoring.errors import GenerationFailure, SchemaViolation

logger = logging.getLogger(__name__)


@dataclass
class StageResult:
    """
    Result of executing an authoring stage.

    Attributes:
        stage_name: Name of the stage that produced this result
        success: Whether the stage produced a usable document
        output: The validated document (None when success=False)
        strategy: "remote" when the adapter answered, "local" otherwise
        error: Error message if success=False
        remote_error: Why the adapter answer was not used, if it was tried
    """

    stage_name: str
    success: bool
    output: Any
    strategy: str
    error: str | None = None
    remote_error: str | None = None

    @property
    def fell_back(self) -> bool:
        return self.remote_error is not None


class AuthoringStage(ABC):
    """Stage with a single-attempt remote strategy and a local fallback."""

    def __init__(self, adapter: GenerationAdapter | None = None) -> None:
        self._adapter = adapter

    @property
    @abstractmethod
    def name(self) -> str:
        """Stage identifier used in logs and results."""

    async def _try_remote(
        self, call: Callable[[GenerationAdapter], Awaitable[Any]]
    ) -> tuple[Any, str | None]:
        """
        Run one adapter call.

        Returns:
            (document, None) on success, (None, reason) on any failure,
            (None, None) when no adapter is configured
        """
        if self._adapter is None:
            return None, None
        try:
            return await call(self._adapter), None
        except (GenerationFailure, SchemaViolation) as e:
            logger.warning(f"Stage '{self.name}': {self._adapter.name} failed, using local strategy: {e}")
            return None, str(e)
        except Exception as e:
            logger.warning(
                f"Stage '{self.name}': {self._adapter.name} raised {type(e).__name__}, using local strategy",
                exc_info=True,
            )
            return None, f"{type(e).__name__}: {e}"

    def _failed(self, error: Exception, remote_error: str | None = None) -> StageResult:
        logger.error(f"Stage '{self.name}' failed: {error}", exc_info=True)
        return StageResult(
            stage_name=self.name,
            success=False,
            output=None,
            strategy="local",
            error=str(error),
            remote_error=remote_error,
        )
