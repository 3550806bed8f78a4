"""
Debounced validation of in-progress JSON text.

Each keystroke schedules a delayed preview; a newer schedule cancels the pending
one so only the latest text is ever validated and published. Previews never
mutate the session: committing stays a separate, explicit call.

This is the editor-side entry point. An interactive front end owns one validator
per session and feeds it the buffer on every change; the HTTP API has no
keystroke stream and validates on request through `POST /json/validate`.
"""
import asyncio
from typing import Callable, Optional

from tessera.config import settings
from tessera.core.session import EditingSession
from tessera.models import JsonEditResult
from tessera.utils.logger import get_logger

logger = get_logger(__name__)

PreviewCallback = Callable[[JsonEditResult], None]


class DebouncedJsonValidator:
    """
    Args:
        session: Session whose schema and current JSON the previews run against.
        delay: Seconds to wait after the last keystroke. Defaults to
            JSON_VALIDATION_DELAY_MS.
        on_result: Called with each published preview.
    """

    def __init__(
        self,
        session: EditingSession,
        delay: Optional[float] = None,
        on_result: Optional[PreviewCallback] = None,
    ):
        self.session = session
        self.delay = settings.JSON_VALIDATION_DELAY_MS / 1000 if delay is None else delay
        self._on_result = on_result
        self._task: Optional[asyncio.Task] = None
        self._generation = 0
        self.latest: Optional[JsonEditResult] = None

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def schedule(self, text: str) -> asyncio.Task:
        """Schedule validation of `text`, cancelling any earlier pending one."""
        self.cancel()
        self._generation += 1
        self._task = asyncio.get_running_loop().create_task(self._run(text, self._generation))
        return self._task

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def flush(self) -> Optional[JsonEditResult]:
        """Wait for the pending validation, if any, and return the latest preview."""
        if self._task is not None:
            try:
                await self._task
            except asyncio.CancelledError:
                logger.debug("Pending JSON validation was cancelled before completion.")
        return self.latest

    async def _run(self, text: str, generation: int) -> None:
        await asyncio.sleep(self.delay)
        result = self.session.preview_json_text(text)

        # A newer schedule may have started while validating
        if generation != self._generation:
            return

        self.latest = result
        if self._on_result is not None:
            self._on_result(result)
