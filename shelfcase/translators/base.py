from __future__ import annotations

import logging
from typing import Callable, List, Optional, Protocol, Sequence

from ..collection import Collection
from ..entry import Entry
from ..errors import ImportCancelled, ShelfcaseWarning


logger = logging.getLogger(__name__)

# receives a completed fraction in [0.0, 1.0]
ProgressCallback = Callable[[float], None]

# every this many lines or entries, progress is reported and cancellation checked
STEP_SIZE = 20


class CancelToken:
    """Cooperative cancellation flag shared by a caller and a translator."""

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class Importer(Protocol):
    format_id: str
    warnings: List[ShelfcaseWarning]

    def collection(self, data: bytes) -> Collection:
        ...


class Exporter(Protocol):
    format_id: str
    extension: str

    def export(self, collection: Collection, entries: Optional[Sequence[Entry]] = None) -> bytes:
        ...


class TranslatorBase:
    """
    Shared plumbing for importers and exporters: progress reporting,
    cancellation checks and collected warnings.
    """

    format_id = ""

    def __init__(
        self,
        *,
        progress: Optional[ProgressCallback] = None,
        cancel: Optional[CancelToken] = None,
    ) -> None:
        self.progress = progress
        self.cancel = cancel
        self.warnings: List[ShelfcaseWarning] = []

    def _step(self, done: int, total: int) -> None:
        """Call at every unit of work; acts every STEP_SIZE units."""
        if done % STEP_SIZE:
            return
        self._check_cancel()
        if self.progress is not None and total > 0:
            self.progress(min(1.0, done / total))

    def _check_cancel(self) -> None:
        if self.cancel is not None and self.cancel.cancelled:
            raise ImportCancelled(f"{self.format_id or type(self).__name__} cancelled")

    def _finish(self) -> None:
        if self.progress is not None:
            self.progress(1.0)

    def _warn(self, warning: ShelfcaseWarning) -> None:
        logger.warning("%s", warning)
        self.warnings.append(warning)


def selected_entries(collection: Collection, entries: Optional[Sequence[Entry]]) -> List[Entry]:
    """The given entries that belong to ``collection``, or all of them."""
    if entries is None:
        return collection.entries
    return [e for e in entries if e in collection]
