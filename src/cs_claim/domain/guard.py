"""Scoped non-reentrant lock."""

from types import TracebackType

from src.cs_common.errors import ReentrantCallError


class ReentrancyGuard:
    """Held for the duration of a `with` block; re-entry raises ReentrantCallError.

    Released in `__exit__`, which runs on every exit path, success or failure.
    """

    def __init__(self, entry_point: str) -> None:
        self._entry_point = entry_point
        self._held = False

    @property
    def held(self) -> bool:
        return self._held

    def __enter__(self) -> "ReentrancyGuard":
        if self._held:
            raise ReentrantCallError(self._entry_point)
        self._held = True
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self._held = False
