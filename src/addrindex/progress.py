"""
Loading progress for long-running address lookups, polled by clients.
"""

from __future__ import annotations

from loguru import logger


class LoadingIndicators:
    def __init__(self) -> None:
        self._progress: dict[str, float] = {}

    def set_progress(self, key: str, percent: float) -> None:
        value = round(min(100.0, max(0.0, float(percent))), 2)
        self._progress[key] = value
        logger.trace(f"Progress {key}: {value}%")

    def get_progress(self, key: str) -> float | None:
        return self._progress.get(key)

    def get_all(self) -> dict[str, float]:
        return dict(self._progress)

    def clear(self, key: str) -> None:
        self._progress.pop(key, None)
