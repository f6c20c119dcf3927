"""Progress bar state."""

from __future__ import annotations

from dataclasses import dataclass

PROGRESS_MIN = 0
PROGRESS_MAX = 100
DEFAULT_RESET_TEXT = "Starting..."


def clamp_progress(value: int) -> int:
    return max(PROGRESS_MIN, min(PROGRESS_MAX, value))


@dataclass
class ProgressTracker:
    """Clamped progress value plus its label."""

    value: int = 0
    text: str = ""

    def set(self, value: int, text: str | None = None) -> int:
        self.value = clamp_progress(value)
        if text is not None:
            self.text = text
        return self.value

    def increment(self, delta: int, text: str | None = None) -> int:
        """Add ``delta`` (may be negative) and clamp the result."""
        return self.set(self.value + delta, text)

    def reset(self, text: str | None = None) -> None:
        self.value = 0
        self.text = text or DEFAULT_RESET_TEXT

    @property
    def is_complete(self) -> bool:
        return self.value >= PROGRESS_MAX

    @property
    def has_started(self) -> bool:
        return self.value > PROGRESS_MIN

    def formatted(self) -> str:
        if not self.text:
            return f"{self.value}%"
        return f"{self.text} ({self.value}%)"
