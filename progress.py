"""Progress tracking for batch runs."""

import time
from typing import Optional


def _format_seconds(seconds: float) -> str:
    minutes, secs = divmod(int(seconds), 60)
    return f"{minutes:d}:{secs:02d}"


class ProgressRenderer:
    """Single-line terminal progress bar with running spot totals.

    Counters are kept even when drawing is disabled, so callers can read
    ``with_spots``, ``spots`` and ``failed`` after a silent run.
    """

    def __init__(self, enable: bool = True, width: int = 40):
        self.enable = enable
        self.width = width
        self.reset(0)

    def reset(self, total: int) -> None:
        self.total = max(total, 0)
        self.with_spots = 0
        self.failed = 0
        self.spots = 0
        self.start = time.time()
        self.last_line = ""

    def update(self, current: int, *, spot_count: int = 0, failed: bool = False) -> None:
        if failed:
            self.failed += 1
        elif spot_count > 0:
            self.with_spots += 1
        self.spots += spot_count
        if not self.enable or self.total <= 0:
            return

        line = self.render(current, time.time() - self.start)
        if line != self.last_line:
            print("\r" + line, end="", flush=True)
            self.last_line = line
        if current >= self.total:
            print()

    def render(self, current: int, elapsed: float) -> str:
        filled = int(self.width * min(current, self.total) / self.total)
        bar = "#" * filled + "-" * (self.width - filled)
        eta: Optional[float] = None
        if current > 0 and elapsed > 0:
            eta = (self.total - current) * elapsed / current

        line = (
            f"[{bar}] {current}/{self.total} "
            f"spots:{self.spots} in:{self.with_spots} failed:{self.failed} "
            f"elapsed:{_format_seconds(elapsed)}"
        )
        if eta is not None:
            line += f" eta:{_format_seconds(eta)}"
        return line
