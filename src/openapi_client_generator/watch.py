"""Poll a local source file and regenerate when it changes."""

from __future__ import annotations

from collections.abc import Callable
import logging
from pathlib import Path
import time
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_SECONDS = 1.0


def watch_file(
    path: Path,
    on_change: Callable[[], None],
    *,
    interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
    max_polls: Optional[int] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Call ``on_change`` whenever the modification time of ``path`` changes.

    Runs until interrupted, or for ``max_polls`` polls when given.

    Args:
        path (Path): File to watch.
        on_change (Callable[[], None]): Callback run after each change.
        interval (float): Seconds between polls.
        max_polls (Optional[int]): Stop after this many polls.
        sleep (Callable[[float], None]): Sleep function between polls.
    """
    last_seen = _mtime(path)
    polls = 0
    while max_polls is None or polls < max_polls:
        sleep(interval)
        polls += 1
        current = _mtime(path)
        if current is None or current == last_seen:
            continue
        last_seen = current
        logger.info("%s changed, regenerating", path)
        on_change()


def _mtime(path: Path) -> Optional[int]:
    try:
        return path.stat().st_mtime_ns
    except FileNotFoundError:
        # Editors may replace the file non-atomically.
        return None
