"""Console output for the interpreter and the frame runner.

Lines look like ``[    0.42s][    INFO][Interpreter] Machine reset``. The
interpreter reports loads, resets, faults and skipped opcodes through
``ConsoleLogger``; ``FrameRunner`` uses ``SessionLogger`` for per-session
statistics and ``build_tqdm_progress_bar`` for an optional progress bar.
"""

import time
import sys
from typing import Any, Dict, Optional, Callable, Tuple

from tqdm import tqdm

LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

LEVEL_COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[35m",
}
RESET_COLOR = "\033[0m"


class ConsoleLogger:
    """Print-based logger with a level threshold.

    ``log_level="CRITICAL"`` silences everything the machine emits, which is
    what tests use.
    """

    def __init__(
        self,
        name: str = "Chip8",
        log_level: str = "INFO",
        use_colors: bool = True,
        show_timestamps: bool = True,
    ):
        if log_level.upper() not in LEVELS:
            raise ValueError(f"Unknown log level {log_level!r}, expected one of {LEVELS}")
        self.name = name
        self.log_level = log_level.upper()
        self.use_colors = use_colors and hasattr(sys.stdout, "isatty") and sys.stdout.isatty()
        self.show_timestamps = show_timestamps
        self.start_time = time.time()

    def _should_log(self, level: str) -> bool:
        return LEVELS.index(level) >= LEVELS.index(self.log_level)

    def _format_message(self, level: str, message: str) -> str:
        timestamp = f"[{time.time() - self.start_time:8.2f}s]" if self.show_timestamps else ""
        level_str = f"[{level:>8s}]"
        if self.use_colors:
            level_str = f"{LEVEL_COLORS[level]}{level_str}{RESET_COLOR}"
        return f"{timestamp}{level_str}[{self.name}] {message}"

    def log(self, level: str, message: str):
        """Print ``message`` if ``level`` passes the threshold."""
        level = level.upper()
        if self._should_log(level):
            print(self._format_message(level, message), flush=True)

    def debug(self, message: str):
        self.log("DEBUG", message)

    def info(self, message: str):
        self.log("INFO", message)

    def error(self, message: str):
        self.log("ERROR", message)


class SessionLogger(ConsoleLogger):
    """Logger for frame loops with per-frame statistics."""

    def __init__(self, name: str = "Runner", **kwargs):
        super().__init__(name, **kwargs)
        self.frame_history = []

    def log_session_start(self, config: Dict[str, Any]):
        """Log runner configuration."""
        self.info("=" * 60)
        self.info("Starting session with configuration:")
        for key, value in config.items():
            if isinstance(value, float):
                self.info(f"  {key}: {value:.4f}")
            else:
                self.info(f"  {key}: {value}")
        self.info("=" * 60)

    def log_frame(
        self,
        frame: int,
        stats: Dict[str, Any],
        total_frames: int,
        log_interval: int = 60,
    ):
        """Log frame statistics every ``log_interval`` frames."""
        if frame % log_interval == 0 or frame == total_frames - 1:
            progress = (frame + 1) / total_frames
            stat_strs = [f"{key}={value}" for key, value in stats.items()]
            self.info(
                f"Frame {frame + 1:5d}/{total_frames} {progress * 100:5.1f}% | " + " | ".join(stat_strs)
            )
            self.frame_history.append({"frame": frame, "stats": dict(stats)})

    def log_session_end(self, summary: Dict[str, Any]):
        """Log a session summary."""
        elapsed = time.time() - self.start_time
        self.info("=" * 60)
        self.info(f"Session finished in {elapsed:.1f}s")
        for key, value in summary.items():
            if isinstance(value, float):
                self.info(f"  {key}: {value:.2f}")
            else:
                self.info(f"  {key}: {value}")
        self.info("=" * 60)


def build_tqdm_progress_bar(
    n: int,
    desc: Optional[str] = None,
    **kwargs,
) -> Tuple[Callable[[int], None], Callable[[], None]]:
    """Build a tqdm progress bar over ``n`` frames.

    Returns an ``update(steps)`` and a ``close()`` callable.
    """
    if desc is None:
        desc = f"Running ({n:,} frames)"

    for kwarg in ("total", "mininterval", "maxinterval", "miniters"):
        kwargs.pop(kwarg, None)

    bar = tqdm(total=n, desc=desc, unit="frame", **kwargs)

    def update(steps: int = 1):
        bar.update(int(steps))

    def close():
        bar.close()

    return update, close
