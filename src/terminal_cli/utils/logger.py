"""
Logging setup for terminal-cli.
Colored console output that cooperates with tqdm progress bars, optional
rotating log files and a timing helper, all on top of loguru.
"""
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Optional

from loguru import logger
from tqdm import tqdm

# Console: colored level + message (colors stripped automatically when not a TTY)
CONSOLE_FORMAT = "<green>{time:HH:mm:ss}</green> <level>{level: <8}</level> {message}"
# File: plain, with the emitting module
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} [{level}] [{name}:{function}] {message}"


class TerminalLogger:
    """
    Process-wide logging configuration.

    Features:
    - Console sink routed through ``tqdm.write`` so it never tears progress bars
    - Optional file sink with size-based rotation
    - Timing context manager

    Usage:
        >>> TerminalLogger.setup(console_level='DEBUG', log_dir=Path('logs'))
        >>> with TerminalLogger.timer('load rules'):
        ...     load_rules()
    """

    _sink_ids = []
    log_file: Optional[Path] = None

    @classmethod
    def setup(
        cls,
        console_level: str = 'WARNING',
        log_dir: Optional[Path] = None,
        file_level: str = 'DEBUG',
        rotation: str = '10 MB',
        retention: int = 5,
    ) -> None:
        """
        Replace every loguru sink with the terminal-cli ones.

        Args:
            console_level: Minimum level shown on the console
            log_dir: Directory for log files; no file is written when None
            file_level: Minimum level written to the file
            rotation: Size at which the log file rotates
            retention: Number of rotated files to keep
        """
        cls.reset()

        cls._sink_ids.append(logger.add(
            lambda msg: tqdm.write(msg, end="", file=sys.stderr),
            level=console_level.upper(),
            format=CONSOLE_FORMAT,
            colorize=sys.stderr.isatty(),
        ))

        if log_dir is not None:
            log_dir = Path(log_dir)
            log_dir.mkdir(parents=True, exist_ok=True)
            cls.log_file = log_dir / f"terminal_cli_{datetime.now().strftime('%Y%m%d')}.log"
            cls._sink_ids.append(logger.add(
                cls.log_file,
                level=file_level.upper(),
                format=FILE_FORMAT,
                rotation=rotation,
                retention=retention,
                encoding='utf-8',
            ))

    @classmethod
    def reset(cls) -> None:
        """Remove all sinks, including loguru's default stderr one."""
        logger.remove()
        cls._sink_ids.clear()
        cls.log_file = None

    @staticmethod
    def timer(operation: str):
        """
        Context manager logging how long ``operation`` took.

        Usage:
            >>> with TerminalLogger.timer('downloads'):
            ...     executor.run(jobs)
        """
        return _TimerContext(operation)


class _TimerContext:
    """Internal context manager for timing operations."""

    def __init__(self, operation: str):
        self.operation = operation
        self.start_time = None
        self.elapsed = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        logger.debug(f"[{self.operation}] Started")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.elapsed = time.perf_counter() - self.start_time

        if exc_type is None:
            logger.info(f"[{self.operation}] Completed in {self.elapsed:.2f}s")
        else:
            logger.error(
                f"[{self.operation}] Failed after {self.elapsed:.2f}s: "
                f"{exc_type.__name__}: {exc_val}"
            )

        return False  # Don't suppress exceptions


def setup_logging(**kwargs) -> None:
    """Quick access to setup."""
    TerminalLogger.setup(**kwargs)


def timer(operation: str) -> _TimerContext:
    """Quick access to the timer."""
    return TerminalLogger.timer(operation)
