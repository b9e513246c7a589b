"""
Run configuration.

``Settings`` collects environment driven defaults (populated after ``.env`` is
loaded). ``RunConfig`` is the immutable, fully validated description of one
invocation; it is built once by the CLI and passed explicitly to the job
expander, reporter and download executor.
"""
import os
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Optional, Tuple

DEFAULT_API_URL = "https://7879w58k4l.execute-api.eu-west-1.amazonaws.com/dev/"
DEFAULT_OUTPUT_DIR = "downloads"
DEFAULT_PARALLELISM = 10
DEFAULT_DATA_TYPE = "trade"

LINK_TIMEOUT_SECONDS = 10.0
# (connect, read) per socket operation while streaming a file body
STREAM_TIMEOUT_SECONDS = (10.0, 60.0)
STREAM_CHUNK_SIZE = 1024 * 1024

MODES = ("day", "check")


@dataclass(frozen=True)
class Settings:
    """Defaults read from the process environment."""
    api_url: str = DEFAULT_API_URL
    api_key: Optional[str] = None
    output_dir: Path = Path(DEFAULT_OUTPUT_DIR)
    log_dir: Optional[Path] = None

    @classmethod
    def from_env(cls, environ=None) -> "Settings":
        env = os.environ if environ is None else environ
        log_dir = env.get("TERMINAL_CLI_LOG_DIR")
        return cls(
            api_url=env.get("TERMINAL_CLI_API_URL") or DEFAULT_API_URL,
            api_key=env.get("API_KEY") or None,
            output_dir=Path(env.get("TERMINAL_CLI_OUTPUT_DIR") or DEFAULT_OUTPUT_DIR),
            log_dir=Path(log_dir) if log_dir else None,
        )


@dataclass(frozen=True)
class RunConfig:
    """Validated arguments of a single run."""
    mode: str
    data_type: str
    start_date: date
    end_date: date
    exchanges: Tuple[str, ...] = ()
    tokens: Tuple[str, ...] = ()
    skip_confirm: bool = False
    api_key: Optional[str] = None
    parallelism: int = DEFAULT_PARALLELISM
    output_dir: Path = field(default_factory=lambda: Path(DEFAULT_OUTPUT_DIR))
    api_url: str = DEFAULT_API_URL
    metadata_dir: Optional[Path] = None

    def __post_init__(self):
        if self.mode not in MODES:
            raise ValueError(f"Unknown mode: {self.mode}. Supported modes: {', '.join(MODES)}")
        if self.end_date < self.start_date:
            raise ValueError("End date must be after or equal to start date")
        if self.parallelism < 1:
            raise ValueError("--parallel must be a positive integer")
