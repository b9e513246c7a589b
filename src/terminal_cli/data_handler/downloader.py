"""
Concurrent download executor.

A fixed pool of workers drains one shared, pre-filled job queue. For each job a
worker:

1. skips it when the destination file already exists
2. resolves a signed URL through the link service
3. streams the body to ``<dest>.part`` and renames it over ``<dest>``

Every job ends in exactly one of Skipped / Success / Failed. Errors never
escape a worker; they are recorded in the shared ``DownloadSummary``.
"""
import queue
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Sequence

import requests
from loguru import logger

from ..config import STREAM_CHUNK_SIZE, STREAM_TIMEOUT_SECONDS
from ..exceptions import DownloadCancelled, TerminalCliError, TransportError
from .jobs import Job
from .link_client import LinkClient, LinkResponse
from .paths import get_local_path

PART_SUFFIX = ".part"


class Outcome(Enum):
    SKIPPED = "skipped"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class FailedJob:
    job: Job
    error: str


class DownloadSummary:
    """
    Outcome counters shared by all workers.

    Every update happens under one lock, so ``success + failed + skipped`` never
    exceeds ``total`` and equals it once all jobs have run.
    """

    def __init__(self, total: int):
        self.total = total
        self.success = 0
        self.failed = 0
        self.skipped = 0
        self.failures: List[FailedJob] = []
        self.cancelled = False
        self._lock = threading.Lock()

    def record(self, job: Job, outcome: Outcome, error: Optional[str] = None) -> None:
        with self._lock:
            if outcome is Outcome.SUCCESS:
                self.success += 1
            elif outcome is Outcome.SKIPPED:
                self.skipped += 1
            else:
                self.failed += 1
                self.failures.append(FailedJob(job, error or "unknown error"))

    @property
    def completed(self) -> int:
        with self._lock:
            return self.success + self.failed + self.skipped

    def __repr__(self) -> str:
        return (
            f"DownloadSummary(total={self.total}, success={self.success}, "
            f"failed={self.failed}, skipped={self.skipped})"
        )


class ProgressListener:
    """Receives job events for display. All hooks are optional no-ops."""

    def job_skipped(self, job: Job, path: Path) -> None:
        pass

    def job_resolving(self, job: Job, path: Path) -> None:
        pass

    def job_streaming(self, job: Job, path: Path, size: int) -> None:
        pass

    def chunk_received(self, job: Job, num_bytes: int) -> None:
        pass

    def job_succeeded(self, job: Job, path: Path, num_bytes: int) -> None:
        pass

    def job_failed(self, job: Job, path: Path, error: str) -> None:
        pass


def _notify(listener: ProgressListener, hook: str, *args) -> None:
    # Display problems must never change a job's outcome
    try:
        getattr(listener, hook)(*args)
    except Exception as e:
        logger.debug(f"Progress listener {hook} failed: {type(e).__name__}: {e}")


def _describe(error: Exception) -> str:
    if isinstance(error, TerminalCliError):
        return str(error)
    return f"{type(error).__name__}: {error}"


def execute_jobs(
    jobs: Sequence[Job],
    concurrency: int,
    local_path: Callable[[Job], Path],
    fetch_link: Callable[[Job], LinkResponse],
    stream: Callable[[str, Path, Callable[[int], None]], int],
    exists: Callable[[Path], bool] = Path.exists,
    listener: Optional[ProgressListener] = None,
    cancel_event: Optional[threading.Event] = None,
) -> DownloadSummary:
    """
    Run ``jobs`` on a pool of ``concurrency`` workers.

    Args:
        jobs: Jobs in queue order
        concurrency: Number of workers (1 runs strictly sequentially)
        local_path: Destination path of a job
        fetch_link: Resolves a job to a signed URL; raises on failure
        stream: ``stream(url, dest, on_chunk)`` writes the body, returns bytes written
        exists: Existence check used for the skip decision
        listener: Display hooks
        cancel_event: When set, workers stop taking new jobs

    Returns:
        Final summary. If the run is interrupted (Ctrl+C) ``summary.cancelled``
        is set and jobs never started are not counted.
    """
    if concurrency < 1:
        raise ValueError("concurrency must be a positive integer")

    listener = listener or ProgressListener()
    cancel_event = cancel_event or threading.Event()
    summary = DownloadSummary(total=len(jobs))

    pending: "queue.Queue[Job]" = queue.Queue(maxsize=len(jobs))
    for job in jobs:
        pending.put_nowait(job)

    def run_job(job: Job) -> None:
        dest = local_path(job)

        if exists(dest):
            summary.record(job, Outcome.SKIPPED)
            logger.debug(f"{job.label} {dest} skipped (exists)")
            _notify(listener, "job_skipped", job, dest)
            return

        _notify(listener, "job_resolving", job, dest)
        try:
            link = fetch_link(job)
            _notify(listener, "job_streaming", job, dest, link.file_size)
            written = stream(
                link.download_url, dest, lambda n: _notify(listener, "chunk_received", job, n)
            )
        except Exception as e:
            if not isinstance(e, (TerminalCliError, requests.RequestException, OSError)):
                logger.opt(exception=True).debug(f"{job.label} {dest} unexpected error")
            error = _describe(e)
            summary.record(job, Outcome.FAILED, error)
            logger.debug(f"{job.label} {dest} failed: {error}")
            _notify(listener, "job_failed", job, dest, error)
            return

        summary.record(job, Outcome.SUCCESS)
        logger.debug(f"{job.label} {dest} saved ({written} bytes)")
        _notify(listener, "job_succeeded", job, dest, written)

    def worker() -> None:
        while not cancel_event.is_set():
            try:
                job = pending.get_nowait()
            except queue.Empty:
                return
            try:
                run_job(job)
            finally:
                pending.task_done()

    if not jobs:
        return summary

    workers = min(concurrency, len(jobs))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="download") as executor:
        futures = [executor.submit(worker) for _ in range(workers)]
        try:
            for future in as_completed(futures):
                future.result()
        except KeyboardInterrupt:
            logger.warning("Interrupted, waiting for in-flight downloads to stop...")
            cancel_event.set()
            summary.cancelled = True

    return summary


class DownloadExecutor:
    """
    Downloads jobs into ``output_dir`` using the link service and plain HTTP GET.

    Usage:
        >>> executor = DownloadExecutor(Path("downloads"), "trade", LinkClient(api_key))
        >>> summary = executor.run(jobs)
    """

    def __init__(
        self,
        output_dir: Path,
        data_type: str,
        link_client: LinkClient,
        concurrency: int = 10,
        listener: Optional[ProgressListener] = None,
        session=None,
        chunk_size: int = STREAM_CHUNK_SIZE,
        stream_timeout=STREAM_TIMEOUT_SECONDS,
    ):
        self.output_dir = Path(output_dir)
        self.data_type = data_type
        self.link_client = link_client
        self.concurrency = concurrency
        self.listener = listener
        # module-level requests.get unless a session is injected
        self.session = session or requests
        self.chunk_size = chunk_size
        self.stream_timeout = stream_timeout
        self.cancel_event = threading.Event()

    def local_path(self, job: Job) -> Path:
        return get_local_path(self.output_dir, job.relative_path(self.data_type))

    def fetch_link(self, job: Job) -> LinkResponse:
        return self.link_client.fetch_download_link(job.relative_path(self.data_type))

    def stream_to_file(self, url: str, dest: Path, on_chunk: Callable[[int], None]) -> int:
        """
        Stream ``url`` into ``dest`` atomically.

        The body is written to ``<dest>.part`` and renamed over ``dest`` only
        after the last chunk, so ``dest`` never holds a partial file. The
        ``.part`` file is removed on any failure.

        Returns:
            Number of bytes written

        Raises:
            TransportError: connection problem or non-200 status
            DownloadCancelled: the run was interrupted mid-stream
        """
        part = dest.with_name(dest.name + PART_SUFFIX)
        dest.parent.mkdir(parents=True, exist_ok=True)
        # Leftover from an interrupted earlier run
        part.unlink(missing_ok=True)

        written = 0
        try:
            with self.session.get(url, stream=True, timeout=self.stream_timeout) as response:
                if response.status_code != 200:
                    raise TransportError(f"status {response.status_code}", response.status_code)

                with open(part, "wb") as fh:
                    for chunk in response.iter_content(chunk_size=self.chunk_size):
                        if self.cancel_event.is_set():
                            raise DownloadCancelled()
                        if not chunk:
                            continue
                        fh.write(chunk)
                        written += len(chunk)
                        on_chunk(len(chunk))

            part.replace(dest)
        except requests.RequestException as e:
            raise TransportError(f"{type(e).__name__}: {e}") from e
        finally:
            part.unlink(missing_ok=True)

        return written

    def run(self, jobs: Sequence[Job]) -> DownloadSummary:
        logger.info(f"Downloading {len(jobs)} files with {self.concurrency} workers into {self.output_dir}")
        summary = execute_jobs(
            jobs,
            concurrency=self.concurrency,
            local_path=self.local_path,
            fetch_link=self.fetch_link,
            stream=self.stream_to_file,
            listener=self.listener,
            cancel_event=self.cancel_event,
        )
        logger.info(f"Finished: {summary}")
        return summary
