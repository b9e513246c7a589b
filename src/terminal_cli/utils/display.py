"""
Console presentation: status lines, section headers, boxed tables, progress
bars and the confirmation prompt. Nothing here influences job outcomes.
"""
import os
import re
import sys
import threading
from typing import Dict, List, Optional, Sequence

from tqdm import tqdm

from ..data_handler.downloader import DownloadSummary, ProgressListener
from ..data_handler.jobs import Job
from ..data_handler.reporter import AvailabilityBlock

# ANSI color codes
COLORS = {
    'red': '\033[31m',
    'green': '\033[32m',
    'yellow': '\033[33m',
    'blue': '\033[34m',
    'cyan': '\033[36m',
    'gray': '\033[90m',
    'light_blue': '\033[94m',
    'bg_blue': '\033[44m',
    'bg_green': '\033[42m\033[30m',
}
RESET = '\033[0m'
BOLD = '\033[1m'

ANSI_RE = re.compile(r'\033\[[0-9;]*m')

PREFIXES = {
    'info': ('INFO', 'cyan'),
    'success': ('SUCCESS', 'green'),
    'warning': ('WARNING', 'yellow'),
    'error': ('ERROR', 'red'),
}

TABLE_WIDTH = 80
MAX_LISTED_FAILURES = 5


def use_color(stream=None) -> bool:
    stream = stream or sys.stdout
    if os.environ.get('NO_COLOR'):
        return False
    return hasattr(stream, 'isatty') and stream.isatty()


def colorize(text: str, color: str, bold: bool = False) -> str:
    if not use_color():
        return text
    return f"{BOLD if bold else ''}{COLORS[color]}{text}{RESET}"


def visible_len(text: str) -> int:
    return len(ANSI_RE.sub('', text))


def status_line(kind: str, message: str) -> str:
    label, color = PREFIXES[kind]
    return f"{colorize(f' {label} ', color, bold=True)} {message}"


def print_info(message: str) -> None:
    print(status_line('info', message))


def print_success(message: str) -> None:
    print(status_line('success', message))


def print_warning(message: str) -> None:
    print(status_line('warning', message))


def print_error(message: str) -> None:
    print(status_line('error', message), file=sys.stderr)


def print_section(title: str) -> None:
    print()
    print(colorize(f"# {title}", 'light_blue', bold=True))
    print()


def print_header(text: str, background: str = 'bg_blue') -> None:
    line = f" {text} ".ljust(TABLE_WIDTH)
    print(colorize(line, background, bold=True))


def word_wrap(text: str, width: int = TABLE_WIDTH) -> str:
    """Greedy wrap on spaces; words longer than ``width`` stay on their own line."""
    words = text.split(' ')
    if not words:
        return text
    wrapped = words[0]
    space_left = width - len(wrapped)
    for word in words[1:]:
        if len(word) + 1 > space_left:
            wrapped += '\n' + word
            space_left = width - len(word)
        else:
            wrapped += ' ' + word
            space_left -= 1 + len(word)
    return wrapped


def render_table(rows: Sequence[Sequence[str]], has_header: bool = True, boxed: bool = True) -> str:
    """
    Render rows as a box-drawn table. Cells may span several lines.

    Args:
        rows: Table rows, the first one is the header when ``has_header``
        has_header: Draw a separator under the first row
        boxed: Draw the outer border

    Returns:
        The table as a single string (no trailing newline)
    """
    if not rows:
        return ''
    columns = max(len(row) for row in rows)
    cells = [[str(row[i]).split('\n') if i < len(row) else [''] for i in range(columns)] for row in rows]
    widths = [
        max(visible_len(line) for row in cells for line in row[i])
        for i in range(columns)
    ]

    def border(left: str, mid: str, right: str) -> str:
        return left + mid.join('─' * (w + 2) for w in widths) + right

    out = []
    if boxed:
        out.append(border('┌', '┬', '┐'))
    for index, row in enumerate(cells):
        height = max(len(cell) for cell in row)
        for line_no in range(height):
            parts = []
            for col, cell in enumerate(row):
                text = cell[line_no] if line_no < len(cell) else ''
                parts.append(' ' + text + ' ' * (widths[col] - visible_len(text)) + ' ')
            out.append(('│' if boxed else '') + '│'.join(parts) + ('│' if boxed else ''))
        if has_header and index == 0 and len(cells) > 1:
            out.append(border('├', '┼', '┤') if boxed else border('', '┼', ''))
    if boxed:
        out.append(border('└', '┴', '┘'))
    return '\n'.join(out)


def print_availability_blocks(blocks: Sequence[AvailabilityBlock]) -> None:
    for block in blocks:
        print_header(
            f"Period: {block.start_date.isoformat()} to {block.end_date.isoformat()}"
        )
        rows: List[List[str]] = [['Exchange', 'Available Tokens']]
        exchanges = sorted(block.data)
        for i, exchange in enumerate(exchanges):
            rows.append([exchange, word_wrap(', '.join(block.data[exchange]), TABLE_WIDTH)])
            if i < len(exchanges) - 1:
                rows.append(['', ''])
        print(render_table(rows))
        print()


def print_job_summary(data_type: str, jobs: Sequence[Job], parallelism: int) -> None:
    print_section("Job Summary")
    print_info(f"Type: {data_type}")
    print_info(f"Count: {len(jobs)} files")
    print_info(f"Concurrency: {parallelism}")
    print_info(f"Range: {jobs[0].date.isoformat()} to {jobs[-1].date.isoformat()}")


def print_download_summary(summary: DownloadSummary, max_failures: int = MAX_LISTED_FAILURES) -> None:
    print()
    print_header("Finished", background='bg_green')

    def row(label: str, value: int, color: str) -> List[str]:
        return [colorize(label, color), colorize(str(value), color)]

    print(render_table([
        row('Total', summary.total, 'light_blue'),
        row('Success', summary.success, 'green'),
        row('Skipped', summary.skipped, 'yellow'),
        row('Failed', summary.failed, 'red'),
    ], has_header=False))

    if summary.failures:
        print()
        print("Failed files:")
        for failure in summary.failures[:max_failures]:
            print(f"  - {failure.job.exchange}/{failure.job.pair} {failure.job.date.isoformat()}: {failure.error}")
        if len(summary.failures) > max_failures:
            print(f"  ... and {len(summary.failures) - max_failures} more")


def confirm(prompt: str, default: bool = True) -> bool:
    """Yes/no question on stdin; end of input counts as "no"."""
    hint = '[Y/n]' if default else '[y/N]'
    try:
        answer = input(f"{prompt} {hint}: ").strip().lower()
    except EOFError:
        return False
    if not answer:
        return default
    return answer in ('y', 'yes')


class TqdmProgress(ProgressListener):
    """
    Progress display for a download run.

    One overall bar counts finished jobs; every job being streamed gets its own
    byte bar that disappears when the job ends. Finished jobs are reported as
    status lines above the bars.
    """

    def __init__(self, total_jobs: int, disable: Optional[bool] = None):
        self._lock = threading.Lock()
        self._bars: Dict[int, tqdm] = {}
        self._disable = disable
        self.overall = tqdm(
            total=total_jobs,
            desc="Progress",
            unit="file",
            bar_format="{desc} |{bar}| {n_fmt}/{total_fmt} [{elapsed}<{remaining}]",
            colour="green",
            disable=disable,
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def job_streaming(self, job: Job, path, size: int) -> None:
        bar = tqdm(
            total=size or None,
            desc=f"{job.label} {path.name}",
            unit="B",
            unit_scale=True,
            unit_divisor=1024,
            leave=False,
            disable=self._disable,
        )
        with self._lock:
            self._bars[job.index] = bar

    def chunk_received(self, job: Job, num_bytes: int) -> None:
        with self._lock:
            bar = self._bars.get(job.index)
        if bar is not None:
            bar.update(num_bytes)

    def job_skipped(self, job: Job, path) -> None:
        self._finish(job, f"{colorize('SKIP', 'yellow', bold=True)} {job.label} {path} - Skipped (Exists)")

    def job_succeeded(self, job: Job, path, num_bytes: int) -> None:
        size = colorize(f"({num_bytes / 1024 / 1024:.2f} MB)", 'gray')
        self._finish(job, f"{colorize('OK', 'green', bold=True)} {job.label} {path} - Saved {size}")

    def job_failed(self, job: Job, path, error: str) -> None:
        self._finish(job, f"{colorize('ERROR', 'red', bold=True)} {job.label} {path} - Error: {error}")

    def _finish(self, job: Job, line: str) -> None:
        with self._lock:
            bar = self._bars.pop(job.index, None)
            if bar is not None:
                bar.close()
            tqdm.write(line)
            self.overall.update(1)

    def close(self) -> None:
        with self._lock:
            for bar in self._bars.values():
                bar.close()
            self._bars.clear()
            self.overall.close()
