"""
Tests for console presentation helpers.
stdout is captured by pytest (not a TTY), so no ANSI colors are emitted.
"""
import sys
from datetime import date
from pathlib import Path

import pytest

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from terminal_cli.data_handler.downloader import DownloadSummary, Outcome
from terminal_cli.data_handler.jobs import Job
from terminal_cli.data_handler.reporter import AvailabilityBlock
from terminal_cli.utils import display


def job(i, total=10, pair="btc_usdt"):
    return Job("binance", pair, date(2025, 11, i), i, total)


# ============================================================
# Text helpers
# ============================================================

def test_word_wrap_breaks_on_spaces():
    text = ", ".join(f"tok{i}_usdt" for i in range(20))
    wrapped = display.word_wrap(text, 30)
    lines = wrapped.split("\n")
    assert len(lines) > 1
    assert all(len(line) <= 30 for line in lines)
    assert " ".join(lines) == text


def test_word_wrap_keeps_long_words_whole():
    assert display.word_wrap("a " + "x" * 20 + " b", 5) == "a\n" + "x" * 20 + "\nb"


def test_visible_len_ignores_ansi():
    assert display.visible_len("\033[1m\033[32mOK\033[0m") == 2


def test_colorize_respects_no_color(monkeypatch):
    monkeypatch.setenv("NO_COLOR", "1")
    assert display.colorize("plain", "red") == "plain"


# ============================================================
# Tables
# ============================================================

def test_render_table_boxed_with_header():
    table = display.render_table([["Exchange", "Tokens"], ["okx", "btc_usdt"]])
    lines = table.split("\n")
    assert lines[0].startswith("┌") and lines[0].endswith("┐")
    assert lines[2].startswith("├")
    assert lines[-1].startswith("└")
    assert len({len(line) for line in lines}) == 1
    assert "│ okx      │ btc_usdt │" in table


def test_render_table_multiline_cells():
    table = display.render_table([["Exchange", "Tokens"], ["okx", "a\nbb"]], boxed=False)
    lines = table.split("\n")
    assert len(lines) == 4
    assert lines[3].startswith(" " * 10)
    assert "bb" in lines[3]


def test_render_table_empty():
    assert display.render_table([]) == ""


def test_print_availability_blocks(capsys):
    display.print_availability_blocks([
        AvailabilityBlock(date(2025, 1, 1), date(2025, 5, 31), {"okx": ["btc_usdt"], "binance": ["eth_usdt"]}),
    ])
    out = capsys.readouterr().out
    assert "Period: 2025-01-01 to 2025-05-31" in out
    assert out.index("binance") < out.index("okx")


# ============================================================
# Summaries
# ============================================================

def test_download_summary_counts(capsys):
    summary = DownloadSummary(total=3)
    summary.record(job(1), Outcome.SUCCESS)
    summary.record(job(2), Outcome.SKIPPED)
    summary.record(job(3), Outcome.FAILED, "file not found on server")

    display.print_download_summary(summary)

    out = capsys.readouterr().out
    assert "Finished" in out
    assert "│ Failed  │ 1 │" in out
    assert "  - binance/btc_usdt 2025-11-03: file not found on server" in out
    assert "more" not in out


def test_download_summary_lists_first_five_failures(capsys):
    summary = DownloadSummary(total=8)
    for i in range(1, 9):
        summary.record(job(i, total=8), Outcome.FAILED, f"status {400 + i}")

    display.print_download_summary(summary)

    out = capsys.readouterr().out
    assert out.count("  - binance/btc_usdt") == 5
    assert "status 405" in out
    assert "status 406" not in out
    assert "  ... and 3 more" in out


def test_job_summary(capsys):
    display.print_job_summary("trade", [job(1, 2), job(2, 2)], 4)
    out = capsys.readouterr().out
    assert "Count: 2 files" in out
    assert "Concurrency: 4" in out
    assert "Range: 2025-11-01 to 2025-11-02" in out


# ============================================================
# Prompt
# ============================================================

@pytest.mark.parametrize("answer,expected", [
    ("", True), ("y", True), ("YES", True), ("n", False), ("whatever", False),
])
def test_confirm(monkeypatch, answer, expected):
    monkeypatch.setattr("builtins.input", lambda prompt: answer)
    assert display.confirm("Do you want to continue?") is expected


def test_confirm_end_of_input_is_no(monkeypatch):
    def closed(prompt):
        raise EOFError

    monkeypatch.setattr("builtins.input", closed)
    assert display.confirm("Do you want to continue?") is False


# ============================================================
# Progress listener
# ============================================================

def test_tqdm_progress_reports_each_job(capsys, tmp_path):
    path = tmp_path / "f.parquet"
    with display.TqdmProgress(3, disable=True) as progress:
        progress.job_skipped(job(1, 3), path)
        progress.job_streaming(job(2, 3), path, 2048)
        progress.chunk_received(job(2, 3), 2048)
        progress.job_succeeded(job(2, 3), path, 2 * 1024 * 1024)
        progress.job_failed(job(3, 3), path, "status 403")

    out = capsys.readouterr().out
    assert "SKIP [1/3]" in out and "Skipped (Exists)" in out
    assert "OK [2/3]" in out and "Saved (2.00 MB)" in out
    assert "ERROR [3/3]" in out and "Error: status 403" in out
