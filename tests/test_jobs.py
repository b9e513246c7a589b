"""
Tests for job expansion over dates, exchanges and tokens.
"""
import sys
from datetime import date
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from terminal_cli.data_handler.availability import StaticAvailabilitySource, resolve_table
from terminal_cli.data_handler.jobs import date_range, expand_jobs

RULES = StaticAvailabilitySource({
    date(2025, 1, 1): {"binance": ["btc_usdt"]},
    date(2025, 10, 2): {"binance": ["btc_usdt", "eth_usdc"], "bybit": ["btc_usdt"]},
}).load_rules()


def test_date_range_is_inclusive():
    days = list(date_range(date(2025, 2, 27), date(2025, 3, 1)))
    assert days == [date(2025, 2, 27), date(2025, 2, 28), date(2025, 3, 1)]
    assert list(date_range(date(2025, 3, 2), date(2025, 3, 1))) == []


def test_pair_only_available_after_rule_change():
    jobs = expand_jobs(RULES, date(2025, 9, 1), date(2025, 10, 3), ["binance"], ["eth_usdc"])
    assert [job.date for job in jobs] == [date(2025, 10, 2), date(2025, 10, 3)]
    assert all(job.exchange == "binance" and job.pair == "eth_usdc" for job in jobs)


def test_jobs_are_numbered_with_total():
    jobs = expand_jobs(RULES, date(2025, 10, 2), date(2025, 10, 3), ["binance"], ["btc_usdt", "eth_usdc"])
    assert [(job.index, job.total) for job in jobs] == [(1, 4), (2, 4), (3, 4), (4, 4)]
    assert jobs[0].label == "[1/4]"


def test_order_is_date_then_exchange_then_token():
    jobs = expand_jobs(
        RULES, date(2025, 10, 2), date(2025, 10, 3), ["bybit", "binance"], ["eth_usdc", "btc_usdt"]
    )
    assert [(j.date.day, j.exchange, j.pair) for j in jobs] == [
        (2, "bybit", "btc_usdt"),
        (2, "binance", "eth_usdc"),
        (2, "binance", "btc_usdt"),
        (3, "bybit", "btc_usdt"),
        (3, "binance", "eth_usdc"),
        (3, "binance", "btc_usdt"),
    ]


def test_expansion_is_deterministic():
    args = (RULES, date(2024, 12, 1), date(2025, 12, 31), ["binance", "bybit"], ["btc_usdt", "eth_usdc"])
    assert expand_jobs(*args) == expand_jobs(*args)


def test_never_emits_unavailable_pairs():
    jobs = expand_jobs(
        RULES, date(2024, 12, 1), date(2025, 12, 31), ["binance", "bybit", "kraken"], ["btc_usdt", "eth_usdc", "sol_usdt"]
    )
    assert jobs
    for job in jobs:
        table = resolve_table(RULES, job.date)
        assert table is not None
        assert job.pair in table[job.exchange]


def test_values_are_trimmed():
    jobs = expand_jobs(RULES, date(2025, 1, 1), date(2025, 1, 1), [" binance "], ["btc_usdt  "])
    assert [(j.exchange, j.pair) for j in jobs] == [("binance", "btc_usdt")]


def test_duplicate_inputs_duplicate_jobs():
    jobs = expand_jobs(RULES, date(2025, 1, 1), date(2025, 1, 1), ["binance"], ["btc_usdt", "btc_usdt"])
    assert len(jobs) == 2


def test_empty_results():
    assert expand_jobs(RULES, date(2024, 1, 1), date(2024, 12, 31), ["binance"], ["btc_usdt"]) == []
    assert expand_jobs(RULES, date(2025, 10, 3), date(2025, 10, 2), ["binance"], ["btc_usdt"]) == []
    assert expand_jobs(RULES, date(2025, 1, 1), date(2025, 1, 5), ["binance"], ["doge_usdt"]) == []
