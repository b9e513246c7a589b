"""Canonical storage paths for daily data files."""
from datetime import date
from pathlib import Path
from typing import Tuple

FILE_EXTENSION = "parquet"


def type_parts(data_type: str) -> Tuple[str, str]:
    """Return ``(folder, file_part)`` for a data type.

    ``trade`` files live under ``trade/`` but are named ``*_trades_*``; every
    other type uses its own name for both.
    """
    if data_type == "trade":
        return "trade", "trades"
    return data_type, data_type


def get_relative_path(exchange: str, pair: str, data_type: str, day: date) -> str:
    """
    Build the storage key for one (exchange, pair, type, date) file.

    Example:
        >>> get_relative_path("binance", "btc_usdt", "trade", date(2025, 11, 2))
        'binance/trade/2025/11/02/btc_usdt/binance_trades_2025-11-02_btc_usdt.parquet'
    """
    folder, file_part = type_parts(data_type)
    date_str = day.strftime("%Y-%m-%d")
    return (
        f"{exchange}/{folder}/{day.year:04d}/{day.month:02d}/{day.day:02d}/{pair}/"
        f"{exchange}_{file_part}_{date_str}_{pair}.{FILE_EXTENSION}"
    )


def get_local_path(base_dir: Path, relative_path: str) -> Path:
    """Local destination of a storage key under ``base_dir``."""
    return Path(base_dir).joinpath(*relative_path.split("/"))
