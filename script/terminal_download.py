"""
Download a week of BTC/ETH trade files from Binance and Bybit.
Edit the parameters below, then run:  python script/terminal_download.py
"""
import sys
from pathlib import Path

# Add src to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))

from terminal_cli.cli import run


def main():
    """Download BTC/ETH trades for 2025-11-01 to 2025-11-07"""

    # Download parameters
    exchanges = "binance,bybit"
    tokens = "btc_usdt,eth_usdt"
    start_date = "2025-11-01"
    end_date = "2025-11-07"

    exit_code = run([
        "--mode", "day",
        "--exchanges", exchanges,
        "--tokens", tokens,
        "--start-date", start_date,
        "--end-date", end_date,
        "--output-dir", str(project_root / "data" / "downloads"),
        "--yes",
    ])
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
