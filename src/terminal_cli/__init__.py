"""
terminal-cli: batch downloader for daily exchange trade files.
"""
__all__ = [
    "cli",
    "config",
    "data_handler",
    "exceptions",
    "utils",
]

__version__ = "0.1.0"
