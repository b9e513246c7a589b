"""
Utils package for terminal-cli.
"""
from .logger import TerminalLogger, setup_logging, timer

__all__ = ['TerminalLogger', 'setup_logging', 'timer']
