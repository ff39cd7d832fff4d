"""Console output helpers: ANSI colors and the shared ``[lint-fix]`` logger."""
from __future__ import annotations

import json
import sys
from typing import Any


class Colors:
    """ANSI color codes for terminal output."""
    RESET = '\033[0m'
    BOLD = '\033[1m'
    DIM = '\033[2m'
    GRAY = '\033[90m'
    RED = '\033[31m'
    GREEN = '\033[32m'
    YELLOW = '\033[33m'
    BLUE = '\033[34m'
    CYAN = '\033[36m'

    @staticmethod
    def disable() -> None:
        """Disable colors for non-TTY output."""
        Colors.RESET = ''
        Colors.BOLD = ''
        Colors.DIM = ''
        Colors.GRAY = ''
        Colors.RED = ''
        Colors.GREEN = ''
        Colors.YELLOW = ''
        Colors.BLUE = ''
        Colors.CYAN = ''


class Logger:
    """Prefixed logger with verbosity levels and JSON output support."""

    prefix = '[lint-fix]'

    def __init__(
        self,
        verbose: bool = False,
        quiet: bool = False,
        json_output: bool = False,
    ) -> None:
        self.verbose = verbose
        self.quiet = quiet
        self.json_output = json_output
        self._json_buffer: list[dict[str, Any]] = []

    def configure(
        self,
        verbose: bool = False,
        quiet: bool = False,
        json_output: bool = False,
    ) -> None:
        """Reset verbosity flags in place so every importer sees the change."""
        self.verbose = verbose
        self.quiet = quiet
        self.json_output = json_output
        self._json_buffer = []

    def _print(self, message: str, force: bool = False, stream: Any = None) -> None:
        """Print message unless quiet mode is enabled."""
        if not self.quiet or force:
            print(f'{Colors.GRAY}{self.prefix}{Colors.RESET} {message}', file=stream or sys.stdout)

    def _record(self, level: str, message: str) -> bool:
        if self.json_output:
            self._json_buffer.append({'level': level, 'message': message})
            return True
        return False

    def info(self, message: str) -> None:
        """Print info message."""
        if not self._record('info', message):
            self._print(f'{Colors.CYAN}{message}{Colors.RESET}')

    def detail(self, message: str) -> None:
        """Print detail message (only in verbose mode)."""
        if self.verbose and not self._record('detail', message):
            self._print(f'{Colors.DIM}{message}{Colors.RESET}')

    def success(self, message: str) -> None:
        """Print success message."""
        if not self._record('success', message):
            self._print(f'{Colors.GREEN}{message}{Colors.RESET}')

    def warning(self, message: str) -> None:
        """Print warning message."""
        if not self._record('warning', message):
            self._print(f'{Colors.YELLOW}{message}{Colors.RESET}', stream=sys.stderr)

    def error(self, message: str) -> None:
        """Print error message."""
        if not self._record('error', message):
            self._print(f'{Colors.RED}{message}{Colors.RESET}', force=True, stream=sys.stderr)

    def header(self, message: str) -> None:
        """Print header message."""
        if not self._record('header', message):
            self._print(f'{Colors.BOLD}{Colors.CYAN}{message}{Colors.RESET}')

    def result(self, data: dict[str, Any]) -> None:
        """Record a structured run result (JSON mode only)."""
        if self.json_output:
            self._json_buffer.append({'level': 'result', 'result': data})

    def flush_json(self) -> None:
        """Flush JSON buffer to stdout."""
        if self.json_output and self._json_buffer:
            print(json.dumps(self._json_buffer, indent=2))
            self._json_buffer = []


# Global logger instance
logger = Logger()


def truncate(value: str, max_length: int = 80) -> str:
    """Shorten ``value`` to ``max_length`` characters, ending with an ellipsis."""
    if len(value) > max_length:
        return f'{value[:max_length - 1]}…'
    return value


def format_bytes(num_bytes: int, decimals: int = 2) -> str:
    """Format a byte count using binary units (``1536 -> '1.5 KB'``)."""
    if num_bytes <= 0:
        return '0 Bytes'

    sizes = ['Bytes', 'KB', 'MB', 'GB', 'TB', 'PB']
    index = 0
    value = float(num_bytes)
    while value >= 1024 and index < len(sizes) - 1:
        value /= 1024
        index += 1

    rounded = round(value, max(decimals, 0))
    text = f'{rounded:.{max(decimals, 0)}f}'.rstrip('0').rstrip('.') if decimals > 0 else f'{rounded:.0f}'
    return f'{text} {sizes[index]}'
