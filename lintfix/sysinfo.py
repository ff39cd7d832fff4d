"""System information for ``acc info``."""
from __future__ import annotations

import os
import platform
import socket
import sys
from pathlib import Path
from typing import Any

from lintfix.output import Colors
from lintfix.output import format_bytes


def _memory() -> dict[str, int | None]:
    try:
        page_size = os.sysconf('SC_PAGE_SIZE')
        total = page_size * os.sysconf('SC_PHYS_PAGES')
        free = page_size * os.sysconf('SC_AVPHYS_PAGES')
    except (AttributeError, ValueError, OSError):
        return {'total': None, 'free': None, 'used': None}
    return {'total': total, 'free': free, 'used': total - free}


def _uptime() -> float | None:
    uptime_file = Path('/proc/uptime')
    try:
        return float(uptime_file.read_text().split()[0])
    except (OSError, ValueError, IndexError):
        return None


def collect_system_info() -> dict[str, Any]:
    """Gather platform, CPU, memory and interpreter details."""
    return {
        'platform': sys.platform,
        'arch': platform.machine(),
        'hostname': socket.gethostname(),
        'cpus': os.cpu_count() or 0,
        'memory': _memory(),
        'uptime': _uptime(),
        'pythonVersion': platform.python_version(),
    }


def format_system_info(info: dict[str, Any]) -> list[str]:
    """Render ``info`` as labelled console lines."""
    memory = info['memory']
    if memory['total'] is not None:
        memory_text = f'{format_bytes(memory["used"])} / {format_bytes(memory["total"])}'
    else:
        memory_text = 'unknown'

    uptime = info['uptime']
    if uptime is not None:
        uptime_text = f'{int(uptime // 3600)}h {int((uptime % 3600) // 60)}m'
    else:
        uptime_text = 'unknown'

    def label(name: str) -> str:
        return f'{Colors.YELLOW}{name}:{Colors.RESET}'

    return [
        f'{Colors.BOLD}{Colors.CYAN}System Information{Colors.RESET}',
        f'{Colors.GRAY}{"─" * 40}{Colors.RESET}',
        f'{label("Platform")} {info["platform"]}',
        f'{label("Architecture")} {info["arch"]}',
        f'{label("Hostname")} {info["hostname"]}',
        f'{label("CPUs")} {info["cpus"]}',
        f'{label("Memory")} {memory_text}',
        f'{label("Uptime")} {uptime_text}',
        f'{label("Python Version")} {info["pythonVersion"]}',
    ]
