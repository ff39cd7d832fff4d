"""Configuration loading for lint-fix runs.

Create a .lintfixrc.yaml file in your project root:

    lint_command: pnpm lint
    parallel: 2
    opencode_bin: opencode
    parser:
      model: opencode/claude-3-5-haiku
      extra_args: []
    fixer:
      model: opencode/claude-sonnet-4
      extra_args: ["--agent", "build"]

Precedence is CLI > environment > file > defaults.

Environment Variables:
    ACC_LINT_COMMAND    Default lint command
    ACC_LOG_LEVEL       'debug' for verbose output, 'error'/'silent' for quiet
"""
from __future__ import annotations

import json
import os
from dataclasses import dataclass
from dataclasses import field
from pathlib import Path
from typing import cast
from typing import TypedDict

import yaml

from lintfix.errors import ConfigurationError
from lintfix.output import logger
from lintfix.runner import DEFAULT_BIN
from lintfix.runner import DEFAULT_CONCURRENCY
from lintfix.runner import LINT_COMMAND_ENV
from lintfix.runner import OpencodeOptions

CONFIG_FILE_NAMES = [
    '.lintfixrc.yaml',
    '.lintfixrc.yml',
    '.lintfixrc.json',
]

LOG_LEVEL_ENV = 'ACC_LOG_LEVEL'


# =============================================================================
# TypedDict Configuration Schemas
# =============================================================================


class PhaseConfigDict(TypedDict, total=False):
    """Configuration for one opencode phase (parser or fixer)."""
    model: str
    extra_args: list[str]


class LintFixConfigDict(TypedDict, total=False):
    """Root configuration schema."""
    lint_command: str
    parallel: int
    opencode_bin: str
    parser: PhaseConfigDict
    fixer: PhaseConfigDict
    verbose: bool
    quiet: bool


# =============================================================================
# Runtime Configuration
# =============================================================================


@dataclass
class PhaseConfig:
    """Runtime configuration for one opencode phase."""
    model: str = ''
    extra_args: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: PhaseConfigDict) -> PhaseConfig:
        """Create from dictionary."""
        extra_args = data.get('extra_args', [])
        if not isinstance(extra_args, list):
            raise ConfigurationError('extra_args must be a list of strings')
        return cls(
            model=data.get('model', '') or '',
            extra_args=[str(arg) for arg in extra_args],
        )

    def to_options(self, bin_name: str) -> OpencodeOptions:
        return OpencodeOptions(
            bin=bin_name,
            model=self.model or None,
            extra_args=tuple(self.extra_args),
        )


@dataclass
class LintFixConfig:
    """Complete runtime configuration."""
    lint_command: str | None = None
    parallel: int = DEFAULT_CONCURRENCY
    opencode_bin: str = DEFAULT_BIN
    parser: PhaseConfig = field(default_factory=PhaseConfig)
    fixer: PhaseConfig = field(default_factory=PhaseConfig)
    verbose: bool = False
    quiet: bool = False

    @classmethod
    def from_dict(cls, data: LintFixConfigDict) -> LintFixConfig:
        """Create from dictionary with defaults."""
        return cls(
            lint_command=data.get('lint_command') or None,
            parallel=data.get('parallel', DEFAULT_CONCURRENCY),
            opencode_bin=data.get('opencode_bin', DEFAULT_BIN) or DEFAULT_BIN,
            parser=PhaseConfig.from_dict(data.get('parser', {}) or {}),
            fixer=PhaseConfig.from_dict(data.get('fixer', {}) or {}),
            verbose=bool(data.get('verbose', False)),
            quiet=bool(data.get('quiet', False)),
        )


def load_config_file(config_path: Path | None = None) -> LintFixConfigDict:
    """Load configuration from file."""
    if config_path:
        if not config_path.exists():
            raise ConfigurationError(f'Config file not found: {config_path}')
        paths = [config_path]
    else:
        paths = [Path(name) for name in CONFIG_FILE_NAMES]

    for path in paths:
        if path.exists():
            logger.detail(f'Loading config from {path}')
            with open(path, encoding='utf-8') as f:
                try:
                    if path.suffix in ('.yaml', '.yml'):
                        data = yaml.safe_load(f) or {}
                    else:
                        data = json.load(f)
                except (yaml.YAMLError, json.JSONDecodeError) as e:
                    raise ConfigurationError(f'Invalid config file {path}: {e}') from e
            if not isinstance(data, dict):
                raise ConfigurationError(f'Config file {path} must contain a mapping')
            return cast(LintFixConfigDict, data)

    return {}


def load_env_config() -> LintFixConfigDict:
    """Load configuration from environment variables."""
    config: LintFixConfigDict = {}

    if os.environ.get(LINT_COMMAND_ENV, '').strip():
        config['lint_command'] = os.environ[LINT_COMMAND_ENV]

    level = os.environ.get(LOG_LEVEL_ENV, '').strip().lower()
    if level in ('debug', 'trace'):
        config['verbose'] = True
    elif level in ('error', 'fatal', 'silent'):
        config['quiet'] = True

    return config
