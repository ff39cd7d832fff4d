"""Lint Fix Runner - normalize lint output with opencode and fix each finding.

Pipeline:
    1. Resolve the lint command (argument, else ACC_LINT_COMMAND)
    2. Run it and collect stdout/stderr
    3. Ask the parser model to convert the raw output into a JSON issue list
    4. Ask the fixer model to resolve each issue, a bounded number at a time
    5. Return the issues alongside the index-aligned fix results

All concurrency is cooperative (asyncio). The only state shared between
workers is the work pool's claim cursor.
"""
from __future__ import annotations

import asyncio
import codecs
import contextlib
import json
import os
from collections import Counter
from collections.abc import Awaitable
from collections.abc import Callable
from collections.abc import Mapping
from collections.abc import Sequence
from dataclasses import dataclass
from dataclasses import field
from dataclasses import replace
from typing import TypeVar
from typing import Union

from lintfix.errors import ConfigurationError
from lintfix.errors import InvalidCommandError
from lintfix.errors import LintCommandError
from lintfix.errors import LintParsingError
from lintfix.errors import ModelInvocationError
from lintfix.errors import SchemaValidationError
from lintfix.output import logger
from lintfix.output import truncate
from lintfix.schemas import FixResult
from lintfix.schemas import LintIssue
from lintfix.schemas import fix_result_json_schema
from lintfix.schemas import lint_issues_json_schema
from lintfix.schemas import validate_fix_result
from lintfix.schemas import validate_lint_issues

T = TypeVar('T')
R = TypeVar('R')

# A shell-executed string or an explicit argument vector
CommandSpec = Union[str, Sequence[str]]


# =============================================================================
# Constants
# =============================================================================

DEFAULT_BIN = 'opencode'
DEFAULT_ARGS: tuple[str, ...] = ('run',)
DEFAULT_CONCURRENCY = 1
LINT_COMMAND_ENV = 'ACC_LINT_COMMAND'
SHELL_PREFIX: tuple[str, ...] = ('bash', '-lc')
READ_CHUNK_SIZE = 65536

# Known opencode model identifiers, for --list-models only
KNOWN_MODELS: tuple[str, ...] = (
    'opencode/claude-sonnet-4',
    'opencode/claude-opus-4-1',
    'lmstudio/openai/gpt-oss-20b',
    'lmstudio/qwen/qwen3-coder-30b',
    'lmstudio/qwen/qwen3-30b-a3b-2507',
    'opencode/claude-3-5-haiku',
    'opencode/grok-code',
    'opencode/gpt-5',
    'opencode/code-supernova',
    'opencode/kimi-k2',
    'opencode/qwen3-coder',
    'anthropic/claude-3-7-sonnet-20250219',
    'anthropic/claude-opus-4-1-20250805',
    'anthropic/claude-3-haiku-20240307',
    'anthropic/claude-3-5-haiku-20241022',
    'anthropic/claude-opus-4-20250514',
    'anthropic/claude-3-5-sonnet-20241022',
    'anthropic/claude-3-5-sonnet-20240620',
    'anthropic/claude-3-sonnet-20240229',
    'anthropic/claude-sonnet-4-20250514',
    'anthropic/claude-3-opus-20240229',
)

FIX_GUARDRAILS: tuple[str, ...] = (
    '- Keep changes minimal and strongly typed.',
    '- NEVER use any.',
    '- NEVER take shortcuts.',
    '- Do not downgrade types or disable lint rules.',
)


# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True)
class ProcessResult:
    """Captured output of a finished process."""
    stdout: str
    stderr: str
    exit_code: int

    @property
    def combined_output(self) -> str:
        """stdout then stderr, newline separated, empty parts omitted."""
        return '\n'.join(part for part in (self.stdout, self.stderr) if part)


@dataclass(frozen=True)
class OpencodeOptions:
    """How to invoke opencode for one pipeline phase."""
    bin: str | None = None
    args: tuple[str, ...] | None = None
    model: str | None = None
    extra_args: tuple[str, ...] = ()
    cwd: str | None = None
    env: Mapping[str, str] | None = None


@dataclass(frozen=True)
class RunLintFixesOptions:
    """Options for a full lint-fix run."""
    lint_command: CommandSpec | None = None
    cwd: str | None = None
    env: Mapping[str, str] | None = None
    parser: OpencodeOptions | None = None
    fixer: OpencodeOptions | None = None
    concurrency: int = DEFAULT_CONCURRENCY


@dataclass
class RunResult:
    """Issues found and the fix result for each, index aligned."""
    issues: list[LintIssue] = field(default_factory=list)
    results: list[FixResult] = field(default_factory=list)

    @property
    def unresolved_count(self) -> int:
        """Issues without a result whose status is ``resolved``."""
        count = 0
        for index in range(len(self.issues)):
            result = self.results[index] if index < len(self.results) else None
            if result is None or not result.resolved:
                count += 1
        return count

    def status_counts(self) -> dict[str, int]:
        return dict(Counter(result.status for result in self.results))

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for JSON output."""
        return {
            'issues': [issue.model_dump(by_alias=True) for issue in self.issues],
            'results': [result.model_dump() for result in self.results],
        }


# =============================================================================
# Command Resolution
# =============================================================================


def describe_command(command: CommandSpec) -> str:
    """Human readable form of a command spec."""
    if isinstance(command, str):
        return command
    return ' '.join(command)


def resolve_lint_command(command: CommandSpec | None = None) -> CommandSpec:
    """Pick the explicit command, else the ACC_LINT_COMMAND default."""
    resolved = command if command is not None else os.environ.get(LINT_COMMAND_ENV)
    if not resolved or (isinstance(resolved, str) and not resolved.strip()):
        raise ConfigurationError(
            'No lint command provided. Pass a lint command, set '
            f'{LINT_COMMAND_ENV}, or configure lint_command in .lintfixrc.yaml.',
        )
    return resolved


def to_command_args(command: CommandSpec) -> list[str]:
    """Turn a command spec into an argv; strings run through the shell."""
    if not isinstance(command, str):
        return list(command)

    trimmed = command.strip()
    if not trimmed:
        raise InvalidCommandError('Command string cannot be empty')
    return [*SHELL_PREFIX, trimmed]


# =============================================================================
# Process Execution
# =============================================================================


async def _read_stream(stream: asyncio.StreamReader | None) -> str:
    """Drain ``stream`` to EOF, decoding UTF-8 chunks as they arrive."""
    if stream is None:
        return ''

    decoder = codecs.getincrementaldecoder('utf-8')(errors='replace')
    parts: list[str] = []
    while True:
        chunk = await stream.read(READ_CHUNK_SIZE)
        if not chunk:
            break
        parts.append(decoder.decode(chunk))
    parts.append(decoder.decode(b'', final=True))
    return ''.join(parts)


async def run_process(
    args: Sequence[str],
    cwd: str | None = None,
    env: Mapping[str, str] | None = None,
) -> ProcessResult:
    """Run ``args`` with inherited stdin and captured stdout/stderr.

    A non-zero exit code is reported, not raised; callers decide what it
    means. Both pipes are read to EOF before this returns.
    """
    process_env = {**os.environ, **env} if env is not None else None
    process = await asyncio.create_subprocess_exec(
        *args,
        stdin=None,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        cwd=cwd,
        env=process_env,
    )

    try:
        stdout, stderr, exit_code = await asyncio.gather(
            _read_stream(process.stdout),
            _read_stream(process.stderr),
            process.wait(),
        )
    except asyncio.CancelledError:
        if process.returncode is None:
            with contextlib.suppress(ProcessLookupError):
                process.kill()
            await process.wait()
        raise

    return ProcessResult(stdout=stdout.strip(), stderr=stderr.strip(), exit_code=exit_code)


# =============================================================================
# JSON Extraction
# =============================================================================


def extract_json_candidate(output: str) -> str:
    """Return the JSON payload inside ``output``.

    Tries the whole text first, then the slice from the earliest ``[``/``{``
    to the latest ``]``/``}``. Brackets inside surrounding prose can make the
    slice wrong; no bracket matching is attempted. When neither attempt
    parses, the error from parsing the whole text is raised.
    """
    trimmed = output.strip()

    try:
        json.loads(trimmed)
        return trimmed
    except json.JSONDecodeError as original:
        starts = [idx for idx in (trimmed.find('['), trimmed.find('{')) if idx >= 0]
        ends = [idx for idx in (trimmed.rfind(']'), trimmed.rfind('}')) if idx >= 0]
        if not starts or not ends:
            raise

        candidate = trimmed[min(starts):max(ends) + 1]
        try:
            json.loads(candidate)
        except json.JSONDecodeError:
            raise original from None
        return candidate


def parse_json_output(output: str) -> object:
    """Extract and decode the JSON payload inside ``output``."""
    return json.loads(extract_json_candidate(output))


# =============================================================================
# Model Invocation
# =============================================================================


def build_opencode_args(prompt: str, options: OpencodeOptions | None = None) -> list[str]:
    """Build ``[bin, *args, --model M, *extra_args, prompt]``."""
    options = options or OpencodeOptions()
    args = [options.bin or DEFAULT_BIN]
    args.extend(options.args if options.args is not None else DEFAULT_ARGS)
    if options.model:
        args.extend(['--model', options.model])
    args.extend(options.extra_args)
    args.append(prompt)
    return args


async def invoke_opencode(prompt: str, options: OpencodeOptions | None = None) -> str:
    """Send ``prompt`` to opencode and return its raw stdout."""
    options = options or OpencodeOptions()
    args = build_opencode_args(prompt, options)
    logger.detail(f'Invoking {" ".join(args[:-1])}')

    try:
        result = await run_process(args, cwd=options.cwd, env=options.env)
    except OSError as e:
        logger.error(f'Failed to launch {args[0]}: {e}')
        raise ModelInvocationError(f'Failed to launch {args[0]}: {e}') from e

    if result.exit_code != 0:
        output = result.stderr or result.stdout or 'unknown error'
        logger.error(f'Model invocation failed with code {result.exit_code} ({output}).')
        raise ModelInvocationError(
            f'Model invocation failed with code {result.exit_code}: {output}',
            exit_code=result.exit_code,
            output=output,
        )
    logger.detail('Model invocation completed successfully.')

    return result.stdout


# =============================================================================
# Prompts
# =============================================================================


def build_lint_task_prompt(lint_output: str) -> str:
    """Prompt asking the parser model to normalize raw lint output."""
    return (
        'convert the following linting output to JSON matching this schema: '
        f'{lint_issues_json_schema()}\n\nLint output:\n{lint_output}'
    )


def build_fix_prompt(issue: LintIssue) -> str:
    """Prompt asking the fixer model to resolve exactly one finding."""
    lines = [
        'You are an experienced engineer improving a codebase.',
        'Resolve exactly one lint finding using the provided schema.',
        'Only modify the specified file and keep changes minimal.',
        'Repository guardrails:',
        *FIX_GUARDRAILS,
        'Lint finding details:',
        f'- File: {issue.file_path}',
        f'- Location: line {issue.loc}, column {issue.column}',
        f'- Message: {issue.lint_message}',
    ]
    if issue.suggestions_text:
        lines.append(f'Suggestions:\n{issue.suggestions_text}')
    lines.append(f'Respond with JSON matching this schema: {fix_result_json_schema()}')
    return '\n'.join(lines)


# =============================================================================
# Work Pool
# =============================================================================


async def run_with_concurrency(
    items: Sequence[T],
    worker: Callable[[T, int], Awaitable[R]],
    concurrency: int,
) -> list[R]:
    """Run ``worker`` over ``items`` with at most ``concurrency`` in flight.

    ``results[i]`` is always the worker's output for ``items[i]``. Workers
    claim the lowest unclaimed index from a shared cursor; the claim never
    spans an ``await``, so no lock is needed under asyncio. The first failure
    cancels the remaining workers and propagates.
    """
    if concurrency <= 0:
        raise ConfigurationError('Concurrency must be greater than 0')

    results: list[R | None] = [None] * len(items)
    cursor = 0

    async def run_worker() -> None:
        nonlocal cursor
        while True:
            index = cursor
            cursor += 1
            if index >= len(items):
                return
            results[index] = await worker(items[index], index)

    tasks = [
        asyncio.ensure_future(run_worker())
        for _ in range(min(concurrency, len(items)))
    ]
    try:
        await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise

    return results  # type: ignore[return-value]


# =============================================================================
# Pipeline
# =============================================================================


async def generate_lint_task_items(
    lint_command: CommandSpec | None = None,
    cwd: str | None = None,
    env: Mapping[str, str] | None = None,
    opencode: OpencodeOptions | None = None,
) -> list[LintIssue]:
    """Run the lint command and have the parser model structure its output."""
    resolved = resolve_lint_command(lint_command)
    logger.info(f'Running lint command: {describe_command(resolved)}')
    args = to_command_args(resolved)

    try:
        result = await run_process(args, cwd=cwd, env=env)
    except OSError as e:
        raise LintCommandError(f'Failed to launch lint command: {e}') from e

    if result.exit_code != 0:
        output = result.stderr or result.stdout
        logger.warning(
            f'Lint command exited with code {result.exit_code} ({output or "no output"}).',
        )
        raise LintCommandError(
            f'Lint command failed with code {result.exit_code}: {output}',
            exit_code=result.exit_code,
            output=output,
        )
    logger.detail('Lint command completed successfully.')

    lint_output = result.combined_output
    if not lint_output:
        logger.info('No lint output produced; skipping lint fix parsing.')
        return []
    logger.detail(f'Collected lint output ({len(lint_output)} chars).')

    model = opencode.model if opencode and opencode.model else 'default'
    logger.info(f'Invoking parser model {model} for lint issue extraction.')
    normalized = await invoke_opencode(build_lint_task_prompt(lint_output), opencode)

    try:
        issues = validate_lint_issues(parse_json_output(normalized))
    except (json.JSONDecodeError, SchemaValidationError) as e:
        raise LintParsingError(f'Failed to parse lint task items: {e}') from e
    logger.success(f'Identified {len(issues)} lint issue(s) to fix.')

    return issues


async def run_fix_for_issue(issue: LintIssue, options: OpencodeOptions | None = None) -> FixResult:
    """Ask the fixer model to resolve ``issue`` and validate its report."""
    logger.info(
        f'Applying fix for {issue.file_path}:{issue.loc} - {truncate(issue.lint_message)}',
    )
    output = await invoke_opencode(build_fix_prompt(issue), options)

    try:
        result = validate_fix_result(parse_json_output(output))
    except (json.JSONDecodeError, SchemaValidationError) as e:
        logger.error(f'Failed to parse lint fix result: {e}')
        raise SchemaValidationError(f'Failed to parse lint fix result: {e}') from e

    logger.success(
        f'Fix result for {issue.file_path}:{issue.loc}: '
        f'{result.status} ({truncate(result.summary, 120)})',
    )
    return result


def _with_run_defaults(
    phase: OpencodeOptions | None,
    cwd: str | None,
    env: Mapping[str, str] | None,
) -> OpencodeOptions:
    """Fill a phase's missing cwd/env from the run-level options."""
    phase = phase or OpencodeOptions()
    return replace(
        phase,
        cwd=phase.cwd if phase.cwd is not None else cwd,
        env=phase.env if phase.env is not None else env,
    )


async def run_lint_fixes(options: RunLintFixesOptions) -> RunResult:
    """Run the full lint → parse → fix pipeline."""
    lint_command = resolve_lint_command(options.lint_command)
    logger.info('Starting lint fix run.')
    logger.detail(f'Using lint command: {describe_command(lint_command)}')

    parser = _with_run_defaults(options.parser, options.cwd, options.env)
    fixer = _with_run_defaults(options.fixer, options.cwd, options.env)

    issues = await generate_lint_task_items(
        lint_command,
        cwd=options.cwd,
        env=options.env,
        opencode=parser,
    )
    if not issues:
        logger.success('No lint issues detected. Nothing to fix.')
        return RunResult(issues=issues, results=[])

    logger.detail(f'Applying fixes with concurrency {options.concurrency}.')
    results = await run_with_concurrency(
        issues,
        lambda issue, _index: run_fix_for_issue(issue, fixer),
        options.concurrency,
    )

    run_result = RunResult(issues=issues, results=results)
    counts = run_result.status_counts()
    breakdown = ', '.join(f'{status}: {count}' for status, count in counts.items()) or 'no results'
    logger.success(f'Completed lint fixes. Status breakdown - {breakdown}.')

    return run_result
