"""acc - Agent Command Central command line.

Runs a lint command, has opencode turn its output into structured issues,
then has opencode resolve each issue.

Usage:
    acc lintfix [LINT_COMMAND] [options]
    acc info [--json]
    acc hello [--name NAME]

lintfix options:
    -p, --parallel N          Number of lint issues to fix concurrently (default: 1)
    --opencode-bin BIN        Opencode binary to invoke (default: opencode)
    --parser-model MODEL      Model for lint normalization
    --fix-model MODEL         Model for lint fixing
    --parser-extra ARGS...    Extra arguments for the normalization call
    --fix-extra ARGS...       Extra arguments for the fixer call
    --config PATH             Path to configuration file (default: .lintfixrc.yaml)
    --list-models             Show known opencode models and exit
    --verbose                 Show detailed output
    --quiet                   Suppress all output except errors
    --json                    Output results in JSON format

Extra arguments that start with a dash must use the ``=`` form, e.g.
``--fix-extra=--agent --fix-extra build``.

Exit codes:
    0   All issues resolved, or no issues found
    1   Unresolved issues, invalid options, or a failed run
    130 Interrupted

Examples:
    acc lintfix "pnpm lint"
    acc lintfix "ruff check ." -p 4 --fix-model opencode/claude-sonnet-4
    ACC_LINT_COMMAND="npm run lint" acc lintfix
"""
from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

from lintfix import __version__
from lintfix.config import LintFixConfig
from lintfix.config import load_config_file
from lintfix.config import load_env_config
from lintfix.errors import LintFixError
from lintfix.output import Colors
from lintfix.output import logger
from lintfix.runner import DEFAULT_BIN
from lintfix.runner import KNOWN_MODELS
from lintfix.runner import OpencodeOptions
from lintfix.runner import RunLintFixesOptions
from lintfix.runner import RunResult
from lintfix.runner import run_lint_fixes
from lintfix.sysinfo import collect_system_info
from lintfix.sysinfo import format_system_info


def parse_parallel(value: str) -> int | None:
    """Parse a positive integer, returning None when invalid."""
    try:
        parallel = int(str(value).strip())
    except ValueError:
        return None
    return parallel if parallel > 0 else None


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog='acc',
        description='Agent Command Central - Various CLI utilities',
    )
    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}',
    )
    subparsers = parser.add_subparsers(dest='command')

    lintfix = subparsers.add_parser(
        'lintfix',
        help='Normalize lint output with opencode and apply AI-powered fixes',
        description='Normalize lint output with opencode and apply AI-powered fixes',
    )
    lintfix.add_argument(
        'lint_command',
        nargs='?',
        help="Lint command to execute, e.g. 'pnpm lint'",
    )
    lintfix.add_argument(
        '--parallel', '-p',
        help='Number of lint issues to fix concurrently (default: 1)',
    )
    lintfix.add_argument(
        '--opencode-bin',
        help=f'Opencode binary to invoke (default: {DEFAULT_BIN})',
    )
    lintfix.add_argument(
        '--parser-model',
        help='Model for lint normalization',
    )
    lintfix.add_argument(
        '--fix-model',
        help='Model for lint fixing',
    )
    lintfix.add_argument(
        '--parser-extra',
        nargs='+',
        action='extend',
        metavar='ARG',
        help='Additional arguments forwarded to the normalization opencode call',
    )
    lintfix.add_argument(
        '--fix-extra',
        nargs='+',
        action='extend',
        metavar='ARG',
        help='Additional arguments forwarded to the fixer opencode call',
    )
    lintfix.add_argument(
        '--config', '-c',
        type=Path,
        help='Path to configuration file',
    )
    lintfix.add_argument(
        '--list-models',
        action='store_true',
        help='Show known opencode models and exit',
    )
    lintfix.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Show detailed output',
    )
    lintfix.add_argument(
        '--quiet', '-q',
        action='store_true',
        help='Suppress all output except errors',
    )
    lintfix.add_argument(
        '--json',
        action='store_true',
        help='Output results in JSON format',
    )

    info = subparsers.add_parser('info', help='Display system information')
    info.add_argument('--json', '-j', action='store_true', help='Output as JSON')

    hello = subparsers.add_parser('hello', help='Say hello')
    hello.add_argument('--name', '-n', default='World', help='Name to greet')

    return parser


def print_available_models() -> None:
    """Print the known opencode model identifiers."""
    print('Known opencode models:\n')
    for model in KNOWN_MODELS:
        print(f'  {model}')
    print('\nPass one with --parser-model or --fix-model.')


def report_results(result: RunResult) -> int:
    """Print one line per issue and return the exit code."""
    issues = result.issues
    if not issues:
        print(f'{Colors.GREEN}No lint issues found. Nothing to fix.{Colors.RESET}')
        return 0

    plural = '' if len(issues) == 1 else 's'
    print(f'{Colors.GRAY}Processed {len(issues)} lint issue{plural}.{Colors.RESET}')

    for index, issue in enumerate(issues):
        fix = result.results[index] if index < len(result.results) else None
        status = fix.status if fix else 'unknown'
        color = Colors.GREEN if fix and fix.resolved else Colors.YELLOW
        print(
            f'{color}[{status}]{Colors.RESET} {Colors.BOLD}{issue.location}{Colors.RESET}'
            f' – {issue.lint_message}',
        )
        if fix and fix.summary:
            print(f'{Colors.GRAY}  • {fix.summary}{Colors.RESET}')

    unresolved = result.unresolved_count
    if unresolved == 0:
        print(f'{Colors.BOLD}{Colors.GREEN}All lint findings resolved.{Colors.RESET}')
        return 0

    remains = ' remains' if unresolved == 1 else 's remain'
    print(
        f'{Colors.BOLD}{Colors.YELLOW}{unresolved} lint issue{remains}. '
        f'Check logs for details.{Colors.RESET}',
    )
    return 1


def cmd_lintfix(args: argparse.Namespace) -> int:
    """Run the lintfix subcommand."""
    if args.list_models:
        print_available_models()
        return 0

    try:
        file_config = load_config_file(args.config)
        config = LintFixConfig.from_dict({**file_config, **load_env_config()})
    except LintFixError as e:
        logger.error(str(e))
        return 1

    logger.configure(
        verbose=args.verbose or config.verbose,
        quiet=args.quiet or config.quiet,
        json_output=args.json,
    )
    if args.json:
        Colors.disable()

    raw_parallel = args.parallel if args.parallel is not None else str(config.parallel)
    parallel = parse_parallel(raw_parallel)
    if parallel is None:
        logger.error(f"Invalid parallel value '{raw_parallel}'. Use a positive number.")
        return 1

    opencode_bin = args.opencode_bin or config.opencode_bin
    parser_options = config.parser.to_options(opencode_bin)
    fixer_options = config.fixer.to_options(opencode_bin)
    if args.parser_model or args.parser_extra:
        parser_options = OpencodeOptions(
            bin=opencode_bin,
            model=args.parser_model or parser_options.model,
            extra_args=tuple(args.parser_extra or parser_options.extra_args),
        )
    if args.fix_model or args.fix_extra:
        fixer_options = OpencodeOptions(
            bin=opencode_bin,
            model=args.fix_model or fixer_options.model,
            extra_args=tuple(args.fix_extra or fixer_options.extra_args),
        )

    options = RunLintFixesOptions(
        lint_command=args.lint_command if args.lint_command is not None else config.lint_command,
        parser=parser_options,
        fixer=fixer_options,
        concurrency=parallel,
    )

    logger.header('Running lint fixes...')
    try:
        result = asyncio.run(run_lint_fixes(options))
    except LintFixError as e:
        logger.error(f'Failed to run lint fixes: {e}')
        return 1

    if args.json:
        logger.result(result.to_dict())
        return 1 if result.unresolved_count else 0
    return report_results(result)


def cmd_info(args: argparse.Namespace) -> int:
    """Run the info subcommand."""
    info = collect_system_info()
    if args.json:
        print(json.dumps(info, indent=2))
    else:
        for line in format_system_info(info):
            print(line)
    return 0


def cmd_hello(args: argparse.Namespace) -> int:
    """Run the hello subcommand."""
    print(f'{Colors.BOLD}{Colors.GREEN}Hello, {args.name}!{Colors.RESET}')
    print(f'{Colors.GRAY}Welcome to Agent Command Central{Colors.RESET}')
    return 0


COMMANDS = {
    'lintfix': cmd_lintfix,
    'info': cmd_info,
    'hello': cmd_hello,
}


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    # Disable colors if not TTY
    if not sys.stdout.isatty():
        Colors.disable()

    try:
        return COMMANDS[args.command](args)
    except KeyboardInterrupt:
        logger.info('\nInterrupted')
        return 130
    finally:
        logger.flush_json()


if __name__ == '__main__':
    sys.exit(main())
