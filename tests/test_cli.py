"""Tests for the acc command line."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from unittest import mock

import pytest

from lintfix import __version__
from lintfix.cli import create_argument_parser
from lintfix.cli import main
from lintfix.cli import parse_parallel
from lintfix.errors import LintCommandError
from lintfix.runner import KNOWN_MODELS
from lintfix.runner import ProcessResult
from lintfix.runner import RunLintFixesOptions
from lintfix.runner import RunResult
from lintfix.schemas import FixResult
from lintfix.schemas import LintIssue


def make_issue(file_path: str, loc: int) -> LintIssue:
    return LintIssue(
        lintMessage='unused var',
        suggestionsText='',
        loc=loc,
        column=3,
        filePath=file_path,
    )


def patch_run(result: RunResult | None = None, side_effect: Exception | None = None) -> Any:
    return mock.patch(
        'lintfix.cli.run_lint_fixes',
        new=mock.AsyncMock(return_value=result, side_effect=side_effect),
    )


class TestParseParallel:
    """Tests for parse_parallel."""

    @pytest.mark.parametrize('value,expected', [
        ('1', 1),
        ('4', 4),
        (' 2 ', 2),
        ('0', None),
        ('-3', None),
        ('abc', None),
        ('1.5', None),
        ('', None),
    ])
    def test_values(self, value: str, expected: int | None) -> None:
        assert parse_parallel(value) == expected


class TestArgumentParser:
    """Tests for argument parsing."""

    def test_lintfix_defaults(self) -> None:
        args = create_argument_parser().parse_args(['lintfix'])

        assert args.lint_command is None
        assert args.parallel is None
        assert args.parser_extra is None

    def test_extra_args(self) -> None:
        args = create_argument_parser().parse_args([
            'lintfix', 'pnpm lint',
            '--parser-extra', 'a', 'b',
            '--fix-extra=--agent', '--fix-extra', 'build',
        ])

        assert args.lint_command == 'pnpm lint'
        assert args.parser_extra == ['a', 'b']
        assert args.fix_extra == ['--agent', 'build']


class TestLintfixCommand:
    """Tests for the lintfix subcommand."""

    @pytest.mark.parametrize('value', ['0', '-1', 'many'])
    def test_invalid_parallel(self, value: str, capsys: pytest.CaptureFixture[str]) -> None:
        with patch_run(RunResult()) as run:
            exit_code = main(['lintfix', 'pnpm lint', '-p', value])

        assert exit_code == 1
        run.assert_not_called()
        assert f"Invalid parallel value '{value}'" in capsys.readouterr().err

    def test_no_issues(self, capsys: pytest.CaptureFixture[str]) -> None:
        with patch_run(RunResult()):
            assert main(['lintfix', 'pnpm lint']) == 0
        assert 'No lint issues found' in capsys.readouterr().out

    def test_all_resolved(self, capsys: pytest.CaptureFixture[str]) -> None:
        result = RunResult(
            issues=[make_issue('a.ts', 10)],
            results=[FixResult(status='Resolved', summary='removed var')],
        )
        with patch_run(result):
            assert main(['lintfix', 'pnpm lint']) == 0

        out = capsys.readouterr().out
        assert '[Resolved] a.ts:10:3 – unused var' in out
        assert '• removed var' in out
        assert 'All lint findings resolved.' in out

    def test_unresolved_issue(self, capsys: pytest.CaptureFixture[str]) -> None:
        result = RunResult(
            issues=[make_issue('a.ts', 10), make_issue('b.ts', 20)],
            results=[
                FixResult(status='resolved', summary='done'),
                FixResult(status='open', summary='needs a human'),
            ],
        )
        with patch_run(result):
            assert main(['lintfix', 'pnpm lint']) == 1

        out = capsys.readouterr().out
        assert 'Processed 2 lint issues.' in out
        assert '[open] b.ts:20:3' in out
        assert '1 lint issue remains.' in out

    def test_options_forwarded(self) -> None:
        with patch_run(RunResult()) as run:
            main([
                'lintfix', 'pnpm lint', '-p', '3',
                '--opencode-bin', 'oc',
                '--parser-model', 'opencode/claude-3-5-haiku',
                '--fix-model', 'opencode/gpt-5',
                '--fix-extra=--agent', '--fix-extra', 'build',
            ])

        options: RunLintFixesOptions = run.await_args.args[0]
        assert options.lint_command == 'pnpm lint'
        assert options.concurrency == 3
        assert options.parser.bin == 'oc'
        assert options.parser.model == 'opencode/claude-3-5-haiku'
        assert options.parser.extra_args == ()
        assert options.fixer.model == 'opencode/gpt-5'
        assert options.fixer.extra_args == ('--agent', 'build')

    def test_config_file_defaults(self, tmp_path: Path) -> None:
        (tmp_path / '.lintfixrc.yaml').write_text(
            'lint_command: make lint\nparallel: 2\nfixer:\n  model: opencode/kimi-k2\n',
        )
        with patch_run(RunResult()) as run:
            assert main(['lintfix']) == 0

        options: RunLintFixesOptions = run.await_args.args[0]
        assert options.lint_command == 'make lint'
        assert options.concurrency == 2
        assert options.fixer.model == 'opencode/kimi-k2'

    def test_invalid_parallel_in_config(self, tmp_path: Path) -> None:
        (tmp_path / '.lintfixrc.yaml').write_text('parallel: 0\n')
        with patch_run(RunResult()) as run:
            assert main(['lintfix', 'pnpm lint']) == 1
        run.assert_not_called()

    def test_failure_reported(self, capsys: pytest.CaptureFixture[str]) -> None:
        error = LintCommandError('Lint command failed with code 2: parse error', exit_code=2)
        with patch_run(side_effect=error):
            assert main(['lintfix', 'pnpm lint']) == 1

        assert 'Failed to run lint fixes: Lint command failed with code 2: parse error' in (
            capsys.readouterr().err
        )

    def test_missing_lint_command(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(['lintfix']) == 1
        assert 'No lint command provided' in capsys.readouterr().err

    def test_empty_lint_command_is_not_replaced_by_env(
        self,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        monkeypatch.setenv('ACC_LINT_COMMAND', 'echo from-env')
        with mock.patch('lintfix.runner.run_process') as run_process:
            assert main(['lintfix', '']) == 1

        run_process.assert_not_called()
        assert 'No lint command provided' in capsys.readouterr().err

    def test_json_output(self, capsys: pytest.CaptureFixture[str]) -> None:
        result = RunResult(
            issues=[make_issue('a.ts', 10)],
            results=[FixResult(status='open', summary='later')],
        )
        with patch_run(result):
            assert main(['lintfix', 'pnpm lint', '--json']) == 1

        entries = json.loads(capsys.readouterr().out)
        payload = [entry for entry in entries if entry['level'] == 'result'][0]['result']
        assert payload['issues'][0]['filePath'] == 'a.ts'
        assert payload['results'] == [{'status': 'open', 'summary': 'later'}]

    def test_list_models(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(['lintfix', '--list-models']) == 0
        out = capsys.readouterr().out
        assert all(model in out for model in KNOWN_MODELS)


class TestLintfixEndToEnd:
    """Runs the real pipeline with the process layer faked."""

    def test_one_unresolved_issue_fails(self) -> None:
        parser_output = json.dumps([
            {'lintMessage': 'unused var', 'suggestionsText': '', 'loc': 10, 'column': 3, 'filePath': 'a.ts'},
            {'lintMessage': 'prefer const', 'suggestionsText': '', 'loc': 4, 'column': 1, 'filePath': 'b.ts'},
        ])

        async def fake_run(args, cwd=None, env=None) -> ProcessResult:
            if args[0] == 'bash':
                return ProcessResult(stdout='2 problems', stderr='', exit_code=0)
            prompt = args[-1]
            if prompt.startswith('convert'):
                return ProcessResult(stdout=parser_output, stderr='', exit_code=0)
            if '- File: a.ts' in prompt:
                return ProcessResult(stdout='{"status":"resolved","summary":"ok"}', stderr='', exit_code=0)
            return ProcessResult(stdout='{"status":"open","summary":"skipped"}', stderr='', exit_code=0)

        with mock.patch('lintfix.runner.run_process', new=fake_run):
            assert main(['lintfix', 'pnpm lint', '-p', '1']) == 1

    def test_lint_failure_exit_code(self, capsys: pytest.CaptureFixture[str]) -> None:
        result = ProcessResult(stdout='', stderr='parse error', exit_code=2)
        with mock.patch('lintfix.runner.run_process', new=mock.AsyncMock(return_value=result)):
            assert main(['lintfix', 'pnpm lint']) == 1

        err = capsys.readouterr().err
        assert 'code 2' in err
        assert 'parse error' in err


class TestOtherCommands:
    """Tests for info, hello and top-level options."""

    def test_version(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(['--version'])
        assert exc_info.value.code == 0
        assert f'acc {__version__}' in capsys.readouterr().out

    def test_no_command_prints_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main([]) == 1
        assert 'lintfix' in capsys.readouterr().out

    def test_info_json(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(['info', '--json']) == 0
        info = json.loads(capsys.readouterr().out)
        assert {'platform', 'arch', 'hostname', 'cpus', 'memory', 'uptime', 'pythonVersion'} <= set(info)

    def test_info_text(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(['info']) == 0
        out = capsys.readouterr().out
        assert 'System Information' in out
        assert 'Python Version:' in out

    def test_hello(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(['hello', '--name', 'Ada']) == 0
        assert 'Hello, Ada!' in capsys.readouterr().out
