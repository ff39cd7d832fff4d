"""Response shapes expected from opencode and their validators.

Both models are strict: a field present with the wrong type is rejected,
never cast. Field names on the wire are camelCase.
"""
from __future__ import annotations

import json
from typing import Any
from typing import List

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import TypeAdapter
from pydantic import ValidationError

from lintfix.errors import SchemaValidationError


class LintIssue(BaseModel):
    """A single lint finding normalized by the parser model."""

    model_config = ConfigDict(strict=True, frozen=True, populate_by_name=True)

    lint_message: str = Field(alias='lintMessage')
    suggestions_text: str = Field(alias='suggestionsText')
    loc: int
    column: int
    file_path: str = Field(alias='filePath')

    @property
    def location(self) -> str:
        return f'{self.file_path}:{self.loc}:{self.column}'


class FixResult(BaseModel):
    """Outcome reported by the fixer model for one issue."""

    model_config = ConfigDict(strict=True, frozen=True)

    status: str
    summary: str

    @property
    def resolved(self) -> bool:
        return self.status.lower() == 'resolved'


LINT_ISSUES_ADAPTER: TypeAdapter[List[LintIssue]] = TypeAdapter(List[LintIssue])
FIX_RESULT_ADAPTER: TypeAdapter[FixResult] = TypeAdapter(FixResult)


def _describe(exc: ValidationError) -> str:
    """Render pydantic errors as ``field.path: message`` lines."""
    parts = []
    for error in exc.errors():
        location = '.'.join(str(part) for part in error['loc']) or '<root>'
        parts.append(f'{location}: {error["msg"]}')
    return '; '.join(parts)


def validate_lint_issues(data: Any) -> list[LintIssue]:
    """Validate decoded JSON as an array of lint issues."""
    try:
        return LINT_ISSUES_ADAPTER.validate_python(data)
    except ValidationError as exc:
        raise SchemaValidationError(_describe(exc)) from exc


def validate_fix_result(data: Any) -> FixResult:
    """Validate decoded JSON as a single fix result."""
    try:
        return FIX_RESULT_ADAPTER.validate_python(data)
    except ValidationError as exc:
        raise SchemaValidationError(_describe(exc)) from exc


def lint_issues_json_schema() -> str:
    """JSON Schema for the issue array, serialized for prompt embedding."""
    return json.dumps(LINT_ISSUES_ADAPTER.json_schema(by_alias=True), separators=(',', ':'))


def fix_result_json_schema() -> str:
    """JSON Schema for a fix result, serialized for prompt embedding."""
    return json.dumps(FIX_RESULT_ADAPTER.json_schema(by_alias=True), separators=(',', ':'))
