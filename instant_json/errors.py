"""
Error taxonomy for Instant JSON.

Every failure that crosses a public boundary is an InstantJsonError subclass
tagged with an ErrorKind. Lark's own exceptions are translated here and
nowhere else (see from_lark_error).
"""
import re
from enum import Enum
from typing import List, Optional

from lark.exceptions import (
    ConfigurationError,
    GrammarError,
    LarkError,
    UnexpectedEOF,
    UnexpectedInput,
)
from pydantic import BaseModel


class ErrorKind(str, Enum):
    """Categorizes failures for composable error handling."""
    GRAMMAR_COMPILE_ERROR = "GrammarCompileError"
    MULTIPLE_ERRORS = "MultipleErrors"
    SCHEMA_NOT_FOUND = "SchemaNotFound"
    PARSE_ERROR = "ParseError"
    ROOT_TYPE_ERROR = "RootTypeError"
    NUMBER_FORMAT_ERROR = "NumberFormatError"
    ENCODING_ERROR = "EncodingError"
    CONTRACT_ERROR = "ContractError"
    CONFIG_ERROR = "ConfigError"


class Diagnostic(BaseModel):
    """Plain record of one failure, safe to hand across an embedding boundary."""
    kind: ErrorKind
    message: str
    schema_name: Optional[str] = None
    line: Optional[int] = None
    column: Optional[int] = None
    context: Optional[str] = None
    suggestion: Optional[str] = None

    def __str__(self):
        result = str(self.kind.value) + ": " + self.message
        if self.schema_name:
            result += f" [schema {self.schema_name!r}]"
        if self.line:
            result += f" at line {self.line}"
            if self.column:
                result += f", column {self.column}"
        return result


class InstantJsonError(Exception):
    """Base exception with line numbers, offending context and hints."""
    kind = None

    def __init__(self, message, schema_name=None, line_number=None, column=None, context=None, suggestion=None):
        self.message = message
        self.schema_name = schema_name
        self.line_number = line_number
        self.column = column
        self.context = context  # The offending line
        self.suggestion = suggestion  # How to fix it
        super().__init__(self._format_error())

    def _format_error(self):
        """Format the error message with context and suggestion."""
        lines = [f"{self.kind.value}"]
        if self.schema_name:
            lines.append(f" in schema {self.schema_name!r}")
        if self.line_number:
            lines.append(f" at line {self.line_number}")
            if self.column:
                lines.append(f", column {self.column}")
        lines.append(":\n")

        lines.append(f"   {self.message}\n")

        if self.context:
            lines.append(f"   > {self.context}\n")

        if self.suggestion:
            lines.append(f"   hint: {self.suggestion}\n")

        return "".join(lines)

    def diagnostic(self) -> Diagnostic:
        return Diagnostic(
            kind=self.kind,
            message=self.message,
            schema_name=self.schema_name,
            line=self.line_number,
            column=self.column,
            context=self.context,
            suggestion=self.suggestion,
        )


class GrammarCompileError(InstantJsonError):
    """Schema text failed to compile."""
    kind = ErrorKind.GRAMMAR_COMPILE_ERROR


class MultipleErrors(GrammarCompileError):
    """A batch of compile diagnostics reported together."""
    kind = ErrorKind.MULTIPLE_ERRORS

    def __init__(self, errors: List[InstantJsonError]):
        self.errors = list(errors)
        summary = "; ".join(e.message for e in self.errors)
        super().__init__(f"{len(self.errors)} errors: {summary}")

    def _format_error(self):
        parts = [f"{self.kind.value}: {len(self.errors)} errors\n"]
        for error in self.errors:
            parts.append(str(error))
        return "".join(parts)

    def diagnostics(self) -> List[Diagnostic]:
        return [e.diagnostic() for e in self.errors]


class SchemaNotFound(InstantJsonError):
    kind = ErrorKind.SCHEMA_NOT_FOUND


class ParseError(InstantJsonError):
    """Input text did not match the compiled grammar at the entry rule."""
    kind = ErrorKind.PARSE_ERROR

    def __init__(self, message, position=None, **kwargs):
        self.position = position
        super().__init__(message, **kwargs)


class RootTypeError(InstantJsonError):
    kind = ErrorKind.ROOT_TYPE_ERROR


class NumberFormatError(InstantJsonError):
    kind = ErrorKind.NUMBER_FORMAT_ERROR


class EncodingError(InstantJsonError):
    kind = ErrorKind.ENCODING_ERROR


class ContractError(InstantJsonError):
    """Grammar and reducer disagree about the semantic tag set (strict mode)."""
    kind = ErrorKind.CONTRACT_ERROR


class ConfigError(InstantJsonError):
    kind = ErrorKind.CONFIG_ERROR


def get_line_context(source_code, line_number):
    """Extract the line of text from source by line number (1-based)."""
    if not source_code or line_number is None:
        return None
    source_lines = source_code.split('\n')
    if 0 < line_number <= len(source_lines):
        return source_lines[line_number - 1].strip()
    return None


def line_and_column(text, pos):
    """Convert a 0-based offset into 1-based (line, column)."""
    if pos is None:
        return None, None
    line = text.count('\n', 0, pos) + 1
    column = pos - (text.rfind('\n', 0, pos) + 1) + 1
    return line, column


def from_lark_error(error: LarkError, source: str, schema_name=None, compiling=False) -> InstantJsonError:
    """Translate a Lark exception into the public error taxonomy.

    When compiling, anything Lark raises is a GrammarCompileError. Otherwise
    positional errors become ParseError with the engine's line and column.
    """
    if compiling:
        line_number, column = getattr(error, 'line', None), getattr(error, 'column', None)
        if not isinstance(line_number, int) or line_number < 0:
            # GrammarError only reports the position inside its message
            match = re.search(r'line (\d+) col(?:umn)? (\d+)', str(error))
            line_number, column = (int(match.group(1)), int(match.group(2))) if match else (None, None)
        message = str(error).strip().split('\n')[0] or error.__class__.__name__
        if isinstance(error, ConfigurationError):
            suggestion = "Check the parser and lexer settings"
        elif isinstance(error, GrammarError):
            suggestion = "Check rule names and definitions in the grammar"
        else:
            suggestion = "Check grammar syntax around this line"
        return GrammarCompileError(
            message,
            schema_name=schema_name,
            line_number=line_number,
            column=column,
            context=get_line_context(source, line_number),
            suggestion=suggestion,
        )

    if isinstance(error, UnexpectedInput):
        if isinstance(error, UnexpectedEOF) or getattr(error, 'line', -1) in (None, -1):
            line_number, column = line_and_column(source, len(source))
            position = len(source)
            message = "Unexpected end of input"
        else:
            line_number, column = error.line, error.column
            position = error.pos_in_stream
            message = str(error).strip().split('\n')[0]
        expected = getattr(error, 'expected', None) or getattr(error, 'allowed', None)
        suggestion = None
        if expected:
            suggestion = "Expected one of: " + ", ".join(sorted(str(e) for e in expected))
        return ParseError(
            message,
            position=position,
            schema_name=schema_name,
            line_number=line_number,
            column=column,
            context=get_line_context(source, line_number),
            suggestion=suggestion,
        )

    return ParseError(str(error).strip() or error.__class__.__name__, schema_name=schema_name)
