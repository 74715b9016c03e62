"""
Error Reporting

Diagnostics are collected by an ErrorReporter and rendered rustc-style:

    error[JSC_IMPORT_ASSIGN]: Imported symbol "a" in chunk "chunk2.js" cannot be assigned
     --> chunk2_input.js:1:1
      |
    1 | a = 2;
      | ^
"""

import os
import sys
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .source_location import SourceLocation


def _use_color() -> bool:
    if os.environ.get("NO_COLOR"):
        return False
    explicit = os.environ.get("CHUNKMOD_COLOR", "").lower()
    if explicit in ("0", "false", "no", "never"):
        return False
    return sys.stderr.isatty() or explicit in ("1", "true", "yes", "always")


_BOLD = "\033[1m"
_RED = "\033[31m"
_BLUE = "\033[34m"
_CYAN = "\033[36m"
_RESET = "\033[0m"


def _style(text: str, *codes: str, color: bool = True) -> str:
    if not color or not codes:
        return text
    return f"{''.join(codes)}{text}{_RESET}"


# ---------------------------------------------------------------------------
# Diagnostic types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DiagnosticType:
    """
    A reportable error kind: a stable key plus a message template.

    Templates use positional placeholders ``{0}``, ``{1}``... filled from the
    arguments given to ``ErrorReporter.report``.
    """
    key: str
    template: str

    def format(self, *args: str) -> str:
        return self.template.format(*args)

    @classmethod
    def error(cls, key: str, template: str) -> "DiagnosticType":
        return cls(key=key, template=template)


@dataclass
class Error:
    """One reported diagnostic."""
    message: str
    location: Optional[SourceLocation]
    code: Optional[str] = None
    help: Optional[str] = None
    note: Optional[str] = None
    label: Optional[str] = None
    diagnostic_type: Optional[DiagnosticType] = None
    args: Tuple[str, ...] = field(default_factory=tuple)


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------

def _format_diagnostic(error: Error, source_files: Dict[str, str], color: bool = False) -> str:
    out: List[str] = []
    code_str = f"[{error.code}]" if error.code else ""
    out.append(
        _style(f"error{code_str}", _BOLD, _RED, color=color)
        + _style(f": {error.message}", _BOLD, color=color)
    )

    loc = error.location
    if loc is None:
        out.append(_style(" --> ", _BOLD, _BLUE, color=color) + "<unknown location>")
        _append_annotations(out, error, 1, color)
        return "\n".join(out)

    source = source_files.get(loc.file)
    if source is None:
        out.append(_style(" --> ", _BOLD, _BLUE, color=color) + str(loc))
        _append_annotations(out, error, 1, color)
        return "\n".join(out)

    lines = source.split("\n")
    gw = len(str(loc.line))
    bar = _style(" " * (gw + 1) + "|", _BOLD, _BLUE, color=color)

    out.append(_style(" " * gw + "--> ", _BOLD, _BLUE, color=color) + str(loc))
    out.append(bar)
    code_line = lines[loc.line - 1] if 0 < loc.line <= len(lines) else ""
    out.append(_style(str(loc.line).rjust(gw) + " | ", _BOLD, _BLUE, color=color) + code_line)

    col_start = max(loc.column, 1) - 1
    if loc.end_column > loc.column and loc.end_line in (0, loc.line):
        span_len = loc.end_column - loc.column
    else:
        span_len = _guess_span(code_line, col_start)
    carets = " " * col_start + "^" * max(1, span_len)
    if error.label:
        carets += f" {error.label}"
    out.append(
        _style(" " * (gw + 1) + "| ", _BOLD, _BLUE, color=color)
        + _style(carets, _BOLD, _RED, color=color)
    )
    _append_annotations(out, error, gw, color)
    return "\n".join(out)


def _guess_span(code_line: str, col_start: int) -> int:
    """Token length when the location has no end column."""
    length = 0
    for ch in code_line[col_start:]:
        if not (ch.isalnum() or ch in "_$"):
            break
        length += 1
    return max(1, length)


def _append_annotations(out: List[str], error: Error, gw: int, color: bool) -> None:
    if not (error.help or error.note):
        return
    pad = " " * (gw + 1)
    out.append(_style(pad + "|", _BOLD, _BLUE, color=color))
    for title, text in (("help", error.help), ("note", error.note)):
        if text:
            out.append(
                _style(f"{pad}= ", _BOLD, _CYAN, color=color)
                + _style(f"{title}: ", _BOLD, color=color)
                + text
            )


def _summary(count: int) -> str:
    return f"aborting due to {count} previous error{'s' if count != 1 else ''}"


# ---------------------------------------------------------------------------
# ErrorReporter
# ---------------------------------------------------------------------------

class ErrorReporter:
    """
    Collecting diagnostics sink.

    Passes report and keep going; the driver decides whether the collected
    errors fail the compilation.
    """

    def __init__(self, source_files: Optional[Dict[str, str]] = None):
        self.source_files: Dict[str, str] = source_files if source_files is not None else {}
        self.errors: List[Error] = []

    def report(
        self,
        diagnostic_type: DiagnosticType,
        location: Optional[SourceLocation],
        *args: str,
        help: Optional[str] = None,
    ) -> Error:
        """Report a typed diagnostic with template arguments."""
        error = Error(
            message=diagnostic_type.format(*args),
            location=location,
            code=diagnostic_type.key,
            help=help,
            diagnostic_type=diagnostic_type,
            args=tuple(args),
        )
        self.errors.append(error)
        return error

    def report_error(
        self,
        message: str,
        location: Optional[SourceLocation],
        code: Optional[str] = None,
        help: Optional[str] = None,
        note: Optional[str] = None,
        label: Optional[str] = None,
    ) -> None:
        self.errors.append(Error(
            message=message,
            location=location,
            code=code,
            help=help,
            note=note,
            label=label,
        ))

    def errors_of_type(self, diagnostic_type: DiagnosticType) -> List[Error]:
        return [e for e in self.errors if e.diagnostic_type == diagnostic_type]

    def has_errors(self) -> bool:
        return len(self.errors) > 0

    def format_error(self, error: Error, color: Optional[bool] = None) -> str:
        use_color = color if color is not None else _use_color()
        return _format_diagnostic(error, self.source_files, color=use_color)

    def format_all_errors(self, color: Optional[bool] = None) -> str:
        use_color = color if color is not None else _use_color()
        parts = [self.format_error(e, color=use_color) for e in self.errors]
        parts.append(
            _style("error", _BOLD, _RED, color=use_color)
            + _style(f": {_summary(len(self.errors))}", _BOLD, color=use_color)
        )
        return "\n\n".join(parts)

    def print_errors(self) -> None:
        if self.errors:
            print(self.format_all_errors(), file=sys.stderr)


# ============================================================================
# Exception Classes
# ============================================================================

class ChunkModError(Exception):
    """Base exception for all chunkmod errors"""
    def __init__(self, message: str, location: Optional[SourceLocation] = None):
        super().__init__(message)
        self.message = message
        self.location = location

    def __str__(self):
        if self.location:
            return f"{self.message}\n --> {self.location}"
        return self.message


class ChunkModSourceError(ChunkModError):
    """
    Error caused by the JavaScript input (as opposed to a chunkmod bug).

    Renders with a source snippet when the offending source text is known.
    """
    def __init__(self,
                 message: str,
                 location: Optional[SourceLocation] = None,
                 error_code: str = "JSC_SOURCE_ERROR",
                 source_code: Optional[str] = None,
                 help: Optional[str] = None):
        super().__init__(message, location)
        self.error_code = error_code
        self.source_code = source_code
        self.help_text = help

    def to_error(self) -> Error:
        return Error(
            message=self.message,
            location=self.location,
            code=self.error_code,
            help=self.help_text,
        )

    def __str__(self):
        source_files: Dict[str, str] = {}
        if self.source_code is not None and self.location:
            source_files[self.location.file] = self.source_code
        return _format_diagnostic(self.to_error(), source_files, color=False)


class ParseError(ChunkModSourceError):
    """Input file could not be parsed."""
    def __init__(self, message: str, source_file: str,
                 location: Optional[SourceLocation] = None,
                 source_code: Optional[str] = None):
        super().__init__(message, location, error_code="JSC_PARSE_ERROR", source_code=source_code)
        self.source_file = source_file


class ChunkGraphError(ChunkModError):
    """Chunk graph is malformed (unknown or out-of-order dependency)."""


class ChunkModImplementationError(Exception):
    """
    Internal invariant violated.

    Never raised for problems in user JavaScript; use ChunkModSourceError for those.
    """
    def __init__(self, message: str, error_code: str = "E9999"):
        super().__init__(message)
        self.message = message
        self.error_code = error_code

    def __str__(self):
        return f"[{self.error_code}] {self.message}"


class ModuleSyntaxError(ChunkModImplementationError):
    """
    An input already contains module syntax before chunk conversion.

    Upstream collaborators must hand over plain scripts; this halts the pass.
    """
    def __init__(self, input_name: str):
        super().__init__(
            f"input '{input_name}' already contains ES module syntax; "
            f"chunk conversion expects script inputs",
            error_code="E9001",
        )
        self.input_name = input_name


def check_state(condition: bool, message: str = "illegal state") -> None:
    """Raise ChunkModImplementationError unless condition holds."""
    if not condition:
        raise ChunkModImplementationError(message)
