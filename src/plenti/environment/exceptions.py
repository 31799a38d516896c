"""Exceptions for the plenti component compiler.

Exception Hierarchy:
TemplateError (base)
├── TemplateNotFoundError       # Loader could not find a component source
├── TemplateSyntaxError         # Compile-time error in component source
│   ├── StructuralParseError    # Unbalanced or unknown directive
│   └── FormatConstraintError   # Duplicate fence/script/style block
├── ResolutionError             # Component reference cannot be resolved
├── TemplateRuntimeError        # Render-time failure (e.g. depth limit)
└── EvaluationFault             # Expression failed; recovered locally

Failure Policy:
Structure is strict, data is lenient. Syntax and resolution errors abort
the whole page build because the output would be ambiguous. An
``EvaluationFault`` never escapes a render: the directive that triggered it
degrades to empty output, ``false`` or zero iterations and the fault is
logged at DEBUG level.

Example:
    ```
    P-PAR-001: closing {/if} without an open {if}
      --> views/home.html:4:2 (byte 57)
       |
      4 |   {/if}
       |   ^
    ```

"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from plenti.environment import terminal

# ---------------------------------------------------------------------------
# Error codes
# ---------------------------------------------------------------------------

class ErrorCode(Enum):
    """Searchable error codes for plenti errors.

    Format: P-{CATEGORY}-{NUMBER}
    Categories: PAR (parse), RES (resolution), RUN (runtime), TPL (loading)
    """

    # Parse errors (P-PAR-xxx)
    STRUCTURAL = "P-PAR-001"
    FORMAT_CONSTRAINT = "P-PAR-002"
    INVALID_EXPRESSION = "P-PAR-003"

    # Resolution errors (P-RES-xxx)
    UNRESOLVED_COMPONENT = "P-RES-001"

    # Runtime errors (P-RUN-xxx)
    EVALUATION_FAULT = "P-RUN-001"
    RUNTIME_ERROR = "P-RUN-002"
    COMPONENT_DEPTH = "P-RUN-003"

    # Template loading errors (P-TPL-xxx)
    TEMPLATE_NOT_FOUND = "P-TPL-001"
    SYNTAX_ERROR = "P-TPL-002"

    @property
    def category(self) -> str:
        """Error category (e.g., 'parser', 'runtime')."""
        prefix = self.value.split("-")[1]
        return {
            "PAR": "parser",
            "RES": "resolution",
            "RUN": "runtime",
            "TPL": "template",
        }.get(prefix, "unknown")


# ---------------------------------------------------------------------------
# Source snippets
# ---------------------------------------------------------------------------


def format_component_stack(stack: list[str] | tuple[str, ...] | None) -> str:
    """Format the chain of components being rendered when an error occurred.

    Example:
        >>> print(format_component_stack(["home.html", "components/card.html"]))
        Component stack:
          • home.html
          • components/card.html
    """
    if not stack:
        return ""

    lines = [terminal.dim_text("Component stack:")]
    for name in stack:
        lines.append(f"  • {terminal.location(name)}")
    return "\n".join(lines)


@dataclass(frozen=True, slots=True)
class SourceSnippet:
    """Source context around an error line.

    Attributes:
        lines: Tuple of (line_number, line_content) pairs around the error.
        error_line: The 1-based line number where the error occurred.
        column: Optional column offset for caret pointer.
    """

    lines: tuple[tuple[int, str], ...]
    error_line: int
    column: int | None = None

    def format(self) -> str:
        """Format snippet in Rust-inspired diagnostic style with colors."""
        parts: list[str] = [terminal.dim_text("   |")]
        for lineno, content in self.lines:
            is_error = lineno == self.error_line
            parts.append(terminal.format_source_line(lineno, content, is_error=is_error))
        if self.column is not None:
            caret = " " * self.column + "^"
            parts.append(f"{terminal.dim_text('     |')} {terminal.error_line(caret)}")
        parts.append(terminal.dim_text("   |"))
        return "\n".join(parts)


def build_source_snippet(
    source: str,
    error_line: int,
    *,
    context_lines: int = 1,
    column: int | None = None,
) -> SourceSnippet:
    """Build a SourceSnippet from source text around a 1-based line."""
    all_lines = source.splitlines()
    start = max(0, error_line - 1 - context_lines)
    end = min(len(all_lines), error_line + context_lines)
    lines = tuple((i + 1, all_lines[i]) for i in range(start, end))
    return SourceSnippet(lines=lines, error_line=error_line, column=column)


def locate(source: str, offset: int) -> tuple[int, int, int]:
    """Map a character offset to ``(byte_offset, lineno, col_offset)``.

    Line numbers are 1-based, columns 0-based. The byte offset counts UTF-8
    bytes so it matches what editors and ``dd`` report.
    """
    offset = max(0, min(offset, len(source)))
    prefix = source[:offset]
    lineno = prefix.count("\n") + 1
    col_offset = offset - (prefix.rfind("\n") + 1)
    return len(prefix.encode("utf-8")), lineno, col_offset


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class TemplateError(Exception):
    """Base exception for all plenti errors.

    Attributes:
        code: Optional ErrorCode for searchable error identification.
    """

    code: ErrorCode | None = None

    def format_compact(self) -> str:
        """Format error as a structured, human-readable summary."""
        parts: list[str] = []
        header = str(self)
        if self.code and self.code.value not in header:
            header = f"{self.code.value}: {header}"
        parts.append(header)
        return "\n".join(parts)


class TemplateNotFoundError(TemplateError):
    """Component source not found by any configured loader."""

    code: ErrorCode | None = ErrorCode.TEMPLATE_NOT_FOUND


class TemplateSyntaxError(TemplateError):
    """Compile-time error in component source.

    When ``source`` and ``offset`` are provided the message carries the
    line/column location, the byte offset and a caret snippet.
    """

    code: ErrorCode | None = ErrorCode.SYNTAX_ERROR

    def __init__(
        self,
        message: str,
        *,
        offset: int | None = None,
        name: str | None = None,
        source: str | None = None,
        suggestion: str | None = None,
    ):
        self.message = message
        self.name = name
        self.source = source
        self.suggestion = suggestion
        self.offset = offset
        self.byte_offset: int | None = None
        self.lineno: int | None = None
        self.col_offset: int | None = None
        if source is not None and offset is not None:
            self.byte_offset, self.lineno, self.col_offset = locate(source, offset)
        elif offset is not None:
            self.byte_offset = offset
        super().__init__(self._format_message())

    @property
    def location(self) -> str:
        loc = self.name or "<template>"
        if self.lineno is not None:
            loc += f":{self.lineno}:{self.col_offset}"
        if self.byte_offset is not None:
            loc += f" (byte {self.byte_offset})"
        return loc

    def _format_message(self) -> str:
        header = f"{self.message}\n  --> {self.location}"
        if self.source and self.lineno:
            lines = self.source.splitlines()
            if 0 < self.lineno <= len(lines):
                header += f"\n   |\n{self.lineno:>3} | {lines[self.lineno - 1]}"
                if self.col_offset is not None:
                    header += f"\n   | {' ' * self.col_offset}^"
        if self.suggestion:
            header += f"\n\nSuggestion: {self.suggestion}"
        return header

    def format_compact(self) -> str:
        """Format syntax error as structured terminal diagnostic."""
        parts = [terminal.format_error_header(self.code.value if self.code else None, self.message)]
        parts.append(f"  --> {terminal.location(self.location)}")
        if self.source and self.lineno:
            snippet = build_source_snippet(self.source, self.lineno, column=self.col_offset)
            parts.append(snippet.format())
        if self.suggestion:
            parts.append(f"  {terminal.hint('Hint:')} {self.suggestion}")
        return "\n".join(parts)


class StructuralParseError(TemplateSyntaxError):
    """Unbalanced, misplaced or malformed control directive.

    Raised by the control-tree builder for an unmatched ``{/if}``/``{/for}``,
    an ``{else}`` outside an ``{if}``, an unclosed directive at end of
    input, or a component tag that never reaches ``/>``.
    """

    code: ErrorCode | None = ErrorCode.STRUCTURAL


class FormatConstraintError(TemplateSyntaxError):
    """A component declares more than one fence, script or style block."""

    code: ErrorCode | None = ErrorCode.FORMAT_CONSTRAINT


class ResolutionError(TemplateError):
    """A component reference could not be resolved to a loadable source.

    Missing components change page semantics, so this is fatal rather than
    silently skipped.
    """

    code: ErrorCode | None = ErrorCode.UNRESOLVED_COMPONENT

    def __init__(
        self,
        message: str,
        *,
        component: str | None = None,
        template_name: str | None = None,
        component_stack: list[str] | tuple[str, ...] | None = None,
    ):
        self.message = message
        self.component = component
        self.template_name = template_name
        self.component_stack = list(component_stack or ())
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        msg = self.message
        if self.template_name:
            msg += f" in {terminal.location(self.template_name)}"
        if self.component_stack:
            msg += "\n\n" + format_component_stack(self.component_stack)
        return msg


class TemplateRuntimeError(TemplateError):
    """Render-time error that cannot be degraded locally.

    Attributes:
        message: Error description
        template_name: Component being rendered
        component_stack: Chain of components leading to the failure
        suggestion: Actionable fix suggestion
    """

    code: ErrorCode | None = ErrorCode.RUNTIME_ERROR

    def __init__(
        self,
        message: str,
        *,
        template_name: str | None = None,
        component_stack: list[str] | tuple[str, ...] | None = None,
        suggestion: str | None = None,
        code: ErrorCode | None = None,
    ):
        self.message = message
        self.template_name = template_name
        self.component_stack = list(component_stack or ())
        self.suggestion = suggestion
        if code is not None:
            self.code = code
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        parts = [f"Runtime Error: {self.message}"]
        if self.template_name:
            parts.append(f"  Location: {terminal.location(self.template_name)}")
        if self.component_stack:
            parts.append("")
            parts.append(format_component_stack(self.component_stack))
        if self.suggestion:
            parts.append(f"\n  {terminal.hint('Suggestion:')} {self.suggestion}")
        return "\n".join(parts)


class EvaluationFault(TemplateError):
    """An expression could not be evaluated.

    Raised by the expression evaluator (syntax errors, unknown names, type
    errors, unexpected result shapes). The renderer catches it and degrades
    the affected directive; it only reaches callers who use the evaluator
    directly.

    Attributes:
        message: Error description
        expression: Source text of the failing expression
        position: Character offset inside the expression, when known
        values: Names and values relevant to the failure
    """

    code: ErrorCode | None = ErrorCode.EVALUATION_FAULT

    def __init__(
        self,
        message: str,
        *,
        expression: str | None = None,
        position: int | None = None,
        values: dict[str, Any] | None = None,
    ):
        self.message = message
        self.expression = expression
        self.position = position
        self.values = values or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        parts = [self.message]
        if self.expression is not None:
            parts.append(f"  Expression: {self.expression}")
            if self.position is not None:
                parts.append(f"              {' ' * self.position}^")
        for name, value in self.values.items():
            value_repr = repr(value)
            if len(value_repr) > 80:
                value_repr = value_repr[:77] + "..."
            parts.append(f"    {name} = {value_repr} ({type(value).__name__})")
        return "\n".join(parts)


class ExpressionSyntaxError(EvaluationFault):
    """Expression source could not be tokenized or parsed."""

    code: ErrorCode | None = ErrorCode.INVALID_EXPRESSION
