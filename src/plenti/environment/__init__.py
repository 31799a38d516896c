"""plenti environment package: configuration, loaders and errors."""

from plenti.environment.core import Environment
from plenti.environment.exceptions import (
    ErrorCode,
    EvaluationFault,
    ExpressionSyntaxError,
    FormatConstraintError,
    ResolutionError,
    SourceSnippet,
    StructuralParseError,
    TemplateError,
    TemplateNotFoundError,
    TemplateRuntimeError,
    TemplateSyntaxError,
    build_source_snippet,
)
from plenti.environment.loaders import (
    ChoiceLoader,
    DictLoader,
    FileSystemLoader,
    FunctionLoader,
    Loader,
    join_path,
)

__all__ = [
    "ChoiceLoader",
    "DictLoader",
    "Environment",
    "ErrorCode",
    "EvaluationFault",
    "ExpressionSyntaxError",
    "FileSystemLoader",
    "FormatConstraintError",
    "FunctionLoader",
    "Loader",
    "ResolutionError",
    "SourceSnippet",
    "StructuralParseError",
    "TemplateError",
    "TemplateNotFoundError",
    "TemplateRuntimeError",
    "TemplateSyntaxError",
    "build_source_snippet",
    "join_path",
]
