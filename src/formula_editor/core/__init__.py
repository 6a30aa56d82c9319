"""Core text primitives shared by the editor model and the plugin."""

from .spans import (
    DEFAULT_FORMULA_PATTERN,
    SearchText,
    Span,
    compile_pattern,
    find_enclosing_span,
    scan_spans,
    search_text_at,
)

__all__ = [
    "DEFAULT_FORMULA_PATTERN",
    "SearchText",
    "Span",
    "compile_pattern",
    "find_enclosing_span",
    "scan_spans",
    "search_text_at",
]
