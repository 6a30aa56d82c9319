"""Formula spans for block-structured rich-text editors.

Detects ``[...]`` formula spans, keeps them atomic under selection and drives
the autocomplete overlay anchored to them.
"""

from .core.spans import Span, scan_spans
from .plugin import FormulaPlugin, FormulaPluginConfig, SearchRegistry

__all__ = ["FormulaPlugin", "FormulaPluginConfig", "SearchRegistry", "Span", "scan_spans"]

__version__ = "0.1.0"
