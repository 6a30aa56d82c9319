"""Reference editor host: immutable document model and decorator plumbing."""

from . import decorations, document_model

__all__ = ["decorations", "document_model"]
