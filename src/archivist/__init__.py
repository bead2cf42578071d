"""Document storage utilities."""

from .storage import safe_file_name, save_document, slugify

__all__ = [
    "safe_file_name",
    "save_document",
    "slugify",
]
