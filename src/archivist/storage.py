"""
Storage for harvested documents.

Each run writes one combined JSON file named after the caller's chosen name,
slugified so it is always a safe file name.
"""

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, Optional, Union

from ..config.settings import settings

logger = logging.getLogger(__name__)

MAX_FILE_STEM = 120
DEFAULT_DOCUMENT_NAME = "all-scrape"


def slugify(text: str) -> str:
    """Convert text to a slug (lowercase, hyphens, ASCII alphanumeric)."""
    slug = text.lower().strip()
    slug = re.sub(r'[\s_\-]+', '-', slug)
    # Remove everything else, including non-Latin scripts
    slug = re.sub(r'[^a-z0-9\-]', '', slug)
    slug = re.sub(r'-{2,}', '-', slug)
    return slug.strip('-')


def safe_file_name(name: Optional[str], fallback: str = "article") -> str:
    """
    File stem derived from a user-supplied name.

    Falls back to `fallback` when the name slugifies to nothing. The result
    never starts with a dot and is at most 120 characters.
    """
    stem = slugify(name or "") or slugify(fallback) or DEFAULT_DOCUMENT_NAME
    return stem.lstrip(".")[:MAX_FILE_STEM]


def resolve_out_dir(out_dir: Optional[Union[str, Path]] = None) -> Path:
    """Target directory: the caller's, else settings.output_dir under the CWD."""
    return Path(out_dir) if out_dir else Path.cwd() / settings.output_dir


def save_document(
    doc: Dict[str, Any],
    out_dir: Optional[Union[str, Path]] = None,
    name: Optional[str] = None,
    fallback: str = DEFAULT_DOCUMENT_NAME,
) -> Path:
    """
    Write a document as pretty-printed UTF-8 JSON.

    Creates the directory if needed and overwrites an existing file with
    the same name.

    Returns:
        Path of the written file
    """
    target_dir = resolve_out_dir(out_dir)
    target_dir.mkdir(parents=True, exist_ok=True)

    out_path = target_dir / f"{safe_file_name(name, fallback)}.json"
    with open(out_path, "w", encoding="utf-8") as f:
        json.dump(doc, f, indent=2, ensure_ascii=False)

    logger.info(f"Saved {out_path}")
    return out_path
