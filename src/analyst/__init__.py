from .schemas import (
    CandidateItem,
    ExtractedArticle,
    ResolvedArticle,
    FailureRecord,
    BatchDocument,
)
from .extractor import (
    extract_article,
    parse_document,
    clean_text,
)

__all__ = [
    "CandidateItem",
    "ExtractedArticle",
    "ResolvedArticle",
    "FailureRecord",
    "BatchDocument",
    "extract_article",
    "parse_document",
    "clean_text",
]
