"""Models package."""

from .line_item import Attachment, ItemStatus, LineItem, Specification
from .project_info import ProjectInfo, DEFAULT_TERMS
from .category import Category, CategoryStyle, style_for
from .document import Document, DocumentFile, SCHEMA_VERSION
from .totals import Totals
from .commands import ItemFieldUpdate
from .outcome import MutationResult, MutationStatus
from .responses import APIResponse, ErrorResponse, MutationResponse

__all__ = [
    "Attachment",
    "ItemStatus",
    "LineItem",
    "Specification",
    "ProjectInfo",
    "DEFAULT_TERMS",
    "Category",
    "CategoryStyle",
    "style_for",
    "Document",
    "DocumentFile",
    "SCHEMA_VERSION",
    "Totals",
    "ItemFieldUpdate",
    "MutationResult",
    "MutationStatus",
    "APIResponse",
    "ErrorResponse",
    "MutationResponse",
]
