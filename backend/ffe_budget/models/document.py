"""Document tree and on-disk file envelope."""

from datetime import datetime
from typing import Iterator, List, Optional, Tuple

from pydantic import BaseModel, Field

from .base import DocumentModel
from .category import Category
from .line_item import LineItem
from .project_info import ProjectInfo


SCHEMA_VERSION = "1.0"


class Document(BaseModel):
    """The whole editable tree: project info plus ordered categories."""

    project_info: ProjectInfo = Field(default_factory=ProjectInfo)
    categories: List[Category] = Field(default_factory=list)

    def find_category(self, category_id: str) -> Optional[Category]:
        for category in self.categories:
            if category.id == category_id:
                return category
        return None

    def iter_items(self) -> Iterator[Tuple[Category, LineItem]]:
        for category in self.categories:
            for item in category.items:
                yield category, item

    def item_ids(self) -> set:
        return {item.id for _, item in self.iter_items()}

    def category_ids(self) -> set:
        return {category.id for category in self.categories}

    def has_meaningful_content(self) -> bool:
        """
        判斷是否值得提供草稿復原.

        True when some category holds more than one item, or its first item
        has a description.
        """
        return any(
            category.items
            and (len(category.items) > 1 or category.items[0].description != "")
            for category in self.categories
        )


class DocumentFile(DocumentModel):
    """Versioned JSON envelope written to .ffe files and recovery snapshots."""

    version: str = SCHEMA_VERSION
    saved_at: datetime = Field(default_factory=datetime.now)
    project_info: ProjectInfo
    categories: List[Category] = Field(default_factory=list)

    def to_document(self) -> Document:
        return Document(project_info=self.project_info, categories=self.categories)
