"""Budget category model and the well-known category presentation table."""

from typing import Dict, List, NamedTuple

from pydantic import AliasChoices, Field

from .base import DocumentModel
from .line_item import LineItem


class CategoryStyle(NamedTuple):
    """Icon key and color tag resolved by the UI layer."""

    icon_key: str
    color_tag: str


# 內建分類固定對應的圖示與顏色（載入時重新套用，不寫入檔案的 icon）
WELL_KNOWN_STYLES: Dict[str, CategoryStyle] = {
    "foh": CategoryStyle("armchair", "text-blue-600"),
    "custom": CategoryStyle("lightbulb", "text-amber-600"),
    "wayfinding": CategoryStyle("signpost", "text-purple-600"),
    "exterior": CategoryStyle("tree-pine", "text-emerald-600"),
    "fees": CategoryStyle("briefcase", "text-gray-600"),
}

GENERIC_STYLE = CategoryStyle("layout", "text-gray-600")

DEFAULT_CATEGORY_ID = "foh"
DEFAULT_CATEGORY_TITLE = "Front of House | Furniture & Equipment"
NEW_CATEGORY_TITLE = "New Section"


def style_for(category_id: str) -> CategoryStyle:
    """Look up the fixed style of a well-known category, or the generic one."""
    return WELL_KNOWN_STYLES.get(category_id, GENERIC_STYLE)


class Category(DocumentModel):
    """預算分類：一組有序的 line items."""

    id: str = Field(..., min_length=1)
    title: str = NEW_CATEGORY_TITLE
    color_tag: str = Field(
        GENERIC_STYLE.color_tag,
        validation_alias=AliasChoices("colorTag", "color_tag", "color"),
        serialization_alias="colorTag",
    )
    # Runtime only: derived from the id, never written to disk
    icon_key: str = Field(GENERIC_STYLE.icon_key, exclude=True)
    items: List[LineItem] = Field(default_factory=list)

    def find_item(self, item_id: int):
        """Return (index, item) or (None, None)."""
        for index, item in enumerate(self.items):
            if item.id == item_id:
                return index, item
        return None, None

    def apply_style(self) -> None:
        """Re-derive presentation tags from the id."""
        style = WELL_KNOWN_STYLES.get(self.id)
        if style is not None:
            self.icon_key = style.icon_key
            self.color_tag = style.color_tag
        else:
            self.icon_key = GENERIC_STYLE.icon_key
            if not self.color_tag:
                self.color_tag = GENERIC_STYLE.color_tag
