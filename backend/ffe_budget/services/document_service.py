"""Editing session for the active budget document.

Holds the single document tree, applies every mutation, tracks unsaved
changes, and notifies listeners (auto-save) after each applied change.

Mutations never raise for bad input or stale references: they return a
MutationResult whose status is applied, rejected or not_found.
"""

import logging
import threading
from typing import Any, Callable, List, Optional, Tuple, Union

from pydantic import ValidationError

from ..config import Settings, settings as default_settings
from ..models.category import (
    Category,
    DEFAULT_CATEGORY_ID,
    DEFAULT_CATEGORY_TITLE,
    NEW_CATEGORY_TITLE,
    style_for,
)
from ..models.commands import (
    ItemFieldUpdate,
    NUMERIC_ITEM_FIELDS,
    canonical_item_field,
    item_update_adapter,
)
from ..models.document import Document
from ..models.line_item import Attachment, LineItem, Specification, blank_item, new_item
from ..models.outcome import MutationResult
from ..models.project_info import DEFAULT_TERMS, NUMERIC_FIELDS, ProjectInfo
from ..models.totals import Totals
from .id_generator import IdGenerator
from .money import parse_non_negative, parse_price_text
from .totals_engine import compute_totals

logger = logging.getLogger(__name__)

ChangeListener = Callable[["DocumentSession"], None]

MOVE_DIRECTIONS = ("up", "down")


def build_new_document(
    id_generator: IdGenerator,
    config: Optional[Settings] = None,
) -> Document:
    """
    Build the blank document used at start-up and by "new document".

    Args:
        id_generator: Source of the first item id
        config: Settings supplying the template defaults

    Returns:
        Document with one Front of House category holding one blank item
    """
    config = config or default_settings
    project_info = ProjectInfo(
        name=config.default_project_name,
        address=config.default_project_address,
        client=config.default_client,
        allowance=config.default_allowance,
        sales_tax_rate=config.default_sales_tax_rate,
        company_name=config.company_name,
        company_address=config.company_address,
        company_phone=config.company_phone,
        company_email=config.company_email,
        company_website=config.company_website,
        logo_url=config.company_logo_url,
        terms=list(DEFAULT_TERMS),
    )
    style = style_for(DEFAULT_CATEGORY_ID)
    category = Category(
        id=DEFAULT_CATEGORY_ID,
        title=DEFAULT_CATEGORY_TITLE,
        color_tag=style.color_tag,
        icon_key=style.icon_key,
        items=[blank_item(id_generator.next_item_id())],
    )
    return Document(project_info=project_info, categories=[category])


class DocumentSession:
    """Single-writer editing session."""

    def __init__(
        self,
        document: Optional[Document] = None,
        id_generator: Optional[IdGenerator] = None,
        config: Optional[Settings] = None,
    ):
        """
        Initialize DocumentSession.

        Args:
            document: Initial document (default: blank template)
            id_generator: Id source (default: wall-clock backed IdGenerator)
            config: Settings for the new-document template
        """
        self._config = config or default_settings
        self._ids = id_generator or IdGenerator()
        self._document = document or build_new_document(self._ids, self._config)
        self._dirty = False
        self._lock = threading.RLock()
        self._listeners: List[ChangeListener] = []

    # ===== Read access =====

    @property
    def document(self) -> Document:
        return self._document

    @property
    def project_info(self) -> ProjectInfo:
        return self._document.project_info

    @property
    def categories(self) -> List[Category]:
        return self._document.categories

    def totals(self) -> Totals:
        """Recompute totals from the current tree."""
        with self._lock:
            return compute_totals(self._document.project_info, self._document.categories)

    def snapshot(self) -> Document:
        """Deep copy of the document, consistent with respect to mutations."""
        with self._lock:
            return self._document.model_copy(deep=True)

    def is_dirty(self) -> bool:
        return self._dirty

    def get_stats(self) -> dict:
        return {
            "categories": len(self._document.categories),
            "items": sum(len(category.items) for category in self._document.categories),
            "dirty": self._dirty,
        }

    # ===== Listeners =====

    def subscribe(self, listener: ChangeListener) -> None:
        """Register a callback run after every change to the document."""
        self._listeners.append(listener)

    def unsubscribe(self, listener: ChangeListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _changed(self) -> None:
        self._dirty = True
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    # ===== Document lifecycle =====

    def new_document(self) -> Document:
        """Replace the document with a blank template and clear the dirty flag."""
        with self._lock:
            self._document = build_new_document(self._ids, self._config)
            self._dirty = False
        logger.info("New document created")
        self._notify()
        return self._document

    def load_document(self, document: Document, dirty: bool = False) -> None:
        """
        Make a loaded document the sole active state.

        Args:
            document: Deserialized document
            dirty: True when loaded from somewhere other than the user's file
        """
        with self._lock:
            for category in document.categories:
                category.apply_style()
            self._document = document
            self._dirty = dirty
        logger.info(
            f"Document loaded: {document.project_info.name!r} "
            f"({len(document.categories)} categories, dirty={dirty})"
        )
        self._notify()

    def mark_saved(self) -> None:
        """Clear the dirty flag after a successful explicit save."""
        self._dirty = False

    # ===== Lookups =====

    def _locate(
        self, category_id: str, item_id: int, action: str
    ) -> Tuple[Optional[Category], Optional[int], Optional[LineItem], Optional[MutationResult]]:
        category = self._document.find_category(category_id)
        if category is None:
            return None, None, None, self._not_found(f"{action}: category {category_id!r} not found")
        index, item = category.find_item(item_id)
        if item is None:
            return category, None, None, self._not_found(
                f"{action}: item {item_id} not found in category {category_id!r}"
            )
        return category, index, item, None

    @staticmethod
    def _not_found(message: str) -> MutationResult:
        logger.info(message)
        return MutationResult.not_found(message)

    @staticmethod
    def _rejected(message: str) -> MutationResult:
        logger.warning(message)
        return MutationResult.rejected(message)

    # ===== Project info =====

    def update_project_field(self, field: str, value: Any) -> MutationResult:
        """
        Update one project info field.

        allowance and salesTaxRate must parse as finite numbers >= 0; any
        other known field takes any string. terms takes a list of strings or
        newline-separated text.
        """
        attribute = ProjectInfo.field_for(field)
        if attribute is None:
            return self._rejected(f"Unknown project field: {field!r}")

        if attribute in NUMERIC_FIELDS:
            number = parse_non_negative(value)
            if number is None:
                return self._rejected(
                    f"Invalid {field} value: {value!r}. Must be a non-negative number."
                )
            value = number
        elif attribute == "terms":
            if isinstance(value, str):
                value = [line for line in value.splitlines() if line.strip()]
            elif isinstance(value, (list, tuple)):
                value = ["" if term is None else str(term) for term in value]
            else:
                return self._rejected(f"Invalid terms value: {value!r}")
        else:
            value = "" if value is None else str(value)

        with self._lock:
            setattr(self._document.project_info, attribute, value)
        self._changed()
        return MutationResult.applied(f"Project {field} updated", data=value)

    # ===== Line items =====

    def update_item_field(
        self, category_id: str, item_id: int, field: str, value: Any
    ) -> MutationResult:
        """String-keyed form of apply_item_update."""
        tag = canonical_item_field(field)
        if tag is None:
            return self._rejected(f"Unknown item field {field!r} for item {item_id}")
        if tag not in NUMERIC_ITEM_FIELDS and not isinstance(value, str):
            value = "" if value is None else str(value)
        try:
            update = item_update_adapter.validate_python({"field": tag, "value": value})
        except ValidationError:
            return self._rejected(f"Invalid {field} for item {item_id}: {value!r}")
        return self.apply_item_update(category_id, item_id, update)

    def apply_item_update(
        self, category_id: str, item_id: int, update: ItemFieldUpdate
    ) -> MutationResult:
        """
        Apply one typed field update to an item.

        Args:
            category_id: Category holding the item
            item_id: Item to update
            update: One ItemFieldUpdate variant

        Returns:
            MutationResult (rejected for negative/non-finite numbers,
            not_found for unknown ids)
        """
        value = update.value
        if update.field in NUMERIC_ITEM_FIELDS:
            number = parse_non_negative(value)
            if number is None:
                return self._rejected(
                    f"Invalid {update.field} for item {item_id}: {value!r}. "
                    f"Must be a non-negative number."
                )
            value = number

        with self._lock:
            _, _, item, missing = self._locate(category_id, item_id, f"Update {update.field}")
            if missing:
                return missing
            setattr(item, update.attribute, value)
        self._changed()
        return MutationResult.applied(f"Item {item_id} {update.field} updated", data=item)

    def add_item(self, category_id: str, index: Optional[int] = None) -> MutationResult:
        """Append (or insert at index) a new item with default values."""
        with self._lock:
            category = self._document.find_category(category_id)
            if category is None:
                return self._not_found(f"Add item: category {category_id!r} not found")
            item = new_item(self._ids.next_item_id(self._document.item_ids()))
            if index is not None and 0 <= index <= len(category.items):
                category.items.insert(index, item)
            else:
                category.items.append(item)
        self._changed()
        return MutationResult.applied(f"Item {item.id} added to {category_id}", data=item)

    def remove_item(self, category_id: str, item_id: int) -> MutationResult:
        with self._lock:
            category, index, _, missing = self._locate(category_id, item_id, "Remove item")
            if missing:
                return missing
            del category.items[index]
        self._changed()
        return MutationResult.applied(f"Item {item_id} removed from {category_id}")

    def duplicate_item(self, category_id: str, item: Union[LineItem, int]) -> MutationResult:
        """Insert a copy of an item, with a fresh id, right after the original."""
        item_id = item.id if isinstance(item, LineItem) else item
        with self._lock:
            category, index, original, missing = self._locate(category_id, item_id, "Duplicate item")
            if missing:
                return missing
            copy = original.model_copy(
                deep=True,
                update={"id": self._ids.next_item_id(self._document.item_ids())},
            )
            category.items.insert(index + 1, copy)
        self._changed()
        return MutationResult.applied(f"Item {item_id} duplicated as {copy.id}", data=copy)

    def move_item(self, category_id: str, index: int, direction: str) -> MutationResult:
        """Swap the item at index with its neighbour above or below."""
        if direction not in MOVE_DIRECTIONS:
            return self._rejected(f"Invalid move direction: {direction!r}")
        with self._lock:
            category = self._document.find_category(category_id)
            if category is None:
                return self._not_found(f"Move item: category {category_id!r} not found")
            items = category.items
            target = index - 1 if direction == "up" else index + 1
            if not (0 <= index < len(items)) or not (0 <= target < len(items)):
                return self._rejected(
                    f"Cannot move item at index {index} {direction} in {category_id}"
                )
            items[index], items[target] = items[target], items[index]
        self._changed()
        return MutationResult.applied(f"Item moved {direction} in {category_id}")

    def save_item_specification(
        self,
        category_id: str,
        item_id: int,
        specification: Union[Specification, dict],
    ) -> MutationResult:
        """Replace an item's specification wholesale."""
        if not isinstance(specification, Specification):
            try:
                specification = Specification.model_validate(specification)
            except ValidationError as e:
                return self._rejected(f"Invalid specification for item {item_id}: {e}")
        with self._lock:
            _, _, item, missing = self._locate(category_id, item_id, "Save specification")
            if missing:
                return missing
            item.specification = specification.model_copy(deep=True)
        self._changed()
        return MutationResult.applied(f"Specification saved for item {item_id}", data=item.specification)

    def add_attachment(
        self,
        category_id: str,
        item_id: int,
        name: str,
        mime_type: str,
        content: bytes,
    ) -> MutationResult:
        """Embed an uploaded file in the item's specification."""
        attachment = Attachment.from_bytes(name, mime_type, content)
        with self._lock:
            _, _, item, missing = self._locate(category_id, item_id, "Add attachment")
            if missing:
                return missing
            spec = item.specification
            item.specification = Specification(
                detailed_description=spec.detailed_description,
                attachments=[*spec.attachments, attachment],
            )
        self._changed()
        return MutationResult.applied(f"Attachment {name!r} added to item {item_id}", data=attachment)

    def remove_attachment(self, category_id: str, item_id: int, attachment_id: str) -> MutationResult:
        with self._lock:
            _, _, item, missing = self._locate(category_id, item_id, "Remove attachment")
            if missing:
                return missing
            spec = item.specification
            remaining = [att for att in spec.attachments if att.id != attachment_id]
            if len(remaining) == len(spec.attachments):
                return self._not_found(f"Attachment {attachment_id!r} not found on item {item_id}")
            item.specification = Specification(
                detailed_description=spec.detailed_description,
                attachments=remaining,
            )
        self._changed()
        return MutationResult.applied(f"Attachment {attachment_id!r} removed from item {item_id}")

    def apply_price_quote(self, category_id: str, item_id: int, price_text: str) -> MutationResult:
        """Set unitPrice from a quoted price string such as "$1,234.00"."""
        price = parse_price_text(price_text)
        if price is None:
            return self._rejected(f"No price found in {price_text!r} for item {item_id}")
        return self.update_item_field(category_id, item_id, "unitPrice", price)

    # ===== Categories =====

    def add_category(self, index: Optional[int] = None) -> MutationResult:
        """Add a "New Section" category with one blank item."""
        with self._lock:
            category_id = self._ids.next_category_id(self._document.category_ids())
            style = style_for(category_id)
            category = Category(
                id=category_id,
                title=NEW_CATEGORY_TITLE,
                color_tag=style.color_tag,
                icon_key=style.icon_key,
                items=[blank_item(self._ids.next_item_id(self._document.item_ids()))],
            )
            categories = self._document.categories
            if index is not None and 0 <= index <= len(categories):
                categories.insert(index, category)
            else:
                categories.append(category)
        self._changed()
        return MutationResult.applied(f"Category {category_id} added", data=category)

    def update_category_title(self, category_id: str, new_title: str) -> MutationResult:
        with self._lock:
            category = self._document.find_category(category_id)
            if category is None:
                return self._not_found(f"Rename: category {category_id!r} not found")
            category.title = "" if new_title is None else str(new_title)
        self._changed()
        return MutationResult.applied(f"Category {category_id} renamed", data=category.title)

    def remove_category(self, category_id: str) -> MutationResult:
        """Delete a category and all of its items (no confirmation here)."""
        with self._lock:
            category = self._document.find_category(category_id)
            if category is None:
                return self._not_found(f"Remove: category {category_id!r} not found")
            self._document.categories.remove(category)
        self._changed()
        return MutationResult.applied(
            f"Category {category_id} removed with {len(category.items)} items"
        )
