"""Document persistence and schema migration.

檔案格式（.ffe，JSON）:
{
  "version": "1.0",
  "savedAt": "<ISO-8601>",
  "projectInfo": {...},
  "categories": [{"id", "title", "colorTag", "items": [...]}]
}

Loading is lenient field by field so files written by earlier versions still
open: nested item arrays are flattened, numerics coerced, missing
specifications and terms synthesized, legacy keys (mfr, desc, qty, specs,
color) accepted, and duplicate ids re-keyed. Only a file without
projectInfo/categories, or one that is not JSON at all, fails to load.
"""

import json
import logging
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, List, Optional, Union

from pydantic import ValidationError

from ..models.category import Category, NEW_CATEGORY_TITLE
from ..models.document import Document, DocumentFile, SCHEMA_VERSION
from ..models.line_item import ItemStatus
from ..models.project_info import DEFAULT_TERMS, ProjectInfo
from ..utils.errors import DocumentFormatError
from ..utils.file_manager import FileManager
from ..utils.validators import FileValidator
from .id_generator import IdGenerator
from .money import coerce_non_negative

logger = logging.getLogger(__name__)

RawDocument = Union[dict, str, bytes]

_PROJECT_TEXT_FIELDS = (
    "name",
    "address",
    "date",
    "client",
    "companyName",
    "companyAddress",
    "companyPhone",
    "companyEmail",
    "companyWebsite",
    "logoUrl",
)

# (canonical key, legacy keys)
_ITEM_TEXT_FIELDS = (
    ("manufacturer", ("mfr",)),
    ("description", ("desc",)),
    ("dimensions", ()),
    ("leadTime", ("lead_time",)),
    ("notes", ()),
)


@dataclass
class LoadedDocument:
    """Result of deserializing a file or snapshot."""

    document: Document
    version: str
    saved_at: Optional[datetime]


# ============================================================
# Serialize
# ============================================================


def serialize(
    project_info: ProjectInfo,
    categories: Iterable[Category],
    saved_at: Optional[datetime] = None,
) -> DocumentFile:
    """
    Build the on-disk envelope for a document.

    Runtime-only category fields (icon_key) are excluded by the models.

    Args:
        project_info: Project metadata
        categories: Categories in display order
        saved_at: Timestamp to record (default now)

    Returns:
        DocumentFile
    """
    return DocumentFile(
        version=SCHEMA_VERSION,
        saved_at=saved_at or datetime.now(),
        project_info=project_info.model_copy(deep=True),
        categories=[category.model_copy(deep=True) for category in categories],
    )


def serialize_document(document: Document, saved_at: Optional[datetime] = None) -> DocumentFile:
    return serialize(document.project_info, document.categories, saved_at)


def dumps_document(document_file: DocumentFile) -> str:
    """JSON text with 2-space indentation."""
    return json.dumps(document_file.to_json_dict(), indent=2, ensure_ascii=False)


def suggested_filename(project_name: str, extension: str = ".ffe") -> str:
    """"My Hotel" → "my_hotel_budget.ffe"."""
    stem = re.sub(r"[^a-z0-9]", "_", project_name or "", flags=re.IGNORECASE).lower()
    return f"{stem or 'untitled'}_budget{extension}"


# ============================================================
# Deserialize
# ============================================================


def deserialize(data: RawDocument, id_generator: Optional[IdGenerator] = None) -> Document:
    """
    Load a document from a parsed or raw .ffe payload.

    Raises:
        DocumentFormatError: Not JSON, not an object, or projectInfo /
            categories missing
    """
    return deserialize_with_metadata(data, id_generator).document


def loads_document(text: Union[str, bytes], id_generator: Optional[IdGenerator] = None) -> Document:
    """Inverse of dumps_document."""
    return deserialize(text, id_generator)


def deserialize_with_metadata(
    data: RawDocument,
    id_generator: Optional[IdGenerator] = None,
) -> LoadedDocument:
    """
    Load a document and the envelope metadata (version, savedAt).

    Args:
        data: dict, JSON text or UTF-8 bytes
        id_generator: Id source for re-keying duplicates

    Returns:
        LoadedDocument

    Raises:
        DocumentFormatError: When the payload cannot be loaded at all
    """
    raw = _parse(data)

    if raw.get("projectInfo") is None or raw.get("categories") is None:
        raise DocumentFormatError("Invalid file format: missing projectInfo or categories")
    if not isinstance(raw["projectInfo"], dict):
        raise DocumentFormatError("Invalid file format: projectInfo must be an object")

    version = _check_version(raw.get("version"))
    ids = id_generator or IdGenerator()

    project_info = _migrate_project_info(raw["projectInfo"])

    raw_categories = raw["categories"]
    if not isinstance(raw_categories, list):
        logger.warning("categories is not a list, loading an empty document")
        raw_categories = []

    categories = [
        category
        for category in (_migrate_category(entry) for entry in raw_categories)
        if category is not None
    ]
    _ensure_unique_ids(categories, ids)

    try:
        document = Document(
            project_info=project_info,
            categories=[Category.model_validate(category) for category in categories],
        )
    except ValidationError as e:
        raise DocumentFormatError(f"Invalid file format: {e.error_count()} invalid fields", details=str(e))

    for category in document.categories:
        category.apply_style()

    return LoadedDocument(
        document=document,
        version=version,
        saved_at=_parse_saved_at(raw.get("savedAt")),
    )


def _parse(data: RawDocument) -> dict:
    if isinstance(data, bytes):
        try:
            data = data.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise DocumentFormatError(f"Failed to parse document: {e}")
    if isinstance(data, str):
        try:
            data = json.loads(data)
        except json.JSONDecodeError as e:
            raise DocumentFormatError(f"Failed to parse document: {e.msg}")
    if not isinstance(data, dict):
        raise DocumentFormatError("Invalid file format: expected a JSON object")
    return data


def _check_version(version: Any) -> str:
    if version is None:
        logger.info("Document has no version, loading as legacy schema")
        return "0"
    version = str(version)
    try:
        major = int(version.split(".")[0])
    except ValueError:
        logger.warning(f"Unrecognised document version {version!r}, loading best-effort")
        return version
    if major > int(SCHEMA_VERSION.split(".")[0]):
        logger.warning(f"Document version {version} is newer than {SCHEMA_VERSION}, loading best-effort")
    return version


def _parse_saved_at(value: Any) -> Optional[datetime]:
    if not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def _pop_first(data: dict, *keys: str, default: Any = None) -> Any:
    """Remove every spelling of a key and return the first one present."""
    found = default
    for key in reversed(keys):
        if key in data:
            found = data.pop(key)
    return found


def _text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _migrate_project_info(raw: dict) -> ProjectInfo:
    data = dict(raw)

    for key, legacy in (("allowance", ()), ("salesTaxRate", ("sales_tax_rate",))):
        if key in data or any(name in data for name in legacy):
            data[key] = coerce_non_negative(_pop_first(data, key, *legacy))

    for key in _PROJECT_TEXT_FIELDS:
        if key in data:
            data[key] = _text(data[key])

    terms = data.get("terms")
    if terms is None:
        # 舊檔案沒有 terms 欄位
        data["terms"] = list(DEFAULT_TERMS)
    elif isinstance(terms, str):
        data["terms"] = [line for line in terms.splitlines() if line.strip()]
    elif isinstance(terms, list):
        data["terms"] = [_text(term) for term in terms]
    else:
        data["terms"] = list(DEFAULT_TERMS)

    try:
        return ProjectInfo.model_validate(data)
    except ValidationError as e:
        raise DocumentFormatError(f"Invalid projectInfo: {e.error_count()} invalid fields", details=str(e))


def _migrate_category(raw: Any) -> Optional[dict]:
    if not isinstance(raw, dict):
        logger.warning(f"Skipping malformed category entry: {type(raw).__name__}")
        return None

    data = dict(raw)
    data.pop("icon", None)
    data.pop("iconKey", None)

    data["id"] = _text(data.get("id"))
    data["title"] = _text(data.get("title", NEW_CATEGORY_TITLE))

    color = _pop_first(data, "colorTag", "color_tag", "color")
    if isinstance(color, str) and color:
        data["colorTag"] = color

    items = data.get("items")
    if not isinstance(items, list):
        if items is not None:
            logger.warning(f"Category {data['id']!r}: items is not a list, using empty list")
        items = []
    data["items"] = [
        item for item in (_migrate_item(entry) for entry in _flatten_once(items)) if item is not None
    ]
    return data


def _flatten_once(items: List[Any]) -> List[Any]:
    """[[a, b], c] → [a, b, c]; earlier builds nested item arrays by mistake."""
    flat: List[Any] = []
    for entry in items:
        if isinstance(entry, list):
            flat.extend(entry)
        else:
            flat.append(entry)
    return flat


def _migrate_item(raw: Any) -> Optional[dict]:
    if not isinstance(raw, dict):
        logger.warning(f"Skipping malformed item entry: {type(raw).__name__}")
        return None

    data = dict(raw)
    data["id"] = _coerce_item_id(data.get("id"))

    data["quantity"] = coerce_non_negative(_pop_first(data, "quantity", "qty"))
    data["unitPrice"] = coerce_non_negative(_pop_first(data, "unitPrice", "unit_price"))

    for key, legacy in _ITEM_TEXT_FIELDS:
        data[key] = _text(_pop_first(data, key, *legacy))

    status = data.get("status")
    data["status"] = ItemStatus.DRAFT.value if status is None else _text(status)

    data["specification"] = _migrate_specification(_pop_first(data, "specification", "specs"))
    return data


def _coerce_item_id(value: Any) -> Optional[int]:
    """Integral numbers (or numeric strings) keep their id; anything else is re-keyed."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _migrate_specification(raw: Any) -> dict:
    if not isinstance(raw, dict):
        return {"detailedDescription": "", "attachments": []}

    data = dict(raw)
    data["detailedDescription"] = _text(_pop_first(data, "detailedDescription", "detailed_description"))

    attachments = data.get("attachments")
    if not isinstance(attachments, list):
        attachments = []
    data["attachments"] = [_migrate_attachment(att) for att in attachments if isinstance(att, dict)]
    return data


def _migrate_attachment(raw: dict) -> dict:
    data = dict(raw)
    size = _pop_first(data, "sizeBytes", "size_bytes", "size")
    data["sizeBytes"] = int(coerce_non_negative(size))
    mime_type = _pop_first(data, "mimeType", "mime_type", "type")
    data["mimeType"] = _text(mime_type) or "application/octet-stream"
    data["name"] = _text(data.get("name"))
    data["dataUrl"] = _text(_pop_first(data, "dataUrl", "data_url"))
    attachment_id = data.get("id")
    if attachment_id is not None and (
        isinstance(attachment_id, bool) or not isinstance(attachment_id, (str, int, float))
    ):
        logger.warning(f"Attachment id {attachment_id!r} is unusable, assigning a new one")
        attachment_id = None
    if attachment_id is None:
        # Attachment 會產生新的 uuid
        data.pop("id", None)
    return data


def _ensure_unique_ids(categories: List[dict], ids: IdGenerator) -> None:
    """Re-key missing or duplicate ids so every id is unique after load."""
    seen_categories: set = set()
    all_categories = {category["id"] for category in categories if category["id"]}
    for category in categories:
        if not category["id"] or category["id"] in seen_categories:
            old = category["id"]
            category["id"] = ids.next_category_id(all_categories | seen_categories)
            logger.warning(f"Category id {old!r} missing or duplicated, re-keyed to {category['id']!r}")
        seen_categories.add(category["id"])

    taken = {
        item["id"] for category in categories for item in category["items"] if item["id"] is not None
    }
    seen_items: set = set()
    for category in categories:
        for item in category["items"]:
            if item["id"] is None or item["id"] in seen_items:
                old = item["id"]
                item["id"] = ids.next_item_id(taken | seen_items)
                logger.warning(
                    f"Item id {old!r} in {category['id']!r} missing or duplicated, re-keyed to {item['id']}"
                )
            seen_items.add(item["id"])


# ============================================================
# Explicit save / open
# ============================================================


@dataclass
class SavedDocument:
    """Where and when an explicit save landed."""

    filename: str
    path: Path
    size: int
    saved_at: datetime


class DocumentPersistenceService:
    """
    Save / Save As / Open for the active session.

    The session is only replaced after a file loads successfully, so a
    corrupt file leaves the current document untouched.
    """

    def __init__(
        self,
        session,
        file_manager: FileManager,
        validator: Optional[FileValidator] = None,
        id_generator: Optional[IdGenerator] = None,
    ):
        """
        Initialize DocumentPersistenceService.

        Args:
            session: DocumentSession to save from and load into
            file_manager: File-access collaborator
            validator: Upload validator (default: FileValidator())
            id_generator: Id source for re-keying duplicates on load
        """
        self.session = session
        self.file_manager = file_manager
        self.validator = validator or FileValidator()
        self.id_generator = id_generator or IdGenerator()
        self._target: Optional[Path] = None

    @property
    def current_target(self) -> Optional[Path]:
        """File the next plain save writes to (None until saved or opened)."""
        return self._target

    def export_bytes(self) -> bytes:
        """Serialize the current session without touching disk or the dirty flag."""
        document_file = serialize_document(self.session.snapshot())
        return dumps_document(document_file).encode("utf-8")

    def save(self, filename: Optional[str] = None) -> SavedDocument:
        """
        Save to the current target, or pick one from filename / project name.

        Raises:
            APIError: If the write fails (document stays dirty)
        """
        if self._target is not None:
            target = self._target
        else:
            name = filename or suggested_filename(
                self.session.project_info.name, self.file_manager.extension
            )
            target = self.file_manager.pick_target(name)
        return self._write(target)

    def save_as(self, filename: Optional[str]) -> SavedDocument:
        """
        Always write to a newly chosen file.

        Raises:
            FileAccessCancelled: If no file name was chosen
        """
        target = self.file_manager.pick_target(filename)
        return self._write(target)

    def _write(self, target: Path) -> SavedDocument:
        document_file = serialize_document(self.session.snapshot())
        content = dumps_document(document_file).encode("utf-8")
        path = self.file_manager.write_document(target, content)
        self._target = path
        self.session.mark_saved()
        logger.info(f"Document saved: {path.name}")
        return SavedDocument(
            filename=path.name,
            path=path,
            size=len(content),
            saved_at=document_file.saved_at,
        )

    def open(self, filename: Optional[str]) -> LoadedDocument:
        """
        Open a document from the documents directory.

        Raises:
            FileAccessCancelled: If no file was chosen
            DocumentFormatError: If the file cannot be loaded
        """
        path = self.file_manager.pick_source(filename)
        content = self.file_manager.read_document(path)
        loaded = deserialize_with_metadata(content, self.id_generator)
        self.session.load_document(loaded.document, dirty=False)
        self._target = path
        logger.info(f"Document opened: {path.name} (version {loaded.version})")
        return loaded

    def open_bytes(self, content: bytes, filename: str, mime_type: Optional[str] = None) -> LoadedDocument:
        """
        Open an uploaded document.

        The upload has no file on disk behind it, so the next plain save
        picks a new target.
        """
        self.validator.validate_file(filename, len(content), mime_type)
        loaded = deserialize_with_metadata(content, self.id_generator)
        self.session.load_document(loaded.document, dirty=False)
        self._target = None
        logger.info(f"Document opened from upload: {filename} (version {loaded.version})")
        return loaded

    def new_document(self) -> None:
        """Start over with a blank document; the next save picks a new target."""
        self.session.new_document()
        self._target = None
