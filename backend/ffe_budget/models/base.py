"""Shared pydantic base for persisted document models."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class DocumentModel(BaseModel):
    """Base for every model written to the .ffe file.

    Attribute names are snake_case in Python and camelCase on disk. Keys we do
    not know about (written by newer or older versions) are kept and written
    back unchanged.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        validate_assignment=True,
    )

    def to_json_dict(self) -> dict:
        """Dump with on-disk key names."""
        return self.model_dump(mode="json", by_alias=True)
