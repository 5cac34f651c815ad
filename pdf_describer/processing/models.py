"""Pydantic schema for persisted page records.

Field names on disk are camelCase (``pageNumber``, ``imageDescription``) so
result directories written by earlier runs stay readable.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from pdf_describer.processing.types import FieldResult, field_text


class PageResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    page_number: int = Field(..., ge=1, alias="pageNumber")
    text: str
    image_description: str = Field(..., alias="imageDescription")

    @classmethod
    def from_fields(cls, *, page_number: int, text: FieldResult, description: FieldResult) -> PageResult:
        """Build a record, rendering degraded fields as their sentinel strings."""
        return cls(
            page_number=page_number,
            text=field_text(text),
            image_description=field_text(description),
        )

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)


CombinedResult = list[PageResult]

combined_adapter: TypeAdapter[list[PageResult]] = TypeAdapter(list[PageResult])


def dump_combined(results: CombinedResult) -> bytes:
    return combined_adapter.dump_json(results, by_alias=True, indent=2)
