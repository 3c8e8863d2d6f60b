"""Shared model configuration: camelCase on disk and over the wire."""

import uuid

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def new_id() -> str:
    return uuid.uuid4().hex


class CamelModel(BaseModel):
    """Base for stored documents and API payloads.

    Field names are snake_case in Python and camelCase on disk and over the
    wire, so documents written by earlier releases load unchanged.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_document(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
