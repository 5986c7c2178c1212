"""Shared pydantic configuration for models exchanged with the record store."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialising snake_case fields with camelCase aliases.

    Stored records use the camelCase JSON shape (``exchangeList``,
    ``currentExchange``, ``sentAt``); Python code works with snake_case
    attributes.  Both spellings are accepted on input.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> dict:
        """Return the JSON-compatible, camelCase representation."""
        return self.model_dump(mode="json", by_alias=True)
