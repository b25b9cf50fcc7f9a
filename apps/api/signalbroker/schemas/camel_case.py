"""Base model for payloads exchanged with browser clients."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


# snake_case in Python, camelCase on the wire
class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    def dump(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)
