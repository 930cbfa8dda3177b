from typing import Any, Dict

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for every record and request body: camelCase on the wire, snake_case in Python"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_document(self) -> Dict[str, Any]:
        """JSON-compatible dict keyed by the wire names, without absent fields"""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def changes(self) -> Dict[str, Any]:
        """Fields the client actually sent, keyed by the wire names"""
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)
