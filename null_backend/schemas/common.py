"""
Schemi comuni / Common schemas.
Chiavi camelCase in uscita, camelCase o snake_case in ingresso.
camelCase keys on output, camelCase or snake_case on input.
"""

import math

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    def dump(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


def envelope(**data) -> dict:
    """Busta di successo / Success envelope."""
    return {"success": True, "data": data}


def pagination(page: int, limit: int, total: int) -> dict:
    return {"page": page, "limit": limit, "total": total, "pages": math.ceil(total / limit) if limit else 0}
