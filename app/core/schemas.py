import re

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

PHONE_RE = re.compile(r"^\+?[0-9]{10,15}$")


class CamelModel(BaseModel):
    """Wire model that serialises camelCase and accepts either camelCase or snake_case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


def normalize_phone(value: str) -> str:
    cleaned = re.sub(r"[\s\-()]", "", value or "")
    if not PHONE_RE.match(cleaned):
        raise ValueError("Phone must contain 10 to 15 digits, optionally prefixed with +")
    return cleaned
