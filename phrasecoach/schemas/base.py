from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Any, Optional, Generic, TypeVar

T = TypeVar('T')


class CamelModel(BaseModel):
    """Accepts and emits camelCase keys; snake_case still accepted on input."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class Envelope(CamelModel, Generic[T]):
    success: bool = True
    data: Optional[T] = None
    error: Optional[str] = None


class Message(CamelModel):
    message: str


class ErrorEnvelope(CamelModel):
    success: bool = False
    error: str
    error_code: str
    details: Optional[dict[str, Any]] = None
    request_id: Optional[str] = None
