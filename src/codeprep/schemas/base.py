from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from uuid import UUID, uuid4
from datetime import datetime

DataT = TypeVar("DataT")


class BaseSchema(BaseModel):
    """Base schema with common fields.

    Serialized with camelCase keys; requests may use either camelCase or
    snake_case.
    """
    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
    )


# Properties to receive on object creation
# in
class CreateBase(BaseSchema):
    """Base class for create schemas.

    The id is assigned here, by the application, so callers may also supply
    their own.
    """
    id: Optional[UUID] = None

    def __init__(self, **data):
        super().__init__(**data)
        if not self.id:
            self.id = uuid4()


# Properties to return to client
# out
class TimestampSchema(BaseSchema):
    """Schema with timestamp fields."""
    created_at: datetime
    updated_at: datetime


class IDSchema(BaseSchema):
    """Schema with ID field."""
    id: UUID


class BaseResponseSchema(TimestampSchema, IDSchema):
    """Base response schema with ID and timestamp fields."""
    pass


class ApiResponse(BaseModel, Generic[DataT]):
    """Envelope shared by every successful response."""
    success: bool = True
    message: Optional[str] = None
    data: Optional[DataT] = None


class MessageResponse(BaseModel):
    """Envelope for responses that carry no data."""
    success: bool = True
    message: Optional[str] = None
