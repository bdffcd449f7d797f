"""Shared lightweight schemas."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for API bodies: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Message(BaseModel):
    """Standard response envelope used for plain text messages."""

    message: str


class ErrorResponse(BaseModel):
    """Body returned for every failed request."""

    message: str
    code: str
