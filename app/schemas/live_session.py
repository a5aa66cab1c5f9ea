"""Live session schemas."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class LiveSession(BaseModel):
    """A connection that is currently open on the relay."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    connection_id: str
    started_at: int = Field(description="Unix timestamp in milliseconds")


class LiveStreamsOut(BaseModel):
    streams: list[LiveSession]
