from typing import Annotated, Dict, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from uniqproc.contracts import SNAPSHOT_SCHEMA_V1
from uniqproc.errors import RequestDecodeError


class AddRequest(BaseModel):
    verb: Literal["add"] = "add"
    name: str
    command: str


class RemoveRequest(BaseModel):
    verb: Literal["remove"] = "remove"
    name: str


class ListRequest(BaseModel):
    verb: Literal["list"] = "list"


class AliveRequest(BaseModel):
    verb: Literal["alive"] = "alive"


class ExecuteRequest(BaseModel):
    verb: Literal["execute"] = "execute"
    name: str


class KillRequest(BaseModel):
    verb: Literal["kill"] = "kill"
    name: str


class RestartRequest(BaseModel):
    verb: Literal["restart"] = "restart"
    name: str


class ToggleRequest(BaseModel):
    verb: Literal["toggle"] = "toggle"
    name: str


Request = Annotated[
    Union[
        AddRequest,
        RemoveRequest,
        ListRequest,
        AliveRequest,
        ExecuteRequest,
        KillRequest,
        RestartRequest,
        ToggleRequest,
    ],
    Field(discriminator="verb"),
]

_request_adapter: TypeAdapter[Request] = TypeAdapter(Request)


def decode_request(raw: bytes | str) -> Request:
    """Parse one JSON request document into its verb model."""
    try:
        return _request_adapter.validate_json(raw)
    except ValidationError as exc:
        raise RequestDecodeError(str(exc)) from exc


def encode_request(request: Request) -> bytes:
    return request.model_dump_json().encode("utf-8")


class RegistrySnapshot(BaseModel):
    """On-disk shape of the runtime snapshot."""

    schema_version: str = SNAPSHOT_SCHEMA_V1
    commands: Dict[str, str] = Field(default_factory=dict)
    running: Dict[str, int] = Field(default_factory=dict)
