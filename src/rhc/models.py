"""Domain models.

Request definitions and environments are read from TOML files and validated
with pydantic.  ``Choice`` is the row shown in the interactive list; it keeps
either the parsed definition or the reason it could not be parsed.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class KeyValue(BaseModel):
    """A single ``name = value`` pair (environment variable, header, param)."""

    name: str
    value: str


class Method(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"
    PATCH = "PATCH"
    TRACE = "TRACE"


class Metadata(BaseModel):
    name: str | None = None
    description: str | None = None


class Request(BaseModel):
    method: Method
    url: str


class Query(BaseModel):
    params: list[KeyValue] = Field(default_factory=list)


class Headers(BaseModel):
    headers: list[KeyValue] = Field(default_factory=list)


class Body(BaseModel):
    """Request body.

    ``content`` is a string for ``json`` and ``text`` bodies and a list of
    name/value pairs for ``urlencoded`` forms.
    """

    type: Literal["json", "text", "urlencoded"]
    content: str | list[KeyValue]

    @model_validator(mode="after")
    def _content_matches_type(self) -> "Body":
        is_form = self.type == "urlencoded"
        if is_form and isinstance(self.content, str):
            raise ValueError("urlencoded body content must be a list of name/value pairs")
        if not is_form and not isinstance(self.content, str):
            raise ValueError(f"{self.type} body content must be a string")
        return self


class RequestDefinition(BaseModel):
    """A stored, templated description of one HTTP request."""

    model_config = ConfigDict(extra="forbid")

    metadata: Metadata | None = None
    request: Request
    query: Query | None = None
    headers: Headers | None = None
    body: Body | None = None


class Environment(BaseModel):
    """A named set of variable bindings selectable as a unit."""

    name: str
    variables: list[KeyValue] = Field(default_factory=list)

    def as_dict(self) -> dict[str, str]:
        return {v.name: v.value for v in self.variables}


@dataclass
class Choice:
    """An entry in the definition list.

    Exactly one of ``definition`` / ``error`` is set once the file has been
    loaded.
    """

    path: Path
    name: str
    definition: RequestDefinition | None = None
    error: str | None = None

    @property
    def description(self) -> str | None:
        if self.definition is None or self.definition.metadata is None:
            return None
        return self.definition.metadata.description

    @property
    def url(self) -> str:
        if self.definition is None:
            return ""
        return self.definition.request.url
