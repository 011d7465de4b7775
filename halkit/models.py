"""Hypermedia models shared by the resolver, the connection and the client."""

import re
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

T = TypeVar("T")

_EXPRESSION = re.compile(r"\{([^{}]*)\}")
_OPERATORS = "+#./;?&"


class NoContent:
    """Marker result type for responses whose body should not be decoded."""


class Link(BaseModel):
    """A relation plus the href (or href template) that reaches it."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    href: str
    rel: str | None = None
    templated: bool = False
    name: str | None = None
    title: str | None = None
    type: str | None = None

    @field_validator("href")
    @classmethod
    def _href_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("href must be a non-empty string.")
        return value

    @property
    def variables(self) -> list[str]:
        """Template variable names in the order they appear in href."""
        names: list[str] = []
        for expression in _EXPRESSION.findall(self.href):
            if expression[:1] in _OPERATORS:
                expression = expression[1:]
            for spec in expression.split(","):
                name = spec.split(":", 1)[0].rstrip("*").strip()
                if name and name not in names:
                    names.append(name)
        return names


class Resource(BaseModel):
    """A HAL document: state properties plus ``_links`` and ``_embedded``."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    links: dict[str, Link | list[Link]] = Field(default_factory=dict, alias="_links")
    embedded: dict[str, Any] = Field(default_factory=dict, alias="_embedded")

    @model_validator(mode="after")
    def _name_relations(self) -> "Resource":
        named: dict[str, Link | list[Link]] = {}
        for rel, value in self.links.items():
            if isinstance(value, list):
                named[rel] = [_with_rel(link, rel) for link in value]
            else:
                named[rel] = _with_rel(value, rel)
        self.links = named
        return self

    def has_link(self, rel: str) -> bool:
        return rel in self.links

    def link(self, rel: str) -> Link:
        """Return the first link for ``rel``; raises KeyError when absent."""
        value = self.links[rel]
        if isinstance(value, list):
            if not value:
                raise KeyError(rel)
            return value[0]
        return value


class RootResource(Resource):
    """The API entry point returned by root discovery."""


def _with_rel(link: Link, rel: str) -> Link:
    if link.rel is not None:
        return link
    return link.model_copy(update={"rel": rel})


@dataclass(frozen=True)
class ApiResponse(Generic[T]):
    """Status, headers, raw body and decoded body of one completed request."""

    status_code: int
    headers: httpx.Headers
    body: bytes
    body_as_object: T | None = None
