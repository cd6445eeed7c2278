"""Pydantic models for curseforge-mcp data structures."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

COOKIE_DOMAIN = ".curseforge.com"


class CookieEntry(BaseModel):
    """One browser session cookie."""
    name: str
    value: str
    domain: str = COOKIE_DOMAIN
    path: str = "/"

    model_config = ConfigDict(frozen=True)

    def to_playwright(self) -> dict:
        return {"name": self.name, "value": self.value, "domain": self.domain, "path": self.path}


class UploadRelation(BaseModel):
    """A dependency declared on an uploaded file."""
    slug: str
    type: Literal[
        "embeddedLibrary",
        "incompatible",
        "optionalDependency",
        "requiredDependency",
        "tool",
    ]


class UploadRelations(BaseModel):
    projects: list[UploadRelation] = Field(default_factory=list)


class UploadMetadata(BaseModel):
    """The `metadata` part of an Upload API file submission."""
    changelog: Optional[str] = None
    changelog_type: Optional[Literal["text", "html", "markdown"]] = Field(default=None, alias="changelogType")
    display_name: Optional[str] = Field(default=None, alias="displayName")
    parent_file_id: Optional[int] = Field(default=None, alias="parentFileID")
    game_versions: list[int] = Field(default_factory=list, alias="gameVersions")
    release_type: Literal["alpha", "beta", "release"] = Field(default="release", alias="releaseType")
    relations: Optional[UploadRelations] = None

    model_config = ConfigDict(populate_by_name=True)

    def to_json(self) -> str:
        """Serialize with the wire (camelCase) names, omitting unset fields."""
        return self.model_dump_json(by_alias=True, exclude_none=True)


@dataclass
class ExtractionResult:
    """Outcome of one attempt to pull session cookies from a browser."""
    browser: str
    cookies: list[CookieEntry] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return len(self.cookies) > 0
