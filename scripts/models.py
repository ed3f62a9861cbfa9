"""Data models for the extension registry."""

from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class DownloadDay(BaseModel):
    """Download count for a single day."""

    day: str = Field(description="ISO calendar date (YYYY-MM-DD)")
    downloads: int = Field(default=0, description="Downloads on that day")


class GithubInfo(BaseModel):
    """GitHub repository derived from package metadata."""

    model_config = ConfigDict(populate_by_name=True)

    username: str = Field(description="Repository owner")
    repository: str = Field(description="Repository name without .git suffix")

    # -1 means the count could not be determined
    issue_count: int = Field(default=-1, alias="issueCount")
    pull_count: int = Field(default=-1, alias="pullCount")


class SingleDownloads(BaseModel):
    """Download range response for exactly one requested package."""

    package: Optional[str] = None
    start: Optional[str] = None
    end: Optional[str] = None
    downloads: list[DownloadDay] = Field(default_factory=list)


class PackageDownloads(BaseModel):
    """One entry of a multi-package download range response."""

    package: Optional[str] = None
    downloads: Optional[list[DownloadDay]] = None


class MultiDownloads(BaseModel):
    """Download range response keyed by package name."""

    packages: dict[str, Optional[PackageDownloads]] = Field(default_factory=dict)


DownloadsPayload = Union[SingleDownloads, MultiDownloads]


class ExtensionRecord(BaseModel):
    """A package that survived version filtering.

    ``metadata`` keeps every other top-level field of the registry document
    (author, description, repository, homepage, engines, ...) in its original
    order, so the written registry mirrors what the registry returned.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(description="Package name, unique across the registry")
    versions: dict[str, dict[str, Any]] = Field(
        default_factory=dict, description="Surviving versions keyed by version string"
    )
    metadata: dict[str, Any] = Field(
        default_factory=dict, description="Remaining top-level registry fields"
    )

    # Download enrichment, set together or not at all
    downloads: Optional[list[DownloadDay]] = None
    downloads_last_week: Optional[int] = Field(default=None, alias="downloadsLastWeek")
    downloads_total: Optional[int] = Field(default=None, alias="downloadsTotal")

    github: Optional[GithubInfo] = None

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "ExtensionRecord":
        """Build a record from a registry document."""
        metadata = {
            key: value
            for key, value in document.items()
            if key not in ("name", "versions")
        }
        return cls(
            name=document["name"],
            versions=document.get("versions") or {},
            metadata=metadata,
        )

    def get(self, key: str, default: Any = None) -> Any:
        """Return a top-level registry field."""
        return self.metadata.get(key, default)

    def to_registry_entry(self) -> dict[str, Any]:
        """Flatten the record into the JSON object written to the registry."""
        entry: dict[str, Any] = {"name": self.name}
        entry.update(self.metadata)
        entry["versions"] = self.versions

        if self.downloads is not None:
            entry["downloads"] = [d.model_dump(mode="json") for d in self.downloads]
            entry["downloadsLastWeek"] = self.downloads_last_week
            entry["downloadsTotal"] = self.downloads_total

        if self.github is not None:
            entry["github"] = self.github.model_dump(mode="json", by_alias=True)

        return entry
