"""Domain models for catalog items, backend results and reports."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, computed_field

from .types import BackendErrorKind, ReferenceType


class SourceItem(BaseModel):
    """A catalog entry to be resolved. Never mutated once built."""

    model_config = ConfigDict(frozen=True)

    uri: str | None = Field(default=None, description="Stable catalog URI")
    id: str | None = Field(default=None, description="Catalog ID")
    name: str | None = Field(default=None, description="Display name")
    artists: list[str] = Field(default_factory=list, description="Contributor names, source order")
    duration_ms: int | None = Field(default=None, description="Duration in milliseconds")

    @property
    def has_identity(self) -> bool:
        """Whether the item carries enough to build a cache key and a query."""
        return bool(self.uri and self.name and self.name.strip())


class Classification(BaseModel):
    """What the catalog says a reference points to."""

    model_config = ConfigDict(frozen=True)

    type: str = Field(..., description="Reference kind as reported by the catalog")
    id: str = Field(..., description="Catalog ID of the item or collection")
    uri: str | None = Field(default=None, description="Catalog URI")
    name: str | None = Field(default=None, description="Display name")
    contributors: list[str] = Field(default_factory=list, description="Contributor names")
    total: int | None = Field(default=None, description="Collection size, when known")

    @property
    def is_item(self) -> bool:
        return self.type == ReferenceType.ITEM

    @property
    def is_collection(self) -> bool:
        return self.type == ReferenceType.COLLECTION

    def to_source_item(self) -> SourceItem:
        """Build the source item for a single-item reference."""
        return SourceItem(
            uri=self.uri,
            id=self.id,
            name=self.name,
            artists=list(self.contributors),
        )


class CatalogPage(BaseModel):
    """One page of a collection."""

    model_config = ConfigDict(frozen=True)

    items: list[SourceItem] = Field(default_factory=list)
    total: int = 0
    offset: int = 0
    has_next: bool = False


class TrackInfo(BaseModel):
    """Metadata of a track returned by a search backend."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    identifier: str = Field(..., description="Backend-side identifier (e.g. video ID)")
    title: str = Field(..., description="Track title")
    author: str | None = Field(default=None, description="Uploader or artist")
    length: int = Field(default=0, description="Length in milliseconds")
    uri: str | None = Field(default=None, description="Playable URI")
    is_stream: bool = Field(default=False, alias="isStream")
    is_seekable: bool = Field(default=True, alias="isSeekable")
    source_name: str | None = Field(default=None, alias="sourceName")


class LoadedTrack(BaseModel):
    """Top search result of a backend query."""

    model_config = ConfigDict(frozen=True)

    track: str = Field(..., description="Opaque encoded track identifier")
    info: TrackInfo


class BackendError(BaseModel):
    """Last error recorded on a backend."""

    model_config = ConfigDict(frozen=True)

    kind: BackendErrorKind
    message: str
    status_code: int | None = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def transient(self) -> bool:
        return self.kind.transient


class ResolvedTrack(BaseModel):
    """A source item paired with the result it resolved to."""

    model_config = ConfigDict(frozen=True)

    source_uri: str
    track: str
    info: TrackInfo


class ReportCounts(BaseModel):
    """Tallies of a resolution run."""

    model_config = ConfigDict(frozen=True)

    completed: int
    failed: int
    total: int


class ResolutionReport(BaseModel):
    """Outcome of one pipeline invocation."""

    model_config = ConfigDict(frozen=True)

    reference: str
    type: ReferenceType
    name: str | None = None
    completed: list[ResolvedTrack] = Field(default_factory=list)
    failed: list[str | None] = Field(default_factory=list)
    limit: int | None = Field(default=None, description="Limit applied; None means unbounded")
    failed_limit: bool = True
    started_at: datetime
    finished_at: datetime
    elapsed: float = Field(..., ge=0.0, description="Wall-clock seconds for the whole run")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def counts(self) -> ReportCounts:
        return ReportCounts(
            completed=len(self.completed),
            failed=len(self.failed),
            total=len(self.completed) + len(self.failed),
        )
