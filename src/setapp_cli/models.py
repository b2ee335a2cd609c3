"""Data models for the Setapp store catalog and install results."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

# Store API document schema. Only the fields we read are declared; pydantic
# ignores the (many) others.


class VersionAttributes(BaseModel):
    archive_url: str


class Version(BaseModel):
    attributes: VersionAttributes


class VersionList(BaseModel):
    data: list[Version] = Field(default_factory=list)


class ApplicationAttributes(BaseModel):
    name: str


class ApplicationRelationships(BaseModel):
    versions: VersionList


class Application(BaseModel):
    id: int
    attributes: ApplicationAttributes
    relationships: ApplicationRelationships


class ApplicationList(BaseModel):
    data: list[Application] = Field(default_factory=list)


class VendorRelationships(BaseModel):
    applications: ApplicationList


class Vendor(BaseModel):
    relationships: VendorRelationships


class VendorList(BaseModel):
    data: list[Vendor] = Field(default_factory=list)


class StoreRelationships(BaseModel):
    vendors: VendorList


class StoreData(BaseModel):
    relationships: StoreRelationships


class CatalogDocument(BaseModel):
    """The store API response body: vendors -> applications -> versions."""

    data: StoreData

    def iter_applications(self):
        for vendor in self.data.relationships.vendors.data:
            yield from vendor.relationships.applications.data


class CatalogEntry(BaseModel):
    """An installable application from the catalog."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    archive_url: str


class InstallTarget(CatalogEntry):
    """A catalog entry resolved from a user-supplied token."""

    token: str | None = None

    @classmethod
    def from_entry(cls, entry: CatalogEntry, token: str | None = None) -> "InstallTarget":
        return cls(id=entry.id, name=entry.name, archive_url=entry.archive_url, token=token)


class InstallState(StrEnum):
    """States of the per-target install pipeline."""

    PENDING = "pending"
    CHECKING = "checking"
    SKIPPED = "skipped"
    DOWNLOADING = "downloading"
    EXTRACTING = "extracting"
    LOCATING = "locating"
    PLACING = "placing"
    DONE = "done"
    FAILED = "failed"


class ErrorInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: str
    stage: InstallState | None = None
    message: str

    @classmethod
    def from_exception(cls, exc: BaseException, stage: InstallState | None = None) -> "ErrorInfo":
        return cls(kind=type(exc).__name__, stage=getattr(exc, "stage", None) or stage, message=str(exc))


class InstallResult(BaseModel):
    """Outcome of one install pipeline run."""

    model_config = ConfigDict(frozen=True)

    name: str
    success: bool
    skipped: bool = False
    error: ErrorInfo | None = None
    installed: tuple[str, ...] = ()
    states: tuple[InstallState, ...] = ()
