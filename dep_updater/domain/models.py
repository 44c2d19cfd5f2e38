import re
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple
from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator

DEFAULT_BASE_BRANCH = "main"
REPOSITORY_PATTERN = re.compile(r"[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+")


class DependencyGroup(str, Enum):
    """The dependency sections of a package.json that the updater rewrites."""
    DEPENDENCIES = "dependencies"
    DEV_DEPENDENCIES = "devDependencies"
    PEER_DEPENDENCIES = "peerDependencies"

# Iteration order for updates and for reporting touched groups.
DEPENDENCY_GROUPS: Tuple[DependencyGroup, ...] = (
    DependencyGroup.DEPENDENCIES,
    DependencyGroup.DEV_DEPENDENCIES,
    DependencyGroup.PEER_DEPENDENCIES,
)


class RepositoryTarget(BaseModel):
    """
    Immutable unit of work: one GitHub repository and the branch to update it against.
    """
    model_config = ConfigDict(frozen=True)

    identifier: str = Field(..., description="Repository in owner/name form")
    base_branch: str = Field(DEFAULT_BASE_BRANCH, min_length=1, description="Branch the pull request targets")

    @field_validator("identifier")
    @classmethod
    def _check_identifier(cls, value: str) -> str:
        if not REPOSITORY_PATTERN.fullmatch(value):
            raise ValueError(f"'{value}' is not in owner/name form")
        return value


class Manifest(BaseModel):
    """
    A package.json read from a repository.

    `content` keeps the key order of the file so it can be written back unchanged
    apart from the updated dependency entries. `sha` is the blob sha GitHub requires
    to overwrite exactly this version of the file.
    """
    path: str = Field("package.json", description="Path of the manifest in the repository")
    content: Dict[str, Any] = Field(default_factory=dict, description="Parsed JSON document")
    sha: str = Field(..., description="Blob sha of the file at read time")
    indent: Any = Field(2, description="Indentation of the original text, passed to json.dumps")


class UpdateOutcome(BaseModel):
    """Result of applying a version change to a manifest."""
    model_config = ConfigDict(frozen=True)

    found: bool = False
    updated: bool = False
    already_up_to_date: bool = False
    updated_groups: List[DependencyGroup] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_consistency(self) -> "UpdateOutcome":
        if self.already_up_to_date and (not self.found or self.updated):
            raise ValueError("already_up_to_date requires found and not updated")
        if self.updated and not self.found:
            raise ValueError("updated requires found")
        return self


class RepositoryResult(BaseModel):
    """Outcome of running the update pipeline against one repository."""
    model_config = ConfigDict(frozen=True)

    repository: str
    success: bool
    skipped: bool = False
    skip_reason: Optional[str] = None
    error: Optional[str] = None
    pull_request_url: Optional[str] = None

    @classmethod
    def completed(cls, repository: str, pull_request_url: Optional[str] = None) -> "RepositoryResult":
        return cls(repository=repository, success=True, pull_request_url=pull_request_url)

    @classmethod
    def skip(cls, repository: str, reason: str) -> "RepositoryResult":
        return cls(repository=repository, success=True, skipped=True, skip_reason=reason)

    @classmethod
    def failure(cls, repository: str, error: str) -> "RepositoryResult":
        return cls(repository=repository, success=False, error=error)


class BatchSummary(BaseModel):
    """Ordered results of a batch run, partitioned for reporting."""
    model_config = ConfigDict(frozen=True)

    package_name: str
    version: str
    results: List[RepositoryResult] = Field(default_factory=list)

    @property
    def successful(self) -> List[RepositoryResult]:
        return [result for result in self.results if result.success and not result.skipped]

    @property
    def skipped(self) -> List[RepositoryResult]:
        return [result for result in self.results if result.skipped]

    @property
    def failed(self) -> List[RepositoryResult]:
        return [result for result in self.results if not result.success]
