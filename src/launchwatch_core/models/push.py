"""Push-event models for the significance filter."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class PushCommit(BaseModel):
    """One commit of a push webhook payload"""
    model_config = ConfigDict(frozen=True)

    id: str = ""
    message: str = ""
    added: List[str] = Field(default_factory=list)
    removed: List[str] = Field(default_factory=list)
    modified: List[str] = Field(default_factory=list)


class BlockerCountChange(BaseModel):
    model_config = ConfigDict(frozen=True)

    before: int
    after: int


class PushAnalysis(BaseModel):
    """Whether a push is worth re-evaluating the project for, and why"""
    model_config = ConfigDict(frozen=True)

    meaningful: bool = False
    cut_files_deleted: List[str] = Field(default_factory=list)
    cut_remaining: Optional[int] = None
    readme_changed: bool = False
    blockers_resolved: List[str] = Field(default_factory=list)
    blocker_count_change: Optional[BlockerCountChange] = None


class RepoAnalysis(BaseModel):
    """Output of the content-analysis collaborator that the push filter reads.

    ``cut`` is the list of files/directories the analysis said to delete and
    ``pride_blockers`` the free-text list of things holding the project back.
    """

    cut: List[str] = Field(default_factory=list)
    pride_blockers: List[str] = Field(default_factory=list)
