"""Request and response models for comparison endpoints."""

from pydantic import BaseModel, Field

from modelviz.models import ComparisonAnalysis, ComparisonModel, ComparisonSession


class ComparisonCreateRequest(BaseModel):
    name: str = Field(min_length=1)
    prompt: str
    models: list[ComparisonModel]
    system_prompt: str | None = None
    description: str | None = None
    tags: list[str] = Field(default_factory=list)
    save: bool = Field(default=True, description="Persist the completed session")


class ComparisonRunResponse(BaseModel):
    session: ComparisonSession
    analysis: ComparisonAnalysis


class ComparisonDeleteResponse(BaseModel):
    session_id: str
    deleted: bool
