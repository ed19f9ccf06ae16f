"""Request models for blend endpoints."""

from pydantic import BaseModel, Field

from modelviz.models import BlendedModelConfig, ModelSettings


class BlendExecuteRequest(BaseModel):
    """Execute a blend configuration against one prompt."""

    config: BlendedModelConfig
    prompt: str
    system_prompt: str | None = None
    settings: ModelSettings | None = Field(
        default=None, description="Overrides the blend-level settings"
    )
