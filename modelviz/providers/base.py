"""Provider adapter contract."""

from abc import ABC, abstractmethod

from pydantic import BaseModel, Field

from modelviz.models.blend import ModelSettings


class ProviderResponse(BaseModel):
    """What an adapter returns for a successful call.

    Token counts and cost are optional; missing values are estimated from
    the text and the pricing table.
    """

    text: str
    input_tokens: int | None = Field(default=None, ge=0)
    output_tokens: int | None = Field(default=None, ge=0)
    cost: float | None = Field(default=None, ge=0.0)


class ProviderAdapter(ABC):
    """Uniform async call interface for one or more AI backends."""

    @abstractmethod
    async def call(
        self,
        model_id: str,
        provider: str,
        prompt: str,
        system_prompt: str | None = None,
        settings: ModelSettings | None = None,
    ) -> ProviderResponse:
        """Run one completion.

        Raises:
            ProviderError: if the backend rejects or fails the request
        """
        pass
