"""Request models for the participant API."""

from pydantic import BaseModel, Field

from .exchange import Exchange


class UpdateExchangeRequest(BaseModel):
    """Replacement content for one exchange of the caller's interaction."""

    exchange: Exchange


class SendMessageRequest(BaseModel):
    """A participant turn in the current exchange.

    The content must be a non-empty string; pydantic returns a 422 response
    when the constraint is violated.
    """

    content: str = Field(
        ...,
        min_length=1,
        max_length=4000,
        description="The participant's message content.",
    )
