"""Request and response schemas for category endpoints."""

from typing import Annotated

from pydantic import BaseModel, Field, model_validator

# -- Requests --


class AddRootRequest(BaseModel):
    name: str = Field(min_length=1)


class AddChildRequest(BaseModel):
    """Parent and child words in one sequence; the boundary is resolved server-side.

    Send either ``tokens`` or ``text`` (split on whitespace).
    """

    tokens: list[Annotated[str, Field(min_length=1)]] | None = None
    text: str | None = None

    @model_validator(mode="after")
    def _require_words(self) -> "AddChildRequest":
        if self.tokens is None and self.text is None:
            raise ValueError("Either tokens or text is required")
        return self

    def words(self) -> list[str]:
        if self.tokens is not None:
            return " ".join(self.tokens).split()
        return (self.text or "").split()


# -- Responses --


class TreeViewResponse(BaseModel):
    text: str


class ExistsResponse(BaseModel):
    name: str
    exists: bool
