"""Tool response envelope.

Wire shape (camelCase on the wire, snake_case in Python)::

    {"content": [{"type": "text", "text": ...} | {"type": "image", ...}],
     "isError": bool, "nextSteps": [{"tool", "label", "params", "priority"}]}
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class TextContent(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ImageContent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: Literal["image"] = "image"
    data: str  # base64
    mime_type: str = Field(alias="mimeType")


ContentItem = Annotated[TextContent | ImageContent, Field(discriminator="type")]


class NextStep(BaseModel):
    """Suggested follow-up call shown to the agent after a tool succeeds."""

    tool: str | None = None
    label: str
    params: dict[str, str | int | float | bool] = Field(default_factory=dict)
    priority: int | None = None


class ToolResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    content: list[ContentItem]
    is_error: bool = Field(False, alias="isError")
    next_steps: list[NextStep] | None = Field(None, alias="nextSteps")

    @property
    def text(self) -> str:
        """All text content items joined by newlines."""
        return "\n".join(
            item.text for item in self.content if isinstance(item, TextContent)
        )

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


def text_response(
    text: str,
    *,
    is_error: bool = False,
    next_steps: list[NextStep] | None = None,
) -> ToolResponse:
    return ToolResponse(
        content=[TextContent(text=text)],
        is_error=is_error,
        next_steps=next_steps,
    )


def error_response(message: str) -> ToolResponse:
    """Error envelope. An empty message is replaced so isError never carries blank text."""
    return text_response(message or "Unknown error", is_error=True)
