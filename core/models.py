from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, model_validator
from pydantic.config import ConfigDict


TOOL_NAME = "create_midi"


# =========================
# Error kinds
# =========================
class ErrorCode(str, Enum):
    invalid_params = "invalid_params"
    internal_error = "internal_error"
    method_not_found = "method_not_found"


class ToolError(Exception):
    """
    The only exception the build core raises on purpose.
    Caught at the request boundary and turned into an error-flagged ToolResponse.
    """

    def __init__(self, code: ErrorCode, message: str):
        super().__init__(message)
        self.code = code
        self.message = message

    @classmethod
    def invalid_params(cls, message: str) -> "ToolError":
        return cls(ErrorCode.invalid_params, message)

    @classmethod
    def internal(cls, message: str) -> "ToolError":
        return cls(ErrorCode.internal_error, message)

    @classmethod
    def method_not_found(cls, name: str) -> "ToolError":
        return cls(ErrorCode.method_not_found, f"Unknown tool: {name}")


# =========================
# Base Model Config
# =========================
class _ContractBaseModel(BaseModel):
    """
    Contract hardening:
    - forbid extra fields
    - accept both python names and wire aliases
    """
    model_config = ConfigDict(extra="forbid", populate_by_name=True)


# =========================
# Tool arguments
# =========================
class CreateMidiArgs(BaseModel):
    """
    Arguments of the create_midi tool.
    Exactly one of composition / composition_file is required; the service checks that.
    """
    model_config = ConfigDict(extra="ignore")

    title: str = Field(..., description="Song title")
    composition: Optional[Union[Dict[str, Any], str]] = Field(
        default=None,
        description="Composition object, or the same object as a JSON string",
    )
    composition_file: Optional[str] = Field(
        default=None,
        description="Absolute path of a UTF-8 JSON file holding the composition. Prefer this for large compositions.",
    )
    output_path: str = Field(..., description="Output .mid path. Relative paths go under the per-user MIDI directory.")


# =========================
# Tool results
# =========================
class TextContent(_ContractBaseModel):
    type: Literal["text"] = "text"
    text: str


class ToolResponse(_ContractBaseModel):
    content: List[TextContent] = Field(default_factory=list)
    is_error: bool = Field(default=False, alias="isError")
    error_code: Optional[ErrorCode] = Field(default=None, alias="errorCode")

    @model_validator(mode="after")
    def _validate_error_code(self) -> "ToolResponse":
        if self.is_error and self.error_code is None:
            raise ValueError("isError=true requires errorCode")
        if not self.is_error and self.error_code is not None:
            raise ValueError("errorCode is only allowed when isError=true")
        return self

    @classmethod
    def ok(cls, text: str) -> "ToolResponse":
        return cls(content=[TextContent(text=text)])

    @classmethod
    def from_error(cls, err: ToolError) -> "ToolResponse":
        return cls(
            content=[TextContent(text=f"Error: {err.message}")],
            is_error=True,
            error_code=err.code,
        )

    @property
    def text(self) -> str:
        return "\n".join(c.text for c in self.content)


class ToolCallRequest(_ContractBaseModel):
    name: str = Field(..., min_length=1)
    arguments: Dict[str, Any] = Field(default_factory=dict)


class ToolDescriptor(_ContractBaseModel):
    name: str
    description: str
    input_schema: Dict[str, Any] = Field(..., alias="inputSchema")


class ProgressUpdate(_ContractBaseModel):
    percent: int = Field(..., ge=0, le=100)
    message: str
