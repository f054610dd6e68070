"""
llmwire - Data Models

Response models are pydantic so they validate what the API sends back.
Request models are plain dataclasses serialized with ``to_dict()`` and
passed through to the API unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import DecodeError


# ============================================================
# Enums
# ============================================================

class Role(str, Enum):
    """Message roles."""
    USER = "user"
    ASSISTANT = "assistant"


class StopReason(str, Enum):
    """Reasons the model stopped generating."""
    END_TURN = "end_turn"
    MAX_TOKENS = "max_tokens"
    STOP_SEQUENCE = "stop_sequence"
    TOOL_USE = "tool_use"
    PAUSE_TURN = "pause_turn"
    REFUSAL = "refusal"


# ============================================================
# Response Models
# ============================================================

class Usage(BaseModel):
    """Token usage information."""
    input_tokens: int = 0
    output_tokens: int = 0
    cache_creation_input_tokens: Optional[int] = None
    cache_read_input_tokens: Optional[int] = None

    model_config = ConfigDict(extra="allow")


class ContentBlock(BaseModel):
    """
    A content block in a message response.

    Only ``type`` is modeled; every other field (``text``, ``id``, ``name``,
    ``input``, ``thinking``, ...) is kept as-is.
    """
    type: str

    model_config = ConfigDict(extra="allow")

    def as_text(self) -> Optional[str]:
        """Get text content if this is a text block."""
        if self.type == "text":
            return getattr(self, "text", "")
        return None

    def as_tool_use(self) -> Optional[Tuple[str, str, Any]]:
        """Get (id, name, input) if this is a tool use block."""
        if self.type == "tool_use":
            return (
                getattr(self, "id", ""),
                getattr(self, "name", ""),
                getattr(self, "input", None),
            )
        return None

    @property
    def is_text(self) -> bool:
        return self.type == "text"

    @property
    def is_tool_use(self) -> bool:
        return self.type == "tool_use"


class Message(BaseModel):
    """A message returned by the Messages API."""
    id: str
    type: str = "message"
    role: Role = Role.ASSISTANT
    content: List[ContentBlock] = Field(default_factory=list)
    model: str = ""
    stop_reason: Optional[StopReason] = None
    stop_sequence: Optional[str] = None
    usage: Usage = Field(default_factory=Usage)

    def text(self) -> str:
        """Concatenated text of all text blocks."""
        return "".join(self.text_blocks())

    def text_blocks(self) -> List[str]:
        """Text of each text block, in order."""
        return [
            block.as_text()
            for block in self.content
            if block.is_text
        ]

    def tool_uses(self) -> List[Tuple[str, str, Any]]:
        """(id, name, input) for each tool use block."""
        return [
            block.as_tool_use()
            for block in self.content
            if block.is_tool_use
        ]

    def has_tool_use(self) -> bool:
        """Check if the message contains any tool use requests."""
        return any(block.is_tool_use for block in self.content)

    def stopped_for_tool_use(self) -> bool:
        """Check if the model stopped to request a tool call."""
        return self.stop_reason == StopReason.TOOL_USE

    @classmethod
    def from_dict(cls, data: Any, request_id: Optional[str] = None) -> Message:
        """Validate a decoded JSON response body."""
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise DecodeError(
                f"Invalid message response: {exc}",
                request_id=request_id,
            ) from exc


# ============================================================
# Request Models
# ============================================================

@dataclass
class MessageParam:
    """A conversation turn sent to the API."""
    role: str
    content: Union[str, List[Dict[str, Any]]]

    @classmethod
    def user(cls, content: Union[str, List[Dict[str, Any]]]) -> MessageParam:
        """Create a user message."""
        return cls(role=Role.USER.value, content=content)

    @classmethod
    def assistant(cls, content: Union[str, List[Dict[str, Any]]]) -> MessageParam:
        """Create an assistant message."""
        return cls(role=Role.ASSISTANT.value, content=content)

    def to_dict(self) -> Dict[str, Any]:
        return {"role": self.role, "content": self.content}


@dataclass
class MessageCreateParams:
    """
    Parameters for ``messages.create`` and ``messages.stream``.

    Sampling parameters, tools and anything in ``extra`` are forwarded to
    the API untouched.
    """
    model: str
    max_tokens: int
    messages: List[Union[MessageParam, Dict[str, Any]]] = field(default_factory=list)
    system: Optional[Union[str, List[Dict[str, Any]]]] = None
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    top_k: Optional[int] = None
    stop_sequences: Optional[List[str]] = None
    tools: Optional[List[Dict[str, Any]]] = None
    tool_choice: Optional[Dict[str, Any]] = None
    thinking: Optional[Dict[str, Any]] = None
    metadata: Optional[Dict[str, Any]] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON request body."""
        payload: Dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": [
                m.to_dict() if isinstance(m, MessageParam) else m
                for m in self.messages
            ],
        }

        optional = {
            "system": self.system,
            "temperature": self.temperature,
            "top_p": self.top_p,
            "top_k": self.top_k,
            "stop_sequences": self.stop_sequences,
            "tools": self.tools,
            "tool_choice": self.tool_choice,
            "thinking": self.thinking,
            "metadata": self.metadata,
        }
        for key, value in optional.items():
            if value is not None:
                payload[key] = value

        payload.update(self.extra)
        return payload


def params_to_dict(params: Union[MessageCreateParams, Dict[str, Any]]) -> Dict[str, Any]:
    """Accept either a MessageCreateParams or an already-built request dict."""
    if isinstance(params, MessageCreateParams):
        return params.to_dict()
    return dict(params)
