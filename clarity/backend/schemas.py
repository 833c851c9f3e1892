from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ApiError(BaseModel):
	model_config = ConfigDict(extra="forbid")

	code: str
	message: str
	evidence: List[str] = Field(default_factory=list)


class ApiEnvelope(BaseModel):
	model_config = ConfigDict(extra="allow")

	ok: bool
	generated_at: str
	request_id: Optional[str] = None
	session_id: Optional[str] = None
	data: Optional[Dict[str, Any]] = None
	error: Optional[ApiError] = None


# Feature ids stay plain strings here; the adaptive core rejects unknown ones
# with ``invalid_input``.
class MessageRequest(BaseModel):
	model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

	message: str = Field(..., min_length=1, description="User chat message.")
	current_mode: str = Field(default="chat", description="chat | timeline | storyboard")
	apply: bool = Field(default=True, description="Apply a confident suggestion as a transition.")


class UsageRequest(BaseModel):
	model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

	feature: str = Field(..., description="chat | timeline | storyboard")
	duration_ms: int = Field(..., description="Time spent in the feature, in milliseconds.")
	context: Dict[str, Any] = Field(default_factory=dict)


class PredictRequest(BaseModel):
	model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

	current_mode: str = Field(..., description="chat | timeline | storyboard")
	time_in_mode_ms: int = Field(default=0, description="Time spent in the current mode.")
	auto_apply: bool = Field(default=False, description="Let the coordinator act on a confident prediction.")


class TransitionRequestBody(BaseModel):
	model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

	target: str = Field(..., description="chat | timeline | storyboard")
	reason: Optional[str] = None

