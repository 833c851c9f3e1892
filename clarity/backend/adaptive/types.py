from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Deque, Dict, List, Literal, Mapping, Optional

from clarity.backend import constants


FeatureId = Literal["chat", "timeline", "storyboard"]
CommandKind = Literal["transition"]


class InvalidInputError(ValueError):
	"""Raised when a caller passes an unknown feature id or a negative duration."""

	code = "invalid_input"


def validate_feature(value: object, *, field_name: str = "feature") -> FeatureId:
	if not isinstance(value, str) or value not in constants.FEATURE_IDS:
		raise InvalidInputError(
			f"{field_name} must be one of: {', '.join(constants.FEATURE_IDS)} (got {value!r})."
		)
	return value  # type: ignore[return-value]


def validate_duration(value: object, *, field_name: str = "duration_ms") -> int:
	if isinstance(value, bool) or not isinstance(value, (int, float)):
		raise InvalidInputError(f"{field_name} must be a number of milliseconds.")
	if value < 0:
		raise InvalidInputError(f"{field_name} must be >= 0 (got {value}).")
	return int(value)


class TransitionTrigger(str, Enum):
	INTENT = "intent"
	PREDICTION = "prediction"
	MANUAL = "manual"


@dataclass(frozen=True)
class TransitionEvent:
	from_feature: FeatureId
	to_feature: FeatureId
	timestamp: int
	duration_ms: int
	confidence: float
	context: Mapping[str, Any] = field(default_factory=dict)

	def as_dict(self) -> Dict[str, Any]:
		return {
			"from": self.from_feature,
			"to": self.to_feature,
			"timestamp": self.timestamp,
			"duration_ms": self.duration_ms,
			"confidence": self.confidence,
			"context": dict(self.context),
		}


def _default_usage() -> Dict[str, float]:
	return dict(constants.DEFAULT_USAGE_SPLIT)


@dataclass
class FeatureUsageProfile:
	usage_percent: Dict[str, float] = field(default_factory=_default_usage)
	session_count: int = 0
	transitions: Deque[TransitionEvent] = field(
		default_factory=lambda: deque(maxlen=constants.TRANSITION_LOG_MAX)
	)

	@classmethod
	def create(cls, *, max_transitions: int = constants.TRANSITION_LOG_MAX) -> "FeatureUsageProfile":
		return cls(transitions=deque(maxlen=max_transitions))


@dataclass
class UIState:
	mode: FeatureId = "chat"
	prediction: Optional[FeatureId] = None
	confidence: float = 0.0
	last_transition_at: int = 0

	def as_dict(self) -> Dict[str, Any]:
		return {
			"mode": self.mode,
			"prediction": self.prediction,
			"confidence": self.confidence,
			"last_transition_at": self.last_transition_at,
		}


@dataclass(frozen=True)
class PendingCommand:
	id: str
	target_feature: FeatureId
	reason: str
	confidence: float
	timestamp: int
	kind: CommandKind = "transition"

	def as_dict(self) -> Dict[str, Any]:
		return {
			"id": self.id,
			"type": self.kind,
			"target_feature": self.target_feature,
			"reason": self.reason,
			"confidence": self.confidence,
			"timestamp": self.timestamp,
		}


@dataclass(frozen=True)
class ClassificationResult:
	suggestion: Optional[FeatureId]
	confidence: float
	reason: str

	@property
	def should_transition(self) -> bool:
		return self.suggestion is not None and self.confidence > constants.INTENT_ACTION_THRESHOLD

	def as_dict(self) -> Dict[str, Any]:
		return {
			"suggestion": self.suggestion,
			"confidence": self.confidence,
			"reason": self.reason,
			"should_transition": self.should_transition,
		}


@dataclass(frozen=True)
class PredictionResult:
	feature: FeatureId
	confidence: float
	reasoning: str

	@property
	def should_suggest(self) -> bool:
		return self.confidence > constants.PREDICTION_SUGGEST_THRESHOLD

	def as_dict(self) -> Dict[str, Any]:
		return {
			"feature": self.feature,
			"confidence": self.confidence,
			"reasoning": self.reasoning,
			"should_suggest": self.should_suggest,
		}


@dataclass(frozen=True)
class TransitionRequest:
	trigger: TransitionTrigger
	target: FeatureId
	confidence: float
	reason: str
	time_in_mode_ms: Optional[int] = None
	context: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TransitionOutcome:
	accepted: bool
	detail: str
	event: Optional[TransitionEvent] = None
	command: Optional[PendingCommand] = None

	def as_dict(self) -> Dict[str, Any]:
		return {
			"accepted": self.accepted,
			"detail": self.detail,
			"event": self.event.as_dict() if self.event else None,
			"command": self.command.as_dict() if self.command else None,
		}


def serialize_commands(commands: List[PendingCommand]) -> List[Dict[str, Any]]:
	return [command.as_dict() for command in commands]


@dataclass
class AdaptiveState:
	"""Everything the adaptive engine mutates for one session."""

	profile: FeatureUsageProfile = field(default_factory=FeatureUsageProfile.create)
	ui: UIState = field(default_factory=UIState)
	commands: List[PendingCommand] = field(default_factory=list)
	last_command_ms: int = -1
	command_seq: int = 0
