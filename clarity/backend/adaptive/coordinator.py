from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from clarity.backend import constants
from clarity.backend.adaptive.events import hour_of_day, now_ms
from clarity.backend.adaptive.policies import TRIGGER_THRESHOLDS
from clarity.backend.adaptive.types import (
	AdaptiveState,
	ClassificationResult,
	PendingCommand,
	PredictionResult,
	TransitionOutcome,
	TransitionRequest,
	TransitionTrigger,
	validate_duration,
	validate_feature,
)
from clarity.backend.adaptive.usage import UsageTracker


logger = logging.getLogger(__name__)

PolicyFn = Callable[["TransitionCoordinator", TransitionRequest, int], Tuple[bool, str]]


def _accept_intent(_coordinator: "TransitionCoordinator", request: TransitionRequest, _elapsed: int) -> Tuple[bool, str]:
	threshold = TRIGGER_THRESHOLDS[TransitionTrigger.INTENT]
	if request.confidence > threshold:
		return True, "intent_confident"
	return False, f"intent_below_threshold ({request.confidence:.2f} <= {threshold})"


def _accept_prediction(coordinator: "TransitionCoordinator", request: TransitionRequest, elapsed: int) -> Tuple[bool, str]:
	threshold = TRIGGER_THRESHOLDS[TransitionTrigger.PREDICTION]
	if request.confidence <= threshold:
		return False, f"prediction_below_threshold ({request.confidence:.2f} <= {threshold})"
	dwell = request.time_in_mode_ms if request.time_in_mode_ms is not None else elapsed
	if dwell < coordinator.min_dwell_ms:
		return False, f"dwell_too_short ({dwell}ms < {coordinator.min_dwell_ms}ms)"
	return True, "prediction_confident"


def _accept_manual(_coordinator: "TransitionCoordinator", _request: TransitionRequest, _elapsed: int) -> Tuple[bool, str]:
	return True, "manual_request"


_POLICIES: Dict[TransitionTrigger, PolicyFn] = {
	TransitionTrigger.INTENT: _accept_intent,
	TransitionTrigger.PREDICTION: _accept_prediction,
	TransitionTrigger.MANUAL: _accept_manual,
}


class TransitionCoordinator:
	"""Applies accepted mode changes to one session's state.

	Every transition goes through :meth:`handle`, which picks the acceptance
	policy for the request's trigger, refuses self-transitions, records the
	event on the usage profile, updates the UI state and queues exactly one
	command for the frontend poller.
	"""

	def __init__(
		self,
		state: AdaptiveState,
		*,
		min_dwell_ms: int = constants.PREDICTION_MIN_DWELL_MS,
		clock: Callable[[], int] = now_ms,
	):
		self.state = state
		self.tracker = UsageTracker(state.profile)
		self.min_dwell_ms = min_dwell_ms
		self._clock = clock

	@property
	def current_mode(self) -> str:
		return self.state.ui.mode

	def time_in_mode_ms(self, now: Optional[int] = None) -> int:
		current = self._clock() if now is None else now
		return max(current - self.state.ui.last_transition_at, 0)

	def sync_mode(
		self,
		mode: str,
		*,
		time_in_mode_ms: Optional[int] = None,
		now: Optional[int] = None,
	) -> bool:
		"""Adopt the caller's view of the current mode without recording a transition.

		Returns ``True`` when the stored mode changed. No event or command is produced.
		"""
		mode_id = validate_feature(mode, field_name="current_mode")
		ui = self.state.ui
		if mode_id == ui.mode:
			return False
		current = self._clock() if now is None else now
		dwell = validate_duration(time_in_mode_ms or 0, field_name="time_in_mode_ms")
		logger.debug("resyncing mode %s -> %s (caller reports %sms in mode)", ui.mode, mode_id, dwell)
		ui.mode = mode_id
		ui.last_transition_at = max(current - dwell, 0)
		return True

	def handle(self, request: TransitionRequest, *, now: Optional[int] = None) -> TransitionOutcome:
		target = validate_feature(request.target, field_name="target")
		current = self._clock() if now is None else now
		ui = self.state.ui
		if target == ui.mode:
			logger.debug("ignoring %s transition to current mode %s", request.trigger.value, target)
			return TransitionOutcome(accepted=False, detail="already_in_mode")

		if request.time_in_mode_ms is not None:
			elapsed = request.time_in_mode_ms
		else:
			elapsed = self.time_in_mode_ms(current)
		accepted, detail = _POLICIES[request.trigger](self, request, elapsed)
		if not accepted:
			logger.debug("rejected %s transition %s -> %s: %s", request.trigger.value, ui.mode, target, detail)
			return TransitionOutcome(accepted=False, detail=detail)

		previous = ui.mode
		context: Dict[str, Any] = {
			"trigger": request.trigger.value,
			"previous_mode": previous,
			"time_of_day": hour_of_day(current),
		}
		context.update(request.context)
		event = self.tracker.record_transition(
			previous,
			target,
			elapsed,
			request.confidence,
			context,
			timestamp=current,
		)
		ui.mode = target
		ui.prediction = target
		ui.confidence = event.confidence
		ui.last_transition_at = current
		command = self._enqueue(target, request.reason, event.confidence, current)
		logger.info(
			"transition %s -> %s via %s (confidence=%.2f, dwell=%sms, command=%s)",
			previous,
			target,
			request.trigger.value,
			event.confidence,
			elapsed,
			command.id,
		)
		return TransitionOutcome(accepted=True, detail=detail, event=event, command=command)

	def apply_intent(
		self,
		result: ClassificationResult,
		*,
		context: Optional[Mapping[str, Any]] = None,
		now: Optional[int] = None,
	) -> TransitionOutcome:
		if result.suggestion is None:
			return TransitionOutcome(accepted=False, detail="no_suggestion")
		request = TransitionRequest(
			trigger=TransitionTrigger.INTENT,
			target=result.suggestion,
			confidence=result.confidence,
			reason=result.reason,
			context=dict(context or {}),
		)
		return self.handle(request, now=now)

	def apply_prediction(
		self,
		result: PredictionResult,
		time_in_mode_ms: int,
		*,
		now: Optional[int] = None,
	) -> TransitionOutcome:
		request = TransitionRequest(
			trigger=TransitionTrigger.PREDICTION,
			target=result.feature,
			confidence=result.confidence,
			reason=result.reasoning,
			time_in_mode_ms=time_in_mode_ms,
		)
		return self.handle(request, now=now)

	def request_transition(
		self,
		target: str,
		reason: str = "Manual request",
		*,
		confidence: float = 1.0,
		now: Optional[int] = None,
	) -> TransitionOutcome:
		request = TransitionRequest(
			trigger=TransitionTrigger.MANUAL,
			target=validate_feature(target, field_name="target"),
			confidence=confidence,
			reason=reason,
		)
		return self.handle(request, now=now)

	def drain_commands(self) -> List[PendingCommand]:
		commands = list(self.state.commands)
		self.state.commands.clear()
		return commands

	def _enqueue(self, target: str, reason: str, confidence: float, timestamp: int) -> PendingCommand:
		# Ids stay unique within a session even when two commands share a millisecond.
		if timestamp == self.state.last_command_ms:
			self.state.command_seq += 1
			command_id = f"transition-{timestamp}-{self.state.command_seq}"
		else:
			self.state.last_command_ms = timestamp
			self.state.command_seq = 0
			command_id = f"transition-{timestamp}"
		command = PendingCommand(
			id=command_id,
			target_feature=target,  # type: ignore[arg-type]
			reason=reason,
			confidence=confidence,
			timestamp=timestamp,
		)
		self.state.commands.append(command)
		return command
