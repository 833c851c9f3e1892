from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

from clarity.backend import constants
from clarity.backend.adaptive import TransitionCoordinator, UsageTracker, classify, predict_next
from clarity.backend.adaptive.types import serialize_commands, validate_duration, validate_feature
from clarity.backend.services import session_service
from clarity.backend.services.session_service import AdaptiveSession


logger = logging.getLogger(__name__)


def min_dwell_ms() -> int:
	return session_service.int_env("CLARITY_PREDICTION_MIN_DWELL_MS", constants.PREDICTION_MIN_DWELL_MS, minimum=0)


def _coordinator(session: AdaptiveSession) -> TransitionCoordinator:
	return TransitionCoordinator(session.state, min_dwell_ms=min_dwell_ms())


def submit_message(
	*,
	session_id: str,
	message: str,
	current_mode: str,
	apply: bool = True,
) -> Dict[str, Any]:
	result = classify(message, current_mode)
	session = session_service.ensure_session(session_id)
	with session.lock:
		outcome = None
		if apply and result.suggestion is not None:
			coordinator = _coordinator(session)
			coordinator.sync_mode(current_mode)
			outcome = coordinator.apply_intent(result, context={"source": "message"})
		ui_state = session.state.ui.as_dict()
	return {
		"classification": result.as_dict(),
		"transitioned": bool(outcome and outcome.accepted),
		"transition": outcome.as_dict() if outcome else None,
		"ui_state": ui_state,
	}


def record_feature_usage(
	*,
	session_id: str,
	feature: str,
	duration_ms: int,
	context: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
	feature_id = validate_feature(feature)
	duration = validate_duration(duration_ms)
	session = session_service.ensure_session(session_id)
	with session.lock:
		tracker = UsageTracker(session.state.profile)
		tracker.record_usage(feature_id, duration)
		summary = tracker.summary()
	logger.debug("session %s usage %s +%sms context=%s", session_id, feature_id, duration, dict(context or {}))
	return summary


def predict_next_feature(
	*,
	session_id: str,
	current_mode: str,
	time_in_mode_ms: int,
	auto_apply: bool = False,
) -> Dict[str, Any]:
	session = session_service.ensure_session(session_id)
	with session.lock:
		prediction = predict_next(current_mode, time_in_mode_ms, session.state.profile.transitions)
		outcome = None
		if auto_apply and prediction.should_suggest:
			coordinator = _coordinator(session)
			coordinator.sync_mode(current_mode, time_in_mode_ms=time_in_mode_ms)
			outcome = coordinator.apply_prediction(prediction, time_in_mode_ms)
	payload = prediction.as_dict()
	payload["transition"] = outcome.as_dict() if outcome else None
	return payload


def poll_pending_commands(*, session_id: str) -> Dict[str, Any]:
	session = session_service.ensure_session(session_id)
	with session.lock:
		commands = _coordinator(session).drain_commands()
	if commands:
		logger.debug("session %s drained %d command(s)", session_id, len(commands))
	return {"commands": serialize_commands(commands)}


def request_transition(
	*,
	session_id: str,
	target: str,
	reason: Optional[str] = None,
) -> Dict[str, Any]:
	target_id = validate_feature(target, field_name="target")
	session = session_service.ensure_session(session_id)
	with session.lock:
		outcome = _coordinator(session).request_transition(target_id, reason or f"Switch to {target_id} requested")
		ui_state = session.state.ui.as_dict()
	return {"transition": outcome.as_dict(), "ui_state": ui_state}


def get_ui_state(*, session_id: str) -> Dict[str, Any]:
	session = session_service.ensure_session(session_id)
	with session.lock:
		coordinator = _coordinator(session)
		ui_state = session.state.ui.as_dict()
		ui_state["time_in_mode_ms"] = coordinator.time_in_mode_ms()
		ui_state["pending_commands"] = len(session.state.commands)
		usage = UsageTracker(session.state.profile).summary()
	return {"ui_state": ui_state, "usage": usage}
