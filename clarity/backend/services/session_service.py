from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from threading import Lock
from typing import Dict, List

from clarity.backend import constants
from clarity.backend.adaptive.events import now_ms
from clarity.backend.adaptive.types import AdaptiveState, FeatureUsageProfile, UIState


logger = logging.getLogger(__name__)

_DEFAULT_TTL_SECONDS = 6 * 60 * 60


@dataclass
class AdaptiveSession:
	session_id: str
	updated_at: str
	state: AdaptiveState
	# Serializes every read-modify-write on ``state`` for this session.
	lock: Lock = field(default_factory=Lock, repr=False)


_STORE: Dict[str, AdaptiveSession] = {}
_LOCK = Lock()


def _now() -> datetime:
	return datetime.now(timezone.utc)


def _now_iso() -> str:
	return _now().isoformat().replace("+00:00", "Z")


def int_env(name: str, default: int, minimum: int = 1) -> int:
	raw = os.getenv(name, "").strip()
	if not raw:
		return default
	try:
		value = int(raw)
	except ValueError:
		return default
	return value if value >= minimum else default


def ttl_seconds() -> int:
	return int_env("CLARITY_SESSION_TTL_S", _DEFAULT_TTL_SECONDS, minimum=60)


def transition_log_max() -> int:
	return int_env("CLARITY_TRANSITION_LOG_MAX", constants.TRANSITION_LOG_MAX, minimum=constants.PREDICTION_WINDOW)


def _new_session(session_id: str) -> AdaptiveSession:
	state = AdaptiveState(
		profile=FeatureUsageProfile.create(max_transitions=transition_log_max()),
		ui=UIState(mode=constants.DEFAULT_FEATURE, last_transition_at=now_ms()),
	)
	logger.info("created adaptive session %s", session_id)
	return AdaptiveSession(session_id=session_id, updated_at=_now_iso(), state=state)


def _evict_expired_locked() -> None:
	now = _now()
	ttl = timedelta(seconds=ttl_seconds())
	expired: List[str] = []
	for session_id, session in _STORE.items():
		try:
			updated = datetime.fromisoformat(session.updated_at.replace("Z", "+00:00"))
		except ValueError:
			expired.append(session_id)
			continue
		if now - updated > ttl:
			expired.append(session_id)
	for session_id in expired:
		_STORE.pop(session_id, None)
	if expired:
		logger.info("evicted %d expired session(s)", len(expired))


def ensure_session(session_id: str) -> AdaptiveSession:
	with _LOCK:
		_evict_expired_locked()
		session = _STORE.get(session_id)
		if session is None:
			session = _new_session(session_id)
			_STORE[session_id] = session
		session.updated_at = _now_iso()
		return session


def session_count() -> int:
	with _LOCK:
		_evict_expired_locked()
		return len(_STORE)


def pending_command_count() -> int:
	with _LOCK:
		return sum(len(session.state.commands) for session in _STORE.values())


def reset_sessions() -> None:
	with _LOCK:
		_STORE.clear()
