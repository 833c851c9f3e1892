from __future__ import annotations

import time
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional

from clarity.backend.adaptive.types import FeatureId, TransitionEvent


def now_ms() -> int:
	return int(time.time() * 1000)


def hour_of_day(timestamp_ms: int) -> int:
	"""Local wall-clock hour of a millisecond timestamp."""
	return datetime.fromtimestamp(timestamp_ms / 1000).hour


def make_event(
	*,
	from_feature: FeatureId,
	to_feature: FeatureId,
	duration_ms: int,
	confidence: float,
	context: Optional[Mapping[str, Any]] = None,
	timestamp: Optional[int] = None,
) -> TransitionEvent:
	return TransitionEvent(
		from_feature=from_feature,
		to_feature=to_feature,
		timestamp=now_ms() if timestamp is None else timestamp,
		duration_ms=duration_ms,
		confidence=confidence,
		context=dict(context or {}),
	)


def serialize_events(events: Iterable[TransitionEvent]) -> List[Dict[str, Any]]:
	return [event.as_dict() for event in events]
