from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

from clarity.backend import constants
from clarity.backend.adaptive.events import make_event
from clarity.backend.adaptive.types import (
	FeatureUsageProfile,
	TransitionEvent,
	validate_duration,
	validate_feature,
)


logger = logging.getLogger(__name__)


def duration_weight(duration_ms: int) -> float:
	return min(duration_ms / constants.USAGE_FULL_WEIGHT_MS, 1.0)


def smoothed_usage(previous: float, duration_ms: int) -> float:
	updated = previous * constants.USAGE_DECAY + duration_weight(duration_ms) * constants.USAGE_WEIGHT_SCALE
	return min(updated, constants.USAGE_CEILING)


class UsageTracker:
	"""Smoothed per-feature usage plus the bounded transition history of one profile."""

	def __init__(self, profile: Optional[FeatureUsageProfile] = None):
		self.profile = profile or FeatureUsageProfile.create()

	def record_usage(self, feature: str, duration_ms: int) -> float:
		feature_id = validate_feature(feature)
		duration = validate_duration(duration_ms)
		previous = self.profile.usage_percent[feature_id]
		updated = smoothed_usage(previous, duration)
		self.profile.usage_percent[feature_id] = updated
		self.profile.session_count += 1
		logger.debug("usage %s: %.3f -> %.3f (%sms)", feature_id, previous, updated, duration)
		return updated

	def record_transition(
		self,
		from_feature: str,
		to_feature: str,
		duration_ms: int,
		confidence: float,
		context: Optional[Mapping[str, Any]] = None,
		*,
		timestamp: Optional[int] = None,
	) -> TransitionEvent:
		event = make_event(
			from_feature=validate_feature(from_feature, field_name="from_feature"),
			to_feature=validate_feature(to_feature, field_name="to_feature"),
			duration_ms=validate_duration(duration_ms),
			confidence=max(0.0, min(float(confidence), 1.0)),
			context=context,
			timestamp=timestamp,
		)
		log = self.profile.transitions
		if log.maxlen is not None and len(log) == log.maxlen:
			logger.debug("transition log full (%s); evicting oldest entry", log.maxlen)
		log.append(event)
		return event

	def most_used(self) -> str:
		usage = self.profile.usage_percent
		return max(constants.FEATURE_IDS, key=lambda feature: usage[feature])

	def summary(self) -> Dict[str, Any]:
		return {
			"usage_percent": {feature: round(value, 4) for feature, value in self.profile.usage_percent.items()},
			"session_count": self.profile.session_count,
			"most_used_feature": self.most_used(),
			"total_transitions": len(self.profile.transitions),
		}
