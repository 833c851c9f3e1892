from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple

from clarity.backend import constants
from clarity.backend.adaptive.types import (
	FeatureId,
	PredictionResult,
	TransitionEvent,
	validate_duration,
	validate_feature,
)


DEFAULT_PREDICTION = PredictionResult(
	feature=constants.DEFAULT_FEATURE,
	confidence=0.0,
	reasoning="default",
)


@dataclass
class _PairStats:
	count: int = 0
	avg_duration: float = 0.0


def _recent_window(log: Sequence[TransitionEvent], size: int) -> Sequence[TransitionEvent]:
	entries = list(log)
	return entries[-size:] if size > 0 else []


def group_pairs(window: Sequence[TransitionEvent]) -> Dict[Tuple[str, str], _PairStats]:
	"""Count each (from, to) pair in first-seen order.

	``avg_duration`` is folded as ``(avg + duration) / 2`` on every hit starting
	from zero, so later entries weigh more than earlier ones.
	"""
	pairs: Dict[Tuple[str, str], _PairStats] = {}
	for entry in window:
		key = (entry.from_feature, entry.to_feature)
		stats = pairs.setdefault(key, _PairStats())
		stats.count += 1
		stats.avg_duration = (stats.avg_duration + entry.duration_ms) / 2
	return pairs


def _score(stats: _PairStats, window_size: int, time_in_mode_ms: int) -> float:
	frequency = stats.count / window_size
	if time_in_mode_ms > stats.avg_duration:
		return frequency * constants.PREDICTION_LONG_DWELL_BOOST
	return frequency * constants.PREDICTION_SHORT_DWELL_PENALTY


def predict_next(
	current_mode: str,
	time_in_mode_ms: int,
	log: Sequence[TransitionEvent],
	*,
	window: int = constants.PREDICTION_WINDOW,
) -> PredictionResult:
	mode = validate_feature(current_mode, field_name="current_mode")
	elapsed = validate_duration(time_in_mode_ms, field_name="time_in_mode_ms")
	recent = _recent_window(log, window)
	if not recent:
		return DEFAULT_PREDICTION

	best_target: Optional[FeatureId] = None
	best_stats: Optional[_PairStats] = None
	best_score = 0.0
	for (from_feature, to_feature), stats in group_pairs(recent).items():
		if from_feature != mode:
			continue
		score = _score(stats, len(recent), elapsed)
		if best_target is None or score > best_score:
			best_target = to_feature  # type: ignore[assignment]
			best_stats = stats
			best_score = score

	if best_target is None or best_stats is None:
		return DEFAULT_PREDICTION
	return PredictionResult(
		feature=best_target,
		confidence=min(best_score, 1.0),
		reasoning=(
			f"{best_stats.count} of the last {len(recent)} transitions went from {mode} to "
			f"{best_target}; {elapsed // 1000}s in {mode} vs ~{int(best_stats.avg_duration) // 1000}s typical."
		),
	)


class TransitionPredictor:
	def __init__(self, window: int = constants.PREDICTION_WINDOW):
		self.window = window

	def predict(self, current_mode: str, time_in_mode_ms: int, log: Sequence[TransitionEvent]) -> PredictionResult:
		return predict_next(current_mode, time_in_mode_ms, log, window=self.window)
