from __future__ import annotations

from typing import Optional

from clarity.backend import constants
from clarity.backend.adaptive import policies
from clarity.backend.adaptive.types import ClassificationResult, FeatureId, validate_feature


NO_INTENT_REASON = "No editing intent detected"


def _direct_request(text: str) -> Optional[ClassificationResult]:
	for feature, phrases in policies.DIRECT_REQUEST_PHRASES:
		if any(phrase in text for phrase in phrases):
			return ClassificationResult(
				suggestion=feature,
				confidence=constants.INTENT_OVERRIDE_CONFIDENCE,
				reason=f"Direct request for {feature} editor",
			)
	return None


def classify(message: str, current_mode: str) -> ClassificationResult:
	mode = validate_feature(current_mode, field_name="current_mode")
	text = (message or "").lower()

	timeline_matches = policies.count_matches(text, policies.TIMELINE_KEYWORDS)
	storyboard_matches = policies.count_matches(text, policies.STORYBOARD_KEYWORDS)
	timeline_confidence = policies.keyword_confidence(timeline_matches)
	storyboard_confidence = policies.keyword_confidence(storyboard_matches)

	suggestion: Optional[FeatureId] = None
	confidence = 0.0
	reason = NO_INTENT_REASON
	if timeline_matches > 0 and mode != "timeline":
		suggestion = "timeline"
		confidence = timeline_confidence
		reason = f"Detected {timeline_matches} timeline editing keyword(s)"
	if storyboard_confidence > timeline_confidence and mode != "storyboard":
		suggestion = "storyboard"
		confidence = storyboard_confidence
		reason = f"Detected {storyboard_matches} storyboard planning keyword(s)"

	override = _direct_request(text)
	if override is not None:
		return override
	return ClassificationResult(suggestion=suggestion, confidence=confidence, reason=reason)


class IntentClassifier:
	def classify(self, message: str, current_mode: str) -> ClassificationResult:
		return classify(message, current_mode)
