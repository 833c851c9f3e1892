from __future__ import annotations

from typing import Dict, Tuple

from clarity.backend import constants
from clarity.backend.adaptive.types import FeatureId, TransitionTrigger


# Each entry counts at most once per message.
# "sequence" sits in both tables on purpose.
TIMELINE_KEYWORDS: Tuple[str, ...] = (
	"timeline",
	"edit",
	"cut",
	"trim",
	"split",
	"clips",
	"precision",
	"frame",
	"second",
	"duration",
	"sync",
	"audio",
	"video",
	"sequence",
	"edit video",
	"cut clip",
	"trim video",
	"precise editing",
)

STORYBOARD_KEYWORDS: Tuple[str, ...] = (
	"storyboard",
	"scene",
	"story",
	"flow",
	"sequence",
	"plan",
	"narrative",
	"shots",
	"angle",
	"composition",
	"story flow",
	"plan story",
	"organize scenes",
	"story planning",
)

# Checked in order; the first matching feature wins.
DIRECT_REQUEST_PHRASES: Tuple[Tuple[FeatureId, Tuple[str, ...]], ...] = (
	("timeline", ("switch to timeline", "timeline editor")),
	("storyboard", ("switch to storyboard", "storyboard editor")),
)

TRIGGER_THRESHOLDS: Dict[TransitionTrigger, float] = {
	TransitionTrigger.INTENT: constants.INTENT_ACTION_THRESHOLD,
	TransitionTrigger.PREDICTION: constants.PREDICTION_SUGGEST_THRESHOLD,
}


def count_matches(text: str, keywords: Tuple[str, ...]) -> int:
	return sum(1 for keyword in keywords if keyword in text)


def keyword_confidence(matches: int) -> float:
	return min(matches * constants.INTENT_KEYWORD_WEIGHT, constants.INTENT_KEYWORD_CAP)
