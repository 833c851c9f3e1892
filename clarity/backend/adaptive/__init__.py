from clarity.backend.adaptive.coordinator import TransitionCoordinator
from clarity.backend.adaptive.intent import IntentClassifier, classify
from clarity.backend.adaptive.predictor import TransitionPredictor, predict_next
from clarity.backend.adaptive.types import (
	AdaptiveState,
	ClassificationResult,
	FeatureUsageProfile,
	InvalidInputError,
	PendingCommand,
	PredictionResult,
	TransitionEvent,
	TransitionTrigger,
	UIState,
)
from clarity.backend.adaptive.usage import UsageTracker

__all__ = [
	"AdaptiveState",
	"ClassificationResult",
	"FeatureUsageProfile",
	"IntentClassifier",
	"InvalidInputError",
	"PendingCommand",
	"PredictionResult",
	"TransitionCoordinator",
	"TransitionEvent",
	"TransitionPredictor",
	"TransitionTrigger",
	"UIState",
	"UsageTracker",
	"classify",
	"predict_next",
]
