APP_NAME = "ClarityAI Adaptive Backend"
APP_VERSION = "1.0.0"
DEFAULT_CORS_ALLOW_ORIGINS = [
	"http://localhost",
	"http://127.0.0.1",
	"http://localhost:3000",
]
DEFAULT_TRUSTED_HOSTS = [
	"127.0.0.1",
	"localhost",
	"testserver",
]
DEFAULT_SESSION_ID = "default"
DEFAULT_LOG_LEVEL = "INFO"

FEATURE_IDS = ("chat", "timeline", "storyboard")
DEFAULT_FEATURE = "chat"
DEFAULT_USAGE_SPLIT = {
	"chat": 33.0,
	"timeline": 33.0,
	"storyboard": 34.0,
}

USAGE_DECAY = 0.9
USAGE_FULL_WEIGHT_MS = 60_000
USAGE_WEIGHT_SCALE = 10.0
USAGE_CEILING = 100.0

PREDICTION_WINDOW = 20
PREDICTION_LONG_DWELL_BOOST = 1.2
PREDICTION_SHORT_DWELL_PENALTY = 0.8
PREDICTION_SUGGEST_THRESHOLD = 0.6
PREDICTION_MIN_DWELL_MS = 10_000

INTENT_KEYWORD_WEIGHT = 0.3
INTENT_KEYWORD_CAP = 0.9
INTENT_OVERRIDE_CONFIDENCE = 0.95
INTENT_ACTION_THRESHOLD = 0.4

TRANSITION_LOG_MAX = 200
