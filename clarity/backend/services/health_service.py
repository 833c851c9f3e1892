from __future__ import annotations

from typing import Dict

from clarity.backend import constants
from clarity.backend.services import adaptive_service, session_service


def get_summary() -> Dict[str, object]:
	return {
		"status": "ok",
		"app": {"name": constants.APP_NAME, "version": constants.APP_VERSION},
		"sessions": {
			"active": session_service.session_count(),
			"pending_commands": session_service.pending_command_count(),
			"ttl_seconds": session_service.ttl_seconds(),
		},
		"policy": {
			"features": list(constants.FEATURE_IDS),
			"intent_threshold": constants.INTENT_ACTION_THRESHOLD,
			"prediction_threshold": constants.PREDICTION_SUGGEST_THRESHOLD,
			"prediction_min_dwell_ms": adaptive_service.min_dwell_ms(),
			"transition_log_max": session_service.transition_log_max(),
		},
	}
