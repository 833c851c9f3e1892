import os
from unittest import TestCase

from fastapi.testclient import TestClient

from clarity.backend.adaptive.events import make_event, now_ms
from clarity.backend.main import app
from clarity.backend.services import session_service


class ApiContractsTests(TestCase):
	def setUp(self) -> None:
		session_service.reset_sessions()
		self._prev_dwell = os.environ.get("CLARITY_PREDICTION_MIN_DWELL_MS")
		self.client = TestClient(app)

	def tearDown(self) -> None:
		session_service.reset_sessions()
		if self._prev_dwell is None:
			os.environ.pop("CLARITY_PREDICTION_MIN_DWELL_MS", None)
		else:
			os.environ["CLARITY_PREDICTION_MIN_DWELL_MS"] = self._prev_dwell

	def _headers(self, session_id: str = "test-session") -> dict:
		return {"X-Session-ID": session_id}

	def test_direct_request_transitions_and_commands_drain_once(self) -> None:
		response = self.client.post(
			"/api/adaptive/messages",
			headers=self._headers(),
			json={"message": "I want to switch to timeline editor", "current_mode": "chat"},
		)
		self.assertEqual(response.status_code, 200)
		payload = response.json()
		self.assertTrue(payload["ok"])
		self.assertEqual(payload["session_id"], "test-session")
		data = payload["data"]
		self.assertEqual(data["classification"]["suggestion"], "timeline")
		self.assertEqual(data["classification"]["confidence"], 0.95)
		self.assertEqual(data["classification"]["reason"], "Direct request for timeline editor")
		self.assertTrue(data["transitioned"])
		self.assertEqual(data["ui_state"]["mode"], "timeline")

		first = self.client.get("/api/adaptive/commands", headers=self._headers()).json()
		commands = first["data"]["commands"]
		self.assertEqual(len(commands), 1)
		self.assertEqual(commands[0]["type"], "transition")
		self.assertEqual(commands[0]["target_feature"], "timeline")
		self.assertTrue(commands[0]["id"].startswith("transition-"))

		second = self.client.get("/api/adaptive/commands", headers=self._headers()).json()
		self.assertEqual(second["data"]["commands"], [])

	def test_classification_without_apply_leaves_state(self) -> None:
		response = self.client.post(
			"/api/adaptive/messages",
			headers=self._headers(),
			json={"message": "let's plan the story flow", "current_mode": "chat", "apply": False},
		)
		data = response.json()["data"]
		self.assertEqual(data["classification"]["suggestion"], "storyboard")
		self.assertFalse(data["transitioned"])
		self.assertIsNone(data["transition"])
		self.assertEqual(data["ui_state"]["mode"], "chat")

	def test_unknown_mode_returns_invalid_input(self) -> None:
		response = self.client.post(
			"/api/adaptive/messages",
			headers=self._headers(),
			json={"message": "edit video", "current_mode": "gallery"},
		)
		self.assertEqual(response.status_code, 400)
		payload = response.json()
		self.assertFalse(payload["ok"])
		self.assertEqual(payload["error"]["code"], "invalid_input")
		self.assertIn("current_mode", payload["error"]["message"])
		self.assertEqual(payload["error"]["evidence"], [])

	def test_usage_updates_summary(self) -> None:
		response = self.client.post(
			"/api/adaptive/usage",
			headers=self._headers(),
			json={"feature": "timeline", "duration_ms": 60000, "context": {"time_of_day": 14}},
		)
		self.assertEqual(response.status_code, 200)
		usage = response.json()["data"]["usage"]
		self.assertAlmostEqual(usage["usage_percent"]["timeline"], 39.7)
		self.assertEqual(usage["session_count"], 1)
		self.assertEqual(usage["most_used_feature"], "timeline")

	def test_negative_usage_duration_is_rejected(self) -> None:
		response = self.client.post(
			"/api/adaptive/usage",
			headers=self._headers(),
			json={"feature": "chat", "duration_ms": -5},
		)
		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.json()["error"]["code"], "invalid_input")

	def test_prediction_defaults_without_history(self) -> None:
		response = self.client.post(
			"/api/adaptive/predict",
			headers=self._headers(),
			json={"current_mode": "storyboard", "time_in_mode_ms": 30000},
		)
		self.assertEqual(response.status_code, 200)
		prediction = response.json()["data"]["prediction"]
		self.assertEqual(prediction["feature"], "chat")
		self.assertEqual(prediction["confidence"], 0)
		self.assertEqual(prediction["reasoning"], "default")
		self.assertFalse(prediction["should_suggest"])
		self.assertIsNone(prediction["transition"])

	def test_confident_prediction_can_be_auto_applied(self) -> None:
		session = session_service.ensure_session("predict-session")
		for index in range(3):
			session.state.profile.transitions.append(
				make_event(
					from_feature="chat",
					to_feature="timeline",
					duration_ms=5000,
					confidence=0.9,
					timestamp=index,
				)
			)
		os.environ["CLARITY_PREDICTION_MIN_DWELL_MS"] = "10000"
		session.state.ui.last_transition_at = now_ms() - 20000

		response = self.client.post(
			"/api/adaptive/predict",
			headers=self._headers("predict-session"),
			json={"current_mode": "chat", "time_in_mode_ms": 20000, "auto_apply": True},
		)
		prediction = response.json()["data"]["prediction"]
		self.assertEqual(prediction["feature"], "timeline")
		self.assertEqual(prediction["confidence"], 1.0)
		self.assertTrue(prediction["should_suggest"])
		self.assertTrue(prediction["transition"]["accepted"])

		state = self.client.get("/api/adaptive/state", headers=self._headers("predict-session")).json()["data"]
		self.assertEqual(state["ui_state"]["mode"], "timeline")
		self.assertEqual(state["ui_state"]["pending_commands"], 1)
		self.assertEqual(state["usage"]["total_transitions"], 4)

	def test_manual_transition_and_self_transition_guard(self) -> None:
		first = self.client.post(
			"/api/adaptive/transition",
			headers=self._headers(),
			json={"target": "storyboard", "reason": "Switch Now"},
		).json()["data"]
		self.assertTrue(first["transition"]["accepted"])
		self.assertEqual(first["transition"]["command"]["reason"], "Switch Now")

		repeat = self.client.post(
			"/api/adaptive/transition",
			headers=self._headers(),
			json={"target": "storyboard"},
		).json()["data"]
		self.assertFalse(repeat["transition"]["accepted"])
		self.assertEqual(repeat["transition"]["detail"], "already_in_mode")

		commands = self.client.get("/api/adaptive/commands", headers=self._headers()).json()["data"]["commands"]
		self.assertEqual(len(commands), 1)

	def test_state_defaults_to_chat(self) -> None:
		response = self.client.get("/api/adaptive/state")
		self.assertEqual(response.status_code, 200)
		payload = response.json()
		self.assertEqual(payload["session_id"], "default")
		self.assertEqual(payload["data"]["ui_state"]["mode"], "chat")
		self.assertEqual(payload["data"]["ui_state"]["pending_commands"], 0)
		self.assertIn("X-Request-ID", response.headers)

	def test_extra_fields_fail_validation(self) -> None:
		response = self.client.post(
			"/api/adaptive/predict",
			json={"current_mode": "chat", "surprise": True},
		)
		self.assertEqual(response.status_code, 422)
		self.assertEqual(response.json()["error"]["code"], "validation_error")

	def test_health_summary(self) -> None:
		self.client.get("/api/adaptive/state", headers=self._headers())
		response = self.client.get("/api/health/summary")
		self.assertEqual(response.status_code, 200)
		data = response.json()["data"]
		self.assertEqual(data["status"], "ok")
		self.assertEqual(data["sessions"]["active"], 1)
		self.assertEqual(data["policy"]["features"], ["chat", "timeline", "storyboard"])

	def test_message_uses_caller_mode_when_it_differs_from_stored_mode(self) -> None:
		self.client.post(
			"/api/adaptive/messages",
			headers=self._headers(),
			json={"message": "switch to timeline", "current_mode": "chat"},
		)
		self.client.get("/api/adaptive/commands", headers=self._headers())

		response = self.client.post(
			"/api/adaptive/messages",
			headers=self._headers(),
			json={"message": "cut the clips and trim", "current_mode": "chat"},
		)
		data = response.json()["data"]
		self.assertEqual(data["classification"]["suggestion"], "timeline")
		self.assertTrue(data["transitioned"])
		self.assertEqual(data["transition"]["event"]["from"], "chat")
		self.assertEqual(data["ui_state"]["mode"], "timeline")

		commands = self.client.get("/api/adaptive/commands", headers=self._headers()).json()["data"]["commands"]
		self.assertEqual([command["target_feature"] for command in commands], ["timeline"])

	def test_auto_applied_prediction_records_caller_mode_and_dwell(self) -> None:
		os.environ["CLARITY_PREDICTION_MIN_DWELL_MS"] = "10000"
		session = session_service.ensure_session("resync-session")
		for index in range(3):
			session.state.profile.transitions.append(
				make_event(
					from_feature="storyboard",
					to_feature="timeline",
					duration_ms=4000,
					confidence=0.9,
					timestamp=index,
				)
			)
		session.state.ui.mode = "chat"

		response = self.client.post(
			"/api/adaptive/predict",
			headers=self._headers("resync-session"),
			json={"current_mode": "storyboard", "time_in_mode_ms": 15000, "auto_apply": True},
		)
		prediction = response.json()["data"]["prediction"]
		self.assertEqual(prediction["feature"], "timeline")
		transition = prediction["transition"]
		self.assertTrue(transition["accepted"])
		self.assertEqual(transition["event"]["from"], "storyboard")
		self.assertEqual(transition["event"]["duration_ms"], 15000)
