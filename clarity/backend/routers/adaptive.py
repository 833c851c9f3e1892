from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request

from clarity.backend import constants
from clarity.backend.adaptive import InvalidInputError
from clarity.backend.response import success_response
from clarity.backend.schemas import (
	ApiEnvelope,
	MessageRequest,
	PredictRequest,
	TransitionRequestBody,
	UsageRequest,
)
from clarity.backend.services import adaptive_service


router = APIRouter(prefix="/api/adaptive", tags=["adaptive"])


def _session_id_from_request(request: Request) -> str:
	session_id = request.headers.get("X-Session-ID", "").strip()
	return session_id or constants.DEFAULT_SESSION_ID


def _invalid_input(exc: InvalidInputError) -> HTTPException:
	return HTTPException(
		status_code=400,
		detail={"code": exc.code, "message": str(exc)},
	)


@router.post("/messages", response_model=ApiEnvelope)
def submit_message(request: Request, payload: MessageRequest):
	session_id = _session_id_from_request(request)
	try:
		data = adaptive_service.submit_message(
			session_id=session_id,
			message=payload.message,
			current_mode=payload.current_mode,
			apply=payload.apply,
		)
	except InvalidInputError as exc:
		raise _invalid_input(exc) from exc
	return success_response(request=request, data=data, session_id=session_id)


@router.post("/usage", response_model=ApiEnvelope)
def record_usage(request: Request, payload: UsageRequest):
	session_id = _session_id_from_request(request)
	try:
		summary = adaptive_service.record_feature_usage(
			session_id=session_id,
			feature=payload.feature,
			duration_ms=payload.duration_ms,
			context=payload.context,
		)
	except InvalidInputError as exc:
		raise _invalid_input(exc) from exc
	return success_response(request=request, data={"usage": summary}, session_id=session_id)


@router.post("/predict", response_model=ApiEnvelope)
def predict_next_feature(request: Request, payload: PredictRequest):
	session_id = _session_id_from_request(request)
	try:
		prediction = adaptive_service.predict_next_feature(
			session_id=session_id,
			current_mode=payload.current_mode,
			time_in_mode_ms=payload.time_in_mode_ms,
			auto_apply=payload.auto_apply,
		)
	except InvalidInputError as exc:
		raise _invalid_input(exc) from exc
	return success_response(request=request, data={"prediction": prediction}, session_id=session_id)


@router.get("/commands", response_model=ApiEnvelope)
def poll_commands(request: Request):
	session_id = _session_id_from_request(request)
	data = adaptive_service.poll_pending_commands(session_id=session_id)
	return success_response(request=request, data=data, session_id=session_id)


@router.get("/state", response_model=ApiEnvelope)
def get_state(request: Request):
	session_id = _session_id_from_request(request)
	data = adaptive_service.get_ui_state(session_id=session_id)
	return success_response(request=request, data=data, session_id=session_id)


@router.post("/transition", response_model=ApiEnvelope)
def request_transition(request: Request, payload: TransitionRequestBody):
	session_id = _session_id_from_request(request)
	try:
		data = adaptive_service.request_transition(
			session_id=session_id,
			target=payload.target,
			reason=payload.reason,
		)
	except InvalidInputError as exc:
		raise _invalid_input(exc) from exc
	return success_response(request=request, data=data, session_id=session_id)
