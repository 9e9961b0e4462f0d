"""Status and command API. Routes: /health, /status, /commands."""
import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends

from app_state import AppState
from deps import get_state
from schemas.responses import CommandResponse, StatusResponse

logger = logging.getLogger(__name__)
router = APIRouter(tags=["api"])


@router.get("/health")
async def health():
	return {"ok": True}


@router.get("/status", response_model=StatusResponse)
async def status(state: AppState = Depends(get_state)):
	"""Channel state, active source and scheduler counters."""
	session = state.session
	source = state.active_source()
	return StatusResponse(
		state=state.channel.state.value if state.channel else "uninitialized",
		source=source.name() if source else None,
		simulation=bool(source.simulation) if source else False,
		monitoring=bool(session.is_monitoring) if session else False,
		calibrated=bool(session.is_calibrated) if session else False,
		sensitivity=float(session.sensitivity) if session else 1.0,
		clients=state.manager.client_count if state.manager else 0,
		scheduler=state.scheduler.get_status() if state.scheduler else None,
		startup_error=state.startup_error,
	)


@router.post("/commands", response_model=CommandResponse)
async def post_command(payload: Dict[str, Any], state: AppState = Depends(get_state)):
	"""
	Same messages as the WebSocket inbound path, for hosts that poll over HTTP.
	Body: {"type": "startMonitoring", "sensitivity": 1.0}
	"""
	if state.channel is None:
		return CommandResponse(accepted=False, state="uninitialized", detail="core not initialized")
	accepted = state.channel.handle_message(payload)
	return CommandResponse(
		accepted=accepted,
		state=state.channel.state.value,
		detail=None if accepted else "message ignored",
	)
