"""
FastAPI dependencies. Use Depends(get_state) in route handlers to receive AppState.
"""
from fastapi import Request, WebSocket

from app_state import AppState


def get_state(request: Request) -> AppState:
	"""Return the app state instance attached in create_app."""
	return request.app.state.state


def get_ws_state(websocket: WebSocket) -> AppState:
	"""Same as get_state, for WebSocket routes."""
	return websocket.app.state.state
