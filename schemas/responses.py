"""Pydantic response models for the HTTP API docs."""
from typing import Optional

from pydantic import BaseModel


class StatusResponse(BaseModel):
	"""Response from GET /status."""

	state: str
	source: Optional[str] = None
	simulation: bool = False
	monitoring: bool = False
	calibrated: bool = False
	sensitivity: float = 1.0
	clients: int = 0
	scheduler: Optional[dict] = None
	startup_error: Optional[str] = None


class CommandResponse(BaseModel):
	"""Response from POST /commands."""

	accepted: bool
	state: str
	detail: Optional[str] = None
