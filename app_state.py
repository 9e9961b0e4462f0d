"""
Explicit app state: single source of truth for the runtime lifecycle.
Created in create_app, attached to app.state.state; injected into routes via Depends(get_state).
"""
from typing import Any, Optional

from modules.channel import ResultChannel
from modules.config import AppConfig
from modules.pose.base import LandmarkSource
from modules.scheduler import FrameScheduler
from modules.session import SessionState


class AppState:
	"""
	Holds all runtime state for the app. Populated in the server lifespan;
	the scheduler and channel receive the same SessionState instance.
	"""

	cfg: Optional[AppConfig] = None

	# WebSocket broadcast (routers.ws.ConnectionManager)
	manager: Any = None

	# Pipeline (set in lifespan)
	session: Optional[SessionState] = None
	channel: Optional[ResultChannel] = None
	source: Optional[LandmarkSource] = None
	scheduler: Optional[FrameScheduler] = None

	# Last startup failure, if the service came up without a source
	startup_error: Optional[str] = None

	def active_source(self) -> Optional[LandmarkSource]:
		"""The source currently driven by the scheduler (may differ from `source` after fallback)."""
		if self.scheduler is not None:
			return self.scheduler.source
		return self.source
