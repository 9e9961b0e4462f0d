import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app_state import AppState
from modules import __version__
from modules.channel import ResultChannel
from modules.config import AppConfig, get_config
from modules.pose.sources import make_simulated_source, open_source
from modules.scheduler import FrameScheduler
from modules.session import SessionState
from routers import api, ws

logger = logging.getLogger(__name__)


def _configure_logging(cfg: AppConfig) -> None:
	level = getattr(logging, str(cfg.server.log_level).upper(), logging.INFO)
	logging.basicConfig(level=level, format="%(asctime)s %(levelname)s:%(name)s:%(message)s")


async def _start_pipeline(state: AppState, cfg: AppConfig) -> None:
	"""
	Select the source, mark the channel ready and start the refresh loop.
	Any failure left after the simulated fallback is reported as an `error` event.
	"""
	channel = state.channel
	try:
		source = await open_source(cfg)
	except Exception as e:
		state.startup_error = f"Landmark source failed to start: {type(e).__name__}: {e}"
		channel.report_error(state.startup_error)
		return

	state.source = source
	state.scheduler = FrameScheduler(
		source,
		state.session,
		channel,
		target_fps=cfg.scheduler.target_fps,
		max_consecutive_failures=cfg.scheduler.max_consecutive_failures,
		fallback_factory=lambda: make_simulated_source(cfg),
	)
	channel.mark_ready(simulation=source.simulation)
	state.scheduler.start(cfg.scheduler.refresh_hz)


def create_app(cfg: Optional[AppConfig] = None) -> FastAPI:
	state = AppState()
	state.manager = ws.ConnectionManager()

	@asynccontextmanager
	async def lifespan(app: FastAPI):
		config = cfg or get_config()
		_configure_logging(config)
		state.cfg = config
		state.session = SessionState(sensitivity=config.default_sensitivity)
		state.channel = ResultChannel(
			state.session,
			sink=state.manager.broadcast_nowait,
			forward_logs=config.server.forward_logs,
		)
		logger.info("[Server] starting posture core %s (source=%s)", __version__, config.source)
		await _start_pipeline(state, config)
		try:
			yield
		finally:
			state.channel.terminate()
			if state.scheduler is not None:
				await state.scheduler.stop()
			source = state.active_source()
			if source is not None:
				try:
					await asyncio.to_thread(source.close)
				except Exception as e:
					logger.warning("[Server] closing source failed: %s", e)
			logger.info("[Server] stopped")

	app = FastAPI(title="Posture Guard core", version=__version__, lifespan=lifespan)
	app.state.state = state
	app.add_middleware(
		CORSMiddleware,
		allow_origins=["*"],
		allow_credentials=True,
		allow_methods=["*"],
		allow_headers=["*"],
	)
	app.include_router(api.router)
	app.include_router(ws.router)
	return app


app = create_app()


if __name__ == "__main__":
	import uvicorn

	uvicorn.run("server:app", host="0.0.0.0", port=8000)
