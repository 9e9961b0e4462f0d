from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional

from modules.camera import AcquisitionError, acquire_camera
from modules.config import AppConfig
from modules.pose.base import LandmarkSource
from modules.pose.mediapipe_provider import MediaPipePoseProvider, ModelLoadError
from modules.pose.simulated import SimulatedLandmarkSource
from modules.pose.types import LandmarkSet
from modules.retry import RetryPolicy

logger = logging.getLogger(__name__)


class CameraLandmarkSource(LandmarkSource):
	"""
	Real source: grab a camera frame and run the pose model on it.

	Both steps block, so they run together in a worker thread; the scheduler
	awaits at most one `detect()` at a time.
	"""

	kind = "camera"

	def __init__(self, camera: Any, provider: Any) -> None:
		self._camera = camera
		self._provider = provider

	def name(self) -> str:
		return f"camera+{self._provider.name()}"

	def _detect_blocking(self) -> Optional[LandmarkSet]:
		rgb = self._camera.read_rgb()
		return self._provider.infer_rgb(rgb)

	async def detect(self) -> Optional[LandmarkSet]:
		return await asyncio.to_thread(self._detect_blocking)

	def close(self) -> None:
		try:
			self._provider.close()
		finally:
			self._camera.close()


def make_simulated_source(cfg: AppConfig) -> SimulatedLandmarkSource:
	return SimulatedLandmarkSource(
		time_step=cfg.simulation.time_step,
		amplitude=cfg.simulation.amplitude,
		rate=cfg.simulation.rate,
	)


async def open_source(
	cfg: AppConfig,
	*,
	acquire: Callable[..., Any] = acquire_camera,
	provider_factory: Callable[..., Any] = MediaPipePoseProvider,
	simulated_factory: Callable[[AppConfig], LandmarkSource] = make_simulated_source,
) -> LandmarkSource:
	"""
	Select the landmark source once at startup.

	Camera acquisition (bounded retries over the capture profiles) and pose
	model loading each fall back to the simulated source on failure, unless
	the config pins `source: camera`. A failure to build the simulated source
	always propagates.
	"""
	if cfg.source == "simulated":
		logger.info("[Source] simulated source forced by config")
		return simulated_factory(cfg)

	policy = RetryPolicy(
		max_attempts=cfg.camera.retry.max_attempts,
		backoff_seconds=cfg.camera.retry.backoff_seconds,
	)
	try:
		camera = await acquire(cfg.camera.profiles, policy)
	except AcquisitionError as e:
		if cfg.source == "camera":
			raise
		logger.warning("[Source] camera unavailable, using simulation: %s", e)
		return simulated_factory(cfg)

	try:
		provider = await asyncio.to_thread(
			provider_factory,
			cfg.pose.model_complexity,
			cfg.pose.min_detection_confidence,
			cfg.pose.min_tracking_confidence,
		)
	except ModelLoadError as e:
		if cfg.source == "camera":
			camera.close()
			raise
		logger.warning("[Source] pose model unavailable, using simulation: %s", e)
		try:
			camera.close()
		except Exception:
			pass
		return simulated_factory(cfg)

	logger.info("[Source] camera source ready")
	return CameraLandmarkSource(camera, provider)
