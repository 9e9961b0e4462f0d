from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable, Dict, Optional

from modules.channel import ResultChannel
from modules.pose.analyzer import analyze
from modules.pose.base import LandmarkSource
from modules.pose.calibration import calibrate
from modules.pose.smoothing import smooth
from modules.pose.types import LandmarkSet
from modules.pose.view import classify
from modules.session import SessionState

logger = logging.getLogger(__name__)


class FrameScheduler:
	"""
	Throttled detection loop: Source -> Smoother -> Classifier -> Calibrator/Analyzer.

	`tick()` is called at refresh rate (e.g. 60 Hz) and dispatches a detection
	only when 1/target_fps has elapsed since the last dispatch AND nothing is in
	flight. The in-flight flag is the only synchronization: results are handled
	on the event loop, so host commands never interleave with a frame.

	A stuck detection just stalls the cadence. A failed frame is published as
	"no subject" and counted; after `max_consecutive_failures` in a row a camera
	source is swapped for the simulated fallback, and a simulated source reports
	an `error` event.
	"""

	def __init__(
		self,
		source: LandmarkSource,
		session: SessionState,
		channel: ResultChannel,
		target_fps: float = 12.0,
		max_consecutive_failures: int = 30,
		fallback_factory: Optional[Callable[[], LandmarkSource]] = None,
		clock: Callable[[], float] = time.monotonic,
	) -> None:
		self._source = source
		self._session = session
		self._channel = channel
		self.target_fps = float(target_fps) if target_fps > 0 else 12.0
		self.max_consecutive_failures = max(1, int(max_consecutive_failures))
		self._fallback_factory = fallback_factory
		self._clock = clock

		self._in_flight = False
		self._task: Optional[asyncio.Task] = None
		self._loop_task: Optional[asyncio.Task] = None
		self._last_dispatch: Optional[float] = None

		self.dispatched = 0
		self.processed = 0
		self.no_subject = 0
		self.failures = 0
		self.consecutive_failures = 0

	@property
	def interval(self) -> float:
		return 1.0 / self.target_fps

	@property
	def in_flight(self) -> bool:
		return self._in_flight

	@property
	def source(self) -> LandmarkSource:
		return self._source

	def get_status(self) -> Dict[str, Any]:
		return {
			"source": self._source.name(),
			"simulation": self._source.simulation,
			"target_fps": self.target_fps,
			"in_flight": self._in_flight,
			"dispatched": self.dispatched,
			"processed": self.processed,
			"no_subject": self.no_subject,
			"failures": self.failures,
			"consecutive_failures": self.consecutive_failures,
		}

	def tick(self, now: Optional[float] = None) -> bool:
		"""Dispatch a detection if the cadence allows it. Must run inside the event loop."""
		if self._in_flight:
			return False
		now = self._clock() if now is None else float(now)
		if self._last_dispatch is not None and (now - self._last_dispatch) < self.interval:
			return False

		self._in_flight = True
		self._last_dispatch = now
		self.dispatched += 1
		self._task = asyncio.create_task(self._run_detection(self._session.generation))
		return True

	async def _run_detection(self, generation: int) -> None:
		try:
			try:
				landmarks = await self._source.detect()
			except Exception as e:
				# A failed frame reads as an empty one; the baseline is kept.
				self._channel.publish_no_subject()
				self._on_failure(e)
				return
			try:
				self.handle_detection(landmarks, generation)
			except Exception as e:
				logger.exception("[Scheduler] frame processing failed")
				self._on_failure(e)
		except Exception:
			logger.exception("[Scheduler] failure handling failed")
		finally:
			self._in_flight = False

	def handle_detection(self, landmarks: Optional[LandmarkSet], generation: int) -> None:
		"""
		Process one detection result. Session state is read fresh here; a
		result dispatched before the last start/stop only updates the view.
		"""
		self.consecutive_failures = 0
		if landmarks is None:
			self.no_subject += 1
			self._channel.publish_no_subject()
			return

		session = self._session
		if generation != session.generation:
			self._channel.publish_orientation(classify(landmarks))
			return

		self.processed += 1
		smoothed = smooth(session.smoothed_landmarks, landmarks)
		session.smoothed_landmarks = smoothed

		view = classify(smoothed)
		self._channel.publish_orientation(view)

		if not session.is_monitoring:
			return

		if session.baseline is None:
			baseline = calibrate(smoothed, view)
			if baseline is not None:
				session.baseline = baseline
				self._channel.calibration_completed()
			return

		result = analyze(smoothed, session.baseline, session.sensitivity, view)
		self._channel.publish_posture(result, view)

	def _on_failure(self, error: BaseException) -> None:
		self.failures += 1
		self.consecutive_failures += 1
		logger.debug("[Scheduler] detection failed (%d in a row): %s", self.consecutive_failures, error)
		if self.consecutive_failures < self.max_consecutive_failures:
			return

		count = self.consecutive_failures
		self.consecutive_failures = 0
		if not self._source.simulation and self._fallback_factory is not None:
			self._channel.log(f"[Scheduler] {count} detection failures in a row, switching to simulation")
			try:
				fallback = self._fallback_factory()
			except Exception as e:
				self._channel.report_error(f"Simulated fallback failed to start: {e}")
				return
			self.replace_source(fallback)
			self._channel.mark_ready(simulation=True)
			return
		self._channel.report_error(f"Pose detection failing: {count} consecutive errors (last: {error})")

	def replace_source(self, source: LandmarkSource) -> None:
		old = self._source
		self._source = source
		try:
			old.close()
		except Exception as e:
			logger.warning("[Scheduler] closing %s failed: %s", old.name(), e)

	async def run(self, refresh_hz: float = 60.0) -> None:
		"""Refresh loop; ticks until cancelled."""
		period = 1.0 / refresh_hz if refresh_hz > 0 else 1.0 / 60.0
		logger.info("[Scheduler] started: source=%s target_fps=%.1f", self._source.name(), self.target_fps)
		while True:
			self.tick()
			await asyncio.sleep(period)

	def start(self, refresh_hz: float = 60.0) -> asyncio.Task:
		if self._loop_task is None or self._loop_task.done():
			self._loop_task = asyncio.create_task(self.run(refresh_hz))
		return self._loop_task

	async def stop(self) -> None:
		"""Stop ticking and wait for (or cancel) the in-flight detection."""
		for task in (self._loop_task, self._task):
			if task is not None and not task.done():
				task.cancel()
				try:
					await task
				except asyncio.CancelledError:
					pass
		self._loop_task = None
		self._task = None
		self._in_flight = False
