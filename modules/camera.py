from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional, Sequence

from modules.retry import RetryExhausted, RetryPolicy

logger = logging.getLogger(__name__)


class AcquisitionError(RuntimeError):
	"""No camera could be opened (missing device, permission denied, busy)."""


@dataclass(frozen=True)
class CaptureProfile:
	"""
	One set of capture constraints to try. `width`/`height`/`fps` of None leave
	the driver default in place.
	"""

	device_index: int = 0
	width: Optional[int] = 640
	height: Optional[int] = 480
	fps: Optional[int] = None

	def describe(self) -> str:
		size = f"{self.width}x{self.height}" if self.width and self.height else "default"
		return f"device={self.device_index} size={size} fps={self.fps or 'default'}"


DEFAULT_PROFILES: List[CaptureProfile] = [
	CaptureProfile(device_index=0, width=640, height=480),
	CaptureProfile(device_index=0, width=320, height=240),
	CaptureProfile(device_index=0, width=None, height=None),
]


class OpenCVCamera:
	"""
	Thin OpenCV capture wrapper.

	`read_rgb()` blocks on the driver; callers run it in a worker thread. A lock
	keeps `read_rgb()` and `close()` from racing on the capture handle.
	"""

	def __init__(self, profile: CaptureProfile) -> None:
		import cv2  # type: ignore

		self._cv2 = cv2
		self._lock = threading.Lock()
		self.profile = profile
		cap = cv2.VideoCapture(int(profile.device_index))
		if not cap or not cap.isOpened():
			try:
				cap.release()
			except Exception:
				pass
			raise AcquisitionError(f"camera not available ({profile.describe()})")
		if profile.width and profile.height:
			cap.set(cv2.CAP_PROP_FRAME_WIDTH, int(profile.width))
			cap.set(cv2.CAP_PROP_FRAME_HEIGHT, int(profile.height))
		if profile.fps:
			cap.set(cv2.CAP_PROP_FPS, int(profile.fps))
		# A device can open and still refuse frames (e.g. permission denied).
		ok, _frame = cap.read()
		if not ok:
			cap.release()
			raise AcquisitionError(f"camera opened but returned no frame ({profile.describe()})")
		self._cap = cap

	def read_rgb(self):
		with self._lock:
			if self._cap is None:
				raise AcquisitionError("camera is closed")
			ok, frame = self._cap.read()
		if not ok or frame is None:
			raise AcquisitionError("camera frame grab failed")
		return self._cv2.cvtColor(frame, self._cv2.COLOR_BGR2RGB)

	def close(self) -> None:
		with self._lock:
			try:
				if self._cap is not None:
					self._cap.release()
			except Exception:
				pass
			self._cap = None


CameraOpener = Callable[[CaptureProfile], Any]


async def acquire_camera(
	profiles: Sequence[CaptureProfile] = DEFAULT_PROFILES,
	policy: RetryPolicy = RetryPolicy(),
	opener: CameraOpener = OpenCVCamera,
	sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> Any:
	"""
	Open the first camera profile that works.

	Each attempt walks the prioritized profile list once; attempts are spaced by
	the policy's backoff. Raises AcquisitionError when every attempt fails.
	"""
	if not profiles:
		raise AcquisitionError("no capture profiles configured")

	async def _attempt(attempt: int) -> Any:
		errors: List[str] = []
		for profile in profiles:
			try:
				cam = await asyncio.to_thread(opener, profile)
				logger.info("[Camera] opened %s (attempt %d)", profile.describe(), attempt)
				return cam
			except Exception as e:
				errors.append(f"{profile.describe()}: {e}")
		raise AcquisitionError("; ".join(errors))

	try:
		return await policy.run(_attempt, label="camera acquisition", sleep=sleep)
	except RetryExhausted as e:
		raise AcquisitionError(str(e.last_error or e)) from e
