import asyncio
from typing import Any, Dict, List, Optional, Tuple

from modules.pose.base import LandmarkSource
from modules.pose.types import LANDMARK_COUNT, Landmark, LandmarkSet, PoseLandmark as PL


def make_landmarks(points: Optional[Dict[int, Tuple[float, float, float]]] = None, default_visibility: float = 0.0) -> LandmarkSet:
	"""Build a 33-point set; `points` maps index -> (x, y, visibility)."""
	points = points or {}
	out = []
	for i in range(LANDMARK_COUNT):
		if i in points:
			x, y, vis = points[i]
			out.append(Landmark(x=x, y=y, z=0.0, visibility=vis))
		else:
			out.append(Landmark(x=0.5, y=0.5, z=0.0, visibility=default_visibility))
	return LandmarkSet.from_points(out)


def front_pose(
	left_shoulder: Tuple[float, float] = (0.35, 0.35),
	right_shoulder: Tuple[float, float] = (0.65, 0.35),
	nose: Tuple[float, float] = (0.5, 0.15),
	visibility: float = 0.95,
) -> LandmarkSet:
	return make_landmarks(
		{
			PL.LEFT_SHOULDER: (*left_shoulder, visibility),
			PL.RIGHT_SHOULDER: (*right_shoulder, visibility),
			PL.NOSE: (*nose, visibility),
		}
	)


def side_pose(
	ear_x: float = 0.55,
	shoulder_x: float = 0.45,
	hip_x: float = 0.3,
	nose_y: float = 0.2,
) -> LandmarkSet:
	"""Left profile: left ear/shoulder/hip visible, right side occluded."""
	return make_landmarks(
		{
			PL.NOSE: (0.6, nose_y, 0.9),
			PL.LEFT_EAR: (ear_x, 0.2, 0.9),
			PL.RIGHT_EAR: (0.6, 0.2, 0.1),
			PL.LEFT_SHOULDER: (shoulder_x, 0.4, 0.9),
			PL.RIGHT_SHOULDER: (0.5, 0.4, 0.2),
			PL.LEFT_HIP: (hip_x, 0.7, 0.9),
		}
	)


class EventRecorder:
	def __init__(self) -> None:
		self.events: List[Dict[str, Any]] = []

	def __call__(self, payload: Dict[str, Any]) -> None:
		self.events.append(payload)

	def of_type(self, kind: str) -> List[Dict[str, Any]]:
		return [e for e in self.events if e.get("type") == kind]

	def types(self) -> List[str]:
		return [e.get("type") for e in self.events]

	def clear(self) -> None:
		self.events.clear()


class ScriptedSource(LandmarkSource):
	"""Returns queued results in order; repeats the last one when exhausted."""

	def __init__(self, results: List[Any], kind: str = "camera") -> None:
		self.kind = kind
		self._results = list(results)
		self._last: Any = None
		self.calls = 0
		self.closed = False

	def name(self) -> str:
		return f"scripted-{self.kind}"

	async def detect(self) -> Optional[LandmarkSet]:
		self.calls += 1
		if self._results:
			self._last = self._results.pop(0)
		if isinstance(self._last, Exception):
			raise self._last
		return self._last

	def close(self) -> None:
		self.closed = True


class GatedSource(LandmarkSource):
	"""Each detect() waits until release() is called; tracks concurrency."""

	kind = "camera"

	def __init__(self, result: Optional[LandmarkSet]) -> None:
		self._result = result
		self._gate = asyncio.Event()
		self.calls = 0
		self.active = 0
		self.max_active = 0

	def name(self) -> str:
		return "gated"

	def release(self) -> None:
		self._gate.set()

	async def detect(self) -> Optional[LandmarkSet]:
		self.calls += 1
		self.active += 1
		self.max_active = max(self.max_active, self.active)
		try:
			await self._gate.wait()
			self._gate = asyncio.Event()
			return self._result
		finally:
			self.active -= 1

	def close(self) -> None:
		pass
