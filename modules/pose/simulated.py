from __future__ import annotations

import math
from typing import Dict, List, Optional

from modules.pose.base import LandmarkSource
from modules.pose.types import LANDMARK_COUNT, Landmark, LandmarkSet, PoseLandmark as PL


# Upright, front-facing pose; every point is shifted vertically by the wobble.
_KEY_POINTS: Dict[PL, Landmark] = {
	PL.NOSE: Landmark(0.5, 0.15, 0.0, 0.95),
	PL.LEFT_SHOULDER: Landmark(0.35, 0.35, 0.0, 0.95),
	PL.RIGHT_SHOULDER: Landmark(0.65, 0.35, 0.0, 0.95),
	PL.LEFT_EAR: Landmark(0.4, 0.12, 0.0, 0.9),
	PL.RIGHT_EAR: Landmark(0.6, 0.12, 0.0, 0.9),
	PL.LEFT_WRIST: Landmark(0.25, 0.6, 0.0, 0.85),
	PL.RIGHT_WRIST: Landmark(0.75, 0.6, 0.0, 0.85),
}


def synthetic_pose(frame_index: int, time_step: float = 1.0 / 60.0, amplitude: float = 0.02, rate: float = 2.0) -> LandmarkSet:
	"""
	Deterministic oscillating pose for frame `frame_index`.

	The whole body bobs vertically by amplitude*sin(rate*t); non-key points are
	laid out on a 5-wide grid so every index carries a plausible value.
	"""
	t = float(frame_index) * float(time_step)
	wobble = math.sin(t * rate) * amplitude

	points: List[Landmark] = []
	for i in range(LANDMARK_COUNT):
		key = _KEY_POINTS.get(i)  # type: ignore[call-overload]
		if key is not None:
			points.append(Landmark(key.x, key.y + wobble, key.z, key.visibility))
		else:
			points.append(Landmark(0.5 + (i % 5) * 0.1 - 0.2, 0.3 + (i // 5) * 0.1 + wobble, 0.0, 0.9))
	return LandmarkSet.from_points(points)


class SimulatedLandmarkSource(LandmarkSource):
	"""
	Fallback source used when no camera or pose model is available.

	Produces the same pose sequence on every run so the downstream pipeline can
	be exercised (and tested) without hardware.
	"""

	kind = "simulated"

	def __init__(self, time_step: float = 1.0 / 60.0, amplitude: float = 0.02, rate: float = 2.0) -> None:
		self._time_step = float(time_step) if time_step > 0 else 1.0 / 60.0
		self._amplitude = float(amplitude)
		self._rate = float(rate)
		self._frame_index = 0
		self._closed = False

	def name(self) -> str:
		return "simulated"

	async def detect(self) -> Optional[LandmarkSet]:
		if self._closed:
			raise RuntimeError("simulated source is closed")
		self._frame_index += 1
		return synthetic_pose(self._frame_index, self._time_step, self._amplitude, self._rate)

	def close(self) -> None:
		self._closed = True
