from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Iterable, Iterator, Optional, Tuple


LANDMARK_COUNT = 33


class PoseLandmark(IntEnum):
	"""
	MediaPipe Pose landmark indices (33-point BlazePose topology).
	Only the points used by the posture metrics are named.
	"""

	NOSE = 0
	LEFT_EYE = 2
	RIGHT_EYE = 5
	LEFT_EAR = 7
	RIGHT_EAR = 8
	LEFT_SHOULDER = 11
	RIGHT_SHOULDER = 12
	LEFT_ELBOW = 13
	RIGHT_ELBOW = 14
	LEFT_WRIST = 15
	RIGHT_WRIST = 16
	LEFT_HIP = 23
	RIGHT_HIP = 24


@dataclass(frozen=True)
class Landmark:
	"""
	A single landmark in normalized image space (0..1).
	"""

	x: float
	y: float
	z: float = 0.0
	visibility: float = 0.0  # detection confidence [0..1]

	def is_visible(self, threshold: float) -> bool:
		return float(self.visibility) >= float(threshold)


@dataclass(frozen=True)
class LandmarkSet:
	"""
	Full-body detection for one frame: exactly 33 landmarks, position = identity.

	Instances are never mutated; smoothing produces a new set.
	"""

	points: Tuple[Landmark, ...]

	def __post_init__(self) -> None:
		if len(self.points) != LANDMARK_COUNT:
			raise ValueError(f"LandmarkSet needs {LANDMARK_COUNT} landmarks, got {len(self.points)}")

	@classmethod
	def from_points(cls, points: Iterable[Landmark]) -> "LandmarkSet":
		return cls(points=tuple(points))

	def __getitem__(self, idx: int) -> Landmark:
		return self.points[int(idx)]

	def __iter__(self) -> Iterator[Landmark]:
		return iter(self.points)

	def __len__(self) -> int:
		return len(self.points)

	def visible(self, idx: int, threshold: float) -> Optional[Landmark]:
		"""Return the landmark at `idx` if it meets `threshold`, else None."""
		lm = self.points[int(idx)]
		return lm if lm.is_visible(threshold) else None
