from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from modules.pose.types import LandmarkSet, PoseLandmark as PL


VISIBILITY_THRESHOLD = 0.3
SIDE_SHOULDER_SEPARATION = 0.18
DIAGONAL_SHOULDER_SEPARATION = 0.25
MIN_EAR_DISTANCE = 0.06
FALLBACK_FRONT_SEPARATION = 0.2


class ViewType(str, Enum):
	FRONT = "front"
	SIDE = "side"
	DIAGONAL = "diagonal"
	UNKNOWN = "unknown"


@dataclass(frozen=True)
class ViewClassification:
	type: ViewType
	label: str
	side: Optional[str] = None  # "left" / "right" for side views

	@property
	def is_side(self) -> bool:
		return self.type is ViewType.SIDE


def _side_view(side: str) -> ViewClassification:
	return ViewClassification(type=ViewType.SIDE, label=f"Side view ({side})", side=side)


FRONT_VIEW = ViewClassification(type=ViewType.FRONT, label="Front view")
DIAGONAL_VIEW = ViewClassification(type=ViewType.DIAGONAL, label="Diagonal view")
UNKNOWN_VIEW = ViewClassification(type=ViewType.UNKNOWN, label="Face not visible")


def classify(landmarks: LandmarkSet) -> ViewClassification:
	"""
	Decide whether the subject faces the camera, is in profile, or in between.

	Rules are checked in priority order:
	  1. nose not visible -> unknown
	  2. exactly one ear visible, or shoulders nearly overlapping -> side
	  3. both ears, but narrow shoulders or ears close together -> diagonal
	  4. both ears, wide shoulders and ears apart -> front
	  5. no ears: wide enough shoulders -> front, otherwise diagonal
	"""
	if not landmarks[PL.NOSE].is_visible(VISIBILITY_THRESHOLD):
		return UNKNOWN_VIEW

	left_ear = landmarks[PL.LEFT_EAR]
	right_ear = landmarks[PL.RIGHT_EAR]
	left_ear_ok = left_ear.is_visible(VISIBILITY_THRESHOLD)
	right_ear_ok = right_ear.is_visible(VISIBILITY_THRESHOLD)
	ears_visible = int(left_ear_ok) + int(right_ear_ok)

	ls = landmarks[PL.LEFT_SHOULDER]
	rs = landmarks[PL.RIGHT_SHOULDER]
	if ls.is_visible(VISIBILITY_THRESHOLD) and rs.is_visible(VISIBILITY_THRESHOLD):
		shoulder_sep = abs(ls.x - rs.x)
	else:
		shoulder_sep = 0.0

	if ears_visible == 1 or shoulder_sep < SIDE_SHOULDER_SEPARATION:
		# Left wins when both or neither ear is visible.
		if right_ear_ok and not left_ear_ok:
			return _side_view("right")
		return _side_view("left")

	if ears_visible == 2:
		ear_dist = abs(left_ear.x - right_ear.x)
		if shoulder_sep < DIAGONAL_SHOULDER_SEPARATION or ear_dist < MIN_EAR_DISTANCE:
			return DIAGONAL_VIEW
		return FRONT_VIEW

	if shoulder_sep >= FALLBACK_FRONT_SEPARATION:
		return FRONT_VIEW
	return DIAGONAL_VIEW
