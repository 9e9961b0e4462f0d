from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from modules.pose.types import Landmark, LandmarkSet, PoseLandmark as PL
from modules.pose.view import ViewClassification


FRONT_MIN_VISIBILITY = 0.5
SIDE_MIN_VISIBILITY = 0.4
SIDE_PLACEHOLDER_WIDTH = 0.2


@dataclass(frozen=True)
class CalibrationBaseline:
	"""
	Reference posture captured once per monitoring session.

	Front view uses shoulder-center Y and shoulder width; side view keeps the
	single-shoulder Y plus the X positions of ear / shoulder / hip on the
	visible side. `shoulder_width` is a placeholder for side baselines.
	"""

	shoulder_center_y: float
	shoulder_width: float
	nose_y: Optional[float] = None
	is_side_view: bool = False
	side: Optional[str] = None
	ear_x: Optional[float] = None
	shoulder_x: Optional[float] = None
	hip_x: Optional[float] = None
	ear_nose_x: Optional[float] = None


def side_points(
	landmarks: LandmarkSet,
	threshold: float,
	preferred: Optional[str] = None,
) -> Tuple[Optional[str], Optional[Landmark], Optional[Landmark], Optional[Landmark]]:
	"""
	Pick (side, shoulder, ear, hip) for profile metrics.

	`preferred` comes from the view label; without it (or when that shoulder is
	not visible) the more visible shoulder wins. Ear and hip are taken from the
	same side and are None when below `threshold`.
	"""
	ls = landmarks[PL.LEFT_SHOULDER]
	rs = landmarks[PL.RIGHT_SHOULDER]
	left_ok = ls.is_visible(threshold)
	right_ok = rs.is_visible(threshold)
	if not left_ok and not right_ok:
		return None, None, None, None

	if preferred == "left" and left_ok:
		side = "left"
	elif preferred == "right" and right_ok:
		side = "right"
	elif left_ok and (not right_ok or ls.visibility >= rs.visibility):
		side = "left"
	else:
		side = "right"

	if side == "left":
		return side, ls, landmarks.visible(PL.LEFT_EAR, threshold), landmarks.visible(PL.LEFT_HIP, threshold)
	return side, rs, landmarks.visible(PL.RIGHT_EAR, threshold), landmarks.visible(PL.RIGHT_HIP, threshold)


def _front_ear(landmarks: LandmarkSet) -> Optional[Landmark]:
	return landmarks.visible(PL.LEFT_EAR, FRONT_MIN_VISIBILITY) or landmarks.visible(PL.RIGHT_EAR, FRONT_MIN_VISIBILITY)


def calibrate(landmarks: LandmarkSet, view: Optional[ViewClassification] = None) -> Optional[CalibrationBaseline]:
	"""
	Capture a baseline, or return None when the required landmarks are missing.

	Both shoulders at >= 0.5 give a front baseline (unless the view is side).
	Otherwise one shoulder at >= 0.4 gives a side baseline.
	"""
	nose = landmarks.visible(PL.NOSE, FRONT_MIN_VISIBILITY)
	nose_y = nose.y if nose else None

	ls = landmarks.visible(PL.LEFT_SHOULDER, FRONT_MIN_VISIBILITY)
	rs = landmarks.visible(PL.RIGHT_SHOULDER, FRONT_MIN_VISIBILITY)
	is_side = view is not None and view.is_side

	if ls and rs and not is_side:
		ear = _front_ear(landmarks)
		return CalibrationBaseline(
			shoulder_center_y=(ls.y + rs.y) / 2.0,
			shoulder_width=abs(ls.x - rs.x),
			nose_y=nose_y,
			ear_nose_x=(ear.x - nose.x) if ear and nose else None,
		)

	side, shoulder, ear, hip = side_points(landmarks, SIDE_MIN_VISIBILITY, view.side if view else None)
	if shoulder is None:
		return None
	return CalibrationBaseline(
		shoulder_center_y=shoulder.y,
		shoulder_width=SIDE_PLACEHOLDER_WIDTH,
		nose_y=nose_y,
		is_side_view=True,
		side=side,
		ear_x=ear.x if ear else None,
		shoulder_x=shoulder.x,
		hip_x=hip.x if hip else None,
	)
