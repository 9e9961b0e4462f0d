from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from modules.pose.calibration import (
	FRONT_MIN_VISIBILITY,
	SIDE_MIN_VISIBILITY,
	CalibrationBaseline,
	side_points,
)
from modules.pose.types import LandmarkSet, PoseLandmark as PL
from modules.pose.view import ViewClassification


# Tuning constants; every one except CHIN_REST_DISTANCE is scaled by sensitivity.
SHOULDER_DROP = 0.04
SHOULDER_WIDTH = 0.12
HEAD_DROP = 0.05
HEAD_FORWARD = 0.04
CHIN_REST_DISTANCE = 0.12
SIDE_HEAD_FORWARD = 0.08
SIDE_ROUNDED_SHOULDERS = 0.1
SIDE_HEAD_DROP = 0.06


class PostureStatus(str, Enum):
	GOOD = "good"
	WARNING = "warning"
	BAD = "bad"


class PostureIssue(str, Enum):
	SLOUCHING = "Slouching"
	LEANING_FORWARD = "Leaning Forward"
	HEAD_DOWN = "Head Down"
	TURTLE_NECK = "Turtle Neck"
	CHIN_RESTING = "Chin Resting"
	FORWARD_HEAD = "Forward Head"
	ROUNDED_SHOULDERS = "Rounded Shoulders"


@dataclass(frozen=True)
class PostureResult:
	status: PostureStatus
	issues: Tuple[PostureIssue, ...] = ()

	@property
	def issue_labels(self) -> List[str]:
		return [i.value for i in self.issues]


def status_for(issue_count: int) -> PostureStatus:
	"""Severity is issue-count based: 0 good, 1 warning, 2+ bad."""
	if issue_count >= 2:
		return PostureStatus.BAD
	if issue_count == 1:
		return PostureStatus.WARNING
	return PostureStatus.GOOD


def _result(issues: List[PostureIssue]) -> PostureResult:
	return PostureResult(status=status_for(len(issues)), issues=tuple(issues))


GOOD = PostureResult(status=PostureStatus.GOOD)


def _head_down(landmarks: LandmarkSet, baseline: CalibrationBaseline, threshold: float) -> bool:
	nose = landmarks.visible(PL.NOSE, FRONT_MIN_VISIBILITY)
	if nose is None or baseline.nose_y is None:
		return False
	return (nose.y - baseline.nose_y) > threshold


def _chin_resting(landmarks: LandmarkSet) -> bool:
	nose = landmarks.visible(PL.NOSE, FRONT_MIN_VISIBILITY)
	if nose is None:
		return False
	for idx in (PL.LEFT_WRIST, PL.RIGHT_WRIST):
		wrist = landmarks.visible(idx, FRONT_MIN_VISIBILITY)
		if wrist is not None and math.hypot(wrist.x - nose.x, wrist.y - nose.y) < CHIN_REST_DISTANCE:
			return True
	return False


def analyze_front(landmarks: LandmarkSet, baseline: CalibrationBaseline, sensitivity: float) -> PostureResult:
	ls = landmarks.visible(PL.LEFT_SHOULDER, FRONT_MIN_VISIBILITY)
	rs = landmarks.visible(PL.RIGHT_SHOULDER, FRONT_MIN_VISIBILITY)
	if ls is None or rs is None:
		# Can't assess; don't raise a false alarm.
		return GOOD

	s = float(sensitivity)
	issues: List[PostureIssue] = []

	center_y = (ls.y + rs.y) / 2.0
	if (center_y - baseline.shoulder_center_y) > SHOULDER_DROP * s:
		issues.append(PostureIssue.SLOUCHING)

	if baseline.shoulder_width > 0:
		ratio = abs(ls.x - rs.x) / baseline.shoulder_width
		if ratio < 1.0 - SHOULDER_WIDTH * s:
			issues.append(PostureIssue.LEANING_FORWARD)

	if _head_down(landmarks, baseline, HEAD_DROP * s):
		issues.append(PostureIssue.HEAD_DOWN)

	nose = landmarks.visible(PL.NOSE, FRONT_MIN_VISIBILITY)
	ear = landmarks.visible(PL.LEFT_EAR, FRONT_MIN_VISIBILITY) or landmarks.visible(PL.RIGHT_EAR, FRONT_MIN_VISIBILITY)
	if nose is not None and ear is not None and baseline.ear_nose_x is not None:
		if abs((ear.x - nose.x) - baseline.ear_nose_x) > HEAD_FORWARD * s:
			issues.append(PostureIssue.TURTLE_NECK)

	if _chin_resting(landmarks):
		issues.append(PostureIssue.CHIN_RESTING)

	return _result(issues)


def analyze_side(
	landmarks: LandmarkSet,
	baseline: CalibrationBaseline,
	sensitivity: float,
	preferred_side: Optional[str] = None,
) -> PostureResult:
	_side, shoulder, ear, hip = side_points(landmarks, SIDE_MIN_VISIBILITY, preferred_side or baseline.side)
	if shoulder is None:
		return GOOD

	s = float(sensitivity)
	issues: List[PostureIssue] = []

	if ear is not None and abs(ear.x - shoulder.x) > SIDE_HEAD_FORWARD * s:
		issues.append(PostureIssue.FORWARD_HEAD)

	if hip is not None and abs(shoulder.x - hip.x) > SIDE_ROUNDED_SHOULDERS * s:
		issues.append(PostureIssue.ROUNDED_SHOULDERS)

	if _head_down(landmarks, baseline, SIDE_HEAD_DROP * s):
		issues.append(PostureIssue.HEAD_DOWN)

	return _result(issues)


def analyze(
	landmarks: LandmarkSet,
	baseline: CalibrationBaseline,
	sensitivity: float = 1.0,
	view: Optional[ViewClassification] = None,
) -> PostureResult:
	"""
	Compare the current (smoothed) landmarks against the session baseline.

	Side-view metrics apply when the current view is side, or when no view is
	given and the baseline was captured in profile. Every threshold is
	multiplied by `sensitivity`, so a smaller value detects more.
	"""
	use_side = view.is_side if view is not None else baseline.is_side_view
	if use_side:
		return analyze_side(landmarks, baseline, sensitivity, view.side if view is not None else None)
	return analyze_front(landmarks, baseline, sensitivity)
