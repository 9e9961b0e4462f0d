from modules.pose.types import PoseLandmark as PL
from modules.pose.view import ViewType, classify
from tests.helpers import make_landmarks


def _pose(left_ear_vis, right_ear_vis, ls_x=0.35, rs_x=0.65, left_ear_x=0.42, right_ear_x=0.58, nose_vis=0.95):
	return make_landmarks(
		{
			PL.NOSE: (0.5, 0.15, nose_vis),
			PL.LEFT_EAR: (left_ear_x, 0.12, left_ear_vis),
			PL.RIGHT_EAR: (right_ear_x, 0.12, right_ear_vis),
			PL.LEFT_SHOULDER: (ls_x, 0.35, 0.95),
			PL.RIGHT_SHOULDER: (rs_x, 0.35, 0.95),
		}
	)


def test_single_left_ear_with_narrow_shoulders_is_left_side():
	view = classify(_pose(0.9, 0.1, ls_x=0.45, rs_x=0.55))
	assert view.type is ViewType.SIDE
	assert view.side == "left"
	assert "left" in view.label


def test_single_right_ear_is_right_side():
	view = classify(_pose(0.1, 0.9))
	assert view.type is ViewType.SIDE
	assert view.side == "right"


def test_hidden_nose_is_unknown():
	assert classify(_pose(0.9, 0.9, nose_vis=0.2)).type is ViewType.UNKNOWN


def test_both_ears_wide_shoulders_is_front():
	assert classify(_pose(0.9, 0.9)).type is ViewType.FRONT


def test_both_ears_moderate_shoulders_is_diagonal():
	assert classify(_pose(0.9, 0.9, ls_x=0.39, rs_x=0.61)).type is ViewType.DIAGONAL


def test_both_ears_close_together_is_diagonal():
	view = classify(_pose(0.9, 0.9, left_ear_x=0.48, right_ear_x=0.52))
	assert view.type is ViewType.DIAGONAL


def test_narrow_shoulders_without_ears_prefers_left_side():
	view = classify(_pose(0.0, 0.0, ls_x=0.45, rs_x=0.55))
	assert view.type is ViewType.SIDE
	assert view.side == "left"


def test_no_ears_fallback_uses_shoulder_separation():
	assert classify(_pose(0.0, 0.0, ls_x=0.35, rs_x=0.65)).type is ViewType.FRONT
	assert classify(_pose(0.0, 0.0, ls_x=0.405, rs_x=0.595)).type is ViewType.DIAGONAL


def test_invisible_shoulder_counts_as_zero_separation():
	pose = make_landmarks(
		{
			PL.NOSE: (0.5, 0.15, 0.95),
			PL.LEFT_EAR: (0.42, 0.12, 0.9),
			PL.RIGHT_EAR: (0.58, 0.12, 0.9),
			PL.LEFT_SHOULDER: (0.35, 0.35, 0.95),
			PL.RIGHT_SHOULDER: (0.65, 0.35, 0.1),
		}
	)
	assert classify(pose).type is ViewType.SIDE
