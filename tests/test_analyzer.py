import pytest

from modules.pose.analyzer import (
	PostureIssue,
	PostureStatus,
	analyze,
	status_for,
)
from modules.pose.calibration import calibrate
from modules.pose.types import PoseLandmark as PL
from modules.pose.view import classify
from tests.helpers import front_pose, make_landmarks, side_pose


@pytest.fixture
def front_baseline():
	return calibrate(front_pose())


def test_slouching_scenario(front_baseline):
	current = front_pose(left_shoulder=(0.35, 0.40), right_shoulder=(0.65, 0.40))
	result = analyze(current, front_baseline, 1.0)
	assert PostureIssue.SLOUCHING in result.issues
	assert result.status is PostureStatus.WARNING


def test_width_compression_flags_leaning(front_baseline):
	current = front_pose(left_shoulder=(0.45, 0.35), right_shoulder=(0.55, 0.35))
	result = analyze(current, front_baseline, 1.0)
	assert PostureIssue.LEANING_FORWARD in result.issues


def test_unchanged_pose_is_good(front_baseline):
	result = analyze(front_pose(), front_baseline, 1.0)
	assert result.status is PostureStatus.GOOD
	assert result.issues == ()


def test_two_issues_is_bad(front_baseline):
	current = front_pose(left_shoulder=(0.35, 0.40), right_shoulder=(0.65, 0.40), nose=(0.5, 0.25))
	result = analyze(current, front_baseline, 1.0)
	assert set(result.issues) == {PostureIssue.SLOUCHING, PostureIssue.HEAD_DOWN}
	assert result.status is PostureStatus.BAD
	assert result.issue_labels == ["Slouching", "Head Down"]


def test_low_sensitivity_is_stricter(front_baseline):
	borderline = front_pose(left_shoulder=(0.35, 0.38), right_shoulder=(0.65, 0.38))
	strict = analyze(borderline, front_baseline, 0.1)
	lenient = analyze(borderline, front_baseline, 2.0)
	assert PostureIssue.SLOUCHING in strict.issues
	assert PostureIssue.SLOUCHING not in lenient.issues


def test_invalid_shoulders_fail_open(front_baseline):
	current = front_pose(left_shoulder=(0.35, 0.60), right_shoulder=(0.65, 0.60), visibility=0.2)
	result = analyze(current, front_baseline, 0.1)
	assert result.status is PostureStatus.GOOD
	assert result.issues == ()


def test_turtle_neck_uses_ear_to_nose_offset():
	def pose(ear_x):
		return make_landmarks(
			{
				PL.NOSE: (0.5, 0.15, 0.95),
				PL.LEFT_EAR: (ear_x, 0.12, 0.9),
				PL.LEFT_SHOULDER: (0.35, 0.35, 0.95),
				PL.RIGHT_SHOULDER: (0.65, 0.35, 0.95),
			}
		)

	baseline = calibrate(pose(0.42))
	assert analyze(pose(0.43), baseline, 1.0).issues == ()
	assert analyze(pose(0.48), baseline, 1.0).issues == (PostureIssue.TURTLE_NECK,)


def test_wrist_at_chin_is_chin_resting(front_baseline):
	current = make_landmarks(
		{
			PL.NOSE: (0.5, 0.15, 0.95),
			PL.LEFT_SHOULDER: (0.35, 0.35, 0.95),
			PL.RIGHT_SHOULDER: (0.65, 0.35, 0.95),
			PL.RIGHT_WRIST: (0.52, 0.22, 0.9),
		}
	)
	assert analyze(current, front_baseline, 1.0).issues == (PostureIssue.CHIN_RESTING,)


def test_side_view_metrics():
	pose = side_pose()
	view = classify(pose)
	baseline = calibrate(pose, view)
	result = analyze(pose, baseline, 1.0, view)
	assert set(result.issues) == {PostureIssue.FORWARD_HEAD, PostureIssue.ROUNDED_SHOULDERS}
	assert result.status is PostureStatus.BAD
	assert analyze(pose, baseline, 2.0, view).status is PostureStatus.GOOD


def test_side_head_down_uses_looser_threshold():
	upright = side_pose(ear_x=0.47, hip_x=0.44, nose_y=0.2)
	view = classify(upright)
	baseline = calibrate(upright, view)
	slightly_down = side_pose(ear_x=0.47, hip_x=0.44, nose_y=0.255)
	much_down = side_pose(ear_x=0.47, hip_x=0.44, nose_y=0.27)
	assert analyze(slightly_down, baseline, 1.0, view).issues == ()
	assert analyze(much_down, baseline, 1.0, view).issues == (PostureIssue.HEAD_DOWN,)


def test_side_baseline_without_view_uses_side_metrics():
	pose = side_pose()
	baseline = calibrate(pose, classify(pose))
	assert PostureIssue.FORWARD_HEAD in analyze(pose, baseline, 1.0).issues


@pytest.mark.parametrize("count,status", [(0, PostureStatus.GOOD), (1, PostureStatus.WARNING), (2, PostureStatus.BAD), (5, PostureStatus.BAD)])
def test_status_follows_issue_count(count, status):
	assert status_for(count) is status


@pytest.mark.parametrize(
	"current",
	[
		front_pose(left_shoulder=(0.35, 0.37), right_shoulder=(0.65, 0.37), nose=(0.5, 0.19)),
		front_pose(left_shoulder=(0.40, 0.36), right_shoulder=(0.60, 0.36)),
		front_pose(left_shoulder=(0.45, 0.45), right_shoulder=(0.55, 0.45), nose=(0.5, 0.3)),
	],
)
def test_raising_sensitivity_never_adds_issues(front_baseline, current):
	counts = [len(analyze(current, front_baseline, s).issues) for s in (0.05, 0.1, 0.3, 0.7, 1.0, 1.5, 2.0, 4.0)]
	assert counts == sorted(counts, reverse=True)
	for result in (analyze(current, front_baseline, s) for s in (0.1, 1.0, 2.0)):
		assert result.status is status_for(len(result.issues))
