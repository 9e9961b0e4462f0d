import asyncio
from dataclasses import replace

import pytest

from modules.camera import AcquisitionError
from modules.config import AppConfig
from modules.pose.mediapipe_provider import ModelLoadError
from modules.pose.simulated import SimulatedLandmarkSource, synthetic_pose
from modules.pose.sources import CameraLandmarkSource, open_source
from modules.scheduler import FrameScheduler
from tests.helpers import front_pose


class FakeCamera:
	def __init__(self):
		self.closed = False
		self.reads = 0

	def read_rgb(self):
		self.reads += 1
		return "rgb-frame"

	def close(self):
		self.closed = True


class FakeProvider:
	def __init__(self, complexity, min_det, min_trk):
		self.args = (complexity, min_det, min_trk)
		self.frames = []
		self.closed = False

	def name(self):
		return "fake-pose"

	def infer_rgb(self, rgb):
		self.frames.append(rgb)
		return front_pose()

	def close(self):
		self.closed = True


def _broken_provider(*args):
	raise ModelLoadError("mediapipe is not installed")


def _acquire_ok(camera):
	async def acquire(profiles, policy):
		return camera

	return acquire


async def _acquire_fails(profiles, policy):
	raise AcquisitionError("no camera")


def test_simulated_mode_skips_camera():
	async def acquire(profiles, policy):
		raise AssertionError("camera must not be opened")

	source = asyncio.run(open_source(AppConfig(source="simulated"), acquire=acquire))
	assert isinstance(source, SimulatedLandmarkSource)
	assert source.simulation is True


def test_auto_falls_back_when_camera_missing():
	source = asyncio.run(open_source(AppConfig(source="auto"), acquire=_acquire_fails))
	assert source.simulation is True


def test_camera_mode_propagates_acquisition_error():
	with pytest.raises(AcquisitionError):
		asyncio.run(open_source(AppConfig(source="camera"), acquire=_acquire_fails))


def test_auto_falls_back_when_model_fails():
	camera = FakeCamera()
	source = asyncio.run(open_source(AppConfig(source="auto"), acquire=_acquire_ok(camera), provider_factory=_broken_provider))
	assert source.simulation is True
	assert camera.closed is True


def test_camera_mode_propagates_model_error():
	camera = FakeCamera()
	with pytest.raises(ModelLoadError):
		asyncio.run(open_source(AppConfig(source="camera"), acquire=_acquire_ok(camera), provider_factory=_broken_provider))
	assert camera.closed is True


def test_camera_source_runs_frame_through_provider():
	cfg = AppConfig(source="auto")
	cfg = replace(cfg, pose=replace(cfg.pose, model_complexity=0))
	camera = FakeCamera()

	async def scenario():
		source = await open_source(cfg, acquire=_acquire_ok(camera), provider_factory=FakeProvider)
		landmarks = await source.detect()
		return source, landmarks

	source, landmarks = asyncio.run(scenario())
	assert isinstance(source, CameraLandmarkSource)
	assert source.simulation is False
	assert source.name() == "camera+fake-pose"
	assert landmarks == front_pose()
	assert camera.reads == 1
	assert source._provider.args == (0, 0.5, 0.5)
	assert source._provider.frames == ["rgb-frame"]

	source.close()
	assert camera.closed is True
	assert source._provider.closed is True


def test_synthetic_pose_is_deterministic():
	assert synthetic_pose(7) == synthetic_pose(7)
	assert synthetic_pose(7) != synthetic_pose(40)
	assert len(synthetic_pose(0)) == 33


def test_simulated_source_sequence_and_close():
	async def collect(source, n):
		return [await source.detect() for _ in range(n)]

	a, b = SimulatedLandmarkSource(), SimulatedLandmarkSource()
	assert asyncio.run(collect(a, 5)) == asyncio.run(collect(b, 5))
	assert a.name() == "simulated"

	a.close()
	with pytest.raises(RuntimeError):
		asyncio.run(a.detect())


def test_simulated_pipeline_reports_good_posture(session, channel, recorder):
	async def scenario():
		source = SimulatedLandmarkSource()
		channel.mark_ready(simulation=True)
		scheduler = FrameScheduler(source, session, channel)
		channel.start_monitoring(1.0)
		for i in range(30):
			scheduler.tick(float(i))
			while scheduler.in_flight:
				await asyncio.sleep(0)

	asyncio.run(scenario())
	assert recorder.of_type("ready") == [{"type": "ready", "simulation": True}]
	assert len(recorder.of_type("calibrated")) == 1
	postures = recorder.of_type("posture")
	assert len(postures) == 29
	assert {p["status"] for p in postures} == {"good"}
	assert {p["orientation"] for p in postures} == {"front"}
