from __future__ import annotations

import logging
from typing import Optional

from modules.pose.types import LANDMARK_COUNT, Landmark, LandmarkSet

logger = logging.getLogger(__name__)


class ModelLoadError(RuntimeError):
	"""The pose model could not be imported or initialized."""


class MediaPipePoseProvider:
	"""
	MediaPipe Pose adapter that turns an RGB frame into a 33-point LandmarkSet.

	Notes:
	- Coordinates stay normalized (0..1); the posture metrics are scale-free.
	- `visibility` is passed through as the landmark confidence.
	- MediaPipe's own temporal smoothing stays on; our smoother runs on top.
	"""

	def __init__(
		self,
		model_complexity: int = 1,
		min_detection_confidence: float = 0.5,
		min_tracking_confidence: float = 0.5,
	) -> None:
		try:
			import mediapipe as mp  # type: ignore
		except Exception as e:
			raise ModelLoadError(
				"MediaPipe is not installed. Install pose deps with: pip install 'posture-guard[pose]'"
			) from e

		try:
			self._pose = mp.solutions.pose.Pose(
				static_image_mode=False,
				model_complexity=int(model_complexity),
				enable_segmentation=False,
				smooth_landmarks=True,
				min_detection_confidence=float(min_detection_confidence),
				min_tracking_confidence=float(min_tracking_confidence),
			)
		except Exception as e:
			raise ModelLoadError(f"MediaPipe Pose failed to initialize: {e!r}") from e

	def name(self) -> str:
		return "mediapipe_pose"

	def infer_rgb(self, rgb) -> Optional[LandmarkSet]:
		# rgb: HxWx3 uint8
		res = self._pose.process(rgb)
		if not res or not getattr(res, "pose_landmarks", None):
			return None

		lm = res.pose_landmarks.landmark
		if len(lm) < LANDMARK_COUNT:
			logger.debug("[Pose] partial detection with %d landmarks ignored", len(lm))
			return None
		return LandmarkSet.from_points(
			Landmark(
				x=float(p.x),
				y=float(p.y),
				z=float(getattr(p, "z", 0.0) or 0.0),
				visibility=float(getattr(p, "visibility", 0.0) or 0.0),
			)
			for p in lm[:LANDMARK_COUNT]
		)

	def close(self) -> None:
		try:
			if self._pose:
				self._pose.close()
		except Exception:
			pass
