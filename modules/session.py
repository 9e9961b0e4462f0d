from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from modules.pose.calibration import CalibrationBaseline
from modules.pose.types import LandmarkSet


@dataclass
class SessionState:
	"""
	Per-process monitoring state, passed explicitly to the channel and scheduler.

	The channel owns `is_monitoring` and `sensitivity`; the scheduler owns
	`baseline` and `smoothed_landmarks`. `generation` bumps on every start/stop
	so a detection dispatched in an earlier session can be told apart.
	"""

	is_monitoring: bool = False
	sensitivity: float = 1.0
	baseline: Optional[CalibrationBaseline] = None
	smoothed_landmarks: Optional[LandmarkSet] = None
	generation: int = 0

	@property
	def is_calibrated(self) -> bool:
		return self.baseline is not None

	def reset_tracking(self) -> None:
		self.baseline = None
		self.smoothed_landmarks = None

	def start(self, sensitivity: float) -> None:
		self.is_monitoring = True
		self.sensitivity = float(sensitivity)
		self.reset_tracking()
		self.generation += 1

	def stop(self) -> None:
		self.is_monitoring = False
		self.reset_tracking()
		self.generation += 1
