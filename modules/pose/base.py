from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from modules.pose.types import LandmarkSet


class LandmarkSource(ABC):
	"""
	Source capability used by the frame scheduler.

	Implementations yield one LandmarkSet per `detect()` call, or None when no
	person is in frame. Exceptions from `detect()` are per-frame failures; the
	scheduler counts them and keeps going.
	"""

	# "camera" or "simulated"; fixed per implementation.
	kind: str = "camera"

	@property
	def simulation(self) -> bool:
		return self.kind == "simulated"

	@abstractmethod
	def name(self) -> str: ...

	@abstractmethod
	async def detect(self) -> Optional[LandmarkSet]: ...

	@abstractmethod
	def close(self) -> None: ...
