from __future__ import annotations

from typing import Optional

from modules.pose.types import Landmark, LandmarkSet


SMOOTHING_FACTOR = 0.6


def smooth(previous: Optional[LandmarkSet], incoming: LandmarkSet, alpha: float = SMOOTHING_FACTOR) -> LandmarkSet:
	"""
	Exponential smoothing of landmark positions.

	Positions are blended as previous*alpha + incoming*(1-alpha). Visibility is
	always taken from `incoming` so occlusion or tracking loss shows up on the
	frame it happens instead of being averaged away.
	"""
	if previous is None:
		return LandmarkSet.from_points(incoming.points)

	a = float(alpha)
	b = 1.0 - a
	return LandmarkSet.from_points(
		Landmark(
			x=prev.x * a + cur.x * b,
			y=prev.y * a + cur.y * b,
			z=prev.z * a + cur.z * b,
			visibility=cur.visibility,
		)
		for prev, cur in zip(previous.points, incoming.points)
	)
