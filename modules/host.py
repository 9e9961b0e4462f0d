"""
Host-side helpers that consume `posture` events.

These mirror what the host application does with the protocol: map the
user-facing alert frequency to an analyzer sensitivity, and decide when a run
of bad frames deserves an alert. The core never calls them itself.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional


class AlertFrequency(str, Enum):
	LOW = "low"
	MEDIUM = "medium"
	HIGH = "high"


# Stored setting values used by the mobile app for each level.
STORED_LEVEL_VALUES: Dict[AlertFrequency, float] = {
	AlertFrequency.LOW: 0.1,
	AlertFrequency.MEDIUM: 0.3,
	AlertFrequency.HIGH: 0.5,
}

# Inverted: more frequent alerts need a smaller (stricter) threshold multiplier.
SENSITIVITY_BY_LEVEL: Dict[AlertFrequency, float] = {
	AlertFrequency.LOW: 1.5,
	AlertFrequency.MEDIUM: 1.0,
	AlertFrequency.HIGH: 0.7,
}


def level_from_stored(value: float) -> AlertFrequency:
	"""Bucket a persisted setting (0.1 / 0.3 / 0.5) into a level."""
	v = float(value)
	if v <= STORED_LEVEL_VALUES[AlertFrequency.LOW]:
		return AlertFrequency.LOW
	if v <= STORED_LEVEL_VALUES[AlertFrequency.MEDIUM]:
		return AlertFrequency.MEDIUM
	return AlertFrequency.HIGH


def sensitivity_for_level(level: AlertFrequency | str | float) -> float:
	if isinstance(level, (int, float)) and not isinstance(level, bool):
		level = level_from_stored(level)
	return SENSITIVITY_BY_LEVEL[AlertFrequency(level)]


@dataclass
class BadPostureAlertTracker:
	"""
	Count-based hysteresis: `threshold` consecutive bad results fire one alert
	and reset the count. Any other status resets it too.
	"""

	threshold: int = 3
	on_alert: Optional[Callable[[int], None]] = None
	consecutive_bad: int = 0
	total_alerts: int = 0

	def observe(self, status: str) -> bool:
		if status != "bad":
			self.consecutive_bad = 0
			return False
		self.consecutive_bad += 1
		if self.consecutive_bad < max(1, int(self.threshold)):
			return False
		self.consecutive_bad = 0
		self.total_alerts += 1
		if self.on_alert is not None:
			self.on_alert(self.total_alerts)
		return True

	def observe_event(self, event: Dict[str, Any]) -> bool:
		"""Feed a raw protocol event; non-posture events are ignored."""
		if not isinstance(event, dict) or event.get("type") != "posture":
			return False
		return self.observe(str(event.get("status", "")))

	def reset(self) -> None:
		self.consecutive_bad = 0
