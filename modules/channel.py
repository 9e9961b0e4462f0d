from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union

from modules.pose.analyzer import PostureResult
from modules.pose.view import ViewClassification, ViewType
from modules.session import SessionState
from schemas.messages import (
	CalibratedEvent,
	CoreEvent,
	ErrorEvent,
	LogEvent,
	OrientationEvent,
	PostureEvent,
	ReadyEvent,
	SetSensitivity,
	StartedEvent,
	StartMonitoring,
	StopMonitoring,
	StoppedEvent,
	parse_command,
)

logger = logging.getLogger(__name__)

EventSink = Callable[[Dict[str, Any]], None]

NO_SUBJECT_TEXT = "No subject detected"


class ChannelState(str, Enum):
	UNINITIALIZED = "uninitialized"
	READY = "ready"
	MONITORING = "monitoring"
	IDLE = "idle"
	TERMINATED = "terminated"


class ResultChannel:
	"""
	Protocol layer between the pipeline and the host application.

	State machine: uninitialized -> ready -> monitoring <-> idle -> terminated.
	Transitions come only from host commands (start/stop/setSensitivity) and
	internal readiness events (`mark_ready`, `calibration_completed`); the
	analyzer just publishes results through here.

	Outbound events are plain dicts handed to every subscribed sink. Sinks must
	not block; the server's sink schedules a WebSocket broadcast.
	"""

	def __init__(self, session: SessionState, sink: Optional[EventSink] = None, forward_logs: bool = False) -> None:
		self._session = session
		self._sinks: List[EventSink] = []
		if sink is not None:
			self._sinks.append(sink)
		self._state = ChannelState.UNINITIALIZED
		self._simulation = False
		self.forward_logs = bool(forward_logs)

	@property
	def state(self) -> ChannelState:
		return self._state

	@property
	def simulation(self) -> bool:
		return self._simulation

	@property
	def session(self) -> SessionState:
		return self._session

	def subscribe(self, sink: EventSink) -> None:
		self._sinks.append(sink)

	def unsubscribe(self, sink: EventSink) -> None:
		try:
			self._sinks.remove(sink)
		except ValueError:
			pass

	def emit(self, event: CoreEvent) -> Dict[str, Any]:
		payload = event.model_dump()
		for sink in list(self._sinks):
			try:
				sink(payload)
			except Exception:
				logger.exception("[Channel] event sink failed for %s", payload.get("type"))
		return payload

	def log(self, message: str) -> None:
		logger.info(message)
		if self.forward_logs:
			self.emit(LogEvent(message=message))

	# Internal readiness events

	def mark_ready(self, simulation: bool) -> None:
		"""Source is up (or fell back to simulation). Safe to call again on fallback."""
		if self._state is ChannelState.TERMINATED:
			return
		self._simulation = bool(simulation)
		if self._state is ChannelState.UNINITIALIZED:
			self._state = ChannelState.READY
		self.log(f"[Channel] ready (simulation={self._simulation})")
		self.emit(ReadyEvent(simulation=self._simulation))

	def calibration_completed(self) -> None:
		if self._state is not ChannelState.MONITORING:
			return
		self.log("[Channel] pose calibrated")
		self.emit(CalibratedEvent())

	def report_error(self, message: str) -> None:
		logger.error("[Channel] %s", message)
		self.emit(ErrorEvent(message=message))

	def terminate(self) -> None:
		if self._state is ChannelState.TERMINATED:
			return
		if self._session.is_monitoring:
			self._session.stop()
		self._state = ChannelState.TERMINATED
		logger.info("[Channel] terminated")

	# Host commands

	def handle_message(self, raw: Union[str, bytes, dict]) -> bool:
		"""
		Apply one inbound host message. Malformed or out-of-state messages are
		logged and ignored; returns True when the command was applied.
		"""
		try:
			cmd = parse_command(raw)
		except ValueError as e:
			logger.warning("[Channel] ignoring malformed message: %s", e)
			return False

		if isinstance(cmd, StartMonitoring):
			return self.start_monitoring(cmd.sensitivity)
		if isinstance(cmd, StopMonitoring):
			return self.stop_monitoring()
		if isinstance(cmd, SetSensitivity):
			return self.set_sensitivity(cmd.value)
		return False

	def start_monitoring(self, sensitivity: float) -> bool:
		if self._state in (ChannelState.UNINITIALIZED, ChannelState.TERMINATED):
			logger.warning("[Channel] startMonitoring ignored in state %s", self._state.value)
			return False
		self._session.start(sensitivity)
		self._state = ChannelState.MONITORING
		self.log(f"[Channel] monitoring started, sensitivity: {self._session.sensitivity}")
		self.emit(StartedEvent())
		return True

	def stop_monitoring(self) -> bool:
		if self._state in (ChannelState.UNINITIALIZED, ChannelState.TERMINATED):
			logger.warning("[Channel] stopMonitoring ignored in state %s", self._state.value)
			return False
		self._session.stop()
		self._state = ChannelState.IDLE
		self.log("[Channel] monitoring stopped")
		self.emit(StoppedEvent())
		return True

	def set_sensitivity(self, value: float) -> bool:
		if self._state is ChannelState.TERMINATED:
			return False
		self._session.sensitivity = float(value)
		self.log(f"[Channel] sensitivity set to {self._session.sensitivity}")
		return True

	# Pipeline results

	def publish_orientation(self, view: ViewClassification) -> None:
		if self._state is ChannelState.TERMINATED:
			return
		self.emit(OrientationEvent(orientation=view.type.value, text=view.label))

	def publish_no_subject(self) -> None:
		if self._state is ChannelState.TERMINATED:
			return
		self.emit(OrientationEvent(orientation=ViewType.UNKNOWN.value, text=NO_SUBJECT_TEXT))

	def publish_posture(self, result: PostureResult, view: ViewClassification) -> None:
		if self._state is not ChannelState.MONITORING:
			return
		self.emit(
			PostureEvent(
				status=result.status.value,
				issues=result.issue_labels,
				orientation=view.type.value,
			)
		)
