"""Pydantic models for the host <-> core WebSocket protocol."""
import json
import math
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, field_validator


def _sensitivity_or_default(v: Optional[float]) -> float:
	# Missing or zero means "default", as the host app always sent it.
	if v is None or v == 0:
		return 1.0
	if not math.isfinite(v) or v < 0:
		raise ValueError("sensitivity must be a positive finite number")
	return float(v)


class StartMonitoring(BaseModel):
	"""Host -> core. Begin a session; baseline and smoothing are reset."""

	type: Literal["startMonitoring"]
	sensitivity: Optional[float] = Field(None, validate_default=True, description="Threshold multiplier; smaller is stricter")

	@field_validator("sensitivity")
	@classmethod
	def _check_sensitivity(cls, v: Optional[float]) -> float:
		return _sensitivity_or_default(v)


class StopMonitoring(BaseModel):
	"""Host -> core. End the session and discard the baseline."""

	type: Literal["stopMonitoring"]


class SetSensitivity(BaseModel):
	"""Host -> core. Change the multiplier without recalibrating."""

	type: Literal["setSensitivity"]
	value: Optional[float] = Field(None, validate_default=True)

	@field_validator("value")
	@classmethod
	def _check_value(cls, v: Optional[float]) -> float:
		return _sensitivity_or_default(v)


HostCommand = Annotated[Union[StartMonitoring, StopMonitoring, SetSensitivity], Field(discriminator="type")]

_COMMAND_ADAPTER: TypeAdapter = TypeAdapter(HostCommand)


def parse_command(raw: Union[str, bytes, dict]) -> Union[StartMonitoring, StopMonitoring, SetSensitivity]:
	"""
	Parse one inbound message. Raises ValueError (pydantic ValidationError is a
	subclass) for bad JSON, unknown types or invalid fields.
	"""
	data: Any = raw
	if isinstance(raw, (str, bytes)):
		data = json.loads(raw)
	if not isinstance(data, dict):
		raise ValueError("message must be a JSON object")
	return _COMMAND_ADAPTER.validate_python(data)


class ReadyEvent(BaseModel):
	type: Literal["ready"] = "ready"
	simulation: bool = False


class CalibratedEvent(BaseModel):
	type: Literal["calibrated"] = "calibrated"


class PostureEvent(BaseModel):
	type: Literal["posture"] = "posture"
	status: str
	issues: List[str] = Field(default_factory=list)
	orientation: str


class OrientationEvent(BaseModel):
	type: Literal["orientation"] = "orientation"
	orientation: str
	text: str


class StartedEvent(BaseModel):
	type: Literal["started"] = "started"


class StoppedEvent(BaseModel):
	type: Literal["stopped"] = "stopped"


class ErrorEvent(BaseModel):
	type: Literal["error"] = "error"
	message: str


class LogEvent(BaseModel):
	type: Literal["log"] = "log"
	message: str


CoreEvent = Union[
	ReadyEvent,
	CalibratedEvent,
	PostureEvent,
	OrientationEvent,
	StartedEvent,
	StoppedEvent,
	ErrorEvent,
	LogEvent,
]
