"""Pydantic models for the WebSocket protocol and API validation/docs."""
from schemas.messages import (
	CalibratedEvent,
	ErrorEvent,
	HostCommand,
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
from schemas.responses import CommandResponse, StatusResponse

__all__ = [
	"CalibratedEvent",
	"CommandResponse",
	"ErrorEvent",
	"HostCommand",
	"LogEvent",
	"OrientationEvent",
	"PostureEvent",
	"ReadyEvent",
	"SetSensitivity",
	"StartedEvent",
	"StartMonitoring",
	"StatusResponse",
	"StopMonitoring",
	"StoppedEvent",
	"parse_command",
]
