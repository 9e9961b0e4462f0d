from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from modules.camera import CaptureProfile, DEFAULT_PROFILES


@dataclass(frozen=True)
class SchedulerConfig:
	# Detection cadence; clamped to [MIN_TARGET_FPS, MAX_TARGET_FPS].
	target_fps: float = 12.0
	# Refresh loop rate that drives scheduler ticks (display-refresh equivalent).
	refresh_hz: float = 60.0
	# Contiguous per-frame detection failures tolerated before reporting.
	max_consecutive_failures: int = 30


@dataclass(frozen=True)
class RetryConfig:
	max_attempts: int = 3
	backoff_seconds: float = 1.0


@dataclass(frozen=True)
class CameraConfig:
	# Tried in order on every acquisition attempt.
	profiles: List[CaptureProfile] = field(default_factory=lambda: list(DEFAULT_PROFILES))
	retry: RetryConfig = field(default_factory=RetryConfig)


@dataclass(frozen=True)
class PoseModelConfig:
	model_complexity: int = 1
	min_detection_confidence: float = 0.5
	min_tracking_confidence: float = 0.5


@dataclass(frozen=True)
class SimulationConfig:
	time_step: float = 1.0 / 60.0
	amplitude: float = 0.02
	rate: float = 2.0


@dataclass(frozen=True)
class ServerConfig:
	# Mirror [Scheduler]/[Channel] diagnostics to the host as `log` events.
	forward_logs: bool = False
	log_level: str = "INFO"


@dataclass(frozen=True)
class AppConfig:
	# auto: camera + MediaPipe, simulated fallback; camera: no fallback; simulated: skip the camera.
	source: str = "auto"
	default_sensitivity: float = 1.0
	scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
	camera: CameraConfig = field(default_factory=CameraConfig)
	pose: PoseModelConfig = field(default_factory=PoseModelConfig)
	simulation: SimulationConfig = field(default_factory=SimulationConfig)
	server: ServerConfig = field(default_factory=ServerConfig)


MIN_TARGET_FPS = 10.0
MAX_TARGET_FPS = 15.0
SOURCE_MODES = ("auto", "camera", "simulated")

_CONFIG_PATH: Optional[Path] = None
_CONFIG_CACHE: Optional[AppConfig] = None


def _repo_root() -> Path:
	# modules/config.py -> repo root is one level up.
	return Path(__file__).resolve().parents[1]


def get_default_config_path() -> Path:
	return _repo_root() / "config.json"


def set_config_path(path: str | Path) -> None:
	"""
	Override the config path (must be called before first get_config()).
	Intended for tooling and tests; the server normally uses the default path.
	"""
	global _CONFIG_PATH
	global _CONFIG_CACHE
	_CONFIG_PATH = Path(path).expanduser().resolve()
	_CONFIG_CACHE = None


def _deep_get(d: Dict[str, Any], keys: list[str], default: Any = None) -> Any:
	cur: Any = d
	for k in keys:
		if not isinstance(cur, dict):
			return default
		cur = cur.get(k)
	return cur if cur is not None else default


def _as_int(v: Any, default: int) -> int:
	try:
		return int(v)
	except Exception:
		return int(default)


def _as_bool(v: Any, default: bool) -> bool:
	if isinstance(v, bool):
		return v
	if isinstance(v, (int, float)):
		return bool(v)
	if isinstance(v, str):
		return v.strip().lower() in ("1", "true", "yes", "on")
	return bool(default)


def _as_str(v: Any, default: str = "") -> str:
	return str(v) if v is not None else str(default)


def _as_float(v: Any, default: float) -> float:
	try:
		return float(v)
	except Exception:
		return float(default)


def _opt_int(v: Any) -> Optional[int]:
	if v is None:
		return None
	n = _as_int(v, 0)
	return n if n > 0 else None


def _parse_profiles(obj: Any) -> List[CaptureProfile]:
	if not isinstance(obj, list):
		return list(DEFAULT_PROFILES)
	out: List[CaptureProfile] = []
	for item in obj:
		if not isinstance(item, dict):
			continue
		out.append(
			CaptureProfile(
				device_index=max(0, _as_int(item.get("device_index"), 0)),
				width=_opt_int(item.get("width")),
				height=_opt_int(item.get("height")),
				fps=_opt_int(item.get("fps")),
			)
		)
	return out or list(DEFAULT_PROFILES)


def clamp_target_fps(v: float) -> float:
	return min(MAX_TARGET_FPS, max(MIN_TARGET_FPS, float(v)))


def load_config(path: Optional[str | Path] = None) -> AppConfig:
	p = Path(path).expanduser().resolve() if path else (_CONFIG_PATH or get_default_config_path())
	raw: Any = {}
	if p.exists():
		try:
			raw = json.loads(p.read_text(encoding="utf-8"))
		except Exception:
			# Malformed config: fall back to defaults, keep the service running.
			raw = {}
	if not isinstance(raw, dict):
		raw = {}

	source = _as_str(os.getenv("POSTURE_SOURCE") or _deep_get(raw, ["source"], "auto"), "auto").strip().lower()
	if source not in SOURCE_MODES:
		source = "auto"

	sensitivity = _as_float(_deep_get(raw, ["default_sensitivity"], 1.0), 1.0)

	target_fps = clamp_target_fps(_as_float(_deep_get(raw, ["scheduler", "target_fps"], 12.0), 12.0))
	refresh_hz = _as_float(_deep_get(raw, ["scheduler", "refresh_hz"], 60.0), 60.0)
	max_failures = _as_int(_deep_get(raw, ["scheduler", "max_consecutive_failures"], 30), 30)

	retry_attempts = _as_int(_deep_get(raw, ["camera", "retry", "max_attempts"], 3), 3)
	retry_backoff = _as_float(_deep_get(raw, ["camera", "retry", "backoff_seconds"], 1.0), 1.0)
	profiles = _parse_profiles(_deep_get(raw, ["camera", "profiles"], None))

	model_complexity = _as_int(_deep_get(raw, ["pose", "model_complexity"], 1), 1)
	min_det = _as_float(_deep_get(raw, ["pose", "min_detection_confidence"], 0.5), 0.5)
	min_trk = _as_float(_deep_get(raw, ["pose", "min_tracking_confidence"], 0.5), 0.5)

	sim_step = _as_float(_deep_get(raw, ["simulation", "time_step"], 1.0 / 60.0), 1.0 / 60.0)
	sim_amp = _as_float(_deep_get(raw, ["simulation", "amplitude"], 0.02), 0.02)
	sim_rate = _as_float(_deep_get(raw, ["simulation", "rate"], 2.0), 2.0)

	forward_logs = _as_bool(_deep_get(raw, ["server", "forward_logs"], False), False)
	log_level = _as_str(os.getenv("LOG_LEVEL") or _deep_get(raw, ["server", "log_level"], "INFO"), "INFO").strip().upper()

	return AppConfig(
		source=source,
		default_sensitivity=sensitivity if sensitivity > 0 else 1.0,
		scheduler=SchedulerConfig(
			target_fps=target_fps,
			refresh_hz=refresh_hz if refresh_hz > 0 else 60.0,
			max_consecutive_failures=max_failures if max_failures > 0 else 30,
		),
		camera=CameraConfig(
			profiles=profiles,
			retry=RetryConfig(
				max_attempts=retry_attempts if retry_attempts > 0 else 3,
				backoff_seconds=retry_backoff if retry_backoff >= 0 else 1.0,
			),
		),
		pose=PoseModelConfig(
			model_complexity=model_complexity if model_complexity in (0, 1, 2) else 1,
			min_detection_confidence=min_det,
			min_tracking_confidence=min_trk,
		),
		simulation=SimulationConfig(
			time_step=sim_step if sim_step > 0 else 1.0 / 60.0,
			amplitude=sim_amp,
			rate=sim_rate,
		),
		server=ServerConfig(forward_logs=forward_logs, log_level=log_level or "INFO"),
	)


def get_config() -> AppConfig:
	global _CONFIG_CACHE
	if _CONFIG_CACHE is None:
		_CONFIG_CACHE = load_config()
	return _CONFIG_CACHE
