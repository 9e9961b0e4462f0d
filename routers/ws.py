"""WebSocket endpoint and ConnectionManager. Route: /ws."""
import asyncio
import json
import logging
from typing import Any, Dict, Set

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from app_state import AppState
from deps import get_ws_state
from schemas.messages import ErrorEvent, ReadyEvent

logger = logging.getLogger(__name__)
router = APIRouter(tags=["ws"])

# A client that cannot take a frame within this many seconds is dropped.
SEND_TIMEOUT_S = 1.0


class ConnectionManager:
	def __init__(self, send_timeout: float = SEND_TIMEOUT_S) -> None:
		self._clients: Set[WebSocket] = set()
		self._lock = asyncio.Lock()
		self._pending: Set[asyncio.Task] = set()
		self.send_timeout = float(send_timeout)

	@property
	def client_count(self) -> int:
		return len(self._clients)

	async def connect(self, websocket: WebSocket) -> None:
		await websocket.accept()
		async with self._lock:
			self._clients.add(websocket)

	async def disconnect(self, websocket: WebSocket) -> None:
		async with self._lock:
			self._clients.discard(websocket)

	async def broadcast_json(self, message: Dict[str, Any]) -> None:
		payload = json.dumps(message, separators=(",", ":"))
		async with self._lock:
			if not self._clients:
				return
			clients = list(self._clients)
			results = await asyncio.gather(*(self._send(ws, payload) for ws in clients))
			for ws, ok in zip(clients, results):
				if not ok:
					self._clients.discard(ws)

	def broadcast_nowait(self, message: Dict[str, Any]) -> None:
		"""
		Schedule a broadcast from synchronous code (channel event sink).
		Dropped when no loop is running. Task handles are held until done.
		"""
		try:
			task = asyncio.get_running_loop().create_task(self.broadcast_json(message))
		except RuntimeError:
			return
		self._pending.add(task)
		task.add_done_callback(self._pending.discard)

	async def _send(self, ws: WebSocket, payload: str) -> bool:
		try:
			await asyncio.wait_for(ws.send_text(payload), timeout=self.send_timeout)
			return True
		except Exception as e:
			logger.info("[WS] dropping client after failed send: %r", e)
			try:
				await ws.close()
			except Exception:
				pass
			return False


async def _receive_text(websocket: WebSocket) -> str:
	"""Next text frame; binary frames are skipped."""
	while True:
		message = await websocket.receive()
		if message["type"] == "websocket.disconnect":
			raise WebSocketDisconnect(message.get("code", 1000))
		text = message.get("text")
		if text is not None:
			return text
		logger.debug("[WS] ignoring non-text frame")


@router.websocket("/ws")
async def ws_endpoint(websocket: WebSocket):
	state: AppState = get_ws_state(websocket)
	manager: ConnectionManager = state.manager
	await manager.connect(websocket)
	try:
		# Late joiners still learn whether the core is up.
		source = state.active_source()
		if state.startup_error is not None:
			await websocket.send_text(json.dumps(ErrorEvent(message=state.startup_error).model_dump()))
		elif source is not None and state.channel is not None:
			await websocket.send_text(json.dumps(ReadyEvent(simulation=source.simulation).model_dump()))
		while True:
			text = await _receive_text(websocket)
			if state.channel is not None:
				state.channel.handle_message(text)
	except WebSocketDisconnect:
		pass
	except Exception as e:
		logger.warning("[WS] connection error: %s", e)
	finally:
		await manager.disconnect(websocket)
