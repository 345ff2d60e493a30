"""WebSocket stream of published state snapshots."""

import asyncio
import uuid
from typing import Any, Dict, Optional

from fastapi import WebSocket, WebSocketDisconnect

from schemas.state import AppState
from services.session_controller import AuthBootstrapController
from utils.helpers import format_state_event
from utils.logger import setup_logger

logger = setup_logger(__name__)


class StateStreamHandler:
    """Pushes every new `AppState` of an app session to its WebSocket clients."""

    def __init__(self):
        self.active_connections: Dict[str, WebSocket] = {}

    async def connect(self, websocket: WebSocket, connection_id: str):
        """Accept a WebSocket connection."""
        await websocket.accept()
        self.active_connections[connection_id] = websocket
        logger.info(f"State stream connected: {connection_id}")

    def disconnect(self, connection_id: str):
        """Remove a WebSocket connection."""
        if connection_id in self.active_connections:
            del self.active_connections[connection_id]
            logger.info(f"State stream disconnected: {connection_id}")

    async def send_event(self, connection_id: str, event: Dict[str, Any]) -> bool:
        websocket = self.active_connections.get(connection_id)
        if websocket is None:
            return False
        try:
            await websocket.send_json(event)
            return True
        except Exception as e:
            logger.error(f"Error sending state to {connection_id}: {e}")
            self.disconnect(connection_id)
            return False

    @staticmethod
    def _snapshot(controller: AuthBootstrapController, state: AppState, session_id: str) -> Dict[str, Any]:
        return format_state_event(
            "state",
            {
                "state": state.model_dump(mode="json"),
                "notifications": [n.model_dump(mode="json") for n in controller.notifications.drain()],
            },
            session_id,
        )

    @staticmethod
    async def _wait_for_disconnect(websocket: WebSocket):
        # Clients do not send anything; reading only detects the close.
        try:
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            pass

    async def stream(self, websocket: WebSocket, controller: AuthBootstrapController, session_id: str):
        """Send the current snapshot, then one message per published change."""
        connection_id = str(uuid.uuid4())
        queue: "asyncio.Queue[AppState]" = asyncio.Queue()
        remove_listener = controller.add_listener(queue.put_nowait)
        receiver: Optional[asyncio.Task] = None
        getter: Optional[asyncio.Task] = None

        try:
            await self.connect(websocket, connection_id)
            receiver = asyncio.create_task(self._wait_for_disconnect(websocket))
            if not await self.send_event(connection_id, self._snapshot(controller, controller.state, session_id)):
                return
            while True:
                getter = asyncio.create_task(queue.get())
                done, _ = await asyncio.wait({getter, receiver}, return_when=asyncio.FIRST_COMPLETED)
                if getter not in done:
                    logger.info(f"State stream closed by client: {connection_id}")
                    break
                if not await self.send_event(connection_id, self._snapshot(controller, getter.result(), session_id)):
                    break
        finally:
            for task in (getter, receiver):
                if task is not None:
                    task.cancel()
            remove_listener()
            self.disconnect(connection_id)


# Global state stream handler instance
state_stream = StateStreamHandler()
