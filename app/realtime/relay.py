# app/realtime/relay.py
"""
Best-effort fan-out of task, notification and chat events to live sockets.

Nothing is persisted or queued here: a recipient that is not connected when an
event fires simply misses it and catches up through the REST API.

Envelope format in both directions: ``{"type": <event>, "payload": <data>}``.
"""
import logging
import uuid
from typing import Any, Dict, Optional, Set

from fastapi import Request

from app.realtime.registry import ConnectionRegistry

logger = logging.getLogger(__name__)


def task_room(task_id) -> str:
    return f"task:{task_id}"


class Relay:
    def __init__(self, registry: ConnectionRegistry):
        self.registry = registry
        self._connections: Dict[str, Any] = {}
        self._owners: Dict[str, str] = {}
        self._rooms: Dict[str, Set[str]] = {}

    # --- Connection lifecycle ---

    def connect(self, socket, user_id=None) -> str:
        """Register a socket; an authenticated one is bound to its user straight away."""
        connection_id = uuid.uuid4().hex
        self._connections[connection_id] = socket
        logger.info("Relay connection opened: %s", connection_id)
        if user_id is not None:
            self._owners[connection_id] = str(user_id)
            self.join(connection_id, user_id)
        return connection_id

    def disconnect(self, connection_id: str) -> None:
        self._connections.pop(connection_id, None)
        self._owners.pop(connection_id, None)
        self.registry.unbind_connection(connection_id)
        for members in self._rooms.values():
            members.discard(connection_id)
        self._rooms = {room: members for room, members in self._rooms.items() if members}
        logger.info("Relay connection closed: %s", connection_id)

    def room_members(self, task_id) -> Set[str]:
        return set(self._rooms.get(task_room(task_id), ()))

    # --- Client events ---

    def join(self, connection_id: str, user_id) -> None:
        self.registry.bind(user_id, connection_id)
        logger.info("User %s joined with connection %s", user_id, connection_id)

    def join_task_room(self, connection_id: str, task_id) -> None:
        self._rooms.setdefault(task_room(task_id), set()).add(connection_id)
        logger.info("Connection %s joined room %s", connection_id, task_room(task_id))

    def leave_task_room(self, connection_id: str, task_id) -> None:
        room = task_room(task_id)
        members = self._rooms.get(room)
        if members is None:
            return
        members.discard(connection_id)
        if not members:
            del self._rooms[room]
        logger.info("Connection %s left room %s", connection_id, room)

    async def send_chat_message(self, connection_id: str, message: dict) -> None:
        """Relay to the other members of the task room, then confirm to the sender."""
        task_id = message.get("taskId", message.get("task_id"))
        if task_id is None:
            await self.send(connection_id, "error", {"message": "taskId is required"})
            return
        for member in self.room_members(task_id):
            if member != connection_id:
                await self.send(member, "receiveMessage", message)
        await self.send(connection_id, "messageSent", message)

    async def dispatch(self, connection_id: str, envelope: Any) -> None:
        if not isinstance(envelope, dict) or not isinstance(envelope.get("type"), str):
            await self.send(connection_id, "error", {"message": "Malformed event"})
            return

        event = envelope["type"]
        payload = envelope.get("payload")

        if event == "join" and payload is not None:
            owner = self._owners.get(connection_id)
            if owner is None:
                await self.send(connection_id, "error", {"message": "Authentication required"})
            elif owner != str(payload):
                await self.send(connection_id, "error", {"message": "Cannot join as another user"})
            else:
                self.join(connection_id, payload)
        elif event == "joinTaskRoom" and payload is not None:
            self.join_task_room(connection_id, payload)
        elif event == "leaveTaskRoom" and payload is not None:
            self.leave_task_room(connection_id, payload)
        elif event == "sendMessage" and isinstance(payload, dict):
            await self.send_chat_message(connection_id, payload)
        elif event == "taskUpdated" and payload is not None:
            await self.broadcast("taskUpdated", payload)
        else:
            await self.send(connection_id, "error", {"message": f"Unsupported event: {event}"})

    # --- Server pushes ---

    async def send(self, connection_id: str, event: str, payload: Any) -> bool:
        socket = self._connections.get(connection_id)
        if socket is None:
            return False
        try:
            await socket.send_json({"type": event, "payload": payload})
        except Exception as e:
            # Dead socket: forget it, the client recovers through REST
            logger.warning("Dropping connection %s after failed send of %s: %s", connection_id, event, e)
            self.disconnect(connection_id)
            return False
        return True

    async def broadcast(self, event: str, payload: Any) -> None:
        for connection_id in list(self._connections):
            await self.send(connection_id, event, payload)

    async def emit_task_update(self, task: dict) -> None:
        await self.broadcast("taskUpdated", task)

    async def emit_notification(self, user_id, notification: dict) -> bool:
        connection_id: Optional[str] = self.registry.connection_for(user_id)
        if connection_id is None:
            return False
        return await self.send(connection_id, "notification", notification)


def get_relay(request: Request) -> Relay:
    """FastAPI dependency: the process-wide relay created at startup."""
    return request.app.state.relay
