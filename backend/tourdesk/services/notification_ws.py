from __future__ import annotations
from typing import Dict, Set, Tuple
from fastapi import WebSocket
import json
import asyncio
import logging

logger = logging.getLogger(__name__)

class NotificationConnectionManager:
    """Manager of WebSocket connections per admin email.
    Each email keeps a set of open sockets (one per tab) and the role it
    connected with, so pushes can target a single user or a whole role.
    """
    def __init__(self) -> None:
        self._user_sockets: Dict[str, Set[WebSocket]] = {}
        self._roles: Dict[str, str] = {}
        self._lock = asyncio.Lock()

    async def connect(self, email: str, role: str, websocket: WebSocket):
        await websocket.accept()
        async with self._lock:
            self._user_sockets.setdefault(email, set()).add(websocket)
            self._roles[email] = role
        logger.info("WebSocket connected: %s (%s)", email, role)

    async def disconnect(self, email: str, websocket: WebSocket):
        async with self._lock:
            conns = self._user_sockets.get(email)
            if conns and websocket in conns:
                conns.remove(websocket)
                if not conns:
                    self._user_sockets.pop(email, None)
                    self._roles.pop(email, None)
        logger.info("WebSocket disconnected: %s", email)

    def is_connected(self, email: str) -> bool:
        return bool(self._user_sockets.get(email))

    async def _deliver(self, targets: list[Tuple[str, WebSocket]], payload: dict) -> int:
        message = json.dumps(payload, ensure_ascii=False, default=str)
        sent = 0
        for email, ws in targets:
            try:
                await ws.send_text(message)
                sent += 1
            except Exception:
                # Broken socket: drop it, the client reconnects on its own
                logger.warning("Dropping dead socket of %s", email)
                await self.disconnect(email, ws)
        return sent

    async def send_to_user(self, email: str, payload: dict) -> int:
        async with self._lock:
            targets = [(email, ws) for ws in self._user_sockets.get(email, ())]
        return await self._deliver(targets, payload)

    async def broadcast_to_role(self, role: str, payload: dict) -> int:
        async with self._lock:
            targets = [
                (email, ws)
                for email, conns in self._user_sockets.items()
                if self._roles.get(email) == role
                for ws in conns
            ]
        return await self._deliver(targets, payload)

    async def broadcast(self, payload: dict) -> int:
        async with self._lock:
            targets = [(email, ws) for email, conns in self._user_sockets.items() for ws in conns]
        return await self._deliver(targets, payload)

manager = NotificationConnectionManager()
