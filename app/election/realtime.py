"""
Realtime channel for the voting session.

Every connected client gets the same stream of
{"event": <name>, "data": <payload>} messages.
"""

from fastapi import WebSocket
from fastapi.encoders import jsonable_encoder

from app.logger import logger


class RealtimeEvent:
    SESSION_STATUS = "sessionStatus"
    SESSION_STARTED = "sessionStarted"
    SHOW_POST = "showPost"
    SESSION_ENDED = "sessionEnded"
    RESULT_ANNOUNCED = "resultAnnounced"
    STUDENT_COMPLETED = "studentCompleted"


def build_message(event: str, data: dict = None) -> dict:
    return {"event": event, "data": jsonable_encoder(data or {})}


class RealtimeNotifier(object):
    """
    Keeps the open websockets and broadcasts to all of them.
    """

    def __init__(self) -> None:
        self.connections: set[WebSocket] = set()

    async def register(self, websocket: WebSocket, snapshot: list[tuple[str, dict]] = ()):
        """
        Adds an accepted websocket and sends it the snapshot events.
        """
        self.connections.add(websocket)
        logger.info("Client connected (%d open)" % len(self.connections))
        for event, data in snapshot:
            await websocket.send_json(build_message(event, data))

    def disconnect(self, websocket: WebSocket):
        self.connections.discard(websocket)
        logger.info("Client disconnected (%d open)" % len(self.connections))

    async def emit(self, event: str, data: dict = None):
        message = build_message(event, data)
        for websocket in list(self.connections):
            try:
                await websocket.send_json(message)
            except Exception as e:
                logger.warning("Dropping client after failed send of %s: %s" % (event, e))
                self.connections.discard(websocket)


notifier = RealtimeNotifier()
