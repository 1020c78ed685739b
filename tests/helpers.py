"""Shared test helpers"""
import threading
from typing import List, Optional

from teamchat.services import Connection


def drain(connection: Connection, event_type: Optional[str] = None) -> List[dict]:
    """Pop every queued outbound event, optionally keeping one type."""
    events = []
    while not connection.outbox.empty():
        item = connection.outbox.get_nowait()
        if isinstance(item, dict):
            events.append(item)
    if event_type is not None:
        events = [event for event in events if event["type"] == event_type]
    return events


def register_and_login(client, username: str, password: str = "pw-12345") -> dict:
    response = client.post("/api/register", json={"username": username, "password": password})
    assert response.status_code == 200, response.text
    response = client.post("/api/login", json={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return response.json()


def auth_header(login: dict) -> dict:
    return {"Authorization": f"Bearer {login['token']}"}


FRAME_TIMEOUT = 5.0


def receive(websocket, timeout: float = FRAME_TIMEOUT) -> dict:
    """websocket.receive_json() that fails the test instead of blocking forever."""
    result = {}

    def _read():
        try:
            result["event"] = websocket.receive_json()
        except BaseException as e:
            result["error"] = e

    reader = threading.Thread(target=_read, daemon=True)
    reader.start()
    reader.join(timeout)
    if reader.is_alive():
        raise AssertionError(f"No frame within {timeout}s")
    if "error" in result:
        raise result["error"]
    return result["event"]


def receive_until(websocket, event_type: str, limit: int = 20) -> dict:
    """Read frames from a test websocket until one of event_type arrives."""
    for _ in range(limit):
        event = receive(websocket)
        if event["type"] == event_type:
            return event
    raise AssertionError(f"No {event_type} event within {limit} frames")
