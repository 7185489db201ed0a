import pytest


class FakeSocket:
    def __init__(self) -> None:
        self.closed = False
        self.sent = []

    async def send_json(self, payload: dict) -> None:
        if self.closed:
            raise ConnectionResetError("socket is closed")
        self.sent.append(payload)

    def of_type(self, message_type: str) -> list:
        return [payload for payload in self.sent if payload.get("type") == message_type]


@pytest.fixture
def make_socket():
    return FakeSocket
