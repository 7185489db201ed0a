import pytest

from santa_draw.store.models import ParticipantView
from santa_draw.web import protocol
from santa_draw.web.protocol import MalformedMessage, RemoveName, SetName, StartDraw, decode_message


def test_decode_set_name():
    message = decode_message('{"type": "set_name", "name": "Alice", "contactAddress": "a@example.com"}')
    assert message == SetName(name="Alice", contact_address="a@example.com")


def test_decode_observer_commands():
    assert decode_message('{"type": "remove_name", "name": "Bob"}') == RemoveName(name="Bob")
    assert decode_message(b'{"type": "start_draw"}') == StartDraw()


@pytest.mark.parametrize(
    "raw",
    [
        "not json",
        "[1, 2]",
        '"set_name"',
        '{"type": "dance"}',
        '{"name": "Alice"}',
        '{"type": "set_name", "name": "Alice"}',
        '{"type": "set_name", "name": 3, "contactAddress": "a@example.com"}',
        '{"type": "remove_name"}',
    ],
)
def test_decode_rejects_malformed_frames(raw):
    with pytest.raises(MalformedMessage):
        decode_message(raw)


def test_participants_frame_shape():
    frame = protocol.participants(
        [ParticipantView("Alice", "a@example.com", True), ParticipantView("Bob", "b@example.com", False)]
    )
    assert frame == {
        "type": "participants",
        "participants": ["Alice", "Bob"],
        "participantsWithEmail": [
            {"name": "Alice", "contactAddress": "a@example.com", "online": True},
            {"name": "Bob", "contactAddress": "b@example.com", "online": False},
        ],
    }


def test_name_ok_carries_session_token():
    assert protocol.name_ok("Alice", "abc") == {"type": "name_ok", "name": "Alice", "sessionToken": "abc"}


def test_decode_rejects_deeply_nested_frame():
    with pytest.raises(MalformedMessage):
        decode_message("[" * 100000)
