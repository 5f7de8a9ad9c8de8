import json

import pytest

from tapminer import messages
from tapminer.exceptions import MalformedMessage


def test_decode_join_and_tap():
    join = messages.decode_inbound({'type': 'join', 'playerName': 'Alice'})
    assert join.type == 'join'
    assert join.player_name == 'Alice'
    tap = messages.decode_inbound({'type': 'tap', 'tapCount': 12})
    assert tap.type == 'tap'
    assert tap.tap_count == 12


def test_decode_accepts_json_text():
    msg = messages.decode_inbound(json.dumps({'type': 'tap', 'tapCount': 3}))
    assert msg.tap_count == 3


def test_named_event_may_omit_type():
    assert messages.decode_inbound({'playerName': ''}, messages.JOIN).player_name == ''


@pytest.mark.parametrize('raw', [
    '{not json',
    ['tap', 1],
    {'type': 'tap'},
    {'type': 'tap', 'tapCount': '5'},
    {'type': 'tap', 'tapCount': True},
    {'type': 'join'},
    {'type': 'join', 'playerName': 42},
    {'type': 'dance'},
    {'type': 'pong'},
    None,
    {},
])
def test_malformed_records_raise(raw):
    with pytest.raises(MalformedMessage):
        messages.decode_inbound(raw)


def test_type_must_match_event_name():
    with pytest.raises(MalformedMessage):
        messages.decode_inbound({'type': 'join', 'playerName': 'x'}, messages.TAP)


def test_game_end_without_winner():
    event = messages.game_end(None, [])
    assert event == {'type': 'gameEnd', 'winner': None, 'allHashes': []}
