import pytest

from partyroom.cards import Card
from partyroom.errors import INVALID_PAYLOAD, PayloadError
from partyroom.events import (
    AnimationCompleteEvent, CreateRoomEvent, JoinRoomEvent, PlayCardEvent, SubmitAnswerEvent,
    SubmitVoteEvent, WinnerAnimationCompleteEvent, parse_event,
)


def test_join_room_uses_wire_names_and_normalises():
    event = parse_event(JoinRoomEvent, {'roomCode': 'abcd', 'playerName': '  Ann '})
    assert event.code == 'ABCD'
    assert event.name == 'Ann'


def test_play_card_accepts_numeric_rank():
    event = parse_event(PlayCardEvent, {'roomCode': 'ABCD', 'card': {'color': 'red', 'rank': 8},
                                        'chosenColor': 'blue'})
    assert event.card.to_card() == Card('red', '8')
    assert event.chosen_color == 'blue'


def test_json_text_payload_is_decoded():
    event = parse_event(WinnerAnimationCompleteEvent, '{"roomCode": "ABCD", "winner": "Ann"}')
    assert event.code == 'ABCD'
    assert event.winner == 'Ann'


def test_bare_room_code_is_accepted_for_room_signals():
    assert parse_event(AnimationCompleteEvent, 'abcd').code == 'ABCD'
    assert parse_event(AnimationCompleteEvent, None).code is None


@pytest.mark.parametrize('model, data', [
    (JoinRoomEvent, {'roomCode': 'ABCD'}),
    (JoinRoomEvent, {'roomCode': 'ABCD', 'playerName': '   '}),
    (JoinRoomEvent, {'roomCode': 'AB', 'playerName': 'Ann'}),
    (PlayCardEvent, {'roomCode': 'ABCD', 'card': {'color': 'purple', 'rank': '3'}}),
    (PlayCardEvent, {'roomCode': 'ABCD', 'card': {'color': 'red', 'rank': '10'}}),
    (SubmitAnswerEvent, {'roomCode': 'ABCD', 'answer': 'twelve'}),
    (SubmitVoteEvent, {'roomCode': 'ABCD', 'vote': 'sideways'}),
    (CreateRoomEvent, {'mode': 'poker'}),
    (CreateRoomEvent, ['not', 'an', 'object']),
    (CreateRoomEvent, 'not json'),
])
def test_malformed_payloads_raise_payload_error(model, data):
    with pytest.raises(PayloadError) as exc:
        parse_event(model, data)
    assert exc.value.code == INVALID_PAYLOAD
    assert exc.value.to_dict()['success'] is False
