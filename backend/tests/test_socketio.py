from partyroom import registry as app_registry
from partyroom.cards import Card


def _received(sio, name):
    return [pkt['args'][0] for pkt in sio.get_received('/ws') if pkt['name'] == name]


def _emit(sio, event, data=None):
    return sio.emit(event, data or {}, namespace='/ws', callback=True)


def _room_with_players(make_sio, names=('Ann', 'Bob')):
    display = make_sio()
    code = _emit(display, 'create_room')['roomCode']
    phones = []
    for name in names:
        phone = make_sio()
        ack = _emit(phone, 'join_room', {'roomCode': code, 'playerName': name})
        assert ack['success'], ack
        phones.append((phone, ack['player']['id']))
    display.get_received('/ws')
    for phone, _pid in phones:
        phone.get_received('/ws')
    return display, code, phones


def _rig_turn(code, player_id, hand):
    room = app_registry.get_room(code)
    mode = room.mode
    room.roster.get(player_id).hand = list(hand)
    mode.last_played_card = Card('green', '5')
    mode.discard = [Card('green', '5')]
    mode.current_color = 'green'
    mode.current_player_id = player_id


def test_socket_connect(sio_client):
    assert sio_client.is_connected('/ws')


def test_create_room_acks_and_emits(sio_client):
    ack = _emit(sio_client, 'create_room', {'mode': 'crazy-eights'})
    assert ack['success']
    created = _received(sio_client, 'room_created')
    assert created[0]['roomCode'] == ack['roomCode']
    assert created[0]['gameState']['phase'] == 'lobby'


def test_join_broadcasts_and_returns_private_state(make_sio):
    display = make_sio()
    code = _emit(display, 'create_room')['roomCode']
    display.get_received('/ws')
    phone = make_sio()
    ack = _emit(phone, 'join_room', {'roomCode': code.lower(), 'playerName': 'Ann'})
    assert ack['player']['color'] == 'red'
    assert ack['gameState']['myHand'] == []
    joined = _received(display, 'player_joined')
    assert joined[0]['player']['name'] == 'Ann'


def test_rejections_emit_room_error(sio_client):
    ack = _emit(sio_client, 'join_room', {'roomCode': 'QQQQ', 'playerName': 'Ann'})
    assert ack == {'success': False, 'error': 'Room not found', 'code': 'ROOM_NOT_FOUND'}
    errors = _received(sio_client, 'room_error')
    assert errors[0]['code'] == 'ROOM_NOT_FOUND'


def test_malformed_payload_is_rejected(sio_client):
    ack = _emit(sio_client, 'play_card', {'roomCode': 'ABCD', 'card': {'color': 'pink', 'rank': 3}})
    assert ack['code'] == 'INVALID_PAYLOAD'


def test_start_game_sends_private_hands_and_public_display_state(make_sio):
    display, code, phones = _room_with_players(make_sio)
    (ann, _ann_id), (bob, _bob_id) = phones
    ack = _emit(ann, 'start_game', {'roomCode': code})
    assert ack['success']

    display_states = _received(display, 'game_state_updated')
    assert display_states and all('myHand' not in s for s in display_states)
    for phone, _pid in phones:
        pkts = phone.get_received('/ws')
        assert any(p['name'] == 'game_started' for p in pkts)
        states = [p['args'][0] for p in pkts if p['name'] == 'game_state_updated']
        assert len(states[-1]['myHand']) == 7


def test_non_first_player_cannot_start(make_sio):
    _display, code, phones = _room_with_players(make_sio)
    bob, _bob_id = phones[1]
    ack = _emit(bob, 'start_game', {'roomCode': code})
    assert ack['code'] == 'NOT_AUTHORIZED'


def test_wild_card_flow_over_sockets(make_sio):
    display, code, phones = _room_with_players(make_sio, ('Ann', 'Bob', 'Cy'))
    (ann, ann_id), (bob, bob_id), _cy = phones
    _emit(ann, 'start_game', {'roomCode': code})
    assert _emit(display, 'first_card_flip_complete', {'roomCode': code})['released']
    _rig_turn(code, ann_id, [Card('red', '8'), Card('blue', '3')])
    app_registry.get_room(code).roster.get(bob_id).hand = [Card('red', '1')]
    display.get_received('/ws')

    ack = _emit(ann, 'play_card', {'roomCode': code, 'card': {'color': 'red', 'rank': '8'}})
    assert ack == {'success': True, 'event': 'card_played'}
    played = _received(display, 'card_played')
    assert played[0]['playerName'] == 'Ann'
    assert played[0]['gameState']['isAnimating']

    bob.get_received('/ws')
    ack = _emit(bob, 'draw_card', {'roomCode': code})
    assert ack['code'] == 'ANIMATION_IN_PROGRESS'

    ack = _emit(ann, 'choose_color', {'roomCode': code, 'color': 'blue'})
    assert ack['success']
    # A bare room code is enough for the display's completion signal
    ack = display.emit('animation_complete', code, namespace='/ws', callback=True)
    assert ack['released']
    state = app_registry.public_view(code)
    assert state['currentColor'] == 'blue'
    assert state['currentPlayerName'] == 'Bob'


def test_winner_detected_goes_to_display_only(make_sio):
    display, code, phones = _room_with_players(make_sio)
    (ann, ann_id), (bob, _bob_id) = phones
    _emit(ann, 'start_game', {'roomCode': code})
    _emit(display, 'first_card_flip_complete', {'roomCode': code})
    _rig_turn(code, ann_id, [Card('green', '2')])
    display.get_received('/ws')
    bob.get_received('/ws')

    _emit(ann, 'play_card', {'roomCode': code, 'card': {'color': 'green', 'rank': 2}})
    winners = _received(display, 'winner_detected')
    assert winners[0]['winner'] == 'Ann'
    assert winners[0]['winningEight'] is False
    assert _received(bob, 'winner_detected') == []

    ack = _emit(display, 'winner_animation_complete', {'roomCode': code, 'winner': 'Ann'})
    assert ack['gameState']['phase'] == 'game-over'
    over = _received(bob, 'game_over')
    assert over[0]['winner'] == 'Ann'


def test_host_disconnect_closes_room(make_sio):
    display, code, phones = _room_with_players(make_sio)
    display.disconnect(namespace='/ws')
    for phone, _pid in phones:
        closed = _received(phone, 'room_closed')
        assert closed[0] == {'roomCode': code, 'reason': 'host-disconnected'}
    assert app_registry.get_room(code) is None


def test_player_disconnect_in_lobby_notifies_room(make_sio):
    display, code, phones = _room_with_players(make_sio)
    ann, _ann_id = phones[0]
    ann.disconnect(namespace='/ws')
    left = _received(display, 'player_left')
    assert left[0]['playerName'] == 'Ann'
    assert [p['name'] for p in left[0]['players']] == ['Bob']


def test_request_new_room(make_sio):
    display, code, phones = _room_with_players(make_sio)
    ack = _emit(display, 'request_new_room', {'roomCode': code})
    assert ack['success']
    new_code = ack['roomCode']
    assert ack['newCode'] == new_code
    assert new_code != code
    assert _received(display, 'new_room_created')[0]['roomCode'] == new_code
    ann, _ann_id = phones[0]
    assert _received(ann, 'room_closed')[0]['reason'] == 'new-players'


def test_host_join_room_claims_rest_room(client, make_sio):
    data = client.post('/api/rooms', json={'hostId': 'tv-1'}).get_json()
    display = make_sio()
    ack = _emit(display, 'host_join_room', {'roomCode': data['roomCode'], 'hostId': 'tv-1'})
    assert ack['success']
    assert app_registry.get_room(data['roomCode']).host_id != 'tv-1'


def test_get_room_status(make_sio):
    display, code, phones = _room_with_players(make_sio)
    ann, _ann_id = phones[0]
    ack = _emit(ann, 'get_room_status', {'roomCode': code})
    assert ack['gameState']['playerName'] == 'Ann'
    ack = _emit(display, 'get_room_status', {'roomCode': code})
    assert 'playerName' not in ack['gameState']
