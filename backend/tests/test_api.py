def test_index_and_health(client):
    res = client.get('/')
    assert res.status_code == 200
    assert 'crazy-eights' in res.get_json()['modes']
    res = client.get('/health')
    assert res.status_code == 200
    assert res.get_json()['status'] == 'ok'


def test_create_room(client):
    res = client.post('/api/rooms', json={'mode': 'over-under'})
    assert res.status_code == 201
    data = res.get_json()
    assert len(data['roomCode']) == 4
    assert data['hostId']
    assert data['room']['mode'] == 'over-under'
    assert data['room']['phase'] == 'lobby'


def test_create_room_with_host_id_and_no_body(client):
    res = client.post('/api/rooms', json={'hostId': 'tv-1'})
    assert res.get_json()['hostId'] == 'tv-1'
    res = client.post('/api/rooms')
    assert res.status_code == 201
    assert res.get_json()['room']['mode'] == 'crazy-eights'


def test_create_room_rejects_unknown_mode(client):
    res = client.post('/api/rooms', json={'mode': 'poker'})
    assert res.status_code == 400
    assert res.get_json()['code'] == 'INVALID_PAYLOAD'


def test_list_and_get_room(client):
    code = client.post('/api/rooms').get_json()['roomCode']
    rooms = client.get('/api/rooms').get_json()['rooms']
    assert code in [r['code'] for r in rooms]
    res = client.get(f'/api/rooms/{code.lower()}')
    assert res.status_code == 200
    assert res.get_json()['room']['roomCode'] == code


def test_unknown_room_is_404(client):
    res = client.get('/api/rooms/QQQQ')
    assert res.status_code == 404
    assert res.get_json()['code'] == 'ROOM_NOT_FOUND'
