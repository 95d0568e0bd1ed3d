def drain(sio_client):
    return [(pkt['name'], pkt['args'][0] if pkt['args'] else None)
            for pkt in sio_client.get_received('/ws')]


def payloads(received, name):
    return [payload for event, payload in received if event == name]


def last_update(received):
    updates = payloads(received, 'room:update')
    assert updates, received
    return updates[-1]


def seat_table(connect):
    """Ann creates a table and Bea joins it; returns (ann, bea, code)."""
    ann, bea = connect(), connect()
    drain(ann)
    drain(bea)
    ann.emit('room:create', {'display_name': 'Ann'}, namespace='/ws')
    code = payloads(drain(ann), 'room:joined')[0]['code']
    bea.emit('room:join', {'code': code, 'display_name': 'Bea'}, namespace='/ws')
    drain(ann)
    drain(bea)
    return ann, bea, code


def test_socket_connect(sio_client):
    assert sio_client.is_connected('/ws')
    assert any(name == 'connected' for name, _ in drain(sio_client))


def test_create_room(sio_client):
    drain(sio_client)
    sio_client.emit('room:create', {'display_name': 'Ann'}, namespace='/ws')
    received = drain(sio_client)
    (joined,) = payloads(received, 'room:joined')
    assert joined['seat_index'] == 0
    assert joined['name'] == 'Ann'
    assert len(joined['code']) == 5
    state = last_update(received)
    assert state['code'] == joined['code']
    assert state['game']['phase'] == 'WAITING'


def test_join_starts_game(connect):
    ann, bea = connect(), connect()
    drain(ann)
    drain(bea)
    ann.emit('room:create', {'display_name': 'Ann'}, namespace='/ws')
    code = payloads(drain(ann), 'room:joined')[0]['code']

    bea.emit('room:join', {'code': code.lower(), 'display_name': 'Bea'}, namespace='/ws')
    received = drain(bea)
    assert payloads(received, 'room:joined') == [{'code': code, 'seat_index': 1, 'name': 'Bea'}]
    state = last_update(received)
    assert state['game']['phase'] == 'MUST_ROLL'
    assert state['game']['active_seat'] == 0
    assert [s['name'] for s in state['seats']] == ['Ann', 'Bea']
    # the creator sees the same snapshot
    assert last_update(drain(ann)) == state


def test_join_errors_go_to_caller_only(connect):
    ann, bea, code = seat_table(connect)
    cid = connect()
    drain(cid)
    cid.emit('room:join', {'code': code, 'display_name': 'Cid'}, namespace='/ws')
    assert drain(cid) == [('error', {'kind': 'RoomFull', 'message': 'That table already has two players.'})]
    assert drain(ann) == []
    cid.emit('room:join', {'code': 'XXXXX', 'display_name': 'Cid'}, namespace='/ws')
    assert payloads(drain(cid), 'error')[0]['kind'] == 'RoomNotFound'


def test_turn_flow_to_farkle(connect, dice):
    ann, bea, code = seat_table(connect)

    dice.push(1, 5, 2, 2, 2, 6)
    ann.emit('turn:roll', namespace='/ws')
    received = drain(bea)
    state = last_update(received)
    assert state['game']['phase'] == 'SELECTING'
    assert state['game']['dice'] == [1, 5, 2, 2, 2, 6]
    (selectable,) = payloads(received, 'roll:selectable')
    assert selectable['code'] == code
    assert selectable['selectable'] == [True, True, True, True, True, False]
    drain(ann)

    # triple 2 and the 1
    ann.emit('turn:keep', {'selected_indices': [0, 2, 3, 4]}, namespace='/ws')
    game = last_update(drain(ann))['game']
    assert game['turn_points'] == 300
    assert game['kept'] == [True, False, True, True, True, False]
    assert game['phase'] == 'MUST_ROLL'
    drain(bea)

    dice.push(3, 6)
    ann.emit('turn:roll', namespace='/ws')
    received = drain(bea)
    (notice,) = payloads(received, 'game:notice')
    assert notice['kind'] == 'farkle'
    state = last_update(received)
    assert state['game']['active_seat'] == 1
    assert state['game']['turn_points'] == 0
    assert [s['score'] for s in state['seats']] == [0, 0]


def test_bank_and_win(connect, dice, manager):
    ann, bea, code = seat_table(connect)
    manager.get_room(code).game.scores[0] = 9800

    dice.push(1, 1, 1, 3, 4, 6)
    ann.emit('turn:roll', namespace='/ws')
    ann.emit('turn:keep', {'selected_indices': [0, 1, 2]}, namespace='/ws')
    drain(ann)
    ann.emit('turn:bank', namespace='/ws')
    received = drain(bea)
    assert payloads(received, 'game:notice')[-1]['kind'] == 'game_over'
    state = last_update(received)
    assert state['game']['phase'] == 'GAME_OVER'
    assert state['game']['winner'] == 0
    assert state['seats'][0]['score'] == 10800

    # frozen until a new game
    ann.emit('turn:roll', namespace='/ws')
    assert payloads(drain(ann), 'error')[0]['kind'] == 'IllegalPhaseForIntent'

    bea.emit('game:new', namespace='/ws')
    state = last_update(drain(ann))
    assert state['game']['phase'] == 'MUST_ROLL'
    assert state['game']['active_seat'] == 0
    assert [s['score'] for s in state['seats']] == [0, 0]


def test_non_active_seat_rejected_without_broadcast(connect, client):
    ann, bea, code = seat_table(connect)
    before = client.get(f'/api/rooms/{code}').get_json()

    for event, data in (('turn:roll', None), ('turn:keep', {'selected_indices': [0]}), ('turn:bank', None)):
        if data is None:
            bea.emit(event, namespace='/ws')
        else:
            bea.emit(event, data, namespace='/ws')
        assert drain(bea) == [('error', {'kind': 'NotYourTurn', 'message': 'Not your turn.'})]

    assert drain(ann) == []
    assert client.get(f'/api/rooms/{code}').get_json() == before


def test_invalid_keep_reported_to_caller(connect, dice):
    ann, bea, code = seat_table(connect)
    dice.push(1, 5, 2, 2, 2, 6)
    ann.emit('turn:roll', namespace='/ws')
    drain(ann)
    drain(bea)
    ann.emit('turn:keep', {'selected_indices': [5]}, namespace='/ws')
    (error,) = payloads(drain(ann), 'error')
    assert error['kind'] == 'InvalidSelection'
    assert drain(bea) == []


def test_unseated_intent_rejected(sio_client):
    drain(sio_client)
    sio_client.emit('turn:roll', namespace='/ws')
    assert payloads(drain(sio_client), 'error')[0]['kind'] == 'RoomNotFound'


def test_disconnect_and_rejoin_by_name(connect, manager):
    ann, bea, code = seat_table(connect)
    manager.get_room(code).game.scores[0] = 700

    ann.disconnect(namespace='/ws')
    state = last_update(drain(bea))
    assert state['seats'][0] == {'name': 'Ann', 'score': 700, 'online': False}

    ann_again = connect()
    drain(ann_again)
    ann_again.emit('room:join', {'code': code, 'display_name': 'Ann'}, namespace='/ws')
    received = drain(ann_again)
    assert payloads(received, 'room:joined')[0]['seat_index'] == 0
    state = last_update(received)
    assert state['seats'][0] == {'name': 'Ann', 'score': 700, 'online': True}
    assert state['seats'][1]['name'] == 'Bea'


def test_reconnect_event(connect):
    ann, bea, code = seat_table(connect)
    bea.disconnect(namespace='/ws')

    bea_again = connect()
    drain(bea_again)
    bea_again.emit('room:reconnect', {'code': code, 'display_name': 'Bea'}, namespace='/ws')
    assert payloads(drain(bea_again), 'room:joined')[0]['seat_index'] == 1

    stranger = connect()
    drain(stranger)
    stranger.emit('room:reconnect', {'code': code, 'display_name': 'Cid'}, namespace='/ws')
    assert payloads(drain(stranger), 'error')[0]['kind'] == 'RoomNotFound'


def test_name_collision_with_online_seat(connect):
    ann, bea, code = seat_table(connect)
    impostor = connect()
    drain(impostor)
    impostor.emit('room:reconnect', {'code': code, 'display_name': 'ann'}, namespace='/ws')
    assert payloads(drain(impostor), 'error')[0]['kind'] == 'NameCollision'


def test_sync_sends_snapshot_to_caller(connect):
    ann, bea, code = seat_table(connect)
    ann.emit('room:sync', namespace='/ws')
    assert last_update(drain(ann))['code'] == code
    assert drain(bea) == []


def test_keep_payload_must_be_an_object(connect, dice):
    ann, bea, code = seat_table(connect)
    dice.push(1, 5, 2, 2, 2, 6)
    ann.emit('turn:roll', namespace='/ws')
    drain(ann)
    drain(bea)

    ann.emit('turn:keep', [0, 1], namespace='/ws')
    (error,) = payloads(drain(ann), 'error')
    assert error['kind'] == 'InvalidSelection'
    assert drain(bea) == []


def test_non_string_name_and_code(connect):
    ann, bea, code = seat_table(connect)
    stranger = connect()
    drain(stranger)
    stranger.emit('room:join', {'code': 12345, 'display_name': 'Cid'}, namespace='/ws')
    assert payloads(drain(stranger), 'error')[0]['kind'] == 'RoomNotFound'

    # a non-string name falls back to the default name
    stranger.emit('room:join', {'code': code, 'display_name': 42}, namespace='/ws')
    assert drain(stranger)[0] == ('error', {'kind': 'RoomFull', 'message': 'That table already has two players.'})


def test_non_dict_room_payload_treated_as_empty(sio_client):
    drain(sio_client)
    sio_client.emit('room:create', ['Ann'], namespace='/ws')
    (joined,) = payloads(drain(sio_client), 'room:joined')
    assert joined['name'] == 'Captain'
