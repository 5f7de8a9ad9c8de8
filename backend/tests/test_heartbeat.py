HEARTBEAT_MS = 30_000


def test_healthy_connection_survives_without_sending_anything(game, transport, scheduler):
    identity = game.handle_connect('sid-a')
    game.heartbeat.start()
    scheduler.advance(HEARTBEAT_MS * 5)
    assert game.registry.is_alive(identity)
    assert transport.closed == []
    # liveness lives in the transport; nothing goes out on the wire
    assert transport.sent == []


def test_player_who_only_joins_and_taps_is_kept(game, transport, scheduler):
    identity = game.handle_connect('sid-a')
    game.handle_message(identity, {'type': 'join', 'playerName': 'Tapper'})
    game.start()
    game.handle_message(identity, {'type': 'tap', 'tapCount': 1})
    scheduler.advance(60_000)
    assert identity in game.registry
    assert identity in game.machine.current.roster
    assert transport.closed == []


def test_dead_socket_is_dropped_like_a_disconnect(game, transport, scheduler):
    game.handle_connect('sid-watch')
    quiet = game.handle_connect('sid-quiet')
    game.handle_message(quiet, {'type': 'join', 'playerName': 'Quiet'})
    game.heartbeat.start()

    transport.disconnected.add('sid-quiet')
    scheduler.advance(HEARTBEAT_MS)
    assert quiet in game.registry
    scheduler.advance(HEARTBEAT_MS)

    assert transport.closed == ['sid-quiet']
    assert quiet not in game.registry
    assert quiet not in game.machine.current.roster
    left = transport.events('sid-watch', type='playerLeft')
    assert left == [{'type': 'playerLeft', 'playerId': quiet, 'playerCount': 0}]


def test_socket_that_recovers_within_budget_is_kept(game, transport, scheduler):
    identity = game.handle_connect('sid-a')
    game.heartbeat.start()
    transport.disconnected.add('sid-a')
    scheduler.advance(HEARTBEAT_MS)
    transport.disconnected.discard('sid-a')
    scheduler.advance(HEARTBEAT_MS)
    assert game.registry.is_alive(identity)
    assert transport.closed == []


def test_stopped_heartbeat_stays_quiet(game, transport, scheduler):
    game.handle_connect('sid-a')
    transport.disconnected.add('sid-a')
    game.heartbeat.start()
    game.heartbeat.stop()
    scheduler.advance(HEARTBEAT_MS * 3)
    assert transport.closed == []
    assert not game.heartbeat.running
