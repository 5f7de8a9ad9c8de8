import re

from tapminer.services.registry import ConnectionRegistry


def test_register_issues_unique_hex_identities():
    registry = ConnectionRegistry()
    ids = {registry.register(f'sid-{i}') for i in range(200)}
    assert len(ids) == 200
    assert all(re.fullmatch(r'[0-9a-f]{16}', i) for i in ids)
    assert len(registry) == 200


def test_remove_is_idempotent():
    registry = ConnectionRegistry()
    identity = registry.register('sid-1')
    assert registry.remove(identity) is not None
    assert registry.remove(identity) is None
    assert identity not in registry


def test_lookup_by_handle_and_name_binding():
    registry = ConnectionRegistry()
    identity = registry.register('sid-1')
    assert registry.identity_for('sid-1') == identity
    assert registry.handle_for(identity) == 'sid-1'
    registry.bind_name(identity, 'Alice')
    assert registry.name_for(identity) == 'Alice'
    assert registry.name_for('missing') is None


def test_sweep_drops_connection_after_missed_interval():
    registry = ConnectionRegistry(max_missed=1)
    quiet = registry.register('sid-quiet')
    chatty = registry.register('sid-chatty')

    assert registry.sweep_dead() == set()
    registry.mark_alive(chatty)
    assert registry.sweep_dead() == {quiet}
    assert not registry.is_alive(quiet)
    assert registry.is_alive(chatty)
    assert [c.identity for c in registry.open_connections()] == [chatty]


def test_sweep_honours_larger_miss_budget():
    registry = ConnectionRegistry(max_missed=3)
    identity = registry.register('sid')
    for _ in range(3):
        assert registry.sweep_dead() == set()
    assert registry.sweep_dead() == {identity}


def test_handle_lookup_tracks_register_and_remove():
    registry = ConnectionRegistry()
    ids = {f'sid-{i}': registry.register(f'sid-{i}') for i in range(50)}
    assert all(registry.identity_for(h) == i for h, i in ids.items())

    registry.remove(ids['sid-7'])
    assert registry.identity_for('sid-7') is None
    assert registry.identity_for('sid-8') == ids['sid-8']
    assert registry.identity_for('sid-unknown') is None
