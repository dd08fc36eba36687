import pytest

from weather_mcp.server.sessions import SessionRegistry


def test_create_get_remove():
    registry = SessionRegistry()
    transport, server = object(), object()

    session = registry.create("abc", transport, server)

    assert registry.get("abc") is session
    assert session.transport is transport
    assert session.server is server
    assert "abc" in registry
    assert len(registry) == 1

    assert registry.remove("abc") is session
    assert registry.get("abc") is None
    assert len(registry) == 0


def test_get_without_id_returns_none():
    registry = SessionRegistry()
    registry.create("abc", object(), object())

    assert registry.get(None) is None


def test_create_refuses_duplicate_id():
    registry = SessionRegistry()
    registry.create("abc", object(), object())

    with pytest.raises(KeyError):
        registry.create("abc", object(), object())


def test_remove_unknown_id_is_noop():
    registry = SessionRegistry()

    assert registry.remove("missing") is None


def test_iteration_is_safe_while_removing():
    registry = SessionRegistry()
    for session_id in ("a", "b", "c"):
        registry.create(session_id, object(), object())

    for session in registry:
        registry.remove(session.session_id)

    assert len(registry) == 0
