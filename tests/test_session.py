"""Unit tests for the authentication state container."""

import logging

import pytest

from saidistat.session import AuthEvent, AuthSession, AuthUser, SessionState, SessionStore, reduce_session

ALICE = AuthUser(id="1", username="alice")


def _session(user=ALICE, token="t1", issued_at=0.0):
    return AuthSession(user=user, access_token=token, issued_at=issued_at)


@pytest.fixture
def signed_in():
    store = SessionStore()
    store.dispatch(AuthEvent.SIGNED_IN, _session())
    return store


def test_initial_state_is_loading():
    state = SessionStore().state
    assert state.loading
    assert state.user is None
    assert not state.authenticated


def test_initial_session_without_user_stops_loading():
    store = SessionStore()
    assert store.dispatch(AuthEvent.INITIAL_SESSION) is True
    assert store.state == SessionState(loading=False)


def test_sign_in_sets_user(signed_in):
    assert signed_in.state.user == ALICE
    assert signed_in.state.user_id == "1"
    assert signed_in.state.authenticated
    assert not signed_in.state.loading


def test_token_refresh_for_same_user_is_silent(signed_in):
    calls = []
    signed_in.subscribe(calls.append)
    refreshed = _session(token="t2", issued_at=500.0)
    assert signed_in.dispatch(AuthEvent.TOKEN_REFRESHED, refreshed) is False
    assert calls == []
    assert signed_in.state.session == refreshed
    assert signed_in.state.user is ALICE


def test_reducer_returns_same_state_when_nothing_changes(signed_in):
    state = signed_in.state
    assert reduce_session(state, AuthEvent.TOKEN_REFRESHED, state.session) is state


def test_user_update_notifies(signed_in):
    calls = []
    signed_in.subscribe(calls.append)
    renamed = AuthUser(id="1", username="alice.m")
    assert signed_in.dispatch(AuthEvent.USER_UPDATED, _session(user=renamed))
    assert calls == [signed_in.state]
    assert signed_in.state.user.username == "alice.m"


def test_sign_out_notifies(signed_in):
    calls = []
    signed_in.subscribe(calls.append)
    assert signed_in.dispatch(AuthEvent.SIGNED_OUT)
    assert signed_in.state.user is None
    assert signed_in.state.session is None
    assert len(calls) == 1


def test_unsubscribe(signed_in):
    calls = []
    unsubscribe = signed_in.subscribe(calls.append)
    unsubscribe()
    signed_in.dispatch(AuthEvent.SIGNED_OUT)
    assert calls == []


def test_guest_is_not_authenticated():
    store = SessionStore()
    store.dispatch(AuthEvent.SIGNED_IN, _session(user=AuthUser(id="guest", username="guest", guest=True)))
    assert store.state.user is not None
    assert not store.state.authenticated


def test_needs_refresh(signed_in):
    assert not signed_in.needs_refresh(600, now=599.0)
    assert signed_in.needs_refresh(600, now=600.0)
    assert not SessionStore().needs_refresh(600, now=10_000.0)


def test_only_state_changes_are_logged(signed_in, caplog):
    with caplog.at_level(logging.INFO, logger="saidistat.session"):
        signed_in.dispatch(AuthEvent.TOKEN_REFRESHED, _session(token="t2"))
        assert caplog.records == []
        signed_in.dispatch(AuthEvent.SIGNED_OUT)
    assert [r.getMessage() for r in caplog.records] == ["Auth state changed: SIGNED_OUT"]
