from datetime import timedelta

from slinker.core.config import Settings
from slinker.core.security import issue_session_token, read_session_token, states_match


def _settings(secret="s1") -> Settings:
    return Settings(database_url=None, session_secret=secret)


def test_session_token_carries_email():
    s = _settings()
    token = issue_session_token(s, "alice@example.com")
    assert read_session_token(s, token) == "alice@example.com"


def test_expired_token_is_rejected():
    s = _settings()
    token = issue_session_token(s, "alice@example.com", expires_delta=timedelta(seconds=-1))
    assert read_session_token(s, token) is None


def test_token_signed_with_other_secret_is_rejected():
    token = issue_session_token(_settings("one"), "alice@example.com")
    assert read_session_token(_settings("two"), token) is None


def test_garbage_token_is_rejected():
    assert read_session_token(_settings(), "definitely.not.jwt") is None


def test_states_match():
    assert states_match("abc", "abc") is True
    assert states_match("abc", "abd") is False
    assert states_match(None, "abc") is False
    assert states_match("", "") is False
