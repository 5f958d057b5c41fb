import pytest


@pytest.fixture
def no_sleep(monkeypatch):
    """Record backoff sleeps of the download handshake instead of waiting."""
    sleeps = []
    monkeypatch.setattr("time.sleep", sleeps.append)
    return sleeps
