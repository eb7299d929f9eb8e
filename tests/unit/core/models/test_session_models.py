"""Tests for session records and the cached session identity."""

import time

import pytest

from src.shortlinks.core.models.session import (
    InvalidSessionIdentityError,
    SessionIdentity,
    SessionRecord,
)


class TestSessionRecord:
    def test_create_sets_expiry(self):
        before = int(time.time())
        record = SessionRecord.create("s1", 60)
        assert record.data == {}
        assert before + 60 <= record.expires_at <= int(time.time()) + 60
        assert not record.is_expired()

    def test_touch_slides_window(self):
        record = SessionRecord.create("s1", 60)
        record.expires_at = int(time.time()) + 1
        record.touch(3600)
        assert record.expires_at >= int(time.time()) + 3599

    def test_is_expired(self):
        record = SessionRecord.create("s1", 60)
        record.expires_at = int(time.time()) - 1
        assert record.is_expired()


class TestSessionIdentity:
    def test_round_trip_value(self):
        identity = SessionIdentity(user_id="user:k1")
        assert SessionIdentity.from_session_value(identity.to_session_value()) == identity
        assert str(identity) == "user:k1"

    @pytest.mark.parametrize(
        "value", ["", "user", ":k1", "user:", "user:k 1", "1user:k1"]
    )
    def test_malformed_values_rejected(self, value):
        with pytest.raises(InvalidSessionIdentityError):
            SessionIdentity.from_session_value(value)
