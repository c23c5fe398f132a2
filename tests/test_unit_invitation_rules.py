"""Unit tests for invitation rules: no database required."""

import os
import re
import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

os.environ.setdefault("SECRET_KEY", "test-secret-key-for-unit-tests")

from diary_bridge.enums import FamilyRole
from diary_bridge.services.invitation_service import (
    CODE_ALPHABET,
    _generate_code,
    is_expired,
    normalize_email,
)
from diary_bridge.services.relationship_service import derive_relationship_pair


class TestInvitationCodeGeneration:
    def test_code_format(self):
        code = _generate_code()
        assert re.match(rf"^[{CODE_ALPHABET}]{{8}}$", code), f"Unexpected format: {code}"

    def test_custom_length(self):
        assert len(_generate_code(12)) == 12

    def test_no_ambiguous_characters(self):
        for _ in range(50):
            code = _generate_code()
            assert not set(code) & set("01IO")

    def test_codes_are_random(self):
        codes = {_generate_code() for _ in range(20)}
        assert len(codes) > 1, "All 20 generated codes are identical"


class TestRoleDerivation:
    def test_parent_inviter(self):
        inviter, invitee = uuid.uuid4(), uuid.uuid4()
        assert derive_relationship_pair(FamilyRole.PARENT, inviter, invitee) == (inviter, invitee)

    def test_child_inviter(self):
        inviter, invitee = uuid.uuid4(), uuid.uuid4()
        assert derive_relationship_pair(FamilyRole.CHILD, inviter, invitee) == (invitee, inviter)

    def test_complement(self):
        assert FamilyRole.PARENT.complement == FamilyRole.CHILD
        assert FamilyRole.CHILD.complement == FamilyRole.PARENT


class TestExpiry:
    def test_no_expiry(self):
        assert not is_expired(SimpleNamespace(expires_at=None))

    def test_future(self):
        inv = SimpleNamespace(expires_at=datetime.now(timezone.utc) + timedelta(hours=1))
        assert not is_expired(inv)

    def test_past(self):
        inv = SimpleNamespace(expires_at=datetime.now(timezone.utc) - timedelta(seconds=1))
        assert is_expired(inv)

    def test_still_valid_at_the_expiry_instant(self):
        deadline = datetime.now(timezone.utc)
        inv = SimpleNamespace(expires_at=deadline)
        assert not is_expired(inv, now=deadline)
        assert is_expired(inv, now=deadline + timedelta(microseconds=1))

    def test_naive_timestamp_treated_as_utc(self):
        naive_past = (datetime.now(timezone.utc) - timedelta(minutes=5)).replace(tzinfo=None)
        assert is_expired(SimpleNamespace(expires_at=naive_past))


def test_normalize_email():
    assert normalize_email("  Kid@Example.COM\n") == "kid@example.com"
