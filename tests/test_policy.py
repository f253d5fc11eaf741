"""Tests for the ownership / admin authorization rules."""

import pytest

from movie_common.identity import Identity
from movie_common.policy import (
    Decision,
    ListScope,
    Operation,
    can_access,
    is_admin,
    list_scope,
)


class TestCanAccess:
    @pytest.mark.parametrize("operation", list(Operation))
    def test_owner_is_allowed(self, alice, operation):
        assert can_access(alice, "alice-sub", operation) is Decision.ALLOW

    @pytest.mark.parametrize("operation", list(Operation))
    def test_other_user_is_denied(self, bob, operation):
        assert can_access(bob, "alice-sub", operation) is Decision.DENY

    @pytest.mark.parametrize("operation", list(Operation))
    def test_admin_bypasses_ownership(self, admin, operation):
        assert can_access(admin, "alice-sub", operation) is Decision.ALLOW

    def test_missing_owner_never_matches(self, alice):
        assert can_access(alice, None, Operation.READ) is Decision.DENY
        assert can_access(alice, "", Operation.READ) is Decision.DENY

    def test_group_name_is_case_sensitive(self):
        caller = Identity(subject="x", groups=frozenset({"admins"}))
        assert can_access(caller, "alice-sub", Operation.DELETE) is Decision.DENY

    def test_custom_admin_group(self):
        caller = Identity(subject="x", groups=frozenset({"Curators"}))
        assert can_access(caller, "alice-sub", Operation.UPDATE, admin_group="Curators") is Decision.ALLOW
        assert can_access(caller, "alice-sub", Operation.UPDATE) is Decision.DENY

    def test_admin_group_read_from_environment(self, monkeypatch):
        monkeypatch.setenv("ADMIN_GROUP", "Staff")
        caller = Identity(subject="x", groups=frozenset({"Staff"}))
        assert is_admin(caller)


class TestListScope:
    def test_admin_lists_everything(self, admin):
        assert list_scope(admin) is ListScope.ALL

    def test_user_lists_own_records(self, alice, bob):
        assert list_scope(alice) is ListScope.OWNED_ONLY
        assert list_scope(bob) is ListScope.OWNED_ONLY
