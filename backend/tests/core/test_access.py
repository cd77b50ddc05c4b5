"""
访问控制判定单元测试
"""
from enum import Enum

import pytest

from core.security.access import (
    AccessOutcome, PROTECTED_AREAS, allowed_roles_for, evaluate_access, evaluate_path,
)
from core.security.context import AuthSession, Identity


class _Role(str, Enum):
    BAR = "bar"
    MANAGER = "manager"


def _session(*roles):
    return AuthSession.for_identity(Identity(user_id=7, email="staff@vph.test", roles=frozenset(roles)))


class TestEvaluateAccess:

    def test_loading_session_is_pending(self):
        decision = evaluate_access(AuthSession(), {"reception"}, "/reception")
        assert decision.outcome == AccessOutcome.PENDING
        assert decision.allowed is False
        assert decision.redirect is None

    def test_unauthenticated_goes_to_login_with_next(self):
        decision = evaluate_access(AuthSession.anonymous(), {"bar"}, "/bar")
        assert decision.outcome == AccessOutcome.LOGIN
        assert decision.redirect == "/login?next=/bar"

    def test_unauthenticated_denied_even_without_restriction(self):
        decision = evaluate_access(AuthSession.anonymous(), (), "/")
        assert decision.outcome == AccessOutcome.LOGIN

    @pytest.mark.parametrize("area", sorted(PROTECTED_AREAS))
    def test_manager_allowed_everywhere(self, area):
        assert evaluate_path(_session("manager"), area).allowed

    def test_manager_allowed_for_any_declared_roles(self):
        assert evaluate_access(_session("manager"), {"inventory"}).allowed

    def test_enum_roles_match_by_value(self):
        assert evaluate_access(_session("bar"), {_Role.BAR}).allowed
        assert evaluate_access(_session(_Role.BAR), {"bar"}).allowed
        assert evaluate_access(_session(_Role.MANAGER), {"inventory"}).allowed
        assert not evaluate_access(_session("bar"), {_Role.MANAGER}).allowed

    def test_no_restriction_allows_any_authenticated(self):
        assert evaluate_access(_session(), ()).allowed

    def test_intersecting_role_allowed(self):
        assert evaluate_access(_session("bar", "restaurant"), {"restaurant"}).allowed

    def test_missing_role_is_unauthorized_not_login(self):
        decision = evaluate_access(_session("bar"), {"accounts"}, "/accounts")
        assert decision.outcome == AccessOutcome.UNAUTHORIZED
        assert decision.redirect == "/unauthorized"

    def test_empty_role_set_only_reaches_unrestricted_areas(self):
        session = _session()
        assert evaluate_path(session, "/").allowed
        assert evaluate_path(session, "/reports").allowed
        for area in ("/staff", "/reception", "/restaurant", "/bar", "/inventory", "/corporate", "/accounts"):
            assert evaluate_path(session, area).outcome == AccessOutcome.UNAUTHORIZED


class TestAreas:

    def test_corporate_requires_accounts(self):
        assert allowed_roles_for("/corporate") == frozenset({"accounts"})

    def test_nested_path_uses_area(self):
        assert allowed_roles_for("/reception/rooms/105") == frozenset({"reception"})

    def test_unknown_path_is_unrestricted(self):
        assert allowed_roles_for("/somewhere-else") == frozenset()

    def test_trailing_slash_and_query_ignored(self):
        assert allowed_roles_for("/staff/?tab=roles") == frozenset({"manager"})

    def test_public_pages_always_allowed(self):
        assert evaluate_path(AuthSession.anonymous(), "/login").allowed
        assert evaluate_path(AuthSession.anonymous(), "/unauthorized").allowed
