"""Tests for auth permissions."""

import pytest

from src.auth.permissions import (
    ROLE_HIERARCHY,
    UserRole,
    get_role_level,
    has_permission,
    is_admin,
)


class TestUserRole:
    """Tests for UserRole enum."""

    def test_role_values(self) -> None:
        """Roles should have correct string values."""
        assert UserRole.STUDENT.value == "student"
        assert UserRole.ADMIN.value == "admin"

    def test_role_hierarchy(self) -> None:
        """Admin sits above student."""
        assert ROLE_HIERARCHY[UserRole.STUDENT] == 0
        assert ROLE_HIERARCHY[UserRole.ADMIN] == 1

    def test_all_roles_have_levels(self) -> None:
        """All UserRole members should have defined levels."""
        for role in UserRole:
            assert role in ROLE_HIERARCHY


class TestGetRoleLevel:
    """Tests for get_role_level function."""

    @pytest.mark.parametrize(
        "role,expected_level",
        [
            (UserRole.STUDENT, 0),
            (UserRole.ADMIN, 1),
            ("student", 0),
            ("admin", 1),
        ],
    )
    def test_known_roles(self, role: UserRole | str, expected_level: int) -> None:
        """Should return correct level for enum and string roles."""
        assert get_role_level(role) == expected_level

    def test_unknown_role(self) -> None:
        """Unknown roles get a level below every real role."""
        assert get_role_level("teacher") == -1


class TestHasPermission:
    """Tests for has_permission function."""

    @pytest.mark.parametrize(
        "user_role,required_role,expected",
        [
            (UserRole.ADMIN, UserRole.ADMIN, True),
            (UserRole.ADMIN, UserRole.STUDENT, True),
            (UserRole.STUDENT, UserRole.STUDENT, True),
            (UserRole.STUDENT, UserRole.ADMIN, False),
            ("student", "admin", False),
        ],
    )
    def test_permission_matrix(
        self, user_role: UserRole | str, required_role: UserRole | str, expected: bool
    ) -> None:
        """Higher roles include the permissions of lower ones."""
        assert has_permission(user_role, required_role) is expected

    def test_unknown_roles_never_pass(self) -> None:
        """Unknown user or required roles deny access."""
        assert has_permission("ghost", UserRole.STUDENT) is False
        assert has_permission(UserRole.ADMIN, "ghost") is False


class TestIsAdmin:
    """Tests for is_admin helper."""

    def test_is_admin(self) -> None:
        assert is_admin(UserRole.ADMIN) is True
        assert is_admin("admin") is True
        assert is_admin(UserRole.STUDENT) is False
        assert is_admin("ghost") is False
