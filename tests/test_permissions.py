import pytest

from app.core.permissions import authorize, is_admin


ADMIN = {"email": "root@example.com", "role": "admin", "badges": [], "specialAccess": []}
STUDENT = {"email": "s@example.com", "role": "student", "badges": [], "specialAccess": []}
BADGED = {"email": "b@example.com", "role": "student", "badges": ["Star"], "specialAccess": ["vip"]}


@pytest.mark.parametrize("permission", ["all", "badge", "vip", "moderation", None])
def test_admin_passes_everything(permission):
    assert authorize(ADMIN, permission) is True


@pytest.mark.parametrize("actor", [ADMIN, STUDENT, BADGED])
def test_all_passes_for_everyone(actor):
    assert authorize(actor, "all") is True


def test_badge_requires_at_least_one_badge():
    assert authorize(STUDENT, "badge") is False
    assert authorize(BADGED, "badge") is True


def test_capability_tag_checked_against_special_access():
    assert authorize(BADGED, "vip") is True
    assert authorize(BADGED, "moderation") is False
    assert authorize(STUDENT, "vip") is False


def test_missing_actor_is_denied_restricted_permissions():
    assert authorize(None, "vip") is False
    assert is_admin(None) is False


def test_role_comparison_is_case_insensitive():
    assert is_admin({"role": "Admin"}) is True
