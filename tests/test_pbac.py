from uuid import uuid4

import pytest

from src.codeprep.core.pbac import check_policy, load_policies
from src.codeprep.models import User


def user_with_role(role: str) -> User:
    return User(id=uuid4(), role=role)


def test_policies_file_is_loaded():
    policies = load_policies()

    assert any("admin" in p["roles"] for p in policies["policies"])


@pytest.mark.parametrize("action", ["create", "update", "delete"])
def test_only_admin_may_change_problems(action):
    assert check_policy(user_with_role("admin"), action, "problems")
    assert not check_policy(user_with_role("user"), action, "problems")


@pytest.mark.parametrize("resource", ["interviews", "submissions", "community_posts", "votes", "payments"])
def test_users_may_work_with_their_own_resources(resource):
    assert check_policy(user_with_role("user"), "create", resource)


def test_unknown_role_is_denied():
    assert not check_policy(user_with_role("guest"), "read", "interviews")


def test_empty_policy_set_denies_everything():
    assert not check_policy(user_with_role("admin"), "read", "problems", policies={})
