import logging
import os
from functools import lru_cache
from typing import Annotated, Dict, List

from fastapi import Depends, HTTPException, status
from pydantic import BaseModel
from yaml import safe_load

from src.codeprep.api.auth_deps import get_current_user
from src.codeprep.core.config import settings
from src.codeprep.models.user import User

logger = logging.getLogger(__name__)


def policy_paths() -> List[str]:
    paths = [
        "policies.yaml",  # Current directory
        "/app/policies.yaml",  # Docker app directory
        os.path.join(os.path.dirname(__file__), "../../../policies.yaml"),  # Relative to this file
    ]
    if settings.POLICIES_PATH:
        paths.insert(0, settings.POLICIES_PATH)
    return paths


# Load policies from YAML file
@lru_cache(maxsize=1)
def load_policies() -> Dict:
    """Read the first policies.yaml found.

    A missing file denies everything rather than failing startup.
    """
    possible_paths = policy_paths()
    for path in possible_paths:
        if os.path.exists(path):
            logger.info(f"Loading policies from: {path}")
            with open(path, "r") as f:
                return safe_load(f) or {}

    logger.error(f"policies.yaml not found in any of these paths: {possible_paths}")
    return {}


class Policy(BaseModel):
    roles: List[str]
    actions: List[str]
    resources: List[str]


def check_policy(user: User, action: str, resource: str, policies: Dict | None = None) -> bool:
    """Check if user has permission to perform action on resource."""
    policies = load_policies() if policies is None else policies

    for policy in policies.get("policies", []):
        policy_obj = Policy(**policy)

        # Check if user has required role
        if user.role not in policy_obj.roles:
            continue

        # Check if action is allowed
        if action not in policy_obj.actions and "*" not in policy_obj.actions:
            continue

        # Check if resource is allowed (including wildcard "*")
        if "*" not in policy_obj.resources and resource not in policy_obj.resources:
            continue

        return True

    logger.warning(f"No matching policy for user {user.id} ({user.role}), action: {action}, resource: {resource}")
    return False


def require_permission(action: str, resource: str):
    """Dependency requiring a specific permission for an endpoint.

    No or invalid session gives 401, a session without the permission 403.
    """
    async def permission_dependency(
        current_user: Annotated[User, Depends(get_current_user)],
    ) -> User:
        if not check_policy(current_user, action, resource):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Permission denied"
            )
        return current_user

    return permission_dependency
