# backend/utils/permissions.py
"""Capability table consulted by every protected operation.

Routes ask whether an identity may perform an action instead of comparing
role strings inline. Ownership rules ("owner or anyone holding X") go
through ``ensure_owner_or``.
"""
import enum
from typing import Optional

from models.users import Role
from utils.errors import Forbidden
from utils.tokenJWT import Identity, role_required


class Action(str, enum.Enum):
    MANAGE_USERS = "manage_users"
    MANAGE_CATALOG = "manage_catalog"
    VIEW_ALL_CARTS = "view_all_carts"
    MANAGE_ANY_CART = "manage_any_cart"
    VIEW_ALL_ORDERS = "view_all_orders"
    MANAGE_ORDERS = "manage_orders"
    VIEW_LOGS = "view_logs"


ROLE_ACTIONS = {
    Role.ADMIN: frozenset(Action),
    Role.CUSTOMER: frozenset(),
    Role.USER: frozenset(),
}


def can(identity: Identity, action: Action) -> bool:
    return action in ROLE_ACTIONS.get(identity.role, frozenset())


def ensure_can(identity: Identity, action: Action) -> None:
    if not can(identity, action):
        raise Forbidden("Access denied")


def ensure_owner_or(identity: Identity, owner_id: Optional[int], action: Action) -> None:
    if owner_id is not None and owner_id == identity.id:
        return
    ensure_can(identity, action)


def roles_for(action: Action) -> tuple:
    return tuple(role for role, actions in ROLE_ACTIONS.items() if action in actions)


# Route-level gate: the roles holding the action, checked by role_required
def permission_required(action: Action):
    return role_required(*roles_for(action))
