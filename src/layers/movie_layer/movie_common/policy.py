from enum import Enum
from typing import Optional

from movie_common.config import get_settings
from movie_common.identity import Identity


class Operation(str, Enum):
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


class Decision(str, Enum):
    ALLOW = "allow"
    DENY = "deny"


class ListScope(str, Enum):
    ALL = "all"
    OWNED_ONLY = "owned_only"


def is_admin(identity: Identity, admin_group: Optional[str] = None) -> bool:
    return identity.in_group(admin_group or get_settings().admin_group)


def can_access(
    identity: Identity,
    record_owner: Optional[str],
    operation: Operation,
    admin_group: Optional[str] = None,
) -> Decision:
    """Admins may touch any record; everyone else only the records they created.

    The rule is the same for read, update and delete.
    """
    if is_admin(identity, admin_group):
        return Decision.ALLOW
    if record_owner and identity.subject == record_owner:
        return Decision.ALLOW
    return Decision.DENY


def list_scope(identity: Identity, admin_group: Optional[str] = None) -> ListScope:
    return ListScope.ALL if is_admin(identity, admin_group) else ListScope.OWNED_ONLY
