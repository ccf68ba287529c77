"""
Role-based access policy shared by every resource router.

A request is described by (caller, action, resource). The resource descriptor
names the kind of resource and whether the operation works on the global
collection or on the caller's own slice of it. Ownership itself is not decided
here: owned-scope operations add the ownership predicate to their query, and
this policy only says whether the caller may use that scope at all.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Protocol


class Role(str, Enum):
    SUPER_ADMIN = "SUPER_ADMIN"
    ADMIN = "ADMIN"


class Action(str, Enum):
    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    ASSIGN = "assign"


class ResourceKind(str, Enum):
    ADMIN = "admin"
    CITY = "city"
    POI = "poi"


class Scope(str, Enum):
    GLOBAL = "global"
    OWNED = "owned"


@dataclass(frozen=True)
class ResourceDescriptor:
    kind: ResourceKind
    scope: Scope = Scope.GLOBAL


class Caller(Protocol):
    id: int
    role: str


# Actions any authenticated role may perform on its own slice of a resource kind.
OWNED_SCOPE_ACTIONS: dict[ResourceKind, frozenset[Action]] = {
    ResourceKind.CITY: frozenset({Action.READ, Action.UPDATE}),
    ResourceKind.POI: frozenset({Action.READ, Action.CREATE, Action.UPDATE, Action.DELETE}),
}


def evaluate(caller: Caller, action: Action, resource: ResourceDescriptor) -> bool:
    """Return True when the caller's role allows the action on the resource descriptor."""
    if caller.role not in (Role.SUPER_ADMIN.value, Role.ADMIN.value):
        return False
    if resource.kind is ResourceKind.ADMIN or resource.scope is Scope.GLOBAL:
        return caller.role == Role.SUPER_ADMIN.value
    return action in OWNED_SCOPE_ACTIONS.get(resource.kind, frozenset())
