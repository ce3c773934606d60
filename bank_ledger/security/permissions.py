"""
Role checks for the request boundary.

The services never look at roles. Each endpoint states which
roles may call it, and require_roles() allows or denies.
"""

from dataclasses import dataclass, field
from typing import Iterable

from bank_ledger.exceptions import PermissionDeniedError
from bank_ledger.models.enums import RoleName


@dataclass(frozen=True)
class Principal:
    """The authenticated caller of a request."""
    user_id: int
    username: str
    roles: frozenset[str] = field(default_factory=frozenset)

    def has_any_role(self, allowed: Iterable[RoleName | str]) -> bool:
        wanted = {RoleName(r).value for r in allowed}
        return bool(wanted & self.roles)


def require_roles(principal: Principal, allowed: Iterable[RoleName | str]) -> None:
    allowed = list(allowed)
    if not principal.has_any_role(allowed):
        names = ", ".join(RoleName(r).value for r in allowed)
        raise PermissionDeniedError(
            f"User '{principal.username}' requires one of the roles: {names}"
        )
