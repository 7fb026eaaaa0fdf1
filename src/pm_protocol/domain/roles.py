"""Role guard — privileged roles are plain principal equality checks.

Identities arrive already authenticated; nothing here verifies them.
"""

from src.pm_common.enums import Role
from src.pm_common.errors import UnauthorizedError
from src.pm_protocol.domain.models import ProtocolConfig


def has_role(config: ProtocolConfig, principal: str, role: Role) -> bool:
    if role == Role.OWNER:
        return principal == config.owner_id
    return principal == config.oracle_id


def roles_of(config: ProtocolConfig, principal: str) -> list[Role]:
    return [role for role in Role if has_role(config, principal, role)]


def require_role(config: ProtocolConfig, principal: str, role: Role) -> None:
    """Raise UnauthorizedError unless principal holds role."""
    if not has_role(config, principal, role):
        raise UnauthorizedError(role.value)


def require_owner(config: ProtocolConfig, principal: str) -> None:
    require_role(config, principal, Role.OWNER)


def require_oracle(config: ProtocolConfig, principal: str) -> None:
    require_role(config, principal, Role.ORACLE)
