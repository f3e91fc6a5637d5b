"""
Ownership guard: may this identity act on that user's resources?

The rule is self-or-admin: a caller may read or mutate a user-scoped
resource (the user record, its account, its carrier profile) when the
resource belongs to them or when they are an admin.

``authorize`` is the pure decision. ``ensure_owner_or_admin`` and
``ensure_role`` turn a denial into an AuthorizationError (403), which is
deliberately a different exception from AuthenticationError (401).
"""

import enum
import uuid

from colis.exceptions import AuthorizationError, DenialReason
from colis.identity import AuthenticatedIdentity
from colis.logging import get_logger
from colis.models.user import UserRole

logger = get_logger(__name__)


class Decision(str, enum.Enum):
    ALLOW = "allow"
    DENY = "deny"


def authorize(identity: AuthenticatedIdentity, target_user_id: uuid.UUID) -> Decision:
    """ALLOW iff the identity owns the target or is an admin."""
    if identity.user_id == target_user_id or identity.role is UserRole.ADMIN:
        return Decision.ALLOW
    return Decision.DENY


def ensure_owner_or_admin(
    identity: AuthenticatedIdentity, target_user_id: uuid.UUID
) -> None:
    """Raise AuthorizationError(NOT_OWNER) unless ``authorize`` allows."""
    if authorize(identity, target_user_id) is Decision.DENY:
        logger.warning(
            "authorization_denied",
            reason=DenialReason.NOT_OWNER.value,
            user_id=str(identity.user_id),
            target_user_id=str(target_user_id),
        )
        raise AuthorizationError(DenialReason.NOT_OWNER)


def ensure_role(identity: AuthenticatedIdentity, role: UserRole) -> None:
    """Raise AuthorizationError(INSUFFICIENT_ROLE) unless the identity holds ``role``."""
    if identity.role is not role:
        logger.warning(
            "authorization_denied",
            reason=DenialReason.INSUFFICIENT_ROLE.value,
            user_id=str(identity.user_id),
            required_role=role.value,
        )
        raise AuthorizationError(DenialReason.INSUFFICIENT_ROLE)
