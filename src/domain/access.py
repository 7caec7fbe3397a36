from dataclasses import dataclass

from src.domain.exceptions import ForbiddenError

ADMIN_ROLE = "admin"
USER_ROLE = "user"


@dataclass(frozen=True)
class Requester:
    """Identity established by the upstream authentication layer."""

    user_id: str
    role: str = USER_ROLE

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


def ensure_owner_or_admin(owner_id: str, requester: Requester) -> None:
    if owner_id != requester.user_id and not requester.is_admin:
        raise ForbiddenError("Access denied")


def ensure_admin(requester: Requester) -> None:
    if not requester.is_admin:
        raise ForbiddenError("Access denied. Admin only.")
