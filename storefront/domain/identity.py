# storefront/domain/identity.py
from dataclasses import dataclass

ADMIN = "admin"
USER = "user"
ROLES = (USER, ADMIN)


@dataclass(frozen=True)
class CurrentUser:
    """Identity attached to the request by the upstream auth gate."""

    id: int
    role: str = USER

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN

    def can_access(self, owner_id: int) -> bool:
        return self.is_admin or self.id == owner_id
