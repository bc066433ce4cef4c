# checkout/domain/principal.py
from dataclasses import dataclass

from checkout.domain.enums import UserRole


@dataclass(frozen=True)
class AuthenticatedPrincipal:
    """Who is calling. Passed explicitly into every service operation."""

    user_id: int
    role: UserRole = UserRole.CUSTOMER

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
