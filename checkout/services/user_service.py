from sqlalchemy.orm import Session

from checkout.data.models.user import UserModel
from checkout.domain.enums import UserRole
from checkout.domain.principal import AuthenticatedPrincipal
from checkout.repos.user_repo import UserRepo
from checkout.domain.schemas import UserCreate, UserRead


class UserService:
    def __init__(self, db: Session):
        self.repo = UserRepo(db)

    def create_user(self, payload: UserCreate) -> UserRead:
        existing = self.repo.get_user_by_email(payload.email)
        if existing:
            return UserRead.model_validate(existing)

        user = UserModel(
            name=payload.name,
            email=payload.email,
            phone_number=payload.phone_number,
            role=UserRole.CUSTOMER.value,
        )
        created = self.repo.create_user(user)
        return UserRead.model_validate(created)

    def get_user(self, user_id: int) -> UserRead:
        user = self.repo.get_user(user_id)
        if not user:
            raise ValueError("User not found")
        return UserRead.model_validate(user)

    def principal_for(self, user_id: int) -> AuthenticatedPrincipal | None:
        user = self.repo.get_user(user_id)
        if not user:
            return None
        return AuthenticatedPrincipal(user_id=user.id, role=UserRole(user.role))
