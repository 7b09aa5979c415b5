from pharmadesk.core.exceptions import AuthorizationError, NotFoundError
from pharmadesk.domain.users.models import User
from pharmadesk.domain.users.repository import UserRepository


class UserService:
    """Eligibility checks for mobile users"""

    def __init__(self, repository: UserRepository):
        self.user_repo = repository

    async def get_user(self, user_id: int) -> User:
        user = await self.user_repo.get_by_id(user_id)
        if not user:
            raise NotFoundError(message="User not found", details={"userId": user_id})
        return user

    async def get_approved_user(self, user_id: int) -> User:
        """Get a user who may submit requests; PENDING and DEACTIVE users are refused"""
        user = await self.get_user(user_id)
        if not user.is_approved:
            raise AuthorizationError(
                message="User account not approved",
                details={"userId": user.id, "userStatus": user.status.value},
                error_code="USER_NOT_APPROVED"
            )
        return user
