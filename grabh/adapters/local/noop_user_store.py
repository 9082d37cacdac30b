"""NoOpUserStore — used when no user store file is configured."""

from grabh.domain.models import ChatUser
from grabh.ports.user_store import UserStorePort


class NoOpUserStore(UserStorePort):
    def save_user(self, user: ChatUser) -> None:
        pass

    def increment_user_downloads(self, user_id: int) -> None:
        pass

    def increment_global_downloads(self) -> None:
        pass

    def global_download_count(self) -> int:
        return 0
