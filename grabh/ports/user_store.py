"""UserStorePort — abstract interface for bot user records and download counters."""

from abc import ABC, abstractmethod

from grabh.domain.models import ChatUser


class UserStorePort(ABC):
    @abstractmethod
    def save_user(self, user: ChatUser) -> None:
        """Create or refresh the user's record."""

    @abstractmethod
    def increment_user_downloads(self, user_id: int) -> None:
        """Bump one user's download count."""

    @abstractmethod
    def increment_global_downloads(self) -> None:
        """Bump the service-wide download counter."""

    @abstractmethod
    def global_download_count(self) -> int:
        """Return the service-wide download counter."""
