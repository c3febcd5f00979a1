"""Abstract interface for conversion metadata persistence."""

from abc import ABC, abstractmethod
from datetime import datetime


class MetadataStore(ABC):
    """Abstract base class for conversion record stores."""

    @abstractmethod
    def init(self) -> None:
        """Opens connections and prepares the schema."""

    @abstractmethod
    def close(self) -> None:
        """Releases connections."""

    @abstractmethod
    async def record(self, filename: str, converted_at: datetime) -> str:
        """
        Persists a conversion record.

        Args:
            filename: The client declared filename.
            converted_at: Completion timestamp (UTC).

        Returns:
            The generated record identifier.

        Raises:
            PersistenceUnavailableError: If the store cannot be written.
        """
