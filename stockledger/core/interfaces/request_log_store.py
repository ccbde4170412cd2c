"""Abstract interface for the processed-request log."""

from abc import ABC, abstractmethod

from stockledger.core.entities.request_log import ProcessedRequest


class IRequestLogStore(ABC):
    """Interface for idempotency records."""

    @abstractmethod
    async def get(self, request_id: str) -> ProcessedRequest | None:
        """Get a processed request by its id."""
        pass

    @abstractmethod
    async def record(self, request: ProcessedRequest) -> ProcessedRequest:
        """Store a processed request. Must run in the guarded transaction."""
        pass
