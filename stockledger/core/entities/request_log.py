"""Processed-request records backing idempotent item operations."""

from datetime import datetime

from pydantic import BaseModel, Field

from stockledger.core.clock import utcnow


class ProcessedRequest(BaseModel):
    """A request id that has already been applied to one document."""

    request_id: str = Field(min_length=1)
    operation: str
    document_id: int
    created_at: datetime = Field(default_factory=utcnow)

    def matches(self, operation: str, document_id: int) -> bool:
        return self.operation == operation and self.document_id == document_id
