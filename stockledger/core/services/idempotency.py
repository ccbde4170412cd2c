"""Request-id bookkeeping for retry-safe item operations."""

from stockledger.config import get_logger
from stockledger.core.entities.request_log import ProcessedRequest
from stockledger.core.exceptions import ValidationError
from stockledger.core.interfaces.unit_of_work import IUnitOfWork

logger = get_logger(__name__)


async def is_replay(
    uow: IUnitOfWork,
    request_id: str | None,
    operation: str,
    document_id: int,
) -> bool:
    """
    True if ``request_id`` was already applied to this operation and document.

    Raises:
        ValidationError: the id was used for a different operation or document.
    """
    if request_id is None:
        return False

    existing = await uow.requests.get(request_id)
    if existing is None:
        return False

    if not existing.matches(operation, document_id):
        raise ValidationError(
            "request_id",
            f"already used for {existing.operation} on document {existing.document_id}",
            request_id,
        )

    logger.info(
        "request_replayed",
        request_id=request_id,
        operation=operation,
        document_id=document_id,
    )
    return True


async def remember(
    uow: IUnitOfWork,
    request_id: str | None,
    operation: str,
    document_id: int,
) -> None:
    """Record the request id inside the transaction that applies its effects."""
    if request_id is None:
        return
    await uow.requests.record(
        ProcessedRequest(request_id=request_id, operation=operation, document_id=document_id)
    )
