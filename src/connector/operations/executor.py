"""Bulk operation executor -- sequential, per-item isolated.

Runs one single-record action per input item, strictly in order and one at
a time, so the remote API sees at most one request per batch at any moment
and every error is attributable to exactly one item. A ConnectorError raised
for one item is recorded in that item's BulkItemResult and the batch moves
on. Nothing is retried.

Payload shape is checked before any request is made: a batch that is not a
list of the expected item type raises MalformedInputError.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from typing import Any, TypeVar

import structlog

from src.connector.core.errors import ConnectorError, MalformedInputError
from src.connector.operations.schemas import BulkItemResult

logger = structlog.get_logger(__name__)

T = TypeVar("T")

ItemAction = Callable[[int, T], Awaitable[BulkItemResult]]


def require_list(items: Any, item_type: type | tuple[type, ...], what: str) -> list[Any]:
    """Check that a bulk payload is a list of ``item_type``.

    Raises:
        MalformedInputError: If ``items`` is not a list, or any element has
            the wrong type.
    """
    if not isinstance(items, list):
        raise MalformedInputError(
            f"Bulk {what} expects a list, got {type(items).__name__}",
            details={"received": type(items).__name__},
        )
    for index, item in enumerate(items):
        if not isinstance(item, item_type) or isinstance(item, bool):
            raise MalformedInputError(
                f"Bulk {what} item {index} has type {type(item).__name__}",
                details={"index": index, "received": type(item).__name__},
            )
    return items


class BulkExecutor:
    """Runs an action over a batch and collects one result per item."""

    async def run(
        self,
        items: Sequence[T],
        action: ItemAction[T],
        operation: str = "bulk",
        id_of: Callable[[T], str | None] | None = None,
    ) -> list[BulkItemResult]:
        """Await ``action(index, item)`` for each item, in input order.

        Args:
            items: Batch inputs.
            action: Coroutine performing one single-record operation and
                returning its successful BulkItemResult.
            operation: Name used in log events.
            id_of: Extracts the record id of an item for failure results.

        Returns:
            One BulkItemResult per item, ``results[i].index == i``.
        """
        results: list[BulkItemResult] = []
        for index, item in enumerate(items):
            try:
                result = await action(index, item)
            except ConnectorError as exc:
                logger.warning(
                    "bulk.item_failed",
                    operation=operation,
                    index=index,
                    error_kind=exc.kind.value,
                    error=exc.message,
                )
                results.append(
                    BulkItemResult(
                        success=False,
                        index=index,
                        id=id_of(item) if id_of else None,
                        error=exc.message,
                        error_kind=exc.kind,
                    )
                )
                continue
            results.append(result.model_copy(update={"index": index}))

        succeeded = sum(1 for r in results if r.success)
        logger.info(
            "bulk.completed",
            operation=operation,
            total=len(results),
            succeeded=succeeded,
            failed=len(results) - succeeded,
        )
        return results
