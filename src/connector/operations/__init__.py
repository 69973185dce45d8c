"""Record operations on Twenty -- query synthesis, bulk execution, connector facade.

Provides the RecordAdapter interface and its TwentyConnector implementation:
- queries: pure GraphQL request builders per operation kind
- executor: BulkExecutor, sequential batches with per-item isolation
- schemas: bulk payloads, results and the database schema report
"""

from src.connector.operations.adapter import RecordAdapter
from src.connector.operations.executor import BulkExecutor
from src.connector.operations.queries import GraphQLRequest
from src.connector.operations.schemas import BulkItemResult, UpsertMode, UpsertResult
from src.connector.operations.twenty import TwentyConnector

__all__ = [
    "RecordAdapter",
    "TwentyConnector",
    "BulkExecutor",
    "GraphQLRequest",
    "BulkItemResult",
    "UpsertMode",
    "UpsertResult",
]
