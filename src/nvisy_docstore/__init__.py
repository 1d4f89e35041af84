"""Paginated query and safe-mutation engine for document stores."""

from nvisy_docstore.advisor import IndexAdvisor
from nvisy_docstore.bulk import BulkWriter
from nvisy_docstore.config import EngineSettings, RetryPolicy, get_settings
from nvisy_docstore.cursor import CursorCodec
from nvisy_docstore.engine import DocumentEngine
from nvisy_docstore.errors import DocStoreError, ErrorKind
from nvisy_docstore.fetcher import PageFetcher
from nvisy_docstore.mutator import MutationOp, Mutator
from nvisy_docstore.paginator import Paginator
from nvisy_docstore.protocols import DocumentStore, Provider

__all__ = [
    "BulkWriter",
    "CursorCodec",
    "DocStoreError",
    "DocumentEngine",
    "DocumentStore",
    "EngineSettings",
    "ErrorKind",
    "IndexAdvisor",
    "MutationOp",
    "Mutator",
    "PageFetcher",
    "Paginator",
    "Provider",
    "RetryPolicy",
    "get_settings",
]
