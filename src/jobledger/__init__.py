"""
jobledger - Construction Job-Cost Transaction Import

Bulk import engine for accounting-system exports: resolves vendor, client,
and project names against canonical registries, classifies costs, detects
duplicates in the upload and against recorded transactions, and reconciles
duplicate totals.

Domain Packages:
- core: Money, dates, registry models, configuration
- matching: Similarity primitives, name scoring, entity resolvers
- classification: Account-path and description category rules
- allocation: Estimate/quote/change-order line-item suggestions
- dedup: Composite keys, duplicate detection, reconciliation
- store: Record store protocol and implementations
- importer: Row ingress and the import pipeline
- cli: Command-line interface

Example Usage:
    from jobledger.importer import ImportPipeline
    from jobledger.store import JsonRecordStore

    pipeline = ImportPipeline(JsonRecordStore(Path("data/store")))
    result = asyncio.run(pipeline.run(rows))
"""

__version__ = "0.1.0"

from .core.config import Environment, get_config
from .core.dates import FinancialDate
from .core.money import Money

__all__ = [
    "Environment",
    "FinancialDate",
    "Money",
    "get_config",
]
