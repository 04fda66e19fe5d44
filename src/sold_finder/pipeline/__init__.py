"""Search pipeline: orchestration, reconciliation and result assembly."""

from sold_finder.pipeline.assembly import assemble_results
from sold_finder.pipeline.orchestrator import PropertySearch, SearchOutcome, search_properties
from sold_finder.pipeline.reconciliation import reconcile

__all__ = [
    "assemble_results",
    "PropertySearch",
    "reconcile",
    "search_properties",
    "SearchOutcome",
]
