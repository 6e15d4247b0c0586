"""
Backend Contract - what the Store needs from the outside world.

Query construction, network transport and analytics delivery live behind
SearchBackend. The Store calls it and turns the outcome into state changes;
nothing in this package interprets query DSLs or wire formats.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Protocol, runtime_checkable

from .config import ComponentConfig


@dataclass(frozen=True)
class Suggestion:
    """
    One suggestion candidate as produced by the backend.

    Suggestions are immutable snapshots; the binding layer only filters,
    merges and orders them.
    """
    label: str
    value: str
    source: Optional[Mapping[str, Any]] = None
    is_recent_search: bool = False
    is_popular_suggestion: bool = False
    click_id: Optional[str] = None

    @property
    def document_id(self) -> Optional[str]:
        """``source["_id"]`` when it is a string, otherwise None."""
        if self.source is None:
            return None
        doc_id = self.source.get("_id")
        return doc_id if isinstance(doc_id, str) else None


class QueryKind(str, Enum):
    DEFAULT = "default"
    CUSTOM = "custom"


@dataclass
class QueryRequest:
    """Everything the backend needs to execute one component query."""
    component_id: str
    kind: QueryKind
    value: Any
    config: ComponentConfig
    # values of the components this one reacts to, keyed by id
    dependencies: Dict[str, Any] = field(default_factory=dict)


@dataclass
class QueryResponse:
    results: List[Dict[str, Any]] = field(default_factory=list)
    suggestions: List[Suggestion] = field(default_factory=list)
    aggregation_data: List[Dict[str, Any]] = field(default_factory=list)
    query: Optional[Dict[str, Any]] = None


@runtime_checkable
class SearchBackend(Protocol):
    """Executes queries and records analytics on behalf of the Store."""

    async def search(self, request: QueryRequest) -> QueryResponse:
        ...

    async def recent_searches(self, component_id: str, config: ComponentConfig) -> List[Suggestion]:
        ...

    def record_click(
        self,
        component_id: str,
        click_map: Mapping[str, str],
        is_suggestion_click: bool = False,
    ) -> None:
        ...
