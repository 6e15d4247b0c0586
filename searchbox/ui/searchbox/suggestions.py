"""
Suggestion merging for the search box.

Pure functions: given the current query text and the component's raw
suggestion lists, decide what the view shows.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Sequence

from searchbox.core.backend import Suggestion


class SuggestionListState(Enum):
    """What the suggestion area should display."""
    RECENT = "recent"
    SUGGESTIONS = "suggestions"
    PENDING = "pending"
    NO_SUGGESTIONS = "no_suggestions"
    IDLE = "idle"


@dataclass(frozen=True)
class SuggestionItem:
    """Render contract for one row of the suggestion list."""
    label: str
    on_select: Callable[[], object]
    is_recent_search: bool
    is_popular_suggestion: bool
    suggestion: Suggestion


@dataclass
class SuggestionList:
    state: SuggestionListState
    suggestions: List[Suggestion] = field(default_factory=list)
    items: List[SuggestionItem] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.suggestions

    def __len__(self) -> int:
        return len(self.suggestions)


def partition_suggestions(suggestions: Sequence[Suggestion]):
    """Split into (matched, popular), keeping the original order within each."""
    matched: List[Suggestion] = []
    popular: List[Suggestion] = []
    for suggestion in suggestions:
        (popular if suggestion.is_popular_suggestion else matched).append(suggestion)
    return matched, popular


def build_suggestion_list(
    query: Optional[str],
    suggestions: Sequence[Suggestion],
    recent_searches: Sequence[Suggestion] = (),
    size: Optional[int] = None,
    enable_recent_searches: bool = False,
    request_pending: bool = False,
) -> SuggestionList:
    """
    Merge recent, matched and popular suggestions into the list to render.

    - Empty query with recent searches enabled and available: recent only.
    - Otherwise matched suggestions (only for a non-empty query), truncated
      to ``size``, followed by every popular suggestion.
    - Nothing to show: PENDING while a request is in flight,
      NO_SUGGESTIONS for a non-empty query, IDLE for an empty one.
    """
    query = query or ""

    if not query and enable_recent_searches and recent_searches:
        return SuggestionList(SuggestionListState.RECENT, list(recent_searches))

    matched, popular = partition_suggestions(suggestions)
    if not query:
        matched = []
    if size is not None:
        matched = matched[:size]

    merged = matched + popular
    if merged:
        return SuggestionList(SuggestionListState.SUGGESTIONS, merged)
    if request_pending:
        return SuggestionList(SuggestionListState.PENDING)
    if query:
        return SuggestionList(SuggestionListState.NO_SUGGESTIONS)
    return SuggestionList(SuggestionListState.IDLE)
