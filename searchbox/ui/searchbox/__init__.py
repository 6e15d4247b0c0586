"""
Search box interaction and suggestion merging.
"""
from searchbox.ui.searchbox.suggestions import (
    SuggestionItem,
    SuggestionList,
    SuggestionListState,
    build_suggestion_list,
    partition_suggestions,
)
from searchbox.ui.searchbox.controller import SearchBoxController

__all__ = [
    "SearchBoxController",
    "SuggestionItem",
    "SuggestionList",
    "SuggestionListState",
    "build_suggestion_list",
    "partition_suggestions",
]
