from enum import Enum
from typing import Annotated, Any, Callable, Dict, List, Literal, Optional, Union
import json
import os
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from loguru import logger

from .errors import ConfigurationError
from .events import Signal


# --- Data field variants ---
class SingleField(BaseModel):
    """A single index field, e.g. ``"title"``."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["single"] = "single"
    field: str


class WeightedField(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: str
    weight: float = Field(default=1.0, gt=0)


class WeightedFields(BaseModel):
    """Several index fields, each with a relevance weight."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["weighted"] = "weighted"
    fields: List[WeightedField] = Field(min_length=1)

    @property
    def names(self) -> List[str]:
        return [f.field for f in self.fields]


DataField = Annotated[Union[SingleField, WeightedFields], Field(discriminator="kind")]


def coerce_data_field(raw: Any) -> Any:
    """
    Accept the loose shapes callers tend to pass and turn them into a tagged variant.

    ``"title"``                          -> SingleField(field="title")
    ``["title", "body"]``                -> WeightedFields with weight 1.0 each
    ``[{"field": "title", "weight": 3}]`` -> WeightedFields
    """
    if raw is None or isinstance(raw, (SingleField, WeightedFields)):
        return raw
    if isinstance(raw, str):
        return {"kind": "single", "field": raw}
    if isinstance(raw, (list, tuple)):
        fields = [{"field": item} if isinstance(item, str) else item for item in raw]
        return {"kind": "weighted", "fields": fields}
    return raw


# --- Enumerations ---
class QueryType(str, Enum):
    SEARCH = "search"
    TERM = "term"
    GEO = "geo"
    RANGE = "range"


class SortType(str, Enum):
    ASC = "asc"
    DESC = "desc"
    COUNT = "count"


# --- Component settings ---
class AnalyticsSettings(BaseModel):
    """Analytics options forwarded to the backend with every request."""
    record_analytics: bool = False
    user_id: Optional[str] = None
    custom_events: Dict[str, str] = Field(default_factory=dict)
    enable_query_rules: bool = True


# hook attribute -> observed state property
HOOK_PROPERTIES: Dict[str, str] = {
    "on_value_change": "value",
    "on_results": "results",
    "on_aggregation_data": "aggregation_data",
    "on_error": "error",
    "on_request_status_change": "request_status",
    "on_query_change": "query",
}


class ComponentConfig(BaseModel):
    """
    Query-shaping options and callback hooks of one search component.

    Validated once when the binding is created. Only the fields a caller sets
    explicitly take part in merging when the same id is registered again
    (see ``merged_with``).
    """
    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        extra="forbid",
        populate_by_name=True,
    )

    # Data source
    index: Optional[str] = None
    url: Optional[str] = None
    credentials: Optional[str] = None
    headers: Dict[str, str] = Field(default_factory=dict)
    analytics: AnalyticsSettings = Field(default_factory=AnalyticsSettings)

    # Query shaping
    type: QueryType = QueryType.SEARCH
    react: Dict[str, Any] = Field(default_factory=dict)
    query_format: Literal["or", "and"] = "or"
    data_field: Optional[DataField] = None
    category_field: Optional[str] = None
    category_value: Optional[str] = None
    nested_field: Optional[str] = None
    from_: int = Field(default=0, ge=0, alias="from")
    size: int = Field(default=10, ge=0)
    sort_by: Optional[SortType] = None
    value: Any = None
    aggregation_field: Optional[str] = None
    after: Optional[Dict[str, Any]] = None
    include_null_values: bool = False
    include_fields: Optional[List[str]] = None
    exclude_fields: Optional[List[str]] = None
    fuzziness: Optional[Union[int, str]] = None
    search_operators: bool = False
    highlight: bool = False
    highlight_field: Optional[List[str]] = None
    custom_highlight: Optional[Dict[str, Any]] = None
    interval: Optional[int] = None
    aggregations: Optional[List[str]] = None
    missing_label: str = "N/A"
    show_missing: bool = False
    execute: bool = True
    enable_synonyms: bool = True
    select_all_label: Optional[str] = None
    pagination: bool = False
    query_string: bool = False
    results: Optional[List[Dict[str, Any]]] = None

    # Suggestions
    enable_popular_suggestions: bool = False
    max_popular_suggestions: int = Field(default=5, ge=0)
    show_distinct_suggestions: bool = True
    preserve_results: bool = False
    enable_recent_searches: bool = False
    show_auto_fill: bool = False

    # Query customisation, passed through to the backend
    default_query: Optional[Callable[..., Any]] = None
    custom_query: Optional[Callable[..., Any]] = None
    transform_request: Optional[Callable[..., Any]] = None
    transform_response: Optional[Callable[..., Any]] = None

    # Gate and change hooks
    before_value_change: Optional[Callable[[Any], Any]] = None
    on_value_change: Optional[Callable[[Any, Any], None]] = None
    on_results: Optional[Callable[[Any, Any], None]] = None
    on_aggregation_data: Optional[Callable[[Any, Any], None]] = None
    on_error: Optional[Callable[[Any, Any], None]] = None
    on_request_status_change: Optional[Callable[[Any, Any], None]] = None
    on_query_change: Optional[Callable[[Any, Any], None]] = None

    @field_validator("data_field", mode="before")
    @classmethod
    def _coerce_data_field(cls, value: Any) -> Any:
        return coerce_data_field(value)

    @classmethod
    def build(cls, **options: Any) -> "ComponentConfig":
        """Validate keyword options, raising ConfigurationError on failure."""
        try:
            return cls.model_validate(options)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid component configuration: {e}") from e

    def merged_with(self, other: "ComponentConfig") -> "ComponentConfig":
        """Return a copy with every field explicitly set on ``other`` applied."""
        update = {name: getattr(other, name) for name in other.model_fields_set}
        return self.model_copy(update=update)

    def hooks(self) -> Dict[str, Callable[[Any, Any], None]]:
        """Configured change hooks keyed by the state property they observe."""
        return {
            HOOK_PROPERTIES[name]: getattr(self, name)
            for name in HOOK_PROPERTIES
            if getattr(self, name) is not None
        }

    def react_targets(self) -> List[str]:
        """Flatten the react graph into the component ids it depends on."""
        found: List[str] = []

        def walk(node: Any) -> None:
            if isinstance(node, str):
                found.append(node)
            elif isinstance(node, dict):
                for child in node.values():
                    walk(child)
            elif isinstance(node, (list, tuple, set)):
                for child in node:
                    walk(child)

        walk(self.react)
        return found


# --- Application settings ---
class GeneralSettings(BaseModel):
    debug_mode: bool = False
    log_dir: Optional[str] = None


class BindingSettings(BaseModel):
    """Defaults for connector lifecycle flags left unset by the caller."""
    trigger_query_on_init: bool = True
    should_listen_for_changes: bool = True
    destroy_on_dispose: bool = False


class AppConfig(BaseModel):
    general: GeneralSettings = Field(default_factory=GeneralSettings)
    binding: BindingSettings = Field(default_factory=BindingSettings)


# --- Manager ---
class ConfigManager:
    """
    Manages application configuration with optional persistence and reactivity.
    """
    def __init__(self, filepath: Optional[str] = None):
        self.filepath = filepath
        self._data = AppConfig()
        self.on_changed = Signal("ConfigChanged")
        if filepath:
            self._load()

    @property
    def data(self) -> AppConfig:
        return self._data

    def update(self, section: str, key: str, value: Any):
        """Update a setting, validate via Pydantic, and emit change event."""
        if not hasattr(self._data, section):
            raise ConfigurationError(f"Invalid section: {section}")

        section_obj = getattr(self._data, section)
        if key not in type(section_obj).model_fields:
            raise ConfigurationError(f"Invalid key: {key} in section {section}")

        try:
            updated = type(section_obj).model_validate({**section_obj.model_dump(), key: value})
        except ValidationError as e:
            raise ConfigurationError(f"Invalid value for {section}.{key}: {e}") from e

        setattr(self._data, section, updated)
        self.on_changed.emit(section, key, getattr(updated, key))

    def get(self, section: str, key: str) -> Any:
        section_obj = getattr(self._data, section)
        return getattr(section_obj, key)

    def _load(self):
        """Load settings from JSON or TOML file if present; otherwise keep defaults."""
        if not os.path.isfile(self.filepath):
            logger.debug(f"No config file at {self.filepath}, using defaults")
            return
        try:
            if self.filepath.endswith('.toml'):
                import tomllib
                with open(self.filepath, "rb") as f:
                    raw = tomllib.load(f)
            else:
                with open(self.filepath, "r", encoding="utf-8") as f:
                    raw = json.load(f)
            self._data = AppConfig.model_validate(raw)
        except Exception as e:
            logger.error(f"Failed to load config from {self.filepath}: {e}")

    def save(self):
        """Persist current config to JSON file."""
        if not self.filepath:
            return
        try:
            dirname = os.path.dirname(self.filepath)
            if dirname:
                os.makedirs(dirname, exist_ok=True)
            with open(self.filepath, "w", encoding="utf-8") as f:
                json.dump(self._data.model_dump(), f, indent=4)
        except OSError as e:
            logger.error(f"Failed to save config to {self.filepath}: {e}")
