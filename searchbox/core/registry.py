"""
SearchBase - the shared Store and Component Registry.

Owns component identity and lifetime, and runs queries through the
configured SearchBackend. Bindings never write component state: they call
Store operations and observe the resulting change notifications.
"""
import asyncio
import dataclasses
import itertools
from typing import Any, Dict, Iterator, List, Mapping, Optional, Set, Union
from loguru import logger

from .base_system import BaseSystem
from .backend import QueryKind, QueryRequest, SearchBackend
from .component import SearchComponent
from .config import ComponentConfig, ConfigManager
from .errors import ConfigurationError
from .events import RequestStatus


class SearchBase(BaseSystem):
    """
    Process-wide registry of SearchComponents.

    Usage:
        async with SearchBase(backend) as searchbase:
            component = searchbase.register("search", ComponentConfig(size=5))
            assert searchbase.register("search") is component
    """

    def __init__(self, backend: SearchBackend, config: Optional[ConfigManager] = None):
        super().__init__(config)
        if backend is None:
            raise ConfigurationError("SearchBase requires a backend")
        self.backend = backend
        self._components: Dict[str, SearchComponent] = {}
        self._tasks: Dict[str, Set[asyncio.Task]] = {}
        self._recent_tasks: Dict[str, asyncio.Task] = {}
        # Generation of the most recently started query, per component id
        self._query_generations: Dict[str, int] = {}
        self._generation_counter = itertools.count(1)

    async def initialize(self):
        await super().initialize()
        logger.info("SearchBase initialized")

    async def shutdown(self):
        """Unregister every component and cancel in-flight work."""
        pending = [task for tasks in self._tasks.values() for task in tasks]
        for component_id in list(self._components):
            self.unregister(component_id)
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        await super().shutdown()
        logger.info("SearchBase shut down")

    # --- Registry ---

    def register(
        self,
        component_id: str,
        config: Union[ComponentConfig, Mapping[str, Any], None] = None,
    ) -> SearchComponent:
        """
        Get or create the component for ``component_id``.

        If the component exists, the explicitly-set fields of ``config`` are
        merged into its configuration and its observable state is kept.

        Raises:
            ConfigurationError: If the id is empty or the config is invalid.
        """
        if not component_id:
            raise ConfigurationError("Component id is required")
        if config is None:
            config = ComponentConfig()
        elif not isinstance(config, ComponentConfig):
            config = ComponentConfig.build(**config)

        existing = self._components.get(component_id)
        if existing is not None:
            existing._update_config(config)
            logger.debug(f"Reusing component '{component_id}'")
            return existing

        component = SearchComponent(component_id, config, self)
        self._components[component_id] = component
        logger.info(f"Registered component '{component_id}'")
        return component

    def unregister(self, component_id: str) -> None:
        """Remove a component, invalidating its subscriptions. No-op for unknown ids."""
        component = self._components.pop(component_id, None)
        if component is None:
            return

        component._invalidate()
        self._query_generations.pop(component_id, None)
        for task in self._tasks.pop(component_id, set()):
            task.cancel()
        recent = self._recent_tasks.pop(component_id, None)
        if recent is not None:
            recent.cancel()
        logger.info(f"Unregistered component '{component_id}'")

    def get(self, component_id: str) -> Optional[SearchComponent]:
        return self._components.get(component_id)

    def ids(self) -> List[str]:
        return list(self._components)

    def __contains__(self, component_id: str) -> bool:
        return component_id in self._components

    def __iter__(self) -> Iterator[SearchComponent]:
        return iter(list(self._components.values()))

    def __len__(self) -> int:
        return len(self._components)

    def dependents_of(self, component_id: str) -> List[SearchComponent]:
        """Components whose react graph references ``component_id``."""
        return [
            component for component in self._components.values()
            if component.id != component_id and component_id in component.config.react_targets()
        ]

    # --- Query execution ---

    def _track(self, component_id: str, task: asyncio.Task) -> None:
        tasks = self._tasks.setdefault(component_id, set())
        tasks.add(task)
        task.add_done_callback(tasks.discard)

    def _execute(self, component: SearchComponent) -> Optional[asyncio.Task]:
        if component.is_unregistered:
            return None
        if not component.config.execute:
            logger.debug(f"Query skipped for '{component.id}': execute is disabled")
            return None

        loop = asyncio.get_running_loop()
        # The request is a snapshot of the state at the moment the query is asked for
        request = self._build_request(component)
        generation = next(self._generation_counter)
        self._query_generations[component.id] = generation

        task = loop.create_task(self._run_query(component, request, generation))
        self._track(component.id, task)
        return task

    def _build_request(self, component: SearchComponent) -> QueryRequest:
        config = component.config
        dependencies = {
            dep_id: self._components[dep_id].value
            for dep_id in config.react_targets()
            if dep_id in self._components
        }
        return QueryRequest(
            component_id=component.id,
            kind=QueryKind.CUSTOM if config.custom_query is not None else QueryKind.DEFAULT,
            value=component.value,
            config=config,
            dependencies=dependencies,
        )

    def _is_latest_query(self, component: SearchComponent, generation: int) -> bool:
        return self._query_generations.get(component.id) == generation

    async def _run_query(self, component: SearchComponent, request: QueryRequest, generation: int) -> None:
        config = request.config

        component._apply(request_pending=True, request_status=RequestStatus.PENDING)
        try:
            response = await self.backend.search(request)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if not self._is_latest_query(component, generation):
                logger.debug(f"Dropping error of superseded query for '{component.id}': {e}")
                return
            logger.error(f"Query failed for '{component.id}': {e}")
            component._apply(
                error=e,
                request_pending=False,
                request_status=RequestStatus.ERROR,
            )
            return

        if not self._is_latest_query(component, generation):
            logger.debug(f"Dropping response of superseded query for '{component.id}'")
            return

        results = list(response.results)
        if config.preserve_results and config.from_ > 0:
            results = list(component.results) + results

        component._apply(
            results=results,
            suggestions=list(response.suggestions),
            aggregation_data=list(response.aggregation_data),
            query=response.query,
            error=None,
            request_pending=False,
            request_status=RequestStatus.INACTIVE,
        )

    def _fetch_recent_searches(self, component: SearchComponent) -> Optional[asyncio.Task]:
        if component.is_unregistered:
            return None
        in_flight = self._recent_tasks.get(component.id)
        if in_flight is not None and not in_flight.done():
            return in_flight

        task = asyncio.get_running_loop().create_task(self._run_recent_searches(component))
        self._recent_tasks[component.id] = task
        self._track(component.id, task)
        return task

    async def _run_recent_searches(self, component: SearchComponent) -> None:
        try:
            items = await self.backend.recent_searches(component.id, component.config)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Recent searches unavailable for '{component.id}': {e}")
            return

        recent = [
            item if item.is_recent_search else dataclasses.replace(item, is_recent_search=True)
            for item in items
        ]
        component._apply(recent_searches=recent)

    async def drain(self) -> None:
        """Wait until every in-flight query and recent-search fetch has finished."""
        while True:
            pending = [task for tasks in self._tasks.values() for task in tasks if not task.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)
