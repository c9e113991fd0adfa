"""Ensure component recipes are present in the local store."""

from __future__ import annotations

from packages.fleet_core.components.catalog import ComponentCatalog
from packages.fleet_core.components.errors import PackageLoadingError
from packages.fleet_core.components.identifiers import ComponentIdentifier
from packages.fleet_core.components.recipe import Recipe
from packages.fleet_core.components.store import ComponentStore
from packages.fleet_shared.logging import fields, get_logger, log_context

_LOGGER = get_logger(__name__)


class RecipeMaterializer:
    """Return a local recipe, fetching and persisting it from the catalog on a miss."""

    def __init__(self, *, store: ComponentStore, catalog: ComponentCatalog) -> None:
        self._store = store
        self._catalog = catalog

    def ensure_recipe(self, identifier: ComponentIdentifier) -> Recipe:
        """Return the stored recipe for ``identifier``.

        A corrupt local copy is logged and replaced from the catalog. The
        fetched text is persisted verbatim and read back through the store, so
        the store stays the single judge of what a valid recipe is.
        """
        with log_context({fields.COMPONENT: identifier}):
            try:
                lookup = self._store.find_recipe(identifier)
            except PackageLoadingError as exc:
                _LOGGER.warning(
                    "Failed to load local recipe; fetching from catalog",
                    exc_info=exc,
                )
            else:
                if lookup.recipe is not None:
                    _LOGGER.debug("Loaded recipe from local component store")
                    return lookup.recipe

            text = self._catalog.fetch_recipe_text(identifier)
            self._store.save_recipe(identifier, text)
            _LOGGER.debug("Downloaded recipe from component catalog")
            return self._store.get_recipe(identifier)
