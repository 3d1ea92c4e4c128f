"""
Category priority chain for a single line item.

Strategies run in order: learned preference, the model/parser label resolved
against the catalog, then a keyword heuristic that may only replace a weak
pick, and finally the catalog's "Other" row.
"""

from __future__ import annotations

from dataclasses import dataclass

from folio_receipts.modules.categories.defaults import DRINKS_BROAD_TYPE
from folio_receipts.modules.categories.heuristics import HeuristicSuggestion, suggest_category
from folio_receipts.modules.categories.resolver import CategoryResolver
from folio_receipts.modules.categories.service import CatalogEntry, CategoryCatalog
from folio_receipts.modules.preferences.service import PreferenceMap


@dataclass(frozen=True)
class ItemContext:
    description: str
    raw_category: str
    store_key: str
    description_key: str
    locale: str


@dataclass(frozen=True)
class CategoryDecision:
    category: CatalogEntry | None
    source: str
    unresolved: bool
    heuristic: HeuristicSuggestion | None = None


def should_override(
    current: CatalogEntry | None, suggested: CatalogEntry, *, strong: bool
) -> bool:
    if current is not None and current.id == suggested.id:
        return False
    current_broad = current.broad_type if current else "Other"
    current_is_other = current is None or current.name.lower() == "other"
    drink_mismatch = (current_broad == DRINKS_BROAD_TYPE) != (
        suggested.broad_type == DRINKS_BROAD_TYPE
    )
    return current_is_other or drink_mismatch or strong


class CategoryChain:
    def __init__(
        self,
        *,
        catalog: CategoryCatalog,
        preferences: PreferenceMap,
        resolver: CategoryResolver | None = None,
    ):
        self._catalog = catalog
        self._preferences = preferences
        self._resolver = resolver or CategoryResolver(catalog.names)
        self._names_by_lower = catalog.names_by_lower()

    def from_preference(self, item: ItemContext) -> CatalogEntry | None:
        if not item.description_key:
            return None
        category_id = self._preferences.lookup(item.store_key, item.description_key)
        return self._catalog.by_id(category_id)

    def from_suggestion(self, item: ItemContext) -> CatalogEntry | None:
        return self._catalog.by_name(self._resolver.resolve(item.raw_category))

    def from_heuristic(
        self, item: ItemContext, current: CatalogEntry | None
    ) -> tuple[CatalogEntry, HeuristicSuggestion] | None:
        suggestion = suggest_category(
            item.description,
            locale=item.locale,
            category_names_by_lower=self._names_by_lower,
        )
        if suggestion is None:
            return None
        suggested = self._catalog.by_name(suggestion.category)
        if suggested is None:
            return None
        if not should_override(current, suggested, strong=suggestion.strong):
            return None
        return suggested, suggestion

    def resolve(self, item: ItemContext) -> CategoryDecision:
        preferred = self.from_preference(item)
        if preferred is not None:
            return CategoryDecision(category=preferred, source="preference", unresolved=False)

        suggested = self.from_suggestion(item)
        unresolved = bool(item.raw_category) and suggested is None
        current = suggested or self._catalog.other
        source = "suggested" if suggested is not None else "other"

        heuristic = self.from_heuristic(item, current)
        if heuristic is not None:
            entry, suggestion = heuristic
            return CategoryDecision(
                category=entry, source="heuristic", unresolved=unresolved, heuristic=suggestion
            )
        return CategoryDecision(category=current, source=source, unresolved=unresolved)
