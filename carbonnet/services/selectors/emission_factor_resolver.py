"""
Emission factor resolution - async version.

Resolves the effective factor for (category, subcategory, institution, date)
through a fixed institution -> global -> default fallback chain.
"""

import logging
from datetime import date
from typing import Iterable, Optional, Protocol
from uuid import UUID

from carbonnet.pydantic_models.emission_factor import EmissionFactor, ResolvedFactor
from carbonnet.services.calculators.default_factors import DefaultFactorTable
from carbonnet.services.exceptions import FactorLookupError, FactorNotFound
from carbonnet.utils.constants import (
    ActivityCategory,
    FallbackReason,
    ResolutionTier,
)

logger = logging.getLogger(__name__)


class FactorStore(Protocol):
    """
    Read-only factor lookup consumed by the resolver.

    ``find_applicable`` returns the active factors for the exact
    category/key/institution (``None`` = global) whose validity window
    covers ``as_of``. Ordering is not required.
    """

    async def find_applicable(
        self,
        category: str,
        subcategory_key: str,
        institution_id: Optional[UUID | str],
        as_of: date,
    ) -> list[EmissionFactor]:
        ...


class InMemoryFactorStore:
    """Factor store over a fixed list of factors, for tests and offline runs."""

    def __init__(self, factors: Iterable[EmissionFactor] = ()):
        self.factors = list(factors)

    def add(self, factor: EmissionFactor) -> EmissionFactor:
        self.factors.append(factor)
        return factor

    async def find_applicable(self, category, subcategory_key, institution_id, as_of):
        institution = str(institution_id) if institution_id is not None else None
        return [
            factor
            for factor in self.factors
            if factor.category == category
            and factor.subcategory_key == subcategory_key
            and (
                str(factor.institution_id) if factor.institution_id is not None else None
            ) == institution
            and factor.applies_on(as_of)
        ]


def _latest(factors: list[EmissionFactor]) -> EmissionFactor:
    # Latest valid_from wins; equal dates fall back to the id for a stable pick
    return max(factors, key=lambda f: (f.valid_from, str(f.id or "")))


class EmissionFactorResolver:
    """
    Resolves emission factors for calculations.

    Read-only and side-effect free; safe to share between concurrent callers.
    """

    def __init__(
        self,
        store: FactorStore,
        defaults: DefaultFactorTable | None = None,
        propagate_lookup_errors: bool = False,
    ):
        """
        Initialize resolver.

        Args:
            store: Factor store to query
            defaults: Default factor table for the last fallback tier
            propagate_lookup_errors: Raise FactorLookupError when the store
                fails instead of degrading to the default table
        """
        self.store = store
        self.defaults = defaults or DefaultFactorTable.standard()
        self.propagate_lookup_errors = propagate_lookup_errors

    async def _find(self, category, subcategory_key, institution_id, as_of):
        candidates = await self.store.find_applicable(
            category, subcategory_key, institution_id, as_of
        )
        # Re-check the window so stores only need to pre-filter
        candidates = [f for f in candidates if f.applies_on(as_of)]
        return _latest(candidates) if candidates else None

    async def resolve(
        self,
        category: ActivityCategory | str,
        subcategory_key: str,
        institution_id: Optional[UUID | str],
        as_of: date,
    ) -> EmissionFactor:
        """
        Resolve a factor from the store (institution tier, then global tier).

        Returns:
            The matching EmissionFactor

        Raises:
            FactorNotFound: If neither tier has an applicable factor
        """
        category = ActivityCategory(category).value

        if institution_id is not None:
            factor = await self._find(category, subcategory_key, institution_id, as_of)
            if factor:
                logger.debug(
                    f"Institution factor {factor.id} resolved for "
                    f"{category}/{subcategory_key} (institution={institution_id})"
                )
                return factor

        factor = await self._find(category, subcategory_key, None, as_of)
        if factor:
            logger.debug(f"Global factor {factor.id} resolved for {category}/{subcategory_key}")
            return factor

        raise FactorNotFound(category, subcategory_key, institution_id, as_of)

    async def resolve_with_fallback(
        self,
        category: ActivityCategory | str,
        subcategory_key: Optional[str],
        institution_id: Optional[UUID | str],
        as_of: date,
    ) -> ResolvedFactor:
        """
        Resolve a factor, falling back to the default table.

        Never raises for a missing factor; raises FactorLookupError only when
        the store fails and propagation is enabled.
        """
        category = ActivityCategory(category)

        if not subcategory_key:
            return self.defaults.lookup(category, subcategory_key)

        try:
            factor = await self.resolve(category, subcategory_key, institution_id, as_of)
        except FactorNotFound:
            logger.debug(
                f"No stored factor for {category.value}/{subcategory_key}, using default table"
            )
            return self.defaults.lookup(category, subcategory_key)
        except Exception as e:
            if self.propagate_lookup_errors:
                raise FactorLookupError(
                    f"Factor lookup failed for {category.value}/{subcategory_key}",
                    original_exception=e,
                ) from e
            logger.error(
                f"Factor lookup failed for {category.value}/{subcategory_key} "
                f"(institution={institution_id}), using default table: {e}",
                exc_info=True,
            )
            return self.defaults.lookup(
                category, subcategory_key, fallback_reason=FallbackReason.LOOKUP_ERROR
            )

        tier = (
            ResolutionTier.INSTITUTION
            if factor.institution_id is not None
            else ResolutionTier.GLOBAL
        )
        return ResolvedFactor(
            factor_value=factor.factor_value,
            unit=factor.unit,
            scope=factor.scope,
            source=factor.source.value,
            version=factor.version or str(factor.valid_from.year),
            tier=tier,
            factor_id=factor.id,
        )
