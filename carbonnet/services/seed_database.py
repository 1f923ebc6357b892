"""
Database seeding service for emission factors.

Loads the built-in default factor table (and optionally a CSV of extra
factors) into the factor store as global factors.

Usage:
    from carbonnet.services.seed_database import FactorSeeder

    async with FactorSeeder() as seeder:
        stats = await seeder.seed_all(csv_file="factors.csv")
"""

import csv
import logging
from datetime import date
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from carbonnet.database.repositories import EmissionFactorRepository
from carbonnet.database.schemas import EmissionFactorDBModel
from carbonnet.database.session_manager.db_session import Database
from carbonnet.pydantic_models.emission_factor import EmissionFactorCreate
from carbonnet.services.calculators.default_factors import DefaultFactorTable

logger = logging.getLogger(__name__)

# Default factors apply from the start of their table version year
DEFAULT_VALID_FROM = date(2023, 1, 1)


class FactorSeeder:
    """Service for seeding the emission_factors table."""

    def __init__(
        self,
        session: AsyncSession | None = None,
        defaults: DefaultFactorTable | None = None,
    ):
        """
        Initialize the factor seeder.

        Args:
            session: Optional async database session. If not provided, one is
                opened from Database when used as a context manager.
            defaults: Default factor table to seed (standard table if omitted)
        """
        self._session = session
        self._external_session = session is not None
        self.defaults = defaults or DefaultFactorTable.standard()

    async def __aenter__(self):
        if not self._external_session:
            self._db_context = Database()
            self._session = await self._db_context.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if not self._external_session and hasattr(self, "_db_context"):
            await self._db_context.__aexit__(exc_type, exc_val, exc_tb)

    @property
    def session(self) -> AsyncSession:
        if not self._session:
            raise RuntimeError("Session not initialized. Use as context manager.")
        return self._session

    async def seed_all(
        self,
        clear_existing: bool = False,
        csv_file: Optional[str | Path] = None,
        valid_from: date = DEFAULT_VALID_FROM,
    ) -> dict[str, Any]:
        """
        Seed the default table and, optionally, factors from a CSV file.

        Returns:
            Dictionary with seeding statistics
        """
        logger.info("Starting emission factor seeding")
        stats: dict[str, Any] = {"default_factors": 0, "csv_factors": 0, "skipped": 0, "errors": []}

        try:
            if clear_existing:
                await self._clear_existing_factors()

            created, skipped = await self.seed_default_factors(valid_from)
            stats["default_factors"] = created
            stats["skipped"] += skipped

            if csv_file is not None:
                created, errors = await self.seed_csv_factors(csv_file)
                stats["csv_factors"] = created
                stats["errors"].extend(errors)

            await self.session.commit()
            logger.info(f"Emission factor seeding completed: {stats}")
            return stats

        except Exception as e:
            logger.error(f"Error during factor seeding: {e}", exc_info=True)
            await self.session.rollback()
            raise

    async def _clear_existing_factors(self):
        logger.info("Clearing existing emission factors")
        await self.session.execute(delete(EmissionFactorDBModel))
        await self.session.flush()

    async def seed_default_factors(self, valid_from: date = DEFAULT_VALID_FROM) -> tuple[int, int]:
        """
        Insert every default factor as a global factor.

        Factors already present for the same key and start date are skipped,
        so seeding twice is harmless.

        Returns:
            (created, skipped)
        """
        repo = EmissionFactorRepository(self.session)
        created = skipped = 0

        for category, key, value, category_defaults in self.defaults.iter_factors():
            if await repo.get_global(category.value, key, valid_from):
                skipped += 1
                continue
            await repo.create(
                category=category.value,
                subcategory_key=key,
                description=f"Default {category.value} factor for {key}",
                factor_value=value,
                unit=category_defaults.unit,
                emission_unit="kg CO2e",
                scope=category_defaults.scope,
                source=category_defaults.source.value,
                source_year=int(self.defaults.version) if self.defaults.version.isdigit() else None,
                region="IN",
                version=self.defaults.version,
                valid_from=valid_from,
                valid_until=None,
                institution_id=None,
                is_active=True,
            )
            created += 1

        logger.info(f"Created {created} default emission factors ({skipped} already present)")
        return created, skipped

    async def seed_csv_factors(self, csv_file: str | Path) -> tuple[int, list[str]]:
        """
        Load factors from a CSV file.

        Expected columns: category, subcategory_key, factor_value, unit, scope,
        source, valid_from, and optionally valid_until, institution_id,
        description, version.

        Returns:
            (created, errors)
        """
        csv_file = Path(csv_file)
        if not csv_file.exists():
            logger.warning(f"File not found: {csv_file}")
            return 0, [f"File not found: {csv_file}"]

        logger.info(f"Loading emission factors from {csv_file}")
        repo = EmissionFactorRepository(self.session)
        created = 0
        errors: list[str] = []

        with open(csv_file, "r", newline="") as f:
            reader = csv.DictReader(f)
            for line, row in enumerate(reader, start=2):
                cleaned = {k.strip(): (v.strip() if v else None) for k, v in row.items() if k}
                try:
                    factor = EmissionFactorCreate(
                        **{k: v for k, v in cleaned.items() if v not in (None, "")}
                    )
                except (ValidationError, ValueError) as e:
                    logger.warning(f"Skipping factor on line {line}: {e}")
                    errors.append(f"line {line}: {e}")
                    continue

                await repo.create_from_model(factor)
                created += 1

        logger.info(f"Created {created} emission factors from {csv_file}")
        return created, errors

