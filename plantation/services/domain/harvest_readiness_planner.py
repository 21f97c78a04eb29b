"""
Domain service: Harvest readiness planning for deliveries.

Given a target delivery date and the plant lots of the plantation, this module
works out which lots will be harvest-ready by that date and how much yield
each species is expected to contribute.
"""
from datetime import date, datetime
from typing import Optional
import logging

from plantation.domain.models import (
    DeliveryReadinessReport,
    PlantLot,
    PlantStatus,
    ReadyLot,
    SpeciesReadiness,
    TERMINAL_STATUSES,
)
from plantation.utils.trend_math import is_finite_number

logger = logging.getLogger(__name__)


# Lots still in the field that should already have been harvested
OVERDUE_STATUSES = frozenset({PlantStatus.GROWING, PlantStatus.MATURE})


def _as_calendar_date(value, name: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raise TypeError(f"{name} must be a date, got {type(value).__name__}")


class HarvestReadinessPlanner:
    """
    Domain service for delivery readiness planning.

    Pure and stateless: every call works on its own input and returns a
    fresh report.
    """

    def plan_readiness(
        self,
        lots: list[PlantLot],
        target_date: date,
    ) -> DeliveryReadinessReport:
        """
        Compute the lots ready for delivery by a target date.

        A lot is ready when it has an expected harvest date on or before the
        target date and is neither harvested nor dead. Ready lots with a
        resolved species are grouped per species; ready lots without one are
        listed separately, count towards the plant total and contribute no
        yield.

        Args:
            lots: All plant lots, optionally with their species resolved
            target_date: Delivery date (inclusive)

        Returns:
            DeliveryReadinessReport

        Raises:
            TypeError: If target_date is not a date
        """
        target = _as_calendar_date(target_date, "target_date")
        logger.info(f"Planning readiness for {len(lots)} lots, target date {target.isoformat()}")

        report = DeliveryReadinessReport(target_date=target)
        breakdown: dict[int, SpeciesReadiness] = {}

        for lot in self._ready_lots(lots, target):
            ready = self._to_ready_lot(lot)
            report.ready_lots.append(ready)
            report.total_ready_plants += ready.plant_count

            if lot.species is None:
                logger.debug(f"Lot {lot.lot_number} has no resolved species; kept out of breakdown")
                report.unassigned_lots.append(ready)
                report.unassigned_plants += ready.plant_count
                continue

            species_id = lot.species.id
            group = breakdown.get(species_id)
            if group is None:
                group = SpeciesReadiness(
                    species_id=species_id,
                    species_name=lot.species.name,
                    yield_unit=lot.species.yield_unit,
                )
                breakdown[species_id] = group

            group.lots.append(ready)
            group.total_plants += ready.plant_count
            group.total_estimated_yield += ready.estimated_yield or 0.0

        report.species_breakdown = sorted(
            breakdown.values(), key=lambda s: (s.species_name, s.species_id)
        )
        report.total_estimated_yield = sum(
            group.total_estimated_yield for group in report.species_breakdown
        )
        report.total_ready_lots = len(report.ready_lots)

        logger.info(
            f"Ready lots: {report.total_ready_lots}, plants: {report.total_ready_plants}, "
            f"species: {len(report.species_breakdown)}, unassigned: {len(report.unassigned_lots)}"
        )
        return report

    def find_overdue_lots(
        self,
        lots: list[PlantLot],
        as_of: date,
    ) -> list[ReadyLot]:
        """
        Find lots whose expected harvest date has passed but are still growing.

        Args:
            lots: All plant lots
            as_of: Reference date; lots expected strictly before it are overdue

        Returns:
            Overdue lots ordered by expected harvest date
        """
        reference = _as_calendar_date(as_of, "as_of")
        overdue = [
            self._to_ready_lot(lot)
            for lot in lots
            if lot.expected_harvest_date is not None
            and lot.expected_harvest_date < reference
            and lot.status in OVERDUE_STATUSES
        ]
        overdue.sort(key=lambda r: (r.expected_harvest_date, r.lot_number))

        if overdue:
            logger.info(f"{len(overdue)} lots past expected harvest date as of {reference.isoformat()}")
        return overdue

    def estimate_yield(self, lot: PlantLot) -> Optional[float]:
        """
        Estimate the harvest of a lot from its species.

        Args:
            lot: Plant lot

        Returns:
            plant_count x expected_yield_per_plant; 0 when the species has no
            usable yield figure; None when the species is not resolved
        """
        if lot.species is None:
            return None

        per_plant = lot.species.expected_yield_per_plant
        if per_plant is None:
            return 0.0
        if not is_finite_number(per_plant) or per_plant < 0:
            logger.warning(
                f"Species {lot.species.name} has invalid yield per plant {per_plant!r}; using 0"
            )
            return 0.0

        return lot.plant_count * float(per_plant)

    def _ready_lots(self, lots: list[PlantLot], target: date) -> list[PlantLot]:
        """
        Filter lots that are ready by the target date.

        Lots without an expected harvest date are unknown and therefore
        excluded. Malformed lots are skipped.
        """
        ready = []
        skipped = 0

        for lot in lots:
            if lot.expected_harvest_date is None:
                continue
            if lot.status in TERMINAL_STATUSES:
                continue
            if lot.expected_harvest_date > target:
                continue
            if not isinstance(lot.plant_count, int) or lot.plant_count < 1:
                skipped += 1
                logger.warning(f"Skipping lot {lot.lot_number}: invalid plant count {lot.plant_count!r}")
                continue
            ready.append(lot)

        if skipped:
            logger.debug(f"Skipped {skipped} malformed lots")

        ready.sort(key=lambda l: (l.expected_harvest_date, l.lot_number))
        return ready

    def _to_ready_lot(self, lot: PlantLot) -> ReadyLot:
        return ReadyLot(
            lot_id=lot.id,
            lot_number=lot.lot_number,
            species_id=lot.species.id if lot.species is not None else lot.species_id,
            zone_id=lot.zone_id,
            status=lot.status,
            plant_count=lot.plant_count,
            expected_harvest_date=lot.expected_harvest_date,
            estimated_yield=self.estimate_yield(lot),
        )
