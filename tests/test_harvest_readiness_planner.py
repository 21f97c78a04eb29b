"""
Unit tests for harvest readiness planning.

Tests cover:
- Readiness filtering (date, status, missing dates)
- Species breakdown and yield estimation
- Lots without a resolved species
- Overdue lots
- Ordering and input validation
"""
import pytest
from datetime import date, datetime, timedelta

from plantation.domain.models import PlantLot, PlantSpecies, PlantStatus
from plantation.services.domain.harvest_readiness_planner import HarvestReadinessPlanner


TARGET = date(2024, 6, 10)


@pytest.fixture
def planner() -> HarvestReadinessPlanner:
    return HarvestReadinessPlanner()


def make_lot(lot_id: int, expected, species=None, plant_count=10, status=PlantStatus.GROWING, **kwargs) -> PlantLot:
    return PlantLot(
        id=lot_id,
        lot_number=kwargs.pop("lot_number", f"LOT-{lot_id:03d}"),
        species=species,
        species_id=species.id if species else None,
        plant_count=plant_count,
        planted_date=date(2024, 1, 1),
        expected_harvest_date=expected,
        status=status,
        **kwargs,
    )


# ============================================================
# Readiness Filtering Tests
# ============================================================

class TestReadinessFiltering:
    """Tests for which lots count as ready."""

    def test_ready_lots_by_target_date(self, planner, sample_lots):
        """Lots due on or before the target date are ready; later ones are not."""
        report = planner.plan_readiness(sample_lots, TARGET)

        assert [lot.lot_number for lot in report.ready_lots] == ["LOT-001", "LOT-002"]
        assert report.total_ready_lots == 2
        assert report.target_date == TARGET

    def test_target_date_is_inclusive(self, planner, tomato):
        lots = [make_lot(1, TARGET, tomato)]

        report = planner.plan_readiness(lots, TARGET)

        assert report.total_ready_lots == 1

    @pytest.mark.parametrize("status", [PlantStatus.HARVESTED, PlantStatus.DEAD])
    def test_terminal_statuses_excluded(self, planner, tomato, status):
        lots = [make_lot(1, date(2024, 6, 1), tomato, status=status)]

        report = planner.plan_readiness(lots, TARGET)

        assert report.ready_lots == []
        assert report.total_ready_plants == 0

    @pytest.mark.parametrize(
        "status",
        [PlantStatus.SEEDLING, PlantStatus.GROWING, PlantStatus.MATURE,
         PlantStatus.HARVESTING, PlantStatus.DISEASED],
    )
    def test_non_terminal_statuses_included(self, planner, tomato, status):
        lots = [make_lot(1, date(2024, 6, 1), tomato, status=status)]

        report = planner.plan_readiness(lots, TARGET)

        assert report.total_ready_lots == 1

    def test_lot_without_expected_date_excluded(self, planner, tomato):
        lots = [make_lot(1, None, tomato)]

        report = planner.plan_readiness(lots, TARGET)

        assert report.ready_lots == []

    def test_empty_input(self, planner):
        report = planner.plan_readiness([], TARGET)

        assert report.total_ready_lots == 0
        assert report.total_ready_plants == 0
        assert report.total_estimated_yield == 0
        assert report.species_breakdown == []

    def test_target_before_all_dates(self, planner, sample_lots):
        report = planner.plan_readiness(sample_lots, date(2024, 1, 1))

        assert report.ready_lots == []

    def test_datetime_target_uses_calendar_date(self, planner, tomato):
        lots = [make_lot(1, TARGET, tomato)]

        report = planner.plan_readiness(lots, datetime(2024, 6, 10, 23, 59))

        assert report.target_date == TARGET
        assert report.total_ready_lots == 1

    def test_invalid_target_raises(self, planner, sample_lots):
        with pytest.raises(TypeError):
            planner.plan_readiness(sample_lots, "2024-06-10")

    @pytest.mark.parametrize("plant_count", [0, -3, None])
    def test_lot_with_invalid_plant_count_skipped(self, planner, tomato, plant_count, caplog):
        broken = PlantLot.model_construct(
            id=2, lot_number="LOT-002", species=tomato, species_id=tomato.id,
            plant_count=plant_count, planted_date=date(2024, 1, 1),
            expected_harvest_date=date(2024, 6, 1), status=PlantStatus.GROWING,
        )
        lots = [make_lot(1, date(2024, 6, 1), tomato, plant_count=10), broken]

        report = planner.plan_readiness(lots, TARGET)

        assert [lot.lot_id for lot in report.ready_lots] == [1]
        assert report.total_ready_plants == 10
        assert "invalid plant count" in caplog.text

    def test_input_not_mutated(self, planner, sample_lots):
        before = [lot.model_copy(deep=True) for lot in sample_lots]

        planner.plan_readiness(sample_lots, TARGET)

        assert sample_lots == before


# ============================================================
# Aggregation Tests
# ============================================================

class TestSpeciesBreakdown:
    """Tests for per-species totals and yield estimates."""

    def test_breakdown_totals(self, planner, sample_lots):
        report = planner.plan_readiness(sample_lots, TARGET)

        by_name = {group.species_name: group for group in report.species_breakdown}
        assert by_name["Tomato"].total_plants == 100
        assert by_name["Tomato"].total_estimated_yield == pytest.approx(250.0)
        assert by_name["Basil"].total_plants == 50
        assert by_name["Basil"].total_estimated_yield == pytest.approx(10.0)

    def test_grand_totals_match_breakdown(self, planner, sample_lots):
        report = planner.plan_readiness(sample_lots, TARGET)

        assert report.total_ready_plants == 150
        assert report.total_estimated_yield == pytest.approx(260.0)
        assert report.total_ready_plants == sum(
            group.total_plants for group in report.species_breakdown
        ) + report.unassigned_plants
        assert report.total_estimated_yield == pytest.approx(
            sum(group.total_estimated_yield for group in report.species_breakdown)
        )

    def test_breakdown_sorted_by_species_name(self, planner, sample_lots):
        report = planner.plan_readiness(sample_lots, TARGET)

        assert [group.species_name for group in report.species_breakdown] == ["Basil", "Tomato"]

    def test_lots_grouped_under_one_species(self, planner, tomato):
        lots = [
            make_lot(1, date(2024, 6, 1), tomato, plant_count=10),
            make_lot(2, date(2024, 6, 2), tomato, plant_count=20),
        ]

        report = planner.plan_readiness(lots, TARGET)

        assert len(report.species_breakdown) == 1
        group = report.species_breakdown[0]
        assert [lot.lot_id for lot in group.lots] == [1, 2]
        assert group.total_plants == 30
        assert group.total_estimated_yield == pytest.approx(75.0)

    def test_species_without_yield_contributes_zero(self, planner):
        unknown_yield = PlantSpecies(id=9, name="Mint")
        lots = [make_lot(1, date(2024, 6, 1), unknown_yield, plant_count=40)]

        report = planner.plan_readiness(lots, TARGET)

        assert report.ready_lots[0].estimated_yield == 0.0
        assert report.species_breakdown[0].total_plants == 40
        assert report.total_estimated_yield == 0.0

    def test_infinite_yield_per_plant_contributes_zero(self, planner, caplog):
        unbounded = PlantSpecies(id=9, name="Mint", expected_yield_per_plant=float("inf"))
        lots = [make_lot(1, date(2024, 6, 1), unbounded, plant_count=40)]

        report = planner.plan_readiness(lots, TARGET)

        assert report.ready_lots[0].estimated_yield == 0.0
        assert report.total_estimated_yield == 0.0
        assert "invalid yield per plant" in caplog.text

    @pytest.mark.parametrize("per_plant", [float("nan"), -1.5])
    def test_unusable_yield_per_plant_contributes_zero(self, planner, per_plant):
        species = PlantSpecies.model_construct(id=9, name="Mint", expected_yield_per_plant=per_plant)

        assert planner.estimate_yield(make_lot(1, TARGET, species, plant_count=4)) == 0.0

    def test_ready_lots_sorted_by_date_then_lot_number(self, planner, tomato):
        lots = [
            make_lot(1, date(2024, 6, 5), tomato, lot_number="B"),
            make_lot(2, date(2024, 6, 1), tomato, lot_number="C"),
            make_lot(3, date(2024, 6, 5), tomato, lot_number="A"),
        ]

        report = planner.plan_readiness(lots, TARGET)

        assert [lot.lot_number for lot in report.ready_lots] == ["C", "A", "B"]


# ============================================================
# Unassigned Species Tests
# ============================================================

class TestUnassignedLots:
    """Tests for ready lots without a resolved species."""

    def test_species_less_lot_kept_out_of_breakdown(self, planner, tomato):
        lots = [
            make_lot(1, date(2024, 6, 1), tomato, plant_count=10),
            make_lot(2, date(2024, 6, 2), None, plant_count=7),
        ]

        report = planner.plan_readiness(lots, TARGET)

        assert report.total_ready_lots == 2
        assert report.total_ready_plants == 17
        assert report.unassigned_plants == 7
        assert [lot.lot_id for lot in report.unassigned_lots] == [2]
        assert report.unassigned_lots[0].estimated_yield is None
        assert sum(g.total_plants for g in report.species_breakdown) == 10
        assert report.total_estimated_yield == pytest.approx(25.0)

    def test_estimate_yield_without_species(self, planner):
        assert planner.estimate_yield(make_lot(1, TARGET, None)) is None

    def test_estimate_yield(self, planner, tomato):
        assert planner.estimate_yield(make_lot(1, TARGET, tomato, plant_count=4)) == pytest.approx(10.0)


# ============================================================
# Overdue Lots Tests
# ============================================================

class TestOverdueLots:
    """Tests for lots past their expected harvest date."""

    def test_overdue_growing_and_mature(self, planner, tomato):
        lots = [
            make_lot(1, date(2024, 5, 1), tomato, status=PlantStatus.GROWING),
            make_lot(2, date(2024, 4, 1), tomato, status=PlantStatus.MATURE),
            make_lot(3, date(2024, 4, 1), tomato, status=PlantStatus.HARVESTING),
            make_lot(4, date(2024, 4, 1), tomato, status=PlantStatus.HARVESTED),
            make_lot(5, date(2024, 7, 1), tomato, status=PlantStatus.GROWING),
        ]

        overdue = planner.find_overdue_lots(lots, date(2024, 6, 1))

        assert [lot.lot_id for lot in overdue] == [2, 1]

    def test_expected_today_is_not_overdue(self, planner, tomato):
        lots = [make_lot(1, date(2024, 6, 1), tomato)]

        assert planner.find_overdue_lots(lots, date(2024, 6, 1)) == []

    def test_lot_without_date_is_not_overdue(self, planner, tomato):
        lots = [make_lot(1, None, tomato)]

        assert planner.find_overdue_lots(lots, date(2024, 6, 1)) == []


# ============================================================
# End-to-end Scenario Tests
# ============================================================

class TestScenarios:
    """Worked delivery planning examples."""

    def test_only_near_lot_ready(self, planner):
        today = date(2024, 1, 1)
        species_a = PlantSpecies(id=1, name="A", expected_yield_per_plant=2.0)
        lots = [
            make_lot(1, today + timedelta(days=10), species_a, plant_count=100),
            make_lot(2, today + timedelta(days=40), species_a, plant_count=50),
        ]

        report = planner.plan_readiness(lots, today + timedelta(days=30))

        assert [lot.lot_id for lot in report.ready_lots] == [1]
        assert len(report.species_breakdown) == 1
        assert report.species_breakdown[0].species_name == "A"
        assert report.species_breakdown[0].total_plants == 100
        assert report.species_breakdown[0].total_estimated_yield == pytest.approx(200.0)
        assert report.total_estimated_yield == pytest.approx(200.0)
