"""
Use-Case-Point engine, calibration, records, complexity factors and formatting.
"""
from decimal import Decimal

import pytest

from genie.core.exceptions import EstimationConfigError
from genie.estimation.complexity import environmental_complexity, technical_complexity
from genie.estimation.config import (
    DEFAULT_ESTIMATION_CONFIG,
    EFFORT_DISTRIBUTION,
    EstimationConfig,
    load_estimation_config,
)
from genie.estimation.engine import calculate_estimate
from genie.estimation.formatting import (
    format_idr,
    format_number,
    format_percentage,
    render_rab_rows,
    summary_labels,
    to_rupiah,
)
from genie.estimation.records import (
    ActorRecord,
    Classification,
    CoercionWarning,
    UseCaseRecord,
    classify_transactions,
    safe_decimal,
)

TOLERANCE = Decimal("1e-18")


class TestScenarios:
    """Reference scenarios with the default government calibration."""

    def test_single_actor_single_use_case(self, scenario_a_records):
        actors, use_cases = scenario_a_records
        metrics = calculate_estimate(actors, use_cases).metrics
        assert metrics.uaw == Decimal("3")
        assert metrics.uucw == Decimal("10")
        assert metrics.uucp == Decimal("13")
        assert metrics.ucp == Decimal("8.7087")
        assert metrics.phm == Decimal("174.174")
        assert metrics.work_days == Decimal("21.77175")
        assert metrics.man_months == Decimal("0.989625")

    def test_single_actor_totals(self, scenario_a_records):
        actors, use_cases = scenario_a_records
        summary = calculate_estimate(actors, use_cases).summary
        assert summary.total_effort_cost == Decimal("20427443.4")
        assert summary.warranty == Decimal("5106860.85")
        assert summary.subtotal == Decimal("25534304.25")
        assert summary.grand_total == Decimal("28343077.7175")

    def test_empty_project_is_all_zero(self):
        result = calculate_estimate([], [])
        assert all(value == 0 for value in result.metrics.to_dict().values())
        assert len(result.rows) == 12
        assert all(row.cost_amount == 0 for row in result.rows)
        assert result.summary.grand_total == 0
        assert render_rab_rows(result)[-1][-1] == "Rp 0"

    def test_ecf_change_scales_everything_downstream(self, scenario_a_records):
        actors, use_cases = scenario_a_records
        base = calculate_estimate(actors, use_cases, DEFAULT_ESTIMATION_CONFIG)
        changed = calculate_estimate(actors, use_cases, load_estimation_config({"ecf": 0.90}))

        old_ecf, new_ecf = Decimal("0.77"), Decimal("0.90")
        assert changed.metrics.ucp > base.metrics.ucp
        assert changed.metrics.ucp * old_ecf == base.metrics.ucp * new_ecf
        assert abs(changed.metrics.man_months * old_ecf - base.metrics.man_months * new_ecf) < TOLERANCE
        for old_row, new_row in zip(base.rows, changed.rows):
            assert new_row.percentage == old_row.percentage
            assert abs(new_row.cost_amount * old_ecf - old_row.cost_amount * new_ecf) < Decimal("1e-10")


class TestEngineProperties:
    """Invariants that hold for any input."""

    @pytest.fixture
    def demo_inputs(self):
        actors = [ActorRecord.create(f"A{i}", label) for i, label in
                  enumerate(["Complex", "Average", "Average", "Simple", "Average", "Average"])]
        use_cases = [UseCaseRecord.create(f"UC{i}", label, count) for i, (label, count) in
                     enumerate([("Complex", 9), ("Simple", 3), ("Average", 5), ("Average", 6), ("Average", 4)])]
        return actors, use_cases

    def test_uucp_is_sum_of_weights(self, demo_inputs):
        metrics = calculate_estimate(*demo_inputs).metrics
        assert metrics.uaw == Decimal("12")
        assert metrics.uucw == Decimal("50")
        assert metrics.uucp == Decimal("62")
        assert metrics.man_months == Decimal("4.71975")

    def test_row_efforts_sum_to_man_months(self, demo_inputs):
        result = calculate_estimate(*demo_inputs)
        total_effort = sum(row.effort_man_months for row in result.rows)
        assert abs(total_effort - result.metrics.man_months) < TOLERANCE

    def test_row_cost_is_effort_times_rate(self, demo_inputs):
        result = calculate_estimate(*demo_inputs)
        for row in result.rows:
            assert row.cost_amount == row.effort_man_months * row.rate_amount
            assert row.rate_amount == DEFAULT_ESTIMATION_CONFIG.rate_for(row.activity)

    def test_warranty_then_tax_compounding(self, demo_inputs):
        summary = calculate_estimate(*demo_inputs).summary
        assert summary.total_effort_cost == sum(row.cost_amount for row in calculate_estimate(*demo_inputs).rows)
        assert summary.grand_total == summary.total_effort_cost * Decimal("1.25") * Decimal("1.11")
        assert summary.subtotal == summary.total_effort_cost + summary.warranty
        assert summary.grand_total == summary.subtotal + summary.tax

    def test_rows_follow_distribution_order(self, demo_inputs):
        result = calculate_estimate(*demo_inputs)
        assert [row.activity for row in result.rows] == list(EFFORT_DISTRIBUTION)

    @pytest.mark.parametrize("factor", ["tcf", "ecf"])
    @pytest.mark.parametrize("k", ["0.5", "1.1", "2", "3.25"])
    def test_ucp_scales_with_complexity_factor(self, demo_inputs, factor, k):
        k = Decimal(k)
        base_config = DEFAULT_ESTIMATION_CONFIG
        scaled_config = load_estimation_config({factor: getattr(base_config, factor) * k})
        base = calculate_estimate(*demo_inputs, base_config).metrics
        scaled = calculate_estimate(*demo_inputs, scaled_config).metrics
        assert abs(scaled.ucp - base.ucp * k) < TOLERANCE
        assert scaled.uucp == base.uucp

    @pytest.mark.parametrize("k", ["2", "0.5", "3"])
    def test_man_months_scale_with_phm_multiplier(self, demo_inputs, k):
        k = Decimal(k)
        base = calculate_estimate(*demo_inputs).metrics
        scaled_config = load_estimation_config({"phm_multiplier": DEFAULT_ESTIMATION_CONFIG.phm_multiplier * k})
        scaled = calculate_estimate(*demo_inputs, scaled_config).metrics
        assert scaled.phm == base.phm * k
        assert abs(scaled.man_months - base.man_months * k) < TOLERANCE

    def test_doubling_phm_multiplier_doubles_man_months(self, demo_inputs):
        config = load_estimation_config({"phm_multiplier": 40})
        assert calculate_estimate(*demo_inputs, config).metrics.man_months == Decimal("9.4395")

    def test_same_inputs_give_identical_output(self, demo_inputs):
        first = calculate_estimate(*demo_inputs)
        second = calculate_estimate(*demo_inputs)
        assert first == second
        assert render_rab_rows(first) == render_rab_rows(second)

    def test_export_tuple_order(self, demo_inputs):
        row = calculate_estimate(*demo_inputs).rows[3]
        assert row.as_tuple() == (row.activity, row.percentage, row.effort_man_months,
                                  row.role, row.rate_amount, row.cost_amount)
        assert row.role == "Programmer"

    def test_warnings_are_carried_to_the_result(self):
        warnings = []
        actors = [ActorRecord.create("Rusak", "Average", "abc", warnings=warnings)]
        result = calculate_estimate(actors, [], warnings=warnings)
        assert result.metrics.uaw == 0
        assert len(result.warnings) == 1
        assert result.to_dict()["warnings"][0]["field"] == "weight"


class TestEstimationConfig:
    def test_defaults(self):
        config = EstimationConfig()
        assert config.tcf == Decimal("0.87")
        assert config.ecf == Decimal("0.77")
        assert config.phm_multiplier == Decimal("20")
        assert sum(config.effort_distribution.values()) == Decimal("1")

    def test_float_overrides_keep_their_decimal_text(self):
        config = load_estimation_config({"tcf": 0.95, "ecf": None})
        assert config.tcf == Decimal("0.95")
        assert config.ecf == Decimal("0.77")

    @pytest.mark.parametrize("field", ["hours_per_day", "days_per_month"])
    def test_zero_divisor_rejected(self, field):
        with pytest.raises(EstimationConfigError, match=field):
            load_estimation_config({field: 0})

    def test_distribution_must_sum_to_one(self):
        table = dict(EFFORT_DISTRIBUTION)
        table["Design"] = Decimal("0.5")
        with pytest.raises(EstimationConfigError, match="sum to 1.0"):
            load_estimation_config({"effort_distribution": table})

    def test_activity_without_rate_rejected(self):
        roles = dict(DEFAULT_ESTIMATION_CONFIG.activity_roles)
        roles["Design"] = "Architect"
        with pytest.raises(EstimationConfigError, match="Architect"):
            load_estimation_config({"activity_roles": roles})

    def test_non_finite_rejected(self):
        with pytest.raises(EstimationConfigError):
            load_estimation_config({"tcf": float("nan")})

    def test_config_is_immutable(self):
        with pytest.raises(Exception):
            DEFAULT_ESTIMATION_CONFIG.tcf = Decimal("1")


class TestRecords:
    def test_actor_row_with_blank_weight_uses_classification(self):
        actor = ActorRecord.from_row(["1", "Admin", "complex", ""], 1)
        assert actor.classification == Classification.COMPLEX
        assert actor.weight == Decimal("3")

    def test_malformed_weight_counts_as_zero_with_warning(self):
        warnings = []
        actor = ActorRecord.from_row(["1", "Admin", "Average", "dua"], 4, warnings)
        assert actor.weight == 0
        assert warnings == [CoercionWarning("actors", 4, "weight", "dua")]
        assert "counted as 0" in warnings[0].message

    def test_explicit_weight_wins(self):
        actor = ActorRecord.from_row(["1", "Admin", "Simple", "2"], 1)
        assert actor.weight == Decimal("2")

    def test_comma_decimal_is_accepted(self):
        assert safe_decimal("2,5") == (Decimal("2.5"), True)
        assert safe_decimal("inf") == (Decimal(0), False)
        assert safe_decimal(True) == (Decimal(0), False)

    @pytest.mark.parametrize("raw", ["1.000.000", "1,000.5", "1.000,5"])
    def test_thousands_grouping_is_rejected(self, raw):
        assert safe_decimal(raw) == (Decimal(0), False)

    @pytest.mark.parametrize("raw", ["1e999999", "-1e999999", "1e16", 1e300])
    def test_huge_magnitudes_are_rejected(self, raw):
        assert safe_decimal(raw) == (Decimal(0), False)

    def test_largest_accepted_magnitude(self):
        assert safe_decimal("9e15") == (Decimal("9e15"), True)

    def test_huge_cells_count_as_zero(self):
        warnings = []
        actor = ActorRecord.from_row(["1", "Admin", "Complex", "1e999999"], 1, warnings)
        use_case = UseCaseRecord.from_row(["1", "UC1", "Average", "1e999999", "10"], 1, warnings)
        result = calculate_estimate([actor], [use_case], warnings=warnings)

        assert actor.weight == 0
        assert use_case.transaction_count == 0
        assert [w.field for w in result.warnings] == ["weight", "transactions"]
        assert result.metrics.uucp == Decimal("10")

    def test_use_case_classified_from_transactions(self):
        use_case = UseCaseRecord.from_row(["1", "UC1 Penerbitan", "", "9", ""], 1)
        assert use_case.classification == Classification.COMPLEX
        assert use_case.transaction_count == 9
        assert use_case.weight == Decimal("15")

    def test_malformed_transactions_warns(self):
        warnings = []
        use_case = UseCaseRecord.from_row(["1", "UC1", "Average", "lima", "10"], 2, warnings)
        assert use_case.transaction_count == 0
        assert use_case.weight == Decimal("10")
        assert warnings[0].field == "transactions"

    def test_short_row_is_tolerated(self):
        warnings = []
        use_case = UseCaseRecord.from_row(["1"], 1, warnings)
        assert use_case.name == ""
        assert use_case.weight == 0
        assert len(warnings) == 1

    def test_to_row_round_trip_layout(self):
        actor = ActorRecord.create("Analis", "Average")
        assert actor.to_row(2) == ["2", "Analis", "Average", "2"]
        use_case = UseCaseRecord.create("UC3 Knowledgebase", "Average", 5)
        assert use_case.to_row(3) == ["3", "UC3 Knowledgebase", "Average", "5", "10"]

    @pytest.mark.parametrize("count,expected", [
        (0, Classification.SIMPLE),
        (3, Classification.SIMPLE),
        (4, Classification.AVERAGE),
        (7, Classification.AVERAGE),
        (8, Classification.COMPLEX),
    ])
    def test_transaction_bands(self, count, expected):
        assert classify_transactions(count) == expected


class TestComplexity:
    def test_no_ratings_gives_base_factors(self):
        assert technical_complexity().factor == Decimal("0.6")
        assert environmental_complexity().factor == Decimal("1.4")

    def test_weighted_ratings(self):
        technical = technical_complexity({"T1": 5, "T6": 2})
        # 2*5 + 0.5*2 = 11
        assert technical.total == Decimal("11")
        assert technical.factor == Decimal("0.71")
        environmental = environmental_complexity({"E6": 3, "E7": 2})
        # 2*3 - 1*2 = 4
        assert environmental.factor == Decimal("1.28")

    def test_rating_out_of_range(self):
        with pytest.raises(ValueError, match="T2"):
            technical_complexity({"T2": 6})

    def test_unknown_factor(self):
        with pytest.raises(ValueError, match="E9"):
            environmental_complexity({"E9": 1})


class TestFormatting:
    def test_rupiah(self):
        assert format_idr(Decimal("2106194.4")) == "Rp 2.106.194"
        assert format_idr(Decimal("2106194.5")) == "Rp 2.106.195"
        assert format_idr(Decimal("-1500")) == "-Rp 1.500"
        assert to_rupiah(Decimal("0.5")) == Decimal("1")

    def test_compact_rupiah(self):
        assert format_idr(Decimal("171759305"), compact=True) == "Rp 171,8 Jt"
        assert format_idr(Decimal("2500000000"), compact=True) == "Rp 2,5 M"
        assert format_idr(Decimal("950"), compact=True) == "Rp 950"

    def test_numbers_and_percentages(self):
        assert format_number(Decimal("0.989625"), 2) == "0.99"
        assert format_percentage(Decimal("0.016")) == "1.6%"
        assert format_percentage(Decimal("0.52")) == "52.0%"

    def test_summary_labels_follow_rates(self):
        config = load_estimation_config({"tax_rate": 0.12})
        assert summary_labels(config)[1] == "Warranty (25%)"
        assert summary_labels(config)[3] == "PPN (12%)"

    def test_rab_rows(self, scenario_a_records):
        rows = render_rab_rows(calculate_estimate(*scenario_a_records))
        assert len(rows) == 17
        assert rows[0] == ["Needs analysis", "1.6%", "0.016", "Business Analyst", "Rp 21.950.000", "Rp 347.556"]
        assert rows[12] == ["Total Effort Cost", "100%", "0.99", "-", "-", "Rp 20.427.443"]
        assert rows[-1] == ["TOTAL BIAYA (RAB)", "-", "-", "-", "-", "Rp 28.343.078"]
