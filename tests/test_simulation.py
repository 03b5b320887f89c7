"""
Unit tests for the month-by-month amortization simulator.

Covers timeline resolution, the amortization loop (payment recalculation,
overpayment effects, policy warnings, self-build phases), the no-overpayment
baseline, yearly aggregation, summary, milestones and coverage diagnostics.

Version: 0.1.0
Last Updated: 2026-10-18
Status: Active

================================================================================
CONVENTIONS
================================================================================

    Amounts are cents; the catalog in tests.utilities quotes euros.
    Default state: €300,000 over 360 months on a €400,000 home, Alpha
    3-year fixed at 3.45% then Alpha variable at 4.15%.

    Per-month identities:
        closing = opening - principal - overpayment     (before clamping)
        Σ (principal + overpayment) + final closing = amount drawn

================================================================================
"""

import unittest

from mortgage_simulator.models import (
    ConstructionRepaymentType,
    DrawdownStage,
    Lender,
    OverpaymentConfig,
    RatePeriod,
    RateType,
    SelfBuildConfig,
    SelfBuildPhase,
)
from mortgage_simulator.payments import monthly_payment
from mortgage_simulator.simulation import (
    MilestoneType,
    WarningType,
    aggregate_by_year,
    calculate_amortization,
    calculate_baseline_interest,
    calculate_buffer_suggestions,
    calculate_milestones,
    calculate_simulation_completeness,
    calculate_summary,
    find_rate_period_for_month,
    resolve_rate_periods,
)
from tests.utilities import (
    MONTHLY_POLICY,
    catalog_lenders,
    catalog_policies,
    catalog_rates,
    fixed_then_variable,
    make_state,
    self_build_config,
    variable_only,
)


# =============================================================================
# Test Parameters
# =============================================================================

# Tolerance in cents for accumulated floating-point sums
CENT_TOLERANCE: float = 0.01


def simulate(state):
    return calculate_amortization(state, catalog_rates(), [], catalog_lenders(), catalog_policies())


def one_time(config_id, amount, month, period_id="p-fixed", effect="reduce_term"):
    return OverpaymentConfig(id=config_id, rate_period_id=period_id, type="one_time",
                             amount=amount, start_month=month, effect=effect)


def beta_fixed_then_variable():
    return [
        RatePeriod(id="p-fixed", lender_id="beta", rate_id="beta-5yr", duration_months=60),
        RatePeriod(id="p-var", lender_id="beta", rate_id="beta-var", duration_months=0),
    ]


# =============================================================================
# Test Classes
# =============================================================================

class TestTimelineResolution(unittest.TestCase):

    def test_find_rate_period_for_month(self):
        periods = fixed_then_variable()
        period, start = find_rate_period_for_month(periods, 36)
        self.assertEqual((period.id, start), ("p-fixed", 1))
        period, start = find_rate_period_for_month(periods, 37)
        self.assertEqual((period.id, start), ("p-var", 37))
        period, start = find_rate_period_for_month(periods, 360)
        self.assertEqual(period.id, "p-var")

    def test_month_beyond_bounded_timeline(self):
        periods = fixed_then_variable()[:1]
        self.assertIsNone(find_rate_period_for_month(periods, 37))

    def test_resolve_rate_periods(self):
        resolved = resolve_rate_periods(fixed_then_variable(), catalog_rates(), [], catalog_lenders())
        fixed, variable = resolved["p-fixed"], resolved["p-var"]
        self.assertEqual(fixed.label, "Alpha Bank 3-Year Fixed @ 3.45%")
        self.assertEqual(fixed.overpayment_policy_id, "ten-percent")
        self.assertIsNone(variable.overpayment_policy_id)
        self.assertEqual((fixed.start_month, variable.start_month), (1, 37))
        self.assertEqual(fixed.end_month, 36)
        self.assertIsNone(variable.end_month)

    def test_unknown_rate_is_dropped(self):
        periods = [RatePeriod(id="x", lender_id="alpha", rate_id="missing", duration_months=12)]
        self.assertEqual(resolve_rate_periods(periods, catalog_rates(), [], catalog_lenders()), {})

    def test_explicit_label_wins(self):
        periods = [RatePeriod(id="x", lender_id="alpha", rate_id="alpha-var-80", label="My variable")]
        resolved = resolve_rate_periods(periods, catalog_rates(), [], catalog_lenders())
        self.assertEqual(resolved["x"].label, "My variable")


class TestAmortizationLoop(unittest.TestCase):
    """Plain schedules without overpayments."""

    @classmethod
    def setUpClass(cls):
        cls.state = make_state()
        cls.result = simulate(cls.state)

    def test_runs_full_term(self):
        self.assertEqual(len(self.result.months), 360)
        self.assertLess(self.result.months[-1].closing_balance, 1)
        self.assertEqual(self.result.warnings, [])

    def test_conservation(self):
        months = self.result.months
        repaid = sum(m.principal_portion + m.overpayment for m in months)
        self.assertAlmostEqual(repaid + months[-1].closing_balance, 30_000_000, delta=CENT_TOLERANCE)

    def test_monthly_identities(self):
        for m in self.result.months:
            with self.subTest(month=m.month):
                self.assertAlmostEqual(m.closing_balance, m.opening_balance - m.principal_portion,
                                       delta=CENT_TOLERANCE)
                self.assertAlmostEqual(m.interest_portion, m.opening_balance * m.rate / 1200,
                                       delta=CENT_TOLERANCE)
        for prev, nxt in zip(self.result.months, self.result.months[1:]):
            self.assertEqual(nxt.opening_balance, prev.closing_balance)

    def test_fixed_payment_then_recalculated(self):
        months = self.result.months
        self.assertAlmostEqual(months[0].scheduled_payment, monthly_payment(30_000_000, 3.45, 360))
        self.assertEqual(months[35].scheduled_payment, months[0].scheduled_payment)
        self.assertAlmostEqual(months[36].scheduled_payment,
                               monthly_payment(months[36].opening_balance, 4.15, 324))
        self.assertEqual(months[36].rate_period_id, "p-var")

    def test_calendar_fields(self):
        m = self.result.months[13]
        self.assertEqual((m.month, m.year, m.month_of_year), (14, 2, 2))
        self.assertEqual(m.date, "")
        self.assertIsNone(m.phase)

    def test_dates_with_start_date(self):
        result = simulate(make_state(term_months=24, start_date="2024-01-31"))
        self.assertEqual(result.months[0].date, "2024-01-31")
        self.assertEqual(result.months[1].date, "2024-02-29")

    def test_empty_inputs(self):
        self.assertEqual(simulate(make_state(amount_eur=0)).months, [])
        self.assertEqual(simulate(make_state(term_months=0)).months, [])
        self.assertEqual(simulate(make_state(rate_periods=[])).months, [])

    def test_gap_in_timeline(self):
        result = simulate(make_state(rate_periods=fixed_then_variable()[:1]))
        self.assertEqual(len(result.months), 36)
        completeness = calculate_simulation_completeness(result.months, 30_000_000, 360)
        self.assertFalse(completeness.is_complete)
        self.assertEqual(completeness.covered_months, 36)
        self.assertEqual(completeness.missing_months, 324)
        self.assertGreater(completeness.remaining_balance, 0)

    def test_completeness_of_full_schedule(self):
        completeness = calculate_simulation_completeness(self.result.months, 30_000_000, 360)
        self.assertTrue(completeness.is_complete)
        self.assertEqual(completeness.missing_months, 0)


class TestOverpaymentEffects(unittest.TestCase):

    def test_reduce_term_keeps_payment_and_shortens_term(self):
        state = make_state(rate_periods=variable_only(),
                           overpayments=[one_time("o", 2_000_000, 40, period_id="p-var")])
        result = simulate(state)
        months = result.months
        self.assertLess(len(months), 360)
        self.assertEqual(months[40].scheduled_payment, months[38].scheduled_payment)
        self.assertEqual(months[39].overpayment, 2_000_000)
        self.assertLess(months[-1].closing_balance, 1)

    def test_reduce_payment_lowers_payment(self):
        state = make_state(rate_periods=variable_only(),
                           overpayments=[one_time("o", 2_000_000, 40, period_id="p-var",
                                                  effect="reduce_payment")])
        months = simulate(state).months
        self.assertLess(months[40].scheduled_payment, months[38].scheduled_payment)
        self.assertEqual(len(months), 360)

    def test_reduce_payment_on_fixed_holds_until_period_end(self):
        state = make_state(overpayments=[one_time("o", 500_000, 10, effect="reduce_payment")])
        months = simulate(state).months
        self.assertEqual(months[10].scheduled_payment, months[8].scheduled_payment)

    def test_conservation_with_overpayments(self):
        state = make_state(overpayments=[
            OverpaymentConfig(id="r", rate_period_id="p-var", type="recurring", amount=50_000,
                              start_month=37, frequency="monthly"),
            one_time("o", 1_000_000, 12),
        ])
        months = simulate(state).months
        repaid = sum(m.principal_portion + m.overpayment for m in months)
        self.assertAlmostEqual(repaid + months[-1].closing_balance, 30_000_000, delta=CENT_TOLERANCE)
        self.assertAlmostEqual(months[-1].cumulative_overpayments,
                               sum(m.overpayment for m in months), delta=CENT_TOLERANCE)

    def test_overpayment_capped_at_balance(self):
        state = make_state(amount_eur=10_000, rate_periods=variable_only(),
                           overpayments=[one_time("o", 10_000_000, 12, period_id="p-var")])
        months = simulate(state).months
        self.assertEqual(len(months), 12)
        last = months[-1]
        self.assertEqual(last.closing_balance, 0.0)
        self.assertAlmostEqual(last.overpayment, last.opening_balance - last.principal_portion)


class TestPolicyWarnings(unittest.TestCase):

    def test_allowance_exceeded(self):
        state = make_state(overpayments=[one_time("o", 4_000_000, 2)])
        result = simulate(state)
        exceeded = [w for w in result.warnings if w.type is WarningType.ALLOWANCE_EXCEEDED]
        self.assertEqual(len(exceeded), 1)
        warning = exceeded[0]
        self.assertEqual(warning.month, 2)
        self.assertEqual(warning.severity, "warning")
        self.assertEqual(warning.config_id, "o")
        self.assertEqual(warning.overpayment_label, "One-time")
        self.assertEqual(warning.message, "Exceeds 10% of balance allowance by €10,000.00")

    def test_within_allowance_has_no_warning(self):
        state = make_state(overpayments=[one_time("o", 2_000_000, 2)])
        self.assertEqual(simulate(state).warnings, [])

    def test_monthly_allowance_counts_same_month_total(self):
        """Two €100 overpayments together exceed 10% of a €1,338 payment."""
        lenders = [Lender(id="alpha", name="Alpha Bank", overpayment_policy=MONTHLY_POLICY.id)]
        state = make_state(overpayments=[one_time("a", 10_000, 5), one_time("b", 10_000, 5)])
        result = calculate_amortization(state, catalog_rates(), [], lenders, catalog_policies())

        allowance = monthly_payment(30_000_000, 3.45, 360) * MONTHLY_POLICY.allowance_value / 100
        self.assertLess(10_000, allowance)
        self.assertGreater(20_000, allowance)
        exceeded = [w for w in result.warnings if w.type is WarningType.ALLOWANCE_EXCEEDED]
        self.assertEqual(len(exceeded), 1)
        self.assertEqual(exceeded[0].month, 5)
        self.assertEqual(exceeded[0].config_id, "b")
        applied = {a.config_id: a for a in result.applied_overpayments}
        self.assertTrue(applied["a"].within_allowance)
        self.assertAlmostEqual(applied["b"].excess_amount, 20_000 - allowance, places=6)

    def test_variable_period_has_no_allowance(self):
        state = make_state(overpayments=[one_time("o", 9_000_000, 40, period_id="p-var")])
        self.assertEqual(simulate(state).warnings, [])

    def test_transaction_limit(self):
        state = make_state(rate_periods=beta_fixed_then_variable(), overpayments=[
            one_time("a", 10_000, 3),
            one_time("b", 10_000, 5),
        ])
        result = simulate(state)
        limits = [w for w in result.warnings if w.type is WarningType.TRANSACTION_LIMIT_EXCEEDED]
        self.assertEqual(len(limits), 1)
        self.assertEqual(limits[0].month, 5)
        self.assertEqual(limits[0].config_id, "b")
        self.assertEqual(limits[0].message, "Exceeds 1 overpayments per year limit")

    def test_transaction_limit_resets_next_year(self):
        state = make_state(rate_periods=beta_fixed_then_variable(), overpayments=[
            one_time("a", 10_000, 3),
            one_time("b", 10_000, 15),
        ])
        self.assertEqual(simulate(state).warnings, [])

    def test_early_redemption(self):
        state = make_state(amount_eur=10_000, overpayments=[one_time("o", 10_000_000, 12)])
        result = simulate(state)
        self.assertEqual(len(result.months), 12)
        early = [w for w in result.warnings if w.type is WarningType.EARLY_REDEMPTION]
        self.assertEqual(len(early), 1)
        self.assertEqual(early[0].severity, "error")
        self.assertEqual(
            early[0].message,
            "Mortgage paid off 24 months before fixed period ends. Early redemption fees may apply.",
        )


class TestSelfBuildSimulation(unittest.TestCase):

    def test_construction_months_are_interest_only(self):
        state = make_state(amount_eur=200_000, self_build=self_build_config())
        months = simulate(state).months
        self.assertEqual(months[0].opening_balance, 5_000_000)
        self.assertEqual(months[3].opening_balance, 12_500_000)
        self.assertEqual(months[3].drawdown_this_month, 7_500_000)
        for m in months[:8]:
            with self.subTest(month=m.month):
                self.assertEqual(m.principal_portion, 0.0)
                self.assertIs(m.phase, SelfBuildPhase.CONSTRUCTION)
                self.assertTrue(m.is_interest_only)
                self.assertAlmostEqual(m.scheduled_payment, m.interest_portion)
        self.assertEqual(months[7].cumulative_drawn, 20_000_000)
        self.assertGreater(months[8].principal_portion, 0)
        self.assertIs(months[8].phase, SelfBuildPhase.REPAYMENT)

    def test_stages_in_the_same_month_are_all_drawn(self):
        config = SelfBuildConfig(enabled=True, drawdown_stages=[
            DrawdownStage("s1", 1, 5_000_000),
            DrawdownStage("s2", 4, 7_500_000),
            DrawdownStage("s3", 4, 7_500_000),
        ])
        months = simulate(make_state(amount_eur=200_000, self_build=config)).months
        self.assertEqual(months[3].drawdown_this_month, 15_000_000)
        self.assertEqual(months[3].opening_balance, 20_000_000)
        self.assertEqual(months[-1].cumulative_drawn, 20_000_000)
        self.assertEqual(len(months), 360)
        self.assertAlmostEqual(months[-1].closing_balance, 0, delta=CENT_TOLERANCE)

    def test_start_milestone_matches_opening_balance(self):
        config = SelfBuildConfig(enabled=True, drawdown_stages=[
            DrawdownStage("s1", 3, 10_000_000),
            DrawdownStage("s2", 6, 10_000_000),
        ])
        months = simulate(make_state(amount_eur=200_000, self_build=config)).months
        milestones = calculate_milestones(months, 20_000_000, 40_000_000, None, config)
        self.assertEqual(months[0].opening_balance, 0)
        self.assertEqual(milestones[0].type, MilestoneType.MORTGAGE_START)
        self.assertEqual(milestones[0].value, months[0].opening_balance)

    def test_interest_only_phase_then_full_payment(self):
        state = make_state(amount_eur=200_000, self_build=self_build_config(interest_only_months=6))
        months = simulate(state).months
        for m in months[8:14]:
            with self.subTest(month=m.month):
                self.assertIs(m.phase, SelfBuildPhase.INTEREST_ONLY)
                self.assertEqual(m.principal_portion, 0.0)
        self.assertEqual(months[14].opening_balance, 20_000_000)
        self.assertAlmostEqual(months[14].scheduled_payment, monthly_payment(20_000_000, 3.45, 346))

    def test_phases_are_monotonic(self):
        state = make_state(amount_eur=200_000, self_build=self_build_config(interest_only_months=12))
        months = simulate(state).months
        orders = [m.phase.order for m in months]
        self.assertEqual(orders, sorted(orders))

    def test_capital_during_construction(self):
        config = self_build_config(construction_repayment_type=ConstructionRepaymentType.INTEREST_AND_CAPITAL)
        months = simulate(make_state(amount_eur=200_000, self_build=config)).months
        self.assertGreater(months[0].principal_portion, 0)
        # Payment is recalculated after each drawdown
        self.assertGreater(months[3].scheduled_payment, months[2].scheduled_payment)

    def test_conservation_with_drawdowns(self):
        months = simulate(make_state(amount_eur=200_000, self_build=self_build_config())).months
        repaid = sum(m.principal_portion + m.overpayment for m in months)
        self.assertAlmostEqual(repaid + months[-1].closing_balance, 20_000_000, delta=CENT_TOLERANCE)

    def test_invalid_drawdown_total_warns(self):
        config = SelfBuildConfig(enabled=True, drawdown_stages=[DrawdownStage("s1", 1, 1_000_000)])
        with self.assertWarns(UserWarning):
            simulate(make_state(amount_eur=200_000, self_build=config))


class TestBaselineAndSummary(unittest.TestCase):

    def setUp(self):
        self.periods = fixed_then_variable()
        self.resolved = resolve_rate_periods(self.periods, catalog_rates(), [], catalog_lenders())

    def test_baseline_matches_plain_simulation(self):
        months = simulate(make_state()).months
        baseline = calculate_baseline_interest(30_000_000, 360, self.periods, self.resolved)
        self.assertAlmostEqual(baseline, months[-1].cumulative_interest, delta=CENT_TOLERANCE)

    def test_baseline_empty_inputs(self):
        self.assertEqual(calculate_baseline_interest(0, 360, self.periods, self.resolved), 0.0)
        self.assertEqual(calculate_baseline_interest(30_000_000, 360, [], self.resolved), 0.0)

    def test_summary_with_overpayments(self):
        months = simulate(make_state(overpayments=[one_time("o", 2_000_000, 2)])).months
        baseline = calculate_baseline_interest(30_000_000, 360, self.periods, self.resolved)
        summary = calculate_summary(months, baseline, 360)
        self.assertEqual(summary.actual_term_months, len(months))
        self.assertGreater(summary.months_saved, 0)
        self.assertEqual(summary.months_saved, 360 - len(months))
        self.assertGreater(summary.interest_saved, 0)
        self.assertAlmostEqual(summary.total_paid, months[-1].cumulative_total)
        self.assertIsNone(summary.extra_interest_from_self_build)

    def test_summary_of_empty_schedule(self):
        summary = calculate_summary([], 0, 360)
        self.assertEqual(summary.actual_term_months, 0)
        self.assertEqual(summary.months_saved, 0)

    def test_self_build_extra_interest(self):
        io = self_build_config()
        capital = self_build_config(construction_repayment_type=ConstructionRepaymentType.INTEREST_AND_CAPITAL)
        io_baseline = calculate_baseline_interest(20_000_000, 360, self.periods, self.resolved, io)
        capital_baseline = calculate_baseline_interest(20_000_000, 360, self.periods, self.resolved, capital)
        self.assertGreater(io_baseline, capital_baseline)
        months = simulate(make_state(amount_eur=200_000, self_build=io)).months
        summary = calculate_summary(months, io_baseline, 360, capital_baseline)
        self.assertAlmostEqual(summary.extra_interest_from_self_build, io_baseline - capital_baseline)


class TestAggregation(unittest.TestCase):

    def test_mortgage_years(self):
        months = simulate(make_state()).months
        years = aggregate_by_year(months)
        self.assertEqual(len(years), 30)
        self.assertEqual(years[0].opening_balance, months[0].opening_balance)
        self.assertEqual(years[0].closing_balance, months[11].closing_balance)
        self.assertAlmostEqual(sum(y.total_interest for y in years), months[-1].cumulative_interest,
                               delta=CENT_TOLERANCE)

    def test_calendar_years(self):
        months = simulate(make_state(start_date="2024-07-01")).months
        years = aggregate_by_year(months)
        self.assertEqual(len(years), 31)
        self.assertEqual(years[0].year, 2024)
        self.assertEqual(len(years[0].months), 6)

    def test_rate_changes(self):
        months = simulate(make_state(rate_periods=fixed_then_variable(fixed_months=30))).months
        years = aggregate_by_year(months)
        self.assertEqual(years[2].rate_changes, ["p-fixed", "p-var"])
        self.assertEqual(years[3].rate_changes, ["p-var"])

    def test_empty(self):
        self.assertEqual(aggregate_by_year([]), [])


class TestMilestones(unittest.TestCase):

    def test_standard_milestones(self):
        months = simulate(make_state()).months
        milestones = calculate_milestones(months, 30_000_000, 40_000_000, None)
        kinds = [m.type for m in milestones]
        self.assertEqual(kinds, [
            MilestoneType.MORTGAGE_START,
            MilestoneType.PRINCIPAL_25_PERCENT,
            MilestoneType.PRINCIPAL_50_PERCENT,
            MilestoneType.PRINCIPAL_75_PERCENT,
            MilestoneType.MORTGAGE_COMPLETE,
        ])
        self.assertEqual([m.month for m in milestones], sorted(m.month for m in milestones))
        half = milestones[2]
        self.assertLessEqual(half.value, 15_000_000)
        self.assertEqual(half.label, "50% Paid Off")

    def test_ltv_milestone_when_starting_above_80(self):
        months = simulate(make_state(property_value_eur=350_000)).months
        milestones = calculate_milestones(months, 30_000_000, 35_000_000, None)
        ltv = [m for m in milestones if m.type is MilestoneType.LTV_80_PERCENT]
        self.assertEqual(len(ltv), 1)
        self.assertLessEqual(ltv[0].value, 28_000_000)

    def test_self_build_milestones(self):
        config = self_build_config(interest_only_months=6)
        state = make_state(amount_eur=200_000, self_build=config, start_date="2025-01-01")
        months = simulate(state).months
        milestones = calculate_milestones(months, 20_000_000, 40_000_000, "2025-01-01", config)
        by_type = {m.type: m for m in milestones}
        self.assertEqual(by_type[MilestoneType.MORTGAGE_START].value, 5_000_000)
        self.assertEqual(by_type[MilestoneType.CONSTRUCTION_COMPLETE].month, 8)
        self.assertEqual(by_type[MilestoneType.FULL_PAYMENTS_START].month, 15)
        self.assertEqual(by_type[MilestoneType.FULL_PAYMENTS_START].date, "2026-03-01")
        self.assertGreater(by_type[MilestoneType.PRINCIPAL_25_PERCENT].month, 14)

    def test_empty(self):
        self.assertEqual(calculate_milestones([], 1, 1, None), [])


class TestBufferSuggestions(unittest.TestCase):

    def suggestions_for(self, periods):
        state = make_state(rate_periods=periods)
        months = simulate(state).months
        resolved = list(resolve_rate_periods(periods, catalog_rates(), [], catalog_lenders()).values())
        return calculate_buffer_suggestions(state, catalog_rates(), [], resolved, months)

    def test_natural_follow_on_needs_no_buffer(self):
        self.assertEqual(self.suggestions_for(fixed_then_variable()), [])

    def test_switch_to_other_lender_suggests_buffer(self):
        periods = [
            RatePeriod(id="p-fixed", lender_id="alpha", rate_id="alpha-3yr", duration_months=36),
            RatePeriod(id="p-other", lender_id="beta", rate_id="beta-var", duration_months=0),
        ]
        suggestions = self.suggestions_for(periods)
        self.assertEqual(len(suggestions), 1)
        self.assertEqual(suggestions[0].after_index, 0)
        self.assertEqual(suggestions[0].suggested_rate.id, "alpha-var-80")
        self.assertEqual(suggestions[0].lender_name, "Alpha Bank")
        self.assertFalse(suggestions[0].is_trailing)
        self.assertLess(suggestions[0].ltv_at_end, 75)

    def test_trailing_fixed_period(self):
        suggestions = self.suggestions_for(fixed_then_variable()[:1])
        self.assertEqual(len(suggestions), 1)
        self.assertTrue(suggestions[0].is_trailing)
        self.assertIs(suggestions[0].fixed_rate.type, RateType.FIXED)


if __name__ == '__main__':
    unittest.main(verbosity=2)
