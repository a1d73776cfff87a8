import math
from dataclasses import asdict

import pytest

from core.schema import EventType, YEARLY_FIELDS
from core.utils import inflation_factor
from engine.runner import project, projection_to_frame


def _values(rows, field):
    return [getattr(r, field) for r in rows]


def test_projection_has_one_row_per_year_plus_start(make_params):
    rows = project(make_params(duration_years=7, monthly_contribution=100.0))

    assert len(rows) == 8
    assert _values(rows, "year") == list(range(8))
    assert _values(rows, "label") == [str(2024 + y) for y in range(8)]


def test_opening_row_reports_initial_capital_only(make_params):
    start = project(make_params(initial_capital=5_000.0, annual_return_rate=8.0))[0]

    assert start.portfolio_value == start.total_invested == start.inflation_adjusted_value == 5_000.0
    assert start.total_withdrawn == start.yearly_profit == start.yearly_tax == start.net_growth == 0.0


def test_contribution_only_baseline(make_params):
    row = project(make_params(monthly_contribution=1_000.0))[1]

    assert row.portfolio_value == 12_000.0
    assert row.total_invested == 12_000.0
    assert row.yearly_tax == 0.0


def test_growth_applies_to_prior_year_capital(make_params):
    rows = project(make_params(monthly_contribution=1_000.0, annual_return_rate=10.0, duration_years=2))

    assert rows[1].yearly_profit == 0.0
    assert rows[1].portfolio_value == 12_000.0
    assert rows[2].yearly_profit == 1_200.0
    assert rows[2].portfolio_value == 25_200.0


def test_nominal_tax_on_gross_growth(make_params):
    row = project(make_params(
        initial_capital=10_000.0, annual_return_rate=10.0, is_tax_enabled=True, tax_rate=20.0,
    ))[1]

    assert row.yearly_profit == 1_000.0
    assert row.yearly_tax == 200.0
    assert row.yearly_real_tax == 200.0
    assert row.net_growth == 800.0
    assert row.portfolio_value == 10_800.0


def test_inflation_adjusted_tax_spares_growth_that_offsets_inflation(make_params):
    row = project(make_params(
        initial_capital=10_000.0, annual_return_rate=10.0, inflation_rate=4.0,
        is_tax_enabled=True, tax_rate=25.0, tax_adjusted_for_inflation=True,
    ))[1]

    assert row.yearly_tax == 150.0          # 25% of (1000 - 400)
    assert row.yearly_real_tax == 144.23    # 150 / 1.04
    assert row.portfolio_value == 10_850.0
    assert row.inflation_adjusted_value == 10_432.69
    assert row.total_inflation_loss == 417.31


def test_losing_year_is_not_taxed_and_growth_is_negative(make_params):
    row = project(make_params(
        initial_capital=10_000.0, annual_return_rate=-10.0, is_tax_enabled=True, tax_rate=26.0,
    ))[1]

    assert row.yearly_profit == -1_000.0
    assert row.yearly_tax == 0.0
    assert row.net_growth == -1_000.0
    assert row.portfolio_value == 9_000.0


def test_disabled_tax_ignores_tax_rate(make_params):
    rows = project(make_params(
        initial_capital=50_000.0, annual_return_rate=7.0, tax_rate=50.0, duration_years=10,
    ))

    assert all(r.yearly_tax == 0.0 for r in rows)
    assert all(r.yearly_real_tax == 0.0 for r in rows)


def test_inflation_indexed_contribution(make_params):
    rows = project(make_params(
        monthly_contribution=1_000.0, inflation_rate=10.0,
        adjust_contribution_for_inflation=True, duration_years=2,
    ))

    assert rows[1].portfolio_value == 13_200.0
    assert rows[1].inflation_adjusted_value == 12_000.0
    assert rows[2].portfolio_value == 27_720.0
    assert rows[2].total_invested == 27_720.0
    assert rows[2].inflation_adjusted_value == 22_909.09
    assert rows[2].total_inflation_loss == 4_810.91


def test_inflation_identity_holds_on_every_row(make_params, make_event):
    params = make_params(
        initial_capital=20_000.0, monthly_contribution=350.0, annual_return_rate=6.5,
        inflation_rate=2.7, adjust_contribution_for_inflation=True, duration_years=25,
        is_tax_enabled=True, tax_rate=26.0,
    )
    events = [
        make_event(EventType.WITHDRAWAL, 10, 3_000.0, is_recurring=True, recurring_end_year=14),
        make_event(EventType.LEVERAGE_LOAN, 3, 15_000.0, loan_interest_rate=4.0, loan_duration_years=7),
    ]

    for r in project(params, events):
        factor = inflation_factor(params.inflation_rate, r.year)
        assert r.inflation_adjusted_value * factor == pytest.approx(r.portfolio_value, abs=0.01 * factor)
        assert r.total_inflation_loss == pytest.approx(r.portfolio_value - r.inflation_adjusted_value, abs=1e-9)


def test_standard_loan_installments_run_for_the_loan_term(make_params, make_event):
    params = make_params(initial_capital=100_000.0, duration_years=12)
    loan = make_event(EventType.LOAN, 2, 10_000.0, loan_interest_rate=5.0, loan_duration_years=10)

    rows = project(params, [loan])
    withdrawn = _values(rows, "total_withdrawn")
    paid = [b - a for a, b in zip(withdrawn, withdrawn[1:])]  # paid[i] belongs to year i + 1

    assert paid[0] == 0.0
    for year in range(2, 12):
        assert paid[year - 1] == pytest.approx(1_295.05, abs=0.02)
    assert paid[11] == pytest.approx(0.0, abs=1e-9)

    # principal counts as committed capital but never enters the portfolio
    assert rows[2].total_invested == 110_000.0
    assert rows[12].portfolio_value == pytest.approx(100_000.0 - 10 * 1_295.0457, abs=0.01)


def test_leverage_loan_is_repaid_from_the_contribution(make_params, make_event):
    params = make_params(monthly_contribution=1_000.0, duration_years=6)
    lev = make_event(EventType.LEVERAGE_LOAN, 1, 20_000.0, loan_interest_rate=0.0, loan_duration_years=4)

    rows = project(params, [lev])

    assert _values(rows, "portfolio_value") == [0.0, 27_000.0, 34_000.0, 41_000.0, 48_000.0, 60_000.0, 72_000.0]
    assert _values(rows, "total_invested") == [0.0, 32_000.0, 44_000.0, 56_000.0, 68_000.0, 80_000.0, 92_000.0]
    assert all(r.total_withdrawn == 0.0 for r in rows)


def test_leverage_installment_above_contribution_forces_withdrawal(make_params, make_event):
    params = make_params(monthly_contribution=100.0, duration_years=3)
    lev = make_event(EventType.LEVERAGE_LOAN, 1, 10_000.0, loan_interest_rate=0.0, loan_duration_years=2)

    rows = project(params, [lev])

    assert _values(rows, "portfolio_value")[1:] == [6_200.0, 2_400.0, 3_600.0]
    assert _values(rows, "total_withdrawn")[1:] == [3_800.0, 7_600.0, 7_600.0]
    assert _values(rows, "total_invested")[1:] == [11_200.0, 12_400.0, 13_600.0]


def test_portfolio_value_is_clamped_at_zero(make_params, make_event):
    params = make_params(initial_capital=1_000.0, duration_years=3)
    loan = make_event(EventType.LOAN, 1, 10_000.0, loan_interest_rate=0.0, loan_duration_years=2)

    rows = project(params, [loan])

    assert _values(rows, "portfolio_value")[1:] == [0.0, 0.0, 0.0]
    assert _values(rows, "total_withdrawn")[1:] == [5_000.0, 10_000.0, 10_000.0]
    assert all(r.portfolio_value >= 0 for r in rows)


def test_clamp_happens_after_all_events_of_the_year(make_params, make_event):
    events = [make_event(EventType.WITHDRAWAL, 1, 500.0), make_event(EventType.DEPOSIT, 1, 800.0)]

    assert project(make_params(), events)[1].portfolio_value == 300.0


def test_net_invested_can_go_negative(make_params, make_event):
    # reporting convention: total_invested is deposits minus withdrawals
    row = project(make_params(initial_capital=1_000.0), [make_event(EventType.WITHDRAWAL, 1, 3_000.0)])[1]

    assert row.total_invested == -2_000.0
    assert row.total_withdrawn == 3_000.0
    assert row.portfolio_value == 0.0


def test_same_year_deposit_and_withdrawal_cancel_out(make_params, make_event):
    params = make_params(initial_capital=5_000.0, annual_return_rate=5.0, duration_years=4)
    pair = [make_event(EventType.DEPOSIT, 2, 2_000.0), make_event(EventType.WITHDRAWAL, 2, 2_000.0)]

    base = project(params)
    with_pair = project(params, pair)

    assert _values(with_pair, "portfolio_value") == _values(base, "portfolio_value")
    assert _values(with_pair, "total_invested") == _values(base, "total_invested")
    assert with_pair[4].total_withdrawn == base[4].total_withdrawn + 2_000.0


def test_recurring_deposit_adds_every_year_in_range(make_params, make_event):
    dep = make_event(EventType.DEPOSIT, 2, 1_000.0, is_recurring=True, recurring_end_year=4)

    rows = project(make_params(duration_years=5), [dep])

    assert _values(rows, "portfolio_value") == [0.0, 0.0, 1_000.0, 2_000.0, 3_000.0, 3_000.0]


def test_recurring_flag_on_loan_is_ignored(make_params, make_event):
    params = make_params(initial_capital=50_000.0, duration_years=6)
    kwargs = dict(loan_interest_rate=3.0, loan_duration_years=3)
    once = make_event(EventType.LOAN, 2, 6_000.0, **kwargs)
    flagged = make_event(EventType.LOAN, 2, 6_000.0, is_recurring=True, recurring_end_year=6, **kwargs)

    assert project(params, [flagged]) == project(params, [once])


def test_projection_is_deterministic_and_leaves_inputs_alone(make_params, make_event):
    params = make_params(
        initial_capital=12_345.67, monthly_contribution=321.0, annual_return_rate=7.3,
        inflation_rate=2.1, adjust_contribution_for_inflation=True, duration_years=30,
        is_tax_enabled=True, tax_rate=26.0, tax_adjusted_for_inflation=True,
    )
    events = [
        make_event(EventType.DEPOSIT, 5, 10_000.0),
        make_event(EventType.LOAN, 8, 20_000.0, loan_interest_rate=6.0, loan_duration_years=5),
        make_event(EventType.LEVERAGE_LOAN, 12, 30_000.0, loan_interest_rate=3.5, loan_duration_years=10),
    ]
    snapshot = list(events)

    first = project(params, events)
    second = project(params, events)

    assert [asdict(r) for r in first] == [asdict(r) for r in second]
    assert events == snapshot


def test_invalid_duration_fails_fast(make_params):
    with pytest.raises(ValueError, match="duration_years"):
        project(make_params(duration_years=0))


def test_loan_without_positive_duration_fails_fast(make_params, make_event):
    loan = make_event(EventType.LOAN, 1, 1_000.0, loan_interest_rate=5.0, loan_duration_years=0)

    with pytest.raises(ValueError, match="loan_duration_years"):
        project(make_params(), [loan])


def test_unrecognized_event_type_fails_fast(make_params, make_event):
    with pytest.raises(ValueError, match="unrecognized type"):
        project(make_params(), [make_event("BONUS", 1, 100.0)])


def test_projection_to_frame_columns(make_params):
    df = projection_to_frame(project(make_params(duration_years=3, monthly_contribution=10.0)))

    assert list(df.columns) == list(YEARLY_FIELDS)
    assert len(df) == 4
    assert df["portfolio_value"].iloc[-1] == 360.0


@pytest.mark.parametrize(
    "overrides",
    [
        {"annual_return_rate": math.nan},
        {"inflation_rate": math.nan},
        {"initial_capital": math.nan},
        {"monthly_contribution": math.nan},
    ],
)
def test_non_finite_params_fail_fast(make_params, overrides):
    with pytest.raises(ValueError, match="must be a finite number"):
        project(make_params(duration_years=2, **overrides))


def test_infinite_loan_rate_fails_fast(make_params, make_event):
    loan = make_event(EventType.LOAN, 1, 1_000.0, loan_interest_rate=math.inf, loan_duration_years=2)

    with pytest.raises(ValueError, match="interest rate must be a finite number"):
        project(make_params(duration_years=2), [loan])


def test_fractional_loan_term_fails_fast(make_params, make_event):
    loan = make_event(EventType.LOAN, 1, 1_000.0, loan_interest_rate=0.0, loan_duration_years=0.5)

    with pytest.raises(ValueError, match="whole number of loan_duration_years"):
        project(make_params(duration_years=2), [loan])


def test_plain_string_event_types_project_like_enum_members(make_params, make_event):
    params = make_params(monthly_contribution=1_000.0, duration_years=3)
    as_enum = [
        make_event(EventType.LEVERAGE_LOAN, 1, 6_000.0, id="lev", loan_interest_rate=0.0, loan_duration_years=2),
        make_event(EventType.DEPOSIT, 2, 500.0, id="dep"),
    ]
    as_str = [
        make_event("LEVERAGE_LOAN", 1, 6_000.0, id="lev", loan_interest_rate=0.0, loan_duration_years=2),
        make_event("DEPOSIT", 2, 500.0, id="dep"),
    ]

    assert project(params, as_str) == project(params, as_enum)
