"""Investment, savings, payback, NPV and IRR for a panel installation."""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from scope_solar.config import FinancialConfig, PanelConfig
from scope_solar.models.results import FinancialResult

IRR_START_RATE = 0.10
IRR_TOLERANCE = 1e-3
IRR_MAX_ITERATIONS = 100

# Relative to INR.
CURRENCY_RATES: Dict[str, float] = {
    "INR": 1.0,
    "USD": 0.012,
    "EUR": 0.011,
    "GBP": 0.0095,
    "AUD": 0.018,
    "CAD": 0.016,
    "JPY": 1.8,
}


def npv(investment: float, cash_flows: Sequence[float], discount_rate: float) -> float:
    value = -investment
    for year, cash_flow in enumerate(cash_flows):
        value += cash_flow / (1 + discount_rate) ** (year + 1)
    return value


def _npv_derivative(cash_flows: Sequence[float], rate: float) -> float:
    derivative = 0.0
    for year, cash_flow in enumerate(cash_flows):
        derivative -= (year + 1) * cash_flow / (1 + rate) ** (year + 2)
    return derivative


def irr(
    investment: float,
    cash_flows: Sequence[float],
    max_iterations: int = IRR_MAX_ITERATIONS,
    tolerance: float = IRR_TOLERANCE,
) -> Optional[float]:
    """
    Newton-Raphson search for the rate where NPV is zero, starting at 10%.

    Returns None when the derivative vanishes, the rate goes negative, the
    iteration budget runs out, or the rate diverges past float range.
    """
    rate = IRR_START_RATE
    try:
        for _ in range(max_iterations):
            value = npv(investment, cash_flows, rate)
            if abs(value) < tolerance:
                return rate
            derivative = _npv_derivative(cash_flows, rate)
            if derivative == 0:
                return None
            rate = rate - value / derivative
            if rate < 0:
                return None
    except OverflowError:
        return None
    return None


def payback_years(investment: float, annual_savings: float) -> Optional[float]:
    if annual_savings <= 0:
        return None
    return investment / annual_savings


def project_cash_flows(annual_savings: float, years: int, degradation_rate: float) -> List[float]:
    """Yearly savings with output degrading geometrically from year one."""
    return [annual_savings * (1 - degradation_rate) ** year for year in range(years)]


def emi(principal: float, annual_rate: float, tenure_months: int) -> float:
    """Equated monthly instalment for a loan."""
    if tenure_months <= 0:
        raise ValueError("tenure_months must be positive")
    monthly_rate = annual_rate / 12
    if monthly_rate == 0:
        return principal / tenure_months
    factor = (1 + monthly_rate) ** tenure_months
    return principal * monthly_rate * factor / (factor - 1)


def convert_currency(amount: float, from_currency: str, to_currency: str) -> float:
    from_rate = CURRENCY_RATES.get(from_currency.upper())
    to_rate = CURRENCY_RATES.get(to_currency.upper())
    if from_rate is None or to_rate is None:
        return amount
    return amount / from_rate * to_rate


class FinancialAnalyzer:
    def __init__(self, panel: PanelConfig | None = None, cfg: FinancialConfig | None = None, log=None):
        self.panel = panel or PanelConfig()
        self.cfg = cfg or FinancialConfig()
        self.log = log

    def investment(self, panel_count: int, subsidy_rate: float) -> float:
        return panel_count * self.panel.unit_cost * self.panel.installation_multiplier * (1 - subsidy_rate)

    def compute_financial(
        self,
        yearly_kwh: float,
        panel_count: int,
        subsidy_rate: float | None = None,
        electricity_rate: float | None = None,
    ) -> FinancialResult:
        subsidy = self.cfg.subsidy_rate if subsidy_rate is None else subsidy_rate
        rate = self.cfg.electricity_rate if electricity_rate is None else electricity_rate

        investment = self.investment(panel_count, subsidy)
        annual_savings = yearly_kwh * rate
        cash_flows = project_cash_flows(annual_savings, self.cfg.lifespan_years, self.cfg.degradation_rate)

        result = FinancialResult(
            investment=investment,
            monthly_savings=annual_savings / 12,
            annual_savings=annual_savings,
            payback_years=payback_years(investment, annual_savings),
            npv=npv(investment, cash_flows, self.cfg.discount_rate),
            irr=irr(investment, cash_flows),
            total_savings=sum(cash_flows),
        )
        if self.log is not None:
            if result.payback_years is None:
                self.log.info("Payback undefined: annual savings %.2f", annual_savings)
            if result.irr is None:
                self.log.debug("IRR did not converge for investment %.2f", investment)
        return result
