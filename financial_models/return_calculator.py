"""
Core return calculations: NPV, IRR, payback, ROI and break-even
"""
import math
import pandas as pd
import numpy as np
from typing import Dict, Any, List, Optional, Tuple

from utils.logger import setup_logger
from utils.config_loader import get_section
from financial_models.models import ReturnCalculationInputs, ReturnCalculationResults, NOT_ACHIEVED

logger = setup_logger(__name__)

# Rates probed, in order, when looking for an IRR sign change
IRR_BRACKET_RATES = [-0.99, -0.9, -0.75, -0.5, -0.25, 0.0, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 100.0]
IRR_BISECTION_ITERATIONS = 200


def year_value(series: List[float], year: int) -> float:
    """Value for a year, carrying the last entry forward; empty series are zero"""
    if year < len(series):
        return series[year]
    return series[-1] if series else 0.0


def expand_series(series: List[float], years: int) -> List[float]:
    return [year_value(series, year) for year in range(max(0, years))]


def _ratio(numerator: float, denominator: float) -> float:
    """Division that yields nan/inf instead of raising"""
    if denominator == 0:
        if numerator == 0:
            return float('nan')
        return math.copysign(float('inf'), numerator)
    return numerator / denominator


class ReturnCalculator:
    """NPV / IRR / ROI calculations over yearly benefit and cost streams"""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config if config is not None else get_section('return_calculator')
        confidence = self.config.get('confidence', {})
        irr = self.config.get('irr', {})

        self.confidence_base = confidence.get('base', 0.80)
        self.confidence_step = confidence.get('step', 0.05)
        self.confidence_cap = confidence.get('cap', 0.95)

        self.irr_initial_guess = irr.get('initial_guess', 0.10)
        self.irr_max_iterations = irr.get('max_iterations', 100)
        self.irr_tolerance = irr.get('tolerance', 0.0001)

    def net_cash_flows(self, inputs: ReturnCalculationInputs) -> np.ndarray:
        """Benefit minus implementation and maintenance cost for each year of the horizon"""
        horizon = inputs.time_horizon
        benefits = np.array(expand_series(inputs.annual_benefits, horizon), dtype=float)
        implementation = np.array(expand_series(inputs.implementation_costs, horizon), dtype=float)
        maintenance = np.array(expand_series(inputs.maintenance_costs, horizon), dtype=float)
        return benefits - implementation - maintenance

    def calculate_npv_at_rate(self, inputs: ReturnCalculationInputs, rate: float) -> float:
        """
        Net present value at an arbitrary rate.

        Year n's flow (0-based) is discounted by (1 + rate) ** (n + 1); the
        initial investment is undiscounted.
        """
        npv, _ = self._npv_and_derivative(self.net_cash_flows(inputs), inputs.initial_investment, rate)
        return npv

    def _npv_and_derivative(
        self,
        flows: np.ndarray,
        initial_investment: float,
        rate: float
    ) -> Tuple[float, float]:
        periods = np.arange(1, len(flows) + 1)
        with np.errstate(all='ignore'):
            discount_factors = (1 + rate) ** periods
            npv = float(np.sum(flows / discount_factors)) - initial_investment
            derivative = float(-np.sum(periods * flows / (discount_factors * (1 + rate))))
        return npv, derivative

    def calculate_irr(self, inputs: ReturnCalculationInputs) -> float:
        """
        Internal rate of return via Newton-Raphson.

        Seeded at the configured guess with an analytic derivative. When Newton
        does not converge inside the iteration budget (flat derivative,
        non-finite step, or budget exhausted) the root is bracketed and
        bisected; if no sign change exists the last Newton estimate is
        returned, so callers cannot tell convergence from giving up.

        Returns:
            IRR as a fraction
        """
        flows = self.net_cash_flows(inputs)
        rate = self.irr_initial_guess

        for _ in range(self.irr_max_iterations):
            npv, derivative = self._npv_and_derivative(flows, inputs.initial_investment, rate)

            if abs(npv) < self.irr_tolerance:
                return rate

            # Avoid division by zero
            if abs(derivative) < self.irr_tolerance:
                break

            next_rate = rate - npv / derivative
            if not math.isfinite(next_rate):
                break
            rate = next_rate

        fallback = self._bisect_irr(flows, inputs.initial_investment)
        if fallback is not None:
            logger.debug(f"IRR Newton-Raphson did not converge, bisection gave {fallback:.6f}")
            return fallback

        logger.debug(f"IRR did not converge, returning last estimate {rate:.6f}")
        return rate

    def _bisect_irr(self, flows: np.ndarray, initial_investment: float) -> Optional[float]:
        """Bisect on the first bracketing interval of IRR_BRACKET_RATES"""
        bracket = None
        previous_rate, previous_npv = None, None
        for rate in IRR_BRACKET_RATES:
            npv, _ = self._npv_and_derivative(flows, initial_investment, rate)
            if not math.isfinite(npv):
                previous_rate, previous_npv = None, None
                continue
            if npv == 0:
                return rate
            if previous_npv is not None and (previous_npv < 0) != (npv < 0):
                bracket = (previous_rate, previous_npv, rate)
                break
            previous_rate, previous_npv = rate, npv

        if bracket is None:
            return None

        low, low_npv, high = bracket
        mid = (low + high) / 2
        for _ in range(IRR_BISECTION_ITERATIONS):
            mid = (low + high) / 2
            mid_npv, _ = self._npv_and_derivative(flows, initial_investment, mid)
            if abs(mid_npv) < self.irr_tolerance:
                return mid
            if (mid_npv < 0) == (low_npv < 0):
                low, low_npv = mid, mid_npv
            else:
                high = mid
        return mid

    def calculate_payback_period(self, inputs: ReturnCalculationInputs) -> float:
        """
        Years until cumulative net cash flow turns non-negative.

        Walks the supplied benefit sequence, interpolating linearly within the
        crossing year.

        Returns:
            Fractional years, or -1 if the benefit sequence runs out first
        """
        cumulative = -inputs.initial_investment

        for year, benefit in enumerate(inputs.annual_benefits):
            net_cash_flow = (
                benefit
                - year_value(inputs.implementation_costs, year)
                - year_value(inputs.maintenance_costs, year)
            )
            previous = cumulative
            cumulative += net_cash_flow

            if cumulative >= 0:
                fraction = abs(previous) / net_cash_flow if net_cash_flow > 0 else 0.0
                return year + fraction

        return NOT_ACHIEVED

    def calculate_break_even_point(self, total_costs: float, benefits: List[float]) -> float:
        """Total costs over average annual benefit, or -1 when benefits average to <= 0"""
        average_benefit = sum(benefits) / len(benefits) if benefits else 0.0
        if average_benefit <= 0:
            return NOT_ACHIEVED
        return total_costs / average_benefit

    def calculate_confidence(self, inputs: ReturnCalculationInputs) -> float:
        """Heuristic confidence in the estimate from input quality"""
        confidence = self.confidence_base

        if len(inputs.annual_benefits) >= 3:
            confidence += self.confidence_step
        if inputs.time_horizon >= 3:
            confidence += self.confidence_step
        if inputs.risk_factor < 0.3:
            confidence += self.confidence_step
        if 0 < inputs.discount_rate < 0.2:
            confidence += self.confidence_step

        return min(confidence, self.confidence_cap)

    def calculate_roi(self, inputs: ReturnCalculationInputs) -> ReturnCalculationResults:
        """
        Calculate all return metrics for one set of assumptions.

        Never raises: unreachable payback / break-even come back as -1 and a
        zero cost base yields an infinite or nan ROI.

        Args:
            inputs: Cash-flow assumptions

        Returns:
            ReturnCalculationResults with ROI figures in percentage points
        """
        horizon = inputs.time_horizon
        benefits = expand_series(inputs.annual_benefits, horizon)
        total_benefits = sum(benefits)
        total_costs = (
            inputs.initial_investment
            + sum(expand_series(inputs.implementation_costs, horizon))
            + sum(expand_series(inputs.maintenance_costs, horizon))
        )

        npv = self.calculate_npv_at_rate(inputs, inputs.discount_rate)
        irr = self.calculate_irr(inputs)
        roi = _ratio(total_benefits - total_costs, total_costs) * 100

        results = ReturnCalculationResults(
            npv=npv,
            irr=irr,
            payback_period=self.calculate_payback_period(inputs),
            roi=roi,
            risk_adjusted_roi=roi * (1 - inputs.risk_factor),
            break_even_point=self.calculate_break_even_point(total_costs, benefits),
            total_return=total_benefits - total_costs,
            confidence=self.calculate_confidence(inputs)
        )

        logger.debug(f"NPV {npv:,.0f}, ROI {roi:.1f}%, IRR {irr * 100:.1f}% over {horizon}y")
        return results

    def build_cash_flow_table(self, inputs: ReturnCalculationInputs) -> pd.DataFrame:
        """
        Yearly cash-flow breakdown for display.

        Year 0 carries the initial investment; years 1..horizon carry the
        discounted operating flows.
        """
        horizon = inputs.time_horizon
        rows = []

        for year in range(horizon):
            benefit = year_value(inputs.annual_benefits, year)
            implementation = year_value(inputs.implementation_costs, year)
            maintenance = year_value(inputs.maintenance_costs, year)
            rows.append({
                'year': year + 1,
                'benefit': benefit,
                'implementation_cost': implementation,
                'maintenance_cost': maintenance,
                'net_cash_flow': benefit - implementation - maintenance
            })

        df = pd.DataFrame(rows, columns=['year', 'benefit', 'implementation_cost', 'maintenance_cost', 'net_cash_flow'])
        df['discount_factor'] = (1 + inputs.discount_rate) ** -df['year'].astype(float)
        df['present_value'] = df['net_cash_flow'] * df['discount_factor']

        investment_row = pd.DataFrame([{
            'year': 0,
            'benefit': 0.0,
            'implementation_cost': 0.0,
            'maintenance_cost': 0.0,
            'net_cash_flow': -inputs.initial_investment,
            'discount_factor': 1.0,
            'present_value': -inputs.initial_investment
        }])

        df = pd.concat([investment_row, df], ignore_index=True)
        df['cumulative_net_cash_flow'] = df['net_cash_flow'].cumsum()
        df['cumulative_present_value'] = df['present_value'].cumsum()
        return df


# Convenience function
def calculate_roi(
    initial_investment: float,
    annual_benefits: List[float],
    implementation_costs: Optional[List[float]] = None,
    maintenance_costs: Optional[List[float]] = None,
    discount_rate: float = 0.10,
    time_horizon: int = 3,
    risk_factor: float = 0.2
) -> Dict[str, Any]:
    """Quick return calculation from plain arguments"""
    calculator = ReturnCalculator()
    inputs = ReturnCalculationInputs(
        initial_investment=initial_investment,
        annual_benefits=list(annual_benefits),
        implementation_costs=list(implementation_costs or []),
        maintenance_costs=list(maintenance_costs or []),
        discount_rate=discount_rate,
        time_horizon=time_horizon,
        risk_factor=risk_factor
    )
    return calculator.calculate_roi(inputs).to_dict()
