"""
Aggregate result of a comprehensive impact analysis
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Any, List, Optional

from financial_models.models import ReturnCalculationResults, ScenarioConfiguration

# Split of total return attributed to revenue vs cost impact in stored projections
REVENUE_SHARE = 0.6
COST_SHARE = 0.4

SCENARIO_NAMES = ('conservative', 'realistic', 'optimistic')


@dataclass
class ComprehensiveImpactAnalysis:
    """
    Everything computed for one opportunity in one pass.

    scenario_analysis holds ReturnCalculationResults under 'conservative',
    'realistic' and 'optimistic'; sensitivity_analysis holds SensitivityFactor
    objects under 'factors'. to_record() flattens both for storage.
    """
    opportunity_id: str
    roi_analysis: ReturnCalculationResults
    scenario_analysis: Dict[str, Any]
    sensitivity_analysis: Dict[str, Any]
    risk_assessment: List[Dict[str, Any]]
    benchmark_comparison: Dict[str, Any]
    market_factors: List[Dict[str, Any]]
    confidence_level: float
    methodology: str
    assumptions: List[str]
    analysis_date: datetime = field(default_factory=datetime.now)
    monte_carlo: Optional[Dict[str, Any]] = None
    scenario_configurations: List[ScenarioConfiguration] = field(default_factory=list)
    weighted_valuation: Optional[Dict[str, float]] = None

    def scenario_projection(self, name: str) -> Dict[str, float]:
        """Stored projection for one scenario: revenue/cost split, payback timeline, probability"""
        results = self.scenario_analysis[name]
        return {
            'revenue_impact': results.total_return * REVENUE_SHARE,
            'cost_impact': results.total_return * COST_SHARE,
            'roi': results.roi,
            'timeline': results.payback_period,
            'probability': results.confidence
        }

    def to_record(self) -> Dict[str, Any]:
        """Plain-data record ready for a persistence layer"""
        scenario_block = {
            key: (value.to_dict() if isinstance(value, ReturnCalculationResults) else value)
            for key, value in self.scenario_analysis.items()
        }
        sensitivity_block = dict(
            self.sensitivity_analysis,
            factors=[f.to_dict() for f in self.sensitivity_analysis.get('factors', [])]
        )

        monte_carlo = None
        if self.monte_carlo is not None:
            monte_carlo = self.monte_carlo['statistics']

        return {
            'opportunity_id': self.opportunity_id,
            'analysis_date': self.analysis_date.isoformat(),
            'confidence_level': self.confidence_level,
            'roi_analysis': self.roi_analysis.to_dict(),
            'scenario_projections': {name: self.scenario_projection(name) for name in SCENARIO_NAMES},
            'scenario_analysis': scenario_block,
            'sensitivity_analysis': sensitivity_block,
            'risk_assessment': [dict(r) for r in self.risk_assessment],
            'benchmark_comparison': dict(self.benchmark_comparison),
            'market_factors': [dict(f) for f in self.market_factors],
            'monte_carlo': monte_carlo,
            'scenario_configurations': [c.to_dict() for c in self.scenario_configurations],
            'weighted_valuation': self.weighted_valuation,
            'methodology': self.methodology,
            'assumptions': list(self.assumptions)
        }
