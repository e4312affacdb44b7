"""
Risk factor derivation and rule-based risk assessment for improvement opportunities
"""
from typing import Dict, Any, List

from utils.logger import setup_logger
from utils.config_loader import get_section
from financial_models.opportunity import ImprovementOpportunity
from risk_engine.categories import (
    DIFFICULTY_ADJUSTMENTS,
    CATEGORY_ADJUSTMENTS,
    MARKET_EXPOSED_CATEGORIES,
    is_technology_initiative
)

logger = setup_logger(__name__)

POSITIVE_ROI_THRESHOLD = 0.7
BENEFIT_REALIZATION_IMPACT = 0.8


class RiskAssessor:
    """
    Derives the risk factor fed into return calculations and lists the
    named risks an opportunity carries.

    Risk entries score probability x impact on 0-1 scales.
    """

    def __init__(self):
        self.risk_config = get_section('risk')
        bounds = self.risk_config.get('bounds', {})

        self.base_factor = self.risk_config.get('base_factor', 0.2)
        self.confidence_weight = self.risk_config.get('confidence_weight', 0.2)
        self.min_factor = bounds.get('min', 0.1)
        self.max_factor = bounds.get('max', 0.5)
        self.difficulty_adjustments = self.risk_config.get('difficulty_adjustments') or DIFFICULTY_ADJUSTMENTS
        self.category_adjustments = self.risk_config.get('category_adjustments') or CATEGORY_ADJUSTMENTS

    def calculate_risk_factor(self, opportunity: ImprovementOpportunity) -> float:
        """
        Risk factor from difficulty, confidence and category.

        Args:
            opportunity: The opportunity being analysed

        Returns:
            Risk factor clamped to the configured bounds (default 0.1-0.5)
        """
        risk_factor = self.base_factor
        risk_factor += self.difficulty_adjustments.get(opportunity.difficulty, 0.0)
        risk_factor += (1 - opportunity.confidence) * self.confidence_weight
        risk_factor += self.category_adjustments.get(opportunity.category, 0.0)

        return max(self.min_factor, min(self.max_factor, risk_factor))

    def _risk(self, name: str, probability: float, impact: float, mitigation: str) -> Dict[str, Any]:
        return {
            'risk': name,
            'probability': probability,
            'impact': impact,
            'mitigation': mitigation,
            'risk_score': probability * impact
        }

    def assess_risks(
        self,
        opportunity: ImprovementOpportunity,
        scenario_analysis: Dict[str, Any]
    ) -> List[Dict[str, Any]]:
        """
        Rule-based risk list, highest risk score first.

        Args:
            opportunity: The opportunity being analysed
            scenario_analysis: Output of ScenarioGenerator.generate_scenarios

        Returns:
            List of risk dicts with probability, impact, mitigation and risk_score
        """
        risks = []

        if opportunity.difficulty == 'very_high':
            risks.append(self._risk(
                'Implementation Complexity', 0.4, 0.6,
                'Phased implementation approach with expert consultation'
            ))

        positive_roi = scenario_analysis['probability']['positive_roi']
        if positive_roi < POSITIVE_ROI_THRESHOLD:
            risks.append(self._risk(
                'Benefit Realization', 1 - positive_roi, BENEFIT_REALIZATION_IMPACT,
                'Conservative benefit estimates with milestone validation'
            ))

        if opportunity.category in MARKET_EXPOSED_CATEGORIES:
            risks.append(self._risk(
                'Market Conditions', 0.3, 0.5,
                'Market monitoring and adaptive strategy'
            ))

        if is_technology_initiative(opportunity.title):
            risks.append(self._risk(
                'Technology Implementation', 0.25, 0.7,
                'Proof of concept and vendor evaluation'
            ))

        risks.sort(key=lambda r: r['risk_score'], reverse=True)

        if risks:
            logger.info(f"Risks for '{opportunity.title}': {', '.join(r['risk'] for r in risks)}")
        return risks
