"""
Qualitative market-factor commentary attached to impact analyses
"""
from typing import Dict, Any, List, Optional

from utils.logger import setup_logger
from financial_models.opportunity import ImprovementOpportunity
from risk_engine.categories import (
    MARKET_EXPOSED_CATEGORIES,
    REGULATED_CATEGORIES,
    is_technology_initiative
)

logger = setup_logger(__name__)

DEFAULT_ECONOMIC_OUTLOOK = {
    'impact': 'neutral',
    'weight': 0.1,
    'description': 'Stable economic conditions with moderate growth expectations'
}


def _factor(name: str, impact: str, weight: float, description: str) -> Dict[str, Any]:
    return {'factor': name, 'impact': impact, 'weight': weight, 'description': description}


def get_market_factors(
    opportunity: ImprovementOpportunity,
    market_data: Optional[Dict[str, Any]] = None
) -> List[Dict[str, Any]]:
    """
    Commentary entries for the market context of an opportunity.

    Economic conditions are always present; market_data['economic_outlook']
    (a string or a dict with impact/weight/description) overrides the default.

    Args:
        opportunity: The opportunity being analysed
        market_data: Optional host-supplied market context

    Returns:
        List of {factor, impact, weight, description}
    """
    market_data = market_data or {}

    outlook = dict(DEFAULT_ECONOMIC_OUTLOOK)
    override = market_data.get('economic_outlook')
    if isinstance(override, dict):
        outlook.update(override)
    elif override:
        outlook['description'] = str(override)

    factors = [_factor('Economic Conditions', outlook['impact'], outlook['weight'], outlook['description'])]

    if is_technology_initiative(opportunity.title):
        factors.append(_factor(
            'Digital Transformation Trend', 'positive', 0.2,
            'Strong market trend toward digital solutions'
        ))

    if opportunity.category in MARKET_EXPOSED_CATEGORIES:
        factors.append(_factor(
            'Competitive Pressure', 'positive', 0.15,
            'Competitive pressure rewards differentiation and speed to market'
        ))

    if opportunity.category in REGULATED_CATEGORIES:
        factors.append(_factor(
            'Regulatory Environment', 'neutral', 0.05,
            'Stable regulatory environment with compliance requirements'
        ))

    logger.debug(f"Market factors for '{opportunity.title}': {[f['factor'] for f in factors]}")
    return factors
