"""
Risk factor adjustment tables by implementation difficulty and opportunity category.

Values are additive bumps to the base risk factor (a 0-1 fraction). The
engine reads overrides from the 'risk' section of engine_assumptions.yaml.
"""

DIFFICULTY_ADJUSTMENTS = {
    'low': 0.05,
    'medium': 0.10,
    'high': 0.20,
    'very_high': 0.30
}

CATEGORY_ADJUSTMENTS = {
    'strategic': 0.10,
    'marketing': 0.15,
    'financial': -0.05
}

# Categories exposed to market-condition risk and competitive commentary
MARKET_EXPOSED_CATEGORIES = ('marketing', 'strategic')

# Categories that draw regulatory-environment commentary
REGULATED_CATEGORIES = ('operational', 'financial')

TECHNOLOGY_KEYWORDS = ('digital', 'automation')


def is_technology_initiative(title: str) -> bool:
    lowered = (title or '').lower()
    return any(keyword in lowered for keyword in TECHNOLOGY_KEYWORDS)
