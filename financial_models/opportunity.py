"""
Input records supplied by the host system: improvement opportunities and baseline business metrics
"""
from dataclasses import dataclass, field, asdict
from typing import Dict, Any, Optional

from utils.exceptions import OpportunityDataError

DIFFICULTY_LEVELS = ('low', 'medium', 'high', 'very_high')


def _number(value: Any, name: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise OpportunityDataError(f"{name} must be numeric, got {value!r}") from None


def _amount(section: Any) -> Any:
    """Impact estimates arrive either as plain numbers or as {'amount': n}"""
    if isinstance(section, dict):
        return section.get('amount', section.get('percentage', 0))
    return section


@dataclass
class ImprovementOpportunity:
    """
    A proposed improvement with its estimated impact.

    Amounts are annual money values; confidence is a 0-1 fraction and
    estimated_roi is in percentage points.
    """
    id: str
    title: str
    category: str
    confidence: float
    revenue_increase: float
    cost_reduction: float
    investment_required: float
    difficulty: str = 'medium'
    estimated_roi: Optional[float] = None
    description: str = ''

    @property
    def annual_benefit(self) -> float:
        return self.revenue_increase + self.cost_reduction

    @classmethod
    def from_dict(cls, record: Dict[str, Any]) -> 'ImprovementOpportunity':
        """
        Build from a host record.

        Accepts flat keys or the nested layout
        {'impact_estimate': {'revenue_increase': {'amount'}, 'cost_reduction': {'amount'},
        'roi': {'percentage'}}, 'implementation_requirements': {'investment_required', 'difficulty'}}.

        Raises:
            OpportunityDataError: on missing or non-numeric fields
        """
        if not isinstance(record, dict):
            raise OpportunityDataError(f"Opportunity record must be a mapping, got {type(record).__name__}")

        impact = record.get('impact_estimate', {})
        requirements = record.get('implementation_requirements', {})

        try:
            revenue = _amount(record['revenue_increase'] if 'revenue_increase' in record else impact['revenue_increase'])
            savings = _amount(record['cost_reduction'] if 'cost_reduction' in record else impact['cost_reduction'])
            investment = record.get('investment_required', requirements.get('investment_required'))
            if investment is None:
                raise KeyError('investment_required')
            title = record['title']
            category = record['category']
        except (KeyError, TypeError) as e:
            raise OpportunityDataError(f"Opportunity record missing field {e}") from None

        estimated_roi = record.get('estimated_roi')
        if estimated_roi is None and 'roi' in impact:
            estimated_roi = _amount(impact['roi'])

        return cls(
            id=str(record.get('id', '')),
            title=str(title),
            category=str(category),
            confidence=_number(record.get('confidence', 0.5), 'confidence'),
            revenue_increase=_number(revenue, 'revenue_increase'),
            cost_reduction=_number(savings, 'cost_reduction'),
            investment_required=_number(investment, 'investment_required'),
            difficulty=str(record.get('difficulty', requirements.get('difficulty', 'medium'))),
            estimated_roi=None if estimated_roi is None else _number(estimated_roi, 'estimated_roi'),
            description=str(record.get('description', ''))
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BusinessMetrics:
    """Baseline business figures; margins are fractions"""
    industry: str = 'General Business'
    annual_revenue: float = 0.0
    gross_margin: float = 0.0
    net_margin: float = 0.0
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, record: Optional[Dict[str, Any]]) -> 'BusinessMetrics':
        if record is None:
            return cls()
        if not isinstance(record, dict):
            raise OpportunityDataError(f"Business metrics must be a mapping, got {type(record).__name__}")

        known = {'industry', 'annual_revenue', 'gross_margin', 'net_margin'}
        return cls(
            industry=str(record.get('industry', 'General Business')),
            annual_revenue=_number(record.get('annual_revenue', 0.0), 'annual_revenue'),
            gross_margin=_number(record.get('gross_margin', 0.0), 'gross_margin'),
            net_margin=_number(record.get('net_margin', 0.0), 'net_margin'),
            extra={k: v for k, v in record.items() if k not in known}
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
