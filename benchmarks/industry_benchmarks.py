"""
Industry ROI benchmarks and percentile ranking for improvement opportunities
"""
from typing import Dict, Any, Optional

from utils.logger import setup_logger
from utils.config_loader import get_section
from financial_models.opportunity import ImprovementOpportunity

logger = setup_logger(__name__)

# Average ROI (percentage points) for improvements by category
INDUSTRY_AVERAGE_ROI = {
    'financial': 25,
    'operational': 30,
    'marketing': 35,
    'strategic': 20,
    'technology': 40,
    'hr': 18
}


class IndustryBenchmarks:
    """
    Compares an opportunity's ROI against category benchmarks.

    Quartiles are derived from the category average: top = 1.5x,
    bottom = 0.6x (configurable).
    """

    def __init__(self):
        self.config = get_section('benchmarks')
        self.industry = self.config.get('industry', 'General Business')
        self.default_average = self.config.get('default_average_roi', 25)
        self.top_multiple = self.config.get('top_quartile_multiple', 1.5)
        self.bottom_multiple = self.config.get('bottom_quartile_multiple', 0.6)
        self.averages = self.config.get('industry_average_roi') or INDUSTRY_AVERAGE_ROI

    def get_category_benchmarks(self, category: str) -> Dict[str, float]:
        """Average, top-quartile and bottom-quartile ROI for a category"""
        average = self.averages.get(category, self.default_average)
        return {
            'industry_average': average,
            'top_quartile': average * self.top_multiple,
            'bottom_quartile': average * self.bottom_multiple
        }

    def calculate_percentile_rank(self, value: float, benchmarks: Dict[str, float]) -> float:
        """
        Four-band piecewise-linear percentile.

        Below bottom quartile maps to 0-25, bottom-to-average to 25-50,
        average-to-top to 50-90, above top 90 and up. Clamped to [0, 100].
        """
        average = benchmarks['industry_average']
        top = benchmarks['top_quartile']
        bottom = benchmarks['bottom_quartile']

        if average <= 0:
            logger.warning(f"Non-positive industry average {average}, percentile defaults to 50")
            return 50.0

        if value >= top:
            percentile = 90 + (value - top) / top * 10
        elif value >= average:
            percentile = 50 + (value - average) / (top - average) * 40
        elif value >= bottom:
            percentile = 25 + (value - bottom) / (average - bottom) * 25
        else:
            percentile = value / bottom * 25

        return max(0.0, min(100.0, percentile))

    def get_benchmark_comparison(
        self,
        opportunity: ImprovementOpportunity,
        calculated_roi: Optional[float] = None,
        industry: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Rank the opportunity's ROI within its category benchmarks.

        Args:
            opportunity: The opportunity; its estimated_roi is used when present
            calculated_roi: Fallback ROI (percentage points) from the return calculation
            industry: Industry label for the report (default from config)

        Returns:
            Dictionary with benchmark levels, company value and percentile rank
        """
        benchmarks = self.get_category_benchmarks(opportunity.category)

        company_value = opportunity.estimated_roi
        if company_value is None:
            company_value = calculated_roi if calculated_roi is not None else 0.0

        percentile = self.calculate_percentile_rank(company_value, benchmarks)
        logger.info(
            f"Benchmark for {opportunity.category}: ROI {company_value:.1f}% "
            f"vs average {benchmarks['industry_average']:.1f}% -> P{percentile:.0f}"
        )

        return {
            'industry': industry or self.industry,
            'metric': f"{opportunity.category}_improvement_roi",
            **benchmarks,
            'company_value': company_value,
            'percentile_rank': percentile
        }


# Convenience function
def get_benchmark_comparison(
    opportunity: ImprovementOpportunity,
    calculated_roi: Optional[float] = None
) -> Dict[str, Any]:
    """Quick benchmark comparison"""
    return IndustryBenchmarks().get_benchmark_comparison(opportunity, calculated_roi)
