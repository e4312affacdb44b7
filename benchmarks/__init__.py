"""
Benchmarks Module
Industry ROI benchmarks and market-factor commentary
"""
from benchmarks.industry_benchmarks import IndustryBenchmarks, get_benchmark_comparison
from benchmarks.market_factors import get_market_factors

__all__ = [
    'IndustryBenchmarks',
    'get_benchmark_comparison',
    'get_market_factors'
]
