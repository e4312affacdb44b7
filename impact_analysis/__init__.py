"""
Impact Analysis Module
Comprehensive opportunity impact analysis combining returns, scenarios, sensitivity and risk
"""
from impact_analysis.records import ComprehensiveImpactAnalysis
from impact_analysis.impact_orchestrator import ImpactOrchestrator, perform_comprehensive_impact_analysis

__all__ = [
    'ComprehensiveImpactAnalysis',
    'ImpactOrchestrator',
    'perform_comprehensive_impact_analysis'
]
