"""
Risk Engine Module
Risk factor derivation and risk assessment for improvement opportunities
"""
from risk_engine.risk_assessor import RiskAssessor

__all__ = [
    'RiskAssessor'
]
