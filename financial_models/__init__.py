"""
Financial Models Module
Return calculations, variable adjustments and opportunity records
"""
from financial_models.models import (
    ReturnCalculationInputs,
    ReturnCalculationResults,
    VariableRange,
    Correlation,
    SensitivityFactor,
    ScenarioConfiguration,
    NOT_ACHIEVED
)
from financial_models.opportunity import ImprovementOpportunity, BusinessMetrics
from financial_models.return_calculator import ReturnCalculator, calculate_roi
from financial_models.variables import VARIABLE_REGISTRY, apply_variable, read_base_value

__all__ = [
    'ReturnCalculationInputs',
    'ReturnCalculationResults',
    'VariableRange',
    'Correlation',
    'SensitivityFactor',
    'ScenarioConfiguration',
    'NOT_ACHIEVED',
    'ImprovementOpportunity',
    'BusinessMetrics',
    'ReturnCalculator',
    'calculate_roi',
    'VARIABLE_REGISTRY',
    'apply_variable',
    'read_base_value'
]
