"""
Scenario Engine Module
Scenario generation, Monte Carlo simulation, sensitivity analysis and enterprise scenarios
"""
from scenario_engine.scenario_generator import ScenarioGenerator, generate_scenarios, run_monte_carlo
from scenario_engine.sensitivity_analyzer import SensitivityAnalyzer, perform_sensitivity_analysis
from scenario_engine.enterprise_scenarios import EnterpriseScenarioModeler

__all__ = [
    'ScenarioGenerator',
    'generate_scenarios',
    'run_monte_carlo',
    'SensitivityAnalyzer',
    'perform_sensitivity_analysis',
    'EnterpriseScenarioModeler'
]
