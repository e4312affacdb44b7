"""
Utilities Module
Logging, configuration and exception types
"""
from utils.logger import setup_logger, LogContext
from utils.config_loader import load_config, get_section
from utils.exceptions import ImpactEngineError, UnknownVariableError, OpportunityDataError

__all__ = [
    'setup_logger',
    'LogContext',
    'load_config',
    'get_section',
    'ImpactEngineError',
    'UnknownVariableError',
    'OpportunityDataError'
]
