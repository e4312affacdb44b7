"""
Exception types raised by the impact engine
"""


class ImpactEngineError(Exception):
    """Base class for engine errors"""


class UnknownVariableError(ImpactEngineError, KeyError):
    """A variable name has no entry in the adjustment registry"""

    def __init__(self, variable: str):
        super().__init__(variable)
        self.variable = variable

    def __str__(self) -> str:
        return f"Unknown variable: {self.variable}"


class OpportunityDataError(ImpactEngineError, ValueError):
    """An opportunity or business-metrics record could not be read"""
