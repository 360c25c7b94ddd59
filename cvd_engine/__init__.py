"""
CVD COMMISSION ENGINE
Tranche and progressive (palier-by-palier) commission calculation
"""

from .exceptions import CommissionEngineError, ConfigurationError, ReconciliationError, UnknownProductError
from .models import CalculationRequest, CommissionReport, CommissionStatement, Sale
from .processor import CommissionProcessor

__all__ = [
    'CommissionProcessor',
    'CalculationRequest',
    'CommissionReport',
    'CommissionStatement',
    'Sale',
    'CommissionEngineError',
    'ConfigurationError',
    'ReconciliationError',
    'UnknownProductError',
]
