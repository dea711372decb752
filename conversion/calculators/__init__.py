"""
Calculators Package

Tier resolution and balance arithmetic used to price a certificate.
"""

from .balance import BalanceCalculator
from .tier import TierResolver

__all__ = [
    "TierResolver",
    "BalanceCalculator",
]
