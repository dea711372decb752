"""
OFFSEASON CERTIFICATE CONVERSION ENGINE
"""

from .config import Settings
from .errors import ConversionError, PartialFailure
from .models import Certificate, ConversionRequest, ConversionResult
from .processor import CertificateProcessor

__all__ = [
    'CertificateProcessor',
    'Settings',
    'Certificate',
    'ConversionRequest',
    'ConversionResult',
    'ConversionError',
    'PartialFailure',
]
