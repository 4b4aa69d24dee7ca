"""
Core module - Configuration, credentials, errors and observability
"""

from .config import Config
from .credentials import CredentialStore
from .exceptions import (
    OfferLensError,
    InvalidURL,
    CredentialMissing,
    BackendError,
    BackendTimeout,
    JobFailed,
    ExtractionStrategyFailed,
)

__all__ = [
    'Config',
    'CredentialStore',
    'OfferLensError',
    'InvalidURL',
    'CredentialMissing',
    'BackendError',
    'BackendTimeout',
    'JobFailed',
    'ExtractionStrategyFailed',
]
