# Utils package initialization
# Contains utility functions and helpers

from .errors import AppError, ValidationError, NotImplementedFeatureError, StoreUnavailableError
from .serialization import safe_json
from .validators import validate_choice, parse_iso_datetime

__all__ = [
    'AppError', 'ValidationError', 'NotImplementedFeatureError', 'StoreUnavailableError',
    'safe_json',
    'validate_choice', 'parse_iso_datetime',
]
