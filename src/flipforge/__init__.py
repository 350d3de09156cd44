"""flipforge - generate, filter and score brandable domain names."""

from .config import Settings, build_settings, get_settings
from .models import Candidate, Constraints, Multipliers, Persona, RunResult, WordPacks
from .pipeline import DomainAgent

__version__ = "0.1.0"

__all__ = [
    'Candidate',
    'Constraints',
    'DomainAgent',
    'Multipliers',
    'Persona',
    'RunResult',
    'Settings',
    'WordPacks',
    'build_settings',
    'get_settings',
]
