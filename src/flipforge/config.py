"""Configuration loading for flipforge."""

import copy
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from .exceptions import ConfigurationError
from .models import Persona

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/config.yaml"
CONFIG_ENV_VAR = "FLIPFORGE_CONFIG"
API_KEY_ENV_VAR = "OPENAI_API_KEY"

DEFAULT_NICHE_CONTEXTS = {
    'lenders': 'Target: lending companies, mortgage providers, fintech lenders. Value trust, stability, professional lending.',
    'payments': 'Target: payment processors, fintech payments. Value speed, security, seamless transactions.',
    'ads': 'Target: advertising, ad-tech, digital marketing. Value reach, performance, marketing power.',
    'brandable': 'Target: any startup seeking memorable brand. Value short, catchy, versatile names.',
}

# Longer buyer descriptions used when scoring a caller-supplied domain list
DEFAULT_SCORE_CONTEXTS = {
    'lenders': ('The target buyer is a lending company, mortgage provider, or fintech lender. '
                'Value domains that convey trust, financial stability, and professional lending services.'),
    'payments': ('The target buyer is a payments company, payment processor, or fintech payments provider. '
                 'Value domains that convey speed, security, seamless transactions.'),
    'ads': ('The target buyer is an advertising/marketing company, ad-tech platform, or digital marketing agency. '
            'Value domains that convey reach, performance, and marketing power.'),
    'brandable': ('The target buyer is any startup or company seeking a memorable, versatile brand name. '
                  'Value short, catchy, easy-to-remember names with broad appeal.'),
}

DEFAULT_PERSONAS = [
    {
        'id': 'lenders',
        'name': 'Fintech Lenders',
        'description': 'Lending companies, mortgage providers and fintech lenders that value trust and stability.',
        'weights': {'brandability': 3, 'pronunciation': 2, 'spelling': 1.5, 'nativeMeaning': 1.5, 'buyerIntent': 2},
        'constraints': {'maxLen': 12},
        'bannedSubstrings': ['loan', 'cash', 'payday'],
        'recommendedSuffixes': ['lend', 'fund', 'capital'],
    },
    {
        'id': 'payments',
        'name': 'Payments',
        'description': 'Payment processors and checkout platforms that value speed and security.',
        'weights': {'brandability': 3.5, 'pronunciation': 2, 'spelling': 1.5, 'nativeMeaning': 1, 'buyerIntent': 2},
        'constraints': {'maxLen': 10},
        'recommendedPrefixes': ['pay', 'go'],
        'recommendedSuffixes': ['pay', 'flow'],
    },
    {
        'id': 'ads',
        'name': 'Ad-Tech',
        'description': 'Advertising platforms and digital marketing agencies that value reach and performance.',
        'weights': {'brandability': 3.5, 'pronunciation': 2, 'spelling': 1, 'nativeMeaning': 1, 'buyerIntent': 2.5},
        'constraints': {'maxLen': 12},
    },
    {
        'id': 'brandable',
        'name': 'General Brandable',
        'description': 'Any startup seeking a short, catchy and versatile brand name.',
        'constraints': {'maxLen': 10},
    },
]


@dataclass
class OracleSettings:
    """Connection and request settings for the scoring oracle."""
    api_url: str = 'https://api.openai.com/v1/chat/completions'
    api_key: Optional[str] = None
    model: str = 'gpt-4o-mini'
    temperature: float = 0.3
    single_max_tokens: int = 4000
    multi_max_tokens: int = 8000
    timeout: float = 60.0
    max_retries: int = 3
    base_delay: float = 1.0


@dataclass
class PipelineSettings:
    """Limits applied to a single generate-and-score run."""
    max_candidates: int = 10000
    default_top_k: int = 100
    max_top_k: int = 300
    batch_size: int = 80
    multi_batch_size: int = 60
    min_presets: int = 1
    max_presets: int = 6
    max_score_domains: int = 120


@dataclass
class Settings:
    """Top-level configuration handed to the pipeline at construction."""
    oracle: OracleSettings = field(default_factory=OracleSettings)
    pipeline: PipelineSettings = field(default_factory=PipelineSettings)
    niche_contexts: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_NICHE_CONTEXTS))
    score_contexts: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_SCORE_CONTEXTS))
    personas: List[Persona] = field(
        default_factory=lambda: [Persona.from_dict(p) for p in DEFAULT_PERSONAS]
    )

    def persona_map(self) -> Dict[str, Persona]:
        return {p.id: p for p in self.personas}

    def require_api_key(self) -> str:
        if not self.oracle.api_key:
            raise ConfigurationError(f"API key not configured. Set {API_KEY_ENV_VAR}.")
        return self.oracle.api_key


def load_config(config_path: Optional[str] = None) -> dict:
    """Load configuration from YAML file."""
    path = Path(config_path or os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH)
    if not path.exists():
        if config_path:
            raise ConfigurationError(f"Config file not found: {path}")
        return {}
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid config file {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")
    logger.debug("Loaded configuration from %s", path)
    return data


def _apply(target: Any, overrides: Mapping[str, Any], section: str) -> None:
    for key, value in overrides.items():
        if not hasattr(target, key):
            raise ConfigurationError(f"Unknown {section} setting: {key}")
        setattr(target, key, value)


def build_settings(data: Optional[Mapping[str, Any]] = None, env: Optional[Mapping[str, str]] = None) -> Settings:
    """Merge a raw config mapping and the environment over the defaults."""
    data = copy.deepcopy(dict(data or {}))
    env = os.environ if env is None else env
    settings = Settings()

    _apply(settings.oracle, data.get('oracle') or {}, 'oracle')
    _apply(settings.pipeline, data.get('pipeline') or {}, 'pipeline')

    contexts = data.get('niche_contexts')
    if contexts:
        settings.niche_contexts.update({str(k): str(v) for k, v in contexts.items()})

    score_contexts = data.get('score_contexts')
    if score_contexts:
        settings.score_contexts.update({str(k): str(v) for k, v in score_contexts.items()})

    personas = data.get('personas')
    if personas is not None:
        try:
            settings.personas = [Persona.from_dict(p) for p in personas]
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid persona definition: {e}") from e

    if env.get(API_KEY_ENV_VAR):
        settings.oracle.api_key = env[API_KEY_ENV_VAR]

    return settings


def get_settings(config_path: Optional[str] = None) -> Settings:
    """Load the YAML config (if any) and build settings from it."""
    return build_settings(load_config(config_path))
