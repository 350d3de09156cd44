"""Core data types shared by the generation and scoring pipeline."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple


FAST_FLIP = 'FAST-FLIP'
HOLD = 'HOLD'
PASS = 'PASS'
BUCKETS = (FAST_FLIP, HOLD, PASS)

# Provenance labels as they appear in source traces
SOURCE_LABELS = {
    'A': 'A',
    'B': 'B',
    'C': 'C',
    'prefix': 'pre',
    'suffix': 'suf',
}


def _as_tuple(values: Optional[Sequence[str]]) -> Tuple[str, ...]:
    if not values:
        return ()
    return tuple(str(v) for v in values)


def _pick(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first present key, accepting camelCase and snake_case spellings."""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


@dataclass(frozen=True)
class WordPacks:
    """Named buckets of word fragments."""
    A: Tuple[str, ...] = ()
    B: Tuple[str, ...] = ()
    C: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> 'WordPacks':
        data = data or {}
        return cls(
            A=_as_tuple(data.get('A')),
            B=_as_tuple(data.get('B')),
            C=_as_tuple(data.get('C')),
        )


@dataclass(frozen=True)
class Multipliers:
    """Prefix and suffix strings applied positionally by templates."""
    prefixes: Tuple[str, ...] = ()
    suffixes: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> 'Multipliers':
        data = data or {}
        return cls(
            prefixes=_as_tuple(data.get('prefixes')),
            suffixes=_as_tuple(data.get('suffixes')),
        )


@dataclass(frozen=True)
class Candidate:
    """A generated domain name together with the fragments it came from."""
    domain: str
    template: str
    sources: Tuple[Tuple[str, str], ...] = ()

    @property
    def trace(self) -> str:
        return ', '.join(f"{label}:{value}" for label, value in self.sources)

    def with_domain(self, domain: str) -> 'Candidate':
        return Candidate(domain=domain, template=self.template, sources=self.sources)


@dataclass(frozen=True)
class Constraints:
    """Lexical constraints for one generation run."""
    max_len: int = 12
    no_hyphens: bool = True
    no_numbers: bool = True
    banned: Tuple[str, ...] = ()
    avoid_ugly_clusters: bool = True

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> 'Constraints':
        """Build constraints from a loose mapping.

        Boolean flags default to True unless explicitly set to False, and a
        missing or zero max length falls back to 12.
        """
        data = data or {}
        return cls(
            max_len=int(_pick(data, 'maxLen', 'max_len', default=0) or 12),
            no_hyphens=_pick(data, 'noHyphens', 'no_hyphens') is not False,
            no_numbers=_pick(data, 'noNumbers', 'no_numbers') is not False,
            banned=_as_tuple(_pick(data, 'banned')),
            avoid_ugly_clusters=_pick(data, 'avoidUglyClusters', 'avoid_ugly_clusters') is not False,
        )


@dataclass(frozen=True)
class PersonaWeights:
    """Per-dimension rubric weights for a buyer persona."""
    brandability: float = 3.5
    pronunciation: float = 2.0
    spelling: float = 1.5
    native_meaning: float = 1.0
    buyer_intent: float = 2.0

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> 'PersonaWeights':
        data = data or {}
        defaults = cls()
        return cls(
            brandability=float(_pick(data, 'brandability', default=defaults.brandability)),
            pronunciation=float(_pick(data, 'pronunciation', default=defaults.pronunciation)),
            spelling=float(_pick(data, 'spelling', default=defaults.spelling)),
            native_meaning=float(_pick(data, 'nativeMeaning', 'native_meaning', default=defaults.native_meaning)),
            buyer_intent=float(_pick(data, 'buyerIntent', 'buyer_intent', default=defaults.buyer_intent)),
        )


@dataclass(frozen=True)
class Persona:
    """A named buyer profile the oracle scores against."""
    id: str
    name: str
    description: str = ''
    weights: PersonaWeights = field(default_factory=PersonaWeights)
    max_len: int = 12
    banned_substrings: Tuple[str, ...] = ()
    recommended_prefixes: Tuple[str, ...] = ()
    recommended_suffixes: Tuple[str, ...] = ()
    notes: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'Persona':
        constraints = _pick(data, 'constraints', default={}) or {}
        persona_id = str(data['id'])
        return cls(
            id=persona_id,
            name=str(_pick(data, 'name', default=persona_id)),
            description=str(_pick(data, 'description', default='')),
            weights=PersonaWeights.from_dict(_pick(data, 'weights')),
            max_len=int(_pick(constraints, 'maxLen', 'max_len', default=0) or 12),
            banned_substrings=_as_tuple(_pick(data, 'bannedSubstrings', 'banned_substrings')),
            recommended_prefixes=_as_tuple(_pick(data, 'recommendedPrefixes', 'recommended_prefixes')),
            recommended_suffixes=_as_tuple(_pick(data, 'recommendedSuffixes', 'recommended_suffixes')),
            notes=_pick(data, 'notes'),
        )


@dataclass
class ScoreResult:
    """Single-persona assessment of one domain."""
    domain: str
    score: float
    bucket: str
    reason: str
    use_case: str
    template_used: Optional[str] = None
    sources: Tuple[Tuple[str, str], ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'domain': self.domain,
            'score': self.score,
            'bucket': self.bucket,
            'reason': self.reason,
            'use_case': self.use_case,
            'templateUsed': self.template_used,
            'sources': ', '.join(f"{label}:{value}" for label, value in self.sources),
        }


@dataclass
class MultiScoreResult:
    """Cross-persona assessment of one domain."""
    domain: str
    best_preset_id: str
    best_preset_name: str
    best_score: float
    avg_score: float
    max_score: float
    bucket: str
    reason: str
    use_case: str
    score_by_preset: Dict[str, float]
    template_used: Optional[str] = None
    sources: Tuple[Tuple[str, str], ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'domain': self.domain,
            'templateUsed': self.template_used,
            'sources': ', '.join(f"{label}:{value}" for label, value in self.sources),
            'bestPresetId': self.best_preset_id,
            'bestPresetName': self.best_preset_name,
            'bestScore': self.best_score,
            'avgScore': self.avg_score,
            'maxScore': self.max_score,
            'bucket': self.bucket,
            'reason': self.reason,
            'use_case': self.use_case,
            'scoreByPreset': dict(self.score_by_preset),
        }


@dataclass
class RunResult:
    """Outcome of a generate-and-score run."""
    results: List[Any]
    total_generated: int
    multi_preset: bool = False
    preset_ids: Tuple[str, ...] = ()

    @property
    def count(self) -> int:
        return len(self.results)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'success': True,
            'count': self.count,
            'totalGenerated': self.total_generated,
            'multiPreset': self.multi_preset,
            'results': [r.to_dict() for r in self.results],
        }
        if self.multi_preset:
            data['presetIds'] = list(self.preset_ids)
        return data
