"""Parse oracle responses and map them back onto submitted candidates."""

import json
import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..models import (
    BUCKETS, FAST_FLIP, HOLD, PASS,
    Candidate, MultiScoreResult, Persona, ScoreResult,
)

logger = logging.getLogger(__name__)

MAX_REASON_LEN = 200
MAX_USE_CASE_LEN = 50

SCORING_FAILED = 'Scoring failed'
SCORING_ERROR = 'Error'

_FENCE_OPEN = re.compile(r'```(?:json)?\n?')
_LEADING_NUMBER = re.compile(r'^\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?')


def strip_code_fence(content: str) -> str:
    """Remove a surrounding markdown code fence, if present."""
    text = content.strip()
    if text.startswith('```'):
        text = _FENCE_OPEN.sub('', text)
        if text.endswith('```'):
            text = text[:-3]
        text = text.strip()
    return text


def parse_json_array(content: str) -> Optional[List[Any]]:
    """Parse the oracle body as a JSON array, or return None."""
    try:
        data = json.loads(strip_code_fence(content))
    except (json.JSONDecodeError, TypeError) as e:
        logger.warning("Failed to parse oracle response: %s", e)
        return None
    if not isinstance(data, list):
        logger.warning("Oracle response is %s, expected a JSON array", type(data).__name__)
        return None
    return data


def domain_key(domain: Any) -> str:
    """Lower-case a domain and drop an echoed ``.com`` suffix."""
    key = str(domain or '').strip().lower()
    if key.endswith('.com'):
        key = key[:-len('.com')]
    return key


def coerce_score(value: Any) -> float:
    """Read a loosely typed score and clamp it to [0, 10]; junk becomes 0."""
    if isinstance(value, bool) or value is None:
        return 0.0
    if isinstance(value, (int, float)):
        score = float(value)
    else:
        text = str(value)
        try:
            score = float(text)
        except ValueError:
            match = _LEADING_NUMBER.match(text)
            if not match:
                return 0.0
            score = float(match.group(0))
    if math.isnan(score):
        return 0.0
    return min(10.0, max(0.0, score))


def coerce_bucket(value: Any) -> str:
    return value if value in BUCKETS else PASS


def _text(value: Any, limit: int) -> str:
    if not value:
        return ''
    return str(value)[:limit]


def round1(value: float) -> float:
    """Round half up to one decimal place."""
    return math.floor(value * 10 + 0.5) / 10


@dataclass(frozen=True)
class Assessment:
    """A validated score for one domain under one persona."""
    score: float = 0.0
    bucket: str = PASS
    reason: str = ''
    use_case: str = ''

    @classmethod
    def parse(cls, raw: Any) -> 'Assessment':
        if not isinstance(raw, Mapping):
            return cls()
        return cls(
            score=coerce_score(raw.get('score')),
            bucket=coerce_bucket(raw.get('bucket')),
            reason=_text(raw.get('reason'), MAX_REASON_LEN),
            use_case=_text(raw.get('use_case'), MAX_USE_CASE_LEN),
        )


@dataclass(frozen=True)
class OracleEntry:
    """A well-formed oracle element, resolved at the parse boundary.

    ``by_preset`` is None when the element carried no usable
    ``resultsByPreset`` mapping.
    """
    domain: str
    key: str
    assessment: Assessment
    by_preset: Optional[Dict[str, Assessment]] = None

    @classmethod
    def parse(cls, raw: Any) -> Optional['OracleEntry']:
        """Return an entry, or None for elements that are not usable objects."""
        if not isinstance(raw, Mapping) or not raw.get('domain'):
            return None

        by_preset = None
        results = raw.get('resultsByPreset')
        if isinstance(results, Mapping):
            by_preset = {str(pid): Assessment.parse(sub) for pid, sub in results.items()}

        return cls(
            domain=str(raw['domain']),
            key=domain_key(raw['domain']),
            assessment=Assessment.parse(raw),
            by_preset=by_preset,
        )


def parse_entries(raw_items: Sequence[Any]) -> List[OracleEntry]:
    entries = []
    for raw in raw_items:
        entry = OracleEntry.parse(raw)
        if entry is None:
            logger.debug("Skipping malformed oracle element: %r", raw)
            continue
        entries.append(entry)
    return entries


def index_entries(entries: Sequence[OracleEntry]) -> Dict[str, OracleEntry]:
    """Map normalized domain keys to entries; later duplicates win."""
    return {entry.key: entry for entry in entries}


def final_bucket(best_score: float, best_bucket: str) -> str:
    """Re-derive the overall bucket from the winning persona's score.

    In the 7.0-7.99 band the winner's own label decides between FAST-FLIP
    and HOLD.
    """
    if best_score >= 8.0:
        return FAST_FLIP
    if best_score >= 7.0:
        return FAST_FLIP if best_bucket == FAST_FLIP else HOLD
    if best_score >= 4.0:
        return HOLD
    return PASS


class ScoreReconciler:
    """Turns raw oracle output into strict result records.

    Every submitted candidate gets exactly one result, whatever the oracle
    returned.
    """

    def __init__(
        self,
        preset_ids: Sequence[str] = (),
        persona_map: Optional[Mapping[str, Persona]] = None
    ):
        self.preset_ids = list(preset_ids)
        self.persona_map = dict(persona_map or {})

    @property
    def multi_preset(self) -> bool:
        return bool(self.preset_ids)

    def preset_name(self, preset_id: str) -> str:
        persona = self.persona_map.get(preset_id)
        if persona and persona.name:
            return persona.name
        return preset_id

    # Single persona

    def failure_single(self, batch: Sequence[Candidate], reason: str = SCORING_FAILED) -> List[ScoreResult]:
        return [
            ScoreResult(
                domain=c.domain,
                score=0.0,
                bucket=PASS,
                reason=reason,
                use_case='',
                template_used=c.template,
                sources=c.sources,
            )
            for c in batch
        ]

    def reconcile_single(self, batch: Sequence[Candidate], content: str) -> List[ScoreResult]:
        raw_items = parse_json_array(content)
        if raw_items is None:
            return self.failure_single(batch)

        index = index_entries(parse_entries(raw_items))
        results = []
        for c in batch:
            entry = index.get(c.domain.lower())
            if entry is None:
                results.extend(self.failure_single([c]))
                continue
            a = entry.assessment
            results.append(ScoreResult(
                domain=c.domain,
                score=a.score,
                bucket=a.bucket,
                reason=a.reason,
                use_case=a.use_case,
                template_used=c.template,
                sources=c.sources,
            ))
        return results

    # Multi persona

    def failure_multi(self, batch: Sequence[Candidate], reason: str = SCORING_FAILED) -> List[MultiScoreResult]:
        first = self.preset_ids[0] if self.preset_ids else ''
        return [
            MultiScoreResult(
                domain=c.domain,
                best_preset_id=first,
                best_preset_name=self.preset_name(first),
                best_score=0.0,
                avg_score=0.0,
                max_score=0.0,
                bucket=PASS,
                reason=reason,
                use_case='',
                score_by_preset={pid: 0.0 for pid in self.preset_ids},
                template_used=c.template,
                sources=c.sources,
            )
            for c in batch
        ]

    def aggregate(self, domain: str, by_preset: Mapping[str, Assessment], candidate: Optional[Candidate] = None) -> MultiScoreResult:
        """Compute cross-persona aggregates for one domain."""
        best_score = 0.0
        best_preset_id = self.preset_ids[0] if self.preset_ids else ''
        best = Assessment()
        score_by_preset: Dict[str, float] = {}
        scores = []

        for pid in self.preset_ids:
            assessment = by_preset.get(pid) or Assessment()
            score_by_preset[pid] = round1(assessment.score)
            scores.append(assessment.score)

            # Strict comparison: the first persona keeps ties
            if assessment.score > best_score:
                best_score = assessment.score
                best_preset_id = pid
                best = assessment

        avg_score = sum(scores) / len(scores) if scores else 0.0

        return MultiScoreResult(
            domain=domain,
            best_preset_id=best_preset_id,
            best_preset_name=self.preset_name(best_preset_id),
            best_score=round1(best_score),
            avg_score=round1(avg_score),
            max_score=round1(best_score),
            bucket=final_bucket(best_score, best.bucket),
            reason=best.reason,
            use_case=best.use_case,
            score_by_preset=score_by_preset,
            template_used=candidate.template if candidate else None,
            sources=candidate.sources if candidate else (),
        )

    def reconcile_multi(self, batch: Sequence[Candidate], content: str) -> List[MultiScoreResult]:
        raw_items = parse_json_array(content)
        if raw_items is None:
            return self.failure_multi(batch)

        index = index_entries(parse_entries(raw_items))
        results = []
        for c in batch:
            entry = index.get(c.domain.lower())
            if entry is None or entry.by_preset is None:
                results.extend(self.failure_multi([c]))
                continue
            results.append(self.aggregate(c.domain, entry.by_preset, candidate=c))
        return results

    # Free-form domain lists

    def validate_entries(self, content: str) -> Optional[List[Any]]:
        """Validate every oracle element without a submitted batch to match against.

        Returns None when the body cannot be parsed.
        """
        raw_items = parse_json_array(content)
        if raw_items is None:
            return None

        results: List[Any] = []
        for entry in parse_entries(raw_items):
            if self.multi_preset:
                results.append(self.aggregate(entry.key, entry.by_preset or {}))
            else:
                a = entry.assessment
                results.append(ScoreResult(
                    domain=entry.domain,
                    score=a.score,
                    bucket=a.bucket,
                    reason=a.reason,
                    use_case=a.use_case,
                ))
        return results
