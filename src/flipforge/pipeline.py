"""Generate, filter, dedupe, score and rank domain candidates."""

import logging
import threading
from typing import Any, Callable, Iterable, List, Mapping, Optional, Sequence, Union

from .config import Settings
from .exceptions import OracleError, OracleResponseError, PresetCountError, ValidationError
from .generators import CandidateDeduplicator, TemplateExpander
from .models import Candidate, Constraints, Multipliers, Persona, RunResult, WordPacks
from .scoring.batching import SequentialDispatcher, batch_size_for, chunk
from .scoring.oracle import ScoringOracle
from .scoring.prompts import (
    MULTI_SYSTEM_PROMPT, SINGLE_SYSTEM_PROMPT,
    build_multi_prompt, build_single_prompt, niche_context,
)
from .scoring.ranking import rank_and_truncate
from .scoring.reconciler import SCORING_ERROR, SCORING_FAILED, ScoreReconciler
from .utils.constraint_filter import ConstraintFilter

logger = logging.getLogger(__name__)

PersonaInput = Union[Persona, Mapping[str, Any]]


def _as_persona(p: PersonaInput) -> Persona:
    return p if isinstance(p, Persona) else Persona.from_dict(p)


def generate_candidates(
    packs: Union[WordPacks, Mapping[str, Any]],
    multipliers: Union[Multipliers, Mapping[str, Any], None] = None,
    templates: Optional[Sequence[str]] = None,
    constraints: Union[Constraints, Mapping[str, Any], None] = None,
    max_candidates: int = 10000
) -> List[Candidate]:
    """Expand templates, filter and dedupe, without calling the oracle."""
    if not isinstance(packs, WordPacks):
        packs = WordPacks.from_dict(packs)
    if not isinstance(multipliers, Multipliers):
        multipliers = Multipliers.from_dict(multipliers)
    if not isinstance(constraints, Constraints):
        constraints = Constraints.from_dict(constraints)

    expander = TemplateExpander(packs, multipliers)
    constraint_filter = ConstraintFilter(constraints)
    deduplicator = CandidateDeduplicator(max_candidates=max_candidates)

    candidates = deduplicator.dedupe(constraint_filter.filter(expander.generate(templates)))
    logger.info("Generated %d unique candidates", len(candidates))
    return candidates


class DomainAgent:
    """Runs the full candidate pipeline against a scoring oracle.

    The oracle only needs a ``complete(system_prompt, user_prompt,
    max_tokens)`` method returning the raw message text. When none is given
    an HTTP client is built from the settings, which fails with
    ``ConfigurationError`` if no API key is configured.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        oracle=None,
        dispatcher=None,
        cancel_event: Optional[threading.Event] = None,
        progress_callback: Optional[Callable[[int, int], None]] = None
    ):
        self.settings = settings or Settings()
        self.cancel_event = cancel_event
        self.oracle = oracle or ScoringOracle.from_settings(self.settings, cancel_event=cancel_event)
        self.dispatcher = dispatcher or SequentialDispatcher(
            cancel_event=cancel_event, progress_callback=progress_callback
        )

    # Inputs

    def resolve_personas(self, personas: Optional[Iterable[PersonaInput]] = None) -> dict:
        """Configured personas overlaid with any supplied by the caller.

        Entries without an id are skipped.

        Raises:
            ValidationError: If a persona has malformed fields.
        """
        persona_map = self.settings.persona_map()
        for p in personas or ():
            if not isinstance(p, Persona) and not (isinstance(p, Mapping) and p.get('id')):
                logger.debug("Skipping persona without an id: %r", p)
                continue
            try:
                persona = _as_persona(p)
            except (KeyError, TypeError, ValueError) as e:
                raise ValidationError(f"Invalid persona {p.get('id')!r}: {e}") from e
            persona_map[persona.id] = persona
        return persona_map

    def validate_presets(self, preset_ids: Optional[Sequence[str]]) -> List[str]:
        """Return the requested persona ids, empty for single-persona mode."""
        if preset_ids is None:
            return []
        ids = [str(pid) for pid in preset_ids]
        if not ids:
            return []
        limits = self.settings.pipeline
        if not limits.min_presets <= len(ids) <= limits.max_presets:
            raise PresetCountError(len(ids), limits.min_presets, limits.max_presets)
        return ids

    # Generation

    def generate_candidates(
        self,
        packs: Union[WordPacks, Mapping[str, Any]],
        multipliers: Union[Multipliers, Mapping[str, Any], None] = None,
        templates: Optional[Sequence[str]] = None,
        constraints: Union[Constraints, Mapping[str, Any], None] = None
    ) -> List[Candidate]:
        return generate_candidates(
            packs, multipliers, templates, constraints,
            max_candidates=self.settings.pipeline.max_candidates
        )

    # Batch scoring

    def _score_single_batch(self, batch: Sequence[Candidate], niche: str, reconciler: ScoreReconciler):
        prompt = build_single_prompt(batch, niche)
        try:
            content = self.oracle.complete(
                SINGLE_SYSTEM_PROMPT, prompt, max_tokens=self.settings.oracle.single_max_tokens
            )
        except OracleResponseError as e:
            logger.error("Batch scoring failed: %s", e)
            return reconciler.failure_single(batch, SCORING_FAILED)
        except OracleError as e:
            logger.error("Batch scoring error: %s", e)
            return reconciler.failure_single(batch, SCORING_ERROR)
        return reconciler.reconcile_single(batch, content)

    def _score_multi_batch(self, batch: Sequence[Candidate], preset_ids: Sequence[str], persona_map, reconciler: ScoreReconciler):
        prompt = build_multi_prompt(batch, preset_ids, persona_map)
        try:
            content = self.oracle.complete(
                MULTI_SYSTEM_PROMPT, prompt, max_tokens=self.settings.oracle.multi_max_tokens
            )
        except OracleError as e:
            logger.error("Multi-preset batch error: %s", e)
            return reconciler.failure_multi(batch)
        return reconciler.reconcile_multi(batch, content)

    def score_candidates(
        self,
        candidates: Sequence[Candidate],
        mode: Optional[str] = None,
        preset_ids: Sequence[str] = (),
        persona_map: Optional[Mapping[str, Persona]] = None
    ) -> List[Any]:
        """Score candidates batch by batch; one result per candidate, unranked."""
        limits = self.settings.pipeline
        persona_map = persona_map or {}
        reconciler = ScoreReconciler(preset_ids, persona_map)
        size = batch_size_for(len(preset_ids), limits.batch_size, limits.multi_batch_size)
        batches = list(chunk(candidates, size))
        logger.info("Scoring %d candidates in %d batches of up to %d", len(candidates), len(batches), size)

        if preset_ids:
            def score_batch(batch):
                return self._score_multi_batch(batch, preset_ids, persona_map, reconciler)
        else:
            niche = niche_context(mode or 'brandable', self.settings.niche_contexts)

            def score_batch(batch):
                return self._score_single_batch(batch, niche, reconciler)

        return self.dispatcher.run(batches, score_batch)

    # Operations

    def generate_and_score(
        self,
        packs: Union[WordPacks, Mapping[str, Any]],
        multipliers: Union[Multipliers, Mapping[str, Any], None] = None,
        templates: Optional[Sequence[str]] = None,
        constraints: Union[Constraints, Mapping[str, Any], None] = None,
        mode: Optional[str] = None,
        top_k: Optional[int] = None,
        preset_ids: Optional[Sequence[str]] = None,
        personas: Optional[Iterable[PersonaInput]] = None
    ) -> RunResult:
        """Generate, filter, dedupe, score and rank.

        Oracle failures never abort the run: the affected batch is reported
        as zero-score PASS records instead.

        Raises:
            PresetCountError: If more than the allowed number of personas
                is requested.
            CandidateLimitError: If the packs and templates produce too
                many unique candidates.
            PipelineCancelled: If ``cancel_event`` is set between batches.
        """
        ids = self.validate_presets(preset_ids)
        persona_map = self.resolve_personas(personas) if ids else {}

        candidates = self.generate_candidates(packs, multipliers, templates, constraints)
        if not candidates:
            return RunResult(results=[], total_generated=0, multi_preset=bool(ids), preset_ids=tuple(ids))

        scores = self.score_candidates(candidates, mode=mode, preset_ids=ids, persona_map=persona_map)

        limits = self.settings.pipeline
        results = rank_and_truncate(scores, top_k, limits.default_top_k, limits.max_top_k)
        return RunResult(
            results=results,
            total_generated=len(candidates),
            multi_preset=bool(ids),
            preset_ids=tuple(ids),
        )

    def score_domains(
        self,
        domains: Sequence[str],
        mode: Optional[str] = None,
        preset_ids: Optional[Sequence[str]] = None,
        personas: Optional[Iterable[PersonaInput]] = None
    ) -> List[Any]:
        """Score a caller-supplied domain list in a single oracle call.

        Unlike ``generate_and_score`` every oracle failure propagates.
        Results follow the oracle's own ordering.
        """
        domains = [str(d).strip() for d in domains if str(d).strip()]
        limit = self.settings.pipeline.max_score_domains
        if not domains:
            raise ValidationError("Missing or empty domains list")
        if len(domains) > limit:
            raise ValidationError(f"Too many domains. Maximum {limit} per request. Got {len(domains)}.")

        ids = self.validate_presets(preset_ids)
        batch = [Candidate(domain=d, template='') for d in domains]

        if ids:
            persona_map = self.resolve_personas(personas)
            reconciler = ScoreReconciler(ids, persona_map)
            content = self.oracle.complete(
                MULTI_SYSTEM_PROMPT,
                build_multi_prompt(batch, ids, persona_map),
                max_tokens=self.settings.oracle.multi_max_tokens
            )
        else:
            reconciler = ScoreReconciler()
            niche = niche_context(mode or 'brandable', self.settings.score_contexts)
            content = self.oracle.complete(
                SINGLE_SYSTEM_PROMPT,
                build_single_prompt(batch, niche),
                max_tokens=self.settings.oracle.single_max_tokens
            )

        results = reconciler.validate_entries(content)
        if results is None:
            raise OracleResponseError("Failed to parse AI response", body=content)
        return results
