"""Rubric prompts and persona rendering for the scoring oracle."""

from typing import Mapping, Sequence

from ..models import Candidate, Persona

SINGLE_SYSTEM_PROMPT = 'You are an expert domain appraiser. Return ONLY valid JSON array.'
MULTI_SYSTEM_PROMPT = (
    'You are an expert domain appraiser. Score domains against multiple buyer personas. '
    'Return ONLY valid JSON array.'
)

SCORING_PROMPT = """You are an expert domain name appraiser. Score each domain for resale value and brandability.

SCORING RUBRIC (total 0-10):
- Brandability (0-3.5): Short, clean, "company name" feel. Premium if 6-10 chars, one or two syllables.
- Pronunciation (0-2): One obvious way to say it aloud. No ambiguity.
- Spelling (0-1.5): One obvious way to spell it. No confusion with homophones.
- Native meaning (0-1): No weird, negative, or embarrassing connotations in English.
- Buyer intent (0-2): Clear fit for the target niche described below.

PENALTIES (subtract from total):
- Contains hyphens or numbers: -2
- Awkward consonant clusters (e.g., "xkcd", "bdfg"): -1
- Spam/scam/compliance red flags (e.g., "guarantee", "instant", "free"): -1 to -3
- Trademark-like words: -2 or PASS

BUCKETS:
- FAST-FLIP: Score >= 7 (high resale potential, move quickly)
- HOLD: Score 4-6.9 (decent value, may need right buyer)
- PASS: Score < 4 (not worth pursuing)

OUTPUT FORMAT:
Return ONLY a valid JSON array with no extra text. Each element:
{{"domain": "example.com", "score": 7.5, "bucket": "FAST-FLIP", "reason": "Short, memorable, clear pronunciation", "use_case": "B2B fintech"}}

TARGET NICHE:
{niche}

DOMAINS TO SCORE:
{domains}"""

MULTI_PRESET_PROMPT = """You are an expert domain name appraiser. Score each domain against MULTIPLE buyer personas.

For each domain, evaluate it from each persona's perspective using their specific weights and preferences.

SCORING RUBRIC (adjusted by preset weights, total 0-10):
- Brandability: Short, clean, "company name" feel
- Pronunciation: One obvious way to say it aloud
- Spelling: One obvious way to spell it
- Native meaning: No weird or negative connotations
- Buyer intent: Fit for the specific persona's niche

PENALTIES:
- Hyphens or numbers: -2
- Awkward consonant clusters: -1
- Spam/scam red flags: -1 to -3

BUCKETS (per preset):
- FAST-FLIP: Score >= 7
- HOLD: Score 4-6.9
- PASS: Score < 4

OUTPUT FORMAT:
Return ONLY a valid JSON array. Each element:
{{
  "domain": "example.com",
  "resultsByPreset": {{
    "PRESET_ID_1": {{"score": 7.5, "bucket": "FAST-FLIP", "reason": "...", "use_case": "..."}},
    "PRESET_ID_2": {{"score": 6.0, "bucket": "HOLD", "reason": "...", "use_case": "..."}}
  }}
}}

BUYER PERSONAS:
{personas}

DOMAINS TO SCORE:
{domains}"""

FALLBACK_DESCRIPTION = 'General brandable domains'


def _fmt(value: float) -> str:
    """Render weights without a trailing .0 (3.5 -> 3.5, 2.0 -> 2)."""
    return f"{value:g}"


def niche_context(mode: str, contexts: Mapping[str, str], default_mode: str = 'brandable') -> str:
    """Pick the niche context for a mode key, falling back to the default mode."""
    if mode in contexts:
        return contexts[mode]
    return contexts.get(default_mode, '')


def placeholder_persona(persona_id: str, position: int) -> Persona:
    """Stand-in for a requested persona the caller did not define."""
    return Persona(id=persona_id, name=f"Preset {position + 1}", description=FALLBACK_DESCRIPTION)


def render_persona(persona: Persona, position: int) -> str:
    w = persona.weights
    lines = [
        f'{position + 1}) ID: "{persona.id}" - {persona.name}',
        f"   Description: {persona.description or 'Brandable domains'}",
        f"   Max length: {persona.max_len}",
        f"   Weights: brandability={_fmt(w.brandability)}, pronunciation={_fmt(w.pronunciation)}, "
        f"spelling={_fmt(w.spelling)}, meaning={_fmt(w.native_meaning)}, buyerIntent={_fmt(w.buyer_intent)}",
    ]

    banned = ', '.join(persona.banned_substrings[:5])
    prefixes = ', '.join(persona.recommended_prefixes[:3])
    suffixes = ', '.join(persona.recommended_suffixes[:3])
    if banned:
        lines.append(f"   Avoid: {banned}")
    if prefixes:
        lines.append(f"   Prefer prefixes: {prefixes}")
    if suffixes:
        lines.append(f"   Prefer suffixes: {suffixes}")
    if persona.notes:
        lines.append(f"   Notes: {persona.notes}")

    return '\n'.join(lines)


def render_personas(preset_ids: Sequence[str], persona_map: Mapping[str, Persona]) -> str:
    blocks = []
    for i, persona_id in enumerate(preset_ids):
        persona = persona_map.get(persona_id) or placeholder_persona(persona_id, i)
        blocks.append(render_persona(persona, i))
    return '\n\n'.join(blocks)


def render_domains(candidates: Sequence[Candidate]) -> str:
    return '\n'.join(f"{c.domain} (template: {c.template})" if c.template else c.domain for c in candidates)


def build_single_prompt(candidates: Sequence[Candidate], niche: str) -> str:
    return SCORING_PROMPT.format(niche=niche, domains=render_domains(candidates))


def build_multi_prompt(
    candidates: Sequence[Candidate],
    preset_ids: Sequence[str],
    persona_map: Mapping[str, Persona]
) -> str:
    return MULTI_PRESET_PROMPT.format(
        personas=render_personas(preset_ids, persona_map),
        domains=render_domains(candidates),
    )
