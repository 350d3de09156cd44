"""Template-driven candidate generator for domain names."""

import itertools
import logging
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from ..models import Candidate, Multipliers, SOURCE_LABELS, WordPacks

logger = logging.getLogger(__name__)


class TemplateExpander:
    """Expands word packs and multipliers through composition templates."""

    # Components are concatenated left to right in this order
    TEMPLATES: Dict[str, Tuple[str, ...]] = {
        'A+B': ('A', 'B'),
        'B+A': ('B', 'A'),
        'A+B+C': ('A', 'B', 'C'),
        'prefix+A+B': ('prefix', 'A', 'B'),
        'A+B+suffix': ('A', 'B', 'suffix'),
        'prefix+A+B+suffix': ('prefix', 'A', 'B', 'suffix'),
    }

    DEFAULT_TEMPLATES = ['A+B']

    def __init__(self, packs: WordPacks, multipliers: Optional[Multipliers] = None):
        self.packs = packs
        self.multipliers = multipliers or Multipliers()

    def _component(self, name: str) -> Tuple[str, ...]:
        if name == 'prefix':
            return self.multipliers.prefixes
        if name == 'suffix':
            return self.multipliers.suffixes
        return getattr(self.packs, name)

    def expand(self, template: str) -> Iterator[Candidate]:
        """Yield one candidate per tuple of the template's Cartesian product."""
        components = self.TEMPLATES.get(template)
        if components is None:
            logger.debug("Ignoring unknown template %r", template)
            return

        labels = [SOURCE_LABELS[name] for name in components]
        pools = [self._component(name) for name in components]

        for parts in itertools.product(*pools):
            yield Candidate(
                domain=''.join(parts),
                template=template,
                sources=tuple(zip(labels, parts)),
            )

    def generate(self, templates: Optional[Sequence[str]] = None) -> Iterator[Candidate]:
        """Yield raw candidates for every template, in template order."""
        for template in self.DEFAULT_TEMPLATES if templates is None else templates:
            yield from self.expand(template)

    def count(self, templates: Optional[Sequence[str]] = None) -> int:
        """Number of raw candidates the templates would produce."""
        total = 0
        for template in self.DEFAULT_TEMPLATES if templates is None else templates:
            components = self.TEMPLATES.get(template)
            if components is None:
                continue
            size = 1
            for name in components:
                size *= len(self._component(name))
            total += size
        return total

    @classmethod
    def known_templates(cls) -> List[str]:
        return list(cls.TEMPLATES)
