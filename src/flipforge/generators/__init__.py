from .template_expander import TemplateExpander
from .deduplicator import CandidateDeduplicator

__all__ = ['TemplateExpander', 'CandidateDeduplicator']
