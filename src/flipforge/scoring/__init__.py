from .oracle import ScoringOracle
from .reconciler import ScoreReconciler
from .batching import SequentialDispatcher
from .ranking import rank, rank_and_truncate

__all__ = ['ScoringOracle', 'ScoreReconciler', 'SequentialDispatcher', 'rank', 'rank_and_truncate']
