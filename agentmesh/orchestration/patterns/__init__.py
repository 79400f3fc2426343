"""
Execution pattern executors.
"""

from .base_pattern import BasePattern, PatternOutcome
from .sequential_pattern import SequentialPattern
from .parallel_pattern import ParallelPattern
from .collaborative_pattern import CollaborativePattern

__all__ = [
    "BasePattern",
    "PatternOutcome",
    "SequentialPattern",
    "ParallelPattern",
    "CollaborativePattern",
]
