"""
Spaced repetition review scheduling.

Components:
- SM2Scheduler: pure SM-2 card math
- QualityMapper: correctness/time -> SM-2 quality
- PerformanceAggregator: learner-level rollups
- ReviewScheduler: persisted review operations
"""

from .scheduler import ReviewScheduler
from .sm2 import QualityMapper, SM2Config, SM2Scheduler, validate_quality
from .stats import PerformanceAggregator

__all__ = [
    "ReviewScheduler",
    "SM2Config",
    "SM2Scheduler",
    "QualityMapper",
    "validate_quality",
    "PerformanceAggregator",
]
