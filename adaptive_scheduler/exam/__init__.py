"""
Computer-adaptive and standard exam sessions.

Components:
- ExamConfig / policy functions: pure difficulty and termination rules
- ExamEngine: persisted session operations
"""

from .engine import ExamEngine
from .policy import ExamConfig, apply_answer, initial_question_target, should_terminate, step_difficulty

__all__ = [
    "ExamEngine",
    "ExamConfig",
    "apply_answer",
    "initial_question_target",
    "should_terminate",
    "step_difficulty",
]
