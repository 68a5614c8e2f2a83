"""
Component tree interpreter
Evaluates screen documents against an environment into render trees.
"""

from .environment import ContextEnvironmentProvider, Environment, EnvironmentProvider
from .conditions import all_hold, evaluate_condition
from .interpolation import find_tokens, interpolate, stringify
from .dispatch import ActionDispatcher, HttpActionDispatcher, LoggingActionDispatcher
from .evaluator import DEFAULT_MAX_DEPTH, EvaluationError, Interpreter
from .session import RenderSession

__all__ = [
    "Environment",
    "EnvironmentProvider",
    "ContextEnvironmentProvider",
    "evaluate_condition",
    "all_hold",
    "interpolate",
    "find_tokens",
    "stringify",
    "ActionDispatcher",
    "LoggingActionDispatcher",
    "HttpActionDispatcher",
    "DEFAULT_MAX_DEPTH",
    "EvaluationError",
    "Interpreter",
    "RenderSession",
]
