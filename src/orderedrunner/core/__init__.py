"""Core test classification, parameter resolution and scheduling."""

from orderedrunner.core.classifier import build_plan, classify
from orderedrunner.core.extractor import EXHAUSTED, ParameterExtractor
from orderedrunner.core.scheduler import Scheduler, run_plan

__all__ = ["build_plan", "classify", "EXHAUSTED", "ParameterExtractor", "Scheduler", "run_plan"]
