"""
Scheduling and application lifecycle
"""

from .scheduler import PipelineScheduler
from .lifecycle import StartupManager

__all__ = ["PipelineScheduler", "StartupManager"]
