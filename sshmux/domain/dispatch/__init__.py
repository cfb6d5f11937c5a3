"""
Dispatch domain module
"""
from .models import Job, JobState
from .dispatcher import Dispatcher

__all__ = ["Job", "JobState", "Dispatcher"]
