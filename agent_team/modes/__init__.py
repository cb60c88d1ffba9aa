"""Coordination mode runners, one async function per mode."""

from .custom import run_custom
from .debate import run_debate
from .parallel import run_parallel
from .sequential import run_sequential
from .supervisor import run_supervisor

__all__ = [
    "run_custom",
    "run_debate",
    "run_parallel",
    "run_sequential",
    "run_supervisor",
]
