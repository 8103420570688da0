"""Timing: the global tick loop."""

from .scheduler import TickScheduler

__all__ = ['TickScheduler']
