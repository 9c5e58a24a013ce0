"""
Scheduler module for the quote sync system.
"""

from .scheduler import SyncScheduler, SYNC_JOB_ID

__all__ = ['SyncScheduler', 'SYNC_JOB_ID']
