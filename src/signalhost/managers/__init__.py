"""
Managers for the data synchronization engine.

This module provides specialized managers for different responsibilities:
- RemoteFetcher: Rate-limited metrics fetch into the state store
- RefreshScheduler: One refresh timer per surface type
- Dispatcher: Fan-out of re-render requests
- SurfaceManager: Surface instance lifecycle and rendering
- PushBridge: Data pushed by the hosted web page
- WakeMonitor: Screen unlock detection
"""

from .alarm import AlarmClock, ThreadingAlarmClock
from .bridge import PushBridge
from .dispatch import Dispatcher
from .fetch import FetchOutcome, RemoteFetcher
from .schedule import RefreshScheduler, ScheduleHandle
from .surface import SurfaceManager, SurfaceRegistry
from .triggers import TriggerQueue
from .wake import WakeMonitor

__all__ = [
    "AlarmClock",
    "ThreadingAlarmClock",
    "PushBridge",
    "Dispatcher",
    "FetchOutcome",
    "RemoteFetcher",
    "RefreshScheduler",
    "ScheduleHandle",
    "SurfaceManager",
    "SurfaceRegistry",
    "TriggerQueue",
    "WakeMonitor",
]
