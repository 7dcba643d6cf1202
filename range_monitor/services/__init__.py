"""Service modules"""
from .alerts import AlertDispatcher
from .monitor import Monitor
from .state import MonitorState, StateStore

__all__ = ["AlertDispatcher", "Monitor", "MonitorState", "StateStore"]
