"""Notification modules."""
from .telegram import LogNotifier, TelegramNotifier

__all__ = ["TelegramNotifier", "LogNotifier"]
