"""
Event system for the Klondike engine.

This package provides the per-session event emitter used for change
notification.
"""

from klondike.events.emitter import EventEmitter, EventPriority, KlondikeEventType

__all__ = ["EventEmitter", "EventPriority", "KlondikeEventType"]
