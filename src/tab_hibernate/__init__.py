"""Suspend idle browser tabs, with crash-resumable scheduling and durable restore state."""

__version__ = "0.1.0"
