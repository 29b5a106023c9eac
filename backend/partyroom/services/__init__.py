"""Game services: scoring and timers.

This package contains pure(ish) support logic used by the room registry
and game modes, keeping transport concerns separated from core game
mechanics.
"""
