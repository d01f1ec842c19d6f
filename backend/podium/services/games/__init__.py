"""Game session domain services: scoring, game-specific telemetry, lifecycle and stats.

Routes and socket handlers import from here; nothing in this package knows
about HTTP or Socket.IO.
"""
