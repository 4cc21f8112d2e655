"""Service layer for the gem battle engine.

Architecture:
    - GameService: one player run; wires state store, bus, persistence,
      random source and the turn machine, and runs enemy turns automatically.

Production Usage:
    from gembattle.factory import create_game_service
    service = create_game_service(settings)
    service.start_run("Knight")
"""

from .game_service import GameService

__all__ = ["GameService"]
