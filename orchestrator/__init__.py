"""
Room Visualizer orchestrator.

Runs the describe / segment / inpaint pipeline for uploaded room photos and
serves the HTTP API around it.
"""

from .app import RoomVisualizerService, create_app

__all__ = ["RoomVisualizerService", "create_app"]
