"""Entity-component game logic, AI behaviours and BSP dungeon generation for a grid-based dungeon crawler."""

__version__ = "0.1.0"