from .world_manager import WorldManager, connect, format_map_name

__all__ = [
    "WorldManager",
    "connect",
    "format_map_name",
]
