"""UDP game server that tokenizes JSON datagrams and feeds them to a game handler."""

__version__ = "0.1.0"
__all__ = ["game", "jsmn", "main", "msgqueue", "networkio", "worker"]