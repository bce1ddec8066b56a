"""
Módulo de consultas en vivo (live queries)

Cada lista del API se puede suscribir por WebSocket: se envía el resultado
al conectar y de nuevo cada vez que un commit toca la colección.
"""

from .hub import LiveQueryHub, hub, install_session_events

__all__ = ["LiveQueryHub", "hub", "install_session_events"]
