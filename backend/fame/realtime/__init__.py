from .hub import Envelope, Connection, RealtimeHub, hub, event_room, user_room, role_room

__all__ = ["Envelope", "Connection", "RealtimeHub", "hub", "event_room", "user_room", "role_room"]
