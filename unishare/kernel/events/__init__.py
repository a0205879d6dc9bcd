"""
Append-only audit logging.
"""

from unishare.kernel.events.event_store import EventStore

__all__ = ["EventStore"]
