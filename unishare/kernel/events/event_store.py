"""
Event Store service for append-only audit logging.

Entries are added to the caller's session so they commit (or roll back)
together with the change they describe.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from sqlalchemy import select, and_, desc
from sqlalchemy.ext.asyncio import AsyncSession

from unishare.kernel.models.base import enum_value
from unishare.kernel.models.event_log import EventLog, EventType


class EventStore:
    """
    Service for managing the immutable event log.
    
    Usage:
        event_store = EventStore(session)
        await event_store.log(
            event_type=EventType.RESOURCE_BLOCKED,
            entity_type="resource",
            entity_id=resource.id,
            user_id=admin.id,
            payload={"slug": resource.slug},
        )
    """
    
    def __init__(self, session: AsyncSession):
        self.session = session
    
    async def log(
        self,
        event_type: EventType,
        entity_type: str,
        entity_id: uuid.UUID,
        user_id: Optional[uuid.UUID] = None,
        payload: Optional[Dict[str, Any]] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> EventLog:
        """
        Append an event to the audit log.
        
        Args:
            event_type: The type of event
            entity_type: The type of entity (user, resource, comment)
            entity_id: The ID of the entity
            user_id: The acting user (None for system events)
            payload: Additional event data
            ip_address: Client IP address
            user_agent: Client user agent
            
        Returns:
            The pending EventLog record (flushed with the caller's session)
        """
        event = EventLog(
            event_type=enum_value(event_type),
            entity_type=entity_type,
            entity_id=entity_id,
            user_id=user_id,
            payload=self._serialize_payload(payload or {}),
            ip_address=ip_address,
            user_agent=user_agent,
        )
        
        self.session.add(event)
        return event
    
    async def get_entity_history(
        self,
        entity_type: str,
        entity_id: uuid.UUID,
        event_types: Optional[List[EventType]] = None,
        limit: int = 100,
    ) -> List[EventLog]:
        """
        Get the event history for a specific entity, newest first.
        """
        query = select(EventLog).where(
            and_(
                EventLog.entity_type == entity_type,
                EventLog.entity_id == entity_id,
            )
        )
        
        if event_types:
            query = query.where(EventLog.event_type.in_([enum_value(t) for t in event_types]))
        
        query = query.order_by(desc(EventLog.created_at)).limit(limit)
        
        result = await self.session.execute(query)
        return list(result.scalars().all())
    
    @staticmethod
    def _serialize_payload(payload: Dict[str, Any]) -> Dict[str, Any]:
        """Convert UUIDs, datetimes and enums so the payload fits a JSON column."""
        def convert(value: Any) -> Any:
            if isinstance(value, uuid.UUID):
                return str(value)
            if isinstance(value, datetime):
                return value.isoformat()
            if isinstance(value, Enum):
                return value.value
            if isinstance(value, dict):
                return {k: convert(v) for k, v in value.items()}
            if isinstance(value, (list, tuple)):
                return [convert(v) for v in value]
            return value
        
        return convert(payload)
