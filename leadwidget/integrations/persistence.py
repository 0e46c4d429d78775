"""
Conversation persistence store.

The store owns the durable conversation, message, and lead rows. Two
uniqueness rules must hold whatever backs it:

- one conversation per assistant thread handle (``create_conversation``
  raises DuplicateThreadError when the handle is taken);
- one callback lead per conversation (``upsert_lead`` replaces in place).

InMemoryPersistenceStore is the reference implementation used by tests
and the console front-end. A hosted database adapter implements the same
protocol with matching unique constraints.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Optional, Protocol

from leadwidget.schemas.chat_schema import ExchangeContext
from leadwidget.schemas.widget_schema import (
    ConversationRecord,
    GeoLocation,
    LeadRecord,
    MessageRecord,
)

logger = logging.getLogger(__name__)


class PersistenceError(Exception):
    """Base class for store failures."""


class DuplicateThreadError(PersistenceError):
    """A conversation already exists for this thread handle."""


class ConversationNotFoundError(PersistenceError):
    """The referenced conversation does not exist."""


class PersistenceStore(Protocol):
    async def find_conversation_by_thread(self, thread_id: str) -> Optional[ConversationRecord]:
        ...

    async def create_conversation(
        self, thread_id: str, context: ExchangeContext, geo: GeoLocation
    ) -> ConversationRecord:
        ...

    async def insert_message(
        self,
        conversation_id: str,
        role: str,
        content: str,
        run_id: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> MessageRecord:
        ...

    async def upsert_lead(self, conversation_id: str, fields: dict[str, Any]) -> LeadRecord:
        ...

    async def insert_lead(self, conversation_id: str, fields: dict[str, Any]) -> LeadRecord:
        ...


class InMemoryPersistenceStore:
    """Dict-backed store enforcing the same uniqueness rules as the hosted schema."""

    def __init__(self) -> None:
        self.conversations: dict[str, ConversationRecord] = {}
        self.messages: list[MessageRecord] = []
        self.leads: dict[str, LeadRecord] = {}
        self._thread_index: dict[str, str] = {}
        self._callback_index: dict[str, str] = {}

    async def find_conversation_by_thread(self, thread_id: str) -> Optional[ConversationRecord]:
        conversation_id = self._thread_index.get(thread_id)
        if conversation_id is None:
            return None
        return self.conversations[conversation_id]

    async def create_conversation(
        self, thread_id: str, context: ExchangeContext, geo: GeoLocation
    ) -> ConversationRecord:
        if thread_id in self._thread_index:
            raise DuplicateThreadError(f"Conversation already exists for thread {thread_id}")
        record = ConversationRecord(
            id=str(uuid.uuid4()),
            thread_id=thread_id,
            channel=context.channel,
            start_url=context.start_url,
            ip_address=context.ip_address,
            user_agent=context.user_agent,
            user_id=context.user_id,
            country_code=geo.country_code,
            city=geo.city,
            metadata={"userEmail": context.user_email} if context.user_email else None,
        )
        self.conversations[record.id] = record
        self._thread_index[thread_id] = record.id
        logger.info("Conversation created: %s for thread %s", record.id, thread_id)
        return record

    def _require_conversation(self, conversation_id: str) -> None:
        if conversation_id not in self.conversations:
            raise ConversationNotFoundError(f"Conversation {conversation_id} not found")

    async def insert_message(
        self,
        conversation_id: str,
        role: str,
        content: str,
        run_id: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> MessageRecord:
        self._require_conversation(conversation_id)
        record = MessageRecord(
            id=str(uuid.uuid4()),
            conversation_id=conversation_id,
            role=role,
            content=content,
            run_id=run_id,
            metadata=metadata,
        )
        self.messages.append(record)
        logger.debug("Logged %s message for conversation %s", role, conversation_id)
        return record

    async def upsert_lead(self, conversation_id: str, fields: dict[str, Any]) -> LeadRecord:
        """Insert or replace the callback lead keyed by conversation.

        Replacing keeps the row id, status, and creation time.
        """
        self._require_conversation(conversation_id)
        existing_id = self._callback_index.get(conversation_id)
        if existing_id is not None:
            existing = self.leads[existing_id]
            updated = existing.model_copy(
                update={**fields, "updated_at": datetime.now(timezone.utc)}
            )
            self.leads[existing_id] = updated
            logger.info("Callback lead updated: %s", existing_id)
            return updated

        record = LeadRecord(id=str(uuid.uuid4()), conversation_id=conversation_id, **fields)
        self.leads[record.id] = record
        self._callback_index[conversation_id] = record.id
        logger.info("Callback lead created: %s", record.id)
        return record

    async def insert_lead(self, conversation_id: str, fields: dict[str, Any]) -> LeadRecord:
        self._require_conversation(conversation_id)
        record = LeadRecord(id=str(uuid.uuid4()), conversation_id=conversation_id, **fields)
        self.leads[record.id] = record
        logger.info("Lead created: %s", record.id)
        return record

    def messages_for(self, conversation_id: str) -> list[MessageRecord]:
        return [m for m in self.messages if m.conversation_id == conversation_id]

    def reset(self) -> None:
        """Clear all rows. Used by test fixtures for isolation."""
        self.conversations.clear()
        self.messages.clear()
        self.leads.clear()
        self._thread_index.clear()
        self._callback_index.clear()
