"""
Test data factories for generating test objects.

This module provides Factory Boy factories for creating test data objects
with realistic default values and easy customization. Factories only build
instances; the async helpers below add them to a session and commit.
"""

import uuid
from datetime import timedelta

import factory
from factory.alchemy import SQLAlchemyModelFactory

from models import (
    AIMode,
    Conversation,
    Decision,
    DecisionStatus,
    Document,
    Impact,
    Message,
    MessageRole,
    Priority,
    Project,
    Task,
    TaskStatus,
)
from models.base import utcnow


class ProjectFactory(SQLAlchemyModelFactory):
    """Factory for creating Project test instances."""

    class Meta:
        model = Project
        sqlalchemy_session = None  # Will be set at runtime

    id = factory.LazyFunction(uuid.uuid4)
    name = factory.Sequence(lambda n: f"Test Project {n}")
    description = factory.Faker("text", max_nb_chars=200)


class ConversationFactory(SQLAlchemyModelFactory):
    """Factory for creating Conversation test instances."""

    class Meta:
        model = Conversation
        sqlalchemy_session = None

    id = factory.LazyFunction(uuid.uuid4)
    title = factory.Faker("sentence", nb_words=4)
    purpose = factory.Faker("sentence", nb_words=8)
    summary = None
    mode = AIMode.DESIGN
    is_archived = False
    # project_id will be passed when creating


class MessageFactory(SQLAlchemyModelFactory):
    """Factory for creating Message test instances."""

    class Meta:
        model = Message
        sqlalchemy_session = None

    id = factory.LazyFunction(uuid.uuid4)
    role = factory.Iterator([MessageRole.USER, MessageRole.ASSISTANT])
    content = factory.Faker("paragraph", nb_sentences=2)
    created_at = factory.LazyFunction(utcnow)
    updated_at = factory.LazyAttribute(lambda obj: obj.created_at)


class TaskFactory(SQLAlchemyModelFactory):
    """Factory for creating Task test instances."""

    class Meta:
        model = Task
        sqlalchemy_session = None

    id = factory.LazyFunction(uuid.uuid4)
    title = factory.Faker("sentence", nb_words=4)
    description = factory.Faker("text", max_nb_chars=200)
    next_action = None
    status = TaskStatus.TODO
    blocked_reason = None
    priority = Priority.MEDIUM


class DecisionFactory(SQLAlchemyModelFactory):
    """Factory for creating Decision test instances."""

    class Meta:
        model = Decision
        sqlalchemy_session = None

    id = factory.LazyFunction(uuid.uuid4)
    title = factory.Faker("sentence", nb_words=4)
    decision = factory.Faker("sentence", nb_words=10)
    rationale = factory.Faker("sentence", nb_words=8)
    status = DecisionStatus.ACCEPTED
    impact = Impact.MEDIUM


class DocumentFactory(SQLAlchemyModelFactory):
    """Factory for creating Document test instances."""

    class Meta:
        model = Document
        sqlalchemy_session = None

    id = factory.LazyFunction(uuid.uuid4)
    title = factory.Faker("sentence", nb_words=3)
    content = factory.Faker("text", max_nb_chars=500)
    is_pinned = False
    version = 1


def build_messages(conversation_id: uuid.UUID, count: int, start=None, **kwargs) -> list[Message]:
    """Build ``count`` messages one second apart, oldest first."""
    start = start or utcnow() - timedelta(days=1)
    return [
        MessageFactory.build(
            conversation_id=conversation_id,
            created_at=start + timedelta(seconds=i),
            **kwargs,
        )
        for i in range(count)
    ]


# Utility functions for creating test data
async def add_messages(session, conversation, count: int, start=None) -> list[Message]:
    """Insert ``count`` alternating user/assistant messages one second apart, oldest first."""
    start = start or utcnow() - timedelta(days=1)
    messages = [
        Message(
            conversation_id=conversation.id,
            role=MessageRole.USER if i % 2 == 0 else MessageRole.ASSISTANT,
            content=f"message {i}",
            created_at=start + timedelta(seconds=i),
            updated_at=start + timedelta(seconds=i),
        )
        for i in range(count)
    ]
    session.add_all(messages)
    await session.commit()
    return messages


async def create_conversation_with_messages(
    session, project_id: uuid.UUID, num_messages: int = 5, **conversation_kwargs
) -> tuple[Conversation, list[Message]]:
    """Create a conversation with a specified number of messages."""
    conversation = ConversationFactory.build(project_id=project_id, **conversation_kwargs)
    messages = build_messages(conversation.id, num_messages)

    session.add(conversation)
    session.add_all(messages)
    await session.commit()
    return conversation, messages


async def create_project_knowledge(
    session,
    project_id: uuid.UUID,
    tasks: list[dict] | None = None,
    decisions: list[dict] | None = None,
    documents: list[dict] | None = None,
) -> tuple[list[Task], list[Decision], list[Document]]:
    """Create tasks, decisions and documents from lists of attribute overrides."""
    created_tasks = [TaskFactory.build(project_id=project_id, **kw) for kw in tasks or []]
    created_decisions = [
        DecisionFactory.build(project_id=project_id, **kw) for kw in decisions or []
    ]
    created_documents = [
        DocumentFactory.build(project_id=project_id, **kw) for kw in documents or []
    ]

    session.add_all([*created_tasks, *created_decisions, *created_documents])
    await session.commit()
    return created_tasks, created_decisions, created_documents
