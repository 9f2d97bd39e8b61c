"""Extraction engine: turns message content into tasks, decisions and documents."""

import logging
from dataclasses import dataclass, field
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions.ai import AIParsingError
from app.exceptions.base import ValidationError
from app.exceptions.conversation import ProjectNotFoundError
from app.schemas.extraction import (
    PAYLOAD_SCHEMAS,
    ExtractedDecision,
    ExtractedDocument,
    ExtractedItems,
    ExtractedPayload,
    ExtractedTask,
    ExtractionKind,
)
from app.services.functions_client import FunctionsClient
from app.shared.activity import record_activity
from models import ActivityType, Decision, Document, Project, Task

logger = logging.getLogger(__name__)

NO_ITEMS_MESSAGE = "No actionable items were found in this message."


@dataclass
class ExtractionResult:
    kind: ExtractionKind
    task_ids: list[UUID] = field(default_factory=list)
    decision_ids: list[UUID] = field(default_factory=list)
    document_ids: list[UUID] = field(default_factory=list)
    failed: dict[str, int] = field(
        default_factory=lambda: {"tasks": 0, "decisions": 0, "documents": 0}
    )
    titles: list[str] = field(default_factory=list)

    @property
    def created(self) -> dict[str, int]:
        return {
            "tasks": len(self.task_ids),
            "decisions": len(self.decision_ids),
            "documents": len(self.document_ids),
        }

    @property
    def summary(self) -> str:
        return summarize_extraction(self.kind, self.created, self.titles)


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}" + ("" if count == 1 else "s")


def summarize_extraction(kind: ExtractionKind, created: dict[str, int], titles: list[str]) -> str:
    """User-facing summary; kinds with nothing created are left out."""
    if kind != ExtractionKind.AUTO:
        if not titles:
            return NO_ITEMS_MESSAGE
        return f"{kind.value.capitalize()} created: {titles[0]}"

    parts = []
    if created["tasks"]:
        parts.append(_plural(created["tasks"], "task"))
    if created["decisions"]:
        parts.append(_plural(created["decisions"], "decision"))
    if created["documents"]:
        parts.append(_plural(created["documents"], "document"))
    if not parts:
        return NO_ITEMS_MESSAGE
    return "Created " + ", ".join(parts)


class ExtractionEngine:
    """Service class for structured extraction and materialization."""

    def __init__(self, db: AsyncSession, functions_client: FunctionsClient):
        self.db = db
        self.functions_client = functions_client

    async def extract(self, content: str, kind: ExtractionKind) -> ExtractedPayload:
        """
        Ask the extraction function for a structured payload of the given kind.

        Raises:
            AIParsingError: the response has no payload or it does not fit the kind
        """
        body = await self.functions_client.extract(content, kind.value)

        data = body.get("data")
        if data is None:
            raise AIParsingError("No extraction result from AI")
        returned_type = body.get("type")
        if returned_type is not None and returned_type != kind.value:
            raise AIParsingError(
                f"Expected {kind.value} extraction, got {returned_type}",
                details={"type": returned_type},
            )

        schema = PAYLOAD_SCHEMAS[kind]
        try:
            return schema.model_validate(data)
        except PydanticValidationError as e:
            logger.warning("Malformed %s extraction payload: %s", kind.value, e)
            raise AIParsingError(
                f"Malformed {kind.value} extraction payload",
                details={"errors": e.errors(include_url=False, include_input=False)},
            ) from e

    async def extract_and_materialize(
        self,
        project_id: UUID,
        conversation_id: UUID | None,
        content: str,
        kind: ExtractionKind,
    ) -> ExtractionResult:
        """
        Extract items and create them as project entities.

        For ``auto`` every item is created in its own savepoint, so one failing
        insert does not undo the others; failures are counted per kind. A single
        kind that cannot be stored is an error.
        """
        project = await self.db.get(Project, project_id)
        if not project:
            raise ProjectNotFoundError(str(project_id))

        payload = await self.extract(content, kind)
        result = ExtractionResult(kind=kind)

        if isinstance(payload, ExtractedItems):
            for task in payload.tasks:
                await self._materialize(result, project_id, conversation_id, task)
            for decision in payload.decisions:
                await self._materialize(result, project_id, conversation_id, decision)
            for document in payload.documents:
                await self._materialize(result, project_id, conversation_id, document)
        else:
            created = await self._materialize(result, project_id, conversation_id, payload)
            if not created:
                await self.db.rollback()
                raise ValidationError(f"Failed to create {kind.value} from extraction")

        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise ValidationError(f"Failed to store extracted items: {str(e)}") from e

        logger.info(
            "Extraction (%s) in project %s created %s, failed %s",
            kind.value,
            project_id,
            result.created,
            result.failed,
        )
        return result

    # Private helper methods
    async def _materialize(
        self,
        result: ExtractionResult,
        project_id: UUID,
        conversation_id: UUID | None,
        item: ExtractedTask | ExtractedDecision | ExtractedDocument,
    ) -> bool:
        bucket = _bucket_for(item)
        try:
            async with self.db.begin_nested():
                entity = self._build_entity(project_id, conversation_id, item)
                self.db.add(entity)
                await self.db.flush()
                if isinstance(entity, Decision):
                    record_activity(
                        self.db,
                        project_id=project_id,
                        activity_type=ActivityType.DECISION_CREATED,
                        entity_type="decision",
                        entity_id=entity.id,
                        description=f'Decision "{entity.title}" extracted from conversation',
                    )
                    await self.db.flush()
        except SQLAlchemyError as e:
            logger.warning("Failed to create extracted %s %r: %s", bucket[:-1], item.title, e)
            result.failed[bucket] += 1
            return False

        getattr(result, f"{bucket[:-1]}_ids").append(entity.id)
        result.titles.append(item.title)
        return True

    @staticmethod
    def _build_entity(
        project_id: UUID,
        conversation_id: UUID | None,
        item: ExtractedTask | ExtractedDecision | ExtractedDocument,
    ) -> Task | Decision | Document:
        if isinstance(item, ExtractedTask):
            return Task(
                project_id=project_id,
                conversation_id=conversation_id,
                title=item.title,
                description=item.description,
                next_action=item.next_action,
                priority=item.priority,
            )
        if isinstance(item, ExtractedDecision):
            return Decision(
                project_id=project_id,
                conversation_id=conversation_id,
                title=item.title,
                decision=item.decision,
                rationale=item.rationale,
                impact=item.impact,
            )
        # Documents belong to the project, not the conversation
        return Document(
            project_id=project_id,
            title=item.title,
            content=item.content,
            is_pinned=item.is_pinned,
        )


def _bucket_for(item: ExtractedTask | ExtractedDecision | ExtractedDocument) -> str:
    if isinstance(item, ExtractedTask):
        return "tasks"
    if isinstance(item, ExtractedDecision):
        return "decisions"
    return "documents"
