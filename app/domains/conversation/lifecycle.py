"""Conversation lifecycle rules: archive validation and health classification."""

import enum
from dataclasses import dataclass

from app.core.config import settings
from app.exceptions.conversation import SummaryTooShortError

MIN_SUMMARY_LENGTH = 20


class ConversationHealth(str, enum.Enum):
    """Ordered advisory scale for conversation length."""

    HEALTHY = "healthy"
    GETTING_LONG = "getting_long"
    CONSIDER_ARCHIVING = "consider_archiving"
    ARCHIVE_RECOMMENDED = "archive_recommended"


class Recommendation(str, enum.Enum):
    GENERATE_SUMMARY = "generate_summary"
    EXTRACT_KEY_ITEMS = "extract_key_items"
    ARCHIVE = "archive"


HEALTH_LABELS: dict[ConversationHealth, str] = {
    ConversationHealth.HEALTHY: "Healthy",
    ConversationHealth.GETTING_LONG: "Getting Long",
    ConversationHealth.CONSIDER_ARCHIVING: "Consider Archiving",
    ConversationHealth.ARCHIVE_RECOMMENDED: "Archive Recommended",
}

HEALTH_DESCRIPTIONS: dict[ConversationHealth, str] = {
    ConversationHealth.HEALTHY: "Conversation is at a good length for context retention.",
    ConversationHealth.GETTING_LONG: "Consider extracting key decisions and summarizing progress.",
    ConversationHealth.CONSIDER_ARCHIVING: (
        "Long conversations may lose context. Archive and start fresh."
    ),
    ConversationHealth.ARCHIVE_RECOMMENDED: (
        "This conversation is very long. Archive it to preserve context quality."
    ),
}


@dataclass(frozen=True)
class HealthThresholds:
    getting_long: int = 20
    consider_archiving: int = 40
    archive_recommended: int = 60

    def __post_init__(self):
        if not 0 < self.getting_long < self.consider_archiving < self.archive_recommended:
            raise ValueError("Health thresholds must be positive and strictly ascending")

    @classmethod
    def from_settings(cls) -> "HealthThresholds":
        return cls(
            getting_long=settings.health_getting_long_threshold,
            consider_archiving=settings.health_consider_archiving_threshold,
            archive_recommended=settings.health_archive_recommended_threshold,
        )


@dataclass(frozen=True)
class HealthReport:
    message_count: int
    level: ConversationHealth
    recommendations: tuple[Recommendation, ...]
    progress: float

    @property
    def label(self) -> str:
        return HEALTH_LABELS[self.level]

    @property
    def description(self) -> str:
        return HEALTH_DESCRIPTIONS[self.level]

    @property
    def show_archive_action(self) -> bool:
        return Recommendation.ARCHIVE in self.recommendations

    def to_dict(self) -> dict:
        return {
            "message_count": self.message_count,
            "level": self.level.value,
            "label": self.label,
            "description": self.description,
            "progress": self.progress,
            "recommendations": [r.value for r in self.recommendations],
            "show_archive_action": self.show_archive_action,
        }


def classify_health(
    message_count: int, thresholds: HealthThresholds | None = None
) -> ConversationHealth:
    """Place a message count on the health scale."""
    thresholds = thresholds or HealthThresholds.from_settings()
    if message_count >= thresholds.archive_recommended:
        return ConversationHealth.ARCHIVE_RECOMMENDED
    if message_count >= thresholds.consider_archiving:
        return ConversationHealth.CONSIDER_ARCHIVING
    if message_count >= thresholds.getting_long:
        return ConversationHealth.GETTING_LONG
    return ConversationHealth.HEALTHY


def assess_health(
    message_count: int, has_summary: bool, thresholds: HealthThresholds | None = None
) -> HealthReport:
    """Classify a conversation and list what the user should consider doing.

    Recommendations are advisory; nothing here changes conversation state.
    """
    thresholds = thresholds or HealthThresholds.from_settings()
    level = classify_health(message_count, thresholds)

    recommendations: list[Recommendation] = []
    if message_count >= thresholds.archive_recommended and not has_summary:
        recommendations.append(Recommendation.GENERATE_SUMMARY)
    if message_count >= thresholds.consider_archiving:
        recommendations.extend([Recommendation.EXTRACT_KEY_ITEMS, Recommendation.ARCHIVE])

    progress = min(message_count / thresholds.archive_recommended * 100, 100.0)
    return HealthReport(
        message_count=message_count,
        level=level,
        recommendations=tuple(recommendations),
        progress=round(progress, 1),
    )


def validate_archive_summary(summary: str | None) -> str:
    """Return the trimmed summary, or raise if it is shorter than the minimum."""
    trimmed = (summary or "").strip()
    if len(trimmed) < MIN_SUMMARY_LENGTH:
        raise SummaryTooShortError(
            MIN_SUMMARY_LENGTH, details={"length": len(trimmed), "minimum": MIN_SUMMARY_LENGTH}
        )
    return trimmed
