"""Read and delete a user's saved analyses."""

from dataclasses import dataclass
from uuid import UUID

from nutrition_analyzer.domain.analysis import AnalysisRecord
from nutrition_analyzer.domain.errors import NotFound, Unauthorized
from nutrition_analyzer.domain.models import Identity
from nutrition_analyzer.services.analysis import AnalysisRepository

MAX_HISTORY_LIMIT = 100


@dataclass
class HistoryService:
    """Owner-scoped access to stored analyses."""

    repository: AnalysisRepository

    def list_analyses(
        self, identity: Identity | None, limit: int = 50
    ) -> list[AnalysisRecord]:
        """Return the caller's analyses, newest first."""
        caller = _require(identity)
        bounded = max(1, min(limit, MAX_HISTORY_LIMIT))
        return self.repository.list_analyses(caller.user_id, bounded)

    def get_analysis(
        self, identity: Identity | None, analysis_id: UUID
    ) -> AnalysisRecord:
        """Return one of the caller's analyses."""
        caller = _require(identity)
        record = self.repository.get_analysis(caller.user_id, analysis_id)
        if record is None:
            raise NotFound("Analysis not found")
        return record

    def delete_analysis(self, identity: Identity | None, analysis_id: UUID) -> None:
        """Delete one of the caller's analyses."""
        caller = _require(identity)
        if not self.repository.delete_analysis(caller.user_id, analysis_id):
            raise NotFound("Analysis not found")


def serialize_record(record: AnalysisRecord) -> dict[str, object]:
    """Serialize a stored analysis for API responses."""
    return {
        "id": str(record.id) if record.id else None,
        "image_url": record.image_url,
        "analysis_result": record.result.to_response(),
        "created_at": record.created_at.isoformat(),
    }


def _require(identity: Identity | None) -> Identity:
    if identity is None:
        raise Unauthorized()
    return identity
