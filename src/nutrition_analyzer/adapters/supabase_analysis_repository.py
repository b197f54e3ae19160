"""Supabase-backed food analysis repository."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from nutrition_analyzer.domain.analysis import AnalysisRecord, AnalysisResult
from nutrition_analyzer.services.analysis import AnalysisRepository

_TABLE = "food_analyses"
_COLUMNS = "id, user_id, image_url, analysis_result, created_at"


@dataclass
class SupabaseAnalysisRepository(AnalysisRepository):
    """Supabase implementation for analysis persistence."""

    client: Client

    def create_analysis(self, record: AnalysisRecord) -> AnalysisRecord:
        """Insert an analysis row and return it with its id."""
        response = (
            self.client.table(_TABLE)
            .insert(
                {
                    "user_id": str(record.user_id),
                    "image_url": record.image_url,
                    "analysis_result": record.result.to_response(),
                    "created_at": record.created_at.isoformat(),
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create food analysis")
        return _parse_row(response.data[0])

    def list_analyses(self, user_id: UUID, limit: int) -> list[AnalysisRecord]:
        """Return a user's analyses, newest first."""
        response = (
            self.client.table(_TABLE)
            .select(_COLUMNS)
            .eq("user_id", str(user_id))
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return [_parse_row(row) for row in response.data or []]

    def get_analysis(self, user_id: UUID, analysis_id: UUID) -> AnalysisRecord | None:
        """Return one analysis owned by the user."""
        response = (
            self.client.table(_TABLE)
            .select(_COLUMNS)
            .eq("id", str(analysis_id))
            .eq("user_id", str(user_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_row(response.data[0])

    def delete_analysis(self, user_id: UUID, analysis_id: UUID) -> bool:
        """Delete an analysis owned by the user."""
        response = (
            self.client.table(_TABLE)
            .delete()
            .eq("id", str(analysis_id))
            .eq("user_id", str(user_id))
            .execute()
        )
        return bool(response.data)


def _parse_row(row: dict[str, object]) -> AnalysisRecord:
    created_raw = row.get("created_at")
    created_at = (
        datetime.fromisoformat(created_raw)
        if isinstance(created_raw, str) and created_raw
        else datetime.now(tz=UTC)
    )
    raw_id = row.get("id")
    return AnalysisRecord(
        id=UUID(str(raw_id)) if raw_id else None,
        user_id=UUID(str(row["user_id"])),
        image_url=str(row.get("image_url", "")),
        result=AnalysisResult.model_validate(row["analysis_result"]),
        created_at=created_at,
    )
