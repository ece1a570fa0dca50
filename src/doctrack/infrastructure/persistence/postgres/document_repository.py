"""PostgreSQL document repository implementation."""

from typing import Any
from uuid import UUID

from psycopg import AsyncConnection
from psycopg.types.json import Jsonb

from doctrack.domain.entities import Document
from doctrack.domain.exceptions import NotFound
from doctrack.domain.value_objects import ProcessingStatus

_COLUMNS = (
    "id, url, title, processing_status, created_at, updated_at, content_hash, "
    "organization, published_at, markdown_content, baseline_summary, "
    "extracted_topics, extracted_entities, duplicate_of, times_referenced, "
    "metadata, processed_at"
)

# Columns update_status may set, besides processing_status and updated_at.
_UPDATABLE = frozenset({
    "title",
    "content_hash",
    "organization",
    "published_at",
    "markdown_content",
    "baseline_summary",
    "extracted_topics",
    "extracted_entities",
    "duplicate_of",
    "metadata",
    "processed_at",
})
_JSON_COLUMNS = frozenset({"extracted_entities", "metadata"})


def _row_to_document(r: tuple) -> Document:
    return Document(
        id=r[0],
        url=r[1],
        title=r[2],
        processing_status=ProcessingStatus(r[3]),
        created_at=r[4],
        updated_at=r[5],
        content_hash=r[6],
        organization=r[7],
        published_at=r[8],
        markdown_content=r[9],
        baseline_summary=r[10],
        extracted_topics=list(r[11] or []),
        extracted_entities=dict(r[12] or {}),
        duplicate_of=r[13],
        times_referenced=r[14],
        metadata=dict(r[15] or {}),
        processed_at=r[16],
    )


def _adapt(column: str, value: Any) -> Any:
    if column in _JSON_COLUMNS:
        return Jsonb(value or {})
    if column == "extracted_topics":
        return list(value or [])
    return value


class PostgresDocumentRepository:
    """Document repository implementation."""

    def __init__(self, conn: AsyncConnection) -> None:
        self._conn = conn

    async def get_by_id(self, document_id: UUID) -> Document | None:
        """Get document by id."""
        cur = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM document WHERE id = %s",
            (document_id,),
        )
        r = await cur.fetchone()
        return _row_to_document(r) if r else None

    async def find_by_url(self, url: str) -> Document | None:
        """Get document by its unique url."""
        cur = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM document WHERE url = %s",
            (url,),
        )
        r = await cur.fetchone()
        return _row_to_document(r) if r else None

    async def find_completed_by_content_hash(
        self, content_hash: str, exclude_id: UUID | None = None
    ) -> Document | None:
        """Oldest completed document with this content hash, other than exclude_id."""
        q = (
            f"SELECT {_COLUMNS} FROM document "
            "WHERE content_hash = %s AND processing_status = %s"
        )
        params: list[object] = [content_hash, str(ProcessingStatus.COMPLETED)]
        if exclude_id is not None:
            q += " AND id <> %s"
            params.append(exclude_id)
        q += " ORDER BY created_at, id LIMIT 1"
        cur = await self._conn.execute(q, tuple(params))
        r = await cur.fetchone()
        return _row_to_document(r) if r else None

    async def create_if_absent(self, document: Document) -> tuple[Document, bool]:
        """Insert document; on url conflict return the existing row.

        The unique index on url is the arbiter: a concurrent insert blocks
        until the other transaction finishes, then does nothing.
        """
        cur = await self._conn.execute(
            f"INSERT INTO document ({_COLUMNS}) "
            "VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s) "
            f"ON CONFLICT (url) DO NOTHING RETURNING {_COLUMNS}",
            (
                document.id,
                document.url,
                document.title,
                str(document.processing_status),
                document.created_at,
                document.updated_at,
                document.content_hash,
                document.organization,
                document.published_at,
                document.markdown_content,
                document.baseline_summary,
                list(document.extracted_topics),
                Jsonb(document.extracted_entities),
                document.duplicate_of,
                document.times_referenced,
                Jsonb(document.metadata),
                document.processed_at,
            ),
        )
        r = await cur.fetchone()
        if r:
            return _row_to_document(r), True
        existing = await self.find_by_url(document.url)
        if existing is None:
            # Conflicting row was deleted between statements.
            raise NotFound("Document", document.url)
        return existing, False

    async def update_status(
        self,
        document_id: UUID,
        status: ProcessingStatus,
        fields: dict[str, Any] | None = None,
        *,
        expected_status: ProcessingStatus | None = None,
    ) -> Document | None:
        """Set status and fields in one statement, optionally compare-and-set."""
        fields = fields or {}
        unknown = set(fields) - _UPDATABLE
        if unknown:
            raise ValueError(f"Cannot update columns: {sorted(unknown)}")
        assignments = ["processing_status = %s", "updated_at = NOW()"]
        params: list[object] = [str(status)]
        for column, value in fields.items():
            assignments.append(f"{column} = %s")
            params.append(_adapt(column, value))
        q = f"UPDATE document SET {', '.join(assignments)} WHERE id = %s"
        params.append(document_id)
        if expected_status is not None:
            q += " AND processing_status = %s"
            params.append(str(expected_status))
        cur = await self._conn.execute(f"{q} RETURNING {_COLUMNS}", tuple(params))
        r = await cur.fetchone()
        return _row_to_document(r) if r else None

    async def increment_reference_count(self, document_id: UUID) -> int:
        """Atomically bump times_referenced; return the new value."""
        cur = await self._conn.execute(
            "UPDATE document SET times_referenced = times_referenced + 1, updated_at = NOW() "
            "WHERE id = %s RETURNING times_referenced",
            (document_id,),
        )
        r = await cur.fetchone()
        if not r:
            raise NotFound("Document", str(document_id))
        return r[0]
