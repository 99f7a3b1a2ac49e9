"""
Report record persistence. Every generation request appends one record;
existing records are never updated.
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from config import DATABASE_CONFIG, REPORT_STORE_CONFIG, get_database_connection_string
from models import DataServiceError, PersistenceError, ReportRecord
from services.api_service import AlumniApiService

logger = logging.getLogger(__name__)


class ReportStore(ABC):
    """Append-only store of generated report records"""

    @abstractmethod
    async def save(self, record: ReportRecord) -> str:
        """Append the record and return its new id"""

    @abstractmethod
    async def list_for_event(self, event_id: str) -> List[ReportRecord]:
        """Records for one event, newest first"""


class RestReportStore(ReportStore):
    """Stores records in the alumni backend table through its REST API"""

    def __init__(self, api: Optional[AlumniApiService] = None):
        self.api = api or AlumniApiService()

    async def save(self, record: ReportRecord) -> str:
        try:
            created = await self.api.insert_report_record(record.to_dict())
        except DataServiceError as exc:
            raise PersistenceError(str(exc)) from exc
        record_id = created.get('id')
        if record_id is None:
            raise PersistenceError("Created report record has no id")
        return str(record_id)

    async def list_for_event(self, event_id: str) -> List[ReportRecord]:
        rows = await self.api.list_report_records(event_id)
        return [ReportRecord.from_record(row) for row in rows]


class SqlReportStore(ReportStore):
    """SQL Server implementation; creates the table on first use"""

    def __init__(self, connection_string: Optional[str] = None, table: Optional[str] = None):
        self.connection_string = connection_string or get_database_connection_string()
        self.table = table or REPORT_STORE_CONFIG['table']
        self._table_ready = False

    def get_fully_qualified_table_name(self) -> str:
        return f"[{DATABASE_CONFIG['database']}].dbo.[{self.table}]"

    def _connect(self):
        # Imported here so the REST deployment does not need the ODBC driver manager
        import pyodbc
        return pyodbc.connect(self.connection_string)

    def _create_table_sql(self) -> str:
        return f"""
        IF OBJECT_ID(N'dbo.{self.table}', N'U') IS NULL
        CREATE TABLE dbo.[{self.table}] (
            id UNIQUEIDENTIFIER NOT NULL DEFAULT NEWID() PRIMARY KEY,
            event_id NVARCHAR(64) NOT NULL,
            introduction NVARCHAR(MAX) NULL,
            event_summary NVARCHAR(MAX) NULL,
            key_highlights NVARCHAR(MAX) NULL,
            outcomes NVARCHAR(MAX) NULL,
            speaker_rating NVARCHAR(32) NULL,
            speaker_feedback NVARCHAR(MAX) NULL,
            overall_rating INT NULL,
            was_useful BIT NULL,
            what_went_well NVARCHAR(MAX) NULL,
            what_to_improve NVARCHAR(MAX) NULL,
            future_suggestions NVARCHAR(MAX) NULL,
            conclusion NVARCHAR(MAX) NULL,
            students_attended INT NULL,
            external_guests INT NULL,
            coordinator_name NVARCHAR(255) NULL,
            approved_by NVARCHAR(255) NULL,
            generated_by NVARCHAR(64) NULL,
            created_at DATETIME2 NOT NULL DEFAULT SYSUTCDATETIME()
        )
        """

    def _ensure_table(self, cursor):
        if not self._table_ready:
            cursor.execute(self._create_table_sql())
            self._table_ready = True

    def _insert_sync(self, row: Dict[str, Any]) -> str:
        columns = list(ReportRecord.COLUMNS)
        query = (
            f"INSERT INTO {self.get_fully_qualified_table_name()} ({', '.join(columns)}) "
            f"OUTPUT INSERTED.id VALUES ({', '.join('?' for _ in columns)})"
        )
        with self._connect() as conn:
            cursor = conn.cursor()
            self._ensure_table(cursor)
            cursor.execute(query, [row[column] for column in columns])
            inserted = cursor.fetchone()
            conn.commit()
        return str(inserted[0])

    def _select_sync(self, event_id: str) -> List[Dict[str, Any]]:
        query = (
            f"SELECT * FROM {self.get_fully_qualified_table_name()} "
            f"WHERE event_id = ? ORDER BY created_at DESC"
        )
        with self._connect() as conn:
            cursor = conn.cursor()
            self._ensure_table(cursor)
            cursor.execute(query, [event_id])
            columns = [column[0] for column in cursor.description]
            return [dict(zip(columns, row)) for row in cursor.fetchall()]

    async def save(self, record: ReportRecord) -> str:
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, self._insert_sync, record.to_dict())
        except Exception as exc:
            raise PersistenceError(f"Could not insert report record: {exc}") from exc

    async def list_for_event(self, event_id: str) -> List[ReportRecord]:
        loop = asyncio.get_running_loop()
        try:
            rows = await loop.run_in_executor(None, self._select_sync, event_id)
        except Exception as exc:
            raise DataServiceError(f"Could not read report records: {exc}") from exc
        return [ReportRecord.from_record(row) for row in rows]


def get_report_store(api: Optional[AlumniApiService] = None) -> ReportStore:
    backend = REPORT_STORE_CONFIG['backend']
    if backend == 'sql':
        return SqlReportStore()
    if backend != 'rest':
        logger.warning("Unknown REPORT_STORE_BACKEND %r, using the REST store", backend)
    return RestReportStore(api)
