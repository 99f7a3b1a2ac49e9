"""
API service for the alumni backend (PostgREST-style REST interface)
"""
import logging
from typing import Any, Dict, List, Optional

import httpx

from config import API_CONFIG, REPORT_STORE_CONFIG
from models import Attendee, DataServiceError, EventInfo

logger = logging.getLogger(__name__)

EVENT_SELECT = "*,departments(name,logo_url)"
ATTENDEE_SELECT = "*,alumni(name,email,graduation_year,degree,company)"


class AlumniApiService:
    """Read events, attendees and photos; append and list report records"""

    def __init__(self, client: Optional[httpx.AsyncClient] = None,
                 base_url: Optional[str] = None,
                 api_key: Optional[str] = None,
                 token: Optional[str] = None,
                 reports_table: Optional[str] = None):
        self._client = client
        self.base_url = (base_url or API_CONFIG['base_url']).rstrip('/')
        self.api_key = api_key if api_key is not None else API_CONFIG['api_key']
        self.token = token if token is not None else (API_CONFIG['service_token'] or self.api_key)
        self.timeout = API_CONFIG['timeout']
        self.reports_table = reports_table or REPORT_STORE_CONFIG['table']

    def _headers(self) -> Dict[str, str]:
        headers = {'Accept': 'application/json'}
        if self.api_key:
            headers['apikey'] = self.api_key
        if self.token:
            headers['Authorization'] = f"Bearer {self.token}"
        return headers

    async def _request(self, method: str, table: str, params: Optional[Dict[str, str]] = None,
                       json: Any = None, headers: Optional[Dict[str, str]] = None) -> Any:
        url = f"{self.base_url}/rest/v1/{table}"
        request_headers = self._headers()
        request_headers.update(headers or {})
        try:
            if self._client is not None:
                response = await self._client.request(method, url, params=params, json=json,
                                                      headers=request_headers)
            else:
                timeout = httpx.Timeout(self.timeout, connect=10)
                async with httpx.AsyncClient(timeout=timeout) as client:
                    response = await client.request(method, url, params=params, json=json,
                                                    headers=request_headers)
        except httpx.HTTPError as exc:
            logger.error("Alumni API %s %s failed: %s", method, table, exc)
            raise DataServiceError(f"Alumni API unreachable: {exc}") from exc

        if response.status_code >= 300:
            logger.error("Alumni API %s %s returned status %s: %s",
                         method, table, response.status_code, response.text[:200])
            raise DataServiceError(f"Alumni API returned status {response.status_code} for {table}")
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise DataServiceError(f"Alumni API returned invalid JSON for {table}") from exc

    async def get_event(self, event_id: str) -> Optional[EventInfo]:
        """Event joined with its department, or None when it does not exist"""
        rows = await self._request('GET', 'events', params={
            'id': f"eq.{event_id}",
            'select': EVENT_SELECT,
            'limit': '1',
        })
        if not rows:
            return None
        return EventInfo.from_record(rows[0])

    async def get_attendees(self, event_id: str) -> List[Attendee]:
        rows = await self._request('GET', 'event_attendees', params={
            'event_id': f"eq.{event_id}",
            'select': ATTENDEE_SELECT,
        })
        return [Attendee.from_record(row) for row in rows or []]

    async def get_photo_urls(self, event_id: str) -> List[str]:
        """Stored event photo URLs, oldest first"""
        rows = await self._request('GET', 'event_photos', params={
            'event_id': f"eq.{event_id}",
            'select': 'photo_url',
            'order': 'created_at.asc',
        })
        return [row['photo_url'] for row in rows or [] if row.get('photo_url')]

    async def insert_report_record(self, row: Dict[str, Any]) -> Dict[str, Any]:
        """Append one report record and return the created row"""
        created = await self._request('POST', self.reports_table, json=row,
                                      headers={'Prefer': 'return=representation'})
        if isinstance(created, list):
            created = created[0] if created else None
        if not created:
            raise DataServiceError("Alumni API did not return the created report record")
        return created

    async def list_report_records(self, event_id: str) -> List[Dict[str, Any]]:
        """Report records for an event, newest first"""
        rows = await self._request('GET', self.reports_table, params={
            'event_id': f"eq.{event_id}",
            'select': '*',
            'order': 'created_at.desc',
        })
        return list(rows or [])
