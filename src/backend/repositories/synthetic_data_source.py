"""
In-process synthetic data source.

Used when no hosted backend is configured. Tables live in memory, seeded
with a fixed demo catalog, and accept writes for the lifetime of the
portal session. Auth always succeeds with the stand-in identity.
"""
import copy
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from core.exceptions import RemoteError
from core.schema_base import utc_now
from models.model_enum import AuthEvent, DataSourceMode, UserRole
from repositories.data_source import (STAND_IN_USER_ID, AuthListener,
                                      AuthNotifier, DataSource, Row,
                                      TableQuery)
from schemas.auth import AuthSession, AuthUser

logger = logging.getLogger(__name__)

# Fixed so the catalog is identical across processes
DEMO_TIMESTAMP = "2024-01-01T00:00:00+00:00"

DEMO_SERVICES: List[Row] = [
    {
        "id": "demo-service-1",
        "name": "Birth Certificate",
        "description": "Official document issued by Gram Panchayat as proof of birth.",
        "category": "certificates",
        "required_documents": ["Birth Affidavit", "Hospital Report", "Parent ID proof"],
        "processing_time": "7 days",
        "fees": 0,
    },
    {
        "id": "demo-service-2",
        "name": "Caste Certificate",
        "description": "Certificate for caste identification for reservation and other government purposes.",
        "category": "certificates",
        "required_documents": ["Application form", "Parent Caste certificate", "Residence proof"],
        "processing_time": "10 days",
        "fees": 0,
    },
    {
        "id": "demo-service-3",
        "name": "Income Certificate",
        "description": "Certificate for income verification for government schemes and applications.",
        "category": "certificates",
        "required_documents": ["Salary slip", "Bank statement", "ID proof"],
        "processing_time": "5 days",
        "fees": 30,
    },
    {
        "id": "demo-service-4",
        "name": "Water Connection",
        "description": "Request new water connections for homes and businesses.",
        "category": "utilities",
        "required_documents": ["Property papers", "Residence proof"],
        "processing_time": "21 days",
        "fees": 500,
    },
    {
        "id": "demo-service-5",
        "name": "Trade License",
        "description": "License for operating small businesses within village limits.",
        "category": "licenses",
        "required_documents": ["Business plan", "ID proof", "Address proof"],
        "processing_time": "15 days",
        "fees": 200,
    },
    {
        "id": "demo-service-6",
        "name": "Residence Certificate",
        "description": "Proof of residence in the Gram Panchayat jurisdiction.",
        "category": "certificates",
        "required_documents": ["Ration card", "Aadhaar card", "Voter ID"],
        "processing_time": "5 days",
        "fees": 0,
    },
    {
        "id": "demo-service-7",
        "name": "Property Tax Payment",
        "description": "Facility to pay property taxes online.",
        "category": "payments",
        "required_documents": ["Property ID", "Previous tax receipt"],
        "processing_time": "Instant",
        "fees": 100,
    },
    {
        "id": "demo-service-8",
        "name": "NOC for Land Sale",
        "description": "No Objection Certificate from Gram Panchayat for land sale/transfer.",
        "category": "permits",
        "required_documents": ["Sale deed", "Land documents", "Applicant ID proof"],
        "processing_time": "7 days",
        "fees": 100,
    },
]


def demo_service_rows() -> List[Row]:
    """Fresh copies of the demo catalog as stored rows."""
    return [
        {
            **copy.deepcopy(service),
            "is_active": True,
            "created_by": None,
            "created_at": DEMO_TIMESTAMP,
            "updated_at": DEMO_TIMESTAMP,
        }
        for service in DEMO_SERVICES
    ]


def demo_application_row(
    citizen_id: str = STAND_IN_USER_ID,
    full_name: str = "Demo User",
    email: str = "demo@example.com",
    now: Optional[datetime] = None,
) -> Row:
    """
    Single pending application shown when real records are unavailable.

    Args:
        citizen_id: Identity the record is attributed to
        full_name: Applicant name for the display join
        email: Applicant email for the display join
        now: Submission timestamp (defaults to the current time)
    """
    stamp = (now or utc_now()).isoformat()
    birth_certificate = DEMO_SERVICES[0]
    return {
        "id": "demo-1",
        "citizen_id": citizen_id,
        "service_id": birth_certificate["id"],
        "status": "pending",
        "application_data": {"applicant_name": full_name},
        "documents_uploaded": [],
        "assigned_to": None,
        "remarks": None,
        "submitted_at": stamp,
        "updated_at": stamp,
        "completed_at": None,
        "service": {
            "name": birth_certificate["name"],
            "category": birth_certificate["category"],
            "fees": birth_certificate["fees"],
            "processing_time": birth_certificate["processing_time"],
        },
        "citizen": {"full_name": full_name, "email": email, "phone": None},
    }


def stand_in_session(email: str, metadata: Optional[Dict[str, Any]] = None) -> AuthSession:
    """Local session for the fixed stand-in identity."""
    user_metadata = {"full_name": "Demo User", "role": UserRole.CITIZEN.value}
    user_metadata.update(metadata or {})
    return AuthSession(
        access_token=f"stand-in-{uuid.uuid4().hex}",
        user=AuthUser(
            id=STAND_IN_USER_ID,
            email=email,
            user_metadata=user_metadata,
            created_at=datetime.now(timezone.utc),
        ),
    )


def _sort_key(value: Any):
    # None sorts last ascending, like PostgreSQL
    return (value is None, value if value is not None else "")


class SyntheticDataSource(DataSource):
    """
    Dict-backed tables evaluating TableQuery in memory.

    Seeded with the demo catalog and one demo application owned by the
    stand-in identity. Extra rows can be loaded with seed().
    """

    mode = DataSourceMode.SYNTHETIC

    def __init__(self, clock: Callable[[], datetime] = utc_now):
        self._clock = clock
        self._tables: Dict[str, List[Row]] = {
            "services": demo_service_rows(),
            "applications": [],
            "profiles": [],
        }
        application = demo_application_row()
        for join in ("service", "citizen"):
            application.pop(join)
        self._tables["applications"].append(application)
        self._session: Optional[AuthSession] = None
        self._listeners = AuthNotifier()

    def seed(self, table: str, rows: List[Row]) -> None:
        """Append rows to a table (creating it if needed)."""
        self._tables.setdefault(table, []).extend(copy.deepcopy(rows))

    def rows(self, table: str) -> List[Row]:
        """Snapshot of every stored row of a table."""
        return copy.deepcopy(self._tables.get(table, []))

    # ------------------------------------------------------------------
    # Query evaluation
    # ------------------------------------------------------------------

    @staticmethod
    def _matches(row: Row, query: TableQuery) -> bool:
        for column, value in query.eq.items():
            if row.get(column) != value:
                return False
        if query.or_ is not None:
            return any(row.get(column) == value for column, value in query.or_.clauses)
        return True

    def _project(self, row: Row, query: TableQuery) -> Row:
        if "*" in query.columns:
            result = copy.deepcopy(row)
        else:
            result = {column: copy.deepcopy(row.get(column)) for column in query.columns}

        for embed in query.embeds:
            target = next(
                (r for r in self._tables.get(embed.table, []) if r.get("id") == row.get(embed.local_key)),
                None,
            )
            result[embed.alias] = (
                {column: copy.deepcopy(target.get(column)) for column in embed.columns}
                if target is not None else None
            )
        return result

    async def select(self, query: TableQuery) -> List[Row]:
        if query.table not in self._tables:
            raise RemoteError(f'relation "public.{query.table}" does not exist', code="42P01")

        rows = [row for row in self._tables[query.table] if self._matches(row, query)]

        if query.order_by:
            rows.sort(key=lambda r: _sort_key(r.get(query.order_by)), reverse=query.descending)

        if query.limit is not None:
            rows = rows[:query.limit]

        return [self._project(row, query) for row in rows]

    async def insert(self, table: str, rows: List[Row]) -> List[Row]:
        stamp = self._clock().isoformat()
        stored = []
        for row in rows:
            record = copy.deepcopy(row)
            record.setdefault("id", str(uuid.uuid4()))
            if table == "applications":
                record.setdefault("submitted_at", stamp)
                record.setdefault("assigned_to", None)
                record.setdefault("remarks", None)
                record.setdefault("completed_at", None)
            else:
                record.setdefault("created_at", stamp)
            record.setdefault("updated_at", stamp)
            stored.append(record)

        self._tables.setdefault(table, []).extend(stored)
        logger.debug(f"Synthetic insert into {table}: {len(stored)} row(s)")
        return copy.deepcopy(stored)

    async def update(self, table: str, values: Row, match: Dict[str, Any]) -> List[Row]:
        updated = []
        for row in self._tables.get(table, []):
            if all(row.get(column) == value for column, value in match.items()):
                row.update(copy.deepcopy(values))
                updated.append(copy.deepcopy(row))
        logger.debug(f"Synthetic update on {table} matching {match}: {len(updated)} row(s)")
        return updated

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        self._session = stand_in_session(email)
        await self._listeners.emit(AuthEvent.SIGNED_IN, self._session)
        return self._session

    async def sign_in_as(self, user: AuthUser) -> AuthSession:
        """Start a session for an arbitrary identity (demo role switching)."""
        self._session = AuthSession(access_token=f"synthetic-{uuid.uuid4().hex}", user=user)
        await self._listeners.emit(AuthEvent.SIGNED_IN, self._session)
        return self._session

    async def sign_up(self, email: str, password: str, metadata: Dict[str, Any]) -> Optional[AuthSession]:
        self._session = stand_in_session(email, metadata)
        await self._listeners.emit(AuthEvent.SIGNED_IN, self._session)
        return self._session

    async def sign_out(self) -> None:
        if self._session is None:
            return
        self._session = None
        await self._listeners.emit(AuthEvent.SIGNED_OUT, None)

    async def get_session(self) -> Optional[AuthSession]:
        return self._session

    def on_auth_state_change(self, listener: AuthListener) -> Callable[[], None]:
        return self._listeners.add(listener)
