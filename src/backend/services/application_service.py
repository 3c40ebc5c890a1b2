"""
Application queries and review updates, parameterized by the caller's role.

Listings are filtered three times: by the backend's row policy, by the
query filter built here, and by a client-side re-filter of fetched rows.
"""
import logging
from datetime import datetime
from typing import List, Optional, Sequence

from core.async_utils import gather_settled
from core.config import CacheSettings, QuerySettings
from core.events import EventBus, EventType, IdentityChanged
from core.exceptions import (BatchUpdateError, RemoteError,
                             RemoteOperationError, RoleAuthorizationError,
                             TransportError, ValidationError)
from core.schema_base import utc_now
from models.model_enum import ApplicationStatus, DataSourceMode, UserRole
from repositories.data_source import (DataSource, Embed, OrFilter, Row,
                                      TableQuery)
from repositories.synthetic_data_source import demo_application_row
from schemas.application import (Application, ApplicationCreate,
                                 ApplicationUpdate, BatchUpdateItem)
from schemas.profile import Profile
from services.base_query_service import (BaseQueryService, QueryCache,
                                         remote_code, remote_message)
from services.filters import visible_applications
from services.notification_service import NotificationService
from services.session_store import SessionStore

logger = logging.getLogger(__name__)

APPLICATION_COLUMNS = (
    "id",
    "citizen_id",
    "service_id",
    "status",
    "application_data",
    "documents_uploaded",
    "assigned_to",
    "remarks",
    "submitted_at",
    "updated_at",
    "completed_at",
)

APPLICATION_EMBEDS = (
    Embed(
        alias="service",
        table="services",
        local_key="service_id",
        columns=("name", "category", "fees", "processing_time"),
    ),
    Embed(
        alias="citizen",
        table="profiles",
        local_key="citizen_id",
        columns=("full_name", "email", "phone"),
        hint="applications_citizen_id_fkey",
    ),
)

REVIEWER_ROLES = (UserRole.STAFF, UserRole.OFFICER)
NOT_ACCESSIBLE = "Application not found or not accessible"


def build_list_query(profile: Profile, limit: int) -> TableQuery:
    """
    Role-filtered application listing for profile.

    citizen: own applications; staff: assigned to self or unassigned;
    officer: everything.
    """
    eq = {}
    or_filter = None
    if profile.role == UserRole.CITIZEN:
        eq = {"citizen_id": profile.id}
    elif profile.role == UserRole.STAFF:
        or_filter = OrFilter(clauses=(("assigned_to", profile.id), ("assigned_to", None)))

    return TableQuery(
        table="applications",
        columns=APPLICATION_COLUMNS,
        eq=eq,
        or_=or_filter,
        order_by="submitted_at",
        descending=True,
        limit=limit,
        embeds=APPLICATION_EMBEDS,
    )


def merge_review_update(
    profile: Profile,
    now: datetime,
    status: Optional[ApplicationStatus] = None,
    remarks: Optional[str] = None,
    assigned_to: Optional[str] = None,
) -> Row:
    """
    Build the update payload for a review action.

    updated_at is always refreshed, completed_at is set only when the
    status becomes completed, and staff reviewers self-assign. citizen_id
    is never part of the payload.
    """
    values: Row = {"updated_at": now.isoformat()}
    if status is not None:
        values["status"] = status.value
        if status == ApplicationStatus.COMPLETED:
            values["completed_at"] = now.isoformat()
    if remarks is not None:
        values["remarks"] = remarks
    if assigned_to is not None:
        values["assigned_to"] = assigned_to
    if profile.role == UserRole.STAFF:
        values["assigned_to"] = profile.id
    return values


def demo_application(profile: Profile) -> Application:
    """Single pending record attributed to the caller."""
    return Application.model_validate(
        demo_application_row(citizen_id=profile.id, full_name=profile.full_name, email=profile.email)
    )


class ApplicationService(BaseQueryService):
    """Application listings, submission and review for one portal session."""

    cache_namespace = "applications"

    def __init__(
        self,
        data_source: DataSource,
        store: SessionStore,
        bus: EventBus,
        cache: QueryCache,
        notifier: NotificationService,
        cache_settings: Optional[CacheSettings] = None,
        query_settings: Optional[QuerySettings] = None,
    ):
        super().__init__(data_source, cache, notifier, cache_settings, query_settings)
        self._store = store
        # Listings fetched under an older epoch are returned but not cached
        self._epoch = 0
        self._unsubscribe = bus.subscribe(EventType.IDENTITY_CHANGED, self.handle_identity_changed)

    def close(self) -> None:
        self._unsubscribe()

    def handle_identity_changed(self, event: IdentityChanged) -> None:
        """EventBus handler: drop the previous identity's listings."""
        self._epoch += 1
        if event.previous_user_id is None:
            return
        doomed = [
            key for key in self._cache.keys()
            if key[:1] == (self.cache_namespace,) and key[-1] == event.previous_user_id
        ]
        for key in doomed:
            self._cache.delete(key)
        logger.debug(f"Dropped {len(doomed)} application listings for {event.previous_user_id}")

    # =========================================================================
    # READ OPERATIONS
    # =========================================================================

    async def list_applications(self) -> List[Application]:
        """
        Applications visible to the signed-in profile, newest first.

        Returns:
            [] without a profile; a single demo record when the backend
            fails or synthetic data has nothing for the caller
        """
        profile = self._store.profile
        if profile is None:
            return []

        key = ("applications", profile.role.value, profile.id)
        cached = self._cached(key)
        if cached is not None:
            return cached

        epoch = self._epoch
        generation = self._generation
        query = build_list_query(profile, self._query.applications_page_size)
        try:
            rows = await self._read(query, "application listing")
        except (RemoteError, TransportError) as e:
            logger.warning(f"Error fetching applications, returning demo data: {remote_message(e)}")
            return [demo_application(profile)]

        applications = visible_applications(profile, [Application.model_validate(row) for row in rows])

        if not applications and self._source.mode == DataSourceMode.SYNTHETIC:
            return [demo_application(profile)]

        if epoch != self._epoch:
            logger.info(f"Not caching applications for {profile.id}: identity changed during fetch")
            return applications

        self._store_listing(key, applications, self._cache_settings.applications_stale, generation)
        return applications

    # =========================================================================
    # WRITE OPERATIONS
    # =========================================================================

    async def create_application(self, data: ApplicationCreate) -> Application:
        """
        Submit an application as the signed-in citizen.

        Raises:
            RoleAuthorizationError: Caller is not a citizen
            RemoteOperationError: The backend rejected the insert
        """
        profile = self._store.profile
        if profile is None or profile.role != UserRole.CITIZEN:
            raise RoleAuthorizationError("Only citizens can submit applications")

        row = {
            "citizen_id": profile.id,
            "service_id": data.service_id,
            "application_data": dict(data.application_data),
            "documents_uploaded": list(data.documents_uploaded),
            "status": ApplicationStatus.PENDING.value,
        }

        try:
            created = await self._source.insert("applications", [row])
        except (RemoteError, TransportError) as e:
            message = remote_message(e)
            logger.error(f"Application submission failed for {profile.id}: {message}")
            self._notifier.error("Submission Error", message)
            raise RemoteOperationError(f"Failed to submit application: {message}", code=remote_code(e)) from e

        application = Application.model_validate(created[0])
        self.invalidate()
        self._notifier.notify("Submitted!", "Your application has been submitted successfully")
        logger.info(f"Application {application.id} submitted by {profile.id}")
        return application

    def _require_reviewer(self) -> Profile:
        profile = self._store.profile
        if profile is None or profile.role not in REVIEWER_ROLES:
            raise RoleAuthorizationError("Unauthorized access")
        return profile

    async def _check_transition(self, application_id: str, target: ApplicationStatus) -> None:
        """Reject a status change the review workflow does not allow."""
        rows = await self._read(
            TableQuery(table="applications", columns=("id", "status"), eq={"id": application_id}, limit=1),
            "application status lookup",
        )
        if not rows:
            raise RemoteOperationError(NOT_ACCESSIBLE)
        current = ApplicationStatus(rows[0]["status"])
        if not current.can_transition_to(target):
            raise ValidationError(f"Cannot change status from {current.value} to {target.value}")

    async def update_application(self, application_id: str, changes: ApplicationUpdate) -> Application:
        """
        Apply a review update to one application.

        Raises:
            RoleAuthorizationError: Caller is not staff or officer
            ValidationError: Disallowed status change (when transitions are enforced)
            RemoteOperationError: The backend rejected the update or no row matched
        """
        profile = self._require_reviewer()

        try:
            if changes.status is not None and self._query.enforce_status_transitions:
                await self._check_transition(application_id, changes.status)

            values = merge_review_update(
                profile,
                utc_now(),
                status=changes.status,
                remarks=changes.remarks,
                assigned_to=changes.assigned_to,
            )
            updated = await self._source.update("applications", values, {"id": application_id})
        except (RemoteError, TransportError) as e:
            message = remote_message(e)
            self._notifier.error("Update Failed", message)
            raise RemoteOperationError(f"Failed to update application: {message}", code=remote_code(e)) from e

        if not updated:
            self._notifier.error("Update Failed", NOT_ACCESSIBLE)
            raise RemoteOperationError(NOT_ACCESSIBLE)

        application = Application.model_validate(updated[0])
        self.invalidate()
        self._notifier.notify("Application Updated", f"Status is now {application.status.value}")
        logger.info(f"Application {application_id} updated by {profile.role.value} {profile.id}")
        return application

    async def batch_update_applications(self, items: Sequence[BatchUpdateItem]) -> List[Application]:
        """
        Apply review updates to several applications concurrently.

        Every write is issued before any is awaited. Writes that succeed
        are kept even when others fail, and the application cache is
        dropped in either case.

        Raises:
            RoleAuthorizationError: Caller is not staff or officer
            BatchUpdateError: At least one item failed; names the first
                failing item in request order
        """
        profile = self._require_reviewer()
        if not items:
            return []

        if self._query.enforce_status_transitions:
            for item in items:
                try:
                    await self._check_transition(item.id, item.status)
                except (RemoteError, TransportError) as e:
                    raise RemoteOperationError(
                        f"Failed to update application {item.id}: {remote_message(e)}",
                        code=remote_code(e),
                    ) from e

        now = utc_now()
        outcomes = await gather_settled([
            self._source.update(
                "applications",
                merge_review_update(profile, now, status=item.status, remarks=item.remarks or None),
                {"id": item.id},
            )
            for item in items
        ])
        self.invalidate()

        updated: List[Application] = []
        failures = []
        succeeded_ids = []
        for item, outcome in zip(items, outcomes):
            if isinstance(outcome, (RemoteError, TransportError)):
                failures.append((item.id, remote_message(outcome)))
            elif isinstance(outcome, BaseException):
                raise outcome
            elif not outcome:
                failures.append((item.id, NOT_ACCESSIBLE))
            else:
                succeeded_ids.append(item.id)
                updated.append(Application.model_validate(outcome[0]))

        if failures:
            first_id, first_message = failures[0]
            logger.error(
                f"Batch update: {len(failures)}/{len(items)} failed, "
                f"first {first_id}: {first_message}"
            )
            self._notifier.error("Batch Update Failed", first_message)
            raise BatchUpdateError(
                f"Batch update failed for application {first_id}: {first_message}",
                failed_ids=[failed_id for failed_id, _ in failures],
                succeeded_ids=succeeded_ids,
            )

        self._notifier.notify("Batch Update Complete", f"{len(updated)} applications updated")
        logger.info(f"Batch update of {len(updated)} applications by {profile.id}")
        return updated
