"""
Service catalog queries and officer mutations.

Reads never raise: an unreachable backend yields the demo catalog and any
other remote failure yields an empty listing. Writes validate required
text before touching the backend and raise RemoteOperationError when the
backend rejects them.
"""
import logging
from typing import Dict, List, Optional

from core.decorators import log_remote_operation
from core.exceptions import (RemoteError, RemoteOperationError,
                             TransportError, ValidationError)
from core.schema_base import utc_now
from repositories.data_source import Row, TableQuery
from repositories.synthetic_data_source import demo_service_rows
from schemas.service import Service, ServiceCreate, ServiceUpdate
from services.base_query_service import (BaseQueryService, remote_code,
                                         remote_message)

logger = logging.getLogger(__name__)

REQUIRED_TEXT_FIELDS: Dict[str, str] = {
    "name": "Service name",
    "description": "Description",
    "processing_time": "Processing time",
}


def demo_catalog() -> List[Service]:
    """The fixed demo catalog as Service models, ordered by name."""
    services = [Service.model_validate(row) for row in demo_service_rows()]
    return sorted(services, key=lambda service: service.name)


def validate_service_text(values: Row, partial: bool = False) -> Row:
    """
    Trim required text fields and reject blank ones.

    Args:
        values: Row about to be written
        partial: Only check fields present in values (updates)

    Returns:
        values with the required text fields trimmed

    Raises:
        ValidationError: A required field is missing or blank
    """
    cleaned = dict(values)
    for field, label in REQUIRED_TEXT_FIELDS.items():
        if partial and field not in cleaned:
            continue
        text = (cleaned.get(field) or "").strip()
        if not text:
            raise ValidationError(f"{label} is required")
        cleaned[field] = text
    return cleaned


class ServiceCatalogService(BaseQueryService):
    """Catalog listings and mutations for one portal session."""

    cache_namespace = "services"

    # =========================================================================
    # READ OPERATIONS
    # =========================================================================

    async def list_active_services(self) -> List[Service]:
        """
        Active services ordered by name, capped at the page size.

        Returns:
            Cached listing when fresh; the demo catalog when the backend is
            unreachable; an empty list on any other remote error
        """
        query = TableQuery(
            table="services",
            eq={"is_active": True},
            order_by="name",
            limit=self._query.services_page_size,
        )
        return await self._list(("services", "active"), query)

    async def list_all_services(self) -> List[Service]:
        """Officer view: every service, including deactivated ones."""
        query = TableQuery(
            table="services",
            order_by="name",
            limit=self._query.services_page_size,
        )
        return await self._list(("services", "all"), query)

    async def _list(self, key, query: TableQuery) -> List[Service]:
        cached = self._cached(key)
        if cached is not None:
            return cached

        generation = self._generation
        try:
            rows = await self._fetch(query)
        except TransportError as e:
            logger.warning(f"Service catalog unreachable, serving demo catalog: {e}")
            return demo_catalog()
        except RemoteError as e:
            logger.error(
                f"Error fetching services: {e.message} "
                f"(code={e.code}, details={e.details}, hint={e.hint})"
            )
            return []

        services = [Service.model_validate(row) for row in rows]
        if self._store_listing(key, services, self._cache_settings.services_stale, generation):
            logger.debug(f"Cached {len(services)} services under {key}")
        return services

    @log_remote_operation("service listing", level="debug")
    async def _fetch(self, query: TableQuery) -> List[Row]:
        return await self._read(query, "service listing")

    # =========================================================================
    # WRITE OPERATIONS
    # =========================================================================

    async def create_service(self, data: ServiceCreate, created_by: Optional[str] = None) -> Service:
        """
        Add a catalog entry.

        Raises:
            ValidationError: Blank name, description or processing time
            RemoteOperationError: The backend rejected the insert
        """
        row = validate_service_text(data.to_row())
        row["created_by"] = created_by

        try:
            created = await self._source.insert("services", [row])
        except (RemoteError, TransportError) as e:
            raise self._failure("create", e) from e

        service = Service.model_validate(created[0])
        self.invalidate()
        self._notifier.notify("Service Created", f"{service.name} has been added to the catalog")
        logger.info(f"Created service {service.id} ({service.name})")
        return service

    async def update_service(self, service_id: str, changes: ServiceUpdate) -> Service:
        """
        Apply a partial update to a catalog entry.

        Raises:
            ValidationError: A supplied required text field is blank
            RemoteOperationError: The backend rejected the update or no row matched
        """
        values = validate_service_text(changes.to_row(exclude_none=True), partial=True)
        return await self._update(service_id, values, "update", "Service Updated")

    async def delete_service(self, service_id: str) -> Service:
        """Soft delete: the service stays stored with is_active=false."""
        return await self._update(service_id, {"is_active": False}, "deactivate", "Service Deactivated")

    async def _update(self, service_id: str, values: Row, verb: str, title: str) -> Service:
        values = {**values, "updated_at": utc_now().isoformat()}
        try:
            updated = await self._source.update("services", values, {"id": service_id})
        except (RemoteError, TransportError) as e:
            raise self._failure(verb, e) from e

        if not updated:
            self._notifier.error("Error", "Service not found")
            raise RemoteOperationError(f"Failed to {verb} service: Service not found")

        service = Service.model_validate(updated[0])
        self.invalidate()
        self._notifier.notify(title, f"{service.name} saved")
        logger.info(f"Service {service_id}: {verb} ok")
        return service

    def _failure(self, verb: str, exc) -> RemoteOperationError:
        """Notify about a rejected write and build the error to raise."""
        message = remote_message(exc)
        logger.error(f"Failed to {verb} service: {message}")
        self._notifier.error("Error", message)
        return RemoteOperationError(f"Failed to {verb} service: {message}", code=remote_code(exc))
