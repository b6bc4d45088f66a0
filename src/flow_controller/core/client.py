"""HTTP client for the flow engine's process group and processor API.

Every mutable engine resource carries a revision. Mutations must present
the revision the caller believes is current, and the engine rejects stale
ones. This client does not cache state or retry. It supplies a revision
and reports rejections as ``VersionConflict``.

Three revision disciplines are in use, each with its own code path:

- process group deletion reads the group first and sends the version it saw
- processor run-status updates always send version 0, with no read
- processor deletion sends no version at all
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Protocol
from urllib.parse import quote

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as SchemaValidationError

from .errors import ProtocolError, TransportError, VersionConflict
from .models import (
    CreatedEntity,
    Position,
    ProcessGroupComponent,
    ProcessGroupEntity,
    ProcessGroupRequest,
    ProcessorComponent,
    ProcessorRequest,
    ProcessorState,
    Revision,
    RunStatusComponent,
    RunStatusRequest,
)

logger = logging.getLogger(__name__)

PUT_DATABASE_RECORD_TYPE = "org.apache.nifi.processors.standard.PutDatabaseRecord"

# Text the engine uses when it answers 400 to a stale revision
_STALE_REVISION_MARKER = "is not the most up-to-date revision"


class EngineClient(Protocol):
    """Operations the rest of the application needs from the engine."""

    def create_container(self, parent_id: str, name: str) -> str: ...

    def delete_container(self, container_id: str) -> None: ...

    def create_processor(
        self,
        container_id: str,
        processor_type: str,
        config: Mapping[str, str],
    ) -> str: ...

    def set_processor_state(self, processor_id: str, state: ProcessorState) -> None: ...

    def delete_processor(self, processor_id: str) -> None: ...

    def start_flow(self, flow_id: str) -> None: ...

    def stop_flow(self, flow_id: str) -> None: ...

    def delete_flow(self, flow_id: str) -> None: ...


class FlowEngineClient:
    """
    Blocking client for the engine REST API.

    Holds only the base URL and an ``httpx.Client`` connection pool, so one
    instance can be shared between threads. Every call returns after the
    HTTP exchange has finished and the response has been validated.

    Example:
        with FlowEngineClient("http://localhost:8080/nifi-api") as client:
            group_id = client.create_container("root", "BulkInsertFlow")
    """

    def __init__(self, base_url: str, http_client: httpx.Client | None = None):
        """
        Args:
            base_url: Engine API root, e.g. ``http://host:8080/nifi-api``
            http_client: Pre-built client to use instead of creating one.
                Requests are sent to absolute URLs, so its own base_url is
                left untouched.
        """
        self.base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        self._http = http_client if http_client is not None else httpx.Client()

    def close(self) -> None:
        """Close the connection pool if this instance created it."""
        if self._owns_client:
            self._http.close()

    def __enter__(self) -> "FlowEngineClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # === Process groups ===

    def create_container(self, parent_id: str, name: str) -> str:
        """Create a process group under ``parent_id`` and return its id."""
        _require("parent_id", parent_id)
        _require("name", name)

        body = ProcessGroupRequest(
            revision=Revision(version=0),
            component=ProcessGroupComponent(name=name, position=Position(x=0.0, y=0.0)),
        )
        return self._create(_path("process-groups", parent_id, "process-groups"), body)

    def delete_container(self, container_id: str) -> None:
        """
        Delete a process group.

        The current revision is not known up front, so the group is read
        first and the version found there is sent with the delete. If the
        group changes between the two calls the engine rejects the delete
        and ``VersionConflict`` is raised. Callers must redo both steps.
        """
        _require("container_id", container_id)

        version = self._read_container_version(container_id)
        logger.debug(f"Deleting process group {container_id} at version {version}")
        self._send(
            "DELETE",
            _path("process-groups", container_id),
            params={"version": version},
            resource_id=container_id,
            version=version,
        )

    def _read_container_version(self, container_id: str) -> int:
        response = self._send(
            "GET",
            _path("process-groups", container_id),
            resource_id=container_id,
        )
        payload = _decode(response)
        try:
            entity = ProcessGroupEntity.model_validate(payload)
        except SchemaValidationError as e:
            logger.warning(f"Process group {container_id} has no integer revision: {payload!r}")
            raise ProtocolError(
                f"revision.version is not an integer: {_excerpt(payload)}",
                payload=payload,
            ) from e
        return entity.revision.version

    # === Processors ===

    def create_processor(
        self,
        container_id: str,
        processor_type: str,
        config: Mapping[str, str],
        position: Position | None = None,
    ) -> str:
        """Create a processor inside a process group and return its id."""
        _require("container_id", container_id)
        _require("processor_type", processor_type)

        body = ProcessorRequest(
            revision=Revision(version=0),
            component=ProcessorComponent(
                type=processor_type,
                position=position or Position(),
                configurations=dict(config),
            ),
        )
        return self._create(_path("process-groups", container_id, "processors"), body)

    def add_put_database_record_processor(
        self,
        container_id: str,
        db_url: str,
        table_name: str,
    ) -> str:
        """Add a PutDatabaseRecord processor set up for bulk inserts."""
        return self.create_processor(
            container_id,
            PUT_DATABASE_RECORD_TYPE,
            {
                "database.url": db_url,
                "table.name": table_name,
                "statement.type": "INSERT",
            },
            position=Position(x=100.0, y=100.0),
        )

    def set_processor_state(self, processor_id: str, state: ProcessorState) -> None:
        """
        Set a processor to RUNNING or STOPPED.

        Always sends revision 0 and never reads the processor first. A
        processor that has been modified since creation has a higher
        revision, so the engine will reject this with ``VersionConflict``.
        """
        _require("processor_id", processor_id)
        state = ProcessorState(state)
        if state is ProcessorState.CREATED:
            raise ValueError("Processor state can only be set to RUNNING or STOPPED")

        body = RunStatusRequest(
            revision=Revision(version=0),
            component=RunStatusComponent(state=state),
        )
        self._send(
            "PUT",
            _path("processors", processor_id, "run-status"),
            json=body.model_dump(mode="json"),
            resource_id=processor_id,
            version=0,
        )

    def delete_processor(self, processor_id: str) -> None:
        """Delete a processor. No revision is sent; the engine applies its default."""
        _require("processor_id", processor_id)
        self._send("DELETE", _path("processors", processor_id), resource_id=processor_id)

    # === Flows ===
    # A flow is a single processor (start/stop) or its process group (delete).

    def start_flow(self, flow_id: str) -> None:
        self.set_processor_state(flow_id, ProcessorState.RUNNING)

    def stop_flow(self, flow_id: str) -> None:
        self.set_processor_state(flow_id, ProcessorState.STOPPED)

    def delete_flow(self, flow_id: str) -> None:
        self.delete_container(flow_id)

    # === Internals ===

    def _create(self, path: str, body: BaseModel) -> str:
        response = self._send("POST", path, json=body.model_dump(mode="json"))
        payload = _decode(response)
        try:
            created = CreatedEntity.model_validate(payload)
        except SchemaValidationError as e:
            found = payload.get("id") if isinstance(payload, dict) else None
            raise ProtocolError(f"id is not a string: {found!r}", payload=payload) from e
        return created.id

    def _send(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        resource_id: str | None = None,
        version: int | None = None,
    ) -> httpx.Response:
        """Issue one request and translate failures into our error types."""
        url = f"{self.base_url}{path}"
        logger.debug(f"{method} {url} params={params}")
        try:
            response = self._http.request(method, url, json=json, params=params)
        except httpx.RequestError as e:
            raise TransportError(
                f"{method} {path} failed: {e}",
                method=method,
                url=url,
                cause=e,
            ) from e

        if response.is_success:
            return response

        if _is_revision_conflict(response):
            logger.warning(
                f"Engine rejected {method} {path} with stale revision {version} "
                f"({response.status_code})"
            )
            raise VersionConflict(
                f"Revision {version} of {resource_id} is stale: {response.text[:200]}",
                resource_id=resource_id or path,
                version=version,
                status_code=response.status_code,
            )

        raise TransportError(
            f"{method} {path} returned {response.status_code}: {response.text[:200]}",
            method=method,
            url=str(response.request.url),
            status_code=response.status_code,
        )


def _is_revision_conflict(response: httpx.Response) -> bool:
    if response.status_code == 409:
        return True
    return response.status_code == 400 and _STALE_REVISION_MARKER in response.text


def _decode(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError as e:
        raise ProtocolError("Engine response is not JSON", payload=response.text) from e


def _excerpt(payload: Any) -> str:
    text = repr(payload)
    return text[:200] + "..." if len(text) > 200 else text


def _require(name: str, value: str) -> None:
    if not isinstance(value, str) or not value:
        raise ValueError(f"{name} must be a non-empty string")


def _path(*segments: str) -> str:
    """Join path segments, percent-encoding each so ids cannot alter the URL."""
    return "/" + "/".join(quote(segment, safe="") for segment in segments)
