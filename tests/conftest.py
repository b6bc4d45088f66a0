"""
Shared fixtures: an in-memory flow engine behind ``httpx.MockTransport``.

The fake engine enforces optimistic concurrency the way a conforming
engine does: resources start at revision 0, every successful mutation
bumps the revision, and a mutation asserting any other revision is
rejected with 409.
"""

from __future__ import annotations

import json
import re
import threading
from dataclasses import dataclass, field
from typing import Any, Callable
from urllib.parse import unquote

import httpx
import pytest

from flow_controller.core import FlowEngineClient


ENGINE_URL = "http://engine.test/nifi-api"
API_PREFIX = "/nifi-api"


@dataclass
class RecordedRequest:
    method: str
    path: str
    params: dict[str, str]
    body: Any = None


@dataclass
class FakeResource:
    id: str
    parent_id: str
    version: int = 0
    deleted: bool = False
    attributes: dict[str, Any] = field(default_factory=dict)


class FakeFlowEngine:
    """Minimal process group / processor API with revision checks."""

    def __init__(self) -> None:
        self.groups: dict[str, FakeResource] = {}
        self.processors: dict[str, FakeResource] = {}
        self.requests: list[RecordedRequest] = []
        self._counters = {"pg": 0, "proc": 0}
        self._lock = threading.Lock()

        # Hooks run after a process group read is served (tests use them to
        # interleave concurrent mutations).
        self.after_read: Callable[[str], None] | None = None

        self._routes = [
            ("POST", re.compile(r"^/process-groups/([^/]+)/process-groups$"), self._create_group),
            ("GET", re.compile(r"^/process-groups/([^/]+)$"), self._read_group),
            ("DELETE", re.compile(r"^/process-groups/([^/]+)$"), self._delete_group),
            ("POST", re.compile(r"^/process-groups/([^/]+)/processors$"), self._create_processor),
            ("PUT", re.compile(r"^/processors/([^/]+)/run-status$"), self._set_run_status),
            ("DELETE", re.compile(r"^/processors/([^/]+)$"), self._delete_processor),
        ]

    # === Test helpers ===

    def bump(self, resource_id: str, times: int = 1) -> None:
        """Simulate mutations made by someone else."""
        with self._lock:
            resource = self.groups.get(resource_id) or self.processors[resource_id]
            resource.version += times

    def requests_for(self, method: str) -> list[RecordedRequest]:
        return [r for r in self.requests if r.method == method]

    # === Transport entry point ===

    def handle(self, request: httpx.Request) -> httpx.Response:
        # Route on the encoded path so an escaped "/" or "?" stays inside its segment
        path = request.url.raw_path.split(b"?", 1)[0].decode("ascii")
        if path.startswith(API_PREFIX):
            path = path[len(API_PREFIX):]

        body = json.loads(request.content) if request.content else None
        params = dict(request.url.params)
        with self._lock:
            self.requests.append(RecordedRequest(request.method, path, params, body))

        for method, pattern, handler in self._routes:
            match = pattern.match(path)
            if method == request.method and match:
                return handler(unquote(match.group(1)), params, body)

        return httpx.Response(404, text=f"No route for {request.method} {path}")

    # === Handlers ===

    def _create_group(self, parent_id: str, params: dict, body: dict) -> httpx.Response:
        if body["revision"]["version"] != 0:
            return httpx.Response(409, text="New resources must use revision 0")
        with self._lock:
            self._counters["pg"] += 1
            group = FakeResource(
                id=f"pg-{self._counters['pg']}",
                parent_id=parent_id,
                attributes=dict(body["component"]),
            )
            self.groups[group.id] = group
        return httpx.Response(201, json=self._entity(group))

    def _read_group(self, group_id: str, params: dict, body: Any) -> httpx.Response:
        with self._lock:
            group = self.groups.get(group_id)
            if group is None or group.deleted:
                return httpx.Response(404, text=f"Unable to find process group {group_id}")
            response = httpx.Response(200, json=self._entity(group))
        if self.after_read is not None:
            self.after_read(group_id)
        return response

    def _delete_group(self, group_id: str, params: dict, body: Any) -> httpx.Response:
        with self._lock:
            group = self.groups.get(group_id)
            if group is None:
                return httpx.Response(404, text=f"Unable to find process group {group_id}")
            if int(params.get("version", -1)) != group.version:
                return self._conflict(group)
            group.deleted = True
            group.version += 1
            return httpx.Response(200, json=self._entity(group))

    def _create_processor(self, group_id: str, params: dict, body: dict) -> httpx.Response:
        if body["revision"]["version"] != 0:
            return httpx.Response(409, text="New resources must use revision 0")
        with self._lock:
            if group_id not in self.groups:
                return httpx.Response(404, text=f"Unable to find process group {group_id}")
            self._counters["proc"] += 1
            processor = FakeResource(
                id=f"proc-{self._counters['proc']}",
                parent_id=group_id,
                attributes={**body["component"], "state": "STOPPED"},
            )
            self.processors[processor.id] = processor
        return httpx.Response(201, json=self._entity(processor))

    def _set_run_status(self, processor_id: str, params: dict, body: dict) -> httpx.Response:
        with self._lock:
            processor = self.processors.get(processor_id)
            if processor is None or processor.deleted:
                return httpx.Response(404, text=f"Unable to find processor {processor_id}")
            if body["revision"]["version"] != processor.version:
                return self._conflict(processor)
            processor.attributes["state"] = body["component"]["state"]
            processor.version += 1
            return httpx.Response(200, json=self._entity(processor))

    def _delete_processor(self, processor_id: str, params: dict, body: Any) -> httpx.Response:
        with self._lock:
            processor = self.processors.get(processor_id)
            if processor is None or processor.deleted:
                return httpx.Response(404, text=f"Unable to find processor {processor_id}")
            processor.deleted = True
            return httpx.Response(200, json=self._entity(processor))

    @staticmethod
    def _entity(resource: FakeResource) -> dict[str, Any]:
        return {
            "id": resource.id,
            "revision": {"version": resource.version},
            "component": {"id": resource.id, "parentGroupId": resource.parent_id, **resource.attributes},
        }

    @staticmethod
    def _conflict(resource: FakeResource) -> httpx.Response:
        return httpx.Response(
            409,
            text=f"[{resource.version}, null, {resource.id}] is not the most up-to-date revision.",
        )


@pytest.fixture
def engine() -> FakeFlowEngine:
    return FakeFlowEngine()


@pytest.fixture
def client(engine):
    """FlowEngineClient talking to the fake engine."""
    http_client = httpx.Client(transport=httpx.MockTransport(engine.handle))
    with http_client:
        yield FlowEngineClient(ENGINE_URL, http_client=http_client)


@pytest.fixture
def client_for():
    """Build a client whose every request is answered by ``handler``."""
    opened: list[httpx.Client] = []

    def _build(handler: Callable[[httpx.Request], httpx.Response]) -> FlowEngineClient:
        http_client = httpx.Client(transport=httpx.MockTransport(handler))
        opened.append(http_client)
        return FlowEngineClient(ENGINE_URL, http_client=http_client)

    yield _build

    for http_client in opened:
        http_client.close()
