"""Async client for the Joplin Data API (Web Clipper)."""

from __future__ import annotations

import json
import mimetypes
from pathlib import Path
from typing import Any

import httpx

from .errors import JoplinApiError, JoplinConnectionError, ResourceFileError
from .logging import get_logger
from .settings import DEFAULT_MAX_PAGES, ConnectionConfig, Settings, build_connection_config

logger = get_logger(__name__)

PAGE_LIMIT = 100
BODY_SEPARATOR = "\n\n"

NOTE_FIELDS = "id,parent_id,title,body,created_time,updated_time,is_todo,todo_completed"
NOTE_LIST_FIELDS = "id,parent_id,title,updated_time,is_todo,todo_completed"
FOLDER_FIELDS = "id,parent_id,title,created_time,updated_time"
TAG_FIELDS = "id,title"
RESOURCE_FIELDS = "id,title,mime,filename,file_extension,size,created_time,updated_time"


class PagedItems(list):
    """Items accumulated across pages; ``truncated`` is set when the page cap was hit."""

    truncated: bool = False


class JoplinClient:
    """Thin wrapper around Joplin's REST API.

    Every request carries the token as a query parameter. Read-modify-write
    helpers (append/prepend) are not atomic: Joplin has no compare-and-swap,
    so a change made between the read and the write is overwritten.
    """

    def __init__(
        self,
        config: ConnectionConfig,
        *,
        timeout_seconds: float = 15.0,
        max_pages: int = DEFAULT_MAX_PAGES,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._max_pages = max_pages
        self._client = httpx.AsyncClient(
            base_url=config.base_url.rstrip("/"),
            timeout=httpx.Timeout(timeout_seconds),
            transport=transport,
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        config: ConnectionConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> JoplinClient:
        return cls(
            config if config is not None else build_connection_config(settings),
            timeout_seconds=settings.http_timeout_seconds,
            max_pages=settings.max_pages,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._config.base_url

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> JoplinClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # -- core primitive -------------------------------------------------

    async def _send(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: Any = None,
        files: dict[str, Any] | None = None,
    ) -> httpx.Response:
        method = method.upper()
        url_path = path if path.startswith("/") else f"/{path}"
        q = dict(params or {})
        q.setdefault("token", self._config.token)

        try:
            resp = await self._client.request(
                method, url_path, params=q, json=json_body, files=files
            )
        except httpx.TransportError as exc:
            raise JoplinConnectionError(str(exc) or type(exc).__name__) from exc

        if not resp.is_success:
            raise JoplinApiError(
                status_code=resp.status_code,
                method=method,
                path=url_path,
                response_text=(resp.text or "").strip(),
            )
        return resp

    @staticmethod
    def _decode(resp: httpx.Response, method: str, path: str) -> Any:
        text = resp.text
        if not text.strip():
            # DELETE and friends answer with an empty body.
            return None
        try:
            return json.loads(text)
        except ValueError as exc:
            raise JoplinApiError(
                status_code=resp.status_code,
                method=method,
                path=path,
                response_text=f"Invalid JSON in response: {exc}",
            ) from exc

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: Any = None,
    ) -> Any:
        """Issue one request; returns decoded JSON, or ``None`` for an empty body."""
        resp = await self._send(method, path, params=params, json_body=json_body)
        return self._decode(resp, method.upper(), path)

    async def paginate(self, path: str, params: dict[str, Any] | None = None) -> PagedItems:
        """Follow ``has_more`` from page 1 and return every item in order."""
        items = PagedItems()
        for page in range(1, self._max_pages + 1):
            q = dict(params or {})
            q.setdefault("limit", PAGE_LIMIT)
            q["page"] = page
            data = await self.request("GET", path, params=q) or {}
            if not isinstance(data, dict):
                raise JoplinApiError(
                    status_code=200,
                    method="GET",
                    path=path,
                    response_text=f"Unexpected JSON type: {type(data).__name__}",
                )
            items.extend(data.get("items") or [])
            if not data.get("has_more"):
                return items

        items.truncated = True
        logger.warning(
            "Stopped paging %s after %d pages; results are truncated", path, self._max_pages
        )
        return items

    async def ping(self) -> str:
        resp = await self._send("GET", "/ping")
        return resp.text

    # -- notebooks (folders) --------------------------------------------

    async def list_notebooks(
        self,
        *,
        fields: str | None = None,
        order_by: str | None = None,
        order_dir: str | None = None,
    ) -> PagedItems:
        return await self.paginate(
            "/folders", _listing_params(fields or FOLDER_FIELDS, order_by, order_dir)
        )

    async def get_notebook(self, notebook_id: str, *, fields: str | None = None) -> Any:
        return await self.request(
            "GET", f"/folders/{notebook_id}", params={"fields": fields or FOLDER_FIELDS}
        )

    async def create_notebook(self, title: str, parent_id: str | None = None) -> Any:
        payload: dict[str, Any] = {"title": title}
        if parent_id:
            payload["parent_id"] = parent_id
        return await self.request("POST", "/folders", json_body=payload)

    async def update_notebook(self, notebook_id: str, props: dict[str, Any]) -> Any:
        return await self.request("PUT", f"/folders/{notebook_id}", json_body=props)

    async def delete_notebook(self, notebook_id: str, *, permanent: bool = False) -> Any:
        return await self.request(
            "DELETE", f"/folders/{notebook_id}", params=_delete_params(permanent)
        )

    async def get_notebook_notes(
        self, notebook_id: str, *, fields: str | None = None
    ) -> PagedItems:
        return await self.paginate(
            f"/folders/{notebook_id}/notes", {"fields": fields or NOTE_LIST_FIELDS}
        )

    # -- notes ----------------------------------------------------------

    async def list_notes(
        self,
        *,
        fields: str | None = None,
        order_by: str | None = None,
        order_dir: str | None = None,
    ) -> PagedItems:
        return await self.paginate(
            "/notes", _listing_params(fields or NOTE_LIST_FIELDS, order_by, order_dir)
        )

    async def get_note(self, note_id: str, *, fields: str | None = None) -> Any:
        return await self.request(
            "GET", f"/notes/{note_id}", params={"fields": fields or NOTE_FIELDS}
        )

    async def create_note(
        self,
        title: str,
        body: str = "",
        parent_id: str | None = None,
        *,
        is_todo: bool = False,
    ) -> Any:
        payload: dict[str, Any] = {"title": title, "body": body}
        if parent_id:
            payload["parent_id"] = parent_id
        if is_todo:
            payload["is_todo"] = 1
        return await self.request("POST", "/notes", json_body=payload)

    async def update_note(self, note_id: str, props: dict[str, Any]) -> Any:
        return await self.request("PUT", f"/notes/{note_id}", json_body=props)

    async def delete_note(self, note_id: str, permanent: bool = False) -> Any:
        return await self.request("DELETE", f"/notes/{note_id}", params=_delete_params(permanent))

    async def move_note(self, note_id: str, parent_id: str) -> Any:
        return await self.update_note(note_id, {"parent_id": parent_id})

    async def append_to_note(self, note_id: str, content: str) -> Any:
        body = await self._note_body(note_id)
        return await self.update_note(note_id, {"body": _join(body, content)})

    async def prepend_to_note(self, note_id: str, content: str) -> Any:
        body = await self._note_body(note_id)
        return await self.update_note(note_id, {"body": _join(content, body)})

    async def _note_body(self, note_id: str) -> str:
        note = await self.get_note(note_id, fields="id,body") or {}
        return note.get("body") or ""

    async def get_note_tags(self, note_id: str, *, fields: str | None = None) -> PagedItems:
        return await self.paginate(f"/notes/{note_id}/tags", {"fields": fields or TAG_FIELDS})

    async def get_note_resources(
        self, note_id: str, *, fields: str | None = None
    ) -> PagedItems:
        return await self.paginate(
            f"/notes/{note_id}/resources", {"fields": fields or RESOURCE_FIELDS}
        )

    async def search(
        self,
        query: str,
        search_type: str | None = None,
        *,
        fields: str | None = None,
    ) -> PagedItems:
        params: dict[str, Any] = {"query": query}
        if search_type:
            params["type"] = search_type
        if fields:
            params["fields"] = fields
        return await self.paginate("/search", params)

    # -- tags -----------------------------------------------------------

    async def list_tags(self, *, fields: str | None = None) -> PagedItems:
        return await self.paginate("/tags", {"fields": fields or TAG_FIELDS})

    async def get_tag(self, tag_id: str) -> Any:
        return await self.request("GET", f"/tags/{tag_id}", params={"fields": TAG_FIELDS})

    async def create_tag(self, title: str) -> Any:
        return await self.request("POST", "/tags", json_body={"title": title})

    async def update_tag(self, tag_id: str, title: str) -> Any:
        return await self.request("PUT", f"/tags/{tag_id}", json_body={"title": title})

    async def delete_tag(self, tag_id: str) -> Any:
        return await self.request("DELETE", f"/tags/{tag_id}")

    async def add_tag_to_note(self, tag_id: str, note_id: str) -> Any:
        # Joplin expects a body with {"id": <note_id>}.
        return await self.request("POST", f"/tags/{tag_id}/notes", json_body={"id": note_id})

    async def remove_tag_from_note(self, tag_id: str, note_id: str) -> Any:
        return await self.request("DELETE", f"/tags/{tag_id}/notes/{note_id}")

    async def get_notes_by_tag(self, tag_id: str, *, fields: str | None = None) -> PagedItems:
        return await self.paginate(f"/tags/{tag_id}/notes", {"fields": fields or NOTE_LIST_FIELDS})

    # -- resources (attachments) ----------------------------------------

    async def list_resources(self, *, fields: str | None = None) -> PagedItems:
        return await self.paginate("/resources", {"fields": fields or RESOURCE_FIELDS})

    async def get_resource(self, resource_id: str, *, fields: str | None = None) -> Any:
        return await self.request(
            "GET", f"/resources/{resource_id}", params={"fields": fields or RESOURCE_FIELDS}
        )

    async def update_resource(self, resource_id: str, props: dict[str, Any]) -> Any:
        return await self.request("PUT", f"/resources/{resource_id}", json_body=props)

    async def delete_resource(self, resource_id: str) -> Any:
        return await self.request("DELETE", f"/resources/{resource_id}")

    async def get_resource_notes(
        self, resource_id: str, *, fields: str | None = None
    ) -> PagedItems:
        return await self.paginate(
            f"/resources/{resource_id}/notes", {"fields": fields or NOTE_LIST_FIELDS}
        )

    async def download_resource(
        self, resource_id: str, destination: str | Path | None = None
    ) -> bytes:
        """Fetch an attachment's bytes, optionally writing them to ``destination``."""
        resp = await self._send("GET", f"/resources/{resource_id}/file")
        data = resp.content
        if destination is not None:
            target = Path(destination).expanduser()
            try:
                target.write_bytes(data)
            except OSError as exc:
                raise ResourceFileError(f"Could not write {target}: {exc}") from exc
        return data

    async def create_resource(
        self,
        source: str | Path,
        *,
        title: str | None = None,
        mime: str | None = None,
    ) -> Any:
        """Create a Joplin resource (attachment) via multipart upload."""
        return await self._send_resource("POST", "/resources", source, title=title, mime=mime)

    async def update_resource_file(
        self,
        resource_id: str,
        source: str | Path,
        *,
        title: str | None = None,
        mime: str | None = None,
    ) -> Any:
        """Replace an attachment's file content (and optionally its title)."""
        return await self._send_resource(
            "PUT", f"/resources/{resource_id}", source, title=title, mime=mime
        )

    async def _send_resource(
        self,
        method: str,
        path: str,
        source: str | Path,
        *,
        title: str | None,
        mime: str | None,
    ) -> Any:
        source_path = Path(source).expanduser()
        try:
            data = source_path.read_bytes()
        except OSError as exc:
            raise ResourceFileError(f"Could not read {source_path}: {exc}") from exc

        mime = mime or mimetypes.guess_type(source_path.name)[0] or "application/octet-stream"
        props = {"title": title or source_path.name, "mime": mime}
        files = {
            "props": (None, json.dumps(props), "application/json"),
            "data": (source_path.name, data, mime),
        }
        resp = await self._send(method, path, files=files)
        return self._decode(resp, method, path)


def _listing_params(fields: str, order_by: str | None, order_dir: str | None) -> dict[str, Any]:
    params: dict[str, Any] = {"fields": fields}
    if order_by:
        params["order_by"] = order_by
    if order_dir:
        params["order_dir"] = order_dir.upper()
    return params


def _delete_params(permanent: bool) -> dict[str, Any] | None:
    return {"permanent": 1} if permanent else None


def _join(first: str, second: str) -> str:
    return f"{first}{BODY_SEPARATOR}{second}"
