from __future__ import annotations

import base64
import json
from pathlib import Path

import httpx
import pytest

from mcp_joplin_stdio.dispatcher import Dispatcher
from mcp_joplin_stdio.tools import TOOL_DESCRIPTORS, TOOLS

from conftest import FakeJoplin


def _text(result) -> str:
    return "\n".join(block.text for block in result.content)


@pytest.fixture
def dispatcher(make_client) -> Dispatcher:
    return Dispatcher(make_client())


def test_catalog_is_complete_and_unique() -> None:
    names = [tool.name for tool in TOOL_DESCRIPTORS]
    assert len(names) == len(set(names)) == len(TOOLS)
    for expected in (
        "list_notebooks",
        "create_note",
        "append_to_note",
        "prepend_to_note",
        "rename_tag",
        "get_notes_by_tag",
        "download_resource",
        "upload_resource",
        "update_resource_file",
        "search",
    ):
        assert expected in names


def test_input_schemas_declare_required_arguments() -> None:
    tools = {tool.name: tool for tool in TOOL_DESCRIPTORS}
    create_note = tools["create_note"].inputSchema
    assert create_note["type"] == "object"
    assert create_note["required"] == ["title"]
    assert create_note["properties"]["is_todo"]["type"] == "boolean"
    assert "required" not in tools["list_tags"].inputSchema
    assert set(tools["rename_tag"].inputSchema["required"]) == {"new_title"}


@pytest.mark.asyncio
async def test_unknown_tool_fails_without_network(
    dispatcher: Dispatcher, fake_joplin: FakeJoplin
) -> None:
    result = await dispatcher.dispatch("does_not_exist", {})

    assert result.isError is True
    assert _text(result) == "Error: Unknown tool: does_not_exist"
    assert fake_joplin.requests == []


@pytest.mark.asyncio
async def test_missing_required_argument(dispatcher: Dispatcher, fake_joplin: FakeJoplin) -> None:
    result = await dispatcher.dispatch("get_note", {})

    assert result.isError is True
    assert "Must provide 'note_id'" in _text(result)
    assert fake_joplin.requests == []


@pytest.mark.asyncio
async def test_read_returns_json_dump(dispatcher: Dispatcher, fake_joplin: FakeJoplin) -> None:
    fake_joplin.queue_json({"items": [{"id": "f1", "title": "Inbox"}], "has_more": False})

    result = await dispatcher.dispatch("list_notebooks", None)

    assert result.isError is False
    assert json.loads(result.content[0].text) == [{"id": "f1", "title": "Inbox"}]


@pytest.mark.asyncio
async def test_truncated_listing_is_flagged(make_client, fake_joplin: FakeJoplin) -> None:
    fake_joplin.queue_json({"items": [{"id": "t1"}], "has_more": True})
    dispatcher = Dispatcher(make_client(max_pages=1))

    result = await dispatcher.dispatch("list_tags", {})

    assert result.isError is False
    assert len(result.content) == 2
    assert "truncated" in result.content[1].text


@pytest.mark.asyncio
async def test_mutation_returns_confirmation(dispatcher: Dispatcher, fake_joplin: FakeJoplin) -> None:
    fake_joplin.queue_json({"id": "n42", "title": "Groceries"})

    result = await dispatcher.dispatch("create_note", {"title": "Groceries", "body": "- milk"})

    assert result.isError is False
    assert _text(result) == 'Created note "Groceries" with ID: n42'
    assert fake_joplin.json_body(0) == {"title": "Groceries", "body": "- milk"}


@pytest.mark.asyncio
async def test_api_error_becomes_failure(dispatcher: Dispatcher, fake_joplin: FakeJoplin) -> None:
    fake_joplin.queue(httpx.Response(403, text="Invalid token"))

    result = await dispatcher.dispatch("get_note", {"note_id": "n1"})

    assert result.isError is True
    text = _text(result)
    assert text.startswith("Error: ")
    assert "403" in text
    assert "Invalid token" in text


@pytest.mark.asyncio
async def test_connection_error_becomes_failure(
    dispatcher: Dispatcher, fake_joplin: FakeJoplin
) -> None:
    fake_joplin.queue(httpx.ConnectError("connection refused"))

    result = await dispatcher.dispatch("list_notes", {})

    assert result.isError is True
    assert _text(result) == "Error: Failed to connect to Joplin: connection refused"


@pytest.mark.asyncio
async def test_rename_tag_by_name(dispatcher: Dispatcher, fake_joplin: FakeJoplin) -> None:
    fake_joplin.queue_json(
        {"items": [{"id": "t1", "title": "work"}, {"id": "t2", "title": "home"}], "has_more": False},
        {"id": "t2", "title": "house"},
    )

    result = await dispatcher.dispatch("rename_tag", {"tag_name": "HOME", "new_title": "house"})

    assert result.isError is False
    put = fake_joplin.requests[1]
    assert (put.method, put.url.path) == ("PUT", "/tags/t2")
    assert fake_joplin.json_body(1) == {"title": "house"}


@pytest.mark.asyncio
async def test_rename_tag_unknown_name_issues_no_put(
    dispatcher: Dispatcher, fake_joplin: FakeJoplin
) -> None:
    fake_joplin.queue_json({"items": [{"id": "t1", "title": "work"}], "has_more": False})

    result = await dispatcher.dispatch("rename_tag", {"tag_name": "wor", "new_title": "x"})

    assert result.isError is True
    assert _text(result) == "Error: Tag not found: wor"
    assert [r.method for r in fake_joplin.requests] == ["GET"]


@pytest.mark.asyncio
async def test_rename_tag_by_id_skips_lookup(dispatcher: Dispatcher, fake_joplin: FakeJoplin) -> None:
    fake_joplin.queue_json({"id": "t9"})

    result = await dispatcher.dispatch("rename_tag", {"tag_id": "t9", "new_title": "new"})

    assert result.isError is False
    assert [(r.method, r.url.path) for r in fake_joplin.requests] == [("PUT", "/tags/t9")]


@pytest.mark.asyncio
async def test_tag_lookup_needs_id_or_name(dispatcher: Dispatcher, fake_joplin: FakeJoplin) -> None:
    result = await dispatcher.dispatch("get_notes_by_tag", {})

    assert result.isError is True
    assert _text(result) == "Error: Must provide either tag_id or tag_name"
    assert fake_joplin.requests == []


@pytest.mark.asyncio
async def test_notes_by_tag_name(dispatcher: Dispatcher, fake_joplin: FakeJoplin) -> None:
    fake_joplin.queue_json(
        {"items": [{"id": "t1", "title": "Work"}], "has_more": False},
        {"items": [{"id": "n1", "title": "Standup"}], "has_more": False},
    )

    result = await dispatcher.dispatch("get_notes_by_tag", {"tag_name": "work"})

    assert json.loads(result.content[0].text) == [{"id": "n1", "title": "Standup"}]
    assert fake_joplin.requests[1].url.path == "/tags/t1/notes"


@pytest.mark.asyncio
async def test_notebook_notes_by_name(dispatcher: Dispatcher, fake_joplin: FakeJoplin) -> None:
    fake_joplin.queue_json(
        {"items": [{"id": "f1", "title": "Projects"}], "has_more": False},
        {"items": [], "has_more": False},
    )

    result = await dispatcher.dispatch("get_notebook_notes", {"notebook_name": "projects"})

    assert result.isError is False
    assert fake_joplin.requests[1].url.path == "/folders/f1/notes"


@pytest.mark.asyncio
async def test_append_tool(dispatcher: Dispatcher, fake_joplin: FakeJoplin) -> None:
    fake_joplin.queue_json({"id": "n1", "body": "A"}, {"id": "n1"})

    result = await dispatcher.dispatch("append_to_note", {"note_id": "n1", "content": "X"})

    assert _text(result) == "Appended content to note n1"
    assert fake_joplin.json_body(1) == {"body": "A\n\nX"}


@pytest.mark.asyncio
async def test_delete_note_permanent(dispatcher: Dispatcher, fake_joplin: FakeJoplin) -> None:
    fake_joplin.queue(httpx.Response(200, text=""))

    result = await dispatcher.dispatch("delete_note", {"note_id": "n1", "permanent": True})

    assert _text(result) == "Note n1 permanently deleted"
    assert fake_joplin.requests[0].url.params["permanent"] == "1"


@pytest.mark.asyncio
async def test_update_note_requires_a_change(
    dispatcher: Dispatcher, fake_joplin: FakeJoplin
) -> None:
    result = await dispatcher.dispatch("update_note", {"note_id": "n1"})

    assert result.isError is True
    assert "Must provide at least one of" in _text(result)
    assert fake_joplin.requests == []


@pytest.mark.asyncio
async def test_invalid_order_dir_is_rejected(
    dispatcher: Dispatcher, fake_joplin: FakeJoplin
) -> None:
    result = await dispatcher.dispatch("list_notes", {"order_dir": "sideways"})

    assert result.isError is True
    assert "order_dir" in _text(result)
    assert fake_joplin.requests == []


@pytest.mark.asyncio
async def test_download_returns_base64(dispatcher: Dispatcher, fake_joplin: FakeJoplin) -> None:
    fake_joplin.queue(
        httpx.Response(200, content=b"hello"),
        httpx.Response(200, json={"id": "r1", "mime": "text/plain", "filename": "hello.txt"}),
    )

    result = await dispatcher.dispatch("download_resource", {"resource_id": "r1"})

    blob = json.loads(result.content[0].text)
    assert blob["size"] == 5
    assert base64.b64decode(blob["data_base64"]) == b"hello"
    assert blob["mime"] == "text/plain"


@pytest.mark.asyncio
async def test_upload_missing_file_is_failure(
    dispatcher: Dispatcher, fake_joplin: FakeJoplin, tmp_path: Path
) -> None:
    result = await dispatcher.dispatch("upload_resource", {"file_path": str(tmp_path / "x.png")})

    assert result.isError is True
    assert "Could not read" in _text(result)
    assert fake_joplin.requests == []


@pytest.mark.asyncio
async def test_unexpected_exception_is_contained(
    dispatcher: Dispatcher, fake_joplin: FakeJoplin
) -> None:
    fake_joplin.queue(httpx.Response(200, json=["not", "an", "object"]))

    result = await dispatcher.dispatch("list_tags", {})

    assert result.isError is True
    assert _text(result).startswith("Error: ")
