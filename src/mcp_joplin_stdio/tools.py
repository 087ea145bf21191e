"""Tool catalog: one descriptor + handler per supported operation."""

from __future__ import annotations

import base64
import json
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from mcp import types

from .errors import NotFoundError, ToolArgumentError
from .joplin_client import JoplinClient, PagedItems
from .models import (
    CreateNoteArgs,
    CreateNotebookArgs,
    CreateTagArgs,
    DeleteNoteArgs,
    DeleteNotebookArgs,
    DownloadResourceArgs,
    FieldsArgs,
    ListingArgs,
    MoveNoteArgs,
    NoArgs,
    NotebookIdArgs,
    NotebookNotesArgs,
    NoteContentArgs,
    NoteIdArgs,
    RenameTagArgs,
    ResourceBlob,
    ResourceIdArgs,
    SearchArgs,
    TagIdArgs,
    TagNoteArgs,
    TagNotesArgs,
    ToolArgs,
    UpdateNoteArgs,
    UpdateNotebookArgs,
    UpdateResourceArgs,
    UpdateResourceFileArgs,
    UploadResourceArgs,
)

Content = list[types.TextContent]
Handler = Callable[[JoplinClient, Any], Awaitable[Content]]


@dataclass(frozen=True, slots=True)
class ToolSpec:
    name: str
    description: str
    args_model: type[ToolArgs]
    handler: Handler

    def descriptor(self) -> types.Tool:
        return types.Tool(
            name=self.name,
            description=self.description,
            inputSchema=self.args_model.model_json_schema(),
        )


def text(message: str) -> types.TextContent:
    return types.TextContent(type="text", text=message)


def confirm(message: str) -> Content:
    """Mutations answer with what happened."""
    return [text(message)]


def dump(data: Any) -> Content:
    """Reads answer with the data itself."""
    content = [text(json.dumps(data, indent=2, ensure_ascii=False))]
    if isinstance(data, PagedItems) and data.truncated:
        content.append(
            text(f"Listing truncated after {len(data)} items; refine the query to see the rest.")
        )
    return content


def _title(entity: Any, fallback: str) -> str:
    if isinstance(entity, dict) and entity.get("title"):
        return str(entity["title"])
    return fallback


def _id(entity: Any, fallback: str = "") -> str:
    if isinstance(entity, dict) and entity.get("id"):
        return str(entity["id"])
    return fallback


async def _resolve_id(
    kind: str,
    entity_id: str | None,
    name: str | None,
    load: Callable[[], Awaitable[list[dict[str, Any]]]],
) -> str:
    """Use ``entity_id`` when given, else the first item whose title matches ``name``."""
    if entity_id:
        return entity_id
    if not name:
        raise ToolArgumentError(f"Must provide either {kind}_id or {kind}_name")
    wanted = name.casefold()
    for item in await load():
        if (item.get("title") or "").casefold() == wanted:
            return str(item["id"])
    raise NotFoundError(f"{kind.capitalize()} not found: {name}")


async def resolve_tag_id(client: JoplinClient, tag_id: str | None, tag_name: str | None) -> str:
    return await _resolve_id("tag", tag_id, tag_name, client.list_tags)


async def resolve_notebook_id(
    client: JoplinClient, notebook_id: str | None, notebook_name: str | None
) -> str:
    return await _resolve_id("notebook", notebook_id, notebook_name, client.list_notebooks)


# -- service -------------------------------------------------------------


async def ping(client: JoplinClient, _: NoArgs) -> Content:
    answer = await client.ping()
    return confirm(f"Joplin is reachable at {client.base_url}: {answer.strip()}")


# -- notebooks -----------------------------------------------------------


async def list_notebooks(client: JoplinClient, args: ListingArgs) -> Content:
    return dump(
        await client.list_notebooks(
            fields=args.fields, order_by=args.order_by, order_dir=args.order_dir
        )
    )


async def get_notebook(client: JoplinClient, args: NotebookIdArgs) -> Content:
    return dump(await client.get_notebook(args.notebook_id, fields=args.fields))


async def create_notebook(client: JoplinClient, args: CreateNotebookArgs) -> Content:
    created = await client.create_notebook(args.title, args.parent_id)
    return confirm(f'Created notebook "{_title(created, args.title)}" with ID: {_id(created)}')


async def update_notebook(client: JoplinClient, args: UpdateNotebookArgs) -> Content:
    props: dict[str, Any] = {}
    if args.title is not None:
        props["title"] = args.title
    if args.parent_id is not None:
        props["parent_id"] = args.parent_id
    if not props:
        raise ToolArgumentError("Must provide at least one of 'title' or 'parent_id'")
    await client.update_notebook(args.notebook_id, props)
    return confirm(f"Updated notebook {args.notebook_id}")


async def delete_notebook(client: JoplinClient, args: DeleteNotebookArgs) -> Content:
    await client.delete_notebook(args.notebook_id, permanent=args.permanent)
    how = "permanently deleted" if args.permanent else "moved to trash"
    return confirm(f"Notebook {args.notebook_id} {how}")


async def get_notebook_notes(client: JoplinClient, args: NotebookNotesArgs) -> Content:
    notebook_id = await resolve_notebook_id(client, args.notebook_id, args.notebook_name)
    return dump(await client.get_notebook_notes(notebook_id, fields=args.fields))


# -- notes ---------------------------------------------------------------


async def list_notes(client: JoplinClient, args: ListingArgs) -> Content:
    return dump(
        await client.list_notes(fields=args.fields, order_by=args.order_by, order_dir=args.order_dir)
    )


async def get_note(client: JoplinClient, args: NoteIdArgs) -> Content:
    return dump(await client.get_note(args.note_id, fields=args.fields))


async def create_note(client: JoplinClient, args: CreateNoteArgs) -> Content:
    created = await client.create_note(args.title, args.body, args.parent_id, is_todo=args.is_todo)
    kind = "to-do" if args.is_todo else "note"
    return confirm(f'Created {kind} "{_title(created, args.title)}" with ID: {_id(created)}')


async def update_note(client: JoplinClient, args: UpdateNoteArgs) -> Content:
    props: dict[str, Any] = {}
    if args.title is not None:
        props["title"] = args.title
    if args.body is not None:
        props["body"] = args.body
    if args.is_todo is not None:
        props["is_todo"] = int(args.is_todo)
    if args.todo_completed is not None:
        # Joplin records completion as a timestamp; 0 means open.
        props["todo_completed"] = int(time.time() * 1000) if args.todo_completed else 0
    if not props:
        raise ToolArgumentError(
            "Must provide at least one of 'title', 'body', 'is_todo' or 'todo_completed'"
        )
    await client.update_note(args.note_id, props)
    return confirm(f"Updated note {args.note_id} ({', '.join(props)})")


async def delete_note(client: JoplinClient, args: DeleteNoteArgs) -> Content:
    await client.delete_note(args.note_id, args.permanent)
    how = "permanently deleted" if args.permanent else "moved to trash"
    return confirm(f"Note {args.note_id} {how}")


async def move_note(client: JoplinClient, args: MoveNoteArgs) -> Content:
    await client.move_note(args.note_id, args.parent_id)
    return confirm(f"Moved note {args.note_id} to notebook {args.parent_id}")


async def append_to_note(client: JoplinClient, args: NoteContentArgs) -> Content:
    await client.append_to_note(args.note_id, args.content)
    return confirm(f"Appended content to note {args.note_id}")


async def prepend_to_note(client: JoplinClient, args: NoteContentArgs) -> Content:
    await client.prepend_to_note(args.note_id, args.content)
    return confirm(f"Prepended content to note {args.note_id}")


async def get_note_tags(client: JoplinClient, args: NoteIdArgs) -> Content:
    return dump(await client.get_note_tags(args.note_id, fields=args.fields))


async def get_note_resources(client: JoplinClient, args: NoteIdArgs) -> Content:
    return dump(await client.get_note_resources(args.note_id, fields=args.fields))


async def search(client: JoplinClient, args: SearchArgs) -> Content:
    return dump(await client.search(args.query, args.type, fields=args.fields))


# -- tags ----------------------------------------------------------------


async def list_tags(client: JoplinClient, args: FieldsArgs) -> Content:
    return dump(await client.list_tags(fields=args.fields))


async def create_tag(client: JoplinClient, args: CreateTagArgs) -> Content:
    created = await client.create_tag(args.title)
    return confirm(f'Created tag "{_title(created, args.title)}" with ID: {_id(created)}')


async def rename_tag(client: JoplinClient, args: RenameTagArgs) -> Content:
    tag_id = await resolve_tag_id(client, args.tag_id, args.tag_name)
    await client.update_tag(tag_id, args.new_title)
    return confirm(f'Renamed tag {tag_id} to "{args.new_title}"')


async def delete_tag(client: JoplinClient, args: TagIdArgs) -> Content:
    await client.delete_tag(args.tag_id)
    return confirm(f"Deleted tag {args.tag_id}")


async def add_tag_to_note(client: JoplinClient, args: TagNoteArgs) -> Content:
    await client.add_tag_to_note(args.tag_id, args.note_id)
    return confirm(f"Added tag {args.tag_id} to note {args.note_id}")


async def remove_tag_from_note(client: JoplinClient, args: TagNoteArgs) -> Content:
    await client.remove_tag_from_note(args.tag_id, args.note_id)
    return confirm(f"Removed tag {args.tag_id} from note {args.note_id}")


async def get_notes_by_tag(client: JoplinClient, args: TagNotesArgs) -> Content:
    tag_id = await resolve_tag_id(client, args.tag_id, args.tag_name)
    return dump(await client.get_notes_by_tag(tag_id, fields=args.fields))


# -- resources -----------------------------------------------------------


async def list_resources(client: JoplinClient, args: FieldsArgs) -> Content:
    return dump(await client.list_resources(fields=args.fields))


async def get_resource(client: JoplinClient, args: ResourceIdArgs) -> Content:
    return dump(await client.get_resource(args.resource_id, fields=args.fields))


async def get_resource_notes(client: JoplinClient, args: ResourceIdArgs) -> Content:
    return dump(await client.get_resource_notes(args.resource_id, fields=args.fields))


async def download_resource(client: JoplinClient, args: DownloadResourceArgs) -> Content:
    data = await client.download_resource(args.resource_id, args.output_path)
    if args.output_path:
        return confirm(
            f"Downloaded resource {args.resource_id} ({len(data)} bytes) to {args.output_path}"
        )
    meta = await client.get_resource(args.resource_id, fields="id,mime,filename") or {}
    blob = ResourceBlob(
        id=args.resource_id,
        mime=meta.get("mime"),
        filename=meta.get("filename"),
        size=len(data),
        data_base64=base64.b64encode(data).decode("ascii"),
    )
    return dump(blob.model_dump())


async def upload_resource(client: JoplinClient, args: UploadResourceArgs) -> Content:
    created = await client.create_resource(args.file_path, title=args.title, mime=args.mime)
    return confirm(
        f'Uploaded "{_title(created, args.file_path)}" as resource ID: {_id(created)}'
    )


async def update_resource(client: JoplinClient, args: UpdateResourceArgs) -> Content:
    await client.update_resource(args.resource_id, {"title": args.title})
    return confirm(f'Renamed resource {args.resource_id} to "{args.title}"')


async def update_resource_file(client: JoplinClient, args: UpdateResourceFileArgs) -> Content:
    await client.update_resource_file(
        args.resource_id, args.file_path, title=args.title, mime=args.mime
    )
    return confirm(f"Replaced file of resource {args.resource_id} with {args.file_path}")


async def delete_resource(client: JoplinClient, args: ResourceIdArgs) -> Content:
    await client.delete_resource(args.resource_id)
    return confirm(f"Deleted resource {args.resource_id}")


TOOLS: tuple[ToolSpec, ...] = (
    ToolSpec("ping", "Check that the Joplin Data API is reachable.", NoArgs, ping),
    ToolSpec(
        "list_notebooks",
        "List all notebooks (folders). Returns JSON; follows pagination.",
        ListingArgs,
        list_notebooks,
    ),
    ToolSpec("get_notebook", "Get one notebook by ID.", NotebookIdArgs, get_notebook),
    ToolSpec(
        "create_notebook",
        "Create a notebook, optionally nested under a parent notebook.",
        CreateNotebookArgs,
        create_notebook,
    ),
    ToolSpec(
        "update_notebook",
        "Rename a notebook and/or move it under another parent.",
        UpdateNotebookArgs,
        update_notebook,
    ),
    ToolSpec(
        "delete_notebook",
        "Delete a notebook (to trash unless permanent).",
        DeleteNotebookArgs,
        delete_notebook,
    ),
    ToolSpec(
        "get_notebook_notes",
        "List the notes in a notebook, identified by ID or by title.",
        NotebookNotesArgs,
        get_notebook_notes,
    ),
    ToolSpec("list_notes", "List all notes. Returns JSON; follows pagination.", ListingArgs, list_notes),
    ToolSpec("get_note", "Get one note by ID, including its body.", NoteIdArgs, get_note),
    ToolSpec("create_note", "Create a note or to-do.", CreateNoteArgs, create_note),
    ToolSpec(
        "update_note",
        "Update a note's title, body or to-do state.",
        UpdateNoteArgs,
        update_note,
    ),
    ToolSpec(
        "delete_note", "Delete a note (to trash unless permanent).", DeleteNoteArgs, delete_note
    ),
    ToolSpec("move_note", "Move a note to another notebook.", MoveNoteArgs, move_note),
    ToolSpec(
        "append_to_note",
        "Add Markdown to the end of a note, separated by a blank line.",
        NoteContentArgs,
        append_to_note,
    ),
    ToolSpec(
        "prepend_to_note",
        "Add Markdown to the start of a note, separated by a blank line.",
        NoteContentArgs,
        prepend_to_note,
    ),
    ToolSpec("get_note_tags", "List the tags attached to a note.", NoteIdArgs, get_note_tags),
    ToolSpec(
        "get_note_resources",
        "List the attachments referenced by a note.",
        NoteIdArgs,
        get_note_resources,
    ),
    ToolSpec("search", "Search notes (or folders, tags, resources).", SearchArgs, search),
    ToolSpec("list_tags", "List all tags.", FieldsArgs, list_tags),
    ToolSpec("create_tag", "Create a tag.", CreateTagArgs, create_tag),
    ToolSpec(
        "rename_tag", "Rename a tag identified by ID or by its title.", RenameTagArgs, rename_tag
    ),
    ToolSpec("delete_tag", "Delete a tag.", TagIdArgs, delete_tag),
    ToolSpec("add_tag_to_note", "Attach a tag to a note.", TagNoteArgs, add_tag_to_note),
    ToolSpec(
        "remove_tag_from_note", "Detach a tag from a note.", TagNoteArgs, remove_tag_from_note
    ),
    ToolSpec(
        "get_notes_by_tag",
        "List the notes carrying a tag, identified by ID or by title.",
        TagNotesArgs,
        get_notes_by_tag,
    ),
    ToolSpec("list_resources", "List all attachments (resources).", FieldsArgs, list_resources),
    ToolSpec("get_resource", "Get attachment metadata by ID.", ResourceIdArgs, get_resource),
    ToolSpec(
        "get_resource_notes",
        "List the notes that reference an attachment.",
        ResourceIdArgs,
        get_resource_notes,
    ),
    ToolSpec(
        "download_resource",
        "Download an attachment to a local path, or return it base64-encoded.",
        DownloadResourceArgs,
        download_resource,
    ),
    ToolSpec(
        "upload_resource",
        "Upload a local file as a new attachment.",
        UploadResourceArgs,
        upload_resource,
    ),
    ToolSpec("update_resource", "Rename an attachment.", UpdateResourceArgs, update_resource),
    ToolSpec(
        "update_resource_file",
        "Replace an attachment's file content with a local file.",
        UpdateResourceFileArgs,
        update_resource_file,
    ),
    ToolSpec("delete_resource", "Delete an attachment.", ResourceIdArgs, delete_resource),
)

TOOL_DESCRIPTORS: tuple[types.Tool, ...] = tuple(tool.descriptor() for tool in TOOLS)
