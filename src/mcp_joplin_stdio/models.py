"""Tool argument models.

Each tool decodes its argument bag into one of these once, at the dispatch
boundary. Their JSON schemas double as the advertised ``inputSchema``.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

OrderDir = Literal["ASC", "DESC"]
SearchType = Literal["note", "folder", "tag", "resource"]


class ToolArgs(BaseModel):
    model_config = ConfigDict(extra="ignore")


class NoArgs(ToolArgs):
    pass


class ListingArgs(ToolArgs):
    fields: str | None = Field(
        default=None, description="Comma-separated fields to return (e.g. 'id,title')"
    )
    order_by: str | None = Field(default=None, description="Field to sort by")
    order_dir: OrderDir | None = Field(default=None, description="Sort direction: ASC or DESC")


class FieldsArgs(ToolArgs):
    fields: str | None = Field(default=None, description="Comma-separated fields to return")


# -- notebooks -----------------------------------------------------------


class NotebookIdArgs(ToolArgs):
    notebook_id: str = Field(description="Notebook (folder) ID")
    fields: str | None = Field(default=None, description="Comma-separated fields to return")


class CreateNotebookArgs(ToolArgs):
    title: str = Field(description="Notebook title")
    parent_id: str | None = Field(
        default=None, description="Parent notebook ID for creating a sub-notebook"
    )


class UpdateNotebookArgs(ToolArgs):
    notebook_id: str = Field(description="Notebook ID to update")
    title: str | None = Field(default=None, description="New title")
    parent_id: str | None = Field(default=None, description="New parent notebook ID")


class DeleteNotebookArgs(ToolArgs):
    notebook_id: str = Field(description="Notebook ID to delete")
    permanent: bool = Field(default=False, description="Skip the trash and delete permanently")


class NotebookNotesArgs(ToolArgs):
    notebook_id: str | None = Field(default=None, description="Notebook ID")
    notebook_name: str | None = Field(
        default=None, description="Notebook title (case-insensitive), used when no ID is given"
    )
    fields: str | None = Field(default=None, description="Comma-separated fields to return")


# -- notes ---------------------------------------------------------------


class NoteIdArgs(ToolArgs):
    note_id: str = Field(description="Note ID")
    fields: str | None = Field(default=None, description="Comma-separated fields to return")


class CreateNoteArgs(ToolArgs):
    title: str = Field(description="Note title")
    body: str = Field(default="", description="Note content in Markdown")
    parent_id: str | None = Field(default=None, description="Notebook ID to create the note in")
    is_todo: bool = Field(default=False, description="Create as a to-do item")


class UpdateNoteArgs(ToolArgs):
    note_id: str = Field(description="Note ID to update")
    title: str | None = Field(default=None, description="New title")
    body: str | None = Field(default=None, description="New Markdown body (replaces the old one)")
    is_todo: bool | None = Field(default=None, description="Convert to/from a to-do item")
    todo_completed: bool | None = Field(
        default=None, description="Mark the to-do as completed or not"
    )


class DeleteNoteArgs(ToolArgs):
    note_id: str = Field(description="Note ID to delete")
    permanent: bool = Field(default=False, description="Skip the trash and delete permanently")


class MoveNoteArgs(ToolArgs):
    note_id: str = Field(description="Note ID to move")
    parent_id: str = Field(description="Destination notebook ID")


class NoteContentArgs(ToolArgs):
    note_id: str = Field(description="Note ID")
    content: str = Field(description="Markdown to add")


class SearchArgs(ToolArgs):
    query: str = Field(description="Joplin search query (supports title:, tag:, notebook: ...)")
    type: SearchType | None = Field(default=None, description="Restrict results to one item type")
    fields: str | None = Field(default=None, description="Comma-separated fields to return")


# -- tags ----------------------------------------------------------------


class CreateTagArgs(ToolArgs):
    title: str = Field(description="Tag title")


class RenameTagArgs(ToolArgs):
    tag_id: str | None = Field(default=None, description="Tag ID")
    tag_name: str | None = Field(
        default=None, description="Current tag title (case-insensitive), used when no ID is given"
    )
    new_title: str = Field(description="New tag title")


class TagIdArgs(ToolArgs):
    tag_id: str = Field(description="Tag ID")


class TagNoteArgs(ToolArgs):
    tag_id: str = Field(description="Tag ID")
    note_id: str = Field(description="Note ID")


class TagNotesArgs(ToolArgs):
    tag_id: str | None = Field(default=None, description="Tag ID")
    tag_name: str | None = Field(
        default=None, description="Tag title (case-insensitive), used when no ID is given"
    )
    fields: str | None = Field(default=None, description="Comma-separated fields to return")


# -- resources -----------------------------------------------------------


class ResourceIdArgs(ToolArgs):
    resource_id: str = Field(description="Resource (attachment) ID")
    fields: str | None = Field(default=None, description="Comma-separated fields to return")


class DownloadResourceArgs(ToolArgs):
    resource_id: str = Field(description="Resource ID")
    output_path: str | None = Field(
        default=None,
        description="Write the file here; when omitted the content is returned as base64",
    )


class UploadResourceArgs(ToolArgs):
    file_path: str = Field(description="Local path of the file to upload")
    title: str | None = Field(default=None, description="Resource title (defaults to file name)")
    mime: str | None = Field(default=None, description="MIME type (guessed from the file name)")


class UpdateResourceArgs(ToolArgs):
    resource_id: str = Field(description="Resource ID")
    title: str = Field(description="New title")


class UpdateResourceFileArgs(ToolArgs):
    resource_id: str = Field(description="Resource ID")
    file_path: str = Field(description="Local path of the replacement file")
    title: str | None = Field(default=None, description="New title")
    mime: str | None = Field(default=None, description="MIME type (guessed from the file name)")


class ResourceBlob(BaseModel):
    id: str
    mime: str | None = None
    filename: str | None = None
    size: int
    data_base64: str
