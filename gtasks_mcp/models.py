"""
Data models for tasks, task lists and tool responses.

Upstream objects are plain dicts from googleapiclient; they are normalized
into these models before being returned so that every optional field is
present with an explicit default.
"""

import json
from enum import Enum
from typing import Optional, List, Dict, Any

from mcp.types import EmbeddedResource, TextContent, TextResourceContents
from pydantic import BaseModel, ConfigDict, Field, field_validator

JSON_MIME_TYPE = "application/json"

TASKLIST_SCHEME = "gtasklists:///"
TASK_SCHEME = "gtasks:///"


class TaskStatus(str, Enum):
    """Task status options"""
    NEEDS_ACTION = "needsAction"
    COMPLETED = "completed"


def _blank_to_none(v: Any) -> Any:
    if isinstance(v, str) and v == "":
        return None
    return v


# ==========================================
# ENTITIES
# ==========================================


class TaskList(BaseModel):
    """A Google Tasks task list, normalized"""
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    title: str = "Untitled"
    updated: Optional[str] = None
    self_link: Optional[str] = Field(None, alias="selfLink")
    etag: Optional[str] = None

    @field_validator('id', 'updated', 'self_link', 'etag', mode='before')
    @classmethod
    def _empty_is_absent(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @field_validator('title', mode='before')
    @classmethod
    def _default_title(cls, v: Any) -> Any:
        return v or "Untitled"

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class Task(BaseModel):
    """A Google Tasks task, normalized"""
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    title: str = "Untitled"
    status: TaskStatus = TaskStatus.NEEDS_ACTION
    notes: Optional[str] = None
    due: Optional[str] = None
    completed: Optional[str] = None
    parent: Optional[str] = None
    position: Optional[str] = None
    updated: Optional[str] = None
    hidden: bool = False
    deleted: bool = False
    etag: Optional[str] = None
    self_link: Optional[str] = Field(None, alias="selfLink")
    links: List[Dict[str, Any]] = Field(default_factory=list)

    @field_validator('id', 'notes', 'due', 'completed', 'parent', 'position',
                     'updated', 'etag', 'self_link', mode='before')
    @classmethod
    def _empty_is_absent(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @field_validator('title', mode='before')
    @classmethod
    def _default_title(cls, v: Any) -> Any:
        return v or "Untitled"

    @field_validator('status', mode='before')
    @classmethod
    def _default_status(cls, v: Any) -> Any:
        return v or TaskStatus.NEEDS_ACTION

    @field_validator('hidden', 'deleted', mode='before')
    @classmethod
    def _default_false(cls, v: Any) -> Any:
        return False if v is None else v

    @field_validator('links', mode='before')
    @classmethod
    def _default_links(cls, v: Any) -> Any:
        return v or []

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode='json')

    def matches(self, query: str) -> bool:
        """Case-insensitive substring match on title or notes"""
        needle = query.lower()
        return needle in self.title.lower() or needle in (self.notes or "").lower()


# ==========================================
# RESPONSE ENVELOPE
# ==========================================


class ResourcePayload(BaseModel):
    """Structured data attached to a tool response"""
    uri: str
    mime_type: str = JSON_MIME_TYPE
    data: Any

    def text(self) -> str:
        return json.dumps(self.data, indent=2)


class ResponseEnvelope(BaseModel):
    """Human-readable summary plus optional structured payload"""
    summary_text: str
    payload: Optional[ResourcePayload] = None

    def to_content(self) -> List[Any]:
        """Render as MCP content blocks"""
        content: List[Any] = [TextContent(type="text", text=self.summary_text)]
        if self.payload is not None:
            content.append(
                EmbeddedResource(
                    type="resource",
                    resource=TextResourceContents(
                        uri=self.payload.uri,
                        mimeType=self.payload.mime_type,
                        text=self.payload.text(),
                    ),
                )
            )
        return content


def tasklist_uri(tasklist_id: Optional[str] = None) -> str:
    return f"{TASKLIST_SCHEME}{tasklist_id or ''}"


def task_uri(task_id: Optional[str] = None) -> str:
    return f"{TASK_SCHEME}{task_id or ''}"
