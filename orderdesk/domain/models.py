"""
Domain Models

Typed views over the documents kept in the external store:

- Order: a unit of work assigned to one or more editors
- Editor: a user profile from the users collection
- Viewer: the identity a dashboard session runs as
- Notification: an ephemeral, session-local feed entry

Stored documents use camelCase keys; models accept them through aliases and
expose snake_case attributes. Every optional field is explicitly nullable and
consumers check presence before use.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterable, List, Optional, Tuple

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic.alias_generators import to_camel

logger = structlog.get_logger(__name__)


# =============================================================================
# ENUMERATIONS
# =============================================================================

class OrderStatus(str, Enum):
    """Order status enumeration"""
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class UserRole(str, Enum):
    """Dashboard user roles"""
    TEAM_LEADER = "team-leader"
    EDITOR = "editor"


class EditorStatus(str, Enum):
    """Employment status of an editor"""
    ACTIVE = "Active"
    TERMINATED = "Terminated"


class NotificationType(str, Enum):
    """Kinds of feed entries"""
    ASSIGNED = "assigned"
    UPDATE = "update"
    ACCEPTED = "accepted"
    COMPLETED = "completed"
    DANGER = "danger"


# =============================================================================
# HELPERS
# =============================================================================

def coerce_instant(value: Any) -> Any:
    """
    Convert a store timestamp into an aware datetime.

    Accepts datetimes, ISO-8601 strings, objects exposing ``to_datetime()``,
    and ``{"seconds": ..., "nanoseconds": ...}`` mappings. Naive values are
    taken to be UTC. Anything else is returned unchanged for the caller to
    reject.
    """
    if value is None:
        return None
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError:
            return value
    if hasattr(value, "to_datetime") and not isinstance(value, datetime):
        value = value.to_datetime()
    elif isinstance(value, dict) and "seconds" in value:
        seconds = value["seconds"] + value.get("nanoseconds", 0) / 1_000_000_000
        value = datetime.fromtimestamp(seconds, tz=timezone.utc)
    if isinstance(value, datetime) and value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


class StoreModel(BaseModel):
    """Base for models parsed from store documents"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


# =============================================================================
# RECORDS
# =============================================================================

class Order(StoreModel):
    """An order document"""

    id: str
    name: Optional[str] = None
    telecaller: Optional[str] = None
    status: OrderStatus = OrderStatus.PENDING
    assigned_editor_emails: List[str] = Field(default_factory=list)
    assigned_editor_names: Optional[Any] = None
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @field_validator("assigned_editor_emails", mode="before")
    @classmethod
    def _emails_default(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("created_at", "completed_at", mode="before")
    @classmethod
    def _instants(cls, v: Any) -> Any:
        return coerce_instant(v)

    @model_validator(mode="after")
    def _completed_at_follows_status(self) -> "Order":
        # completedAt is only meaningful on completed orders
        if self.status != OrderStatus.COMPLETED and self.completed_at is not None:
            self.completed_at = None
        return self

    @property
    def is_shared(self) -> bool:
        return len(set(self.assigned_editor_emails)) > 1

    @property
    def is_open(self) -> bool:
        return self.status in (OrderStatus.PENDING, OrderStatus.IN_PROGRESS)

    def is_assigned_to(self, email: Optional[str]) -> bool:
        return bool(email) and email in self.assigned_editor_emails


class Editor(StoreModel):
    """A user profile with the editor role"""

    id: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    photo_url: Optional[str] = Field(default=None, alias="photoURL")
    role: UserRole = UserRole.EDITOR
    status: Optional[str] = None
    created_at: Optional[datetime] = None

    @field_validator("created_at", mode="before")
    @classmethod
    def _instants(cls, v: Any) -> Any:
        return coerce_instant(v)

    @property
    def name(self) -> str:
        """Display name, falling back to the email's local part"""
        if self.display_name:
            return self.display_name
        if self.email:
            return self.email.split("@")[0]
        return self.id


class Viewer(BaseModel):
    """Identity a dashboard session runs as"""

    email: Optional[str] = None
    role: UserRole = UserRole.EDITOR
    display_name: Optional[str] = None

    @property
    def is_team_leader(self) -> bool:
        return self.role == UserRole.TEAM_LEADER


class Notification(BaseModel):
    """A feed entry. Lives only in the session that produced it."""

    model_config = ConfigDict(frozen=True)

    id: str
    order_id: Optional[str] = None
    order_name: Optional[str] = None
    editor_description: str
    status: Optional[str] = None
    timestamp: datetime
    type: NotificationType
    title: str

    @field_validator("timestamp", mode="before")
    @classmethod
    def _instant(cls, v: Any) -> Any:
        return coerce_instant(v)


# =============================================================================
# PARSING
# =============================================================================

Document = Tuple[str, dict]


def parse_orders(documents: Iterable[Document]) -> List[Order]:
    """Parse raw documents into orders, skipping malformed ones"""
    orders = []
    for doc_id, data in documents:
        try:
            orders.append(Order.model_validate({**data, "id": doc_id}))
        except ValidationError as e:
            logger.warning("Skipping malformed order", order_id=doc_id, errors=e.error_count())
    return orders


def parse_editors(documents: Iterable[Document]) -> List[Editor]:
    """Parse raw documents into editor profiles, skipping malformed ones"""
    editors = []
    for doc_id, data in documents:
        try:
            editors.append(Editor.model_validate({**data, "id": doc_id}))
        except ValidationError as e:
            logger.warning("Skipping malformed editor", editor_id=doc_id, errors=e.error_count())
    return editors
