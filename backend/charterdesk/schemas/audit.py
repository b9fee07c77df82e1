"""Audit trail schemas: field changes, activity log, and activity metadata.

ActivityMetadata is a discriminated union on `kind`. Rows written before a
variant existed, or by clients sending free-form data, fall back to
`custom`, which carries an opaque `data` dict.
"""

from datetime import datetime
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from charterdesk.schemas.auth import UserSummary


# ── Activity metadata variants ──────────────────────────────

class FieldChangeMetadata(BaseModel):
    kind: Literal["field_change"] = "field_change"
    field_name: str
    old_value: str | None = None
    new_value: str | None = None


class StatusChangeMetadata(BaseModel):
    kind: Literal["status_change"] = "status_change"
    from_status: str | None = None
    to_status: str


class ReferenceMetadata(BaseModel):
    kind: Literal["reference"] = "reference"
    entity_type: str
    entity_id: str


class CustomMetadata(BaseModel):
    kind: Literal["custom"] = "custom"
    data: dict[str, Any] = {}


ActivityMetadata = Annotated[
    Union[FieldChangeMetadata, StatusChangeMetadata, ReferenceMetadata, CustomMetadata],
    Field(discriminator="kind"),
]

_metadata_adapter = TypeAdapter(ActivityMetadata)


def parse_metadata(raw: dict | None) -> ActivityMetadata | None:
    """Read a stored metadata dict back into its variant.

    Anything that does not match a known variant is wrapped as `custom`.
    """
    if raw is None:
        return None
    try:
        return _metadata_adapter.validate_python(raw)
    except ValidationError:
        return CustomMetadata(data=raw)


def dump_metadata(metadata: ActivityMetadata | None) -> dict | None:
    if metadata is None:
        return None
    return metadata.model_dump()


# ── Activity log ─────────────────────────────────────────────

class StatusLabel(BaseModel):
    value: str
    label: str


class ExpandableRow(BaseModel):
    label: str
    value: str


class Expandable(BaseModel):
    data: list[ExpandableRow] = []


class ActivityCreate(BaseModel):
    """Manual activity entry logged by the caller."""
    entity_type: Literal["order", "negotiation", "contract", "recap_manager"]
    entity_id: str
    action: str
    description: str
    status: StatusLabel | None = None
    metadata: ActivityMetadata | None = None


class ActivityLogOut(BaseModel):
    id: str
    entity_type: str
    entity_id: str
    action: str
    description: str
    status: StatusLabel | None = None
    metadata: ActivityMetadata | None = None
    expandable: Expandable | None = None
    user_id: str | None = None
    timestamp: datetime
    user: UserSummary | None = None


# ── Field changes ────────────────────────────────────────────

class FieldChangeCreate(BaseModel):
    entity_type: Literal[
        "order", "negotiation", "contract", "recap_manager",
        "contract_addenda", "recap_addenda",
    ]
    entity_id: str
    field_name: str
    old_value: Any = None
    new_value: Any = None
    change_reason: str | None = None


class FieldChangeOut(BaseModel):
    id: str
    entity_type: str
    entity_id: str
    field_name: str
    old_value: str | None = None
    new_value: str | None = None
    change_reason: str | None = None
    user_id: str
    timestamp: datetime
    user: UserSummary | None = None
