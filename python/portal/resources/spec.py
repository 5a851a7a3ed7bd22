"""Per-resource configuration for the parametric manager."""

from dataclasses import dataclass

from pydantic import BaseModel


@dataclass(frozen=True)
class ResourceSpec:
    """Everything that differs between links, documents, memos and profiles.

    Attributes:
        name: Cache namespace and log field (e.g. "links").
        table: Store table.
        row_model: Frozen pydantic model for fetched rows.
        form_model: Pydantic model validating user-entered fields.
        label: Human name used in messages ("Link").
        order_by: Column the collection is sorted on, newest first.
        owner_column: Column holding the owner's user id.
        id_column: Primary key column.
        touch_column: Column set to the current time on every write.
        creatable: Whether items can be created from a form.
        created_verb: Verb in the create success message.
        updated_verb: Verb in the update success message.
    """

    name: str
    table: str
    row_model: type[BaseModel]
    form_model: type[BaseModel]
    label: str
    order_by: str | None = "created_at"
    owner_column: str = "user_id"
    id_column: str = "id"
    touch_column: str | None = None
    creatable: bool = True
    created_verb: str = "added"
    updated_verb: str = "updated"

    @property
    def created_message(self) -> str:
        return f"{self.label} {self.created_verb} successfully!"

    @property
    def updated_message(self) -> str:
        return f"{self.label} {self.updated_verb} successfully!"

    @property
    def deleted_message(self) -> str:
        return f"{self.label} deleted successfully!"

    @property
    def not_found_message(self) -> str:
        return f"{self.label} not found."
