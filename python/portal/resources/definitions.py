"""The portal's resources."""

from portal.resources.spec import ResourceSpec
from portal.schemas import (
    Document,
    DocumentRenameForm,
    Link,
    LinkForm,
    Memo,
    MemoForm,
    Profile,
    ProfileForm,
)

LINKS = ResourceSpec(
    name="links",
    table="links",
    row_model=Link,
    form_model=LinkForm,
    label="Link",
)

MEMOS = ResourceSpec(
    name="memos",
    table="memos",
    row_model=Memo,
    form_model=MemoForm,
    label="Memo",
    order_by="updated_at",
    touch_column="updated_at",
)

# Created by upload, not from a form; the form only renames.
DOCUMENTS = ResourceSpec(
    name="documents",
    table="documents",
    row_model=Document,
    form_model=DocumentRenameForm,
    label="Document",
    creatable=False,
    created_verb="uploaded",
    updated_verb="renamed",
)

# Keyed by the user id itself.
PROFILES = ResourceSpec(
    name="profiles",
    table="profiles",
    row_model=Profile,
    form_model=ProfileForm,
    label="Profile",
    order_by=None,
    owner_column="id",
    touch_column="updated_at",
    creatable=False,
)
