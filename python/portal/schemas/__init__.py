"""Pydantic schemas for portal rows and forms."""

from portal.schemas.account import Credentials, PasswordChangeForm
from portal.schemas.document import Document, DocumentRenameForm
from portal.schemas.existence import EmailCheckRequest, EmailCheckResponse
from portal.schemas.link import Link, LinkForm
from portal.schemas.memo import Memo, MemoForm
from portal.schemas.profile import Profile, ProfileForm

__all__ = [
    "Credentials",
    "PasswordChangeForm",
    "Document",
    "DocumentRenameForm",
    "EmailCheckRequest",
    "EmailCheckResponse",
    "Link",
    "LinkForm",
    "Memo",
    "MemoForm",
    "Profile",
    "ProfileForm",
]
