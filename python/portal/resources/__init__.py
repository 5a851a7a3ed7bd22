"""Resource managers for the user's personal collections."""

from portal.resources.definitions import DOCUMENTS, LINKS, MEMOS, PROFILES
from portal.resources.documents import DocumentManager, PickedFile
from portal.resources.manager import ResourceManager
from portal.resources.profiles import ProfileManager
from portal.resources.spec import ResourceSpec
from portal.resources.state import DialogPhase, DialogState, InvalidTransitionError

__all__ = [
    "DOCUMENTS",
    "LINKS",
    "MEMOS",
    "PROFILES",
    "DialogPhase",
    "DialogState",
    "DocumentManager",
    "InvalidTransitionError",
    "PickedFile",
    "ProfileManager",
    "ResourceManager",
    "ResourceSpec",
]
