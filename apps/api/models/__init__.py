"""Models package."""

from .user import User
from .profile import Profile
from .credential_log import CredentialLog
