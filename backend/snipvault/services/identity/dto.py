# comments in English; reST docstrings
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class IdentityClaims:
    """
    Normalized identity asserted by the external provider.

    :param subject_id: Provider subject id (stable per account).
    :type subject_id: str
    :param email: Lower-cased email address.
    :type email: str
    :param display_name: Display name; defaults to the email local part.
    :type display_name: str | None
    :param avatar_url: Profile picture URL, if any.
    :type avatar_url: str | None
    """

    subject_id: str
    email: str
    display_name: str | None = None
    avatar_url: str | None = None
