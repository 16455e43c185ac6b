# snipvault/infra/firebase/firebase_verifier.py
from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import firebase_admin
from firebase_admin import auth, credentials
from firebase_admin.exceptions import FirebaseError

from snipvault.services._shared.errors import IdentityFailureReason, IdentityVerificationError
from snipvault.services._shared.ports.identity_verifier import IdentityVerifier

log = logging.getLogger(__name__)

FIREBASE_APP_NAME = "snipvault"


@dataclass(slots=True)
class FirebaseIdentityVerifier(IdentityVerifier):
    """
    Adapter over the Firebase Admin SDK's ID-token verification.

    Instances are obtained from :func:`initialize_firebase_verifier`; holding
    one means the SDK app is ready, so there is no separate "initialized"
    flag to consult.

    :param app: Initialized Firebase app.
    :param check_revoked: Also ask Firebase whether the session was revoked.
    """

    app: firebase_admin.App
    check_revoked: bool = True

    def verify(self, assertion: str) -> Mapping[str, Any]:
        try:
            return auth.verify_id_token(assertion, app=self.app, check_revoked=self.check_revoked)
        # Subclasses of InvalidIdTokenError first
        except auth.RevokedIdTokenError:
            raise IdentityVerificationError(IdentityFailureReason.REVOKED) from None
        except auth.ExpiredIdTokenError:
            raise IdentityVerificationError(IdentityFailureReason.EXPIRED) from None
        except auth.UserDisabledError:
            raise IdentityVerificationError(IdentityFailureReason.REVOKED) from None
        except (auth.InvalidIdTokenError, ValueError) as exc:
            log.info("firebase.invalid_id_token: %s", exc)
            raise IdentityVerificationError(IdentityFailureReason.MALFORMED) from None
        except (auth.CertificateFetchError, FirebaseError) as exc:
            log.warning("firebase.verification_unavailable: %s", exc)
            raise IdentityVerificationError(IdentityFailureReason.UNKNOWN) from None


def _load_credential(service_account: str | None) -> credentials.Base:
    """Build SDK credentials from inline JSON, a file path, or ADC."""
    if not service_account:
        return credentials.ApplicationDefault()
    raw = service_account.strip()
    if raw.startswith("{"):
        return credentials.Certificate(json.loads(raw))
    return credentials.Certificate(raw)


def initialize_firebase_verifier(
    *,
    service_account: str | None = None,
    project_id: str | None = None,
    check_revoked: bool = True,
    app_name: str = FIREBASE_APP_NAME,
) -> FirebaseIdentityVerifier:
    """
    Initialize (or reuse) the named Firebase app and return a verifier.

    :param service_account: Inline JSON or path of a service-account key.
        When omitted, Application Default Credentials are used.
    :param project_id: Firebase project id override.
    :param check_revoked: Forwarded to :func:`auth.verify_id_token`.
    :param app_name: Firebase app name; reusing a name reuses the app.
    :returns: Ready-to-use verifier.
    """
    try:
        app = firebase_admin.get_app(app_name)
    except ValueError:
        options = {"projectId": project_id} if project_id else None
        app = firebase_admin.initialize_app(
            _load_credential(service_account), options=options, name=app_name
        )
        log.info("firebase.initialized", extra={"endpoint": app_name})
    return FirebaseIdentityVerifier(app=app, check_revoked=check_revoked)
