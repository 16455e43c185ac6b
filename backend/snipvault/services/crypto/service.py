"""Per-record field encryption: PBKDF2-SHA256 key derivation + AES-256-GCM."""

from __future__ import annotations

import binascii
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from snipvault.services._shared.errors import AuthenticationFailure
from snipvault.services.crypto.dto import DerivedKey, EncryptedSecret

KEY_BYTES = 32
IV_BYTES = 12
TAG_BYTES = 16
MIN_ITERATIONS = 100_000


class EncryptionService:
    """
    Stateless encryption helper for snippet values.

    Every record gets its own key: ``derive_key(keyword, owner_id)``. Every
    call to :meth:`encrypt` draws a fresh random IV. :meth:`decrypt` either
    returns the authenticated plaintext or raises
    :class:`AuthenticationFailure`; it never returns unverified bytes.

    :param iterations: PBKDF2 rounds (at least 100,000).
    """

    def __init__(self, *, iterations: int = MIN_ITERATIONS) -> None:
        if iterations < MIN_ITERATIONS:
            raise ValueError(f"PBKDF2 iterations must be >= {MIN_ITERATIONS}.")
        self.iterations = iterations

    # ------------------------------------------------------------------ #
    # Key derivation
    # ------------------------------------------------------------------ #

    def derive_key(self, context: str, owner_salt: str) -> DerivedKey:
        """
        Derive the AES key for one record.

        :param context: The record's keyword (PBKDF2 password input).
        :param owner_salt: The owning user's id (PBKDF2 salt).
        :returns: 256-bit key.
        :raises ValueError: If either input is empty.
        """
        if not context or not owner_salt:
            raise ValueError("Key derivation requires a context and an owner salt.")
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=KEY_BYTES,
            salt=owner_salt.encode("utf-8"),
            iterations=self.iterations,
        )
        return DerivedKey(kdf.derive(context.encode("utf-8")))

    # ------------------------------------------------------------------ #
    # AEAD
    # ------------------------------------------------------------------ #

    def encrypt(
        self, plaintext: str, key: DerivedKey, *, associated_data: bytes | None = None
    ) -> EncryptedSecret:
        """
        Encrypt ``plaintext`` under ``key`` with a fresh 96-bit IV.

        :param plaintext: UTF-8 text to protect.
        :param key: Key from :meth:`derive_key`.
        :param associated_data: Optional AAD that must be replayed on decrypt.
        :returns: Hex-encoded ciphertext, tag and IV.
        """
        iv = os.urandom(IV_BYTES)
        sealed = AESGCM(key.material).encrypt(iv, plaintext.encode("utf-8"), associated_data)
        # cryptography appends the tag to the ciphertext
        ciphertext, tag = sealed[:-TAG_BYTES], sealed[-TAG_BYTES:]
        return EncryptedSecret(
            ciphertext_hex=ciphertext.hex(),
            auth_tag_hex=tag.hex(),
            iv_hex=iv.hex(),
        )

    def decrypt(
        self,
        secret: EncryptedSecret,
        key: DerivedKey,
        *,
        associated_data: bytes | None = None,
    ) -> str:
        """
        Verify and decrypt a stored secret.

        :param secret: Stored ciphertext/tag/IV triple.
        :param key: Key from :meth:`derive_key`.
        :param associated_data: AAD given at encryption time, if any.
        :returns: Plaintext.
        :raises AuthenticationFailure: Wrong key, tampered ciphertext, tag or
            IV, or a malformed stored triple.
        """
        try:
            ciphertext = bytes.fromhex(secret.ciphertext_hex)
            tag = bytes.fromhex(secret.auth_tag_hex)
            iv = bytes.fromhex(secret.iv_hex)
        except (ValueError, TypeError, binascii.Error) as exc:
            raise AuthenticationFailure("Stored secret is not valid hex") from exc
        if len(iv) != IV_BYTES or len(tag) != TAG_BYTES:
            raise AuthenticationFailure("Stored secret has a malformed IV or tag")
        try:
            plaintext = AESGCM(key.material).decrypt(iv, ciphertext + tag, associated_data)
        except InvalidTag as exc:
            raise AuthenticationFailure() from exc
        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as exc:  # pragma: no cover - tag already verified
            raise AuthenticationFailure("Decrypted value is not UTF-8") from exc

    # ------------------------------------------------------------------ #
    # Convenience for the snippet layer
    # ------------------------------------------------------------------ #

    def seal(self, value: str, *, keyword: str, owner_id: int) -> EncryptedSecret:
        """``encrypt(value, derive_key(keyword, owner_id))``."""
        return self.encrypt(value, self.derive_key(keyword, str(owner_id)))

    def open(self, secret: EncryptedSecret, *, keyword: str, owner_id: int) -> str:
        """``decrypt(secret, derive_key(keyword, owner_id))``."""
        return self.decrypt(secret, self.derive_key(keyword, str(owner_id)))
