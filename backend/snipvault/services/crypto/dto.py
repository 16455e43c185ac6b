# comments in English; reST docstrings
from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class DerivedKey:
    """
    A 256-bit AES key derived for one (keyword, owner) pair.

    The raw bytes are excluded from ``repr`` so keys never leak into logs.

    :param material: 32 raw key bytes.
    :type material: bytes
    """

    material: bytes = field(repr=False)

    def __post_init__(self) -> None:
        if len(self.material) != 32:
            raise ValueError("Derived key must be exactly 32 bytes.")


@dataclass(frozen=True, slots=True)
class EncryptedSecret:
    """
    Stored form of an encrypted value, hex-encoded.

    :param ciphertext_hex: AES-GCM ciphertext (same length as the plaintext).
    :type ciphertext_hex: str
    :param auth_tag_hex: 128-bit GCM tag.
    :type auth_tag_hex: str
    :param iv_hex: 96-bit nonce used for this encryption only.
    :type iv_hex: str
    """

    ciphertext_hex: str
    auth_tag_hex: str
    iv_hex: str
