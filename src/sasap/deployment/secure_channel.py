"""
Secure channel capability used for inter-partition communication

AESGCMChannel: AES-256-GCM, random 96-bit nonce prepended to each ciphertext.
"""

import logging
import secrets
from abc import ABC, abstractmethod
from typing import Optional

from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from sasap.errors import ChannelClosedError

logger = logging.getLogger(__name__)

KEY_SIZE = 32  # 256 bits for AES-256
NONCE_SIZE = 12  # 96 bits for AES-GCM

class SecureChannel(ABC):
    """encrypt/decrypt capability between two partitions"""

    def __init__(self):
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        self._closed = True
        logger.debug(f"{type(self).__name__} closed")

    def _ensure_open(self) -> None:
        if self._closed:
            raise ChannelClosedError(f"{type(self).__name__} is closed")

    def encrypt(self, plaintext: bytes) -> bytes:
        self._ensure_open()
        return self._encrypt(plaintext)

    def decrypt(self, ciphertext: bytes) -> bytes:
        self._ensure_open()
        return self._decrypt(ciphertext)

    @abstractmethod
    def _encrypt(self, plaintext: bytes) -> bytes:
        ...

    @abstractmethod
    def _decrypt(self, ciphertext: bytes) -> bytes:
        ...

class AESGCMChannel(SecureChannel):

    def __init__(self, key: Optional[bytes] = None, associated_data: Optional[bytes] = None):
        super().__init__()
        if key is None:
            key = AESGCM.generate_key(bit_length=KEY_SIZE * 8)
        if len(key) != KEY_SIZE:
            raise ValueError(f"AES-256-GCM key must be {KEY_SIZE} bytes, got {len(key)}")
        self._aesgcm = AESGCM(key)
        self.associated_data = associated_data

    def _encrypt(self, plaintext: bytes) -> bytes:
        nonce = secrets.token_bytes(NONCE_SIZE)
        return nonce + self._aesgcm.encrypt(nonce, plaintext, self.associated_data)

    def _decrypt(self, ciphertext: bytes) -> bytes:
        nonce, body = ciphertext[:NONCE_SIZE], ciphertext[NONCE_SIZE:]
        return self._aesgcm.decrypt(nonce, body, self.associated_data)
