"""
Encryption of private message bodies at rest.

AES-256-GCM, stored as base64(IV + ciphertext + tag).
"""

import hashlib
import base64
import os
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from django.conf import settings


class EncryptionError(Exception):
    """Raised when a value cannot be encrypted or decrypted"""
    pass


IV_LENGTH = 12  # 96 bits - recommended for GCM
TAG_LENGTH = 16  # 128 bits - authentication tag
KEY_LENGTH = 32  # 256 bits for AES-256


def get_key() -> bytes:
    """
    32-byte AES key derived from MESSAGE_ENCRYPTION_KEY.

    Keys of any other length are hashed with SHA-256.
    """
    key = settings.MESSAGE_ENCRYPTION_KEY.encode()
    if len(key) != KEY_LENGTH:
        return hashlib.sha256(key).digest()
    return key


def encrypt(text: str) -> str:
    """
    Encrypt a string using AES-256-GCM.

    Args:
        text: The plain text to encrypt

    Returns:
        Base64 encoded IV + ciphertext + tag

    Raises:
        EncryptionError: If input is not a non-empty string
    """
    if not isinstance(text, str) or not text:
        raise EncryptionError('Can only encrypt non-empty strings')

    iv = os.urandom(IV_LENGTH)
    ciphertext = AESGCM(get_key()).encrypt(iv, text.encode('utf-8'), None)
    return base64.b64encode(iv + ciphertext).decode('ascii')


def decrypt(text: str) -> str:
    """
    Decrypt a value produced by encrypt().

    Raises:
        EncryptionError: If the value is malformed or fails authentication
    """
    if not isinstance(text, str) or not text:
        raise EncryptionError('Can only decrypt non-empty strings')

    try:
        data = base64.b64decode(text, validate=True)
    except ValueError:
        raise EncryptionError('Invalid encrypted text format: not valid base64')

    if len(data) < IV_LENGTH + 1 + TAG_LENGTH:
        raise EncryptionError('Invalid encrypted text format: data too short')

    try:
        plaintext = AESGCM(get_key()).decrypt(data[:IV_LENGTH], data[IV_LENGTH:], None)
    except InvalidTag:
        raise EncryptionError('Decryption failed: data integrity check failed (tampered or corrupted)')

    return plaintext.decode('utf-8')


def hash_text(text: str) -> str:
    """SHA-256 hex digest, used for one-time tokens stored server side."""
    if not isinstance(text, str):
        raise EncryptionError('Input must be a string')
    return hashlib.sha256(text.encode()).hexdigest()
