"""
Cryptographic primitives backed by the `cryptography` package.

Handles:
- Cipher lookup by identifier (key and IV lengths)
- PBKDF2-HMAC key stretching
- Symmetric encryption/decryption (AES-CBC/CTR/GCM, ChaCha20-Poly1305)
- Secure random bytes
"""

import os
from dataclasses import dataclass

from cryptography.hazmat.primitives import hashes, padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM, ChaCha20Poly1305
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .exceptions import UnknownCipherError, UnknownHashError


@dataclass(frozen=True)
class CipherInfo:
    """Parameters of a supported cipher."""
    name: str
    mode: str
    key_length: int
    iv_length: int


CIPHERS = {
    "aes-128-cbc": CipherInfo("aes-128-cbc", "cbc", 16, 16),
    "aes-192-cbc": CipherInfo("aes-192-cbc", "cbc", 24, 16),
    "aes-256-cbc": CipherInfo("aes-256-cbc", "cbc", 32, 16),
    "aes-128-ctr": CipherInfo("aes-128-ctr", "ctr", 16, 16),
    "aes-192-ctr": CipherInfo("aes-192-ctr", "ctr", 24, 16),
    "aes-256-ctr": CipherInfo("aes-256-ctr", "ctr", 32, 16),
    # AEAD: tag is appended to the ciphertext
    "aes-128-gcm": CipherInfo("aes-128-gcm", "gcm", 16, 12),
    "aes-192-gcm": CipherInfo("aes-192-gcm", "gcm", 24, 12),
    "aes-256-gcm": CipherInfo("aes-256-gcm", "gcm", 32, 12),
    "chacha20-poly1305": CipherInfo("chacha20-poly1305", "chacha20-poly1305", 32, 12),
}

HASHES = {
    "sha1": hashes.SHA1,
    "sha224": hashes.SHA224,
    "sha256": hashes.SHA256,
    "sha384": hashes.SHA384,
    "sha512": hashes.SHA512,
    "sha3-256": hashes.SHA3_256,
    "sha3-512": hashes.SHA3_512,
}

AES_BLOCK_BITS = 128


def random_bytes(length: int) -> bytes:
    """Cryptographically secure random bytes."""
    return os.urandom(length)


def get_cipher_info(cipher: str) -> CipherInfo:
    info = CIPHERS.get((cipher or "").lower())
    if info is None:
        raise UnknownCipherError(cipher)
    return info


def get_hash(hash_name: str) -> hashes.HashAlgorithm:
    hash_cls = HASHES.get((hash_name or "").lower())
    if hash_cls is None:
        raise UnknownHashError(hash_name)
    return hash_cls()


def derive_key(password: str, salt: str, iterations: int, hash_name: str, length: int) -> bytes:
    """
    Stretch a password into a key with PBKDF2-HMAC.

    Args:
        password: The algorithm password
        salt: The algorithm salt (UTF-8 encoded before use)
        iterations: PBKDF2 iteration count
        hash_name: Hash identifier, e.g. "sha256"
        length: Key length in bytes

    Returns:
        The derived key
    """
    kdf = PBKDF2HMAC(
        algorithm=get_hash(hash_name),
        length=length,
        salt=(salt or "").encode("utf-8"),
        iterations=iterations,
    )
    return kdf.derive(password.encode("utf-8"))


def encrypt(cipher: str, key: bytes, iv: bytes, data: bytes) -> bytes:
    info = get_cipher_info(cipher)

    if info.mode == "gcm":
        return AESGCM(key).encrypt(iv, data, None)
    if info.mode == "chacha20-poly1305":
        return ChaCha20Poly1305(key).encrypt(iv, data, None)

    if info.mode == "cbc":
        padder = padding.PKCS7(AES_BLOCK_BITS).padder()
        data = padder.update(data) + padder.finalize()
        encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
    else:
        encryptor = Cipher(algorithms.AES(key), modes.CTR(iv)).encryptor()

    return encryptor.update(data) + encryptor.finalize()


def decrypt(cipher: str, key: bytes, iv: bytes, data: bytes) -> bytes:
    """
    Decrypt data produced by `encrypt`.

    Raises:
        ValueError: Bad CBC length or padding
        cryptography.exceptions.InvalidTag: AEAD authentication failure
    """
    info = get_cipher_info(cipher)

    if info.mode == "gcm":
        return AESGCM(key).decrypt(iv, data, None)
    if info.mode == "chacha20-poly1305":
        return ChaCha20Poly1305(key).decrypt(iv, data, None)

    if info.mode == "cbc":
        decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
        padded = decryptor.update(data) + decryptor.finalize()
        unpadder = padding.PKCS7(AES_BLOCK_BITS).unpadder()
        return unpadder.update(padded) + unpadder.finalize()

    decryptor = Cipher(algorithms.AES(key), modes.CTR(iv)).decryptor()
    return decryptor.update(data) + decryptor.finalize()
