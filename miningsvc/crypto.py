"""AES-CBC with PKCS#7 padding and an ECDH-derived key."""

from __future__ import annotations

from Crypto.Cipher import AES

from .secp import SecpError, create_ecdh

BLOCK_SIZE = AES.block_size


def ecdh_shared_secret_hex(priv_bytes: bytes, pub_bytes: bytes) -> str:
    """Hex shared secret of a private key and a peer's public key."""
    return create_ecdh(bytes(priv_bytes).hex(), bytes(pub_bytes).hex())


def pad_pkcs7(data: bytes, block_size: int) -> bytes:
    padding = block_size - len(data) % block_size
    return bytes(data) + bytes([padding]) * padding


def unpad_pkcs7(data: bytes) -> bytes:
    if not data:
        raise ValueError("data is empty")
    padding = data[-1]
    if padding > len(data):
        raise ValueError("invalid padding")
    return bytes(data[: len(data) - padding])


def encrypt_aes_cbc(key: bytes, plaintext: bytes, iv: bytes) -> bytes:
    cipher = AES.new(bytes(key), AES.MODE_CBC, iv=bytes(iv))
    return cipher.encrypt(pad_pkcs7(plaintext, BLOCK_SIZE))


def decrypt_aes_cbc(ciphertext: bytes, priv_b: bytes, pub_a: bytes, iv: bytes) -> bytes:
    """Decrypt with the key shared between private key B and public key A."""
    try:
        shared_hex = ecdh_shared_secret_hex(priv_b, pub_a)
    except SecpError as exc:
        raise ValueError(f"failed to get ECDH shared secret: {exc}") from exc
    key = bytes.fromhex(shared_hex)
    cipher = AES.new(key, AES.MODE_CBC, iv=bytes(iv))
    return unpad_pkcs7(cipher.decrypt(bytes(ciphertext)))