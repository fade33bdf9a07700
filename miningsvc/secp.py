"""secp256k1 key derivation, ECDH and recoverable ECDSA signatures."""

from __future__ import annotations

import binascii
import hashlib
import hmac
from typing import Iterator, Iterable, Optional, Tuple

P = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEFFFFFC2F
N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
_GX = 0x79BE667EF9DCBBAC55A06295CE870B07029BFCDB2DCE28D959F2815B16F81798
_GY = 0x483ADA7726A3C4655DA4FBFC0E1108A8FD17B448A68554199C47D08FFB10D4B8
_G = (_GX, _GY)

_Point = Optional[Tuple[int, int]]


class SecpError(ValueError):
    """Raised when a key, hash or signature is invalid or an operation fails."""


def _decode_fixed(text: str, sizes: Iterable[int], message: str) -> bytes:
    try:
        raw = binascii.unhexlify(text)
    except (binascii.Error, TypeError, ValueError):
        raise SecpError(message) from None
    if len(raw) not in tuple(sizes):
        raise SecpError(message)
    return raw


def _add(first: _Point, second: _Point) -> _Point:
    if first is None:
        return second
    if second is None:
        return first
    x1, y1 = first
    x2, y2 = second
    if x1 == x2:
        if (y1 + y2) % P == 0:
            return None
        slope = 3 * x1 * x1 * pow(2 * y1, -1, P) % P
    else:
        slope = (y2 - y1) * pow(x2 - x1, -1, P) % P
    x3 = (slope * slope - x1 - x2) % P
    y3 = (slope * (x1 - x3) - y1) % P
    return (x3, y3)


def _mul(scalar: int, point: _Point) -> _Point:
    result: _Point = None
    addend = point
    while scalar:
        if scalar & 1:
            result = _add(result, addend)
        addend = _add(addend, addend)
        scalar >>= 1
    return result


def _lift_x(x: int, odd: int) -> _Point:
    y_squared = (pow(x, 3, P) + 7) % P
    y = pow(y_squared, (P + 1) // 4, P)
    if y * y % P != y_squared:
        return None
    if (y & 1) != odd:
        y = P - y
    return (x, y)


def _parse_pubkey(raw: bytes) -> _Point:
    prefix = raw[0]
    if len(raw) == 33 and prefix in (2, 3):
        x = int.from_bytes(raw[1:], "big")
        if x >= P:
            return None
        return _lift_x(x, prefix & 1)
    if len(raw) == 65 and prefix in (4, 6, 7):
        x = int.from_bytes(raw[1:33], "big")
        y = int.from_bytes(raw[33:], "big")
        if x >= P or y >= P:
            return None
        if (y * y - pow(x, 3, P) - 7) % P:
            return None
        if prefix in (6, 7) and (y & 1) != (prefix & 1):
            return None
        return (x, y)
    return None


def _serialize(point: Tuple[int, int], compressed: bool) -> bytes:
    x, y = point
    if compressed:
        return bytes([2 | (y & 1)]) + x.to_bytes(32, "big")
    return b"\x04" + x.to_bytes(32, "big") + y.to_bytes(32, "big")


def _valid_scalar(raw: bytes) -> Optional[int]:
    value = int.from_bytes(raw, "big")
    return value if 0 < value < N else None


def create_ecdh(priv_hex: str, pub_hex: str) -> str:
    """Return the hex SHA-256 of the compressed shared point."""
    priv = _decode_fixed(priv_hex, (32,), "invalid private key")
    pub = _decode_fixed(pub_hex, (33, 65), "invalid public key")
    point = _parse_pubkey(pub)
    if point is None:
        raise SecpError("cannot parse public key")
    scalar = _valid_scalar(priv)
    if scalar is None:
        raise SecpError("ECDH failed")
    shared = _mul(scalar, point)
    if shared is None:
        raise SecpError("ECDH failed")
    return hashlib.sha256(_serialize(shared, True)).hexdigest()


def create_public_key(priv_hex: str, compressed: bool) -> str:
    """Derive the public key for a private key, compressed or uncompressed."""
    priv = _decode_fixed(priv_hex, (32,), "invalid private key")
    scalar = _valid_scalar(priv)
    if scalar is None:
        raise SecpError("cannot create public key")
    point = _mul(scalar, _G)
    assert point is not None
    return _serialize(point, compressed).hex()


def recover_public_key(hash_hex: str, sig_hex: str) -> str:
    """Recover the uncompressed public key from a 65-byte r||s||v signature."""
    digest = _decode_fixed(hash_hex, (32,), "invalid hash")
    sig = _decode_fixed(sig_hex, (65,), "invalid signature")
    recid = sig[64]
    if recid > 3:
        raise SecpError("invalid v, must be in range [0..3]")
    r = int.from_bytes(sig[:32], "big")
    s = int.from_bytes(sig[32:64], "big")
    if r >= N or s >= N:
        raise SecpError("cannot parse recoverable signature")
    if r == 0 or s == 0:
        raise SecpError("cannot recover public key")
    x = r + N if recid & 2 else r
    if x >= P:
        raise SecpError("cannot recover public key")
    big_r = _lift_x(x, recid & 1)
    if big_r is None:
        raise SecpError("cannot recover public key")
    e = int.from_bytes(digest, "big") % N
    r_inv = pow(r, -1, N)
    point = _add(_mul(s * r_inv % N, big_r), _mul(-e * r_inv % N, _G))
    if point is None:
        raise SecpError("cannot recover public key")
    return _serialize(point, False).hex()


def _rfc6979_nonces(key32: bytes, msg32: bytes) -> Iterator[bytes]:
    def mac(key: bytes, data: bytes) -> bytes:
        return hmac.new(key, data, hashlib.sha256).digest()

    v = b"\x01" * 32
    k = b"\x00" * 32
    k = mac(k, v + b"\x00" + key32 + msg32)
    v = mac(k, v)
    k = mac(k, v + b"\x01" + key32 + msg32)
    v = mac(k, v)
    while True:
        v = mac(k, v)
        yield v
        k = mac(k, v + b"\x00")
        v = mac(k, v)


def sign_recoverable(raw_hash_hex: str, raw_priv_hex: str) -> str:
    """Sign a 32-byte hash deterministically; return hex r||s||recid (low-s)."""
    digest = _decode_fixed(raw_hash_hex, (32,), "invalid hash")
    priv = _decode_fixed(raw_priv_hex, (32,), "invalid private key")
    d = _valid_scalar(priv)
    if d is None:
        raise SecpError("cannot sign")
    e = int.from_bytes(digest, "big") % N
    for nonce in _rfc6979_nonces(priv, e.to_bytes(32, "big")):
        k = int.from_bytes(nonce, "big")
        if not 0 < k < N:
            continue
        point = _mul(k, _G)
        assert point is not None
        rx, ry = point
        r = rx % N
        if r == 0:
            continue
        s = pow(k, -1, N) * (e + r * d) % N
        if s == 0:
            continue
        recid = (ry & 1) | (2 if rx >= N else 0)
        if s > N // 2:
            s = N - s
            recid ^= 1
        return (r.to_bytes(32, "big") + s.to_bytes(32, "big") + bytes([recid])).hex()
    raise SecpError("cannot sign")