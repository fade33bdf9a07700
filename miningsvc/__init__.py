"""Mining-user contract events over JSON-RPC, one-time codes, and secp256k1/AES-CBC helpers."""

__version__ = "0.1.0"