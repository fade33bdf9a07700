# miningsvc

A library for working with a mining-user contract. It polls a JSON-RPC
endpoint for the contract's `UserRef` and `UserProcessing` event logs, stores
one-time codes for referred users with a fifteen-minute lifetime, checks the
codes that come back on chain, and hands the follow-up calls (notification,
OTP status, activation) to a transaction service you provide.

## Modules

- `miningsvc.config` – `load_config(path)` reads a `.yaml`, `.yml` or `.json`
  file into an `AppConfig`; `AppConfig.from_mapping(data)` builds one from a
  mapping. Keys match the field names case-insensitively with underscores
  ignored (so `RpcURL` fills `rpc_url`). `chain_id` must be an unsigned
  64-bit integer. Any other file type, an unreadable file or a bad value
  raises `ConfigError`. `VERIFICATION_EXPIRED_TIME` is the OTP lifetime in
  minutes (15).
- `miningsvc.models` – `EventLog` (`from_dict`, `from_json`, `to_dict`; a
  field of the wrong type raises `ValueError`), `OtpVerificationRequest`,
  `OtpAuthenticationRequest` and `TxResponse`.
- `miningsvc.rpc` – `get_latest_block_number(rpc_url)`,
  `get_logs(rpc_url, from_block, to_block, contract_address, topic0)`,
  `keccak256(data)`, `get_topic0_from_abi(abi_json, event_name)` and
  `ContractAbi`, which reads the events of a JSON ABI and offers
  `event_signature`, `event_topic` and `decode_event_data` (non-indexed
  arguments of type uint/int, address, bool, string, bytes and bytesN).
  An error object in a `get_logs` response raises `RpcError`. Requests time
  out after 30 seconds.
- `miningsvc.secp` – secp256k1 on hex strings: `create_public_key`,
  `create_ecdh` (SHA-256 of the compressed shared point),
  `sign_recoverable` (deterministic, low-s, 65-byte r||s||recid) and
  `recover_public_key`. Invalid input raises `SecpError`.
- `miningsvc.crypto` – `pad_pkcs7`, `unpad_pkcs7`, `encrypt_aes_cbc`,
  `ecdh_shared_secret_hex`, and `decrypt_aes_cbc`, which derives its AES key
  by ECDH from a private key and a peer public key.
- `miningsvc.kvstore` – `KeyValueStore`, an on-disk key/value store driven
  by mappings with `"key"` and `"data"` entries. `write` and `read` raise
  `StorageError` for a missing or empty key (or data), and `read` also for
  an unknown key; `delete` returns `{"success": True}` or an error mapping.
  It can be used as a context manager.
- `miningsvc.database` – the `OtpVerification` table,
  `start_database(url)` (any SQLAlchemy URL; creates the schema) and
  `get_engine()`.
- `miningsvc.repository` – `OtpRepository(engine)` saves, checks and
  deletes OTP records keyed by referal address.
- `miningsvc.usecase` – `OtpUsecase(repo)`: `otp_verification` stores a
  code expiring in 15 minutes, `otp_authentication` raises
  `InvalidOtpError` for a wrong or expired code.
- `miningsvc.handler` – `TransactionService` (a protocol) and
  `MiningUserHandler`. `poll_once(last_block)` queues the new block's logs
  on `handler.events`; `listen_events()` runs that loop in a background
  thread until `stop()`. `handle_event(event)` dispatches by first topic to
  `handle_user_ref` (issues a random OTP to a subscribed referal and sends a
  notification whose body is JSON with `otp` and `referer`) or
  `handle_user_processing` (checks the submitted OTP, then calls
  `update_otp_status` and `active_user_by_be`).

## Examples

Configuration:

```python
from miningsvc.config import load_config

config = load_config("config.yaml")
print(config.rpc_url, config.dns_link())
```

Fetching logs for the newest block:

```python
from miningsvc.rpc import get_latest_block_number, get_logs, get_topic0_from_abi

with open("mining_user.abi.json") as fh:
    topic = get_topic0_from_abi(fh.read(), "UserRef")

block = get_latest_block_number("http://localhost:8545")
for raw in get_logs("http://localhost:8545", block, block, "0x" + "00" * 20, topic):
    print(raw)
```

OTP storage:

```python
from miningsvc.database import start_database
from miningsvc.models import OtpAuthenticationRequest, OtpVerificationRequest
from miningsvc.repository import OtpRepository
from miningsvc.usecase import OtpUsecase

usecase = OtpUsecase(OtpRepository(start_database("sqlite:///otp.db")))
usecase.otp_verification(OtpVerificationRequest("0x" + "ab" * 20), "1234")
usecase.otp_authentication(OtpAuthenticationRequest("0x" + "ab" * 20, "1234"))
```

Key/value store:

```python
from miningsvc.kvstore import KeyValueStore

with KeyValueStore.open("data/store") as store:
    store.write({"key": "greeting", "data": "hello"})
    print(store.read({"key": "greeting"}))
    print(store.delete({"key": "greeting"}))
```

## What it does not do

- There is no command-line program and no HTTP server; `AppConfig.api_port`
  is read but nothing listens on it.
- No transaction-sending client is included. `TransactionService` only
  describes the four calls the handler makes; you supply an object that
  signs and sends them.
- `MiningUserHandler` fills a queue but does not consume it: take events
  from `handler.events` and pass them to `handle_event` yourself.

## Tests

The tests use pytest and responses, listed under the `test` extra.