"""Event ABI handling and JSON-RPC calls for contract logs."""

from __future__ import annotations

import json
import re
from typing import Any, Dict, List, Mapping, Tuple, Union

import requests
from Crypto.Hash import keccak

_TIMEOUT = 30
_INT_TYPE = re.compile(r"^(u?int)(\d*)$")
_FIXED_BYTES = re.compile(r"^bytes([1-9]|[12]\d|3[0-2])$")


class RpcError(Exception):
    """Error object returned by a JSON-RPC node."""

    def __init__(self, message: str, code: int = 0):
        super().__init__(f"RPC Error: {message}")
        self.message = message
        self.code = code


def keccak256(data: Union[bytes, str]) -> bytes:
    if isinstance(data, str):
        data = data.encode("utf-8")
    return keccak.new(digest_bits=256, data=bytes(data)).digest()


def _checksum_address(raw: bytes) -> str:
    lower = raw.hex()
    digest = keccak256(lower).hex()
    return "0x" + "".join(c.upper() if int(n, 16) >= 8 else c for c, n in zip(lower, digest))


def _canonical(type_str: str) -> str:
    match = _INT_TYPE.match(type_str)
    if match:
        size = int(match.group(2) or 256)
        if size % 8 or not 8 <= size <= 256:
            raise ValueError(f"abi: invalid integer size {type_str}")
        return f"{match.group(1)}{size}"
    if type_str in ("address", "bool", "string", "bytes") or _FIXED_BYTES.match(type_str):
        return type_str
    raise ValueError(f"unsupported arg type: {type_str}")


def _word(frame: bytes, pos: int) -> bytes:
    if pos < 0 or pos + 32 > len(frame):
        raise ValueError("abi: cannot unpack, length insufficient")
    return frame[pos : pos + 32]


def _decode(typ: str, frame: bytes, pos: int) -> Any:
    word = _word(frame, pos)
    if typ in ("string", "bytes"):
        offset = int.from_bytes(word, "big")
        length = int.from_bytes(_word(frame, offset), "big")
        raw = frame[offset + 32 : offset + 32 + length]
        if len(raw) < length:
            raise ValueError("abi: cannot unpack, length insufficient")
        return raw.decode("utf-8", errors="replace") if typ == "string" else raw
    if typ.startswith("uint"):
        return int.from_bytes(word, "big")
    if typ.startswith("int"):
        return int.from_bytes(word, "big", signed=True)
    if typ == "address":
        return _checksum_address(word[12:])
    if typ == "bool":
        if int.from_bytes(word, "big") > 1:
            raise ValueError("abi: improperly encoded boolean value")
        return word[-1] == 1
    return word[: int(typ[5:])]


class ContractAbi:
    """Events declared in a contract's JSON ABI."""

    def __init__(self, events: Mapping[str, Tuple[str, Tuple[Tuple[str, str, bool], ...]]]):
        self._events = dict(events)

    @classmethod
    def from_json(cls, abi_json: Union[str, bytes]) -> "ContractAbi":
        entries = json.loads(abi_json)
        if not isinstance(entries, list):
            raise ValueError("abi: JSON ABI must be a list")
        events: Dict[str, Any] = {}
        for entry in entries:
            if not isinstance(entry, Mapping) or entry.get("type") != "event":
                continue
            name = entry["name"]
            inputs = tuple((arg.get("name", ""), _canonical(arg["type"]), bool(arg.get("indexed")))
                           for arg in entry.get("inputs") or [])
            key, counter = name, 0
            while key in events:
                key, counter = f"{name}{counter}", counter + 1
            events[key] = (name, inputs)
        return cls(events)

    def _event(self, event_name: str):
        if event_name not in self._events:
            raise ValueError(f"event {event_name} not found")
        return self._events[event_name]

    def event_signature(self, event_name: str) -> str:
        name, inputs = self._event(event_name)
        return f"{name}(" + ",".join(t for _, t, _ in inputs) + ")"

    def event_topic(self, event_name: str) -> str:
        return "0x" + keccak256(self.event_signature(event_name)).hex()

    def decode_event_data(self, event_name: str, data: Union[bytes, str]) -> Dict[str, Any]:
        """Decode the non-indexed arguments of an event from its data field."""
        inputs = [(n, t) for n, t, indexed in self._event(event_name)[1] if not indexed]
        if isinstance(data, str):
            text = data[2:] if data[:2] in ("0x", "0X") else data
            data = bytes.fromhex("0" * (len(text) % 2) + text)
        if inputs and not data:
            raise ValueError("abi: attempting to unmarshal an empty string while arguments are expected")
        return {name: _decode(typ, bytes(data), 32 * i) for i, (name, typ) in enumerate(inputs)}


def get_topic0_from_abi(abi_json: Union[str, bytes], event_name: str) -> str:
    return ContractAbi.from_json(abi_json).event_topic(event_name)


def _call(rpc_url: str, method: str, params: list) -> Mapping[str, Any]:
    payload = {"jsonrpc": "2.0", "method": method, "params": params, "id": 1}
    body = requests.post(rpc_url, json=payload, timeout=_TIMEOUT).json()
    if not isinstance(body, Mapping):
        raise ValueError("unexpected JSON-RPC response")
    return body


def get_logs(rpc_url: str, from_block: str, to_block: str, contract_address: str, topic0: str) -> List[Any]:
    """Fetch raw log objects for one contract and one topic0."""
    params = {"fromBlock": from_block, "toBlock": to_block,
              "address": contract_address, "topics": [topic0]}
    body = _call(rpc_url, "eth_getLogs", [params])
    error = body.get("error")
    if isinstance(error, Mapping):
        raise RpcError(str(error.get("message", "")), int(error.get("code") or 0))
    result = body.get("result")
    if result is not None and not isinstance(result, list):
        raise ValueError("eth_getLogs result is not a list")
    return result or []


def get_latest_block_number(rpc_url: str) -> str:
    result = _call(rpc_url, "eth_blockNumber", []).get("result")
    if result is not None and not isinstance(result, str):
        raise ValueError("eth_blockNumber result is not a string")
    return result or ""