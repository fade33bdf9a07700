"""Data records shared across the service."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, List, Mapping

_EVENT_FIELDS = {
    "address": "address",
    "block_hash": "blockHash",
    "block_number": "blockNumber",
    "data": "data",
    "log_index": "logIndex",
    "topics": "topics",
    "transaction_hash": "TransactionHash",
}


@dataclass
class EventLog:
    """A contract log entry as returned by eth_getLogs."""

    address: str = ""
    block_hash: str = ""
    block_number: str = ""
    data: str = ""
    log_index: str = ""
    topics: List[str] = field(default_factory=list)
    transaction_hash: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EventLog":
        """Build from a JSON object; keys match exactly first, then case-insensitively."""
        if not isinstance(data, Mapping):
            raise ValueError("event log must be a JSON object")
        folded = {str(k).casefold(): v for k, v in data.items()}
        values = {}
        for attr, key in _EVENT_FIELDS.items():
            raw = data.get(key, folded.get(key.casefold()))
            if raw is None:
                continue
            ok = (isinstance(raw, list) and all(isinstance(t, str) for t in raw)
                  if attr == "topics" else isinstance(raw, str))
            if not ok:
                raise ValueError(f"event log field {key} has the wrong type")
            values[attr] = list(raw) if attr == "topics" else raw
        return cls(**values)

    @classmethod
    def from_json(cls, raw) -> "EventLog":
        return cls.from_dict(json.loads(raw))

    def to_dict(self) -> dict:
        result = {key: getattr(self, attr) for attr, key in _EVENT_FIELDS.items()}
        result["topics"] = list(self.topics)
        return result


@dataclass(frozen=True)
class OtpVerificationRequest:
    referal: str


@dataclass(frozen=True)
class OtpAuthenticationRequest:
    referal: str
    otp: str


@dataclass(frozen=True)
class TxResponse:
    message: str
    status: str
    transaction_id: str