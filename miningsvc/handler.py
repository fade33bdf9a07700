"""Watching mining-user contract events and reacting to them."""

from __future__ import annotations

import json
import logging
import queue
import secrets
import threading
from pathlib import Path
from typing import Any, Callable, Optional, Protocol, Tuple

from . import rpc
from .config import AppConfig
from .models import EventLog, OtpAuthenticationRequest, OtpVerificationRequest
from .rpc import ContractAbi, _checksum_address
from .usecase import OtpUsecase

logger = logging.getLogger(__name__)

NOTI_TITLE = "refUserViaQRCode success"


class TransactionService(Protocol):
    """Contract calls the handler relies on."""

    def check_user_registered(self, to: str) -> Any:
        """Whether the address has subscribed to notifications."""

    def add_noti(self, title: str, body: str, to: str) -> Any:
        """Send a notification to an address."""

    def update_otp_status(self, parent: str, status: bool) -> Any:
        """Record the OTP status of an address on chain."""

    def active_user_by_be(self, parent: str, otp: bytes) -> Any:
        """Activate a user with its parent address and OTP."""


def _address_bytes(text: str) -> bytes:
    if text[:2].lower() == "0x":
        text = text[2:]
    if len(text) % 2:
        text = "0" + text
    return bytes.fromhex(text)[-20:].rjust(20, b"\x00")


class MiningUserHandler:
    """Polls contract logs into a queue and handles UserRef/UserProcessing events."""

    def __init__(
        self,
        config: AppConfig,
        service: TransactionService,
        mining_user_abi: ContractAbi,
        usecase: OtpUsecase,
        events: Optional["queue.Queue[EventLog]"] = None,
        otp_generator: Optional[Callable[[], str]] = None,
    ):
        self.config = config
        self.service = service
        self.mining_user_abi = mining_user_abi
        self.usecase = usecase
        self.events: "queue.Queue[EventLog]" = events if events is not None else queue.Queue()
        self._generate_otp = otp_generator or (lambda: secrets.token_hex(32))
        self._topics: Optional[Tuple[str, str]] = None
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def _event_topics(self) -> Tuple[str, str]:
        if self._topics is None:
            abi_json = Path(self.config.mining_user_abi_path).read_text(encoding="utf-8")
            self._topics = (
                rpc.get_topic0_from_abi(abi_json, "UserRef"),
                rpc.get_topic0_from_abi(abi_json, "UserProcessing"),
            )
        return self._topics

    def poll_once(self, last_block: Optional[str]) -> str:
        """Queue the logs of the latest block if it differs from last_block; return it."""
        topics = self._event_topics()
        block = rpc.get_latest_block_number(self.config.rpc_url)
        if block == last_block:
            return block
        for topic in topics:
            try:
                logs = rpc.get_logs(
                    self.config.rpc_url, block, block, self.config.mining_user_address, topic
                )
            except Exception:
                logger.exception("error fetching logs for topic %s", topic)
                continue
            for raw in logs:
                try:
                    event = EventLog.from_dict(raw)
                except ValueError as exc:
                    logger.warning("cannot decode event log: %s", exc)
                    continue
                self.events.put(event)
        return block

    def _run(self) -> None:
        logger.info("start listening for new events")
        last_block = ""
        while not self._stop.is_set():
            try:
                block = self.poll_once(last_block)
            except Exception:
                logger.exception("failed to get latest block")
                self._stop.wait(2)
                continue
            if block != last_block:
                last_block = block
            self._stop.wait(1)

    def listen_events(self) -> None:
        """Start polling in a background thread."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._event_topics()
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="mining-user-events", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None

    def _topic_of(self, name: str) -> Optional[str]:
        try:
            return self.mining_user_abi.event_topic(name)
        except ValueError:
            return None

    def handle_event(self, event: EventLog) -> None:
        """Dispatch an event by its first topic."""
        if not event.topics:
            logger.warning("event without topics ignored")
            return
        topic0 = event.topics[0].lower()
        if topic0 == self._topic_of("UserRef"):
            self.handle_user_ref(event)
        elif topic0 == self._topic_of("UserProcessing"):
            self.handle_user_processing(event)

    def handle_user_ref(self, event: EventLog) -> None:
        """Issue an OTP to a subscribed referal and notify them."""
        if len(event.topics) < 3:
            logger.warning("not enough topics in UserRef event")
            return
        try:
            referal_raw = _address_bytes(event.topics[1])
            referer_raw = _address_bytes(event.topics[2])
        except ValueError as exc:
            logger.error("invalid address topic in UserRef event: %s", exc)
            return
        referal = _checksum_address(referal_raw)
        try:
            subscribed = self.service.check_user_registered(referal)
        except Exception:
            logger.exception("check_user_registered failed")
            return
        if not isinstance(subscribed, bool):
            logger.error("unexpected check_user_registered result: %r", subscribed)
            return
        if not subscribed:
            logger.info("user %s has not subscribed to notifications", referal)
            return
        try:
            result = self.mining_user_abi.decode_event_data("UserRef", event.data)
        except ValueError:
            logger.exception("cannot decode UserRef data")
            return
        if not isinstance(result.get("_referralEncryptTokenNoti"), str):
            logger.error("UserRef data lacks _referralEncryptTokenNoti")
            return
        otp = self._generate_otp()
        try:
            self.usecase.otp_verification(OtpVerificationRequest(referal), otp)
        except Exception:
            logger.exception("saving otp failed")
        body = json.dumps(
            {"referer": "0x" + referer_raw.hex(), "otp": otp},
            separators=(",", ":"),
            sort_keys=True,
        )
        try:
            self.service.add_noti(NOTI_TITLE, body, referal)
        except Exception:
            logger.exception("add_noti failed")

    def handle_user_processing(self, event: EventLog) -> None:
        """Check a submitted OTP and activate the user if it is valid."""
        try:
            result = self.mining_user_abi.decode_event_data("UserProcessing", event.data)
        except ValueError:
            logger.exception("cannot decode UserProcessing data")
            return
        if len(event.topics) < 2:
            logger.warning("not enough topics in UserProcessing event")
            return
        try:
            user = _checksum_address(_address_bytes(event.topics[1]))
        except ValueError as exc:
            logger.error("invalid address topic in UserProcessing event: %s", exc)
            return
        otp = result.get("OTP")
        if not isinstance(otp, bytes) or len(otp) != 32:
            logger.error("UserProcessing data lacks a 32-byte OTP")
            return
        parent = result.get("parent")
        if not isinstance(parent, str):
            logger.error("UserProcessing data lacks parent")
            return
        try:
            self.usecase.otp_authentication(OtpAuthenticationRequest(user, otp.hex()))
        except Exception:
            logger.exception("otp authentication failed")
            return
        try:
            self.service.update_otp_status(user, True)
        except Exception:
            logger.exception("update_otp_status failed")
            return
        try:
            self.service.active_user_by_be(parent, otp)
        except Exception:
            logger.exception("active_user_by_be failed")