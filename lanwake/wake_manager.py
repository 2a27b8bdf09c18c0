"""Per-run coordination: load aliases, open the socket, wake each target."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from .alias_resolver import AliasResolver
from .errors import InvalidAddressError, TransmissionFailureError
from .utils import get_network_info, normalize_mac_address
from .wol_sender import WoLSender, parse_mac_address


logger = logging.getLogger(__name__)


class RunState(Enum):
    """Wake run states."""
    INIT = "init"                # Loading aliases, opening socket
    PROCESSING = "processing"    # Sending packets target by target
    TEARDOWN = "teardown"        # Closing socket
    DONE = "done"


class WakeStatus(Enum):
    """Outcome of a single target."""
    SENT = "sent"
    INVALID = "invalid"
    FAILED = "failed"
    DRY_RUN = "dry_run"


@dataclass
class WakeResult:
    token: str
    address: str
    status: WakeStatus
    error: Optional[str] = None


class WakeManager:
    """Runs one invocation over an ordered list of target tokens."""

    def __init__(self, config: Dict[str, Any], sender: Optional[WoLSender] = None):
        network = config["network"]
        alias_config = config["aliases"]

        self.dry_run = network.get("dry_run", False)
        self.resolver = AliasResolver(alias_config.get("file"),
                                      repair_on_error=alias_config.get("repair_on_error", True))
        self.sender = sender or WoLSender(network["broadcast_address"], network["port"])

        self.current_state = RunState.INIT
        self.results: List[WakeResult] = []
        self.stats = {
            "targets": 0,
            "sent": 0,
            "invalid": 0,
            "failed": 0,
            "aliases_loaded": 0
        }

    def _change_state(self, new_state: RunState) -> None:
        logger.debug(f"Run state: {self.current_state.value} -> {new_state.value}")
        self.current_state = new_state

    def run(self, tokens: Iterable[str]) -> List[WakeResult]:
        """Wake every target in ``tokens`` in order.

        Invalid targets and failed sends are logged and skipped. Only a
        failure to open the broadcast socket is raised, as
        TransmissionFailureError.
        """
        self._change_state(RunState.INIT)

        aliases = self.resolver.load()
        self.stats["aliases_loaded"] = len(aliases)

        try:
            if not self.dry_run:
                self._open_sender()

            self._change_state(RunState.PROCESSING)
            for token in tokens:
                self.results.append(self._wake_target(token, aliases))
        finally:
            self._change_state(RunState.TEARDOWN)
            self.sender.close()
            self._change_state(RunState.DONE)

        logger.info(f"Processed {self.stats['targets']} targets: {self.stats['sent']} sent, "
                    f"{self.stats['invalid']} invalid, {self.stats['failed']} failed")
        return self.results

    def _open_sender(self) -> None:
        try:
            self.sender.open()
        except TransmissionFailureError as e:
            logger.error(f"Cannot send Wake-on-LAN packets: {e}")
            network_info = get_network_info()
            if network_info["interfaces"]:
                for interface in network_info["interfaces"]:
                    logger.debug(f"Interface {interface['name']}: {interface['ipv4']}")
            raise

    def _wake_target(self, token: str, aliases: Dict[str, str]) -> WakeResult:
        """Resolve, validate and send a single target."""
        self.stats["targets"] += 1
        address = self.resolver.resolve(token, aliases)

        try:
            mac_bytes = parse_mac_address(address)
        except InvalidAddressError as e:
            self.stats["invalid"] += 1
            if address != token:
                logger.warning(f"Alias {token} maps to an invalid MAC address: {address!r}")
            else:
                logger.warning(f"Skipping {token!r}: invalid MAC address or unresolvable alias")
            return WakeResult(token, address, WakeStatus.INVALID, str(e))

        if self.dry_run:
            packet_info = self.sender.get_packet_info(mac_bytes)
            logger.info(f"Dry run: would send {packet_info['packet_size']} byte packet for "
                        f"{normalize_mac_address(address)} to "
                        f"{packet_info['broadcast_address']}:{packet_info['port']}")
            return WakeResult(token, address, WakeStatus.DRY_RUN)

        try:
            self.sender.send(mac_bytes)
        except TransmissionFailureError as e:
            self.stats["failed"] += 1
            logger.warning(f"Failed to send Wake-on-LAN packet for {token}: {e}")
            return WakeResult(token, address, WakeStatus.FAILED, str(e))

        self.stats["sent"] += 1
        logger.info(f"Wake-on-LAN packet sent for MAC {normalize_mac_address(address)} "
                    f"({self.sender.broadcast_address}:{self.sender.port})")
        return WakeResult(token, address, WakeStatus.SENT)

    def get_status(self) -> Dict[str, Any]:
        """Get run state and statistics."""
        return {
            "run_state": self.current_state.value,
            "dry_run": self.dry_run,
            "statistics": self.stats.copy()
        }
