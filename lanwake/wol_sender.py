"""Wake-on-LAN magic packet building and broadcast sending."""

import logging
import socket
from typing import Optional

from .errors import InvalidAddressError, TransmissionFailureError
from .utils import validate_mac_address


logger = logging.getLogger(__name__)

BROADCAST_ADDRESS = "255.255.255.255"
DEFAULT_PORT = 4000
MAC_LENGTH = 6
MAGIC_PACKET_SIZE = MAC_LENGTH + 16 * MAC_LENGTH


def parse_mac_address(mac: str) -> bytes:
    """Parse a MAC address string into its 6 raw bytes.

    Raises InvalidAddressError unless ``mac`` is six hex pairs
    separated by ':' or '-'.
    """
    if not validate_mac_address(mac):
        raise InvalidAddressError(mac)

    return bytes(int(mac[i:i+2], 16) for i in range(0, len(mac), 3))


def create_magic_packet(mac_bytes: bytes) -> bytes:
    """Create the Wake-on-LAN magic packet for a parsed MAC address."""
    if len(mac_bytes) != MAC_LENGTH:
        raise InvalidAddressError(mac_bytes.hex(':'), "MAC address must be 6 bytes")

    # Magic packet format:
    # - 6 bytes of 0xFF
    # - MAC address repeated 16 times
    magic_header = b'\xff' * 6
    mac_repeated = bytes(mac_bytes) * 16

    return magic_header + mac_repeated


class WoLSender:
    """Owns the broadcast UDP socket used to send magic packets.

    Use as a context manager so the socket is released on every exit path::

        with WoLSender() as sender:
            sender.send(parse_mac_address("00-1F-D0-98-CD-44"))
    """

    def __init__(self, broadcast_address: str = BROADCAST_ADDRESS, port: int = DEFAULT_PORT):
        self.broadcast_address = broadcast_address
        self.port = port
        self._sock: Optional[socket.socket] = None

    @property
    def is_open(self) -> bool:
        return self._sock is not None

    def open(self) -> None:
        """Create the UDP socket with broadcast transmission enabled."""
        if self._sock is not None:
            return

        try:
            sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        except OSError as e:
            raise TransmissionFailureError(f"Could not create UDP socket: {e}") from e

        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
        except OSError as e:
            sock.close()
            raise TransmissionFailureError(f"Could not enable broadcast on UDP socket: {e}") from e

        self._sock = sock
        logger.debug(f"Opened broadcast socket for {self.broadcast_address}:{self.port}")

    def close(self) -> None:
        """Release the socket. Safe to call more than once."""
        if self._sock is None:
            return
        try:
            self._sock.close()
        finally:
            self._sock = None
            logger.debug("Closed broadcast socket")

    def __enter__(self) -> "WoLSender":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def send(self, mac_bytes: bytes) -> int:
        """Send one magic packet for ``mac_bytes``; returns the number of bytes sent."""
        if self._sock is None:
            raise TransmissionFailureError("Broadcast socket is not open")

        magic_packet = create_magic_packet(mac_bytes)
        destination = (self.broadcast_address, self.port)

        try:
            sent = self._sock.sendto(magic_packet, destination)
        except OSError as e:
            # e.g. "Network is unreachable" when no interface is up
            raise TransmissionFailureError(
                f"Could not send WoL packet to {destination[0]}:{destination[1]}: {e}"
            ) from e

        if sent != len(magic_packet):
            raise TransmissionFailureError(
                f"Short send to {destination[0]}:{destination[1]}: "
                f"{sent} of {len(magic_packet)} bytes"
            )

        logger.debug(f"Sent {sent} byte WoL packet to {destination[0]}:{destination[1]}")
        return sent

    def get_packet_info(self, mac_bytes: bytes) -> dict:
        """Get information about the packet that would be sent for ``mac_bytes``."""
        packet = create_magic_packet(mac_bytes)
        return {
            "broadcast_address": self.broadcast_address,
            "port": self.port,
            "mac_bytes_hex": mac_bytes.hex(':').upper(),
            "packet_size": len(packet),
            "packet_hex": packet.hex()
        }
