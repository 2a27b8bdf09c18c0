"""Shared utilities for lanwake."""

import ipaddress
import logging
import re
from typing import Any


logger = logging.getLogger(__name__)

MAC_PATTERN = re.compile(r'^([0-9A-Fa-f]{2}[:-]){5}[0-9A-Fa-f]{2}$')


def validate_ip_address(ip_str: str) -> bool:
    """
    Validate IPv4 address format.

    Args:
        ip_str: IP address string to validate

    Returns:
        True if valid IPv4 address, False otherwise
    """
    # IPv4Address also accepts integers, which sendto does not
    if not isinstance(ip_str, str):
        return False
    try:
        ipaddress.IPv4Address(ip_str)
        return True
    except (ValueError, TypeError):
        return False


def validate_port(port: Any) -> bool:
    """
    Validate port number.

    Args:
        port: Port number to validate

    Returns:
        True if valid port number, False otherwise
    """
    if isinstance(port, bool):
        return False
    try:
        port_int = int(port)
        return 1 <= port_int <= 65535
    except (ValueError, TypeError):
        return False


def validate_mac_address(mac: Any) -> bool:
    """
    Validate MAC address format.

    Accepts six hex pairs separated by ':' or '-' (XX:XX:XX:XX:XX:XX,
    XX-XX-XX-XX-XX-XX), in either case.

    Args:
        mac: MAC address string to validate

    Returns:
        True if valid MAC address format, False otherwise
    """
    if not isinstance(mac, str):
        return False
    return MAC_PATTERN.fullmatch(mac) is not None


def normalize_mac_address(mac: str) -> str:
    """
    Normalize MAC address to standard format (XX:XX:XX:XX:XX:XX).

    Args:
        mac: MAC address in any supported format

    Returns:
        Normalized MAC address string

    Raises:
        ValueError: If MAC address format is invalid
    """
    if not validate_mac_address(mac):
        raise ValueError(f"Invalid MAC address format: {mac}")

    clean_mac = mac.replace(':', '').replace('-', '').upper()
    return ':'.join(clean_mac[i:i+2] for i in range(0, 12, 2))


def get_network_info() -> dict:
    """
    Get basic IPv4 network information for the local interfaces.

    Requires the optional ``netifaces`` package; without it an empty
    interface list is returned.

    Returns:
        Dictionary with interface names, IPv4 addresses and broadcast addresses
    """
    info = {
        "interfaces": [],
        "local_ips": []
    }

    try:
        import netifaces
    except ImportError:
        logger.debug("netifaces not available for network info")
        return info

    try:
        for interface in netifaces.interfaces():
            addresses = netifaces.ifaddresses(interface)

            interface_info = {
                "name": interface,
                "ipv4": [],
                "mac": None
            }

            if netifaces.AF_INET in addresses:
                for addr in addresses[netifaces.AF_INET]:
                    interface_info["ipv4"].append({
                        "addr": addr.get("addr"),
                        "netmask": addr.get("netmask"),
                        "broadcast": addr.get("broadcast")
                    })
                    info["local_ips"].append(addr.get("addr"))

            if netifaces.AF_LINK in addresses:
                link_addrs = addresses[netifaces.AF_LINK]
                if link_addrs:
                    interface_info["mac"] = link_addrs[0].get("addr")

            info["interfaces"].append(interface_info)

    except (OSError, ValueError) as e:
        logger.error(f"Error getting network info: {e}")

    return info
