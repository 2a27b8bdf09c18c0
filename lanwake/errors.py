"""Exceptions raised while resolving, validating and sending wake targets."""


class WoLError(Exception):
    """Base class for lanwake errors."""


class AliasFileUnreadableError(WoLError):
    """The alias file exists but could not be read as a name -> MAC mapping."""


class InvalidAddressError(WoLError, ValueError):
    """A target does not match the MAC address format."""

    def __init__(self, address: str, reason: str = "invalid MAC address or unresolvable alias"):
        self.address = address
        self.reason = reason
        super().__init__(f"{reason}: {address!r}")


class TransmissionFailureError(WoLError, OSError):
    """The broadcast socket could not be opened or a datagram could not be sent."""
