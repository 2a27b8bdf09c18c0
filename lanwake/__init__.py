"""lanwake - Wake-on-LAN command line sender

Sends Wake-on-LAN magic packets to devices identified by MAC address
or by an alias from a JSON alias file.
"""

__version__ = "1.0.0"
__author__ = "lanwake"
