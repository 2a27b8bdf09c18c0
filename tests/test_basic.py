#!/usr/bin/env python3
"""Basic tests for lanwake packet building and configuration."""

import unittest
import sys
import os
import json
import tempfile
from unittest import mock

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from lanwake.config_manager import ConfigManager
from lanwake.errors import InvalidAddressError, TransmissionFailureError
from lanwake.utils import normalize_mac_address, validate_mac_address, validate_ip_address
from lanwake.wol_sender import WoLSender, create_magic_packet, parse_mac_address


class TestConfigManager(unittest.TestCase):
    """Test configuration management."""

    def setUp(self):
        """Set up test fixtures."""
        self.temp_dir = tempfile.TemporaryDirectory()
        self.config_path = os.path.join(self.temp_dir.name, 'test_config.json')

    def tearDown(self):
        self.temp_dir.cleanup()

    def _write_config(self, data):
        with open(self.config_path, 'w', encoding='utf-8') as f:
            if isinstance(data, str):
                f.write(data)
            else:
                json.dump(data, f)

    def test_default_config_load(self):
        """Test loading default configuration."""
        config_manager = ConfigManager(os.path.join(self.temp_dir.name, 'nonexistent.json'))
        config = config_manager.load_config()

        self.assertEqual(config['network']['broadcast_address'], '255.255.255.255')
        self.assertEqual(config['network']['port'], 4000)
        self.assertFalse(config['network']['dry_run'])
        self.assertIsNone(config['aliases']['file'])
        self.assertEqual(config['logging']['level'], 'WARNING')

    def test_partial_config_is_merged_with_defaults(self):
        """Test that missing keys fall back to defaults."""
        self._write_config({'network': {'port': 9}})
        config = ConfigManager(self.config_path).load_config()

        self.assertEqual(config['network']['port'], 9)
        self.assertEqual(config['network']['broadcast_address'], '255.255.255.255')
        self.assertTrue(config['aliases']['repair_on_error'])

    def test_invalid_json_raises(self):
        """Test invalid JSON configuration."""
        self._write_config('{"network": ')
        with self.assertRaises(ValueError):
            ConfigManager(self.config_path).load_config()

    def test_invalid_values_are_all_reported(self):
        """Test configuration validation errors."""
        self._write_config({
            'network': {'broadcast_address': 'not.an.ip', 'port': 70000},
            'logging': {'level': 'LOUD'}
        })
        with self.assertRaises(ValueError) as ctx:
            ConfigManager(self.config_path).load_config()

        message = str(ctx.exception)
        self.assertIn('broadcast address', message)
        self.assertIn('Invalid port', message)
        self.assertIn('Invalid log level', message)

    def test_non_object_sections_rejected(self):
        """Test sections that are not JSON objects raise ValueError."""
        for data in ({'aliases': None}, {'network': 'x'}, {'logging': [1, 2]}):
            self._write_config(data)
            with self.assertRaises(ValueError, msg=data) as ctx:
                ConfigManager(self.config_path).load_config()
            self.assertIn('section: expected an object', str(ctx.exception))

    def test_integer_broadcast_address_rejected(self):
        """Test a numeric broadcast address is not accepted."""
        self._write_config({'network': {'broadcast_address': 2130706433}})
        with self.assertRaises(ValueError) as ctx:
            ConfigManager(self.config_path).load_config()
        self.assertIn('Invalid broadcast address', str(ctx.exception))

    def test_non_boolean_flags_rejected(self):
        """Test boolean settings must be JSON booleans."""
        self._write_config({
            'aliases': {'repair_on_error': 'yes'},
            'logging': {'console_output': 0}
        })
        with self.assertRaises(ValueError) as ctx:
            ConfigManager(self.config_path).load_config()

        message = str(ctx.exception)
        self.assertIn('Invalid repair_on_error value', message)
        self.assertIn('Invalid console_output value', message)

    def test_validation_errors_are_not_logged_as_errors(self):
        """Test validation failures are left for the caller to report."""
        self._write_config({'network': {'port': 0}})
        with self.assertNoLogs('lanwake.config_manager', level='WARNING'):
            with self.assertRaises(ValueError):
                ConfigManager(self.config_path).load_config()

    def test_overrides(self):
        """Test command line style overrides."""
        config_manager = ConfigManager(os.path.join(self.temp_dir.name, 'nonexistent.json'))
        config_manager.load_config()
        config = config_manager.apply_overrides({
            'network.port': 9,
            'network.broadcast_address': None,
            'aliases.file': '/tmp/aliases.json'
        })

        self.assertEqual(config['network']['port'], 9)
        self.assertEqual(config['network']['broadcast_address'], '255.255.255.255')
        self.assertEqual(config_manager.get('aliases.file'), '/tmp/aliases.json')
        self.assertEqual(config_manager.get('missing.key', 'default'), 'default')

        with self.assertRaises(ValueError):
            config_manager.apply_overrides({'network.port': 0})

    def test_example_config_is_loadable(self):
        """Test the example configuration round trips through validation."""
        ConfigManager().save_example_config(self.config_path)
        config = ConfigManager(self.config_path).load_config()
        self.assertEqual(config['network']['port'], 4000)


class TestMacValidation(unittest.TestCase):
    """Test MAC address validation and parsing."""

    def test_mac_address_validation(self):
        """Test MAC address validation."""
        self.assertTrue(validate_mac_address('00:1B:44:11:3A:B7'))
        self.assertTrue(validate_mac_address('00-1b-44-11-3a-b7'))
        self.assertTrue(validate_mac_address('aA:bB:cC:dD:eE:fF'))

        self.assertFalse(validate_mac_address('invalid'))
        self.assertFalse(validate_mac_address('not-a-mac'))
        self.assertFalse(validate_mac_address('00:1B:44:11:3A'))
        self.assertFalse(validate_mac_address('00:1B:44:11:3A:B7:00'))
        self.assertFalse(validate_mac_address('GG:HH:II:JJ:KK:LL'))
        self.assertFalse(validate_mac_address('001B44113AB7'))
        self.assertFalse(validate_mac_address('00.1B.44.11.3A.B7'))
        self.assertFalse(validate_mac_address('0:1B:44:11:3A:B7'))
        self.assertFalse(validate_mac_address('00:1B:44:11:3A:B7\n'))
        self.assertFalse(validate_mac_address(''))
        self.assertFalse(validate_mac_address(None))

    def test_mac_parsing_ignores_separator_and_case(self):
        """Test MAC address parsing."""
        expected = b'\x00\x1f\xd0\x98\xcd\x44'
        for mac in ('00-1F-D0-98-CD-44', '00:1f:d0:98:cd:44', '00:1F-d0:98-Cd:44'):
            self.assertEqual(parse_mac_address(mac), expected)

    def test_invalid_mac_raises(self):
        """Test parsing rejects malformed addresses."""
        for mac in ('not-a-mac', '00-1F-D0-98-CD', '00-1F-D0-98-CD-4G', 'Server3'):
            with self.assertRaises(InvalidAddressError) as ctx:
                parse_mac_address(mac)
            self.assertEqual(ctx.exception.address, mac)
            self.assertIsInstance(ctx.exception, ValueError)

    def test_normalize(self):
        """Test MAC normalization."""
        self.assertEqual(normalize_mac_address('00-1d-92-3b-c2-c8'), '00:1D:92:3B:C2:C8')
        with self.assertRaises(ValueError):
            normalize_mac_address('bogus')

    def test_ip_validation(self):
        """Test IP address validation."""
        self.assertTrue(validate_ip_address('255.255.255.255'))
        self.assertTrue(validate_ip_address('192.168.1.255'))
        self.assertFalse(validate_ip_address('256.256.256.256'))
        self.assertFalse(validate_ip_address('::1'))
        self.assertFalse(validate_ip_address(2130706433))
        self.assertFalse(validate_ip_address(None))


class TestMagicPacket(unittest.TestCase):
    """Test magic packet creation."""

    def test_magic_packet_layout(self):
        """Test magic packet creation."""
        mac = parse_mac_address('00-1F-D0-98-CD-44')
        packet = create_magic_packet(mac)

        # Magic packet should be 102 bytes (6 + 16*6)
        self.assertEqual(len(packet), 102)
        self.assertEqual(packet[:6], b'\xff' * 6)
        for i in range(16):
            self.assertEqual(packet[6 + 6 * i:12 + 6 * i], mac)

    def test_packets_are_independent(self):
        """Test that the same MAC always gives an identical, fresh packet."""
        mac = parse_mac_address('00-1D-92-3B-C2-C8')
        first = create_magic_packet(mac)
        second = create_magic_packet(mac)
        self.assertEqual(first, second)
        self.assertIsNot(first, second)

    def test_wrong_length_rejected(self):
        """Test packets need exactly 6 MAC bytes."""
        with self.assertRaises(InvalidAddressError):
            create_magic_packet(b'\x00\x01\x02')


class TestWoLSender(unittest.TestCase):
    """Test the broadcast socket wrapper."""

    def setUp(self):
        patcher = mock.patch('lanwake.wol_sender.socket.socket')
        self.socket_class = patcher.start()
        self.addCleanup(patcher.stop)
        self.sock = self.socket_class.return_value
        self.sock.sendto.return_value = 102
        self.mac = parse_mac_address('00-1F-D0-98-CD-44')

    def test_send_broadcasts_magic_packet(self):
        """Test a packet is sent to the broadcast address on port 4000."""
        import socket

        with WoLSender() as sender:
            self.assertTrue(sender.is_open)
            self.assertEqual(sender.send(self.mac), 102)

        self.socket_class.assert_called_once_with(socket.AF_INET, socket.SOCK_DGRAM)
        self.sock.setsockopt.assert_called_once_with(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
        self.sock.sendto.assert_called_once_with(create_magic_packet(self.mac),
                                                 ('255.255.255.255', 4000))
        self.sock.close.assert_called_once_with()
        self.assertFalse(sender.is_open)

    def test_socket_closed_when_body_raises(self):
        """Test the socket is released on error."""
        with self.assertRaises(RuntimeError):
            with WoLSender():
                raise RuntimeError("boom")
        self.sock.close.assert_called_once_with()

    def test_socket_creation_failure(self):
        """Test socket creation errors become TransmissionFailureError."""
        self.socket_class.side_effect = OSError("no interfaces")
        with self.assertRaises(TransmissionFailureError):
            WoLSender().open()

    def test_setsockopt_failure_closes_socket(self):
        """Test the socket is closed if broadcast cannot be enabled."""
        self.sock.setsockopt.side_effect = OSError("denied")
        with self.assertRaises(TransmissionFailureError):
            WoLSender().open()
        self.sock.close.assert_called_once_with()

    def test_send_failure(self):
        """Test sendto errors and short sends."""
        with WoLSender() as sender:
            self.sock.sendto.side_effect = OSError("Network is unreachable")
            with self.assertRaises(TransmissionFailureError):
                sender.send(self.mac)

            self.sock.sendto.side_effect = None
            self.sock.sendto.return_value = 50
            with self.assertRaises(TransmissionFailureError):
                sender.send(self.mac)

    def test_send_requires_open_socket(self):
        """Test sending without opening fails."""
        with self.assertRaises(TransmissionFailureError):
            WoLSender().send(self.mac)

    def test_packet_info(self):
        """Test packet info."""
        info = WoLSender(port=9).get_packet_info(self.mac)
        self.assertEqual(info['packet_size'], 102)
        self.assertEqual(info['port'], 9)
        self.assertEqual(info['mac_bytes_hex'], '00:1F:D0:98:CD:44')
        self.assertTrue(info['packet_hex'].startswith('ffffffffffff001fd098cd44'))


if __name__ == '__main__':
    unittest.main()
