import socket
import unittest

from unittest.mock import patch

from adb_wire.exceptions import TransportIOError
from adb_wire.transport.tcp_transport import TcpTransport

from . import patchers


class TestTcpTransport(unittest.TestCase):
    def setUp(self):
        """Create a ``TcpTransport`` and connect to a TCP service.

        """
        self.sock = patchers.FakeSocket()
        self.transport = TcpTransport('host', 5555)
        with patch('socket.create_connection', return_value=self.sock) as create_connection:
            self.transport.connect(transport_timeout_s=1)

        create_connection.assert_called_once_with(('host', 5555), timeout=1)

    def tearDown(self):
        """Close the socket connection."""
        self.transport.close()

    def test_connect_sets_nodelay(self):
        self.assertIs(self.transport.connection, self.sock)
        self.assertEqual(self.sock.sockopts, [(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)])

    def test_connect_without_timeout(self):
        self.transport.close()
        with patch('socket.create_connection', return_value=self.sock) as create_connection:
            self.transport.connect()

        create_connection.assert_called_once_with(('host', 5555), timeout=None)

    def test_connect_fail(self):
        self.transport.close()
        with patch('socket.create_connection', side_effect=ConnectionRefusedError):
            with self.assertRaises(TransportIOError):
                self.transport.connect(transport_timeout_s=1)

        self.assertIsNone(self.transport.connection)

    def test_bulk_read(self):
        # Provide the `recv` return values
        self.sock._recv = b'TEST1TEST2'

        self.assertEqual(self.transport.bulk_read(5), b'TEST1')
        self.assertEqual(self.transport.bulk_read(5), b'TEST2')

        # The device closed the connection
        self.assertEqual(self.transport.bulk_read(5), b'')

    def test_bulk_read_timeout(self):
        with patch.object(self.sock, 'recv', side_effect=socket.timeout):
            with self.assertRaises(TransportIOError):
                self.transport.bulk_read(4)

    def test_bulk_write(self):
        self.assertEqual(self.transport.bulk_write(b'TEST'), 4)
        self.assertEqual(self.sock.sent, b'TEST')

    def test_bulk_write_oserror(self):
        with patch.object(self.sock, 'sendall', side_effect=BrokenPipeError):
            with self.assertRaises(TransportIOError):
                self.transport.bulk_write(b'FAIL')

    def test_close_oserror(self):
        """Test that an `OSError` exception is handled when closing the socket.

        """
        with patch.object(self.sock, 'shutdown', side_effect=OSError):
            self.transport.close()

        self.assertIsNone(self.transport.connection)

    def test_close_twice(self):
        self.transport.close()
        self.transport.close()
        self.assertIsNone(self.transport.connection)
