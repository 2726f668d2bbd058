# Copyright (c) 2021 Jeff Irion and contributors
#
# This file is part of the adb-wire package.

"""A class for upgrading a :class:`~adb_wire.transport.tcp_transport.TcpTransport` connection to TLS in place.

* :class:`TlsTransport`

    * :meth:`TlsTransport.bulk_read`
    * :meth:`TlsTransport.bulk_write`
    * :meth:`TlsTransport.close`
    * :meth:`TlsTransport.connect`

"""


import logging
import socket
import ssl

from .base_transport import BaseTransport
from ..exceptions import TlsHandshakeError, TransportIOError


_LOGGER = logging.getLogger(__name__)


class TlsTransport(BaseTransport):
    """A TLS session on top of an already connected :class:`~adb_wire.transport.tcp_transport.TcpTransport`.

    The TLS socket takes over the TCP socket's file descriptor, and the TCP socket object is detached.  Only the
    TLS socket is used for reading and writing after :meth:`TlsTransport.connect`.

    Parameters
    ----------
    tcp_transport : TcpTransport
        The connected plaintext transport
    ssl_context : ssl.SSLContext
        The client-side TLS context, configured with this host's key pair

    Attributes
    ----------
    _connection : ssl.SSLSocket, None
        The TLS socket
    _ssl_context : ssl.SSLContext
        The client-side TLS context, configured with this host's key pair
    _tcp_transport : TcpTransport
        The plaintext transport

    """
    def __init__(self, tcp_transport, ssl_context):
        self._tcp_transport = tcp_transport
        self._ssl_context = ssl_context

        self._connection = None

    def close(self):
        """Close the TLS socket and then the (detached) plaintext socket.

        """
        if self._connection:
            try:
                self._connection.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass

            self._connection.close()
            self._connection = None

        self._tcp_transport.close()

    def connect(self, transport_timeout_s=None):
        """Wrap the plaintext socket and perform the TLS handshake.

        Parameters
        ----------
        transport_timeout_s : float, None
            Unused; the TLS socket keeps the timeout of the plaintext socket

        Raises
        ------
        TlsHandshakeError
            The TLS handshake failed
        TransportIOError
            The plaintext transport is not connected or the connection failed during the handshake

        """
        sock = self._tcp_transport.connection
        if sock is None:
            raise TransportIOError('Cannot start TLS because the TCP transport is not connected')

        try:
            self._connection = self._ssl_context.wrap_socket(sock, server_side=False, do_handshake_on_connect=False)
            self._connection.do_handshake()
        except (ssl.SSLError, ValueError) as exc:
            self.close()
            raise TlsHandshakeError('TLS handshake failed: {}'.format(exc)) from exc
        except OSError as exc:
            self.close()
            raise TransportIOError('Connection failed during the TLS handshake: {}'.format(exc)) from exc

        _LOGGER.debug("TLS handshake complete: %s %s", self._connection.version(), self._connection.cipher())

    def bulk_read(self, numbytes):
        """Receive data from the TLS socket.

        Parameters
        ----------
        numbytes : int
            The maximum amount of data to be received

        Returns
        -------
        bytes
            The received data

        Raises
        ------
        TransportIOError
            Reading failed or timed out

        """
        try:
            return self._connection.recv(numbytes)
        except OSError as exc:
            raise TransportIOError('Reading from the TLS socket failed: {}'.format(exc)) from exc

    def bulk_write(self, data):
        """Send data to the TLS socket.

        Parameters
        ----------
        data : bytes
            The data to be sent

        Returns
        -------
        int
            The number of bytes sent

        Raises
        ------
        TransportIOError
            Sending data failed or timed out

        """
        try:
            self._connection.sendall(data)
        except OSError as exc:
            raise TransportIOError('Sending data to the TLS socket failed: {}'.format(exc)) from exc

        return len(data)
