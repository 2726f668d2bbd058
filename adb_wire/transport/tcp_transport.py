# Copyright (c) 2021 Jeff Irion and contributors
#
# This file is part of the adb-wire package.  It incorporates work
# covered by the following license notice:
#
#
#   Copyright 2014 Google Inc. All rights reserved.
#
#   Licensed under the Apache License, Version 2.0 (the "License");
#   you may not use this file except in compliance with the License.
#   You may obtain a copy of the License at
#
#       http://www.apache.org/licenses/LICENSE-2.0
#
#   Unless required by applicable law or agreed to in writing, software
#   distributed under the License is distributed on an "AS IS" BASIS,
#   WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#   See the License for the specific language governing permissions and
#   limitations under the License.

"""A class for creating a plaintext socket connection with the device and sending and receiving data.

* :class:`TcpTransport`

    * :meth:`TcpTransport.bulk_read`
    * :meth:`TcpTransport.bulk_write`
    * :meth:`TcpTransport.close`
    * :meth:`TcpTransport.connect`
    * :attr:`TcpTransport.connection`

"""


import socket

from .base_transport import BaseTransport
from .. import constants
from ..exceptions import TransportIOError


class TcpTransport(BaseTransport):
    """TCP connection object.

    Parameters
    ----------
    host : str
        The address of the device; may be an IP address or a host name
    port : int
        The device port to which we are connecting (default is 5555)

    Attributes
    ----------
    _connection : socket.socket, None
        A socket connection to the device
    _host : str
        The address of the device; may be an IP address or a host name
    _port : int
        The device port to which we are connecting (default is 5555)

    """
    def __init__(self, host, port=constants.DEFAULT_PORT):
        self._host = host
        self._port = port

        self._connection = None

    @property
    def connection(self):
        """The connected socket, which :class:`~adb_wire.transport.tls_transport.TlsTransport` wraps in place.

        Returns
        -------
        socket.socket, None
            ``self._connection``

        """
        return self._connection

    def close(self):
        """Close the socket connection.

        After a TLS upgrade the socket has been detached, so shutting it down fails and closing it does nothing.

        """
        if self._connection:
            try:
                self._connection.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass

            self._connection.close()
            self._connection = None

    def connect(self, transport_timeout_s=None):
        """Create a socket connection to the device.

        Parameters
        ----------
        transport_timeout_s : float, None
            Set the timeout on the socket instance

        Raises
        ------
        TransportIOError
            Unable to connect

        """
        try:
            self._connection = socket.create_connection((self._host, self._port), timeout=transport_timeout_s)
            self._connection.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        except OSError as exc:
            self.close()
            raise TransportIOError('Unable to connect to {}:{}: {}'.format(self._host, self._port, exc)) from exc

    def bulk_read(self, numbytes):
        """Receive data from the socket.

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
            raise TransportIOError('Reading from {}:{} failed: {}'.format(self._host, self._port, exc)) from exc

    def bulk_write(self, data):
        """Send data to the socket.

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
            raise TransportIOError('Sending data to {}:{} failed: {}'.format(self._host, self._port, exc)) from exc

        return len(data)
