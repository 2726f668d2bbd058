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

"""Implement the :class:`AdbDevice` class, which can connect to a device and run ADB services.

.. rubric:: Contents

* :class:`AdbDevice`

    * :meth:`AdbDevice._service`
    * :attr:`AdbDevice.available`
    * :attr:`AdbDevice.banner`
    * :meth:`AdbDevice.close`
    * :meth:`AdbDevice.connect`
    * :attr:`AdbDevice.maxdata`
    * :meth:`AdbDevice.root`
    * :meth:`AdbDevice.shell`
    * :meth:`AdbDevice.tcpip`
    * :attr:`AdbDevice.uses_tls`

* :class:`AdbDeviceTcp`
* :func:`connect`

"""


import logging

from . import constants
from . import exceptions
from .adb_io_manager import _AdbIOManager
from .adb_stream import _AdbStreamMultiplexer
from .hidden_helpers import get_connect_payload
from .transport.base_transport import BaseTransport
from .transport.tcp_transport import TcpTransport


_LOGGER = logging.getLogger(__name__)


class AdbDevice(object):
    """A class with methods for connecting to a device and executing ADB services.

    All I/O is blocking and happens on the calling thread.  Only one service runs at a time.

    Parameters
    ----------
    transport : BaseTransport
        A user-provided transport for communicating with the device; must be an instance of a subclass of :class:`~adb_wire.transport.base_transport.BaseTransport`
    features : list[str], None
        Features that are advertised to the device in the ``b'CNXN'`` message
    tls_supported : bool
        Whether to accept the device's request to upgrade the connection to TLS

    Raises
    ------
    adb_wire.exceptions.InvalidTransportError
        The passed ``transport`` is not an instance of a subclass of :class:`~adb_wire.transport.base_transport.BaseTransport`

    Attributes
    ----------
    _available : bool
        Whether an ADB connection to the device has been established
    _connect_payload : bytes
        The payload of the ``b'CNXN'`` message
    _io_manager : _AdbIOManager
        Used for handling all ADB I/O
    _multiplexer : _AdbStreamMultiplexer
        Used for opening services
    _tls_supported : bool
        Whether to accept the device's request to upgrade the connection to TLS

    """

    def __init__(self, transport, features=None, tls_supported=True):
        if not isinstance(transport, BaseTransport):
            raise exceptions.InvalidTransportError("`transport` must be an instance of a subclass of `BaseTransport`")

        self._io_manager = _AdbIOManager(transport)
        self._multiplexer = _AdbStreamMultiplexer(self._io_manager)

        self._available = False
        self._connect_payload = get_connect_payload(features)
        self._tls_supported = tls_supported

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    # ======================================================================= #
    #                                                                         #
    #                       Properties & simple methods                       #
    #                                                                         #
    # ======================================================================= #
    @property
    def available(self):
        """Whether or not an ADB connection to the device has been established.

        Returns
        -------
        bool
            ``self._available``

        """
        return self._available

    @property
    def banner(self):
        """The device's system type, serial number, properties, and features.

        Returns
        -------
        DeviceBanner, None
            The parsed payload of the device's ``b'CNXN'`` message

        """
        return self._io_manager.banner

    @property
    def maxdata(self):
        """Maximum amount of data in an ADB packet, as reported by the device.

        Returns
        -------
        int
            The ``arg1`` value of the device's ``b'CNXN'`` message

        """
        return self._io_manager.maxdata

    @property
    def uses_tls(self):
        """Whether the connection was upgraded to TLS.

        Returns
        -------
        bool
            Whether the connection is encrypted

        """
        return self._io_manager.uses_tls

    # ======================================================================= #
    #                                                                         #
    #                             Close & Connect                             #
    #                                                                         #
    # ======================================================================= #
    def close(self):
        """Close the connection via the transport's ``close()`` method.

        """
        self._available = False
        self._multiplexer.reset()
        self._io_manager.close()

    def connect(self, identity=None, transport_timeout_s=None, auth_callback=None):
        """Establish an ADB connection to the device.

        See :meth:`_AdbIOManager.connect() <adb_wire.adb_io_manager._AdbIOManager.connect>`.

        Parameters
        ----------
        identity : BaseIdentity, None
            Signs the device's token and provides the public key and the TLS context
        transport_timeout_s : float, None
            Timeout in seconds for connecting, sending, and receiving data, or ``None`` to block indefinitely
        auth_callback : function, None
            Function callback invoked when the connection needs to be accepted on the device

        Returns
        -------
        bool
            Whether the connection was established (:attr:`AdbDevice.available`)

        """
        # Mark the device as unavailable
        self._available = False
        self._multiplexer.reset()

        self._io_manager.connect(identity, self._connect_payload, transport_timeout_s, self._tls_supported, auth_callback)
        self._available = True

        return self._available

    # ======================================================================= #
    #                                                                         #
    #                                 Services                                #
    #                                                                         #
    # ======================================================================= #
    def _service(self, destination, sink):
        """Open a service on the device and collect its output.

        If the device does not behave as expected, or ``sink`` raises an exception, the connection is closed and
        must be re-established via :meth:`AdbDevice.connect`.  A rejected service leaves the connection usable.

        Parameters
        ----------
        destination : bytes
            ``b'SERVICE:COMMAND'``
        sink : function, None
            Called with each chunk of output

        Returns
        -------
        bytes
            The output of the service

        Raises
        ------
        adb_wire.exceptions.AdbConnectionError
            There is no usable connection to the device
        adb_wire.exceptions.ServiceRejectedError
            The device rejected the service

        """
        if not self.available:
            raise exceptions.AdbConnectionError("ADB command not sent because a connection to the device has not been established.  (Did you call `AdbDevice.connect()`?)")

        chunks = []

        def _sink(data):
            chunks.append(data)
            if sink is not None:
                sink(data)

        try:
            self._multiplexer.open_service(destination, _sink)
        except exceptions.ServiceRejectedError:
            raise
        except Exception as exc:
            _LOGGER.warning("Closing the connection after %s: %s", type(exc).__name__, exc)
            self.close()
            raise

        return b''.join(chunks)

    def root(self, sink=None):
        """Restart the ADB daemon on the device as root.

        The device must allow this (e.g., a userdebug build).

        Parameters
        ----------
        sink : function, None
            Called with each chunk of output

        Returns
        -------
        bytes
            The output, e.g. ``b'restarting adbd as root\\n'``

        """
        return self._service(b'root:', sink)

    def shell(self, command, sink=None):
        """Send an ADB shell command to the device.

        Parameters
        ----------
        command : str
            The shell command that will be sent
        sink : function, None
            Called with each chunk of output

        Returns
        -------
        bytes
            The output of the ADB shell command

        """
        return self._service(b'shell:' + command.encode('utf8'), sink)

    def tcpip(self, port, sink=None):
        """Restart the ADB daemon on the device so that it listens on a TCP port.

        The daemon drops the connection shortly afterwards; reconnecting (possibly on the new port) is up to the caller.

        Parameters
        ----------
        port : int
            The port that the daemon will listen on
        sink : function, None
            Called with each chunk of output

        Returns
        -------
        bytes
            The output, e.g. ``b'restarting in TCP mode port: 5555\\n'``

        """
        return self._service(b'tcpip:%d' % int(port), sink)


class AdbDeviceTcp(AdbDevice):
    """A class with methods for connecting to a device via TCP and executing ADB services.

    Parameters
    ----------
    host : str
        The address of the device; may be an IP address or a host name
    port : int
        The device port to which we are connecting (default is 5555)
    features : list[str], None
        Features that are advertised to the device in the ``b'CNXN'`` message
    tls_supported : bool
        Whether to accept the device's request to upgrade the connection to TLS

    """

    def __init__(self, host, port=constants.DEFAULT_PORT, features=None, tls_supported=True):
        transport = TcpTransport(host, port)
        super(AdbDeviceTcp, self).__init__(transport, features, tls_supported)


def connect(host, port=constants.DEFAULT_PORT, identity=None, transport_timeout_s=None, features=None, tls_supported=True):
    """Connect to a device via TCP.

    Parameters
    ----------
    host : str
        The address of the device; may be an IP address or a host name
    port : int
        The device port to which we are connecting (default is 5555)
    identity : BaseIdentity, None
        Signs the device's token and provides the public key and the TLS context
    transport_timeout_s : float, None
        Timeout in seconds for connecting, sending, and receiving data, or ``None`` to block indefinitely
    features : list[str], None
        Features that are advertised to the device in the ``b'CNXN'`` message
    tls_supported : bool
        Whether to accept the device's request to upgrade the connection to TLS

    Returns
    -------
    AdbDeviceTcp
        A connected device

    """
    device = AdbDeviceTcp(host, port, features, tls_supported)
    device.connect(identity, transport_timeout_s)

    return device
