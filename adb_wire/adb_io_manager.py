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

"""Implement the :class:`_AdbIOManager` class, which reads and writes ADB messages and performs the connection handshake.

.. rubric:: Contents

* :class:`_AdbIOManager`

    * :meth:`_AdbIOManager._authenticate`
    * :meth:`_AdbIOManager._handshake`
    * :meth:`_AdbIOManager._read_bytes_from_device`
    * :meth:`_AdbIOManager._start_tls`
    * :attr:`_AdbIOManager.banner`
    * :meth:`_AdbIOManager.close`
    * :meth:`_AdbIOManager.connect`
    * :attr:`_AdbIOManager.maxdata`
    * :meth:`_AdbIOManager.read`
    * :meth:`_AdbIOManager.read_expected`
    * :meth:`_AdbIOManager.send`
    * :attr:`_AdbIOManager.state`
    * :attr:`_AdbIOManager.uses_tls`

"""


import logging

from . import constants
from . import exceptions
from .adb_message import AdbMessage
from .hidden_helpers import parse_banner
from .transport.tls_transport import TlsTransport


_LOGGER = logging.getLogger(__name__)


class _AdbIOManager(object):
    """A class for handling all ADB I/O.

    The transport is the plaintext ``transport`` until the device asks for TLS; from then on it is a
    :class:`~adb_wire.transport.tls_transport.TlsTransport` that wraps the same socket.  The choice is made once,
    during :meth:`_AdbIOManager.connect`.

    Parameters
    ----------
    transport : BaseTransport
        The plaintext transport for communicating with the device

    Attributes
    ----------
    _banner : DeviceBanner, None
        The parsed payload of the device's ``b'CNXN'`` message
    _maxdata : int
        Maximum amount of data in an ADB packet, as reported by the device
    _state : str, None
        The handshake state: :const:`~adb_wire.constants.HANDSHAKE_CONNECTING`,
        :const:`~adb_wire.constants.HANDSHAKE_CONNECTED`, :const:`~adb_wire.constants.HANDSHAKE_FAILED`, or ``None``
        if :meth:`_AdbIOManager.connect` has not been called
    _tcp_transport : BaseTransport
        The plaintext transport
    _transport : BaseTransport
        The transport that is used for reading and writing

    """

    def __init__(self, transport):
        self._tcp_transport = transport
        self._transport = transport

        self._banner = None
        self._maxdata = constants.MAX_ADB_DATA
        self._state = None

    @property
    def banner(self):
        """The parsed payload of the device's ``b'CNXN'`` message.

        Returns
        -------
        DeviceBanner, None
            ``self._banner``

        """
        return self._banner

    @property
    def maxdata(self):
        """Maximum amount of data in an ADB packet, as reported by the device.

        Returns
        -------
        int
            ``self._maxdata``

        """
        return self._maxdata

    @property
    def state(self):
        """The handshake state.

        Returns
        -------
        str, None
            ``self._state``

        """
        return self._state

    @property
    def uses_tls(self):
        """Whether the connection was upgraded to TLS.

        Returns
        -------
        bool
            Whether the active transport is a :class:`~adb_wire.transport.tls_transport.TlsTransport`

        """
        return self._transport is not self._tcp_transport

    def close(self):
        """Close the connection and go back to the plaintext transport.

        """
        self._transport.close()
        self._transport = self._tcp_transport

        if self._state == constants.HANDSHAKE_CONNECTED:
            self._state = None

    def connect(self, identity, connect_payload, transport_timeout_s=None, tls_supported=True, auth_callback=None):
        """Establish an ADB connection to the device.

        See :meth:`_AdbIOManager._handshake`.  If anything goes wrong, the transport is closed and the state is
        :const:`~adb_wire.constants.HANDSHAKE_FAILED`.

        Parameters
        ----------
        identity : BaseIdentity, None
            Signs the device's token and provides the public key and the TLS context
        connect_payload : bytes
            The payload of the ``b'CNXN'`` message, e.g. ``b'host::\\0'``
        transport_timeout_s : float, None
            Timeout in seconds for connecting, sending, and receiving data, or ``None``
        tls_supported : bool
            Whether to accept the device's request to upgrade to TLS
        auth_callback : function, None
            Function callback invoked before the public key is sent, i.e., when the connection needs to be accepted
            on the device

        Returns
        -------
        maxdata : int
            Maximum amount of data in an ADB packet, as reported by the device
        banner : DeviceBanner
            The parsed payload of the device's ``b'CNXN'`` message

        """
        self.close()
        self._state = constants.HANDSHAKE_CONNECTING

        try:
            msg = self._handshake(identity, connect_payload, transport_timeout_s, tls_supported, auth_callback)
        except Exception as exc:
            self._state = constants.HANDSHAKE_FAILED
            _LOGGER.warning("Connection failed (%s: %s), closing the transport", type(exc).__name__, exc)
            self.close()
            raise

        self._maxdata = msg.arg1
        self._banner = parse_banner(msg.data)
        self._state = constants.HANDSHAKE_CONNECTED
        _LOGGER.info("Connected to %s device (tls = %s, maxdata = %d)", self._banner.system_type, self.uses_tls, self._maxdata)

        return self._maxdata, self._banner

    def read(self):
        """Read a complete ADB message (header + data) from the device.

        1. Read the 24 byte header and check the magic
        2. Read ``data_length`` bytes of data
        3. Check the checksum


        Returns
        -------
        AdbMessage
            The message that was read

        Raises
        ------
        adb_wire.exceptions.FrameValidationError
            The magic or the checksum is invalid
        adb_wire.exceptions.TransportIOError
            The connection was closed or reading failed

        """
        msg = AdbMessage.unpack(self._read_bytes_from_device(constants.MESSAGE_SIZE))

        # Don't trust `data_length` if the header is corrupt
        if msg.magic != msg.command ^ 0xFFFFFFFF:
            raise exceptions.FrameValidationError('Invalid magic: {}'.format(msg.summary()))

        if msg.data_length:
            msg.data = self._read_bytes_from_device(msg.data_length)

        msg.validate_or_raise()
        _LOGGER.debug("Received %s", msg.summary())

        return msg

    def read_expected(self, expected_cmds):
        """Read a message and make sure that its command is one of ``expected_cmds``.

        Parameters
        ----------
        expected_cmds : list[bytes]
            The command IDs that are allowed

        Returns
        -------
        AdbMessage
            The message that was read

        Raises
        ------
        adb_wire.exceptions.ProtocolViolationError
            The message's command is not in ``expected_cmds``

        """
        msg = self.read()
        if msg.command_id not in expected_cmds:
            raise exceptions.ProtocolViolationError("Expected {} but received {}".format(' or '.join(constants.ID_TO_NAME[cmd] for cmd in expected_cmds), msg.summary()))

        return msg

    def send(self, msg):
        """Send a message (header + data) to the device.

        Parameters
        ----------
        msg : AdbMessage
            The message that will be sent

        """
        _LOGGER.debug("Sending %s", msg.summary())
        packed = msg.encode()
        _LOGGER.debug("bulk_write(%d): %.1000r", len(packed), packed)
        self._transport.bulk_write(packed)

    def _handshake(self, identity, connect_payload, transport_timeout_s, tls_supported, auth_callback):
        """Perform the connection handshake.

        1. Use the transport to establish a connection
        2. Send a ``b'CNXN'`` message
        3. Read the response from the device
        4. If ``cmd`` is ``b'STLS'``, upgrade the connection to TLS (:meth:`_AdbIOManager._start_tls`)
        5. If ``cmd`` is ``b'AUTH'``, authenticate (:meth:`_AdbIOManager._authenticate`)
        6. The last message must be ``b'CNXN'``


        Returns
        -------
        AdbMessage
            The device's ``b'CNXN'`` message

        """
        # 1. Use the transport to establish a connection
        self._transport.connect(transport_timeout_s)

        # 2. Send a ``b'CNXN'`` message
        self.send(AdbMessage(constants.CNXN, constants.VERSION, constants.MAX_ADB_DATA, connect_payload))

        # 3. Read the response from the device
        msg = self.read_expected([constants.CNXN, constants.STLS, constants.AUTH])

        # 4. TLS
        if msg.command_id == constants.STLS:
            return self._start_tls(identity, transport_timeout_s, tls_supported)

        # 5. Authentication
        if msg.command_id == constants.AUTH:
            return self._authenticate(msg, identity, auth_callback)

        # 6. No TLS and no authentication
        return msg

    def _start_tls(self, identity, transport_timeout_s, tls_supported):
        """Acknowledge the device's ``b'STLS'`` message and upgrade the connection to TLS.

        Returns
        -------
        AdbMessage
            The device's ``b'CNXN'`` message, received via TLS

        Raises
        ------
        adb_wire.exceptions.TlsUnsupportedError
            TLS is not supported or there is no identity
        adb_wire.exceptions.TlsHandshakeError
            The TLS handshake failed

        """
        if not tls_supported:
            raise exceptions.TlsUnsupportedError("The device requested TLS, but TLS is not supported")

        if identity is None:
            raise exceptions.TlsUnsupportedError("The device requested TLS, but no identity was provided")

        self.send(AdbMessage(constants.STLS, constants.STLS_VERSION, 0))

        tls_transport = TlsTransport(self._tcp_transport, identity.GetTlsContext())
        tls_transport.connect(transport_timeout_s)
        self._transport = tls_transport
        _LOGGER.info("Upgraded the connection to TLS")

        return self.read_expected([constants.CNXN])

    def _authenticate(self, msg, identity, auth_callback):
        """Answer the device's ``b'AUTH'`` token.

        1. Sign the token and send it in an ``b'AUTH'`` message
        2. If the device responds with ``b'CNXN'``, we are done
        3. The signature was rejected, so send the public key
        4. The device must respond with ``b'CNXN'``


        Returns
        -------
        AdbMessage
            The device's ``b'CNXN'`` message

        Raises
        ------
        adb_wire.exceptions.DeviceAuthError
            There is no identity, or the device rejected the public key
        adb_wire.exceptions.ProtocolViolationError
            The ``b'AUTH'`` message did not contain a token

        """
        if msg.arg0 != constants.AUTH_TOKEN:
            raise exceptions.ProtocolViolationError("Unknown AUTH response: {}".format(msg.summary()))

        if identity is None:
            raise exceptions.DeviceAuthError('Device authentication required, no keys available.')

        # 1. Sign the token and send it in an ``b'AUTH'`` message
        self.send(AdbMessage(constants.AUTH, constants.AUTH_SIGNATURE, 0, identity.Sign(msg.data)))

        # 2. If the device responds with ``b'CNXN'``, we are done
        msg = self.read_expected([constants.CNXN, constants.AUTH])
        if msg.command_id == constants.CNXN:
            return msg

        # 3. The signature was rejected, so send the public key
        pubkey = identity.GetPublicKey()
        if not isinstance(pubkey, (bytes, bytearray)):
            pubkey = bytearray(pubkey, 'utf-8')

        if not pubkey.endswith(b'\0'):
            pubkey = pubkey + b'\0'

        if auth_callback is not None:
            auth_callback(self)

        self.send(AdbMessage(constants.AUTH, constants.AUTH_RSAPUBLICKEY, 0, bytes(pubkey)))

        # 4. The device must respond with ``b'CNXN'``
        msg = self.read()
        if msg.command_id != constants.CNXN:
            raise exceptions.DeviceAuthError('The device rejected the public key: %s', msg.summary())

        return msg

    def _read_bytes_from_device(self, length):
        """Read ``length`` bytes from the device.

        Parameters
        ----------
        length : int
            We will read data until we get this length of data, in chunks of at most
            :const:`~adb_wire.constants.MAX_ADB_DATA` bytes

        Returns
        -------
        bytes
            The data that was read

        Raises
        ------
        adb_wire.exceptions.TransportIOError
            The device closed the connection before ``length`` bytes were read

        """
        data = bytearray()
        remaining = length

        while remaining > 0:
            # `length` comes from the device, so read at most `MAX_ADB_DATA` bytes at a time
            temp = self._transport.bulk_read(min(remaining, constants.MAX_ADB_DATA))
            if not temp:
                raise exceptions.TransportIOError("Connection closed by the device: read {} of {} bytes".format(len(data), length))

            _LOGGER.debug("bulk_read(%d): %.1000r", remaining, temp)
            data += temp
            remaining -= len(temp)

        return bytes(data)
