# Copyright (c) 2021 Jeff Irion and contributors
#
# This file is part of the adb-wire package.

"""Implement the :class:`_AdbStreamMultiplexer` class, which opens a service on the device and reads its output.

.. rubric:: Contents

* :class:`_AdbStreamMultiplexer`

    * :meth:`_AdbStreamMultiplexer._clse`
    * :meth:`_AdbStreamMultiplexer._okay`
    * :meth:`_AdbStreamMultiplexer._open`
    * :meth:`_AdbStreamMultiplexer._read_until_close`
    * :meth:`_AdbStreamMultiplexer.open_service`
    * :meth:`_AdbStreamMultiplexer.reset`
    * :attr:`_AdbStreamMultiplexer.stream`

.. note::

   Only one stream is ever open at a time, and it always uses the local ID :const:`~adb_wire.constants.LOCAL_ID`.
   Each service is opened, read until ``b'CLSE'``, and closed before the next one can be opened.

"""


import logging

from . import constants
from . import exceptions
from .adb_message import AdbMessage
from .hidden_helpers import _AdbStreamInfo


_LOGGER = logging.getLogger(__name__)


class _AdbStreamMultiplexer(object):
    """Open services on the device, one at a time.

    Parameters
    ----------
    io_manager : _AdbIOManager
        Used for sending and receiving messages over a connected transport

    Attributes
    ----------
    _io_manager : _AdbIOManager
        Used for sending and receiving messages over a connected transport
    _stream : _AdbStreamInfo, None
        The current (or most recent) stream

    """
    def __init__(self, io_manager):
        self._io_manager = io_manager
        self._stream = None

    @property
    def stream(self):
        """The current (or most recent) stream.

        Returns
        -------
        _AdbStreamInfo, None
            ``self._stream``

        """
        return self._stream

    def open_service(self, destination, sink):
        """Open a service on the device and pass its output to ``sink`` until the device closes the stream.

        1. :meth:`~_AdbStreamMultiplexer._open` the stream
        2. Pass the output to ``sink`` via :meth:`~_AdbStreamMultiplexer._read_until_close`


        Parameters
        ----------
        destination : bytes
            ``b'SERVICE:COMMAND'``
        sink : function
            Called with each chunk of data that the service writes

        Raises
        ------
        adb_wire.exceptions.AdbConnectionError
            The previous stream was not closed
        adb_wire.exceptions.ProtocolViolationError
            The device sent an unexpected message
        adb_wire.exceptions.ServiceRejectedError
            The device responded to ``b'OPEN'`` with ``b'CLSE'``

        """
        if self._stream is not None and self._stream.state != constants.STREAM_CLOSED:
            raise exceptions.AdbConnectionError("Cannot open {!r} because the stream for {!r} is still {}".format(destination, self._stream.destination, self._stream.state))

        self._stream = _AdbStreamInfo(constants.LOCAL_ID, destination)

        self._open(self._stream)
        self._read_until_close(self._stream, sink)

    def reset(self):
        """Forget the current stream, e.g. because the connection was closed.

        """
        self._stream = None

    def _clse(self, stream, remote_id):
        """Send a ``b'CLSE'`` message and mark the stream as closed.

        .. warning::

           This is not to be confused with the :meth:`AdbDevice.close() <adb_wire.adb_device.AdbDevice.close>` method!


        Parameters
        ----------
        stream : _AdbStreamInfo
            The stream
        remote_id : int
            The device's ID for the stream

        """
        stream.state = constants.STREAM_CLOSING
        self._io_manager.send(AdbMessage(constants.CLSE, stream.local_id, remote_id))
        stream.state = constants.STREAM_CLOSED

    def _okay(self, stream):
        """Send an ``b'OKAY'`` message, which lets the device send more data.

        Parameters
        ----------
        stream : _AdbStreamInfo
            The stream

        """
        self._io_manager.send(AdbMessage(constants.OKAY, stream.local_id, stream.remote_id))

    def _open(self, stream):
        """Send an ``b'OPEN'`` message and read the device's response.

        Parameters
        ----------
        stream : _AdbStreamInfo
            The stream, which is in the :const:`~adb_wire.constants.STREAM_OPENING` state

        Raises
        ------
        adb_wire.exceptions.ProtocolViolationError
            The response was not ``b'OKAY'`` or ``b'CLSE'``, or it was for a different stream
        adb_wire.exceptions.ServiceRejectedError
            The response was ``b'CLSE'``

        """
        self._io_manager.send(AdbMessage(constants.OPEN, stream.local_id, 0, stream.destination + b'\0'))

        msg = self._io_manager.read_expected([constants.OKAY, constants.CLSE])

        # A rejection may not be addressed to the stream
        allowed_local_ids = (0, stream.local_id) if msg.command_id == constants.CLSE else (stream.local_id,)
        if msg.arg1 not in allowed_local_ids:
            raise exceptions.ProtocolViolationError("Response to OPEN is for local ID {}, not {}: {}".format(msg.arg1, stream.local_id, msg.summary()))

        if msg.command_id == constants.CLSE:
            self._clse(stream, msg.arg0)
            _LOGGER.info("The device rejected the service %r", stream.destination)
            raise exceptions.ServiceRejectedError(stream.destination)

        stream.remote_id = msg.arg0
        stream.state = constants.STREAM_OPEN

    def _read_until_close(self, stream, sink):
        """Read ``b'WRTE'`` messages until a ``b'CLSE'`` message is received.

        1. If a ``b'WRTE'`` message is received, pass its data to ``sink`` and acknowledge it with ``b'OKAY'``
        2. If a ``b'CLSE'`` message is received, send a ``b'CLSE'`` message and stop


        Parameters
        ----------
        stream : _AdbStreamInfo
            The stream, which is in the :const:`~adb_wire.constants.STREAM_OPEN` state
        sink : function
            Called with each chunk of data

        Raises
        ------
        adb_wire.exceptions.ProtocolViolationError
            The device sent a message other than ``b'WRTE'`` or ``b'CLSE'``, or one for a different stream

        """
        while stream.state == constants.STREAM_OPEN:
            msg = self._io_manager.read_expected([constants.WRTE, constants.CLSE])
            if not stream.args_match(msg.arg0, msg.arg1):
                raise exceptions.ProtocolViolationError("Expected remote ID {} and local ID {}: {}".format(stream.remote_id, stream.local_id, msg.summary()))

            if msg.command_id == constants.CLSE:
                self._clse(stream, stream.remote_id)
                break

            if msg.data:
                sink(msg.data)

            # The device will not send more data until it is acknowledged
            self._okay(stream)
