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

"""Functions and an :class:`AdbMessage` class for packing, unpacking, and validating ADB messages.

.. rubric:: Contents

* :func:`checksum`
* :func:`int_to_cmd`
* :func:`wire_to_id`

* :class:`AdbMessage`

    * :meth:`AdbMessage.encode`
    * :attr:`AdbMessage.command_id`
    * :meth:`AdbMessage.pack`
    * :meth:`AdbMessage.summary`
    * :meth:`AdbMessage.unpack`
    * :meth:`AdbMessage.validate`
    * :meth:`AdbMessage.validate_or_raise`

"""


import struct

from . import constants
from .exceptions import FrameValidationError


def checksum(data):
    """Calculate the checksum of the provided data.

    This is not a CRC32; the ADB daemon only sums the bytes.

    Parameters
    ----------
    data : bytearray, bytes, str
        The data

    Returns
    -------
    int
        The checksum

    """
    # The checksum is just a sum of all the bytes. I swear.
    if isinstance(data, (bytes, bytearray)):
        total = sum(data)

    else:
        # Unicode strings (should never see?)
        total = sum(map(ord, data))

    return total & 0xFFFFFFFF


def int_to_cmd(n):
    """Convert from an integer to the 4 bytes that it packs, e.g. ``0x4e584e43`` -> ``b'CNXN'``.

    Parameters
    ----------
    n : int
        The integer that will be converted to bytes

    Returns
    -------
    bytes
        The 4 bytes of the integer, least significant first

    """
    return bytes(bytearray((n >> (i * 8)) & 0xFF for i in range(4)))


def wire_to_id(wire):
    """Get the command ID for a wire value.

    Parameters
    ----------
    wire : int
        The ``command`` field of a message header

    Returns
    -------
    bytes
        A command ID from :const:`adb_wire.constants.IDS`, or :const:`adb_wire.constants.UNKNOWN`

    """
    return constants.WIRE_TO_ID.get(wire, constants.UNKNOWN)


class AdbMessage(object):
    """A message in the ADB protocol: a 24 byte header followed by ``data``.

    The ``data_length``, ``data_checksum``, and ``magic`` fields are computed from the other fields.  A received
    message is created via :meth:`AdbMessage.unpack` and holds the header fields as they were received.

    Parameters
    ----------
    command : bytes, int
        A command ID from :const:`adb_wire.constants.IDS` or its wire value
    arg0 : int
        The first argument; its meaning depends on ``command``
    arg1 : int
        The second argument; its meaning depends on ``command``
    data : bytes
        The payload

    Attributes
    ----------
    arg0 : int
        The first argument; its meaning depends on ``command``
    arg1 : int
        The second argument; its meaning depends on ``command``
    command : int
        The wire value of the command
    data : bytes
        The payload
    data_checksum : int
        The sum of the bytes in ``data``
    data_length : int
        The length of ``data``
    magic : int
        ``command ^ 0xFFFFFFFF``

    """
    def __init__(self, command, arg0=0, arg1=0, data=b''):
        self.command = command if isinstance(command, int) else constants.ID_TO_WIRE[command]
        self.arg0 = arg0
        self.arg1 = arg1
        self.data = data
        self.data_length = len(data)
        self.data_checksum = checksum(data)
        self.magic = self.command ^ 0xFFFFFFFF

    def __eq__(self, other):
        if not isinstance(other, AdbMessage):
            return NotImplemented

        return (self.command, self.arg0, self.arg1, self.data_length, self.data_checksum, self.magic, bytes(self.data)) == \
            (other.command, other.arg0, other.arg1, other.data_length, other.data_checksum, other.magic, bytes(other.data))

    def __ne__(self, other):
        result = self.__eq__(other)
        return result if result is NotImplemented else not result

    def __repr__(self):
        return 'AdbMessage({})'.format(self.summary())

    @property
    def command_id(self):
        """The command ID, or :const:`adb_wire.constants.UNKNOWN` if the wire value is not recognized.

        Returns
        -------
        bytes
            The command ID

        """
        return wire_to_id(self.command)

    def encode(self):
        """Returns this message (header and data) in an over-the-wire format.

        Returns
        -------
        bytes
            The packed header followed by ``self.data``

        """
        return self.pack() + bytes(self.data)

    def pack(self):
        """Returns the header of this message in an over-the-wire format.

        Returns
        -------
        bytes
            The 24 byte header

        """
        return struct.pack(constants.MESSAGE_FORMAT, self.command, self.arg0, self.arg1, self.data_length, self.data_checksum, self.magic)

    def summary(self):
        """A short description of this message for logging and exceptions.

        Returns
        -------
        str
            The command name, args, length, checksum, and magic

        """
        command_id = self.command_id
        if command_id == constants.UNKNOWN:
            name = 'UNKNOWN({:#010x} = {!r})'.format(self.command, int_to_cmd(self.command))
        else:
            name = constants.ID_TO_NAME[command_id]

        return 'command={}, arg0={}, arg1={}, data_length={}, data_checksum={}, magic={:#010x}'.format(name, self.arg0, self.arg1, self.data_length, self.data_checksum, self.magic)

    @classmethod
    def unpack(cls, header):
        """Unpack a received message header.

        The returned message has no data yet; the caller reads ``data_length`` bytes and assigns them to ``data``.

        Parameters
        ----------
        header : bytes
            The 24 byte header

        Returns
        -------
        AdbMessage
            A message whose header fields are the received values

        Raises
        ------
        ValueError
            Unable to unpack the ADB command.

        """
        try:
            cmd, arg0, arg1, data_length, data_checksum, magic = struct.unpack(constants.MESSAGE_FORMAT, header)
        except struct.error as e:
            raise ValueError('Unable to unpack ADB command. ({})'.format(len(header)), constants.MESSAGE_FORMAT, header, e)

        msg = cls(cmd, arg0, arg1)
        msg.data_length = data_length
        msg.data_checksum = data_checksum
        msg.magic = magic

        return msg

    def validate(self):
        """Check the ``magic`` field and, if there is data, the checksum.

        Returns
        -------
        bool
            Whether this message is valid

        """
        if self.magic != self.command ^ 0xFFFFFFFF:
            return False

        return self.data_length == 0 or checksum(self.data) == self.data_checksum

    def validate_or_raise(self):
        """Raise an exception if this message is not valid.

        Raises
        ------
        adb_wire.exceptions.FrameValidationError
            The magic or the checksum does not match

        """
        if not self.validate():
            raise FrameValidationError('Invalid message: {} (actual checksum = {})'.format(self.summary(), checksum(self.data)))
