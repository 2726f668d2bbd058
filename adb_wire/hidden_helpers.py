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

"""Implement helpers for the :class:`~adb_wire.adb_device.AdbDevice` class.

.. rubric:: Contents

* :class:`_AdbStreamInfo`

    * :meth:`_AdbStreamInfo.args_match`

* :class:`DeviceBanner`
* :func:`get_connect_payload`
* :func:`parse_banner`

"""


from collections import namedtuple

from . import constants


DeviceBanner = namedtuple('DeviceBanner', ['system_type', 'serial', 'properties', 'features'])


def get_connect_payload(features=None):
    """Get the payload of the ``b'CNXN'`` message that is sent to the device.

    Parameters
    ----------
    features : list[str], None
        Features that this host supports, e.g. ``['shell_v2']``

    Returns
    -------
    bytes
        ``b'host::'``, optionally followed by ``b'features=...'``, and a trailing ``b'\\0'``

    """
    if not features:
        return constants.HOST_BANNER + b'\0'

    return constants.HOST_BANNER + b'features=' + ','.join(features).encode('utf-8') + b'\0'


def parse_banner(data):
    """Parse the payload of the device's ``b'CNXN'`` message.

    The payload looks like ``b'device::ro.product.name=foo;ro.product.model=bar;features=shell_v2,cmd'``.

    Parameters
    ----------
    data : bytes
        The payload

    Returns
    -------
    DeviceBanner
        The system type, serial number, properties, and features

    """
    banner = bytes(data).rstrip(b'\0').decode('utf-8', 'backslashreplace')
    parts = banner.split(':', 2)
    while len(parts) < 3:
        parts.append('')

    system_type, serial, props = parts

    properties = {}
    for prop in props.split(';'):
        key, sep, value = prop.partition('=')
        if sep:
            properties[key] = value

    features = frozenset(f for f in properties.pop('features', '').split(',') if f)

    return DeviceBanner(system_type, serial, properties, features)


class _AdbStreamInfo(object):  # pylint: disable=too-few-public-methods
    """A class for storing the IDs and the state of the (single) open stream.

    Parameters
    ----------
    local_id : int
        The ID for the sender (i.e., the device running this code)
    destination : bytes
        The service that was opened, e.g. ``b'shell:ls'``

    Attributes
    ----------
    destination : bytes
        The service that was opened, e.g. ``b'shell:ls'``
    local_id : int
        The ID for the sender (i.e., the device running this code)
    remote_id : int, None
        The ID for the recipient, which is known once the device sends ``b'OKAY'``
    state : str
        One of :const:`~adb_wire.constants.STREAM_OPENING`, :const:`~adb_wire.constants.STREAM_OPEN`,
        :const:`~adb_wire.constants.STREAM_CLOSING`, or :const:`~adb_wire.constants.STREAM_CLOSED`

    """
    def __init__(self, local_id, destination):
        self.local_id = local_id
        self.destination = destination
        self.remote_id = None
        self.state = constants.STREAM_OPENING

    def args_match(self, arg0, arg1):
        """Check if ``arg0`` and ``arg1`` match this object's ``remote_id`` and ``local_id`` attributes, respectively.

        Parameters
        ----------
        arg0 : int
            The ``arg0`` value from an ADB packet, which will be compared to this object's ``remote_id`` attribute
        arg1 : int
            The ``arg1`` value from an ADB packet, which will be compared to this object's ``local_id`` attribute

        Returns
        -------
        bool
            Whether ``arg0`` and ``arg1`` match this object's ``remote_id`` and ``local_id`` attributes

        """
        return arg1 == self.local_id and (self.remote_id is None or arg0 == self.remote_id)
