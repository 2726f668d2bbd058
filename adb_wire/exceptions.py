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

"""ADB-related exceptions.

"""


class AdbConnectionError(Exception):
    """ADB command not sent because a connection to the device has not been established or is no longer usable.

    """


class DeviceAuthError(Exception):
    """Device authentication failed.

    """
    def __init__(self, message, *args):
        if args:
            message %= args
        super(DeviceAuthError, self).__init__(message)


class FrameValidationError(Exception):
    """A received message has an invalid magic or its checksum does not match its data.

    """


class InvalidTransportError(Exception):
    """The provided transport does not implement the necessary methods: ``close``, ``connect``, ``bulk_read``, and ``bulk_write``.

    """


class ProtocolViolationError(Exception):
    """A valid message was received that is not allowed at this point in the conversation.

    """


class ServiceRejectedError(Exception):
    """The device answered an ``b'OPEN'`` message with ``b'CLSE'`` instead of ``b'OKAY'``.

    The connection is still usable.

    Parameters
    ----------
    destination : bytes
        The service that was rejected, e.g. ``b'tcpip:5555'``

    Attributes
    ----------
    destination : bytes
        The service that was rejected, e.g. ``b'tcpip:5555'``

    """
    def __init__(self, destination):
        super(ServiceRejectedError, self).__init__(destination)
        self.destination = destination

    def __str__(self):
        return 'The device rejected the service %r' % self.destination


class TlsHandshakeError(Exception):
    """The TLS handshake that follows a ``b'STLS'`` message failed.

    """


class TlsUnsupportedError(Exception):
    """The device requested a TLS connection but TLS is not supported.

    """


class TransportIOError(Exception):
    """Sending or receiving data via the transport failed.

    """
