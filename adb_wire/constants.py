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

"""Constants used throughout the code.

"""


import struct


#: Default port of the device's ADB daemon
DEFAULT_PORT = 5555

#: Maximum amount of data in an ADB packet.
MAX_ADB_DATA = 4096

#: ADB protocol version.
VERSION = 0x01000000

#: Version sent in the ``b'STLS'`` acknowledgement.
STLS_VERSION = 0x01000000

#: AUTH constants for arg0.
AUTH_TOKEN = 1

#: AUTH constants for arg0.
AUTH_SIGNATURE = 2

#: AUTH constants for arg0.
AUTH_RSAPUBLICKEY = 3

#: The local ID used for every stream; only one stream is open at a time
LOCAL_ID = 1

AUTH = b'AUTH'
CLSE = b'CLSE'
CNXN = b'CNXN'
OKAY = b'OKAY'
OPEN = b'OPEN'
STLS = b'STLS'
SYNC = b'SYNC'
WRTE = b'WRTE'

#: The command ID for a wire value that is not in :const:`WIRE_TO_ID`
UNKNOWN = b'UNKNOWN'

IDS = (AUTH, CLSE, CNXN, OKAY, OPEN, STLS, SYNC, WRTE)

ID_TO_WIRE = {cmd_id: sum(c << (i * 8) for i, c in enumerate(bytearray(cmd_id))) for cmd_id in IDS}
WIRE_TO_ID = {wire: cmd_id for cmd_id, wire in ID_TO_WIRE.items()}

#: Names used in log messages and exception messages
ID_TO_NAME = {AUTH: 'AUTH', CLSE: 'CLOSE', CNXN: 'CONNECT', OKAY: 'OKAY', OPEN: 'OPEN', STLS: 'START_TLS', SYNC: 'SYNC', WRTE: 'WRITE'}

#: An ADB message is 6 words in little-endian.
MESSAGE_FORMAT = b'<6I'

#: The size of an ADB message header
MESSAGE_SIZE = struct.calcsize(MESSAGE_FORMAT)

#: The system identity sent in the ``b'CNXN'`` message
HOST_BANNER = b'host::'

#: Handshake states
HANDSHAKE_CONNECTING = 'connecting'
HANDSHAKE_CONNECTED = 'connected'
HANDSHAKE_FAILED = 'failed'

#: Stream states
STREAM_OPENING = 'opening'
STREAM_OPEN = 'open'
STREAM_CLOSING = 'closing'
STREAM_CLOSED = 'closed'
