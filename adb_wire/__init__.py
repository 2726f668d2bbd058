# Copyright (c) 2021 Jeff Irion and contributors
#
# This file is part of the adb-wire package.

"""ADB client for running shell commands and other services on a device over TCP, with optional TLS.

"""


__version__ = '0.1.0'
