# Copyright (c) 2021 Jeff Irion and contributors
#
# This file is part of the adb-wire package.

"""A base class for transports used to communicate with a device.

* :class:`BaseTransport`

    * :meth:`BaseTransport.bulk_read`
    * :meth:`BaseTransport.bulk_write`
    * :meth:`BaseTransport.close`
    * :meth:`BaseTransport.connect`

"""


from abc import ABC, abstractmethod


class BaseTransport(ABC):
    """A base transport class.

    Reads and writes block the calling thread.  A timeout, if any, is configured when connecting.

    """

    @abstractmethod
    def close(self):
        """Close the connection.

        """

    @abstractmethod
    def connect(self, transport_timeout_s=None):
        """Create a connection to the device.

        Parameters
        ----------
        transport_timeout_s : float, None
            A timeout for connecting and for every read and write, or ``None`` to block indefinitely

        """

    @abstractmethod
    def bulk_read(self, numbytes):
        """Read data from the device.

        Parameters
        ----------
        numbytes : int
            The maximum amount of data to be received

        Returns
        -------
        bytes
            The received data; empty if the device closed the connection

        """

    @abstractmethod
    def bulk_write(self, data):
        """Send data to the device.

        Parameters
        ----------
        data : bytes
            The data to be sent

        Returns
        -------
        int
            The number of bytes sent

        """
