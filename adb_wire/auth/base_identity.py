# Copyright (c) 2021 Jeff Irion and contributors
#
# This file is part of the adb-wire package.

"""The interface of this host's ADB identity, which is used when connecting to a device.

* :class:`BaseIdentity`

    * :meth:`BaseIdentity.GetPublicKey`
    * :meth:`BaseIdentity.GetTlsContext`
    * :meth:`BaseIdentity.Sign`

Generating, storing, and loading the key pair are the responsibility of the implementation.

"""


from abc import ABC, abstractmethod


class BaseIdentity(ABC):
    """A base class for the RSA identity that authenticates this host to the device.

    """

    @abstractmethod
    def Sign(self, data):
        """Sign the token from an ``b'AUTH'`` message.

        Parameters
        ----------
        data : bytes
            The token sent by the device

        Returns
        -------
        bytes
            The signature, as ADB expects it

        """

    @abstractmethod
    def GetPublicKey(self):
        """Returns the public key in ADB's format, e.g. ``b'QAAAAB...= user@host'``.

        Returns
        -------
        bytes, str
            The public key; a trailing ``\\0`` is added if it is missing

        """

    @abstractmethod
    def GetTlsContext(self):
        """Returns a client-side TLS context that presents this host's certificate.

        Returns
        -------
        ssl.SSLContext
            The context used to upgrade the connection after a ``b'STLS'`` message

        """
