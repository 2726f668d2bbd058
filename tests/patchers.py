from unittest.mock import patch

from adb_wire import constants
from adb_wire.adb_message import AdbMessage
from adb_wire.auth.base_identity import BaseIdentity
from adb_wire.transport.base_transport import BaseTransport
from adb_wire.transport.tcp_transport import TcpTransport

test_features = b'features=shell_v2,cmd,stat_v2,ls_v2,fixed_push_mkdir,apex,abb,fixed_push_symlink_timestamp,abb_exec'
test_banner = b'device::ro.product.name=sdk_phone;ro.product.model=Pixel;ro.product.device=generic;' + test_features

TOKEN = b'\x01' * 20
SIGNATURE = b'SIGNED(' + TOKEN + b')'
PUBLIC_KEY = b'QAAAAPUBLICKEY= user@host'

MSG_CONNECT = AdbMessage(command=constants.CNXN, arg0=constants.VERSION, arg1=constants.MAX_ADB_DATA, data=test_banner)
MSG_CONNECT_LARGE = AdbMessage(command=constants.CNXN, arg0=constants.VERSION, arg1=256 * 1024, data=test_banner)
MSG_AUTH_TOKEN = AdbMessage(command=constants.AUTH, arg0=constants.AUTH_TOKEN, arg1=0, data=TOKEN)
MSG_AUTH_INVALID = AdbMessage(command=constants.AUTH, arg0=0, arg1=0, data=TOKEN)
MSG_STLS = AdbMessage(command=constants.STLS, arg0=constants.STLS_VERSION, arg1=0)


def join_messages(*messages):
    return b''.join(message.encode() for message in messages)


BULK_READ_LIST = [MSG_CONNECT]
BULK_READ_LIST_WITH_AUTH = [MSG_AUTH_TOKEN, MSG_CONNECT]
BULK_READ_LIST_WITH_AUTH_NEW_KEY = [MSG_AUTH_TOKEN, MSG_AUTH_TOKEN, MSG_CONNECT_LARGE]
BULK_READ_LIST_WITH_AUTH_INVALID = [MSG_AUTH_INVALID]


class FakeIdentity(BaseIdentity):
    def __init__(self, ssl_context=None):
        self.ssl_context = ssl_context
        self.signed = []

    def Sign(self, data):
        self.signed.append(data)
        return b'SIGNED(' + data + b')'

    def GetPublicKey(self):
        return PUBLIC_KEY

    def GetTlsContext(self):
        return self.ssl_context


class FakeSocket(object):
    def __init__(self):
        self._recv = b''
        self.recv_sizes = []
        self.sent = b''
        self.sockopts = []

    def close(self):
        pass

    def recv(self, bufsize):
        self.recv_sizes.append(bufsize)
        ret = self._recv[:bufsize]
        self._recv = self._recv[bufsize:]
        return ret

    def sendall(self, data):
        self.sent += data

    def setsockopt(self, *args):
        self.sockopts.append(args)

    def shutdown(self, how):
        pass


class FakeTcpTransport(TcpTransport):
    """A ``TcpTransport`` that reads from ``bulk_read_data`` and records what is written in ``bulk_write_data``.

    After a TLS upgrade, :class:`FakeTlsTransport` uses ``tls_bulk_read_data`` and ``tls_bulk_write_data`` instead.

    """
    def __init__(self, *args, **kwargs):
        TcpTransport.__init__(self, *args, **kwargs)
        self.bulk_read_data = b''
        self.bulk_write_data = b''
        self.tls_bulk_read_data = b''
        self.tls_bulk_write_data = b''
        self.connect_count = 0
        self.close_count = 0

    def close(self):
        self.close_count += 1
        self._connection = None

    def connect(self, transport_timeout_s=None):
        self.connect_count += 1
        self._connection = True

    def bulk_read(self, numbytes):
        num = min(numbytes, constants.MAX_ADB_DATA)
        ret = self.bulk_read_data[:num]
        self.bulk_read_data = self.bulk_read_data[num:]
        return ret

    def bulk_write(self, data):
        self.bulk_write_data += data
        return len(data)


class FakeTlsTransport(BaseTransport):
    def __init__(self, tcp_transport, ssl_context):
        self.tcp_transport = tcp_transport
        self.ssl_context = ssl_context
        self.connected = False

    def close(self):
        self.connected = False
        self.tcp_transport.close()

    def connect(self, transport_timeout_s=None):
        self.connected = True

    def bulk_read(self, numbytes):
        ret = self.tcp_transport.tls_bulk_read_data[:numbytes]
        self.tcp_transport.tls_bulk_read_data = self.tcp_transport.tls_bulk_read_data[numbytes:]
        return ret

    def bulk_write(self, data):
        self.tcp_transport.tls_bulk_write_data += data
        return len(data)


# `TcpTransport` patches
PATCH_TCP_TRANSPORT = patch('adb_wire.adb_device.TcpTransport', FakeTcpTransport)


# `TlsTransport` patches
PATCH_TLS_TRANSPORT = patch('adb_wire.adb_io_manager.TlsTransport', FakeTlsTransport)
