import datetime
import os
import shutil
import socket
import ssl
import tempfile
import threading
import unittest

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID

from adb_wire.exceptions import TlsHandshakeError, TransportIOError
from adb_wire.transport.tcp_transport import TcpTransport
from adb_wire.transport.tls_transport import TlsTransport


def write_self_signed_cert(directory):
    """Write a self-signed certificate and its private key to ``directory``.

    Returns
    -------
    certfile : str
        The path to the certificate
    keyfile : str
        The path to the private key

    """
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, u'adbd')])
    now = datetime.datetime.now(datetime.timezone.utc)

    cert = x509.CertificateBuilder().subject_name(name).issuer_name(name).public_key(
        key.public_key()).serial_number(x509.random_serial_number()).not_valid_before(
            now - datetime.timedelta(days=1)).not_valid_after(now + datetime.timedelta(days=1)).sign(key, hashes.SHA256())

    certfile = os.path.join(directory, 'cert.pem')
    keyfile = os.path.join(directory, 'key.pem')

    with open(certfile, 'wb') as f:
        f.write(cert.public_bytes(serialization.Encoding.PEM))

    with open(keyfile, 'wb') as f:
        f.write(key.private_bytes(serialization.Encoding.PEM, serialization.PrivateFormat.TraditionalOpenSSL, serialization.NoEncryption()))

    return certfile, keyfile


class TestTlsTransport(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.tempdir = tempfile.mkdtemp()
        cls.certfile, cls.keyfile = write_self_signed_cert(cls.tempdir)

    @classmethod
    def tearDownClass(cls):
        shutil.rmtree(cls.tempdir)

    def setUp(self):
        self.client_sock, self.server_sock = socket.socketpair()
        self.client_sock.settimeout(10)
        self.server_sock.settimeout(10)

        # A plaintext transport that is already connected
        self.tcp_transport = TcpTransport('host', 5555)
        self.tcp_transport._connection = self.client_sock

        self.client_context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
        self.client_context.check_hostname = False
        self.client_context.verify_mode = ssl.CERT_NONE

        self.server_received = []
        self.server_thread = None

    def tearDown(self):
        if self.server_thread is not None:
            self.server_thread.join(10)

        self.tcp_transport.close()
        self.server_sock.close()

    def start_server(self, target):
        self.server_thread = threading.Thread(target=target)
        self.server_thread.daemon = True
        self.server_thread.start()

    def echo_server(self):
        server_context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
        server_context.load_cert_chain(self.certfile, self.keyfile)

        conn = server_context.wrap_socket(self.server_sock, server_side=True)
        data = conn.recv(4)
        self.server_received.append(data)
        conn.sendall(data.lower())

    def garbage_server(self):
        # Read the ClientHello and respond with something that is not TLS
        self.server_sock.recv(4096)
        self.server_sock.sendall(b'CNXN' + b'\0' * 60)

    def test_connect_read_write_close(self):
        self.start_server(self.echo_server)

        transport = TlsTransport(self.tcp_transport, self.client_context)
        transport.connect(transport_timeout_s=10)

        self.assertEqual(transport.bulk_write(b'PING'), 4)
        self.assertEqual(transport.bulk_read(4), b'ping')

        self.server_thread.join(10)
        self.assertEqual(self.server_received, [b'PING'])

        transport.close()
        self.assertIsNone(transport._connection)
        self.assertIsNone(self.tcp_transport.connection)

        # Closing twice is harmless
        transport.close()

    def test_handshake_fail(self):
        self.start_server(self.garbage_server)

        transport = TlsTransport(self.tcp_transport, self.client_context)
        with self.assertRaises(TlsHandshakeError):
            transport.connect(transport_timeout_s=10)

        self.assertIsNone(transport._connection)
        self.assertIsNone(self.tcp_transport.connection)

    def test_connect_not_connected(self):
        self.tcp_transport.close()

        transport = TlsTransport(self.tcp_transport, self.client_context)
        with self.assertRaises(TransportIOError):
            transport.connect()
