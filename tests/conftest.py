"""
Shared fixtures: an in-memory socket that speaks enough RCON to answer the client.
"""

import struct
import threading
import time

import pytest

from rcon_console.packet import PacketType, decode


def frame(request_id, ptype, payload=b''):
	body = struct.pack('<ii', request_id, ptype) + payload + b'\x00\x00'
	return struct.pack('<i', len(body)) + body


class FakeSocket:
	"""
	Records every sendall() and queues a reply per request.

	By default the auth request is accepted (reply id = request id) and a command
	is echoed back as ``echo:<payload>``. Set ``reject_auth`` to answer auth with
	id -1, or put raw bytes in ``replies`` to serve them instead.
	"""

	def __init__(self, address=None, timeout=None):
		self.address = address
		self.timeout = timeout
		self.writes = []
		self.replies = []
		self.inbox = b''
		self.closed = False
		self.reject_auth = False
		self.send_error = None
		self.recv_error = None
		self.send_delay = 0.0
		self.in_flight = False
		self.overlaps = 0
		self._guard = threading.Lock()

	def settimeout(self, timeout):
		self.timeout = timeout

	def sendall(self, data):
		if self.closed:
			raise OSError('socket closed')
		if self.send_error is not None:
			raise self.send_error
		with self._guard:
			if self.in_flight:
				self.overlaps += 1
			self.in_flight = True
		# half now, half later, so unserialized writers would interleave
		half = len(data) // 2
		self.writes.append(bytes(data[:half]))
		if self.send_delay:
			time.sleep(self.send_delay)
		self.writes[-1] += bytes(data[half:])

		req = decode(data)
		if self.replies:
			self.inbox += self.replies.pop(0)
		elif req.type == PacketType.SERVERDATA_AUTH:
			self.inbox += frame(-1 if self.reject_auth else req.request_id, PacketType.SERVERDATA_AUTH_RESPONSE)
		else:
			self.inbox += frame(req.request_id, PacketType.SERVERDATA_RESPONSE_VALUE, b'echo:' + req.payload)

	def recv(self, n):
		if self.recv_error is not None:
			raise self.recv_error
		chunk, self.inbox = self.inbox[:n], self.inbox[n:]
		if not self.inbox:
			with self._guard:
				self.in_flight = False
		return chunk

	def close(self):
		self.closed = True

	def sent_packets(self):
		return [decode(w) for w in self.writes]


class SocketFactory:
	"""Stands in for socket.create_connection and remembers what it built."""

	def __init__(self):
		self.sockets = []
		self.calls = []
		self.error = None
		self.setup = None

	def __call__(self, address, timeout=None):
		self.calls.append((address, timeout))
		if self.error is not None:
			raise self.error
		sock = FakeSocket(address, timeout)
		if self.setup is not None:
			self.setup(sock)
		self.sockets.append(sock)
		return sock

	@property
	def last(self):
		return self.sockets[-1]


@pytest.fixture
def factory():
	return SocketFactory()
