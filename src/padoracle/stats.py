import logging
import sys
import threading
from collections import namedtuple

log = logging.getLogger(__name__)

# emitted every time the oracle accepts a candidate byte
# a later backtrack may revise the value recorded for the same position
ByteRecovered = namedtuple('ByteRecovered', ['block_idx', 'position', 'value', 'preview'])


class GuessCounter(object):
	'''Counts oracle queries, safe to share between block workers'''
	def __init__(self):
		self._count = 0
		self._lock = threading.Lock()

	def increment(self):
		with self._lock:
			self._count += 1
			return self._count

	@property
	def value(self):
		return self._count

	def __int__(self):
		return self._count

	def __repr__(self):
		return f'GuessCounter({self._count})'


def strclean(data):
	'''Renders bytes as text, replacing anything non-printable with "."'''
	return ''.join([chr(b) if 0x20 <= b <= 0x7e else '.' for b in data])


class Progress(object):
	'''
	Keeps a picture of the plaintext recovered so far and reports each byte to an observer

	length: number of ciphertext bytes being decrypted (IV excluded)
	block_size: size of the block cipher in bytes
	observer: a function taking a ByteRecovered event, or None
	'''
	def __init__(self, length, block_size, observer=None):
		self.block_size = block_size
		self.observer = observer
		self.state = bytearray(b'?' * length)
		self._lock = threading.Lock()

	def update(self, block_idx, position, value):
		if self.observer is None:
			return

		offset = (block_idx - 1) * self.block_size + position
		with self._lock:
			# forging encrypts against blocks that have no place in the picture
			if 0 <= offset < len(self.state):
				self.state[offset] = value
			preview = strclean(self.state)

		try:
			self.observer(ByteRecovered(block_idx, position, value, preview))
		except Exception:
			# observers only watch - they don't get to stop the attack
			log.exception('progress observer failed on block %d byte %d', block_idx, position)


def console_observer(event):
	sys.stdout.write(f'[Block {event.block_idx:2} | Byte {event.position:2}] {event.value:02x} "{event.preview}"\n')
	sys.stdout.flush()
