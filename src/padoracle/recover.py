import logging

from .errors import OracleFailure

log = logging.getLogger(__name__)


class BlockRecoverer(object):
	'''Recovers one ciphertext block at a time by forging the block that precedes it'''
	def __init__(self, oracle, counter, crib=b'', prefix=b'', progress=None, cancel=None):
		'''
		oracle: an Oracle (see padoracle.oracle)
		counter: a GuessCounter, bumped once per oracle query
		crib: bytes expected to appear in the plaintext, ordered from most-likely to less likely
		prefix: bytes sent in front of every test case (the full ciphertext when appending test blocks)
		progress: a Progress to report recovered bytes to
		cancel: a threading.Event, checked before every oracle query
		'''
		self.oracle = oracle
		self.block_size = oracle.block_size
		self.counter = counter
		self.crib = bytes(crib)
		self.prefix = bytes(prefix)
		self.progress = progress
		self.cancel = cancel

	def cancelled(self):
		return self.cancel is not None and self.cancel.is_set()

	def build_candidate_list(self, prev_val, padding_num):
		# try the values that would decrypt to crib characters first
		# order matters! the leftovers go *after* the preferred candidates
		candidate_list = list(dict.fromkeys([ch ^ padding_num ^ prev_val for ch in self.crib]))
		tried = set(candidate_list)
		candidate_list.extend([n for n in range(256) if n not in tried])
		return candidate_list

	def query(self, candidate, block):
		self.counter.increment()
		try:
			return bool(self.oracle.attempt_decrypt(self.prefix + bytes(candidate) + block))
		except Exception as e:
			raise OracleFailure(f'oracle raised {type(e).__name__}: {e}') from e

	def recover(self, block, previous, position=None, candidate=None, block_idx=0):
		'''
		Recovers positions 0..position of block, returning them in their natural order

		block: the ciphertext block to decrypt
		previous: the ciphertext block (or IV) that really precedes it
		position: the byte being attacked, defaults to the last byte of the block
		candidate: the forged preceding block, all zeroes to start with
		block_idx: index of block in the ciphertext, only used for progress reports

		Returns None if no value produces a full chain of valid paddings, or if cancelled.
		'''
		if position is None:
			position = self.block_size - 1
		if candidate is None:
			candidate = bytearray(self.block_size)

		# we've arrived at the start of the block
		if position < 0:
			return b''

		expected_padding = self.block_size - position

		for byte_val in self.build_candidate_list(previous[position], expected_padding):
			if self.cancelled():
				return None

			candidate[position] = byte_val
			if not self.query(candidate, block):
				continue

			# the oracle saw expected_padding here, but the real decryption xors with previous, not our forgery
			plain_byte = byte_val ^ expected_padding ^ previous[position]

			if self.progress is not None:
				self.progress.update(block_idx, position, plain_byte)

			# shift every byte we control from the current padding value to the next one
			next_candidate = bytearray(candidate)
			for pad_idx in range(self.block_size - 1, position - 1, -1):
				next_candidate[pad_idx] ^= expected_padding ^ (expected_padding + 1)

			rest = self.recover(block, previous, position - 1, next_candidate, block_idx)
			if rest is not None:
				return rest + bytes([plain_byte])
			if self.cancelled():
				return None

			# typically the last byte hitting \x02\x02 while we expected \x01
			log.debug('block %d byte %d: %#04x was a false positive, backtracking', block_idx, position, byte_val)

		return None
