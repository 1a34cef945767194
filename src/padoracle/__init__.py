#!/usr/bin/env python3
import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed

from .blocks import pad, split_blocks, unpad, xor
from .errors import (BlockUndecipherable, Cancelled, MalformedInput, OracleFailure,
	PaddingValidationFailure, PadOracleError)
from .oracle import CallbackOracle, LocalOracle, Oracle, RemoteOracle
from .recover import BlockRecoverer
from .stats import ByteRecovered, GuessCounter, Progress, console_observer

__all__ = [
	'PadOracle',
	'Oracle', 'CallbackOracle', 'LocalOracle', 'RemoteOracle',
	'PadOracleError', 'MalformedInput', 'BlockUndecipherable', 'PaddingValidationFailure', 'OracleFailure', 'Cancelled',
	'ByteRecovered', 'GuessCounter', 'Progress', 'console_observer',
]

log = logging.getLogger(__name__)


class PadOracle(object):
	'''Class for exploiting CBC-mode padding oracles with PKCS#7 padding'''
	CRIB_ENGLISH = b' etaoinshrdlucmfwypvbgkjqxzETAOINSHRDLUCMFWYPVBGKJQXZ.,\'"!?0123456789'

	def __init__(self, oracle, crib=b'', threads=1, append_test_blocks=False, verbose=False, progress=None):
		'''
		oracle: an Oracle holding the ciphertext, IV and block size, and answering padding queries
		crib: characters that are expected to appear in the plaintext, ordered from most-likely to less likely
		threads: number of blocks to decrypt at the same time (default: 1)
		append_test_blocks: whether to append the test blocks to the full ciphertext, or only send the 2x test blocks (default: False)
		verbose: prints every recovered byte to stdout (default: False)
		progress: a function called with a ByteRecovered event for every recovered byte, overrides verbose
		'''
		self.oracle = oracle
		self.block_size = oracle.block_size

		if isinstance(crib, str):
			crib = crib.encode('utf8')
		self.crib = crib

		self.threads = max(1, threads)
		self.append_test_blocks = append_test_blocks

		if progress is None and verbose:
			progress = console_observer
		self.progress = progress

		# survives failed attempts so retries can be compared
		self.stats = GuessCounter()

		self._abort = threading.Event()

	@property
	def guesses(self):
		return self.stats.value

	def cancel(self):
		'''
		Stops decrypt() or encrypt() before its next oracle query

		A cancel with nothing running stops the next call instead.
		'''
		self._abort.set()

	def resolve_blocks(self):
		iv = self.oracle.iv
		if iv is None:
			# the first block will come out xored with the real IV
			log.warning('no IV given, using a null IV: the first block will hold the intermediate state, not plaintext')
			iv = bytes(self.block_size)
		elif len(iv) != self.block_size:
			raise MalformedInput(f'IV is {len(iv)} bytes, expected {self.block_size}')

		if len(self.oracle.ciphertext) == 0:
			raise MalformedInput('no ciphertext to decrypt')

		return split_blocks(iv + self.oracle.ciphertext, self.block_size)

	def recoverer(self, progress=None):
		prefix = self.oracle.ciphertext if self.append_test_blocks else b''
		return BlockRecoverer(self.oracle, self.stats, crib=self.crib, prefix=prefix, progress=progress, cancel=self._abort)

	def decrypt_block(self, recoverer, blocks, idx):
		log.debug('decrypting block %d of %d', idx, len(blocks) - 1)
		plaintext = recoverer.recover(blocks[idx], blocks[idx - 1], block_idx=idx)
		if plaintext is None:
			if self._abort.is_set():
				raise Cancelled(f'cancelled while decrypting block {idx}')
			raise BlockUndecipherable(idx)

		log.info('decrypted block %d: %r', idx, plaintext)
		return plaintext

	def decrypt_blocks(self, recoverer, blocks):
		indexes = range(len(blocks) - 1, 0, -1)
		results = {}

		if self.threads == 1:
			for idx in indexes:
				results[idx] = self.decrypt_block(recoverer, blocks, idx)
			return results

		errors = []
		with ThreadPoolExecutor(max_workers=self.threads) as pool:
			futures = {pool.submit(self.decrypt_block, recoverer, blocks, idx): idx for idx in indexes}
			for future in as_completed(futures):
				try:
					results[futures[future]] = future.result()
				except PadOracleError as e:
					# stop the other workers, they'll see it before their next query
					self._abort.set()
					errors.append(e)

		if errors:
			# siblings we stopped ourselves only report Cancelled, prefer the real cause
			real = [e for e in errors if not isinstance(e, Cancelled)]
			raise (real or errors)[0]
		return results

	def decrypt(self):
		'''Decrypts the ciphertext, returning the plaintext with its padding removed'''
		blocks = self.resolve_blocks()

		log.debug('decrypting %d bytes in %d blocks of %d', len(self.oracle.ciphertext), len(blocks) - 1, self.block_size)

		progress = Progress(len(self.oracle.ciphertext), self.block_size, self.progress)
		try:
			results = self.decrypt_blocks(self.recoverer(progress), blocks)
		finally:
			# whatever stopped this call must not stop the next one
			self._abort.clear()

		# no partial plaintext: every block made it or we raised above
		plaintext = b''.join([results[idx] for idx in range(1, len(blocks))])
		return unpad(plaintext)

	def intermediate(self, recoverer, block, block_idx):
		# against a null previous block the "plaintext" is the raw block decryption
		ib = recoverer.recover(block, bytes(self.block_size), block_idx=block_idx)
		if ib is None:
			if self._abort.is_set():
				raise Cancelled(f'cancelled while encrypting block {block_idx}')
			raise BlockUndecipherable(block_idx)
		return ib

	def encrypt(self, message, known_ct=None, known_pt=None):
		'''
		message: bytes to encrypt (will be padded)
		known_ct: a known IV + ciphertext as bytes
		known_pt: the plaintext for known_ct as bytes (will be padded)

		Returns IV + ciphertext that the oracle will decrypt to message.

		Note: providing a known CT/PT pair improves encryption time by saving on one block decryption
		'''
		if isinstance(message, str):
			message = message.encode('utf8')

		# chunk it up
		chunks = split_blocks(pad(message, self.block_size), self.block_size)

		try:
			return self.forge(chunks, known_ct, known_pt)
		finally:
			self._abort.clear()

	def forge(self, chunks, known_ct, known_pt):
		# intermediate states aren't plaintext, the picture stays empty and only the events matter
		recoverer = self.recoverer(Progress(0, self.block_size, self.progress))

		# store the ciphertext blocks we create for our plaintext message
		ciphertexts = []

		# cheap shortcut - we know the last known ciphertext block decrypts to (previous block xor last plaintext block)
		if known_ct is not None and known_pt is not None:
			known_ct_chunks = split_blocks(known_ct, self.block_size)
			known_pt_chunks = split_blocks(pad(known_pt, self.block_size), self.block_size)
			if len(known_ct_chunks) != len(known_pt_chunks) + 1:
				raise MalformedInput('known_ct must be the IV followed by the encryption of known_pt')

			ib = xor(known_ct_chunks[-2], known_pt_chunks[-1])
			ciphertexts.append(known_ct_chunks[-1])
			ciphertexts.insert(0, xor(chunks.pop(), ib))
		else:
			# any starting block will do
			ciphertexts.append(bytes(self.block_size))

		# now we need to encrypt any remaining plaintext chunks
		while len(chunks) > 0:
			# ciphertexts[0] ends up at index len(chunks), the IV being index 0
			ib = self.intermediate(recoverer, ciphertexts[0], len(chunks))
			# xor the plaintext block we want to encrypt with the intermediate block to create the preceding ciphertext block
			ciphertexts.insert(0, xor(chunks.pop(), ib))

		return b''.join(ciphertexts)
