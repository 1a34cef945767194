import pytest
from Cryptodome.Util.Padding import unpad

from padoracle import LocalOracle, Oracle
from padoracle.blocks import split_blocks, xor

# same key as the damned vulnerable padding server
KEY = b'\x01\x02\x03\x04\x05\x06\x07\x08\x09\x0a\x0b\x0c\x0d\x0e\x0f\x10'
IV = b'\x8a\x13\xf0\x5c\x21\x9e\x47\xd6\x0b\x6e\xa4\x3f\x72\xc8\x15\xe9'


class ToyOracle(Oracle):
	'''CBC over a "block cipher" that only xors with the key, so intermediate states can be picked by hand'''
	def __init__(self, key, iv, padded):
		prev = iv
		ciphertext = b''
		for block in split_blocks(padded, len(key)):
			prev = xor(xor(block, prev), key)
			ciphertext += prev
		super().__init__(ciphertext, len(key), iv)
		self.key = key

	def attempt_decrypt(self, data):
		prev, block = data[-2 * self.block_size:-self.block_size], data[-self.block_size:]
		try:
			unpad(xor(xor(block, self.key), prev), self.block_size)
		except ValueError:
			return False
		return True


@pytest.fixture
def local_oracle():
	'''Builds a LocalOracle with a fixed key that has encrypted message'''
	def make(message, iv=IV):
		oracle = LocalOracle(key=KEY, iv=iv)
		oracle.encrypt(message)
		return oracle
	return make


@pytest.fixture
def toy_oracle():
	'''Builds a ToyOracle over an already padded plaintext'''
	def make(padded, key=bytes(16), iv=bytes(16)):
		return ToyOracle(key, iv, padded)
	return make
