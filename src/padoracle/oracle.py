import requests
from Cryptodome.Cipher import AES
from Cryptodome.Random import get_random_bytes
from Cryptodome.Util.Padding import pad, unpad


class Oracle(object):
	'''
	A padding oracle plus the ciphertext it is guarding

	block_size: size of the block cipher in bytes
	iv: the IV as bytes, or None if it is unknown (the first block then decrypts to plaintext xor IV)
	ciphertext: the ciphertext to recover, without the IV

	Subclasses implement attempt_decrypt.
	'''
	def __init__(self, ciphertext=b'', block_size=16, iv=None):
		self.ciphertext = bytes(ciphertext)
		self.block_size = block_size
		self.iv = None if iv is None else bytes(iv)

	def attempt_decrypt(self, data):
		'''Returns True if data decrypts to a plaintext with valid padding, False otherwise'''
		raise NotImplementedError


class CallbackOracle(Oracle):
	'''
	Wraps a user-supplied function that tests a candidate ciphertext

	callback: takes one input (a candidate ciphertext as bytes) and returns True if it decrypted to a value with valid padding, or False otherwise
	'''
	def __init__(self, ciphertext, callback, block_size=16, iv=None):
		super().__init__(ciphertext, block_size, iv)
		self.callback = callback

	def attempt_decrypt(self, data):
		return self.callback(data)


class LocalOracle(Oracle):
	'''
	Simulates a vulnerable service that holds the AES key

	The first block of every message handed to attempt_decrypt is used as the IV, the
	same as the /decrypt-with-iv endpoint of the damned vulnerable padding server.
	'''
	def __init__(self, key=None, iv=None, ciphertext=b''):
		super().__init__(ciphertext, AES.block_size, iv)
		self._key = key if key is not None else get_random_bytes(16)

	def encrypt(self, message):
		'''Pads and encrypts message, keeping the result as the ciphertext to attack'''
		if self.iv is None:
			self.iv = get_random_bytes(self.block_size)
		self.ciphertext = AES.new(self._key, AES.MODE_CBC, self.iv).encrypt(pad(message, self.block_size))
		return self.ciphertext

	def decrypt(self, data):
		'''Decrypts IV + ciphertext with the real key and strips the padding'''
		decryptor = AES.new(self._key, AES.MODE_CBC, data[:self.block_size])
		return unpad(decryptor.decrypt(data[self.block_size:]), self.block_size)

	def attempt_decrypt(self, data):
		# an IV on its own has no padding to check
		if len(data) <= self.block_size:
			return False
		# the server turns away ragged messages before it ever looks at padding
		if len(data) % self.block_size != 0:
			return False

		# a broken key is our problem, not a padding answer
		decryptor = AES.new(self._key, AES.MODE_CBC, data[:self.block_size])
		plaintext = decryptor.decrypt(data[self.block_size:])
		try:
			unpad(plaintext, self.block_size)
		except ValueError:
			return False
		return True


class RemoteOracle(Oracle):
	'''
	Asks a web service whether a candidate ciphertext has valid padding

	url: template containing a {guess} field, replaced by the hex-encoded candidate
	session: a requests.Session to reuse connections (one is created if not given)
	timeout: seconds to wait for each response

	A 200 response means valid padding. Connection errors are not retried.
	'''
	def __init__(self, url, ciphertext, block_size=16, iv=None, session=None, timeout=10):
		super().__init__(ciphertext, block_size, iv)
		self.url = url
		self.session = session if session is not None else requests.Session()
		self.timeout = timeout

	def attempt_decrypt(self, data):
		r = self.session.get(self.url.format(guess=data.hex()), timeout=self.timeout)
		return r.status_code == 200
