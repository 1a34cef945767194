from types import SimpleNamespace

import pytest
import requests

from padoracle import CallbackOracle, LocalOracle, Oracle, OracleFailure, PadOracle, RemoteOracle

from conftest import IV, KEY


class FakeSession(object):
	def __init__(self, status_code=200, error=None):
		self.status_code = status_code
		self.error = error
		self.requests = []

	def get(self, url, timeout=None):
		self.requests.append((url, timeout))
		if self.error is not None:
			raise self.error
		return SimpleNamespace(status_code=self.status_code)


def test_base_oracle():
	oracle = Oracle(bytearray(b'x' * 16), block_size=8, iv=bytearray(8))
	assert oracle.ciphertext == b'x' * 16
	assert oracle.block_size == 8
	assert oracle.iv == bytes(8)

	with pytest.raises(NotImplementedError):
		oracle.attempt_decrypt(b'')


def test_callback_oracle():
	seen = []
	oracle = CallbackOracle(b'', lambda data: seen.append(data) or True, iv=IV)

	assert oracle.attempt_decrypt(b'abc') is True
	assert seen == [b'abc']
	assert oracle.iv == IV


def test_local_oracle_padding_check(local_oracle):
	oracle = local_oracle(b'fifteen bytes!!')
	assert oracle.attempt_decrypt(oracle.iv + oracle.ciphertext)

	# flips the \x01 padding byte to \x00
	broken_iv = IV[:15] + bytes([IV[15] ^ 0x01])
	assert not oracle.attempt_decrypt(broken_iv + oracle.ciphertext)


@pytest.mark.parametrize('data', [b'', bytes(8), bytes(16), bytes(20)])
def test_local_oracle_rejects_bad_lengths(data):
	assert not LocalOracle(key=KEY, iv=IV).attempt_decrypt(data)


def test_local_oracle_bad_key_raises(local_oracle):
	real = local_oracle(b'YELLOW SUBMARINE')
	oracle = LocalOracle(key=b'short', iv=IV, ciphertext=real.ciphertext)

	with pytest.raises(ValueError):
		oracle.attempt_decrypt(IV + real.ciphertext)


def test_local_oracle_bad_key_is_an_oracle_failure(local_oracle):
	real = local_oracle(b'YELLOW SUBMARINE')
	attack = PadOracle(LocalOracle(key=b'short', iv=IV, ciphertext=real.ciphertext))

	with pytest.raises(OracleFailure) as excinfo:
		attack.decrypt()
	assert isinstance(excinfo.value.__cause__, ValueError)
	assert attack.guesses == 1


def test_local_oracle_random_iv():
	oracle = LocalOracle(key=KEY)
	ciphertext = oracle.encrypt(b'hello')
	assert len(oracle.iv) == 16
	assert oracle.ciphertext == ciphertext
	assert oracle.decrypt(oracle.iv + ciphertext) == b'hello'


def test_remote_oracle_formats_url():
	session = FakeSession(status_code=200)
	oracle = RemoteOracle('http://localhost:8080/decrypt-with-iv/{guess}', bytes(16), session=session, timeout=3)

	assert oracle.attempt_decrypt(b'\x00\xff') is True
	assert session.requests == [('http://localhost:8080/decrypt-with-iv/00ff', 3)]


def test_remote_oracle_error_status():
	oracle = RemoteOracle('http://localhost:8080/{guess}', bytes(16), session=FakeSession(status_code=500))
	assert oracle.attempt_decrypt(b'\x01') is False


def test_remote_oracle_creates_session():
	oracle = RemoteOracle('http://localhost:8080/{guess}', bytes(16))
	assert isinstance(oracle.session, requests.Session)


def test_remote_oracle_failure_surfaces():
	session = FakeSession(error=requests.Timeout('took too long'))
	oracle = RemoteOracle('http://localhost:8080/{guess}', bytes(16), iv=bytes(16), session=session)
	attack = PadOracle(oracle)

	with pytest.raises(OracleFailure) as excinfo:
		attack.decrypt()
	assert isinstance(excinfo.value.__cause__, requests.Timeout)
	assert attack.guesses == 1
	assert len(session.requests) == 1
