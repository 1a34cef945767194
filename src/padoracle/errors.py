class PadOracleError(Exception):
	'''Base class for everything that can stop a decryption'''


class MalformedInput(PadOracleError):
	'''The IV or ciphertext does not split into whole blocks'''


class BlockUndecipherable(PadOracleError):
	'''No candidate value produced a full chain of valid paddings for a block'''
	def __init__(self, block_idx):
		super().__init__(f'block {block_idx} could not be decrypted: every candidate value was exhausted')
		self.block_idx = block_idx


class PaddingValidationFailure(PadOracleError):
	'''Every block was recovered but the plaintext does not end with valid padding'''


class OracleFailure(PadOracleError):
	'''The oracle raised instead of answering; the original exception is chained'''


class Cancelled(PadOracleError):
	'''Decryption was cancelled between two oracle calls'''
