from .errors import MalformedInput, PaddingValidationFailure


def split_blocks(data, block_size):
	'''Splits data into block_size chunks, refusing to leave a partial block behind'''
	if block_size < 1:
		raise MalformedInput(f'invalid block size: {block_size}')

	if len(data) % block_size != 0:
		raise MalformedInput(f'data length ({len(data)}) is not a multiple of the block size ({block_size}) - is this a block cipher?')

	return [bytes(data[n:n+block_size]) for n in range(0, len(data), block_size)]


def pad(message, block_size):
	# always add padding, a whole block of it when the message is already aligned
	padding = block_size - (len(message) % block_size)
	return bytes(message) + bytes([padding for n in range(padding)])


def unpad(plaintext):
	'''
	Strips "N bytes of value N" padding from plaintext

	Raises PaddingValidationFailure if the trailing bytes are not valid padding.
	'''
	if len(plaintext) == 0:
		raise PaddingValidationFailure('no plaintext to unpad')

	padding_len = plaintext[-1]
	if padding_len == 0 or padding_len > len(plaintext):
		raise PaddingValidationFailure(f'invalid padding length: {padding_len}')

	if plaintext[-padding_len:] != bytes([padding_len]) * padding_len:
		raise PaddingValidationFailure(f'last {padding_len} bytes are not all {padding_len:#04x}')

	return bytes(plaintext[:-padding_len])


def xor(a, b):
	return bytes([x ^ y for x, y in zip(a, b)])
