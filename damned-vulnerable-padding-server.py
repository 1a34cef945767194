#!/usr/bin/env python3
import argparse
import random
from http.server import BaseHTTPRequestHandler, HTTPServer

from padoracle import LocalOracle

# random characters to pick from when creating a message to encrypt for the user
CHARS = 'QWERTYUIOPASDFGHJKLZXCVBNMqwertyuiopasdfghjklzxcvbnm1234567890 '

# the server's secret - every request shares it
ORACLE = LocalOracle(key=b'\x01\x02\x03\x04\x05\x06\x07\x08\x09\x0a\x0b\x0c\x0d\x0e\x0f\x10')


def random_string(length=-1):
    if length < 0:
        length = random.randint(33, 64)
    return ''.join([CHARS[random.randint(0, len(CHARS) - 1)] for n in range(length)])


class AESHandler(BaseHTTPRequestHandler):
    def do_GET(self):
        message = ''
        if self.path == '/encrypt-with-iv':
            # fresh IV for every message
            ORACLE.iv = None
            ct = ORACLE.encrypt(f'sid: {random_string()}'.encode())
            message = (ORACLE.iv + ct).hex()
            self.send_response(200)
        elif self.path.startswith('/decrypt-with-iv/'):
            try:
                ct = bytes.fromhex(self.path.split('/')[-1])
            except ValueError:
                self.send_response(400)
            else:
                # the leak: bad padding is a 500, anything else is a 200
                self.send_response(200 if ORACLE.attempt_decrypt(ct) else 500)
        else:
            self.send_response(404)

        self.end_headers()
        self.wfile.write(bytes(message, 'utf8'))


if __name__ == '__main__':
    parser = argparse.ArgumentParser(description='Deliberately vulnerable AES-CBC padding oracle')
    parser.add_argument('-p', '--port', type=int, default=8080, help='port to listen on (default: 8080)')
    args = parser.parse_args()

    with HTTPServer(('', args.port), AESHandler) as server:
        server.serve_forever()
