"""
usage: serve_file.py [-p PORT] -f FILE

Hashes FILE (SHA-256) and serves it over HTTP on PORT (default 8080):

    /       landing page showing the filename, size, and hash
    /file   the file itself, as an attachment

Anyone downloading the file can compare its hash against the landing page, or
use fetch_file.py to download and verify in one step.
"""
import argparse
import logging
import sys

from flask import Flask, abort, render_template_string, request, send_file
from werkzeug.serving import make_server

import fileinfo

HOST = '0.0.0.0'
DEFAULT_PORT = 8080

INDEX_HTML = '''<!DOCTYPE html>
<html>
  <head>
    <meta charset="utf-8">
    <title>{{ filename }}</title>
    <style>
      body { font-family: sans-serif; margin: 2em; }
      td { padding: 0.2em 1em 0.2em 0; }
      code { word-break: break-all; }
    </style>
  </head>
  <body>
    <table>
      <tr><td>File</td><td id="filename">{{ filename }}</td></tr>
      <tr><td>Size</td><td id="size">{{ size }}</td></tr>
      <tr><td>SHA-256</td><td><code id="sha256">{{ hash }}</code></td></tr>
    </table>
    <p><a href="{{ url_for('get_file') }}" download>Download</a></p>
  </body>
</html>
'''

def create_app(info):
    """Builds the Flask app serving the file described by info (a FileInfo)."""
    app = Flask(__name__)
    app.logger.setLevel(logging.INFO)

    @app.route('/')
    def get_index():
        return render_template_string(INDEX_HTML, filename=info.name,
                                      size=fileinfo.format_bytes(info.size),
                                      hash=info.sha256)

    @app.route('/file')
    def get_file():
        app.logger.info('serving file to %s', request.remote_addr)
        try:
            # no range requests or 304s, always the whole file
            return send_file(info.path, mimetype='application/octet-stream',
                             as_attachment=True, download_name=info.name,
                             conditional=False)
        except FileNotFoundError:
            app.logger.error('file is gone: %s', info.path)
            abort(404)

    return app

def port_number(value):
    port = int(value)
    if not (0 < port < 65536):
        raise argparse.ArgumentTypeError(f'invalid port: {value}')
    return port

def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog='serve_file.py',
        description='Serve a single file along with its SHA-256 hash.')
    parser.add_argument('-p', '--port', type=port_number, default=DEFAULT_PORT,
                        help=f'port to listen on (default {DEFAULT_PORT})')
    parser.add_argument('-f', '--file', required=True,
                        help='path of the file to serve')
    args = parser.parse_args(argv)
    if not args.file:
        parser.error('a file to serve is required')
    return args

def serve(app, port):
    """
    Binds HOST:port and serves app, one thread per request, until interrupted.
    """
    try:
        server = make_server(HOST, port, app, threaded=True)
    except SystemExit:
        # werkzeug prints the bind error itself, then exits
        sys.exit(f"[-] Server error: can't listen on port {port}")
    except OSError as e:
        sys.exit(f'[-] Server error: {e}')
    print(f'[*] Serving @ http://127.0.0.1:{port}/')
    server.serve_forever()

def main(argv=None):
    args = parse_args(argv)

    print('[*] Hashing file...')
    try:
        info = fileinfo.file_info(args.file)
    except fileinfo.FileInfoError as e:
        sys.exit(f'[-] {e}')
    print(f'[+] Done: {info.name} ({fileinfo.format_bytes(info.size)}) '
          f'sha256 {info.sha256}')

    serve(create_app(info), args.port)

if __name__ == '__main__':
    main()
