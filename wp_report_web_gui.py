#!/usr/bin/env python3
"""
WordPress Yoast Report Web GUI
A web-based interface for the Yoast SEO report extractor.
Uses Flask for a simple, cross-platform GUI that runs in your browser.
"""

import os
import queue
import sys
import threading

from flask import Flask, jsonify, render_template, request, send_file

from wp_api import Credentials
from wp_yoast_report import run_report

app = Flask(__name__)

# Shared between request handlers and the single report worker
run_lock = threading.Lock()
app_state = {
    'report_active': False,
    'last_report_path': None,
    'output_messages': queue.Queue(),
    'current_status': 'Ready',
    'success': False,
}


class ConsoleTee:
    """Copies extractor progress lines into the status queue as well as the terminal."""
    def __init__(self, message_queue, terminal):
        self.messages = message_queue
        self.terminal = terminal

    def write(self, text):
        if text.strip():
            self.messages.put(text)
        self.terminal.write(text)

    def flush(self):
        self.terminal.flush()


@app.route('/')
def index():
    """Serve the main web interface."""
    return render_template('index.html')


@app.route('/report', methods=['POST'])
def start_report():
    """Start a report run in the background."""
    data = request.get_json(silent=True) or {}
    domain = (data.get('domain') or '').strip()
    username = (data.get('username') or '').strip()
    password = data.get('password') or ''
    for name, value in (('Domain', domain), ('Username', username), ('Application Password', password)):
        if not value:
            return jsonify({'error': f'{name} cannot be empty.'}), 400

    with run_lock:
        if app_state['report_active']:
            return jsonify({'error': 'A report is already being generated'}), 400
        app_state['report_active'] = True
        app_state['success'] = False
        app_state['last_report_path'] = None
        app_state['current_status'] = 'Extraction in progress...'

    # drop messages left over from the previous run
    while not app_state['output_messages'].empty():
        app_state['output_messages'].get()

    thread = threading.Thread(
        target=report_worker,
        kwargs={
            'credentials': Credentials(domain, username, password),
            'out_dir': data.get('outputDir') or 'reports',
        },
    )
    thread.daemon = True
    thread.start()

    return jsonify({'status': 'started'})


def report_worker(credentials, out_dir):
    """Worker function that runs the extraction."""
    old_stdout = sys.stdout
    try:
        sys.stdout = ConsoleTee(app_state['output_messages'], old_stdout)
        success, path, message = run_report(credentials, out_dir=out_dir)

        app_state['success'] = success
        app_state['last_report_path'] = path
        if success and path:
            app_state['current_status'] = 'Report ready for download.'
            app_state['output_messages'].put(f"\n✅ {message}")
        elif success:
            app_state['current_status'] = 'Finished without a report'
            app_state['output_messages'].put(f"\n⚠️ {message}")
        else:
            app_state['current_status'] = 'Extraction failed'
            app_state['output_messages'].put(f"\n❌ {message}")
    except Exception as e:
        app_state['success'] = False
        app_state['current_status'] = 'Error occurred'
        app_state['output_messages'].put(f"\n❌ Error: {e}")
    finally:
        sys.stdout = old_stdout
        with run_lock:
            app_state['report_active'] = False


@app.route('/status')
def status():
    """Get current status and new messages."""
    messages = []
    while True:
        try:
            messages.append(app_state['output_messages'].get_nowait())
        except queue.Empty:
            break

    return jsonify({
        'report_active': app_state['report_active'],
        'status': app_state['current_status'],
        'messages': messages,
        'success': app_state['success'],
        'report_path': app_state['last_report_path'],
    })


@app.route('/download')
def download_report():
    """Download the most recent CSV report."""
    path = app_state.get('last_report_path')
    if not path or not os.path.exists(path):
        return jsonify({'error': 'No report available - run an extraction first'}), 404

    return send_file(os.path.abspath(path), as_attachment=True,
                     download_name=os.path.basename(path), mimetype='text/csv')


def main():
    """Serve the report form until interrupted."""
    port = int(os.getenv('PORT', '5001'))
    production = os.getenv('FLASK_ENV') == 'production'
    # containers need every interface; locally stay on loopback with the debugger
    host = '0.0.0.0' if production else '127.0.0.1'

    print("==> WordPress Yoast Report web interface")
    print(f"    Listening on http://localhost:{port} (Ctrl+C to quit)")
    try:
        app.run(host=host, port=port, debug=not production, threaded=True)
    except KeyboardInterrupt:
        print("\n==> Web interface stopped")


if __name__ == "__main__":
    main()
