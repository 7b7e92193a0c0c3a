import sys
from unittest.mock import patch

import pytest

import wp_report_web_gui as gui


@pytest.fixture
def client():
    gui.app.config["TESTING"] = True
    gui.app_state.update({
        'report_active': False,
        'last_report_path': None,
        'current_status': 'Ready',
        'success': False,
    })
    while not gui.app_state['output_messages'].empty():
        gui.app_state['output_messages'].get()
    with gui.app.test_client() as c:
        yield c


def test_index_renders_form(client):
    resp = client.get('/')
    assert resp.status_code == 200
    assert b'Application Password' in resp.data


def test_report_requires_all_fields(client):
    resp = client.post('/report', json={'domain': 'example.com', 'username': '', 'password': 'x'})
    assert resp.status_code == 400
    assert resp.get_json()['error'] == 'Username cannot be empty.'


def test_report_rejected_while_active(client):
    gui.app_state['report_active'] = True
    resp = client.post('/report', json={'domain': 'example.com', 'username': 'u', 'password': 'p'})
    assert resp.status_code == 400


def test_worker_records_report_path(tmp_path):
    report = tmp_path / "r.csv"
    report.write_text("Post Type,ID\n", encoding="utf-8")
    with patch.object(gui, "run_report", return_value=(True, str(report), "Report saved")) as run:
        gui.report_worker(credentials=("example.com", "u", "p"), out_dir=str(tmp_path))

    run.assert_called_once_with(("example.com", "u", "p"), out_dir=str(tmp_path))
    assert gui.app_state['last_report_path'] == str(report)
    assert gui.app_state['success'] is True
    assert gui.app_state['report_active'] is False


def test_status_drains_messages(client):
    gui.app_state['output_messages'].put("==> Connecting")
    data = client.get('/status').get_json()
    assert data['messages'] == ["==> Connecting"]
    assert client.get('/status').get_json()['messages'] == []


def test_download_without_report_is_404(client):
    assert client.get('/download').status_code == 404


def test_download_sends_csv(client, tmp_path):
    report = tmp_path / "2024-05-01T00-00-00-000Z-yoast-report.csv"
    report.write_text("Post Type,ID\nposts,1\n", encoding="utf-8")
    gui.app_state['last_report_path'] = str(report)

    resp = client.get('/download')

    assert resp.status_code == 200
    assert resp.data == b"Post Type,ID\nposts,1\n"
    assert report.name in resp.headers['Content-Disposition']


class _IdleThread:
    """Thread stand-in that never runs its target."""
    started = 0

    def __init__(self, target=None, kwargs=None):
        self.daemon = False

    def start(self):
        _IdleThread.started += 1


def test_second_start_is_rejected_and_previous_result_cleared(client, tmp_path):
    gui.app_state['success'] = True
    gui.app_state['last_report_path'] = str(tmp_path / "old.csv")
    _IdleThread.started = 0
    body = {'domain': 'example.com', 'username': 'u', 'password': 'p'}

    with patch.object(gui.threading, "Thread", _IdleThread):
        first = client.post('/report', json=body)
        status = client.get('/status').get_json()
        second = client.post('/report', json=body)

    assert first.status_code == 200
    assert status['report_active'] is True
    assert status['success'] is False
    assert status['report_path'] is None
    assert second.status_code == 400
    assert _IdleThread.started == 1


def test_worker_restores_stdout_and_releases_run(tmp_path):
    before = sys.stdout

    def noisy_run(credentials, out_dir):
        print("==> Connecting")
        return True, None, "No data was extracted"

    gui.app_state['report_active'] = True
    with patch.object(gui, "run_report", side_effect=noisy_run):
        gui.report_worker(credentials=("example.com", "u", "p"), out_dir=str(tmp_path))

    assert sys.stdout is before
    assert gui.app_state['report_active'] is False
    assert gui.app_state['current_status'] == 'Finished without a report'
    messages = []
    while not gui.app_state['output_messages'].empty():
        messages.append(gui.app_state['output_messages'].get())
    assert "==> Connecting" in messages
