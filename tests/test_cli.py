"""
Tests for the line-check CLI in API mode.

HTTP calls are replaced with canned responses so no server is needed.
"""

import json

import pytest
import requests
from click.testing import CliRunner

from scripts import linecheck_cli

API_URL = 'http://linecheck.test'


def make_response(status_code, body):
    response = requests.Response()
    response.status_code = status_code
    response.headers['content-type'] = 'application/json'
    response._content = json.dumps(body).encode('utf-8')
    return response


@pytest.fixture
def fake_get(monkeypatch):
    """Install a canned response for requests.get and record the calls."""
    calls = []

    def install(status_code, body):
        def get(url, **kwargs):
            calls.append((url, kwargs))
            return make_response(status_code, body)
        monkeypatch.setattr(linecheck_cli.requests, 'get', get)
        return calls

    return install


class TestReviewCommand:
    """Test the review command against the API."""

    def run(self):
        return CliRunner().invoke(
            linecheck_cli.cli, ['review', '--submission-id', '4', '--api-url', API_URL]
        )

    def test_review_output(self, fake_get):
        calls = fake_get(200, {
            'title': '2301 Line Check',
            'location': 'Downtown',
            'submitted_at': '2026-10-19T14:30:00',
            'entries': [
                {'label': 'Burger Patties', 'type': 'temperature', 'value': 45.0,
                 'min': 33.0, 'max': 38.0, 'passed': False},
                {'label': 'Pesto', 'type': 'date', 'value': '10-31',
                 'min': None, 'max': None, 'passed': True},
            ],
            'passed': 1,
            'failed': 1,
        })

        result = self.run()

        assert result.exit_code == 0
        assert calls[0][0] == f'{API_URL}/api/submissions/4'
        assert '✗ Burger Patties: 45.0' in result.output
        assert '✓ Pesto: 10-31' in result.output
        assert 'Passed: 1  Failed: 1' in result.output

    def test_not_found(self, fake_get):
        fake_get(404, {'detail': 'Submission 4 not found'})

        result = self.run()

        assert result.exit_code == 1
        assert 'Request failed (404): Submission 4 not found' in result.output

    def test_rejected_api_key(self, fake_get):
        fake_get(403, {'detail': 'Invalid API key'})

        result = self.run()

        assert result.exit_code == 1
        assert 'Request failed (403): Invalid API key' in result.output

    def test_server_error(self, fake_get):
        fake_get(500, {'error': 'Internal server error', 'detail': None, 'path': '/api/submissions/4'})

        result = self.run()

        assert result.exit_code == 1
        assert 'Request failed (500): Internal server error' in result.output


class TestCheckResponse:
    """Test check_response() error formatting."""

    def test_expected_status_passes(self):
        linecheck_cli.check_response(make_response(201, {'form': {}}), 201)

    def test_validation_detail(self, capsys):
        response = make_response(422, {'detail': {'error': 'Missing Title', 'message': 'Please enter a form title.'}})

        with pytest.raises(SystemExit) as exc_info:
            linecheck_cli.check_response(response, 201)

        assert exc_info.value.code == 1
        assert 'Missing Title: Please enter a form title.' in capsys.readouterr().err
