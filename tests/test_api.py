"""
HTTP tests for the FastAPI application.

Requests go through TestClient with the database dependency bound to the
per-test session, so every test starts from empty tables.
"""

import os

import pytest
from fastapi.testclient import TestClient

from api.config import settings
from api.dependencies import get_db
from api.main import app
from backend.models.schema import FormGroup

XLSX_MIME = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'

FORM_PAYLOAD = {
    'title': '2301 Line Check',
    'location': 'Downtown',
    'lines': [
        {'type': 'section', 'label': 'Meat Grill'},
        {'type': 'temperature', 'label': 'Burger Patties', 'min': 33, 'max': 38},
        {'type': 'date', 'label': 'Pesto', 'description': 'Squeeze bottle'},
    ]
}


@pytest.fixture
def client(session):
    """Test client sharing the test database session."""
    def override_get_db():
        yield session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def upload(client, url, path, filename=None, **data):
    with open(path, 'rb') as f:
        files = {'file': (filename or os.path.basename(path), f, XLSX_MIME)}
        return client.post(url, files=files, data=data)


def create_form(client, **overrides):
    payload = dict(FORM_PAYLOAD, **overrides)
    response = client.post('/api/forms', json=payload)
    assert response.status_code == 201
    return response.json()


class TestHealth:
    """Test root and health endpoints."""

    def test_root(self, client):
        response = client.get('/')
        assert response.status_code == 200
        assert response.json()['docs'] == '/docs'

    def test_ping(self, client):
        assert client.get('/api/ping').json() == {'ping': 'pong'}

    def test_health(self, client):
        response = client.get('/health')
        assert response.status_code == 200
        assert response.json()['database'] == 'connected'
        assert response.json()['storage'] == 'writable'
        assert response.json()['status'] == 'healthy'


class TestImportPreview:
    """Test GET /api/import/settings and POST /api/import/preview."""

    def test_settings(self, client):
        data = client.get('/api/import/settings').json()

        assert data['data_start_row'] == 7
        assert data['section_columns'] == 'A:E'
        assert data['temperature_marker'] == 'temp'
        assert '.xlsx' in data['allowed_extensions']

    def test_preview(self, client, line_check_file):
        response = upload(client, '/api/import/preview', line_check_file)

        assert response.status_code == 200
        data = response.json()
        assert data['filename'] == 'line_check.xlsx'
        assert data['sheet_name'] == 'Line Check'
        assert data['summary'] == {'total': 7, 'sections': 2, 'temperature_fields': 3, 'date_fields': 2}
        assert data['existing_form_id'] is None
        assert data['lines'][1] == {
            'type': 'temperature',
            'label': 'FT Batter',
            'description': '4" 1/6 pan, kept on ice',
            'min': 33.0,
            'max': 38.0
        }
        assert [line['type'] for line in data['lines']] == [
            'section', 'temperature', 'temperature', 'date', 'section', 'temperature', 'date'
        ]

    def test_preview_explicit_sheet(self, client, multi_sheet_file):
        response = upload(client, '/api/import/preview', multi_sheet_file, sheet_name='Instructions')

        assert response.status_code == 200
        assert response.json()['sheet_name'] == 'Instructions'
        assert response.json()['summary']['total'] == 1

    def test_no_data(self, client, empty_sheet_file):
        response = upload(client, '/api/import/preview', empty_sheet_file)

        assert response.status_code == 422
        assert response.json()['detail']['error'] == 'No Data'
        assert 'Line Check' in response.json()['detail']['message']

    def test_unknown_sheet(self, client, line_check_file):
        response = upload(client, '/api/import/preview', line_check_file, sheet_name='Prep')

        assert response.status_code == 422
        assert response.json()['detail']['error'] == 'Sheet Not Found'

    def test_wrong_extension(self, client, line_check_file):
        response = upload(client, '/api/import/preview', line_check_file, filename='line_check.csv')

        assert response.status_code == 400

    def test_not_a_workbook(self, client, tmp_path):
        path = tmp_path / 'broken.xlsx'
        path.write_bytes(b'not a zip archive')

        response = upload(client, '/api/import/preview', str(path))

        assert response.status_code == 400
        assert response.json()['detail'] == {
            'error': 'Invalid File', 'message': 'Could not parse the Excel file.'
        }


class TestImportForm:
    """Test POST /api/import/form."""

    def test_import_creates_form(self, client, session, line_check_file):
        response = upload(client, '/api/import/form', line_check_file,
                          title='2301 Line Check', location='Downtown')

        assert response.status_code == 201
        data = response.json()
        form = data['form']
        assert form['title'] == '2301 Line Check'
        assert form['assigned_locations'] == ['Downtown']
        assert form['source_filename'] == 'line_check.xlsx'
        assert [line['position'] for line in form['lines']] == list(range(1, 8))
        assert data['summary']['total'] == 7

        stored = session.query(FormGroup).filter_by(id=form['id']).one()
        assert stored.source_path and os.path.exists(stored.source_path)

        preview = upload(client, '/api/import/preview', line_check_file)
        assert preview.json()['existing_form_id'] == form['id']

    def test_import_without_source_copy(self, client, session, line_check_file):
        response = upload(client, '/api/import/form', line_check_file,
                          title='2301 Line Check', location='Downtown', keep_source='false')

        assert response.status_code == 201
        stored = session.query(FormGroup).filter_by(id=response.json()['form']['id']).one()
        assert stored.source_path is None

    def test_blank_title(self, client, line_check_file):
        response = upload(client, '/api/import/form', line_check_file, title='  ', location='Downtown')

        assert response.status_code == 422
        assert response.json()['detail'] == {'error': 'Missing Title', 'message': 'Please enter a form title.'}

    def test_rejected_import_stores_nothing(self, client, line_check_file):
        """Test that a 422 import leaves template storage untouched."""
        before = set(os.listdir(settings.TEMPLATES_DIR))

        response = upload(client, '/api/import/form', line_check_file, title='   ', location='Downtown')

        assert response.status_code == 422
        assert set(os.listdir(settings.TEMPLATES_DIR)) == before

    def test_delete_removes_stored_workbook(self, client, session, line_check_file):
        response = upload(client, '/api/import/form', line_check_file,
                          title='2301 Line Check', location='Downtown')
        form_id = response.json()['form']['id']
        source_path = session.query(FormGroup).filter_by(id=form_id).one().source_path

        assert client.delete(f'/api/forms/{form_id}').status_code == 200
        assert not os.path.exists(source_path)


class TestForms:
    """Test /api/forms endpoints."""

    def test_create_and_get(self, client):
        form = create_form(client)

        assert [line['type'] for line in form['lines']] == ['section', 'temperature', 'date']
        assert form['lines'][1]['min'] == 33
        assert form['created_by'] == 'public'

        response = client.get(f"/api/forms/{form['id']}")
        assert response.status_code == 200
        assert response.json()['lines'] == form['lines']

    def test_create_without_fields(self, client):
        response = client.post('/api/forms', json=dict(
            FORM_PAYLOAD, lines=[{'type': 'section', 'label': 'Meat Grill'}]
        ))

        assert response.status_code == 422
        assert response.json()['detail']['error'] == 'No Fields'

    def test_create_with_blank_label(self, client):
        response = client.post('/api/forms', json=dict(
            FORM_PAYLOAD, lines=[{'type': 'date', 'label': ''}]
        ))

        assert response.status_code == 422
        assert response.json()['detail'] == {
            'error': 'Incomplete Fields', 'message': 'All fields must have a label.'
        }

    def test_list_forms(self, client):
        create_form(client)
        create_form(client, title='Airport Check', location='Airport')

        data = client.get('/api/forms').json()
        assert data['total'] == 2

        data = client.get('/api/forms', params={'location': 'Airport'}).json()
        assert data['total'] == 1
        assert data['items'][0]['title'] == 'Airport Check'
        assert data['items'][0]['section_count'] == 1
        assert data['items'][0]['field_count'] == 2

    def test_get_missing(self, client):
        assert client.get('/api/forms/999').status_code == 404

    def test_update(self, client):
        form = create_form(client)

        response = client.put(f"/api/forms/{form['id']}", json={
            'title': 'Grill Check',
            'lines': [{'type': 'date', 'label': 'Aioli', 'min': 1, 'max': 2}]
        })

        assert response.status_code == 200
        data = response.json()
        assert data['title'] == 'Grill Check'
        assert data['lines'] == [{
            'id': data['lines'][0]['id'], 'position': 1, 'type': 'date',
            'label': 'Aioli', 'description': '', 'min': None, 'max': None
        }]

    def test_assign_location(self, client):
        form = create_form(client)

        response = client.post(f"/api/forms/{form['id']}/locations", json={'location': 'Airport'})

        assert response.status_code == 200
        assert response.json()['assigned_locations'] == ['Downtown', 'Airport']

    def test_delete(self, client):
        form = create_form(client)

        response = client.delete(f"/api/forms/{form['id']}")

        assert response.status_code == 200
        assert response.json()['lines_deleted'] == 3
        assert client.get(f"/api/forms/{form['id']}").status_code == 404
        assert client.delete(f"/api/forms/{form['id']}").status_code == 404


class TestSubmissions:
    """Test submission endpoints."""

    def submit(self, client, form, temperature, date_value, location='Downtown'):
        temp_line, date_line = form['lines'][1], form['lines'][2]
        return client.post(f"/api/forms/{form['id']}/submissions", json={
            'location': location,
            'values': {str(temp_line['id']): temperature, str(date_line['id']): date_value}
        })

    def test_submit_and_review(self, client):
        form = create_form(client)

        response = self.submit(client, form, 36, '12-31')

        assert response.status_code == 201
        data = response.json()
        assert data['submission_key'].endswith('-Downtown-2301 Line Check')
        assert data['form_id'] == form['id']
        assert data['passed'] == 2
        assert data['all_passed'] is True
        assert [entry['label'] for entry in data['entries']] == ['Burger Patties', 'Pesto']

        review = client.get(f"/api/submissions/{data['id']}").json()
        assert review['entries'] == data['entries']

    def test_out_of_range_temperature_fails(self, client):
        form = create_form(client)

        data = self.submit(client, form, '45', '12-31').json()

        assert data['entries'][0]['value'] == 45.0
        assert data['entries'][0]['passed'] is False
        assert data['failed'] == 1
        assert data['all_passed'] is False

    def test_invalid_date(self, client):
        form = create_form(client)

        response = self.submit(client, form, 36, '02-30')

        assert response.status_code == 422
        detail = response.json()['detail']
        assert detail['error'] == 'Invalid Dates'
        assert detail['field_ids'] == [form['lines'][2]['id']]

    def test_unassigned_location(self, client):
        form = create_form(client)

        response = self.submit(client, form, 36, '12-31', location='Airport')

        assert response.status_code == 422
        assert response.json()['detail']['error'] == 'Unknown Location'

    def test_missing_form(self, client):
        response = client.post('/api/forms/999/submissions', json={'location': 'Downtown', 'values': {}})
        assert response.status_code == 404

    def test_list_submissions(self, client):
        form = create_form(client)
        self.submit(client, form, 36, '12-31')
        second = self.submit(client, form, 36, '12-31').json()

        data = client.get('/api/submissions', params={'location': 'Downtown'}).json()
        assert data['total'] == 2
        assert second['submission_key'].endswith('(2)')
        assert client.get('/api/submissions', params={'location': 'Airport'}).json()['total'] == 0

    def test_get_missing_submission(self, client):
        assert client.get('/api/submissions/999').status_code == 404
