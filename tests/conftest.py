"""
Pytest configuration and fixtures for line-check tests.
"""

import os
import tempfile

# Settings are read on first import of the api package
os.environ.setdefault('DATABASE_URL', 'sqlite://')
os.environ.setdefault('TEMPLATES_DIR', tempfile.mkdtemp(prefix='linecheck_templates_'))
os.environ.setdefault('TEMP_UPLOAD_DIR', tempfile.mkdtemp(prefix='linecheck_uploads_'))
os.environ.setdefault('LOG_FILE', os.path.join(tempfile.gettempdir(), 'linecheck_test.log'))

import pytest
import openpyxl
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from dotenv import load_dotenv

from backend.models.schema import Base, LineType
from services.sheet_import_service import FormLine

# Load environment
load_dotenv()

# Test database URL (in-memory SQLite unless overridden)
TEST_DATABASE_URL = os.getenv('TEST_DATABASE_URL', 'sqlite://')


@pytest.fixture(scope='session')
def engine():
    """Create test database engine."""
    if TEST_DATABASE_URL.startswith('sqlite'):
        eng = create_engine(
            TEST_DATABASE_URL,
            connect_args={'check_same_thread': False},
            poolclass=StaticPool
        )
    else:
        eng = create_engine(TEST_DATABASE_URL)
    Base.metadata.create_all(eng)
    yield eng
    Base.metadata.drop_all(eng)
    eng.dispose()


@pytest.fixture(scope='function')
def session(engine):
    """Create a new database session for a test."""
    connection = engine.connect()
    transaction = connection.begin()
    Session = sessionmaker(bind=connection)
    sess = Session()

    yield sess

    sess.close()
    transaction.rollback()
    connection.close()


def build_line_check_workbook(path, sheet_titles=('Line Check',)):
    """
    Write a workbook shaped like a real kitchen line check.

    Rows 1-6 are the header block; form lines start on row 7. Section
    headers are merged across A:E, field rows only merge D:E.
    """
    workbook = openpyxl.Workbook()
    workbook.remove(workbook.active)

    for title in sheet_titles:
        if 'line check' not in title.lower():
            sheet = workbook.create_sheet(title)
            sheet['A1'] = 'Read me first'
            sheet['A7'] = 'Not a form line'
            continue

        ws = workbook.create_sheet(title)
        ws['A1'] = '2301 Line Check'
        ws.merge_cells('A1:E1')
        ws['A3'] = 'Manager on duty'
        ws.merge_cells('A3:E3')
        ws['A6'] = 'Item'
        ws['B6'] = 'Check'

        ws['A7'] = 'Omelette/ Pancake/ FT Station'
        ws.merge_cells('A7:E7')

        ws['A8'] = 'FT Batter [33*-38*] - 4" 1/6 pan, kept on ice'
        ws['B8'] = 'Record Temp'
        ws.merge_cells('D8:E8')

        ws['A9'] = 'Pancake Batter'
        ws['B9'] = 'Record Temp'
        ws.merge_cells('D9:E9')

        ws['A10'] = 'Nutella - squeeze bottle [LDIR][2 day]'
        ws['B10'] = 'Date'
        ws.merge_cells('D10:E10')

        ws['A12'] = 'Meat Grill'
        ws.merge_cells('A12:E12')

        ws['A13'] = 'Burger Patties [135-165]'
        ws['A14'] = 'Pesto'

    workbook.save(path)
    return path


@pytest.fixture
def line_check_file(tmp_path):
    """Path to a line-check workbook with one sheet."""
    return str(build_line_check_workbook(tmp_path / 'line_check.xlsx'))


@pytest.fixture
def multi_sheet_file(tmp_path):
    """Workbook where the line-check sheet is not the first one."""
    return str(build_line_check_workbook(
        tmp_path / 'multi.xlsx', sheet_titles=('Instructions', 'AM Line Check')
    ))


@pytest.fixture
def empty_sheet_file(tmp_path):
    """Workbook with headers only."""
    workbook = openpyxl.Workbook()
    ws = workbook.active
    ws.title = 'Line Check'
    ws['A1'] = '2301 Line Check'
    ws.merge_cells('A1:E1')
    path = tmp_path / 'empty.xlsx'
    workbook.save(path)
    return str(path)


@pytest.fixture
def sample_lines():
    """Lines for a small form: one section, one temperature, one date."""
    return [
        FormLine(type=LineType.SECTION, label='Meat Grill'),
        FormLine(type=LineType.TEMPERATURE, label='Burger Patties', min=33, max=38),
        FormLine(type=LineType.DATE, label='Pesto', description='Squeeze bottle'),
    ]
