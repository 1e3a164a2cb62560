import importlib.util
from datetime import datetime
from pathlib import Path

import pytest
from click.testing import CliRunner

from rimappa.importer import CANONICAL_COLUMNS, SCHEMA_V2, import_csv
from rimappa.models import UserRole
from rimappa.store import CompetitionStore
from tests.conftest import create_user

SCRIPT = Path(__file__).resolve().parent.parent / 'scripts' / 'migration' / 'migrate_legacy_csv.py'

LEGACY = (
    'displayName;keyName;eventDate;createdAt;modality;judges;location;price;description;flyerPath\n'
    'Dinastía Freestyle;dinastia;2025-04-05T21:00:00Z;2024-01-01T10:00:00Z;ONE_VS_ONE;Dtoke, Wos;'
    'Palermo, CABA;2.500;Batalla mensual;\n'
    'Quinta Escena;;2025-05-10T20:00:00Z;;TWO_VS_TWO;;Palermo, CABA;;;/flyers/quinta.png\n'
)


@pytest.fixture(scope='module')
def migrate():
    spec = importlib.util.spec_from_file_location('migrate_legacy_csv', SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class TestConvert:

    def test_header_and_count(self, migrate):
        text, count = migrate.convert(LEGACY, organizer_id='org-1')

        header = text.splitlines()[0].split(';')
        assert header == CANONICAL_COLUMNS + ['createdAt']
        assert count == 2

    def test_rejects_canonical_files(self, migrate):
        with pytest.raises(ValueError):
            migrate.convert('title;date\nOpen Mic;2025-03-01T20:00:00Z\n')

    def test_converted_file_imports(self, migrate, session, geocoder):
        create_user(name='Org', email='org@example.com', role=UserRole.ORGANIZER.value, user_id='org-1')
        store = CompetitionStore(session)
        text, _ = migrate.convert(LEGACY, organizer_id='org-1')

        report = import_csv(text, store, geocoder)

        assert report.schema == SCHEMA_V2
        assert (report.created, report.skipped, report.failed) == (2, 0, 0)
        dinastia = store.get_by_slug('dinastia')
        assert dinastia.created_at == datetime(2024, 1, 1, 10, 0)
        assert dinastia.image == '/images/competitions/flyers/dinastia.jpg'
        assert dinastia.max_participants == 32
        assert dinastia.organizer_id == 'org-1'
        quinta = store.get_by_slug('quinta-escena')
        assert quinta.image == '/flyers/quinta.png'
        assert quinta.modality == 'TWO_VS_TWO'

    def test_command(self, migrate, tmp_path):
        source, target = tmp_path / 'old.csv', tmp_path / 'new.csv'
        source.write_text(LEGACY, encoding='utf-8')

        result = CliRunner().invoke(migrate.main, [str(source), str(target), '--organizer', 'org-1'])

        assert result.exit_code == 0, result.output
        assert '2 rows written' in result.output
        assert target.read_text(encoding='utf-8').startswith('title;description;date')
