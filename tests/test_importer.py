from datetime import datetime

import pytest

from rimappa.errors import RecordValidationError
from rimappa.geocoding import Coordinates
from rimappa.importer import (
    CANONICAL_COLUMNS,
    ImportReport,
    RowResult,
    SCHEMA_V1,
    SCHEMA_V2,
    export_csv,
    import_csv,
    read_rows,
)
from rimappa.models import Competition, UserRole
from rimappa.schemas import validate_record
from rimappa.store import CompetitionStore
from tests.conftest import PALERMO, create_user

HEADER = 'title;description;date;location;maxParticipants;organizerId;latitude;longitude'
OPEN_MIC = 'Open Mic Night;Weekly freestyle jam;2025-03-01T20:00:00Z;Palermo, CABA;16;org-1;;'


LEGACY_HEADER = 'displayName;keyName;eventDate;createdAt;modality;judges;location;price;description;flyerPath'


def csv_text(*lines, header=HEADER):
    return '\n'.join((header,) + lines) + '\n'


@pytest.fixture
def organizer(session):
    return create_user(name='Org', email='org@example.com', role=UserRole.ORGANIZER.value, user_id='org-1')


@pytest.fixture
def store(session):
    return CompetitionStore(session)


class TestReadRows:

    def test_canonical_header(self):
        schema, rows = read_rows(csv_text(OPEN_MIC))
        assert schema == SCHEMA_V2
        line, row = rows[0]
        assert line == 2
        assert row['title'] == 'Open Mic Night'

    def test_bom_and_blank_lines(self):
        schema, rows = read_rows('\ufeff' + csv_text('', OPEN_MIC, ';;;;;;;'))
        assert schema == SCHEMA_V2
        assert len(rows) == 1

    def test_legacy_header_is_mapped(self):
        text = csv_text(
            'Dinastía Freestyle;dinastia;2025-04-05T21:00:00Z;2024-01-01;ONE_VS_ONE;Dtoke, Wos;Palermo, CABA;2.500;'
            'Batalla mensual;/flyers/dinastia.png',
            header='displayName;keyName;eventDate;createdAt;modality;judges;location;price;description;flyerPath',
        )
        schema, rows = read_rows(text, default_organizer_id='org-1')
        row = rows[0][1]
        assert schema == SCHEMA_V1
        assert row['title'] == 'Dinastía Freestyle'
        assert row['displayName'] == 'Dinastía Freestyle'
        assert row['slug'] == 'dinastia'
        assert row['date'] == '2025-04-05T21:00:00Z'
        assert row['image'] == '/flyers/dinastia.png'
        assert row['maxParticipants'] == '32'
        assert row['organizerId'] == 'org-1'
        assert row['createdAt'] == '2024-01-01'

    def test_unknown_header(self):
        with pytest.raises(ValueError):
            read_rows('name;when\nfoo;bar\n')


class TestReportTypes:

    def test_row_result_defaults(self):
        row = RowResult(line=3, outcome='created')
        assert row.warnings == []
        assert row.field is None
        assert row.to_dict() == {'line': 3, 'outcome': 'created', 'slug': None}

    def test_results_do_not_share_lists(self):
        first, second = RowResult(line=1, outcome='created'), RowResult(line=2, outcome='created')
        first.warnings.append('moved')
        assert second.warnings == []
        assert ImportReport().rows == []


class TestShortRows:

    ROW = 'Open Mic;Jam session weekly;2025-03-01T20:00:00Z;Palermo, CABA;16'

    def test_missing_cells_are_absent_not_none(self):
        _, rows = read_rows(csv_text(self.ROW, header=';'.join(CANONICAL_COLUMNS)))
        row = rows[0][1]
        assert row['organizerId'] is None

        with pytest.raises(RecordValidationError) as e:
            validate_record(row)
        assert e.value.field == 'organizerId'
        assert e.value.kind == RecordValidationError.MISSING

    def test_short_row_uses_default_organizer(self, organizer, store, geocoder):
        text = csv_text(self.ROW, header=';'.join(CANONICAL_COLUMNS))
        report = import_csv(text, store, geocoder, default_organizer_id='org-1')

        assert (report.created, report.skipped) == (1, 0)
        competition = store.get_by_slug('open-mic')
        assert competition.status == 'OPEN'
        assert competition.modality == 'ONE_VS_ONE'
        assert (competition.latitude, competition.longitude) == PALERMO

    def test_short_row_without_organizer_is_skipped(self, organizer, store, geocoder):
        report = import_csv(csv_text(self.ROW, header=';'.join(CANONICAL_COLUMNS)), store, geocoder)

        assert report.skipped == 1
        assert report.rows[0].field == 'organizerId'
        assert store.count() == 0


class TestImport:

    def test_open_mic_night_is_created_and_geocoded(self, organizer, store, geocoder):
        report = import_csv(csv_text(OPEN_MIC), store, geocoder)

        assert (report.created, report.updated, report.skipped, report.failed) == (1, 0, 0, 0)
        competition = store.get_by_slug('open-mic-night')
        assert competition.status == 'OPEN'
        assert competition.organizer_id == 'org-1'
        assert (competition.latitude, competition.longitude) == PALERMO
        assert geocoder.calls == ['Palermo, CABA']

    def test_reimport_updates_instead_of_duplicating(self, organizer, store, geocoder, session):
        import_csv(csv_text(OPEN_MIC), store, geocoder)
        report = import_csv(csv_text(OPEN_MIC.replace(';16;', ';24;')), store, geocoder)

        assert report.updated == 1
        assert report.created == 0
        assert session.query(Competition).count() == 1
        assert store.get_by_slug('open-mic-night').max_participants == 24

    def test_same_file_twice_is_idempotent(self, organizer, store, geocoder, session):
        text = csv_text(OPEN_MIC, 'Batalla del Rosedal;Gallos en el rosedal;2025-05-01T18:00:00Z;Rosedal;8;org-1;;')
        import_csv(text, store, geocoder)
        before = [c.to_dict(include_relations=False) for c in store.find_many()]
        import_csv(text, store, geocoder)
        after = [c.to_dict(include_relations=False) for c in store.find_many()]

        assert len(after) == 2
        assert [c['slug'] for c in before] == [c['slug'] for c in after]
        assert [c['maxParticipants'] for c in before] == [c['maxParticipants'] for c in after]

    def test_bad_row_is_skipped_and_batch_continues(self, organizer, store, geocoder):
        text = csv_text(
            'Sin Cupo;Row with a broken capacity;2025-03-01T20:00:00Z;Palermo, CABA;lots;org-1;;',
            OPEN_MIC,
        )
        report = import_csv(text, store, geocoder)

        assert report.skipped == 1
        assert report.created == 1
        skipped = report.rows[0]
        assert skipped.line == 2
        assert skipped.field == 'maxParticipants'
        assert store.get_by_slug('sin-cupo') is None

    def test_location_not_found_still_persists(self, organizer, store, geocoder):
        text = csv_text('Plaza Oculta;Nobody can find it;2025-03-01T20:00:00Z;Lugar Inexistente;8;org-1;;')
        report = import_csv(text, store, geocoder)

        assert report.created == 1
        competition = store.get_by_slug('plaza-oculta')
        assert competition.latitude is None
        assert competition.longitude is None

    def test_fallback_coordinates(self, organizer, store, geocoder):
        text = csv_text('Plaza Oculta;Nobody can find it;2025-03-01T20:00:00Z;Lugar Inexistente;8;org-1;;')
        import_csv(text, store, geocoder, fallback=Coordinates(-34.6, -58.38))
        assert store.get_by_slug('plaza-oculta').has_coordinates()

    def test_row_coordinates_skip_geocoding(self, organizer, store, geocoder):
        text = csv_text('Open Mic Night;Weekly freestyle jam;2025-03-01T20:00:00Z;Palermo, CABA;16;org-1;-34.1;-58.1')
        import_csv(text, store, geocoder)

        assert geocoder.calls == []
        assert store.get_by_slug('open-mic-night').latitude == -34.1

    def test_clearing_coordinates_is_reported(self, organizer, store, geocoder):
        located = 'Open Mic Night;Weekly freestyle jam;2025-03-01T20:00:00Z;Palermo, CABA;16;org-1;-34.1;-58.1'
        moved = 'Open Mic Night;Weekly freestyle jam;2025-03-01T20:00:00Z;Somewhere else;16;org-1;;'
        import_csv(csv_text(located), store, geocoder)
        report = import_csv(csv_text(moved), store, geocoder)

        assert report.updated == 1
        assert report.rows[0].warnings
        assert not store.get_by_slug('open-mic-night').has_coordinates()

    def test_unknown_organizer_fails_the_row(self, organizer, store, geocoder):
        text = csv_text(
            'Batalla Huerfana;Organizer does not exist;2025-03-01T20:00:00Z;Palermo, CABA;8;ghost;;',
            OPEN_MIC,
        )
        report = import_csv(text, store, geocoder)

        assert report.failed == 1
        assert report.rows[0].outcome == 'failed'
        assert report.created == 1

    def test_legacy_file_with_default_organizer(self, organizer, store, geocoder):
        text = csv_text(
            'Dinastía Freestyle;dinastia;2025-04-05T21:00:00Z;2024-01-01;ONE_VS_ONE;Dtoke, Wos;Palermo, CABA;2.500;'
            'Batalla mensual;/flyers/dinastia.png',
            header='displayName;keyName;eventDate;createdAt;modality;judges;location;price;description;flyerPath',
        )
        report = import_csv(text, store, geocoder, default_organizer_id='org-1')

        assert report.schema == SCHEMA_V1
        competition = store.get_by_slug('dinastia')
        assert competition.max_participants == 32
        assert competition.get_judges_list() == ['Dtoke', 'Wos']
        assert competition.price == '2.500'

    def test_legacy_blank_flyer_points_at_stored_flyer(self, organizer, store, geocoder):
        text = csv_text(
            'Dinastía Freestyle;dinastia;2025-04-05T21:00:00Z;2024-01-01T10:00:00Z;ONE_VS_ONE;Dtoke;Palermo, CABA;;;',
            header=LEGACY_HEADER,
        )
        import_csv(text, store, geocoder, default_organizer_id='org-1')

        assert store.get_by_slug('dinastia').image == '/images/competitions/flyers/dinastia.jpg'

    def test_legacy_created_at_is_kept(self, organizer, store, geocoder, session):
        row = 'Dinastía Freestyle;dinastia;2025-04-05T21:00:00Z;2024-01-01T10:00:00Z;ONE_VS_ONE;Dtoke;Palermo, CABA;;;'
        import_csv(csv_text(row, header=LEGACY_HEADER), store, geocoder, default_organizer_id='org-1')
        competition = store.get_by_slug('dinastia')
        assert competition.created_at == datetime(2024, 1, 1, 10, 0)

        moved = row.replace('2024-01-01T10:00:00Z', '2024-06-01T10:00:00Z')
        report = import_csv(csv_text(moved, header=LEGACY_HEADER), store, geocoder, default_organizer_id='org-1')
        assert report.updated == 1
        session.refresh(competition)
        assert competition.created_at == datetime(2024, 1, 1, 10, 0)

    def test_legacy_created_at_date_only(self, organizer, store, geocoder):
        row = 'Dinastía Freestyle;dinastia;2025-04-05T21:00:00Z;2024-01-01;ONE_VS_ONE;Dtoke;Palermo, CABA;;;'
        import_csv(csv_text(row, header=LEGACY_HEADER), store, geocoder, default_organizer_id='org-1')
        assert store.get_by_slug('dinastia').created_at == datetime(2024, 1, 1)

    def test_report_dict(self, organizer, store, geocoder):
        data = import_csv(csv_text(OPEN_MIC), store, geocoder).to_dict()
        assert data['created'] == 1
        assert data['rows'] == [{'line': 2, 'outcome': 'created', 'slug': 'open-mic-night'}]
        assert data['message'].startswith('1 rows processed')


class TestExport:

    def test_export_can_be_imported_back(self, organizer, store, geocoder, session):
        import_csv(csv_text(OPEN_MIC), store, geocoder)
        exported = export_csv(store.find_many())

        header, line = exported.strip().splitlines()
        assert header.split(';') == CANONICAL_COLUMNS
        assert 'open-mic-night' in line

        report = import_csv(exported, store, geocoder)
        assert report.updated == 1
        assert session.query(Competition).count() == 1
