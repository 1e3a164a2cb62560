#!/usr/bin/env python3
"""
Rewrite a legacy (v1) competitions CSV into the canonical v2 layout.

    python scripts/migration/migrate_legacy_csv.py old.csv new.csv --organizer <user id>

No database access: the output can be reviewed before running
`flask import-competitions new.csv`.
"""
import csv
import io

import click

from rimappa.importer import CANONICAL_COLUMNS, DELIMITER, SCHEMA_V1, read_rows

# v2 readers accept createdAt as an extra column
COLUMNS = CANONICAL_COLUMNS + ['createdAt']


def convert(text, organizer_id=None):
    """Return (converted CSV text, number of rows)."""
    schema, rows = read_rows(text, default_organizer_id=organizer_id)
    if schema != SCHEMA_V1:
        raise ValueError(f'Expected a legacy v1 file, got {schema}')

    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=COLUMNS, delimiter=DELIMITER,
                            restval='', extrasaction='ignore')
    writer.writeheader()
    for _, row in rows:
        writer.writerow(row)
    return output.getvalue(), len(rows)


@click.command()
@click.argument('source', type=click.Path(exists=True, dir_okay=False))
@click.argument('target', type=click.Path(dir_okay=False, writable=True))
@click.option('--organizer', 'organizer_id', default=None,
              help='organizerId written on every row (legacy files have none)')
def main(source, target, organizer_id):
    with open(source, encoding='utf-8-sig') as f:
        text = f.read()
    try:
        converted, count = convert(text, organizer_id)
    except (ValueError, csv.Error) as e:
        raise click.ClickException(str(e))

    with open(target, 'w', encoding='utf-8', newline='') as f:
        f.write(converted)
    click.echo(f"✅ {count} rows written to {target}")
    if not organizer_id:
        click.echo("⚠️  No --organizer given: pass --default-organizer when importing", err=True)


if __name__ == "__main__":
    main()
