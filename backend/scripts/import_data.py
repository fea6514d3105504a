"""
Import the Paris districts and rent-control CSV files into the database.

Re-running the import is safe: districts are keyed by district number and rent
rows by a content hash, so nothing already stored is duplicated.

Usage:
    python scripts/import_data.py                 # districts then rent data
    python scripts/import_data.py --districts     # districts only
    python scripts/import_data.py --rent          # rent data only
    python scripts/import_data.py --force         # truncate before importing

Datasets: https://opendata.paris.fr (quartier_paris, logement-encadrement-des-loyers)
"""

import sys
import os
import argparse
import logging

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from rent_insights.core.cache import invalidate
from rent_insights.core.config import settings
from rent_insights.core.database import SessionLocal
from rent_insights.services.importer import ImportConfig, RentDataImporter

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Import rent control data from CSV files')
    parser.add_argument('--districts', action='store_true', help='Import only districts data')
    parser.add_argument('--rent', action='store_true', help='Import only rent data')
    parser.add_argument('--force', action='store_true', help='Truncate tables before importing')
    parser.add_argument('--yes', action='store_true', help='Do not ask for confirmation with --force')
    parser.add_argument('--districts-csv', help='Path to the districts CSV file')
    parser.add_argument('--rent-csv', help='Path to the rent data CSV file')
    parser.add_argument('--batch-size', type=int, help='Rows per INSERT batch')
    return parser


def selected_datasets(args) -> tuple:
    """Both datasets unless exactly one flag narrows the selection."""
    both = not args.districts and not args.rent
    return args.districts or both, args.rent or both


def confirm_force() -> bool:
    response = input("\nForce mode will DELETE all existing data. Continue? (yes/no): ")
    return response.lower() == 'yes'


def main(argv=None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    import_districts, import_rent = selected_datasets(args)

    config = ImportConfig.from_settings(
        settings,
        districts_csv=args.districts_csv,
        rent_csv=args.rent_csv,
        batch_size=args.batch_size,
    )

    for wanted, path in ((import_districts, config.districts_csv), (import_rent, config.rent_csv)):
        if wanted and not path.exists():
            logger.error(f"File not found: {path}")
            return 1

    if args.force and not args.yes and not confirm_force():
        logger.info("Import cancelled")
        return 0

    db = SessionLocal()
    try:
        importer = RentDataImporter(db, config)

        if args.force:
            importer.truncate(districts=import_districts, units=import_rent)

        runs = []
        if import_districts:
            runs.append(importer.import_districts())
        if import_rent:
            runs.append(importer.import_units())

        logger.info("Import Summary:")
        logger.info(f"  Batch ID: {importer.batch_id}")
        for run in runs:
            logger.info(
                f"  {run.dataset}: {run.inserted_records:,} imported, "
                f"{run.skipped_records:,} skipped, {run.rejected_records:,} rejected"
            )

        if args.force or any(run.inserted_records for run in runs):
            invalidate()
        return 0

    except Exception as e:
        logger.error(f"Import failed: {e}", exc_info=True)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
