import logging
import argparse
import sys
from datetime import date

from tutorcenter.database import Base, engine, SessionLocal
from tutorcenter.models import student, tutor_class, enrollment, payment, generation_status
from tutorcenter.services import payment_recovery
from tutorcenter.services.payment_generator import generate_monthly_payments

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')


def build_parser():
    parser = argparse.ArgumentParser(description='Monthly payment generator')
    parser.add_argument('--month', type=int, help='Billing month (1-12)')
    parser.add_argument('--year', type=int, help='Billing year (e.g. 2025)')
    parser.add_argument('--force', action='store_true', help='Run even if the period is already complete')
    parser.add_argument('--prorate', action='store_true', help='Prorate enrollments that start inside the month')
    parser.add_argument('--check-missed', action='store_true', help='Only report the status of recent months')
    parser.add_argument('--recover', action='store_true', help='Generate every incomplete month of the window')
    parser.add_argument('--window', type=int, default=None, help='Months to scan with --check-missed/--recover')
    return parser


def main(argv=None):
    """
    Generates payments for every active enrollment.
    Defaults to the CURRENT month; --month and --year force a specific period.
    """
    args = build_parser().parse_args(argv)

    if (args.month is None) != (args.year is None):
        logging.error("--month and --year must be given together.")
        return 2

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        if args.check_missed:
            for period in payment_recovery.scan_recent_periods(db, window_size=args.window):
                state = "complete" if period.complete else ("incomplete" if period.generated else "missing")
                logging.info(f"{period.month:02d}/{period.year}: {state} ({period.count} payments)")
            return 0

        if args.recover:
            results = payment_recovery.recover_missing_periods(db, window_size=args.window)
            if not results:
                logging.info("Nothing to recover, every recent month is complete.")
            failed = [period for period, result in results if not result.success]
            return 1 if failed else 0

        if args.month:
            month, year = args.month, args.year
            logging.info(f"MANUAL MODE: generating payments for {month:02d}/{year}")
        else:
            today = date.today()
            month, year = today.month, today.year
            logging.info(f"AUTOMATIC MODE: generating payments for the current month ({month:02d}/{year})")

        result = generate_monthly_payments(
            db, month, year,
            force=args.force,
            prorate=True if args.prorate else None,
            generated_by="cli"
        )
        if result.success:
            logging.info(result.message)
            return 0
        logging.error(f"Generation failed: {result.error}")
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
