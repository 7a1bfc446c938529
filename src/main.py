import sys
import logging

from config import get_settings
from engine import PaymentsEngine
from reporter import AccountReporter

logger = logging.getLogger(__name__)


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    settings = get_settings()

    logging.basicConfig(
        level=settings.log_level,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    if len(argv) != 1:
        print("Usage: python main.py <input.csv>", file=sys.stderr)
        return 1

    filepath = argv[0]
    engine = PaymentsEngine(decimal_places=settings.amount_decimal_places)
    try:
        engine.process_file(filepath)
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Cannot read {filepath}: {e}")
        return 1

    AccountReporter(settings.amount_decimal_places).write(engine.accounts(), sys.stdout)
    return 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
