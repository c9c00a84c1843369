# init_db.py (in backend folder)

import argparse
import logging

from sqlalchemy import inspect

from nfc_wallet.core.config import get_settings
from nfc_wallet.infra.database import check_connection, create_db_engine, drop_db, init_db
from nfc_wallet.utils.logger import setup_logger

logger = logging.getLogger("init_db")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Create the NFC wallet tables")
    parser.add_argument("--drop", action="store_true", help="drop all tables first")
    args = parser.parse_args(argv)

    settings = get_settings()
    setup_logger(settings.log_level)

    engine = create_db_engine(settings.database_url)
    if not check_connection(engine):
        return 1

    if args.drop:
        drop_db(engine)
    init_db(engine)

    # Print created tables
    inspector = inspect(engine)
    for table in inspector.get_table_names():
        columns = ", ".join(f"{c['name']}:{c['type']}" for c in inspector.get_columns(table))
        logger.info(f"{table}: {columns}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
