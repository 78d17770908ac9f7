# create_tables.py
import logging

from app.init_db import create_db_and_tables


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    create_db_and_tables()
