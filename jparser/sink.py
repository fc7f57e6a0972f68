"""Destinations for parsed season records: CSV files, an SQLite file or a MongoDB database."""
import csv
import logging
import os
import sqlite3

import pymongo
import pymongo.errors

from . import config
from .exceptions import SinkConnectionError


class Sink:

    @classmethod
    def factory(cls, connection_param):
        sink_cls = cls.determine_engine(connection_param)
        return sink_cls(connection_param)

    @classmethod
    def determine_engine(cls, connection_param):
        if not connection_param:
            raise ValueError("Invalid sink factory arg!: {!r}".format(connection_param))
        if connection_param.startswith("mongodb://"):
            return MongoSink
        elif connection_param.startswith("sqlite:///") or connection_param.endswith(".db"):
            return SqliteSink
        else:
            return CsvSink


class CsvSink:
    """Writes one CSV file per season, j-archive-season-<N>.csv, with the canonical header."""

    def __init__(self, folder=config.CSV_FOLDER):
        self.folder = folder

    def init_connection(self):
        try:
            os.makedirs(self.folder, exist_ok=True)
        except OSError as e:
            raise SinkConnectionError("Unable to create CSV folder {}".format(self.folder)) from e

    def path_for(self, season):
        return os.path.join(self.folder, config.CSV_FILE_TEMPLATE.format(season))

    def save(self, season, records):
        with open(self.path_for(season), "w", newline="", encoding="utf-8") as csv_file:
            writer = csv.writer(csv_file)
            writer.writerow(config.CSV_HEADER)
            writer.writerows(records)

    def cleanup(self):
        pass


class SqliteSink:

    def __init__(self, db_path):
        if db_path.startswith("sqlite:///"):
            db_path = db_path[len("sqlite:///"):]
        self.db_path = db_path
        self.conn = None

    def init_connection(self):
        print("Attempting to connect to {}".format(self.db_path))
        try:
            self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self._build_tables()
        except sqlite3.Error as e:
            raise SinkConnectionError("Unable to open SQLite file {}".format(self.db_path)) from e

    def save(self, season, records):
        cursor = self.conn.cursor()
        cursor.executemany("""INSERT INTO clues(season, ep_num, air_date, round_name, category, value, daily_double,
                    question, answer) VALUES (?,?,?,?,?,?,?,?,?)""", [(season,) + tuple(r) for r in records])
        self.conn.commit()
        cursor.close()

    def _build_tables(self):
        cursor = self.conn.cursor()
        cursor.execute("""CREATE TABLE IF NOT EXISTS clues(id INTEGER PRIMARY KEY,
                    season INT NOT NULL,
                    ep_num TEXT NOT NULL,
                    air_date TEXT NOT NULL,
                    round_name TEXT NOT NULL,
                    category TEXT NOT NULL,
                    value TEXT NOT NULL,
                    daily_double TEXT NOT NULL,
                    question TEXT NOT NULL,
                    answer TEXT NOT NULL
                )""")
        self.conn.commit()
        cursor.close()

    def cleanup(self):
        if self.conn is not None:
            self.conn.close()
            self.conn = None


class MongoSink:
    """Saves every record as its own document in the "clues" collection of the database named in the URI."""

    def __init__(self, host_uri):
        self.host_uri = host_uri
        self.collection_name = "clues"
        self.client = None
        self.db = None

    def init_connection(self):
        print("Attempting to connect to {}".format(self.host_uri))
        self.client = pymongo.MongoClient(self.host_uri)

        try:
            self.client.server_info()  # Check conn was successful. Polls for serverSelectionTimeoutMS, default=30s
        except pymongo.errors.ServerSelectionTimeoutError as e:
            raise SinkConnectionError("Timed out trying to connect to Mongo server at {}. Please ensure an instance "
                                      "of mongod is running".format(self.host_uri)) from e

        self.db = self.client.get_default_database()  # Database specified in host_uri.
        logging.info("Connection successful. Clues will be saved to {}".format(self.db.name))

    def save(self, season, records):
        if not records:
            return
        documents = [dict(record._asdict(), season=season) for record in records]
        self.db[self.collection_name].insert_many(documents)

    def cleanup(self):
        if self.client is not None:
            self.client.close()
            self.client = None
