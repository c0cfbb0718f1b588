import os
import json
import logging
import psycopg2
import argparse

logger = logging.getLogger(__name__)

SCHEMA_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'schema.sql')


def get_db_connection():
    """
    Establishes and returns a connection to the PostgreSQL audit database.
    """
    try:
        conn = psycopg2.connect(
            dbname=os.getenv("POSTGRES_DB", "label_workflow"),
            user=os.getenv("POSTGRES_USER", "user"),
            password=os.getenv("POSTGRES_PASSWORD", "password"),
            host=os.getenv("POSTGRES_HOST", "localhost"),
            port=os.getenv("POSTGRES_PORT", "5432")
        )
        return conn
    except psycopg2.OperationalError as e:
        logger.error(f"Could not connect to the database. Please ensure it is running. Details: {e}")
        return None


def initialize_database(schema_path=SCHEMA_PATH):
    """
    Initializes the database by executing the DDL statements in 'schema.sql'.
    """
    conn = None
    try:
        logger.info(f"Reading database schema from {schema_path}...")
        with open(schema_path, 'r') as f:
            schema_sql = f.read()
        conn = get_db_connection()
        if conn is None:
            return
        with conn.cursor() as cur:
            cur.execute(schema_sql)
            conn.commit()
            logger.info("Database initialized successfully.")
    except FileNotFoundError:
        logger.error(f"schema.sql not found at {schema_path}")
    except psycopg2.Error as e:
        logger.error(f"An error occurred during database initialization: {e}")
        if conn:
            conn.rollback()
    finally:
        if conn:
            conn.close()


def log_api_call(conn, service, endpoint, related_id, request_payload, response_body, status_code, is_success):
    """
    Logs the details of a third-party API call to the 'api_calls' table.
    A failure to log never interrupts the calling workflow.
    """
    try:
        with conn.cursor() as cur:
            if isinstance(request_payload, (dict, list)):
                request_payload = json.dumps(request_payload)
            cur.execute(
                "INSERT INTO api_calls (service, endpoint, related_id, request_payload, response_body, status_code, is_success) VALUES (%s, %s, %s, %s, %s, %s, %s);",
                (service, endpoint, related_id, request_payload, response_body, status_code, is_success)
            )
        conn.commit()
    except psycopg2.Error as e:
        logger.error(f"Could not log API call. Reason: {e}")
        conn.rollback()


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
    parser = argparse.ArgumentParser(description="Database utility script.")
    parser.add_argument('--init', action='store_true', help='Initialize the database schema without prompting for confirmation.')
    args = parser.parse_args()

    if args.init:
        initialize_database()
    else:
        print("WARNING: This script is destructive and will drop the existing api_calls table.")
        confirm = input("Are you sure you want to re-initialize the database? (yes/no): ")
        if confirm.lower() == 'yes':
            initialize_database()
        else:
            print("INFO: Database initialization cancelled.")
