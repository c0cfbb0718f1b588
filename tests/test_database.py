import os
import sys
import unittest
import psycopg2
from unittest.mock import patch, MagicMock, mock_open

# Add project root to Python path
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

from database.db_utils import get_db_connection, initialize_database, log_api_call


class TestDatabaseUtils(unittest.TestCase):

    @patch('database.db_utils.psycopg2.connect')
    def test_get_db_connection_success(self, mock_connect):
        mock_conn = MagicMock()
        mock_connect.return_value = mock_conn

        conn = get_db_connection()

        self.assertEqual(conn, mock_conn)
        mock_connect.assert_called_once()

    @patch('database.db_utils.psycopg2.connect')
    def test_get_db_connection_failure(self, mock_connect):
        mock_connect.side_effect = psycopg2.OperationalError("Connection failed")
        self.assertIsNone(get_db_connection())

    @patch('database.db_utils.get_db_connection')
    @patch('builtins.open', new_callable=mock_open, read_data="CREATE TABLE api_calls (id SERIAL);")
    def test_initialize_database_success(self, mock_file, mock_get_conn):
        mock_conn = MagicMock()
        mock_cursor = MagicMock()
        mock_get_conn.return_value = mock_conn
        mock_conn.cursor.return_value.__enter__.return_value = mock_cursor

        initialize_database()

        mock_cursor.execute.assert_called_once_with("CREATE TABLE api_calls (id SERIAL);")
        mock_conn.commit.assert_called_once()
        mock_conn.close.assert_called_once()

    @patch('database.db_utils.get_db_connection')
    @patch('builtins.open', side_effect=FileNotFoundError)
    def test_initialize_database_missing_schema(self, mock_file, mock_get_conn):
        initialize_database()
        mock_get_conn.assert_not_called()

    def test_log_api_call_inserts_row(self):
        mock_conn = MagicMock()
        mock_cursor = MagicMock()
        mock_conn.cursor.return_value.__enter__.return_value = mock_cursor

        log_api_call(mock_conn, 'MyParcel', 'create-shipment', None, [{'carrier': 1}], '{"data": {}}', 200, True)

        sql, params = mock_cursor.execute.call_args[0]
        self.assertIn('INSERT INTO api_calls', sql)
        self.assertEqual(params, ('MyParcel', 'create-shipment', None, '[{"carrier": 1}]', '{"data": {}}', 200, True))
        mock_conn.commit.assert_called_once()

    def test_log_api_call_failure_rolls_back(self):
        mock_conn = MagicMock()
        mock_cursor = MagicMock()
        mock_cursor.execute.side_effect = psycopg2.Error("insert failed")
        mock_conn.cursor.return_value.__enter__.return_value = mock_cursor

        log_api_call(mock_conn, 'MyParcel', 'retrieve-shipment', None, 'url', 'body', 500, False)

        mock_conn.rollback.assert_called_once()
        mock_conn.commit.assert_not_called()


if __name__ == '__main__':
    unittest.main()
