# -*- coding: utf-8 -*-
"""
================================================================================
Common Utility Functions
================================================================================
Purpose:
----------------
Shared helpers for the entry point scripts: reading sensitive information
(MyParcel API keys) from a `secrets.txt` file and setting up logging.

Key Functions:
- `get_secret(key_name)`: Reads the `secrets.txt` file line by line and
  extracts the value for a given key.
- `get_myparcel_api_key()`: The default MyParcel API key, from `secrets.txt`
  or the `MYPARCEL_API_KEY` environment variable.
- `setup_logging(log_dir)`: Logs to a dated file and to the console.
----------------
"""

# =====================================================================================
# --- Imports and Configuration ---
# =====================================================================================
import os
import sys
import logging
from datetime import datetime

# The secrets file is expected in the project root, one `KEY=VALUE` per line.
SECRETS_FILE = os.path.join(os.path.dirname(__file__), '..', 'secrets.txt')
LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


# =====================================================================================
# --- Core Functions ---
# =====================================================================================

def get_secret(key_name, secrets_file=SECRETS_FILE):
    """
    Reads a specific key from the `secrets.txt` file.

    Args:
        key_name (str): The name of the key to retrieve (e.g., "MYPARCEL_API_KEY").
        secrets_file (str): Path of the secrets file.

    Returns:
        str or None: The secret value if the key is found, otherwise None.
    """
    logger = logging.getLogger(__name__)
    try:
        with open(secrets_file, 'r') as f:
            for line in f:
                if line.startswith(key_name + '='):
                    return line.strip().split('=', 1)[1]
        logger.error(f"Key '{key_name}' not found in {secrets_file}")
        return None
    except FileNotFoundError:
        logger.error(f"{secrets_file} not found.")
        return None


def get_myparcel_api_key():
    """
    Returns:
        str or None: The default MyParcel API key, or None if it is not configured.
    """
    api_key = get_secret('MYPARCEL_API_KEY')
    if api_key:
        return api_key
    return os.getenv('MYPARCEL_API_KEY')


def setup_logging(log_dir, name='label_workflow'):
    """Sets up logging to a dated log file and to the console."""
    os.makedirs(log_dir, exist_ok=True)
    log_filename = datetime.now().strftime(f"{name}_%Y-%m-%d.log")
    log_path = os.path.join(log_dir, log_filename)

    logging.basicConfig(
        level=logging.INFO,
        format=LOG_FORMAT,
        handlers=[
            logging.FileHandler(log_path),
            logging.StreamHandler(sys.stdout)
        ]
    )
    return logging.getLogger()
