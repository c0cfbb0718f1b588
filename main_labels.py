#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
================================================================================
Batch Label Creation from CSV
================================================================================
Purpose:
----------------
Reads consignments from a CSV file, creates their concepts in MyParcel and
retrieves the labels in one go, either as a PDF saved to disk or as a
download link written to the log.

CSV columns (one row per consignment):
    reference_id (required when the file has more than one row)
    api_key (optional, defaults to MYPARCEL_API_KEY from secrets.txt)
    country, city, street, number, postal_code, person, email, phone
    carrier, package_type, label_description (optional)

Example:
    python main_labels.py shipments.csv --positions 2 --output pdf --out-dir labels
----------------
"""

import os
import sys
import argparse
import logging
import pandas as pd

# Ensure the project root is in the Python path
PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, PROJECT_ROOT)

from common.utils import get_myparcel_api_key, setup_logging
from database.db_utils import get_db_connection
from shipping.collection import ConsignmentCollection
from shipping.consignment import Consignment
from shipping.exceptions import RequestFailedError, ValidationError
from shipping.label_documents import count_label_pages
from shipping.myparcel.api import MyParcelClient
from shipping.workflow import OUTPUT_LINK, OUTPUT_PDF, LabelWorkflow

# --- Configuration ---
LOG_DIR = os.path.join(PROJECT_ROOT, 'shipping', 'label_logs')
DEFAULT_OUTPUT_DIR = os.path.join(PROJECT_ROOT, 'shipping', 'shipping_labels')
DEFAULT_CARRIER = 1  # PostNL
DEFAULT_PACKAGE_TYPE = 1  # package

RECIPIENT_COLUMNS = {
    'country': 'cc',
    'city': 'city',
    'street': 'street',
    'number': 'number',
    'postal_code': 'postal_code',
    'person': 'person',
    'email': 'email',
    'phone': 'phone',
}

logger = logging.getLogger(__name__)


def _value(row, column):
    value = row.get(column, '')
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def row_to_shipment(row):
    """Maps one CSV row onto the MyParcel shipment structure."""
    recipient = {}
    for column, field in RECIPIENT_COLUMNS.items():
        value = _value(row, column)
        if value is not None:
            recipient[field] = value

    options = {'package_type': int(_value(row, 'package_type') or DEFAULT_PACKAGE_TYPE)}
    label_description = _value(row, 'label_description')
    if label_description:
        options['label_description'] = label_description

    return {
        'carrier': int(_value(row, 'carrier') or DEFAULT_CARRIER),
        'recipient': recipient,
        'options': options,
    }


def load_consignments_from_csv(csv_path, default_api_key=None):
    """
    Builds a collection from a CSV file.

    Raises:
        FileNotFoundError: the CSV file does not exist.
        ValidationError: a row breaks the collection rules (missing API key,
            missing or duplicate reference id).
    """
    df = pd.read_csv(csv_path, dtype=str, keep_default_na=False)
    logger.info(f"Found {len(df)} consignment(s) in {csv_path}.")

    collection = ConsignmentCollection()
    for _, row in df.iterrows():
        row = row.to_dict()
        consignment = Consignment(
            api_key=_value(row, 'api_key') or default_api_key,
            reference_id=_value(row, 'reference_id'),
            data=row_to_shipment(row),
        )
        collection.add_consignment(consignment)
    return collection


def parse_positions(value):
    """'2' -> 2, '2;4' or '2,4' -> [2, 4], None -> False"""
    if not value:
        return False
    normalized = value.replace(',', ';')
    if ';' in normalized:
        return [int(part) for part in normalized.split(';') if part.strip()]
    return int(value)


def run(csv_path, positions=False, output=OUTPUT_PDF, out_dir=DEFAULT_OUTPUT_DIR, max_workers=1, conn=None):
    """
    Runs the whole label workflow for a CSV file.

    Returns:
        int: exit code, 0 on success.
    """
    try:
        collection = load_consignments_from_csv(csv_path, default_api_key=get_myparcel_api_key())
    except FileNotFoundError:
        logger.error(f"The file {csv_path} was not found.")
        return 1
    except ValidationError as e:
        logger.error(f"Invalid consignment in {csv_path}: {e}")
        return 1

    workflow = LabelWorkflow(collection, MyParcelClient(conn=conn), max_workers=max_workers)
    try:
        result = workflow.request_labels(positions=positions, output=output)
    except RequestFailedError as e:
        logger.error(f"Label workflow stopped: {e}")
        return 2

    for consignment in collection:
        logger.info(f"Consignment {consignment.reference_id!r}: MyParcel id {consignment.remote_id}, "
                    f"barcode {consignment.barcode}, status {consignment.status}")

    if result is None:
        logger.error(f"No labels were retrieved for {csv_path}. No MyParcel ids available.")
        return 1

    if output == OUTPUT_LINK:
        logger.info(f"Labels available at: {result}")
        return 0

    export = workflow.export_document()
    os.makedirs(out_dir, exist_ok=True)
    pdf_path = os.path.join(out_dir, export.filename)
    with open(pdf_path, 'wb') as f:
        f.write(export.content)
    logger.info(f"Saved {count_label_pages(export.content)} label page(s) to {pdf_path}")
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(description="Create MyParcel labels for the consignments in a CSV file.")
    parser.add_argument('csv_path', help='CSV file with one consignment per row.')
    parser.add_argument('--positions', type=parse_positions, default=False,
                        help="A4 sheet positions: a start position (e.g. 2) or a list (e.g. '2;4'). Omit for one label per page.")
    parser.add_argument('--output', choices=[OUTPUT_PDF, OUTPUT_LINK], default=OUTPUT_PDF)
    parser.add_argument('--out-dir', default=DEFAULT_OUTPUT_DIR, help='Directory for the label PDF.')
    parser.add_argument('--workers', type=int, default=1, help='API keys processed in parallel.')
    parser.add_argument('--audit', action='store_true', help='Log every API call to the database.')
    args = parser.parse_args(argv)

    setup_logging(LOG_DIR)
    conn = get_db_connection() if args.audit else None
    try:
        return run(args.csv_path, args.positions, args.output, args.out_dir, args.workers, conn)
    finally:
        if conn:
            conn.close()


if __name__ == '__main__':
    sys.exit(main())
