# -*- coding: utf-8 -*-
"""
================================================================================
MyParcel API Client
================================================================================
Purpose:
----------------
The only place that talks to the MyParcel REST API. The label workflow hands
it an API key, a payload, an operation and an HTTP method; the client builds
the request, sends it with `requests` and returns either the decoded JSON
(dict) or the raw PDF bytes.

It also converts single consignments to and from the MyParcel shipment
format (`encode` / `decode`).

Every call can be written to the `api_calls` audit table by passing a
database connection to the client.
----------------
"""
import os
import json
import base64
import logging
import threading
import requests

from database.db_utils import log_api_call
from shipping.exceptions import RequestFailedError
from shipping.positions import PAPER_SHEET, PAPER_SINGLE

logger = logging.getLogger(__name__)

# =====================================================================================
# --- Configuration ---
# =====================================================================================
MYPARCEL_API_URL = os.getenv("MYPARCEL_API_URL", "https://api.myparcel.nl")
REQUEST_TIMEOUT_SECONDS = float(os.getenv("MYPARCEL_REQUEST_TIMEOUT", "30"))
SERVICE_NAME = 'MyParcel'

OP_CREATE_SHIPMENT = 'create-shipment'
OP_RETRIEVE_SHIPMENT = 'retrieve-shipment'
OP_RETRIEVE_LABEL_LINK = 'retrieve-label-link'
OP_RETRIEVE_LABEL_DOCUMENT = 'retrieve-label-document'

JSON_MEDIA_TYPE = 'application/json;charset=utf-8'
PDF_MEDIA_TYPE = 'application/pdf'

# operation -> (endpoint, Content-Type, Accept)
OPERATIONS = {
    OP_CREATE_SHIPMENT: ('shipments', 'application/vnd.shipment+json;charset=utf-8', JSON_MEDIA_TYPE),
    OP_RETRIEVE_SHIPMENT: ('shipments', None, JSON_MEDIA_TYPE),
    OP_RETRIEVE_LABEL_LINK: ('shipment_labels', None, JSON_MEDIA_TYPE),
    OP_RETRIEVE_LABEL_DOCUMENT: ('shipment_labels', None, PDF_MEDIA_TYPE),
}

# Paper size -> value of the `format` query parameter MyParcel accepts
PAPER_FORMATS = {
    PAPER_SHEET: 'A4',
    PAPER_SINGLE: 'A6',
}

# Fields MyParcel owns. decode() copies them to the consignment attributes.
PROVIDER_FIELDS = ('id', 'barcode', 'status')


class MyParcelClient:
    """
    Args:
        base_url (str): MyParcel API root, without trailing slash.
        timeout (float): Seconds before a request is abandoned.
        conn: Optional psycopg2 connection. When given, every call is
              written to the `api_calls` table.
    """

    def __init__(self, base_url=MYPARCEL_API_URL, timeout=REQUEST_TIMEOUT_SECONDS, conn=None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.conn = conn
        self._log_lock = threading.Lock()

    # =====================================================================================
    # --- Shipment (De)serialization ---
    # =====================================================================================

    def encode(self, consignment):
        """Builds the MyParcel shipment object for one consignment."""
        shipment = dict(consignment.data)
        if consignment.reference_id is not None:
            shipment['reference_identifier'] = str(consignment.reference_id)
        return shipment

    def decode(self, consignment, record):
        """
        Merges a shipment record returned by MyParcel into the consignment.
        """
        if consignment.remote_id is None and record.get('id') is not None:
            consignment.assign_remote_id(record['id'])
        if record.get('barcode'):
            consignment.barcode = record['barcode']
        if record.get('status') is not None:
            consignment.provider_status = record['status']

        for field, value in record.items():
            if field in PROVIDER_FIELDS or field == 'reference_identifier':
                continue
            consignment.data[field] = value

    def absolute_url(self, path):
        """MyParcel returns label links relative to the API root."""
        if path.startswith('http://') or path.startswith('https://'):
            return path
        return f"{self.base_url}{path}"

    # =====================================================================================
    # --- Requests ---
    # =====================================================================================

    def build_headers(self, api_key, operation):
        _, content_type, accept = OPERATIONS[operation]
        auth_b64 = base64.b64encode(api_key.encode('utf-8')).decode('utf-8')
        headers = {
            'Authorization': f'basic {auth_b64}',
            'Accept': accept,
        }
        if content_type:
            headers['Content-Type'] = content_type
        return headers

    def provider_label_query(self, payload):
        """'101?format=sheet&positions=2;3;4' -> '101?format=A4&positions=2;3;4'"""
        path, separator, query = payload.partition('?')
        if not separator:
            return payload
        params = []
        for param in query.split('&'):
            name, _, value = param.partition('=')
            if name == 'format':
                value = PAPER_FORMATS.get(value, value)
            params.append(f"{name}={value}")
        return f"{path}?{'&'.join(params)}"

    def build_url(self, operation, payload, method):
        endpoint = OPERATIONS[operation][0]
        if method == 'GET':
            if operation == OP_RETRIEVE_LABEL_DOCUMENT:
                payload = self.provider_label_query(payload)
            return f"{self.base_url}/{endpoint}/{payload}"
        return f"{self.base_url}/{endpoint}"

    def submit(self, api_key, payload, operation, method='POST'):
        """
        Sends one request to MyParcel.

        Args:
            api_key (str): The API key the request is scoped to.
            payload: For POST, a list of encoded shipments. For GET, the path
                     part after the endpoint, e.g. '123;124' or
                     '123;124?format=sheet&positions=2;3;4'.
            operation (str): One of the OP_* constants.
            method (str): 'POST' or 'GET'.

        Returns:
            dict for JSON responses, bytes for PDF responses.

        Raises:
            RequestFailedError: on network errors, HTTP errors or when the
                                API answers with an error payload.
        """
        if operation not in OPERATIONS:
            raise ValueError(f"Unknown MyParcel operation: {operation}")

        url = self.build_url(operation, payload, method)
        headers = self.build_headers(api_key, operation)
        body = None
        if method == 'POST':
            body = json.dumps({'data': {'shipments': payload}})

        logger.info(f"Sending {method} {operation} request to {url}")
        try:
            response = requests.request(method, url, headers=headers, data=body, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            response_text = e.response.text if e.response is not None else str(e)
            status_code = e.response.status_code if e.response is not None else None
            logger.error(f"MyParcel {operation} request failed: {response_text}")
            self._log_call(operation, body or url, response_text, status_code or 500, False)
            raise RequestFailedError(
                f"MyParcel {operation} request failed: {response_text}",
                operation=operation, status_code=status_code, response_body=response_text
            ) from e

        if OPERATIONS[operation][2] == PDF_MEDIA_TYPE:
            self._log_call(operation, url, f"<{len(response.content)} bytes>", response.status_code, True)
            return response.content

        try:
            result = response.json()
        except ValueError as e:
            self._log_call(operation, body or url, response.text, response.status_code, False)
            raise RequestFailedError(
                f"MyParcel {operation} returned an unreadable response",
                operation=operation, status_code=response.status_code, response_body=response.text
            ) from e

        if isinstance(result, dict) and result.get('errors'):
            self._log_call(operation, body or url, response.text, response.status_code, False)
            raise RequestFailedError(
                f"MyParcel {operation} returned errors: {result['errors']}",
                operation=operation, status_code=response.status_code, response_body=response.text
            )

        self._log_call(operation, body or url, response.text, response.status_code, True)
        return result

    def _log_call(self, operation, request_payload, response_body, status_code, is_success):
        if self.conn is None:
            return
        # psycopg2 connections are shared by the worker threads of a workflow
        with self._log_lock:
            log_api_call(self.conn, SERVICE_NAME, operation, None, request_payload, response_body, status_code, is_success)
