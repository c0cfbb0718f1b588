# -*- coding: utf-8 -*-
"""
================================================================================
Label Workflow
================================================================================
Purpose:
----------------
Drives a collection of consignments through the MyParcel label process. The
API only accepts one API key per request, so every step groups the
consignments by API key and sends one request per group.

Key Steps:
1.  **Create Concepts**: Consignments without a MyParcel id are sent to the
    API as shipment concepts. Consignments that already have an id are never
    sent again, which makes the step safe to repeat.
2.  **Request Labels**: After making sure every concept exists, the label is
    requested for all MyParcel ids, either as a download link or as PDF data.
    For PDFs the paper layout (single label or positions on an A4 sheet) is
    passed along.
3.  **Refresh State**: The latest shipment data (barcode, status, ...) is
    fetched and merged back into the matching consignments.
4.  **Export Document**: The retrieved PDF is returned together with a
    filename and download headers. Sending it is up to the caller.

API key groups have no data dependency on each other and can be processed in
parallel with `max_workers > 1`. Results are always merged one group at a
time.
----------------
"""

# =====================================================================================
# --- Imports ---
# =====================================================================================
import logging
import threading
import warnings
from collections import OrderedDict
from concurrent.futures import ThreadPoolExecutor

from shipping.exceptions import NoDocumentAvailableError, RequestFailedError, UnmatchedRecordWarning
from shipping.label_documents import PREFIX_PDF_FILENAME, build_label_export, merge_label_documents
from shipping.myparcel.api import (
    OP_CREATE_SHIPMENT,
    OP_RETRIEVE_LABEL_DOCUMENT,
    OP_RETRIEVE_LABEL_LINK,
    OP_RETRIEVE_SHIPMENT,
)

logger = logging.getLogger(__name__)

# =====================================================================================
# --- Configuration ---
# =====================================================================================
OUTPUT_LINK = 'link'
OUTPUT_PDF = 'pdf'


def _join_ids(consignments):
    return ';'.join(str(consignment.remote_id) for consignment in consignments)


def _response_field(result, operation, *path):
    """Looks up result[path[0]][path[1]]... in a MyParcel JSON response."""
    value = result
    try:
        for key in path:
            value = value[key]
    except (KeyError, IndexError, TypeError) as e:
        raise RequestFailedError(
            f"MyParcel {operation} response has no '{'.'.join(path)}': {result!r}",
            operation=operation
        ) from e
    return value


class LabelWorkflow:
    """
    Args:
        collection (ConsignmentCollection): The consignments to process.
        client (MyParcelClient): Encodes, decodes and sends the requests.
        max_workers (int): Number of API key groups processed at the same
            time. 1 processes the groups one after the other.
    """

    def __init__(self, collection, client, max_workers=1):
        self.collection = collection
        self.client = client
        self.max_workers = max_workers
        self._lock = threading.Lock()

    # =====================================================================================
    # --- Group Handling ---
    # =====================================================================================

    def _run_per_group(self, step, groups):
        """
        Runs `step(api_key, consignments)` for every group and returns the
        results in group order. The first failure (in group order) is raised.
        """
        items = list(groups.items())
        if self.max_workers <= 1 or len(items) <= 1:
            return [step(api_key, consignments) for api_key, consignments in items]

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(items))) as executor:
            futures = [executor.submit(step, api_key, consignments) for api_key, consignments in items]
        return [future.result() for future in futures]

    def _groups_with_remote_ids(self):
        groups = OrderedDict()
        for api_key, consignments in self.collection.group_by_api_key().items():
            created = [consignment for consignment in consignments if consignment.remote_id is not None]
            if created:
                groups[api_key] = created
        return groups

    # =====================================================================================
    # --- Step 1: Concepts ---
    # =====================================================================================

    def create_concepts(self):
        """
        Creates a MyParcel concept for every consignment that has no id yet.

        Returns:
            list: The consignments that received an id during this call.

        Raises:
            RequestFailedError: A request failed. Concepts created before the
                failure keep their id.
        """
        pending = OrderedDict()
        for api_key, consignments in self.collection.group_by_api_key().items():
            local = [consignment for consignment in consignments if consignment.remote_id is None]
            if local:
                pending[api_key] = local

        if not pending:
            logger.info("All consignments already have a MyParcel concept. Nothing to create.")
            return []

        results = self._run_per_group(self._create_group_concepts, pending)
        return [consignment for created in results for consignment in created]

    def _create_group_concepts(self, api_key, consignments):
        shipments = [self.client.encode(consignment) for consignment in consignments]
        logger.info(f"Creating {len(shipments)} concept(s) in MyParcel.")
        result = self.client.submit(api_key, shipments, OP_CREATE_SHIPMENT, 'POST')

        returned_ids = _response_field(result, OP_CREATE_SHIPMENT, 'data', 'ids')
        if len(returned_ids) != len(consignments):
            logger.warning(f"MyParcel returned {len(returned_ids)} id(s) for {len(consignments)} concept(s).")

        by_reference = {
            str(consignment.reference_id): consignment
            for consignment in consignments if consignment.reference_id is not None
        }
        created = []
        with self._lock:
            for position, entry in enumerate(returned_ids):
                consignment = by_reference.get(str(entry.get('reference_identifier')))
                if consignment is None and position < len(consignments):
                    consignment = consignments[position]
                if consignment is None or consignment.remote_id is not None:
                    continue
                consignment.assign_remote_id(entry['id'])
                created.append(consignment)
                logger.info(f"Concept {entry['id']} created for consignment {consignment.reference_id!r}.")
        return created

    # =====================================================================================
    # --- Step 2: Labels ---
    # =====================================================================================

    def request_labels(self, positions=False, output=OUTPUT_LINK):
        """
        Retrieves the labels of all consignments, creating missing concepts first.

        Args:
            positions (bool, int or list): The position of the label on an A4
                sheet. An int fills the ascending positions starting at that
                number, e.g. 2 -> 2;3;4. A list is used as given, e.g. [2, 4].
                False prints one label per page. Positioning only applies to
                the first page with labels.
            output (str): OUTPUT_LINK for a download link, OUTPUT_PDF for the
                PDF data.

        Returns:
            str or bytes: The label link or the label document.
        """
        if output not in (OUTPUT_LINK, OUTPUT_PDF):
            raise ValueError(f"output must be '{OUTPUT_LINK}' or '{OUTPUT_PDF}', got {output!r}")

        self.create_concepts()
        self.collection.set_layout(positions)

        groups = self._groups_with_remote_ids()
        if groups:
            if output == OUTPUT_LINK:
                links = self._run_per_group(self._retrieve_label_link, groups)
                with self._lock:
                    self.collection.label_links = links
            else:
                documents = self._run_per_group(self._retrieve_label_document, groups)
                with self._lock:
                    self.collection.label_document = merge_label_documents(documents)

            with self._lock:
                for consignments in groups.values():
                    for consignment in consignments:
                        consignment.mark_label_requested()
        else:
            logger.warning("No MyParcel ids available. No labels requested.")

        self.refresh_state()

        if output == OUTPUT_LINK:
            return self.collection.label_link
        return self.collection.label_document

    def _retrieve_label_link(self, api_key, consignments):
        result = self.client.submit(api_key, _join_ids(consignments), OP_RETRIEVE_LABEL_LINK, 'GET')
        link = self.client.absolute_url(_response_field(result, OP_RETRIEVE_LABEL_LINK, 'data', 'pdfs', 'url'))
        logger.info(f"Label link retrieved for {len(consignments)} consignment(s): {link}")
        return link

    def _retrieve_label_document(self, api_key, consignments):
        payload = _join_ids(consignments) + self.collection.label_query()
        document = self.client.submit(api_key, payload, OP_RETRIEVE_LABEL_DOCUMENT, 'GET')
        logger.info(f"Label PDF retrieved for {len(consignments)} consignment(s) ({len(document)} bytes).")
        return document

    # =====================================================================================
    # --- Step 3: Latest Data ---
    # =====================================================================================

    def refresh_state(self):
        """
        Fetches the latest data of every consignment with a MyParcel id.

        Returns:
            int: The number of shipment records merged into consignments.
        """
        groups = self._groups_with_remote_ids()
        if not groups:
            return 0
        return sum(self._run_per_group(self._refresh_group, groups))

    def _refresh_group(self, api_key, consignments):
        result = self.client.submit(api_key, _join_ids(consignments), OP_RETRIEVE_SHIPMENT, 'GET')

        shipments = _response_field(result, OP_RETRIEVE_SHIPMENT, 'data', 'shipments')

        merged = 0
        with self._lock:
            for shipment in shipments:
                consignment = self.collection.get_consignment_by_remote_id(shipment['id'])
                if consignment is None:
                    message = f"MyParcel shipment {shipment['id']} does not match any consignment. Skipping."
                    logger.warning(message)
                    warnings.warn(message, UnmatchedRecordWarning)
                    continue
                self.client.decode(consignment, shipment)
                consignment.mark_synced()
                merged += 1
        return merged

    # =====================================================================================
    # --- Step 4: Export ---
    # =====================================================================================

    def export_document(self, prefix=PREFIX_PDF_FILENAME):
        """
        Returns the label PDF with a suggested filename and download headers.

        Raises:
            NoDocumentAvailableError: request_labels(output='pdf') was not run.
        """
        if self.collection.label_document is None:
            raise NoDocumentAvailableError()
        return build_label_export(self.collection.label_document, prefix=prefix)
