# -*- coding: utf-8 -*-
"""
A single MyParcel shipment and its place in the label workflow.

Lifecycle statuses:
    local            -> only known to us, no MyParcel id yet
    concept_created  -> MyParcel returned an id for the shipment concept
    label_requested  -> a label (link or PDF) was retrieved for it
    synced           -> its latest data was fetched back from MyParcel
"""

STATUS_LOCAL = 'local'
STATUS_CONCEPT_CREATED = 'concept_created'
STATUS_LABEL_REQUESTED = 'label_requested'
STATUS_SYNCED = 'synced'


class Consignment:
    """
    Shipment data plus the identifiers needed to batch it.

    Args:
        api_key (str): The MyParcel API key the shipment belongs to. Required
            before the consignment can be added to a collection.
        reference_id (str or int, optional): Our own identifier, e.g. the
            shipment id. Must be unique inside a collection.
        data (dict, optional): The shipment payload (recipient, options,
            carrier, ...). Only the MyParcel client reads it.
    """

    def __init__(self, api_key=None, reference_id=None, data=None):
        self.api_key = api_key
        self.reference_id = reference_id
        self.data = dict(data or {})
        self.barcode = None
        self.provider_status = None
        self._remote_id = None
        self._status = STATUS_LOCAL

    def __repr__(self):
        return (f"Consignment(reference_id={self.reference_id!r}, remote_id={self._remote_id!r}, "
                f"status={self._status!r})")

    @property
    def remote_id(self):
        return self._remote_id

    @property
    def concept_created(self):
        return self._remote_id is not None

    @property
    def status(self):
        return self._status

    def assign_remote_id(self, remote_id):
        """
        Stores the id MyParcel assigned to the concept. The id can only be set once.
        """
        if self._remote_id is not None and self._remote_id != remote_id:
            raise ValueError(
                f"Consignment {self.reference_id!r} already has MyParcel id {self._remote_id}, "
                f"refusing to overwrite it with {remote_id}"
            )
        self._remote_id = remote_id
        if self._status == STATUS_LOCAL:
            self._status = STATUS_CONCEPT_CREATED

    def mark_label_requested(self):
        if self._remote_id is not None:
            self._status = STATUS_LABEL_REQUESTED

    def mark_synced(self):
        if self._remote_id is not None:
            self._status = STATUS_SYNCED
