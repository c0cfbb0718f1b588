# -*- coding: utf-8 -*-
"""
================================================================================
Consignment Collection
================================================================================
Purpose:
----------------
Holds all consignments that are sent to MyParcel together, plus the paper
layout and the label output (link or PDF) of the last label request.

Consignments are stored in insertion order under a tagged key:
- `ReferenceKey(reference_id)` when the consignment has a reference id,
- `IndexKey(n)` otherwise (only possible for the first consignment).

A secondary index maps the reference id to its consignment so lookups by
reference do not need to scan the collection.
----------------
"""
from collections import OrderedDict, namedtuple

from shipping.exceptions import (
    AmbiguousSelectionError,
    DuplicateReferenceError,
    MissingCredentialError,
    MissingReferenceError,
)
from shipping.positions import PAPER_SHEET, PAPER_SINGLE, select_layout

ReferenceKey = namedtuple('ReferenceKey', ['reference_id'])
IndexKey = namedtuple('IndexKey', ['index'])


def _reference(reference_id):
    # 5 and '5' refer to the same shipment
    return str(reference_id)


class ConsignmentCollection:

    def __init__(self):
        self._consignments = OrderedDict()
        self._by_reference = {}
        self._next_index = 0

        self.paper_size = PAPER_SINGLE
        self.label_position = None
        self.label_links = []
        self.label_document = None

    def __len__(self):
        return len(self._consignments)

    def __iter__(self):
        return iter(list(self._consignments.values()))

    def __contains__(self, key):
        return key in self._consignments

    def keys(self):
        return list(self._consignments.keys())

    @property
    def label_link(self):
        """The link to the labels of the first API key group, or None."""
        return self.label_links[0] if self.label_links else None

    # =====================================================================================
    # --- Adding & Reading Consignments ---
    # =====================================================================================

    def add_consignment(self, consignment):
        """
        Adds a consignment to the collection.

        Raises:
            MissingCredentialError: the consignment has no API key.
            MissingReferenceError: the collection is not empty and the
                consignment has no reference id.
            DuplicateReferenceError: the reference id is already in use.
        """
        if consignment.api_key is None:
            raise MissingCredentialError()

        if self._consignments:
            if consignment.reference_id is None:
                raise MissingReferenceError()
            if _reference(consignment.reference_id) in self._by_reference:
                raise DuplicateReferenceError(consignment.reference_id)

        if consignment.reference_id is not None:
            reference = _reference(consignment.reference_id)
            self._consignments[ReferenceKey(reference)] = consignment
            self._by_reference[reference] = consignment
        else:
            self._consignments[IndexKey(self._next_index)] = consignment
            self._next_index += 1

        return self

    def get_consignments(self):
        return list(self._consignments.values())

    def get_one_consignment(self, throw_on_multiple=True):
        """
        Returns the only consignment in the collection.

        Returns None for an empty collection. With more than one consignment
        it raises AmbiguousSelectionError, or returns None when
        `throw_on_multiple` is False.
        """
        if len(self._consignments) > 1:
            if throw_on_multiple:
                raise AmbiguousSelectionError(len(self._consignments))
            return None

        for consignment in self._consignments.values():
            return consignment
        return None

    def get_consignment_by_reference_id(self, reference_id):
        # return consignment if only one is available
        consignment = self.get_one_consignment(throw_on_multiple=False)
        if consignment is not None:
            return consignment

        consignment = self._by_reference.get(_reference(reference_id))
        if consignment is not None:
            return consignment

        # the reference id may have been set after the consignment was added
        for consignment in self._consignments.values():
            if consignment.reference_id is not None and _reference(consignment.reference_id) == _reference(reference_id):
                return consignment

        return None

    def get_consignment_by_remote_id(self, remote_id):
        consignment = self.get_one_consignment(throw_on_multiple=False)
        if consignment is not None:
            return consignment

        for consignment in self._consignments.values():
            if consignment.remote_id is not None and str(consignment.remote_id) == str(remote_id):
                return consignment

        return None

    def group_by_api_key(self):
        """
        Groups the consignments by API key, keeping insertion order.
        MyParcel only accepts one API key per request.

        Returns:
            OrderedDict: api_key -> list of consignments.
        """
        groups = OrderedDict()
        for consignment in self._consignments.values():
            groups.setdefault(consignment.api_key, []).append(consignment)
        return groups

    # =====================================================================================
    # --- Paper Layout ---
    # =====================================================================================

    def set_layout(self, positions=False):
        self.paper_size, self.label_position = select_layout(positions)
        return self

    def label_query(self):
        """
        The query string appended to a label PDF request, e.g.
        '?format=sheet&positions=2;3;4'. Empty for the single layout.
        """
        if self.paper_size == PAPER_SHEET:
            return f"?format={PAPER_SHEET}&positions={self.label_position}"
        return ''
