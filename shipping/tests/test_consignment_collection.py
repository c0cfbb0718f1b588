import unittest
import os
import sys

# Add project root to Python path
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.insert(0, PROJECT_ROOT)

from shipping.collection import ConsignmentCollection, IndexKey, ReferenceKey
from shipping.consignment import Consignment, STATUS_CONCEPT_CREATED, STATUS_LOCAL
from shipping.exceptions import (
    AmbiguousSelectionError,
    DuplicateReferenceError,
    MissingCredentialError,
    MissingReferenceError,
    ValidationError,
)


class TestConsignment(unittest.TestCase):

    def test_new_consignment_is_local(self):
        consignment = Consignment(api_key='key', reference_id='A')
        self.assertEqual(consignment.status, STATUS_LOCAL)
        self.assertFalse(consignment.concept_created)
        self.assertIsNone(consignment.remote_id)

    def test_assign_remote_id_creates_concept(self):
        consignment = Consignment(api_key='key')
        consignment.assign_remote_id(101)
        self.assertTrue(consignment.concept_created)
        self.assertEqual(consignment.status, STATUS_CONCEPT_CREATED)

    def test_remote_id_cannot_be_replaced(self):
        consignment = Consignment(api_key='key')
        consignment.assign_remote_id(101)
        consignment.assign_remote_id(101)
        with self.assertRaises(ValueError):
            consignment.assign_remote_id(202)
        self.assertEqual(consignment.remote_id, 101)


class TestConsignmentCollection(unittest.TestCase):

    def setUp(self):
        self.collection = ConsignmentCollection()

    def test_add_without_api_key_fails(self):
        with self.assertRaises(MissingCredentialError):
            self.collection.add_consignment(Consignment(reference_id='A'))
        self.assertEqual(len(self.collection), 0)

    def test_single_consignment_without_reference_is_keyed_by_index(self):
        consignment = Consignment(api_key='key')
        self.collection.add_consignment(consignment)
        self.assertEqual(self.collection.keys(), [IndexKey(0)])
        self.assertIs(self.collection.get_one_consignment(), consignment)

    def test_second_consignment_requires_reference(self):
        self.collection.add_consignment(Consignment(api_key='key'))
        with self.assertRaises(MissingReferenceError):
            self.collection.add_consignment(Consignment(api_key='key'))
        self.assertEqual(len(self.collection), 1)

    def test_missing_reference_is_a_validation_error(self):
        self.collection.add_consignment(Consignment(api_key='key', reference_id='A'))
        with self.assertRaises(ValidationError):
            self.collection.add_consignment(Consignment(api_key='key'))

    def test_duplicate_reference_is_rejected(self):
        first = Consignment(api_key='key', reference_id='A')
        self.collection.add_consignment(first)
        with self.assertRaises(DuplicateReferenceError):
            self.collection.add_consignment(Consignment(api_key='other', reference_id='A'))

        self.assertEqual(self.collection.get_consignments(), [first])
        self.assertIs(self.collection.get_consignment_by_reference_id('A'), first)

    def test_reference_ids_compare_as_strings(self):
        self.collection.add_consignment(Consignment(api_key='key', reference_id=5))
        with self.assertRaises(DuplicateReferenceError):
            self.collection.add_consignment(Consignment(api_key='key', reference_id='5'))

    def test_insertion_order_is_kept(self):
        first = Consignment(api_key='key')
        second = Consignment(api_key='key', reference_id='B')
        third = Consignment(api_key='key', reference_id='C')
        for consignment in (first, second, third):
            self.collection.add_consignment(consignment)

        self.assertEqual(self.collection.get_consignments(), [first, second, third])
        self.assertEqual(self.collection.keys(), [IndexKey(0), ReferenceKey('B'), ReferenceKey('C')])
        self.assertIn(ReferenceKey('B'), self.collection)

    def test_get_one_consignment(self):
        self.assertIsNone(self.collection.get_one_consignment())
        self.collection.add_consignment(Consignment(api_key='key', reference_id='A'))
        self.collection.add_consignment(Consignment(api_key='key', reference_id='B'))
        with self.assertRaises(AmbiguousSelectionError):
            self.collection.get_one_consignment()
        self.assertIsNone(self.collection.get_one_consignment(throw_on_multiple=False))

    def test_lookups_return_the_only_consignment(self):
        consignment = Consignment(api_key='key', reference_id='A')
        self.collection.add_consignment(consignment)
        self.assertIs(self.collection.get_consignment_by_reference_id('anything'), consignment)
        self.assertIs(self.collection.get_consignment_by_remote_id(999), consignment)

    def test_lookup_by_reference(self):
        first = Consignment(api_key='key', reference_id='A')
        second = Consignment(api_key='key', reference_id='B')
        self.collection.add_consignment(first)
        self.collection.add_consignment(second)
        self.assertIs(self.collection.get_consignment_by_reference_id('B'), second)
        self.assertIsNone(self.collection.get_consignment_by_reference_id('Z'))

    def test_lookup_by_reference_falls_back_to_positional_entries(self):
        first = Consignment(api_key='key')
        self.collection.add_consignment(first)
        self.collection.add_consignment(Consignment(api_key='key', reference_id='B'))
        first.reference_id = 'A'
        self.assertIs(self.collection.get_consignment_by_reference_id('A'), first)

    def test_lookup_by_remote_id(self):
        first = Consignment(api_key='key', reference_id='A')
        second = Consignment(api_key='key', reference_id='B')
        self.collection.add_consignment(first)
        self.collection.add_consignment(second)
        second.assign_remote_id(202)
        self.assertIs(self.collection.get_consignment_by_remote_id(202), second)
        self.assertIs(self.collection.get_consignment_by_remote_id('202'), second)
        self.assertIsNone(self.collection.get_consignment_by_remote_id(303))

    def test_group_by_api_key(self):
        a = Consignment(api_key='key-1', reference_id='A')
        b = Consignment(api_key='key-2', reference_id='B')
        c = Consignment(api_key='key-1', reference_id='C')
        for consignment in (a, b, c):
            self.collection.add_consignment(consignment)

        groups = self.collection.group_by_api_key()
        self.assertEqual(list(groups.keys()), ['key-1', 'key-2'])
        self.assertEqual(groups['key-1'], [a, c])
        self.assertEqual(groups['key-2'], [b])

    def test_layout_and_label_query(self):
        self.assertEqual(self.collection.label_query(), '')
        self.collection.set_layout(2)
        self.assertEqual(self.collection.paper_size, 'sheet')
        self.assertEqual(self.collection.label_query(), '?format=sheet&positions=2;3;4')
        self.collection.set_layout(False)
        self.assertEqual(self.collection.paper_size, 'single')
        self.assertIsNone(self.collection.label_position)
        self.assertEqual(self.collection.label_query(), '')

    def test_label_outputs_start_empty(self):
        self.assertIsNone(self.collection.label_link)
        self.assertIsNone(self.collection.label_document)
        self.collection.label_links = ['https://example.com/a.pdf', 'https://example.com/b.pdf']
        self.assertEqual(self.collection.label_link, 'https://example.com/a.pdf')


if __name__ == '__main__':
    unittest.main()
