import os
import sys
import unittest
from unittest.mock import MagicMock

# Add project root to Python path
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

from shipping.exceptions import NoDocumentAvailableError
from shipping.label_documents import build_label_export
from web_interface.label_download import build_label_response, send_label_document


class TestLabelDownload(unittest.TestCase):

    def test_build_label_response(self):
        export = build_label_export(b'%PDF-data', prefix='myparcel-label-')

        response = build_label_response(export)

        self.assertEqual(response.get_data(), b'%PDF-data')
        self.assertEqual(response.mimetype, 'application/pdf')
        self.assertEqual(response.headers['Content-Disposition'], f'attachment; filename="{export.filename}"')
        self.assertEqual(response.headers['Pragma'], 'public')
        self.assertEqual(response.headers['Cache-Control'], 'public, must-revalidate, max-age=0')

    def test_send_label_document_uses_workflow_export(self):
        workflow = MagicMock()
        workflow.export_document.return_value = build_label_export(b'%PDF')

        response = send_label_document(workflow, prefix='batch-')

        workflow.export_document.assert_called_once_with(prefix='batch-')
        self.assertEqual(response.get_data(), b'%PDF')

    def test_send_label_document_without_document(self):
        workflow = MagicMock()
        workflow.export_document.side_effect = NoDocumentAvailableError()
        with self.assertRaises(NoDocumentAvailableError):
            send_label_document(workflow)


if __name__ == '__main__':
    unittest.main()
