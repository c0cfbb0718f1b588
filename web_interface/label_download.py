# -*- coding: utf-8 -*-
"""
================================================================================
Label Download Responses
================================================================================
Purpose:
----------------
Turns an exported label PDF into a Flask response, so a web page can offer
the labels as a file download.

Usage inside a Flask view:

    workflow.request_labels(positions=1, output='pdf')
    return send_label_document(workflow)
----------------
"""
from flask import Response

from shipping.label_documents import PREFIX_PDF_FILENAME


def build_label_response(export):
    """
    Args:
        export (LabelExport): The result of `LabelWorkflow.export_document()`.

    Returns:
        flask.Response: The PDF as an attachment.
    """
    response = Response(export.content, mimetype='application/pdf')
    for header, value in export.headers.items():
        response.headers[header] = value
    return response


def send_label_document(workflow, prefix=PREFIX_PDF_FILENAME):
    """Exports the workflow's label PDF and wraps it in a download response."""
    return build_label_response(workflow.export_document(prefix=prefix))
