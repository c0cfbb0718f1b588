# -*- coding: utf-8 -*-
"""
Helpers for label PDFs: merging the documents of several API keys into one
file, counting pages, and preparing a document for download.
"""
import io
from collections import namedtuple
from datetime import datetime, timezone

from PyPDF2 import PdfReader, PdfWriter

PREFIX_PDF_FILENAME = 'myparcel-label-'

LabelExport = namedtuple('LabelExport', ['filename', 'content', 'headers'])


def merge_label_documents(documents):
    """
    Combines label PDFs into one document, in the given order.
    A single document is returned untouched.
    """
    documents = [document for document in documents if document]
    if not documents:
        return None
    if len(documents) == 1:
        return documents[0]

    writer = PdfWriter()
    for document in documents:
        reader = PdfReader(io.BytesIO(document))
        for page in reader.pages:
            writer.add_page(page)

    output = io.BytesIO()
    writer.write(output)
    return output.getvalue()


def count_label_pages(document):
    return len(PdfReader(io.BytesIO(document)).pages)


def build_label_export(document, prefix=PREFIX_PDF_FILENAME, now=None):
    """
    Prepares a label PDF for download. Sending it (HTTP response, file) is up
    to the caller.

    Args:
        document (bytes): The PDF data.
        prefix (str): Start of the suggested filename.
        now (datetime, optional): Timestamp to use, defaults to the current UTC time.

    Returns:
        LabelExport: (filename, content, headers)
    """
    now = now or datetime.now(timezone.utc)
    filename = f"{prefix}{now.strftime('%Y-%b-%d %H-%M-%S')}.pdf"
    headers = {
        'Content-Type': 'application/pdf',
        'Content-Length': str(len(document)),
        'Content-Disposition': f'attachment; filename="{filename}"',
        'Cache-Control': 'public, must-revalidate, max-age=0',
        'Pragma': 'public',
        'Expires': 'Sat, 26 Jul 1997 05:00:00 GMT',
        'Last-Modified': now.strftime('%a, %d %b %Y %H:%M:%S') + ' GMT',
    }
    return LabelExport(filename, document, headers)
