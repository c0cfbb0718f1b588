# -*- coding: utf-8 -*-
"""
================================================================================
Label Workflow Exceptions
================================================================================
Purpose:
----------------
Errors raised while collecting consignments and driving them through the
MyParcel label workflow.

Exception hierarchy:
    LabelWorkflowError (base)
    ├── ValidationError (local, raised before any API call)
    │   ├── MissingCredentialError
    │   ├── MissingReferenceError
    │   ├── DuplicateReferenceError
    │   └── AmbiguousSelectionError
    ├── RequestFailedError (the MyParcel API call failed)
    └── PreconditionError
        └── NoDocumentAvailableError

Warnings:
    PartialSyncWarning (UserWarning)
    └── UnmatchedRecordWarning
----------------
"""


class LabelWorkflowError(Exception):
    """Base exception for all label workflow errors."""
    pass


# =====================================================================================
# --- Validation Errors ---
# =====================================================================================

class ValidationError(LabelWorkflowError):
    """Raised when a consignment or a selection breaks the collection rules."""
    pass


class MissingCredentialError(ValidationError):
    def __init__(self, message='First set the API key on the consignment before adding it to the collection'):
        super().__init__(message)


class MissingReferenceError(ValidationError):
    def __init__(self, message='First set the reference id on the consignment before adding it to a collection with multiple shipments'):
        super().__init__(message)


class DuplicateReferenceError(ValidationError):
    """
    Raised when a reference id is already used in the collection.

    Do not use the id of an order as the reference id: an order can have
    multiple shipments. Use the shipment id instead.
    """

    def __init__(self, reference_id):
        self.reference_id = reference_id
        super().__init__(
            f"Reference id '{reference_id}' must be unique. For example, do not use the ID of an order "
            f"as an order can have multiple shipments. In that case, use the shipment ID."
        )


class AmbiguousSelectionError(ValidationError):
    def __init__(self, count):
        self.count = count
        super().__init__(f"Expected exactly one consignment, but {count} were found")


# =====================================================================================
# --- Request Errors ---
# =====================================================================================

class RequestFailedError(LabelWorkflowError):
    """
    Raised when a call to the MyParcel API fails.

    Wraps transport errors, HTTP errors and error payloads returned by the API.
    No retry is attempted.

    Attributes:
        operation (str): The operation that failed (e.g. 'create-shipment').
        status_code (int or None): The HTTP status code, if a response was received.
        response_body (str or None): The raw response text, if any.
    """

    def __init__(self, message, operation=None, status_code=None, response_body=None):
        self.operation = operation
        self.status_code = status_code
        self.response_body = response_body
        super().__init__(message)


# =====================================================================================
# --- Precondition Errors ---
# =====================================================================================

class PreconditionError(LabelWorkflowError):
    """Raised when an operation is called before the step it depends on."""
    pass


class NoDocumentAvailableError(PreconditionError):
    def __init__(self, message='First retrieve the label document with request_labels(output="pdf") before exporting it'):
        super().__init__(message)


# =====================================================================================
# --- Warnings ---
# =====================================================================================

class PartialSyncWarning(UserWarning):
    """Emitted when part of the provider's data could not be merged back."""
    pass


class UnmatchedRecordWarning(PartialSyncWarning):
    """A shipment returned by MyParcel matches no consignment in the collection."""
    pass
