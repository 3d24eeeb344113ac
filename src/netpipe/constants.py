"""Wire-level constants shared by the envelope decoder and the error code registry.

Example::

    from netpipe.constants import SUCCESS_CODE

    if envelope.error_code == SUCCESS_CODE:
        ...
"""

SUCCESS_CODE = 0
"""The envelope ``error_code`` that marks a successful response."""

LOCAL_ERROR_CODE = -1
"""Code reported for structural failures detected locally (unparsable or empty envelopes)."""

DEFAULT_TIMEOUT_SECONDS = 15
"""Default connect, read, and write timeout applied when none is configured."""

DEFAULT_FILE_FIELD = "file"
"""Multipart field name used for single-file uploads."""

DEFAULT_FILES_FIELD = "files"
"""Multipart field name used for multi-file uploads."""

UNKNOWN_LENGTH = -1
"""Declared total length of a stream whose size is not known in advance."""
