"""File Service API.

HTTP gateway over Azure Blob Storage: upload, list, tag query, download,
update, delete and SAS link issuance.
"""

__version__ = "0.1.0"
