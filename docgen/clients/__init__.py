"""Expose constructed client wrappers."""

from .aws_sqs import SQSClient
from .document_provider import DocumentProvider
from .dynamodb import DynamoDBClient
from .google_auth import GoogleOAuthClient, OAuthStateEncoder
from .google_drive import GoogleDriveClient
from .local_queue import SQLiteQueueClient
from .sqlite_store import SQLiteStore

__all__ = [
    "DocumentProvider",
    "DynamoDBClient",
    "GoogleDriveClient",
    "GoogleOAuthClient",
    "OAuthStateEncoder",
    "SQLiteQueueClient",
    "SQLiteStore",
    "SQSClient",
]
