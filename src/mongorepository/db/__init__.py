"""Database layer for MongoDB operations."""

from mongorepository.db.connection import create_client, get_collection

__all__ = ["create_client", "get_collection"]
