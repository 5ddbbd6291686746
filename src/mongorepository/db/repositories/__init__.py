"""Repository pattern for MongoDB collections."""

from mongorepository.db.repositories.base import BaseRepository
from mongorepository.db.repositories.blocking import BlockingRepository
from mongorepository.db.repositories.manager import RepositoryManager
from mongorepository.db.repositories.query import Query
from mongorepository.db.repositories.repository import MongoRepository

__all__ = [
    "BaseRepository",
    "BlockingRepository",
    "MongoRepository",
    "Query",
    "RepositoryManager",
]
