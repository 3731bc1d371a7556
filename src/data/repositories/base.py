"""
Base repository class providing common CRUD operations.

All entity-specific repositories inherit from this base class.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Generic, Optional, TypeVar

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.collection import Collection
from pymongo.results import DeleteResult, InsertOneResult

from src.data.database import get_database_manager
from src.data.models.base import BaseDocument, to_bson_compatible
from src.utils.logger import get_logger

logger = get_logger(__name__)

# Type variable for document models
T = TypeVar("T", bound=BaseDocument)


class BaseRepository(ABC, Generic[T]):
    """
    Abstract base repository providing common database operations.

    Subclasses must define the collection name and model class.
    """

    @property
    @abstractmethod
    def collection_name(self) -> str:
        """Name of the MongoDB collection."""
        pass

    @property
    @abstractmethod
    def model_class(self) -> type[T]:
        """Pydantic model class for this repository."""
        pass

    def __init__(self, collection: Optional[Collection] = None) -> None:
        """
        Initialize repository with database connection.

        Args:
            collection: Collection to use instead of the managed one
        """
        self._collection = collection
        self._db_manager = None if collection is not None else get_database_manager()

    # -------------------------------------------------------------------------
    # Collection Access
    # -------------------------------------------------------------------------

    def _get_collection(self) -> Collection:
        if self._collection is not None:
            return self._collection
        return self._db_manager.get_collection(self.collection_name)

    # -------------------------------------------------------------------------
    # Document Conversion
    # -------------------------------------------------------------------------

    def _to_model(self, document: Optional[dict[str, Any]]) -> Optional[T]:
        """Convert MongoDB document to Pydantic model."""
        if document is None:
            return None
        return self.model_class.model_validate(document)

    def _to_models(self, documents: list[dict[str, Any]]) -> list[T]:
        """Convert list of MongoDB documents to Pydantic models."""
        return [self._to_model(doc) for doc in documents if doc is not None]

    def _to_document(self, model: T) -> dict[str, Any]:
        """Convert Pydantic model to MongoDB document."""
        return model.model_dump_mongo()

    @staticmethod
    def _to_object_id(id_value: str | ObjectId) -> ObjectId:
        """Convert string to ObjectId if needed."""
        if isinstance(id_value, ObjectId):
            return id_value
        return ObjectId(id_value)

    # -------------------------------------------------------------------------
    # CRUD Operations
    # -------------------------------------------------------------------------

    def create(self, model: T) -> T:
        """Create a new document."""
        collection = self._get_collection()
        document = self._to_document(model)
        document["created_at"] = datetime.utcnow()
        document["updated_at"] = datetime.utcnow()

        result: InsertOneResult = collection.insert_one(document)
        model.id = result.inserted_id
        logger.debug(f"Created {self.collection_name} document: {result.inserted_id}")
        return model

    def get_by_id(self, id_value: str | ObjectId) -> Optional[T]:
        """Get a document by its ID; malformed ids match nothing."""
        if not ObjectId.is_valid(id_value):
            return None
        collection = self._get_collection()
        document = collection.find_one({"_id": self._to_object_id(id_value)})
        return self._to_model(document)

    def find(
        self,
        query: dict[str, Any],
        skip: int = 0,
        limit: int = 100,
        sort_by: Optional[str] = None,
        sort_order: int = -1,
    ) -> list[T]:
        """Find documents matching a query."""
        collection = self._get_collection()
        cursor = collection.find(query).skip(skip).limit(limit)
        cursor = cursor.sort(sort_by or "created_at", sort_order)
        return self._to_models(list(cursor))

    def find_one(self, query: dict[str, Any]) -> Optional[T]:
        """Find a single document matching a query."""
        document = self._get_collection().find_one(query)
        return self._to_model(document)

    def update_one(self, query: dict[str, Any], update_data: dict[str, Any]) -> Optional[T]:
        """
        Set fields on the document matching ``query``.

        Returns:
            The updated model, or None if nothing matched
        """
        update_data = to_bson_compatible({**update_data, "updated_at": datetime.utcnow()})
        document = self._get_collection().find_one_and_update(
            query,
            {"$set": update_data},
            return_document=ReturnDocument.AFTER,
        )
        if document is not None:
            logger.debug(f"Updated {self.collection_name} document: {document.get('_id')}")
        return self._to_model(document)

    def update(self, id_value: str | ObjectId, update_data: dict[str, Any]) -> Optional[T]:
        """Update a document by ID."""
        if not ObjectId.is_valid(id_value):
            return None
        return self.update_one({"_id": self._to_object_id(id_value)}, update_data)

    def delete_one(self, query: dict[str, Any]) -> bool:
        """Delete the document matching ``query``."""
        result: DeleteResult = self._get_collection().delete_one(query)
        if result.deleted_count > 0:
            logger.debug(f"Deleted {self.collection_name} document matching {query}")
            return True
        return False

    def count(self, query: Optional[dict[str, Any]] = None) -> int:
        """Count documents matching a query."""
        return self._get_collection().count_documents(query or {})

    def exists(self, query: dict[str, Any]) -> bool:
        """Check if any document matches the query."""
        return self._get_collection().count_documents(query, limit=1) > 0
