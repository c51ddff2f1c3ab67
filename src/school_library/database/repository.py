"""
Repository pattern implementation for the School Library entity store.

Repositories wrap a SQLAlchemy session and return pydantic models, so that
callers (the circulation engine, reports, MCP handlers) never touch ORM
objects. Each write method is one transaction: it commits on success and
rolls back on any failure, leaving no partial state.

The read-only :class:`BaseRepository` serves borrow records, which are only
created and mutated by the circulation engine. :class:`CrudRepository` adds
create/update/delete for books and students.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ValidationError
from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from ..errors import EntityValidationError, NotFoundError
from .schema import Base
from .session import rollback_and_raise, safe_commit, safe_query

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=Base)
CreateSchemaType = TypeVar("CreateSchemaType", bound=BaseModel)
UpdateSchemaType = TypeVar("UpdateSchemaType", bound=BaseModel)
ResponseSchemaType = TypeVar("ResponseSchemaType", bound=BaseModel)
SchemaType = TypeVar("SchemaType", bound=BaseModel)


def validation_error(message: str, error: ValidationError) -> EntityValidationError:
    """Wrap a pydantic ValidationError into the library's validation error."""
    details = [
        {key: value for key, value in item.items() if key != "input"}
        for item in error.errors(include_url=False, include_context=False)
    ]
    fields = ", ".join(
        sorted({".".join(str(part) for part in item["loc"]) or "input" for item in details})
    )
    return EntityValidationError(f"{message}: invalid {fields}", errors=details)


def validate_input(
    schema: type[SchemaType], data: SchemaType | BaseModel | Mapping[str, Any]
) -> SchemaType:
    """
    Validate caller input against a pydantic schema.

    Accepts an instance of the schema, another pydantic model (only its set
    fields are used) or a plain mapping.

    Raises:
        EntityValidationError: If the input violates the schema
    """
    if isinstance(data, schema):
        return data
    if isinstance(data, BaseModel):
        data = data.model_dump(exclude_unset=True)
    try:
        return schema.model_validate(data)
    except ValidationError as e:
        raise validation_error(f"Invalid {schema.__name__}", e) from e


class BaseRepository(ABC, Generic[ModelType, ResponseSchemaType]):
    """
    Read operations shared by every repository.

    All queries go through safe_query, so database failures surface as
    StorageError.
    """

    not_found_error: type[NotFoundError] = NotFoundError

    def __init__(self, session: Session):
        """Initialize repository with database session."""
        self.session = session

    @property
    @abstractmethod
    def model_class(self) -> type[ModelType]:
        """Return the SQLAlchemy model class."""

    @property
    @abstractmethod
    def response_schema(self) -> type[ResponseSchemaType]:
        """Return the Pydantic response schema."""

    @property
    def default_order(self) -> list[Any]:
        """Columns used to order full listings."""
        return [self.model_class.created_at, self.model_class.id]

    def _to_response_model(self, db_obj: ModelType) -> ResponseSchemaType:
        """Convert database model to Pydantic response model."""
        return self.response_schema.model_validate(db_obj, from_attributes=True)

    def _get_db_object(self, id: str) -> ModelType | None:
        query = select(self.model_class).where(self.model_class.id == str(id))
        return safe_query(
            self.session,
            lambda s: s.execute(query).scalar_one_or_none(),
            f"Failed to get {self.model_class.__name__} by ID",
        )

    def _require_db_object(self, id: str) -> ModelType:
        db_obj = self._get_db_object(id)
        if db_obj is None:
            raise self.not_found_error(str(id))
        return db_obj

    def _list(self, query) -> list[ResponseSchemaType]:
        results = safe_query(
            self.session,
            lambda s: s.execute(query).scalars().all(),
            f"Failed to list {self.model_class.__name__} records",
        )
        return [self._to_response_model(item) for item in results]

    def get_by_id(self, id: str) -> ResponseSchemaType | None:
        """
        Get entity by ID.

        Returns:
            Pydantic model or None if not found
        """
        db_obj = self._get_db_object(id)
        if db_obj is None:
            return None
        return self._to_response_model(db_obj)

    def get(self, id: str) -> ResponseSchemaType:
        """
        Get entity by ID.

        Raises:
            NotFoundError: The repository's specialized not-found error
        """
        return self._to_response_model(self._require_db_object(id))

    def get_all(self) -> list[ResponseSchemaType]:
        """All entities in the repository's default order."""
        return self._list(select(self.model_class).order_by(*self.default_order))

    def count(self) -> int:
        query = select(func.count()).select_from(self.model_class)
        return (
            safe_query(self.session, lambda s: s.execute(query).scalar(), "Failed to count")
            or 0
        )

    def exists(self, id: str) -> bool:
        """Check if entity exists by ID."""
        query = (
            select(func.count()).select_from(self.model_class).where(self.model_class.id == str(id))
        )
        count = safe_query(
            self.session, lambda s: s.execute(query).scalar(), "Failed to check existence"
        )
        return count > 0


class CrudRepository(
    BaseRepository[ModelType, ResponseSchemaType],
    Generic[ModelType, CreateSchemaType, UpdateSchemaType, ResponseSchemaType],
):
    """Repository with create/update/delete, one transaction per call."""

    @property
    @abstractmethod
    def create_schema(self) -> type[CreateSchemaType]:
        """Return the Pydantic create schema."""

    @property
    @abstractmethod
    def update_schema(self) -> type[UpdateSchemaType]:
        """Return the Pydantic update schema."""

    def _create_values(self, data: CreateSchemaType) -> dict[str, Any]:
        """Column values for a new row."""
        return data.model_dump()

    def _apply_update(self, db_obj: ModelType, changes: dict[str, Any]) -> None:
        """Merge validated partial changes into the row."""
        for field, value in changes.items():
            setattr(db_obj, field, value)

    def _delete_guards(self) -> list[Any]:
        """Extra WHERE clauses a row must satisfy to be deleted."""
        return []

    def _reject_delete(self, id: str) -> None:
        """Raise the error for an existing row kept back by a delete guard."""

    def create(self, data: CreateSchemaType | Mapping[str, Any]) -> ResponseSchemaType:
        """
        Create new entity.

        Args:
            data: Pydantic create schema or a mapping of field values

        Returns:
            Created entity, including generated id and timestamps

        Raises:
            EntityValidationError: If required fields are missing or invalid
            StorageError: On database errors
        """
        validated = validate_input(self.create_schema, data)
        name = self.model_class.__name__
        try:
            db_obj = self.model_class(**self._create_values(validated))
            self.session.add(db_obj)
            safe_commit(self.session, f"create {name}")
            self.session.refresh(db_obj)
        except Exception as e:
            rollback_and_raise(self.session, f"Create {name}", e)

        logger.info("Created %s %s", name, db_obj.id)
        return self._to_response_model(db_obj)

    def update(self, id: str, data: UpdateSchemaType | Mapping[str, Any]) -> ResponseSchemaType:
        """
        Merge partial changes into an existing entity.

        The merged record is validated again before anything is written.

        Raises:
            NotFoundError: If the entity does not exist
            EntityValidationError: If the partial or the merged record is invalid
        """
        validated = validate_input(self.update_schema, data)
        changes = validated.model_dump(exclude_unset=True)
        name = self.model_class.__name__
        try:
            db_obj = self._require_db_object(id)
            self._apply_update(db_obj, changes)
            try:
                result = self._to_response_model(db_obj)
            except ValidationError as e:
                raise validation_error(f"Invalid {name} update", e) from e
            # Store the normalized values
            for field in changes:
                setattr(db_obj, field, getattr(result, field))
            safe_commit(self.session, f"update {name}")
        except Exception as e:
            rollback_and_raise(self.session, f"Update {name}", e)

        logger.info("Updated %s %s (%s)", name, id, ", ".join(sorted(changes)) or "no changes")
        return result

    def delete(self, id: str) -> bool:
        """
        Delete entity by ID.

        The guard clauses are part of the DELETE statement itself, so a row
        cannot gain a blocking reference between the check and the delete.

        Returns:
            True if deleted, False if not found
        """
        name = self.model_class.__name__
        statement = (
            delete(self.model_class)
            .where(self.model_class.id == str(id), *self._delete_guards())
            .execution_options(synchronize_session=False)
        )
        try:
            deleted = safe_query(
                self.session,
                lambda s: s.execute(statement).rowcount,
                f"Failed to delete {name}",
            )
            if not deleted:
                if self._get_db_object(id) is not None:
                    self._reject_delete(str(id))
                self.session.rollback()
                return False
            safe_commit(self.session, f"delete {name}")
        except Exception as e:
            rollback_and_raise(self.session, f"Delete {name}", e)

        logger.info("Deleted %s %s", name, id)
        return True
