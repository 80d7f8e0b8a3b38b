from typing import Generic, TypeVar, Type, Optional, List, Any, Dict, Tuple
from sqlalchemy.orm import Session, Query
from sqlalchemy import func
from cinelog.db import Base

ModelType = TypeVar("ModelType", bound=Base)

class BaseRepository(Generic[ModelType]):
    """Base repository with common CRUD operations.

    Mutating helpers take ``commit``; pass ``commit=False`` to stage changes
    inside a larger unit of work and commit it from the service.
    """

    def __init__(self, model: Type[ModelType], db: Session):
        self.model = model
        self.db = db

    def get(self, id: Any) -> Optional[ModelType]:
        """Get by ID"""
        return self.db.query(self.model).filter(self.model.id == id).first()

    def get_many(self, ids: List[Any]) -> List[ModelType]:
        """Get all rows whose id is in ``ids`` (order not preserved)"""
        if not ids:
            return []
        return self.db.query(self.model).filter(self.model.id.in_(ids)).all()

    def create(self, obj_in: Dict[str, Any], commit: bool = True) -> ModelType:
        """Create new object"""
        db_obj = self.model(**obj_in)
        self.db.add(db_obj)
        self._persist(db_obj, commit)
        return db_obj

    def update(self, db_obj: ModelType, obj_in: Dict[str, Any], commit: bool = True) -> ModelType:
        """Update object"""
        for field, value in obj_in.items():
            if hasattr(db_obj, field):
                setattr(db_obj, field, value)
        self._persist(db_obj, commit)
        return db_obj

    def delete(self, id: Any) -> bool:
        """Delete by ID"""
        obj = self.get(id)
        if obj:
            self.db.delete(obj)
            self.db.commit()
            return True
        return False

    def filter_one_by(self, **kwargs) -> Optional[ModelType]:
        """Filter by multiple conditions and return first"""
        return self.db.query(self.model).filter_by(**kwargs).first()

    def paginate(self, query: Query, count_query: Query, limit: int, offset: int) -> Tuple[List[ModelType], int]:
        """Run a page query and its matching count query"""
        items = query.limit(limit).offset(offset).all()
        total = count_query.scalar() or 0
        return items, int(total)

    def count_query(self):
        return self.db.query(func.count(self.model.id))

    def _persist(self, db_obj: ModelType, commit: bool) -> None:
        if commit:
            self.db.commit()
            self.db.refresh(db_obj)
        else:
            self.db.flush()
