from datetime import datetime
from typing import Any, Generic, List, Optional, Type, TypeVar

from sqlalchemy.orm import Session

from .database import Base

ModelT = TypeVar("ModelT", bound=Base)


class Repository(Generic[ModelT]):
    """get/list/create/update/delete over one mapped model.

    Commits are explicit so a route can stage several changes (status
    history, activity log, linked company) and persist them together.
    """

    def __init__(self, db: Session, model: Type[ModelT]):
        self.db = db
        self.model = model

    def get(self, obj_id: int) -> Optional[ModelT]:
        return self.db.query(self.model).filter(self.model.id == obj_id).first()

    def get_by(self, **criteria: Any) -> Optional[ModelT]:
        return self.db.query(self.model).filter_by(**criteria).first()

    def list(self, *criteria, order_by=None) -> List[ModelT]:
        query = self.db.query(self.model)
        if criteria:
            query = query.filter(*criteria)
        query = query.order_by(order_by if order_by is not None else self.model.id)
        return query.all()

    def create(self, **values: Any) -> ModelT:
        obj = self.model(**values)
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    def update(self, obj: ModelT, values: dict) -> ModelT:
        for key, value in values.items():
            setattr(obj, key, value)
        if hasattr(obj, "updated_at"):
            obj.updated_at = datetime.now()
        self.db.commit()
        self.db.refresh(obj)
        return obj

    def delete(self, obj: ModelT) -> None:
        self.db.delete(obj)
        self.db.commit()

    def save(self, obj: ModelT) -> ModelT:
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        return obj
