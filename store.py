import logging
from concurrent.futures import ThreadPoolExecutor, wait, FIRST_EXCEPTION

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import joinedload, selectinload

from data_models import db

logger = logging.getLogger(__name__)


class EntityStore:
    """Query and mutation helpers for one model class.

    ``populate`` arguments name relationship attributes to load eagerly, so
    records stay usable after the session that loaded them is closed.
    """

    def __init__(self, model):
        self.model = model

    def _load_options(self, populate):
        options = []
        for name in populate:
            attr = getattr(self.model, name)
            if attr.property.uselist:
                options.append(selectinload(attr))
            else:
                options.append(joinedload(attr))
        return options

    def find(self, *criteria, order_by=None, populate=()):
        q = self.model.query.options(*self._load_options(populate))
        if criteria:
            q = q.filter(*criteria)
        if order_by is not None:
            q = q.order_by(order_by)
        return q.all()

    def find_one(self, *criteria):
        return self.model.query.filter(*criteria).first()

    def find_by_id(self, ident, populate=()):
        if ident is None:
            return None
        return db.session.get(self.model, ident, options=self._load_options(populate))

    def count(self, *criteria):
        q = self.model.query
        if criteria:
            q = q.filter(*criteria)
        return q.count()

    def insert(self, **fields):
        record = self.model(**fields)
        try:
            db.session.add(record)
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception("Insert into %s failed", self.model.__tablename__)
            raise
        return record

    def update_by_id(self, ident, **fields):
        record = db.session.get(self.model, ident)
        if record is None:
            return None
        try:
            for name, value in fields.items():
                setattr(record, name, value)
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception("Update of %s id=%s failed", self.model.__tablename__, ident)
            raise
        return record

    def delete_by_id(self, ident):
        record = db.session.get(self.model, ident)
        if record is None:
            return False
        try:
            db.session.delete(record)
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception("Delete of %s id=%s failed", self.model.__tablename__, ident)
            raise
        return True


def parallel(**reads):
    """Run independent reads concurrently and return their results by name.

    Each read gets its own application context and therefore its own
    session. If any read raises, the first failure is re-raised and reads
    that have not started are cancelled.
    """
    app = current_app._get_current_object()

    def run(read):
        with app.app_context():
            return read()

    workers = max(1, min(len(reads), app.config.get('CATALOG_READ_WORKERS', 4)))
    logger.debug("Fanning out %d reads: %s", len(reads), ", ".join(reads))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {name: executor.submit(run, read) for name, read in reads.items()}
        done, pending = wait(futures.values(), return_when=FIRST_EXCEPTION)
        for future in futures.values():
            if future in done and future.exception() is not None:
                for other in pending:
                    other.cancel()
                raise future.exception()
        return {name: future.result() for name, future in futures.items()}
