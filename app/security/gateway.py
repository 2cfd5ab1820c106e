from contextlib import contextmanager

from app.enums import Operation
from app.errors import NotFound, ValidationFailed
from app.extensions import db
from app.hooks import (
    AFTER_INSERT,
    AFTER_UPDATE,
    BEFORE_DELETE,
    BEFORE_INSERT,
    BEFORE_UPDATE,
    HookContext,
    snapshot,
)

READ_ONLY_COLUMNS = frozenset({"id", "created_at"})


class SecureSession:
    """Reads and writes on behalf of a principal.

    Every write is authorized by the row policies and accompanied by its
    hooks, inside the caller's transaction. Nothing here commits; wrap a
    unit of work in ``atomic()``.
    """

    def __init__(self, principal, evaluator, hooks, session=None):
        self.principal = principal
        self.evaluator = evaluator
        self.hooks = hooks
        self.session = session or db.session

    def _context(self, previous=None):
        return HookContext(self.session, self.principal, self.hooks, previous)

    @contextmanager
    def atomic(self):
        try:
            yield self
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

    # -- reads -----------------------------------------------------------

    def select(self, model, *criteria, order_by=None):
        query = self.session.query(model).filter(*criteria)
        if order_by is not None:
            query = query.order_by(*order_by) if isinstance(order_by, (list, tuple)) else query.order_by(order_by)
        return self.evaluator.filter_visible(self.principal, model.__tablename__, query.all())

    def get(self, model, row_id, for_update=False):
        """One visible row; absent and hidden rows both raise NotFound."""
        query = self.session.query(model).filter(model.id == row_id)
        if for_update:
            query = query.with_for_update()
        row = query.first()
        if row is None or not self.evaluator.is_allowed(
            self.principal, Operation.SELECT, model.__tablename__, row
        ):
            raise NotFound(f"{model.__name__} not found")
        return row

    # -- writes ----------------------------------------------------------

    def insert(self, instance):
        context = self._context()
        self.hooks.run(BEFORE_INSERT, instance, context)
        self.evaluator.authorize(self.principal, Operation.INSERT, instance.__tablename__, instance)
        self.session.add(instance)
        self.session.flush()
        self.hooks.run(AFTER_INSERT, instance, context)
        return instance

    def update(self, instance, **changes):
        previous = snapshot(instance)
        for key in changes:
            if key in READ_ONLY_COLUMNS:
                raise ValidationFailed(key, "Field is read-only.")
            if key not in previous:
                raise ValidationFailed(key, "Unknown field.")

        pending = self.evaluator.begin_update(self.principal, instance.__tablename__, instance)
        for key, value in changes.items():
            setattr(instance, key, value)

        context = self._context(previous)
        self.hooks.run(BEFORE_UPDATE, instance, context)
        pending.confirm(instance)
        self.session.flush()
        self.hooks.run(AFTER_UPDATE, instance, context)
        return instance

    def delete(self, instance):
        self.evaluator.authorize(self.principal, Operation.DELETE, instance.__tablename__, instance)
        self.hooks.run(BEFORE_DELETE, instance, self._context())
        self.session.delete(instance)
        self.session.flush()
