"""On-write hooks: derived state maintained inside the writing transaction.

Hooks are registered per ``(table, event)``; the ``*`` table applies to
every table. They run in registration order, through the raw session and
with elevated rights. An exception from any hook propagates and the caller
rolls back the whole transaction.
"""
import logging
from collections import defaultdict

from sqlalchemy import inspect

from app.errors import MarketplaceError

logger = logging.getLogger(__name__)

BEFORE_INSERT = "before_insert"
AFTER_INSERT = "after_insert"
BEFORE_UPDATE = "before_update"
AFTER_UPDATE = "after_update"
BEFORE_DELETE = "before_delete"

EVENTS = (BEFORE_INSERT, AFTER_INSERT, BEFORE_UPDATE, AFTER_UPDATE, BEFORE_DELETE)
ALL_TABLES = "*"


def snapshot(instance):
    """Column values of a row, keyed by attribute name."""
    return {column.key: getattr(instance, column.key) for column in inspect(instance).mapper.column_attrs}


class HookContext:
    """What a hook may touch: the session, the acting principal and, for
    updates, the column values the row had before the change."""

    def __init__(self, session, principal, registry, previous=None):
        self.session = session
        self.principal = principal
        self.registry = registry
        self.previous = previous or {}

    def insert(self, instance):
        """Insert with elevated rights; the new row's own hooks still run."""
        child = HookContext(self.session, self.principal, self.registry)
        self.registry.run(BEFORE_INSERT, instance, child)
        self.session.add(instance)
        self.session.flush()
        self.registry.run(AFTER_INSERT, instance, child)
        return instance

    def update(self, instance, **changes):
        """Update with elevated rights; the row's own hooks still run."""
        previous = snapshot(instance)
        for key, value in changes.items():
            setattr(instance, key, value)
        child = HookContext(self.session, self.principal, self.registry, previous)
        self.registry.run(BEFORE_UPDATE, instance, child)
        self.session.flush()
        self.registry.run(AFTER_UPDATE, instance, child)
        return instance

    def changed(self, instance, column) -> bool:
        return column in self.previous and self.previous[column] != getattr(instance, column)


class HookRegistry:
    def __init__(self):
        self._hooks = defaultdict(list)

    def register(self, table, *events):
        def decorator(fn):
            for event in events:
                if event not in EVENTS:
                    raise ValueError(f"Unknown hook event: {event}")
                self._hooks[(table, event)].append(fn)
            return fn
        return decorator

    def hooks_for(self, table, event):
        return self._hooks.get((ALL_TABLES, event), []) + self._hooks.get((table, event), [])

    def describe(self):
        """(table, event, hook name) triples, for listing what is installed."""
        return [
            (table, event, fn.__name__)
            for (table, event), fns in sorted(self._hooks.items())
            for fn in fns
        ]

    def run(self, event, instance, context: HookContext):
        table = instance.__tablename__
        for fn in self.hooks_for(table, event):
            try:
                fn(instance, context)
            except MarketplaceError:
                raise
            except Exception:
                logger.error("Hook %s failed on %s %s", fn.__name__, event, table)
                raise
