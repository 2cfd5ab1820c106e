"""Ordered replay of the database schema, access rules and seed data.

Each stage declares what it provides and what it requires. A stage whose
requirements have not been provided by an earlier stage is refused, so a
mis-ordered replay fails before touching the database.
"""
import logging

from sqlalchemy import text

from app.extensions import db
from app.hooks.rules import hooks
from app.models.category import Category
from app.models.storage import StorageBucket
from app.security import get_evaluator, service_session
from app.utils.helpers import slugify

logger = logging.getLogger(__name__)

MIB = 1024 * 1024
IMAGE_MIME_TYPES = ["image/jpeg", "image/png", "image/webp", "image/gif"]
DOCUMENT_MIME_TYPES = IMAGE_MIME_TYPES + ["application/pdf"]

STORAGE_BUCKETS = [
    {"id": "avatars", "public": True, "file_size_limit": 5 * MIB, "allowed_mime_types": IMAGE_MIME_TYPES},
    {"id": "covers", "public": True, "file_size_limit": 10 * MIB, "allowed_mime_types": IMAGE_MIME_TYPES},
    {"id": "listings", "public": True, "file_size_limit": 5 * MIB, "allowed_mime_types": IMAGE_MIME_TYPES},
    {"id": "returns", "public": False, "file_size_limit": 10 * MIB, "allowed_mime_types": DOCUMENT_MIME_TYPES},
    {"id": "disputes", "public": False, "file_size_limit": 10 * MIB, "allowed_mime_types": DOCUMENT_MIME_TYPES},
]

SEED_CATEGORIES = [
    ("Women", "shirt"),
    ("Men", "user"),
    ("Kids", "baby"),
    ("Shoes", "footprints"),
    ("Bags", "shopping-bag"),
    ("Accessories", "watch"),
    ("Jewelry", "gem"),
    ("Beauty", "sparkles"),
    ("Home", "home"),
    ("Vintage", "clock"),
]


class SchemaReplayError(Exception):
    pass


class Stage:
    def __init__(self, name, apply, provides=(), requires=()):
        self.name = name
        self.apply = apply
        self.provides = frozenset(provides) | {name}
        self.requires = frozenset(requires)

    def __repr__(self):
        return f"<Stage {self.name}>"


class SchemaReplay:
    def __init__(self, stages):
        self.stages = list(stages)

    def check_order(self):
        """Raise SchemaReplayError on the first stage run before its requirements."""
        provided = set()
        for stage in self.stages:
            missing = stage.requires - provided
            if missing:
                raise SchemaReplayError(
                    f"Stage '{stage.name}' requires {sorted(missing)} which no earlier stage provides"
                )
            provided |= stage.provides

    def run(self, engine):
        self.check_order()
        report = {}
        for stage in self.stages:
            logger.info("Schema replay: %s", stage.name)
            report[stage.name] = stage.apply(engine)
        return report


def _is_postgres(engine):
    return engine.dialect.name == "postgresql"


def create_extensions(engine):
    if not _is_postgres(engine):
        return []
    with engine.begin() as conn:
        conn.execute(text('CREATE EXTENSION IF NOT EXISTS "pgcrypto"'))
    return ["pgcrypto"]


def create_enum_types(engine):
    names = []
    for table in db.metadata.sorted_tables:
        for column in table.columns:
            enum_type = column.type
            if getattr(enum_type, "enums", None) and enum_type.name and enum_type.name not in names:
                if _is_postgres(engine):
                    enum_type.create(bind=engine, checkfirst=True)
                names.append(enum_type.name)
    return names


def create_tables(engine):
    tables = db.metadata.sorted_tables
    db.metadata.create_all(bind=engine, tables=tables)
    return [table.name for table in tables]


def install_functions(engine):
    """The write hooks stand in for database functions; list what is installed."""
    return sorted({name for _, _, name in hooks.describe()})


def install_triggers(engine):
    return [f"{table}:{event}:{name}" for table, event, name in hooks.describe()]


def enable_row_security(engine):
    """Every table is closed by default; report the ones with explicit rules."""
    registry = get_evaluator().registry
    secured = set(registry.tables()) | registry.service_only_tables | registry.append_only_tables
    closed = [table.name for table in db.metadata.sorted_tables if table.name not in secured]
    if closed:
        logger.info("Tables reachable only by admins and the service role: %s", ", ".join(closed))
    return sorted(secured)


def install_policies(engine):
    registry = get_evaluator().registry
    return {
        table: sorted({policy.name for op in ("select", "insert", "update", "delete")
                       for policy in registry.policies_for(table, op)})
        for table in registry.tables()
    }


def create_storage_buckets(engine):
    gateway = service_session()
    with gateway.atomic():
        for definition in STORAGE_BUCKETS:
            bucket = gateway.session.get(StorageBucket, definition["id"])
            if bucket is None:
                gateway.insert(StorageBucket(**definition))
            else:
                gateway.update(bucket, **{k: v for k, v in definition.items() if k != "id"})
    return [definition["id"] for definition in STORAGE_BUCKETS]


def seed_categories(engine):
    gateway = service_session()
    slugs = []
    with gateway.atomic():
        for position, (name, icon) in enumerate(SEED_CATEGORIES, start=1):
            slug = slugify(name)
            category = Category.query.filter_by(slug=slug).first()
            if category is None:
                gateway.insert(Category(name=name, slug=slug, icon=icon, sort_order=position, is_active=True))
            else:
                gateway.update(category, name=name, icon=icon, sort_order=position)
            slugs.append(slug)
    return slugs


DEFAULT_STAGES = [
    Stage("extensions", create_extensions),
    Stage("enum_types", create_enum_types, requires={"extensions"}),
    Stage("tables", create_tables, requires={"enum_types"}),
    Stage("functions", install_functions, requires={"tables"}),
    Stage("triggers", install_triggers, requires={"functions", "tables"}),
    Stage("rls", enable_row_security, requires={"tables"}),
    Stage("policies", install_policies, requires={"rls"}),
    Stage("storage_buckets", create_storage_buckets, requires={"tables", "policies"}),
    Stage("seed_data", seed_categories, requires={"tables", "triggers", "policies"}),
]


def replay_schema(engine=None, stages=None):
    return SchemaReplay(stages or DEFAULT_STAGES).run(engine or db.engine)
