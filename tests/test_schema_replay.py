import pytest
from app.extensions import db
from app.models.category import Category
from app.models.storage import StorageBucket
from app.schema_replay import (
    DEFAULT_STAGES,
    SchemaReplay,
    SchemaReplayError,
    Stage,
    replay_schema,
)


class TestStageOrdering:
    def test_default_order(self):
        assert [stage.name for stage in DEFAULT_STAGES] == [
            "extensions",
            "enum_types",
            "tables",
            "functions",
            "triggers",
            "rls",
            "policies",
            "storage_buckets",
            "seed_data",
        ]
        SchemaReplay(DEFAULT_STAGES).check_order()

    def test_policies_before_rls_refused(self):
        by_name = {stage.name: stage for stage in DEFAULT_STAGES}
        stages = [by_name[n] for n in ("extensions", "enum_types", "tables", "policies", "rls")]

        with pytest.raises(SchemaReplayError, match="policies"):
            SchemaReplay(stages).check_order()

    def test_refused_stage_never_runs(self):
        ran = []
        stages = [
            Stage("first", lambda engine: ran.append("first")),
            Stage("third", lambda engine: ran.append("third"), requires={"second"}),
        ]
        with pytest.raises(SchemaReplayError):
            SchemaReplay(stages).run(engine=None)
        assert ran == []


class TestReplay:
    def test_full_replay(self, app):
        db.drop_all()
        report = replay_schema(db.engine)

        assert list(report) == [stage.name for stage in DEFAULT_STAGES]
        assert "orders" in report["tables"]
        assert report["tables"].index("users") < report["tables"].index("profiles")
        assert "bootstrap_principal" in report["functions"]
        assert "listings_public_read" in report["policies"]["listings"]
        assert "admin_audit_log" in report["rls"]

        buckets = {b.id: b for b in StorageBucket.query.all()}
        assert set(buckets) == {"avatars", "covers", "listings", "returns", "disputes"}
        assert buckets["avatars"].public and not buckets["returns"].public
        assert buckets["covers"].file_size_limit == 10 * 1024 * 1024
        assert "application/pdf" in buckets["disputes"].allowed_mime_types
        assert Category.query.count() == 10

    def test_replay_is_idempotent(self, app):
        replay_schema(db.engine)
        replay_schema(db.engine)

        assert StorageBucket.query.count() == 5
        assert Category.query.filter_by(parent_id=None).count() == 10
