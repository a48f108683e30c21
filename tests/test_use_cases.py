"""
Tests for use cases — check, plan and explain without the CLI layer.
"""

from pathlib import Path

from depcompose.core.persistence.audit import AuditWriter
from depcompose.core.persistence.plan_file import load_plan
from depcompose.core.use_cases.check import check_workspace
from depcompose.core.use_cases.explain import describe_graph, explain_module
from depcompose.core.use_cases.plan import compose_workspace


class TestCheckWorkspace:
    def test_valid(self, chip_build_yml: Path):
        for rel in ("tools/cde", "generators/hardfloat", "generators/rocket-chip", "generators/accel"):
            (chip_build_yml.parent / rel).mkdir(parents=True)
        result = check_workspace(chip_build_yml)
        assert result.valid
        assert result.errors == []
        assert result.warnings == []

    def test_unused_bundle_and_unset_strict_key(self, write_build_yml):
        config = write_build_yml("""\
            name: ws
            strict_keys: [neverSet]
            bundles:
              orphan: {k: v}
            modules:
              - name: a
        """)
        result = check_workspace(config)
        assert result.valid
        assert "Bundle 'orphan' is not used by any module" in result.warnings
        assert "Strict key 'neverSet' is not set by any bundle" in result.warnings

    def test_no_modules_warning(self, write_build_yml):
        result = check_workspace(write_build_yml("name: empty\n"))
        assert result.valid
        assert any("No modules" in w for w in result.warnings)

    def test_extra_strict_keys(self, write_build_yml):
        config = write_build_yml("""\
            name: ws
            bundles:
              one: {ver: "1"}
              two: {ver: "2"}
            modules:
              - name: a
                settings: [one]
              - name: b
                depends_on: [a]
                settings: [two]
        """)
        assert check_workspace(config).valid
        result = check_workspace(config, extra_strict_keys=["ver"])
        assert not result.valid
        assert result.to_dict()["errors"][0]["kind"] == "conflicting_pin"

    def test_config_error(self, write_build_yml):
        result = check_workspace(write_build_yml("- nope\n"))
        assert not result.valid
        assert "Expected a YAML mapping" in result.error


class TestComposeWorkspace:
    def test_writes_plan_and_audit(self, chip_build_yml: Path):
        result = compose_workspace(chip_build_yml)
        assert result.ok
        assert result.operation_id.startswith("op-")
        assert result.plan_path == chip_build_yml.parent.resolve() / ".state" / "plan.json"
        assert load_plan(result.plan_path).order == ["cde", "hardfloat", "rocketchip", "accel"]

        entries = AuditWriter(workspace_root=chip_build_yml.parent.resolve()).read_all()
        assert len(entries) == 1
        assert entries[0].operation_id == result.operation_id
        assert entries[0].batches_total == 4

    def test_failed_run_is_audited_without_plan(self, write_build_yml):
        config = write_build_yml("""\
            name: loop
            modules:
              - name: a
                depends_on: [a]
        """)
        result = compose_workspace(config)
        assert not result.ok
        assert result.plan_path is None
        entry = AuditWriter(workspace_root=config.parent.resolve()).read_all()[0]
        assert entry.status == "failed"
        assert entry.errors == ["Dependency cycle: a → a"]

    def test_best_effort_records_drops(self, write_build_yml):
        config = write_build_yml("""\
            name: partial
            modules:
              - name: a
                depends_on: [ghost]
              - name: b
        """)
        result = compose_workspace(config, best_effort=True, save=False)
        assert result.ok
        entry = AuditWriter(workspace_root=config.parent.resolve()).read_all()[0]
        assert entry.status == "partial"
        assert entry.modules_dropped == ["a"]

    def test_missing_config(self, tmp_path: Path):
        result = compose_workspace(tmp_path / "nope.yml")
        assert result.error is not None
        assert result.to_dict() == {"error": result.error}


class TestExplain:
    def test_explain_module(self, chip_build_yml: Path):
        result = explain_module("rocketchip", chip_build_yml)
        assert result.error is None
        assert result.dependencies == ["cde", "hardfloat"]
        assert result.dependents == ["accel"]
        assert result.transitive_dependents == ["accel"]
        assert result.batch_index == 2
        assert result.settings.sources == {
            "scalaVersion": "common",
            "organization": "common",
            "chiselVersion": "chisel",
        }

    def test_explain_unknown(self, chip_build_yml: Path):
        result = explain_module("ghost", chip_build_yml)
        assert result.error == "Unknown module 'ghost'"

    def test_describe_graph(self, chip_build_yml: Path):
        result = describe_graph(chip_build_yml)
        assert result.errors == []
        assert result.batches == [["cde"], ["hardfloat"], ["rocketchip"], ["accel"]]
        assert len(result.edges) == 4
