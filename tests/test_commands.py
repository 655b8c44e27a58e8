"""Tests for the pythia CLI and its subcommands."""

from datetime import date

import pytest

from pythia.cli import main
from pythia.commands.archive import completed_before, find_archive_candidates
from pythia.lib.workitem import WorkItem, load_work_item

TABLE = """| ID | Title | Status | Priority | Owner | Last Updated |
|----|-------|--------|----------|-------|--------------|"""

REGISTRY = f"""# Active Work Items Registry

## Active Tasks

{TABLE}

## Active Proposals

{TABLE}

## Active Explorations

{TABLE}

## New Ideas

{TABLE}
"""


def write_item(docs_root, directory, item_id, status, extra=""):
    path = docs_root / directory / f"{item_id}.md"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        f"# {item_id} title\n\nType: {directory[:-1]}\nStatus: {status}\n"
        f"Last Updated: 2025-03-01\nCreated: 2025-03-01\nOwner: alice\nPriority: Low\n{extra}"
    )


@pytest.fixture
def project(tmp_path):
    docs_root = tmp_path / ".pythia" / "workflows"
    write_item(docs_root, "tasks", "task-2025-03-test", "Not Started")
    write_item(docs_root, "tasks", "task-2025-01-done", "Completed", "Completed At: 2025-01-10\n")
    write_item(docs_root, "tasks", "task-2025-02-hold", "Completed",
               "Completed At: 2025-02-01\n\nBlocks:\n- task-2025-03-test\n")
    write_item(docs_root, "ideas", "idea-2025-03-x", "Not Started")
    (docs_root / "status.md").write_text(REGISTRY)
    (docs_root / "report.md").write_text("# Report\n")
    return tmp_path


def run(project, *argv):
    return main(["-C", str(project), *argv])


def make_item(item_id, status="Completed", completed_at=None):
    return WorkItem(id=item_id, title=item_id, type="task", status=status,
                    last_updated="2025-03-01", created_at="2025-03-01",
                    completed_at=completed_at)


class TestArchiveCandidates:
    def test_completed_before(self):
        assert completed_before(make_item("a", completed_at="2025-03-01"), date(2025, 3, 1))
        assert not completed_before(make_item("a", completed_at="2025-03-02"), date(2025, 3, 1))
        assert not completed_before(make_item("a"), date(2025, 3, 1))

    def test_unparseable_date_is_not_old(self, caplog):
        assert not completed_before(make_item("a", completed_at="last week"), date(2025, 3, 1))
        assert "Unparseable Completed At" in caplog.text

    def test_only_completed_items(self):
        items = [make_item("a"), make_item("b", status="In Progress"), make_item("c", status="Archived")]
        result = find_archive_candidates(items, check_age=False, age_days=7, today=date(2025, 3, 10))
        assert [i.id for i in result] == ["a"]

    def test_age_filter(self):
        items = [make_item("old", completed_at="2025-03-01"), make_item("new", completed_at="2025-03-05"),
                 make_item("undated")]
        result = find_archive_candidates(items, check_age=True, age_days=7, today=date(2025, 3, 10))
        assert [i.id for i in result] == ["old"]


class TestUpdateCommand:
    def test_success(self, project, capsys):
        assert run(project, "update", "task-2025-03-test", "In Progress") == 0
        assert "Updated task-2025-03-test: In Progress" in capsys.readouterr().out

    def test_rejected(self, project, capsys):
        assert run(project, "update", "task-2025-03-test", "Completed") == 1
        out = capsys.readouterr().out
        assert "ERROR: Failed to update status: Invalid transition from Not Started to Completed" in out

    def test_not_found(self, project, capsys):
        assert run(project, "update", "task-2025-03-nope", "In Progress") == 1
        assert "Work item not found: task-2025-03-nope" in capsys.readouterr().out

    def test_stage_failure_reports_stale_files(self, project, capsys):
        (project / ".pythia" / "workflows" / "report.md").unlink()
        assert run(project, "update", "task-2025-03-test", "In Progress") == 1
        out = capsys.readouterr().out
        assert "Failed to update dependencies graph" in out
        assert "may be stale" in out

    def test_bad_project_dir(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["-C", str(tmp_path / "missing"), "list"])
        assert exc_info.value.code == 2


class TestReadCommands:
    def test_show(self, project, capsys):
        run(project, "update", "task-2025-03-test", "In Progress")
        capsys.readouterr()
        assert run(project, "show", "task-2025-03-test") == 0
        out = capsys.readouterr().out
        assert "Status:       In Progress" in out
        assert "-> Blocked  (needs --reason)" in out
        assert "-> Under Review" in out
        assert "Not Started -> In Progress" in out

    def test_show_missing(self, project, capsys):
        assert run(project, "show", "task-2025-03-nope") == 1

    def test_list_filters(self, project, capsys):
        assert run(project, "list", "--type", "idea") == 0
        out = capsys.readouterr().out
        assert "idea-2025-03-x" in out
        assert "task-2025-03-test" not in out
        assert "1 work item(s)" in out

    def test_list_unknown_status(self, project, capsys):
        assert run(project, "list", "--status", "Done") == 2

    def test_graph(self, project, capsys):
        assert run(project, "graph") == 0
        assert "(4 work items)" in capsys.readouterr().out
        assert "  task-2025-02-hold -.-> task-2025-03-test" in (
            project / ".pythia" / "workflows" / "report.md").read_text()

    def test_log_limit(self, project, capsys):
        run(project, "update", "task-2025-03-test", "In Progress")
        run(project, "update", "task-2025-03-test", "Under Review")
        capsys.readouterr()
        assert run(project, "log", "task-2025-03-test", "-n", "1") == 0
        out = capsys.readouterr().out.strip().splitlines()
        assert len(out) == 1
        assert out[0].endswith("In Progress -> Under Review")


class TestArchiveCommand:
    def test_dry_run_changes_nothing(self, project, capsys):
        assert run(project, "archive", "--dry-run") == 0
        out = capsys.readouterr().out
        assert "[DRY RUN] Would archive task-2025-01-done" in out
        assert "2 work item(s) would be archived" in out
        docs_root = project / ".pythia" / "workflows"
        assert load_work_item(docs_root, "task-2025-01-done").status == "Completed"

    def test_archives_and_skips_blockers(self, project, capsys):
        assert run(project, "archive") == 0
        out = capsys.readouterr().out
        assert "Archived task-2025-01-done" in out
        assert "[SKIP] task-2025-02-hold: Cannot archive item that blocks other items" in out
        assert "1 archived, 1 skipped" in out

        docs_root = project / ".pythia" / "workflows"
        archived = load_work_item(docs_root, "task-2025-01-done")
        assert archived.status == "Archived"
        assert archived.archived_at is not None
        assert load_work_item(docs_root, "task-2025-02-hold").status == "Completed"

    def test_schema_rejection_skipped_and_batch_continues(self, project, capsys):
        docs_root = project / ".pythia" / "workflows"
        (docs_root / "tasks" / "task-2025-01-bad.md").write_text(
            "# Bad\n\nType: task\nStatus: Completed\nPriority: Urgent\n"
        )
        assert run(project, "archive") == 0
        out = capsys.readouterr().out
        assert "[SKIP] task-2025-01-bad: [work_item] Refusing to write" in out
        assert "Archived task-2025-01-done" in out
        assert "1 archived, 2 skipped" in out
        assert load_work_item(docs_root, "task-2025-01-bad").status == "Completed"
