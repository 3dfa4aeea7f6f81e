"""Tests for the event-emitter (mocha style) reporter."""

from __future__ import annotations

from types import SimpleNamespace

from conftest import FakeHook, FakeSuite, FakeTest, read_event_log
from scout.reporting import EmitterReporter, RunnerEvent, get_test_id_for_title
from scout.reporting.report import EVENT_LOG_FILENAME


def make_reporter(runner, tmp_path, console):
    return EmitterReporter(runner, output_path=tmp_path, console=console)


class TestSubscription:
    def test_subscribes_to_every_lifecycle_event(self, emitter_runner, tmp_path, quiet_console):
        make_reporter(emitter_runner, tmp_path, quiet_console)

        assert set(emitter_runner.listeners) == {event.value for event in RunnerEvent}
        assert all(len(listeners) == 1 for listeners in emitter_runner.listeners.values())

    def test_announces_run_id(self, emitter_runner, tmp_path, quiet_console):
        reporter = make_reporter(emitter_runner, tmp_path, quiet_console)

        assert f"Scout test run ID: {reporter.run_id}" in quiet_console.file.getvalue()

    def test_report_root_path(self, emitter_runner, tmp_path, quiet_console):
        reporter = make_reporter(emitter_runner, tmp_path, quiet_console)

        assert reporter.report_root_path == tmp_path / f"scout-{reporter.run_id}"


class TestRunScenario:
    def test_passing_run(self, emitter_runner, tmp_path, quiet_console):
        reporter = make_reporter(emitter_runner, tmp_path, quiet_console)
        suite = FakeSuite("A", parent=FakeSuite("", root=True))
        test = FakeTest("B", parent=suite, duration=10)

        emitter_runner.emit("start")
        emitter_runner.emit("test", test)
        emitter_runner.emit("test end", test)
        emitter_runner.emit("end")

        docs = read_event_log(reporter.report_root_path / EVENT_LOG_FILENAME)
        assert [d["event"]["action"] for d in docs] == ["run_begin", "test_begin", "test_end", "run_end"]
        assert docs[-1]["test_run"]["status"] == "passed"
        assert docs[2]["test"]["status"] == "passed"
        assert docs[2]["test"]["duration"] == 10
        assert "error" not in docs[2]["event"]

    def test_run_id_constant_across_events(self, emitter_runner, tmp_path, quiet_console):
        reporter = make_reporter(emitter_runner, tmp_path, quiet_console)
        suite = FakeSuite("A")

        emitter_runner.emit("start")
        emitter_runner.emit("suite", suite)
        for title in ("one", "two"):
            test = FakeTest(title, parent=suite)
            emitter_runner.emit("test", test)
            emitter_runner.emit("test end", test)
        emitter_runner.emit("suite end", suite)
        emitter_runner.emit("end")

        docs = read_event_log(reporter.last_saved_path)
        assert len(docs) == 8
        assert {d["test_run"]["id"] for d in docs} == {reporter.run_id}

    def test_failing_run(self, emitter_runner, tmp_path, quiet_console):
        reporter = make_reporter(emitter_runner, tmp_path, quiet_console)
        emitter_runner.stats = SimpleNamespace(failures=1, duration=1234)
        test = FakeTest(
            "B",
            parent=FakeSuite("A"),
            passed=False,
            err=SimpleNamespace(message="expected true", stack="Error: expected true\n  at x"),
        )

        emitter_runner.emit("start")
        emitter_runner.emit("test", test)
        emitter_runner.emit("test end", test)
        emitter_runner.emit("end")

        docs = read_event_log(reporter.last_saved_path)
        assert docs[2]["test"]["status"] == "failed"
        assert docs[2]["event"]["error"] == {
            "message": "expected true",
            "stack_trace": "Error: expected true\n  at x",
        }
        assert docs[-1]["test_run"] == {"id": reporter.run_id, "status": "failed", "duration": 1234}

    def test_report_concluded_at_end(self, emitter_runner, tmp_path, quiet_console):
        reporter = make_reporter(emitter_runner, tmp_path, quiet_console)

        emitter_runner.emit("start")
        emitter_runner.emit("end")

        assert reporter.report.concluded
        assert len(reporter.report) == 0


class TestTranslation:
    def _run(self, runner, reporter, *emissions):
        runner.emit("start")
        for emission in emissions:
            runner.emit(*emission)
        runner.emit("end")
        return read_event_log(reporter.last_saved_path)

    def test_test_id_from_full_title(self, emitter_runner, tmp_path, quiet_console):
        reporter = make_reporter(emitter_runner, tmp_path, quiet_console)
        test = FakeTest("B", parent=FakeSuite("A", parent=FakeSuite("Root")))

        docs = self._run(emitter_runner, reporter, ("test", test))

        assert docs[1]["test"]["id"] == get_test_id_for_title("Root A B")
        assert docs[1]["suite"] == {"title": "Root A", "type": "suite"}

    def test_orphan_test_uses_unknown_suite(self, emitter_runner, tmp_path, quiet_console):
        reporter = make_reporter(emitter_runner, tmp_path, quiet_console)

        docs = self._run(emitter_runner, reporter, ("test", FakeTest("lonely")))

        assert docs[1]["suite"]["title"] == "unknown"

    def test_root_suite_type(self, emitter_runner, tmp_path, quiet_console):
        reporter = make_reporter(emitter_runner, tmp_path, quiet_console)
        root = FakeSuite("Root", root=True)

        docs = self._run(emitter_runner, reporter, ("suite", root), ("suite end", root))

        assert [d["event"]["action"] for d in docs[1:3]] == ["suite_begin", "suite_end"]
        assert docs[1]["suite"] == {"title": "Root", "type": "root"}

    def test_tags_from_title(self, emitter_runner, tmp_path, quiet_console):
        reporter = make_reporter(emitter_runner, tmp_path, quiet_console)
        test = FakeTest("logs in @smoke @ess", parent=FakeSuite("A"))

        docs = self._run(emitter_runner, reporter, ("test", test))

        assert docs[1]["test"]["tags"] == ["@smoke", "@ess"]

    def test_hooks_pending_and_retry(self, emitter_runner, tmp_path, quiet_console):
        reporter = make_reporter(emitter_runner, tmp_path, quiet_console)
        suite = FakeSuite("A")
        test = FakeTest("B", parent=suite)
        hook = FakeHook('"before each" hook', parent=suite, ctx_test=test)

        docs = self._run(
            emitter_runner,
            reporter,
            ("hook", hook),
            ("hook end", hook),
            ("pending", FakeTest("later", parent=suite)),
            ("retry", test, ValueError("flaky")),
        )

        actions = [d["event"]["action"] for d in docs]
        assert actions == ["run_begin", "hook_begin", "hook_end", "pending", "retry", "run_end"]
        assert docs[1]["test"]["step"] == {"title": '"before each" hook', "category": "hook"}
        assert docs[2]["test"]["step"]["duration"] == 2
        assert docs[1]["test"]["id"] == get_test_id_for_title("A B")
        assert docs[3]["test"]["status"] == "pending"
        assert docs[4]["event"]["error"]["message"] == "flaky"

    def test_malformed_payload_does_not_break_run(self, emitter_runner, tmp_path, quiet_console):
        reporter = make_reporter(emitter_runner, tmp_path, quiet_console)

        class Exploding:
            @property
            def title(self):
                raise RuntimeError("bad payload")

        emitter_runner.emit("start")
        emitter_runner.emit("test", Exploding())
        emitter_runner.emit("end")

        docs = read_event_log(reporter.last_saved_path)
        assert [d["event"]["action"] for d in docs] == ["run_begin", "run_end"]


class TestSaveFailure:
    def test_conclude_called_once_when_save_fails(self, emitter_runner, tmp_path, quiet_console):
        blocked = tmp_path / "blocked"
        blocked.write_text("not a directory")
        reporter = make_reporter(emitter_runner, blocked, quiet_console)

        calls = []
        conclude = reporter.report.conclude

        def counting_conclude():
            calls.append(1)
            conclude()

        reporter.report.conclude = counting_conclude

        emitter_runner.emit("start")
        emitter_runner.emit("end")

        assert calls == [1]
        assert reporter.report.concluded
        assert reporter.last_saved_path is None
