import unittest
from unittest.mock import AsyncMock, patch

from dep_updater.application.batch_runner import BatchRunner
from dep_updater.domain.exceptions import PackageVersionNotFoundException, SourceControlException
from dep_updater.domain.models import BatchSummary, RepositoryResult, RepositoryTarget


class _FakePipeline:
    def __init__(self, failing=(), skipping=()) -> None:
        self.failing = set(failing)
        self.skipping = set(skipping)
        self.seen = []

    async def run(self, session, target, package_name, new_version):
        self.seen.append(target.identifier)
        if target.identifier in self.failing:
            raise SourceControlException(f"GET /repos/{target.identifier}: Bad credentials", status=401)
        if target.identifier in self.skipping:
            return RepositoryResult.skip(target.identifier, "already up to date")
        return RepositoryResult.completed(target.identifier, f"https://github.com/{target.identifier}/pull/1")


class _FakeRegistry:
    def __init__(self, exists: bool) -> None:
        self._exists = exists
        self.calls = 0

    async def exists(self, session, package_name, version) -> bool:
        self.calls += 1
        return self._exists


def _targets(*names):
    return [RepositoryTarget(identifier=name) for name in names]


class TestBatchRunner(unittest.IsolatedAsyncioTestCase):
    async def test_one_failure_does_not_stop_the_batch(self) -> None:
        pipeline = _FakePipeline(failing={"o/b"})
        runner = BatchRunner(github_client=None, registry_client=_FakeRegistry(True), pipeline=pipeline)

        results = await runner.run_all(None, _targets("o/a", "o/b", "o/c"), "react", "18.2.0")

        self.assertEqual(len(results), 3)
        self.assertEqual([r.repository for r in results], ["o/a", "o/b", "o/c"])
        self.assertEqual([r.success for r in results], [True, False, True])
        self.assertIn("Bad credentials", results[1].error)
        self.assertEqual(pipeline.seen, ["o/a", "o/b", "o/c"])

    async def test_unexpected_exceptions_are_isolated(self) -> None:
        class _Exploding(_FakePipeline):
            async def run(self, session, target, package_name, new_version):
                if target.identifier == "o/a":
                    raise KeyError("object")
                return await super().run(session, target, package_name, new_version)

        runner = BatchRunner(github_client=None, registry_client=_FakeRegistry(True), pipeline=_Exploding())

        results = await runner.run_all(None, _targets("o/a", "o/b"), "react", "18.2.0")

        self.assertFalse(results[0].success)
        self.assertTrue(results[1].success)

    async def test_run_returns_partitioned_summary(self) -> None:
        pipeline = _FakePipeline(failing={"o/c"}, skipping={"o/b"})
        registry = _FakeRegistry(True)
        runner = BatchRunner(github_client=None, registry_client=registry, pipeline=pipeline)

        summary = await runner.run(_targets("o/a", "o/b", "o/c", "o/d"), "react", "18.2.0")

        self.assertEqual(registry.calls, 1)
        self.assertEqual([r.repository for r in summary.successful], ["o/a", "o/d"])
        self.assertEqual([r.repository for r in summary.skipped], ["o/b"])
        self.assertEqual([r.repository for r in summary.failed], ["o/c"])

    async def test_missing_version_stops_before_any_repository(self) -> None:
        pipeline = _FakePipeline()
        runner = BatchRunner(github_client=None, registry_client=_FakeRegistry(False), pipeline=pipeline)

        with patch.object(runner, "run_all", new_callable=AsyncMock) as run_all:
            with self.assertRaises(PackageVersionNotFoundException):
                await runner.run(_targets("o/a", "o/b"), "react", "99.0.0")

        run_all.assert_not_called()
        self.assertEqual(pipeline.seen, [])


class TestReport(unittest.TestCase):
    def test_report_lists_each_category(self) -> None:
        summary = BatchSummary(package_name="react", version="18.2.0", results=[
            RepositoryResult.completed("o/a", "https://github.com/o/a/pull/1"),
            RepositoryResult.skip("o/b", "not found in dependencies"),
            RepositoryResult.failure("o/c", "Bad credentials"),
        ])

        with self.assertLogs("dep_updater.application.batch_runner", level="INFO") as logs:
            BatchRunner.report(summary)

        output = "\n".join(logs.output)
        self.assertIn("Summary: react@18.2.0", output)
        self.assertIn("Successful: 1", output)
        self.assertIn("o/a (https://github.com/o/a/pull/1)", output)
        self.assertIn("o/b: not found in dependencies", output)
        self.assertIn("Failed: 1", output)
        self.assertIn("o/c: Bad credentials", output)
