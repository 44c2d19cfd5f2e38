import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

from dep_updater import main as entrypoint
from dep_updater.domain.exceptions import PackageVersionNotFoundException
from dep_updater.domain.models import BatchSummary


class TestMain(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.repos_path = Path(self._tmp.name) / "repos.json"
        self.repos_path.write_text(json.dumps([{"repo": "o/app"}]), encoding="utf-8")
        dotenv = patch("dep_updater.main.load_dotenv")
        dotenv.start()
        self.addCleanup(dotenv.stop)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    async def test_missing_arguments_is_usage_error(self) -> None:
        with patch("sys.stderr"):
            with self.assertRaises(SystemExit) as ctx:
                await entrypoint.main(["react"])

        self.assertEqual(ctx.exception.code, 2)

    async def test_empty_package_name_is_usage_error(self) -> None:
        with patch.dict(os.environ, {"GITHUB_TOKEN": "tok"}, clear=True), \
                patch("sys.stderr"), \
                patch("dep_updater.main.BatchRunner.run", new_callable=AsyncMock) as run:
            with self.assertRaises(SystemExit) as ctx:
                await entrypoint.main(["", "1.0.0", "--repos", str(self.repos_path)])

        self.assertEqual(ctx.exception.code, 2)
        run.assert_not_awaited()

    async def test_empty_version_is_usage_error(self) -> None:
        with patch.dict(os.environ, {"GITHUB_TOKEN": "tok"}, clear=True), \
                patch("sys.stderr"), \
                patch("dep_updater.main.BatchRunner.run", new_callable=AsyncMock) as run:
            with self.assertRaises(SystemExit) as ctx:
                await entrypoint.main(["react", "", "--repos", str(self.repos_path)])

        self.assertEqual(ctx.exception.code, 2)
        run.assert_not_awaited()

    async def test_missing_token_exits_before_any_request(self) -> None:
        with patch.dict(os.environ, {}, clear=True), \
                patch("dep_updater.main.BatchRunner") as runner_cls:
            with self.assertRaises(SystemExit) as ctx:
                await entrypoint.main(["react", "18.2.0", "--repos", str(self.repos_path)])

        self.assertEqual(ctx.exception.code, 1)
        runner_cls.assert_not_called()

    async def test_unknown_version_exits_non_zero(self) -> None:
        with patch.dict(os.environ, {"GITHUB_TOKEN": "tok"}, clear=True), \
                patch("dep_updater.main.BatchRunner.run", new_callable=AsyncMock) as run:
            run.side_effect = PackageVersionNotFoundException("react", "99.0.0")
            with self.assertRaises(SystemExit) as ctx:
                await entrypoint.main(["react", "99.0.0", "--repos", str(self.repos_path)])

        self.assertEqual(ctx.exception.code, 1)

    async def test_completed_batch_returns_normally(self) -> None:
        summary = BatchSummary(package_name="react", version="18.2.0", results=[])
        with patch.dict(os.environ, {"GITHUB_TOKEN": "tok"}, clear=True), \
                patch("dep_updater.main.BatchRunner.run", new_callable=AsyncMock, return_value=summary) as run, \
                patch("dep_updater.main.BatchRunner.report") as report:
            await entrypoint.main(["react", "18.2.0", "--repos", str(self.repos_path)])

        targets = run.await_args.args[0]
        self.assertEqual([t.identifier for t in targets], ["o/app"])
        report.assert_called_once_with(summary)


class TestCli(unittest.TestCase):
    def test_keyboard_interrupt_exits_gracefully(self) -> None:
        with patch("dep_updater.main.configure_logging"), \
                patch("dep_updater.main.main", new=MagicMock()), \
                patch("dep_updater.main.asyncio.run", side_effect=KeyboardInterrupt):
            with self.assertLogs("dep_updater.main", level="INFO") as logs:
                entrypoint.cli()

        self.assertIn("interrupted by user", "\n".join(logs.output))
