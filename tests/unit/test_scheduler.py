"""Tests for the scheduler, its health server and the sync task runners."""

from datetime import timedelta
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from aiohttp.test_utils import TestClient, TestServer

from app.config.settings import settings
from app.services.sync_context import SyncContext
from jobs import health
from jobs.scheduler import create_scheduler, make_job
from jobs.tasks import force_sync
from jobs.tasks.metrics_sync import run_metrics_sync
from jobs.tasks.order_history_sync import run_order_sync
from tests.fakes import FakeConnector, make_event


@pytest.fixture(autouse=True)
def reset_health_state(monkeypatch):
    monkeypatch.setattr(health, "_scheduler", None)
    monkeypatch.setattr(health, "_last_runs", {})


class TestCreateScheduler:
    """Tests for job registration."""

    def test_periodic_and_initial_jobs(self):
        config = settings.model_copy(update={"run_initial_sync": True})

        scheduler = create_scheduler(MagicMock(), config)

        jobs = {job.id: job for job in scheduler.get_jobs()}
        assert set(jobs) == {
            "metrics_sync",
            "order_sync",
            "volume_sync",
            "initial_metrics_sync",
            "initial_order_sync",
        }
        assert jobs["metrics_sync"].trigger.interval == timedelta(
            minutes=config.metrics_sync_interval_minutes
        )
        assert jobs["order_sync"].trigger.interval == timedelta(
            hours=config.order_sync_interval_hours
        )

    def test_without_initial_run(self):
        config = settings.model_copy(update={"run_initial_sync": False})

        scheduler = create_scheduler(MagicMock(), config)

        assert {job.id for job in scheduler.get_jobs()} == {
            "metrics_sync",
            "order_sync",
            "volume_sync",
        }


class TestMakeJob:
    """Tests for the job wrapper."""

    @pytest.mark.asyncio
    async def test_result_is_recorded(self):
        runner = AsyncMock(return_value={"success": True})
        context = MagicMock()

        await make_job("volume_sync", runner, context)()

        runner.assert_awaited_once_with(context)
        assert health._last_runs["volume_sync"]["success"] is True

    @pytest.mark.asyncio
    async def test_exception_does_not_escape(self):
        runner = AsyncMock(side_effect=RuntimeError("boom"))

        await make_job("order_sync", runner, MagicMock())()

        assert health._last_runs["order_sync"] == {
            "success": False,
            "finished_at": health._last_runs["order_sync"]["finished_at"],
            "error": "boom",
        }


class TestHealthServer:
    """Tests for health, readiness and liveness endpoints."""

    @pytest.mark.asyncio
    async def test_not_initialized(self):
        async with TestClient(TestServer(health.create_health_app())) as client:
            response = await client.get("/health")
            assert response.status == 503

            response = await client.get("/readiness")
            assert response.status == 503

            response = await client.get("/liveness")
            assert (await response.json())["alive"] is True

    @pytest.mark.asyncio
    async def test_running_scheduler(self):
        scheduler = MagicMock()
        scheduler.running = True
        scheduler.get_jobs.return_value = [
            SimpleNamespace(id="metrics_sync", name="Contract metrics sync", next_run_time=None)
        ]
        health.set_scheduler(scheduler)
        health.record_job_result("metrics_sync", {"success": True})

        async with TestClient(TestServer(health.create_health_app())) as client:
            body = await (await client.get("/health")).json()
            ready = await client.get("/readiness")

        assert body["status"] == "healthy"
        assert body["jobs_count"] == 1
        assert body["jobs"][0]["last_run"]["success"] is True
        assert ready.status == 200


class TestTaskRunners:
    """Tests for the async bodies shared by scheduler and queued tasks."""

    @pytest.mark.asyncio
    async def test_force_sync_runs_steps_in_order(self, monkeypatch):
        calls = []

        def step(name, success=True):
            async def run(context):
                calls.append(name)
                return {"success": success}

            return run

        monkeypatch.setattr(force_sync, "run_metrics_sync", step("metrics"))
        monkeypatch.setattr(force_sync, "run_order_sync", step("orders"))
        monkeypatch.setattr(force_sync, "run_volume_sync", step("volume", False))

        result = await force_sync.run_force_sync(MagicMock())

        assert calls == ["metrics", "orders", "volume"]
        assert result["success"] is False
        assert result["metrics"] == {"success": True}

    @pytest.mark.asyncio
    async def test_runner_reports_failure(self):
        context = MagicMock()
        context.session_maker.side_effect = RuntimeError("database down")

        result = await run_metrics_sync(context)

        assert result == {"success": False, "error": "database down"}

    @pytest.mark.asyncio
    async def test_order_sync_through_context(self, session_maker):
        connector = FakeConnector(events=[make_event(1, 150_000)])
        config = settings.model_copy(
            update={"initial_lookback_blocks": 100_000, "order_sync_batch_blocks": 50_000}
        )
        context = SyncContext(connector, MagicMock(), session_maker, config)

        result = await run_order_sync(context)

        assert result["success"] is True
        chain_result = next(iter(result["chains"].values()))
        assert chain_result["inserted"] == 1
