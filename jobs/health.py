"""
Health check server for the sync scheduler.

Exposes scheduler state and the outcome of the last run of each job.
"""

import asyncio
from typing import Any

from aiohttp import web
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from loguru import logger

from app.utils.datetime_utils import utc_now

# Global scheduler reference for health checks
_scheduler: AsyncIOScheduler | None = None

# job id -> {"success", "finished_at", "error"}
_last_runs: dict[str, dict[str, Any]] = {}


def set_scheduler(scheduler: AsyncIOScheduler) -> None:
    """Register the scheduler instance for health checks."""
    global _scheduler
    _scheduler = scheduler
    logger.info("[Health] Scheduler registered for health checks")


def record_job_result(job_id: str, result: dict[str, Any]) -> None:
    """Remember the outcome of a job run."""
    _last_runs[job_id] = {
        "success": bool(result.get("success")),
        "finished_at": utc_now().isoformat(),
        "error": result.get("error"),
    }


async def health_handler(request: web.Request) -> web.Response:
    """Scheduler status, job list and last run outcomes."""
    if _scheduler is None:
        return web.json_response(
            {"status": "unhealthy", "error": "Scheduler not initialized"},
            status=503,
        )

    try:
        is_running = _scheduler.running
        jobs = _scheduler.get_jobs()
        job_info = [
            {
                "id": job.id,
                "name": job.name,
                "next_run_time": (
                    job.next_run_time.isoformat() if job.next_run_time else None
                ),
                "last_run": _last_runs.get(job.id),
            }
            for job in jobs
        ]

        return web.json_response(
            {
                "status": "healthy" if is_running else "stopped",
                "scheduler_running": is_running,
                "jobs_count": len(jobs),
                "jobs": job_info,
            }
        )
    except Exception as e:
        logger.error(f"[Health] Health check failed: {e}")
        return web.json_response(
            {"status": "unhealthy", "error": str(e)},
            status=503,
        )


async def readiness_handler(request: web.Request) -> web.Response:
    """Ready once the scheduler runs."""
    if _scheduler is None or not _scheduler.running:
        return web.json_response(
            {"status": "not_ready", "ready": False},
            status=503,
        )
    return web.json_response({"status": "ready", "ready": True})


async def liveness_handler(request: web.Request) -> web.Response:
    """The process answers."""
    return web.json_response({"status": "alive", "alive": True})


def create_health_app() -> web.Application:
    app = web.Application()
    app.router.add_get("/health", health_handler)
    app.router.add_get("/readiness", readiness_handler)
    app.router.add_get("/liveness", liveness_handler)
    return app


async def start_health_server(
    host: str = "0.0.0.0",
    port: int = 8081,
) -> web.AppRunner:
    """
    Start health check server.

    Args:
        host: Host to bind to
        port: Port to bind to

    Returns:
        AppRunner for cleanup
    """
    runner = web.AppRunner(create_health_app())
    await runner.setup()
    site = web.TCPSite(runner, host, port)
    await site.start()

    logger.info(f"[Health] Health check server started on {host}:{port}")
    return runner


async def stop_health_server(runner: web.AppRunner, timeout: int = 5) -> None:
    """
    Stop health check server gracefully.

    Args:
        runner: AppRunner to cleanup
        timeout: Maximum time to wait for cleanup in seconds
    """
    logger.info("[Health] Stopping health check server...")
    try:
        await asyncio.wait_for(runner.cleanup(), timeout=timeout)
        logger.info("[Health] Health check server stopped")
    except TimeoutError:
        logger.warning(f"[Health] Health server cleanup timed out after {timeout}s")
    except Exception as e:
        logger.error(f"[Health] Error stopping health check server: {e}")
