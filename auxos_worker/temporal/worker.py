"""Temporal worker service for document extraction.

This worker:
- Connects to the Temporal server with bounded retries
- Registers every workflow from the WorkflowRegistry and the extraction activities
- Polls the configured task queue (agent-queue by default)
- Serves a small FastAPI health check beside the worker
"""

import asyncio
from typing import Optional

import uvicorn
from fastapi import FastAPI
from temporalio.client import Client
from temporalio.worker import Worker
from temporalio.worker.workflow_sandbox import SandboxedWorkflowRunner, SandboxRestrictions

from auxos_worker.core.config import Settings, settings
from auxos_worker.temporal.activities.extraction import DocumentExtractionActivities
from auxos_worker.temporal.core.constants import DEFAULT_TASK_QUEUE
from auxos_worker.temporal.core.workflow_registry import WorkflowRegistry

# Importing the workflows package registers its workflows
import auxos_worker.temporal.workflows  # noqa: F401
from auxos_worker.utils.logging import get_logger

logger = get_logger(__name__)

# Create a minimal FastAPI app for health checks
app = FastAPI(title="Auxos Extraction Worker Health Check")


@app.get("/health")
async def health():
    return {"status": "ok", "service": "extraction-worker"}


@app.get("/")
async def root():
    return {"message": "Extraction worker is running", "health": "/health"}


async def run_health_check_server(port: Optional[int] = None):
    """Run the health check server."""
    port = port or settings.health_port
    logger.info(f"Starting health check server on port {port}")
    config = uvicorn.Config(app, host="0.0.0.0", port=port, log_level="info")
    server = uvicorn.Server(config)
    await server.serve()


async def connect_temporal(app_settings: Settings = settings) -> Client:
    """Connect to Temporal, retrying while the server comes up."""
    max_retries = app_settings.connect_max_retries
    retry_delay = app_settings.connect_retry_delay
    target_host = app_settings.temporal.target_host

    for attempt in range(max_retries):
        try:
            logger.info(f"Connecting to Temporal server at {target_host} (Attempt {attempt + 1}/{max_retries})")
            return await Client.connect(
                target_host=target_host,
                namespace=app_settings.temporal.namespace,
            )
        except Exception as e:
            if attempt < max_retries - 1:
                logger.warning(f"Connection attempt {attempt + 1} failed: {e}. Retrying in {retry_delay}s...")
                await asyncio.sleep(retry_delay)
            else:
                logger.error(f"Failed to connect to Temporal server after {max_retries} attempts: {e}")
                raise


def build_worker(client: Client, app_settings: Settings = settings) -> Worker:
    """Create the worker for the configured task queue."""
    task_queue = app_settings.temporal_task_queue
    # Workflows on the default queue follow TEMPORAL_TASK_QUEUE
    workflows = WorkflowRegistry.workflows_for_queues([DEFAULT_TASK_QUEUE, task_queue])
    activities = DocumentExtractionActivities.from_settings(app_settings).as_list()

    logger.info(
        f"Registering {len(workflows)} workflows and {len(activities)} activities on {task_queue}",
        extra={"workflows": [w.__name__ for w in workflows]},
    )

    return Worker(
        client,
        task_queue=task_queue,
        workflows=workflows,
        activities=activities,
        max_concurrent_activities=10,
        max_concurrent_workflow_tasks=20,
        workflow_runner=SandboxedWorkflowRunner(
            restrictions=SandboxRestrictions.default.with_passthrough_all_modules()
        ),
    )


async def run_worker():
    """Connect to Temporal and run the worker."""
    client = await connect_temporal()
    logger.info("Successfully connected to Temporal server")

    worker = build_worker(client)

    logger.info("=" * 60)
    logger.info("Temporal Worker Initialized Successfully")
    logger.info("=" * 60)
    logger.info(f"Connected to: {settings.temporal.target_host}")
    logger.info(f"Task Queue: {settings.temporal_task_queue}")
    logger.info(f"LLM provider: {settings.llm_provider} (key present: {bool(settings.llm.api_key)})")
    logger.info("=" * 60)
    logger.info("Worker is now polling for tasks...")
    logger.info("Press Ctrl+C to stop")
    logger.info("=" * 60)

    await worker.run()


async def main():
    """Start the health server and the worker."""
    await asyncio.gather(
        run_health_check_server(),
        run_worker(),
    )


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("\nWorker stopped by user")
    except Exception as e:
        logger.error(f"Worker failed: {e}", exc_info=True)
        raise
