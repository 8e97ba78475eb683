"""Kubernetes job backend for delegated workspace analysis.

This module implements the JobBackend protocol with one batch/v1 Job per
workspace. The job runs ``python -m threadwise analyze <workspace>``, which
asks the API service to analyze that workspace, so each analysis runs under
its own retry and resource budget.

The official kubernetes client is synchronous; every call is pushed to a
worker thread with ``asyncio.to_thread``.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any

import structlog
from kubernetes import client as k8s_client
from kubernetes import config as k8s_config
from kubernetes.client.rest import ApiException
from kubernetes.config.config_exception import ConfigException

from ...config.schema import KubernetesConfig
from ...utils.async_helpers import JobSubmitError
from ...utils.security import to_dns_label, validate_workspace_id

log = structlog.get_logger()

APP_LABEL = "threadwise"
COMPONENT_LABEL = "workspace-analyzer"
LABEL_SELECTOR = f"app={APP_LABEL},component={COMPONENT_LABEL}"
FINISHED_CONDITIONS = frozenset({"Complete", "Failed"})


class KubernetesJobBackend:
    """Submits and reclaims analysis jobs in one namespace.

    Example:
        backend = KubernetesJobBackend(config.execution.kubernetes)
        name = await backend.submit_job("T01ABC")
        deleted = await backend.reclaim_completed()
    """

    def __init__(
        self,
        config: KubernetesConfig,
        batch_api: k8s_client.BatchV1Api | None = None,
    ) -> None:
        """Initialize the backend.

        Args:
            config: Namespace, image and resource settings.
            batch_api: Pre-built BatchV1Api. If None, one is created on first
                use from the in-cluster or local kubeconfig.
        """
        self._config = config
        self._batch_api = batch_api

    def _api(self) -> k8s_client.BatchV1Api:
        if self._batch_api is None:
            try:
                if self._config.in_cluster:
                    k8s_config.load_incluster_config()
                else:
                    k8s_config.load_kube_config()
            except ConfigException as e:
                raise JobSubmitError(
                    "Kubernetes config not found. Make sure kubectl is configured "
                    "or the service runs inside a cluster."
                ) from e
            self._batch_api = k8s_client.BatchV1Api()
        return self._batch_api

    def build_job_manifest(self, workspace_id: str, job_name: str) -> dict[str, Any]:
        """Build the Job manifest for one workspace analysis."""
        cfg = self._config
        labels = {
            "app": APP_LABEL,
            "component": COMPONENT_LABEL,
            "workspaceId": workspace_id,
        }
        return {
            "apiVersion": "batch/v1",
            "kind": "Job",
            "metadata": {
                "name": job_name,
                "namespace": cfg.namespace,
                "labels": labels,
            },
            "spec": {
                "ttlSecondsAfterFinished": cfg.ttl_seconds_after_finished,
                "backoffLimit": cfg.backoff_limit,
                "template": {
                    "metadata": {"labels": labels},
                    "spec": {
                        "restartPolicy": "OnFailure",
                        "containers": [
                            {
                                "name": "analyzer",
                                "image": cfg.image,
                                "command": ["python", "-m", "threadwise", "analyze"],
                                "args": [workspace_id, "--timeout", str(cfg.job_timeout)],
                                "env": [{"name": "API_URL", "value": cfg.service_url}],
                                "envFrom": [
                                    {"secretRef": {"name": cfg.secret_name, "optional": True}}
                                ],
                                "resources": {
                                    "requests": cfg.requests.model_dump(),
                                    "limits": cfg.limits.model_dump(),
                                },
                            }
                        ],
                    },
                },
            },
        }

    async def submit_job(self, workspace_id: str) -> str:
        """Create the analysis job for a workspace.

        Returns:
            Name of the created job.

        Raises:
            JobSubmitError: If the workspace id is invalid or the API rejects the job.
        """
        if not validate_workspace_id(workspace_id):
            raise JobSubmitError(f"Invalid workspace id: {workspace_id!r}")

        job_name = to_dns_label("workspace-analyzer", workspace_id, str(int(time.time() * 1000)))
        manifest = self.build_job_manifest(workspace_id, job_name)
        api = self._api()

        try:
            await asyncio.to_thread(
                api.create_namespaced_job,
                namespace=self._config.namespace,
                body=manifest,
            )
        except ApiException as e:
            log.error(
                "job_submit_failed",
                workspace_id=workspace_id,
                job_name=job_name,
                status=e.status,
                reason=e.reason,
            )
            raise JobSubmitError(f"Failed to create Kubernetes job {job_name}: {e.reason}") from e

        log.info(
            "job_submitted",
            workspace_id=workspace_id,
            job_name=job_name,
            namespace=self._config.namespace,
        )
        return job_name

    async def reclaim_completed(self) -> int:
        """Delete analysis jobs that have finished (best effort).

        Returns:
            Number of jobs deleted. Listing or deletion faults are logged.
        """
        namespace = self._config.namespace
        try:
            api = self._api()
            jobs = await asyncio.to_thread(
                api.list_namespaced_job,
                namespace=namespace,
                label_selector=LABEL_SELECTOR,
            )
        except (ApiException, JobSubmitError) as e:
            log.warning("job_list_failed", namespace=namespace, error=str(e))
            return 0

        deleted = 0
        for job in jobs.items:
            if not _is_finished(job):
                continue
            name = job.metadata.name
            try:
                await asyncio.to_thread(
                    api.delete_namespaced_job,
                    name=name,
                    namespace=namespace,
                    propagation_policy="Background",
                )
            except ApiException as e:
                # Already removed by the TTL controller
                if e.status != 404:
                    log.warning("job_delete_failed", job_name=name, error=str(e))
                continue
            deleted += 1
            log.debug("job_reclaimed", job_name=name)

        if deleted:
            log.info("jobs_reclaimed", namespace=namespace, count=deleted)
        return deleted


def _is_finished(job: Any) -> bool:
    conditions = (job.status.conditions if job.status else None) or []
    return any(c.type in FINISHED_CONDITIONS and c.status == "True" for c in conditions)
