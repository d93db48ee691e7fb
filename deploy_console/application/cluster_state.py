"""Read the current app composition of a cluster through its management API."""

from typing import Any, Dict, List, Optional

from deploy_console.application.exceptions import RemoteMalformedResponseError
from deploy_console.application.remote_caller import RemoteCaller, raise_for_outcome
from deploy_console.domain.models.cluster import ClusterEndpoint, merge_app_info

APPS_PATH = "/api/apps"


def _node_reports(data: Any) -> Optional[List[Dict[str, Any]]]:
    """The per-node reports of an apps payload, or None when their shape is wrong."""
    if not isinstance(data, dict):
        return None
    reports = data.get("success") or []
    if not isinstance(reports, list):
        return None
    for report in reports:
        if not isinstance(report, dict):
            return None
        apps = report.get("apps") or []
        if not isinstance(apps, list) or not all(isinstance(app, dict) for app in apps):
            return None
    return reports


async def fetch_cluster_apps(
    remote: RemoteCaller,
    endpoint: ClusterEndpoint,
    timeout_ms: Optional[int] = None,
) -> Dict[str, Any]:
    """
    GET /api/apps and merge the per-node reports.
    Returns {"ips": [...], "apps": [...], "error": [...]}; raises ActionError on failure.
    """
    outcome = await remote.invoke(endpoint, APPS_PATH, method="GET", timeout_ms=timeout_ms)
    data = raise_for_outcome(outcome).data
    reports = _node_reports(data)
    if reports is None:
        raise RemoteMalformedResponseError(f"unexpected apps payload from {endpoint.cluster_code}")
    merged = merge_app_info(reports)
    merged["error"] = data.get("error") or []
    return merged
