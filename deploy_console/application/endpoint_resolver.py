"""Cluster code -> connection configuration. Loaded once; no I/O per lookup."""

from typing import Dict, List, Mapping

from deploy_console.application.exceptions import EndpointNotFoundError
from deploy_console.config.settings import AppSettings, ClusterSettings
from deploy_console.domain.models.cluster import ClusterEndpoint


class EndpointResolver:
    """Immutable lookup table of configured clusters."""

    def __init__(self, clusters: Mapping[str, ClusterSettings]) -> None:
        self._endpoints: Dict[str, ClusterEndpoint] = {
            code: ClusterEndpoint(
                cluster_code=code,
                base_address=cfg.endpoint.rstrip("/"),
                auth_token=cfg.token,
                name=cfg.name or code,
            )
            for code, cfg in clusters.items()
        }

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "EndpointResolver":
        return cls(settings.clusters)

    def resolve(self, cluster_code: str) -> ClusterEndpoint:
        """Raises EndpointNotFoundError (code ERROR) when the cluster is not configured."""
        endpoint = self._endpoints.get(cluster_code)
        if endpoint is None:
            raise EndpointNotFoundError(f"cluster not found: {cluster_code}")
        return endpoint

    def known_codes(self) -> List[str]:
        return sorted(self._endpoints)
