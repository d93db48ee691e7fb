"""Domain models for clusters, app packages and snapshots."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

DEFAULT_VERSION = "0.0.0"
DEFAULT_BUILD = "0"
# Each version component (and the build number) occupies four decimal digits of the weight.
_WEIGHT_SLOT = 10_000


@dataclass(frozen=True)
class ClusterEndpoint:
    """Resolved connection configuration for one cluster. Immutable per configuration load."""

    cluster_code: str
    base_address: str
    auth_token: Optional[str] = None
    name: Optional[str] = None


@dataclass(frozen=True)
class AppInfo:
    """Parsed app id of the form ``<name>_<version>_<build>``."""

    id: str
    name: str
    version: str
    build: str
    weight: int


def _numeric(part: str) -> int:
    return min(int(part), _WEIGHT_SLOT - 1) if part.isdigit() else 0


def app_weight(version: str, build: str) -> int:
    """Sortable weight: later versions (then later builds) weigh more."""
    parts = (version.split(".") + ["0", "0", "0"])[:3]
    weight = 0
    for part in [*parts, build]:
        weight = weight * _WEIGHT_SLOT + _numeric(part)
    return weight


def parse_app_id(app_id: str) -> AppInfo:
    """
    Split an app id into name, version and build.
    ``simple-app_1.0.0_0`` -> (simple-app, 1.0.0, 0); ``simple-app_1.0.0`` -> build 0;
    ``simple-app`` -> version 0.0.0, build 0. Names may themselves contain underscores.
    """
    pieces = app_id.split("_")
    if len(pieces) >= 3:
        name, version, build = "_".join(pieces[:-2]), pieces[-2], pieces[-1]
    elif len(pieces) == 2:
        name, version, build = pieces[0], pieces[1], DEFAULT_BUILD
    else:
        name, version, build = app_id, DEFAULT_VERSION, DEFAULT_BUILD
    return AppInfo(
        id=app_id,
        name=name,
        version=version,
        build=build,
        weight=app_weight(version, build),
    )


@dataclass(frozen=True)
class AppPackageRecord:
    """Metadata for one uploaded package. Unique per (cluster_code, app_id)."""

    cluster_code: str
    app_id: str
    app_name: str
    weight: int
    package_path: str
    uploaded_by: str
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class ClusterSnapshot:
    """Cluster app composition at a point in time. Newest snapshot per cluster wins."""

    cluster_code: str
    apps: List[Dict[str, Any]]
    ips: List[str] = field(default_factory=list)
    created_at: Optional[datetime] = None


def merge_app_info(reports: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Merge per-node app reports (``[{"ip": ..., "apps": [...]}, ...]``) into one
    cluster-wide view: each app id appears once with a ``cluster`` list of
    per-node entries. Apps are ordered by name, newest version first.
    """
    ips: List[str] = []
    merged: Dict[str, Dict[str, Any]] = {}
    for report in reports:
        ip = report.get("ip")
        if ip is not None and ip not in ips:
            ips.append(ip)
        for app in report.get("apps") or []:
            app_id = app.get("appId") or app.get("name")
            if not app_id:
                continue
            info = parse_app_id(app_id)
            entry = merged.setdefault(
                app_id,
                {
                    "appId": app_id,
                    "name": app.get("name") or info.name,
                    "version": info.version,
                    "buildNum": info.build,
                    "weight": info.weight,
                    "cluster": [],
                },
            )
            node = {k: v for k, v in app.items() if k not in ("appId", "name")}
            node["ip"] = ip
            entry["cluster"].append(node)
    apps = sorted(merged.values(), key=lambda a: (a["name"], -a["weight"]))
    return {"ips": ips, "apps": apps}
