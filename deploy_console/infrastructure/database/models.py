# deploy_console/infrastructure/database/models.py

from datetime import datetime, timezone

from sqlalchemy import BigInteger, Column, DateTime, Index, Integer, String, Text, UniqueConstraint

from deploy_console.infrastructure.database.session import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BaseModel(Base):
    __abstract__ = True

    id = Column(Integer, primary_key=True, autoincrement=True)

    gmt_create = Column(DateTime(timezone=True), nullable=False, default=_utcnow)


class OpLog(BaseModel):
    """Append-only operation audit. detail/extends/socket hold JSON text."""

    __tablename__ = "system_oplog"
    __table_args__ = (Index("ix_system_oplog_cluster_created", "cluster_code", "gmt_create"),)

    client_id = Column(String(256), nullable=False)
    op_name = Column(String(64), nullable=False)
    op_type = Column(String(64), nullable=False)
    op_log_level = Column(String(16), nullable=False)
    op_item = Column(String(64), nullable=False)
    op_item_id = Column(String(256), nullable=True)
    cluster_code = Column(String(128), nullable=True)
    user = Column(String(128), nullable=True)
    detail = Column(Text, nullable=True)
    extends = Column(Text, nullable=True)
    socket = Column(Text, nullable=True)


class AppPackage(BaseModel):
    """Uploaded package metadata, one row per (cluster_code, app_id)."""

    __tablename__ = "app_package"
    __table_args__ = (UniqueConstraint("cluster_code", "app_id", name="uq_app_package_cluster_app"),)

    cluster_code = Column(String(128), nullable=False)
    app_id = Column(String(256), nullable=False)
    app_name = Column(String(256), nullable=False)
    weight = Column(BigInteger, nullable=False, default=0)
    pkg = Column(String(1024), nullable=False)
    user = Column(String(128), nullable=True)
    gmt_modified = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)


class ClusterSnapshotRow(BaseModel):
    """Cluster composition snapshots; the newest row per cluster is current."""

    __tablename__ = "cluster_snapshot"
    __table_args__ = (Index("ix_cluster_snapshot_cluster_created", "cluster_code", "gmt_create"),)

    cluster_code = Column(String(128), nullable=False)
    info = Column(Text, nullable=False)
