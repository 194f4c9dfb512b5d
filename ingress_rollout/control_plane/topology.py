"""
ingress_rollout/control_plane/topology.py
──────────────────────────────────────────
Topology classification: is the ingress controller running without
redundancy?

The cluster reports two topology modes, one for the control plane and one
for the worker infrastructure. The default placement preference decides
which of them governs ingress controller pods:

  default_placement == "ControlPlane"  → control_plane_topology
  anything else (incl. unset)          → infrastructure_topology

Only the exact value "SingleReplica" counts as single-replica. Unknown or
empty modes fall through to False so the caller gets the highly-available
(more conservative) rollout policy.
"""

from __future__ import annotations

from ingress_rollout.shared.models import (
    DefaultPlacement,
    InfrastructureConfig,
    IngressConfig,
    TopologyMode,
)


def is_single_replica(
    default_placement: str,
    control_plane_topology: str,
    infrastructure_topology: str,
) -> bool:
    """
    Return True iff the placement-selected topology is SingleReplica.

    Args:
        default_placement:       Placement preference from the ingress config.
        control_plane_topology:  Control-plane topology mode.
        infrastructure_topology: Infrastructure topology mode.
    """
    topology = infrastructure_topology
    if default_placement == DefaultPlacement.CONTROL_PLANE:
        topology = control_plane_topology

    return topology == TopologyMode.SINGLE_REPLICA


def single_replica(ingress_config: IngressConfig, infra_config: InfrastructureConfig) -> bool:
    """is_single_replica() over the two config snapshots."""
    return is_single_replica(
        ingress_config.default_placement,
        infra_config.control_plane_topology,
        infra_config.infrastructure_topology,
    )
