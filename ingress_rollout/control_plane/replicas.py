"""
ingress_rollout/control_plane/replicas.py
──────────────────────────────────────────
Replica resolution: explicit user intent first, default policy second.

resolve_replicas() does not decide single- vs multi-replica defaults
itself. It only mediates between the user's explicit count and a default
replica policy, which is pluggable:

    DefaultReplicaPolicy = Callable[[IngressConfig, InfrastructureConfig], int]

determine_replicas() is the platform's standard default policy and is used
when the caller does not supply one.
"""

from __future__ import annotations

from typing import Callable, Optional

from ingress_rollout.control_plane.topology import single_replica
from ingress_rollout.shared.models import InfrastructureConfig, IngressConfig

DefaultReplicaPolicy = Callable[[IngressConfig, InfrastructureConfig], int]

SINGLE_REPLICA_DEFAULT: int = 1
"""Default replica count when the governing topology is SingleReplica."""

HIGHLY_AVAILABLE_DEFAULT: int = 2
"""Default replica count for every other topology."""


def determine_replicas(ingress_config: IngressConfig, infra_config: InfrastructureConfig) -> int:
    """
    The standard default replica policy.

    One replica when the placement-selected topology is SingleReplica
    (there is only one node to run it on), two otherwise.
    """
    if single_replica(ingress_config, infra_config):
        return SINGLE_REPLICA_DEFAULT
    return HIGHLY_AVAILABLE_DEFAULT


def resolve_replicas(
    explicit_count: Optional[int],
    ingress_config: IngressConfig,
    infra_config: InfrastructureConfig,
    default_policy: DefaultReplicaPolicy = determine_replicas,
) -> int:
    """
    Return the replica count the deployment should run.

    An explicit count always wins and is returned unchanged, even when it
    disagrees with the topology (e.g. 3 replicas on a single-node cluster).
    Validation of that combination belongs to the API layer, not here.

    Args:
        explicit_count: IngressController spec.replicas. None = unset.
        ingress_config: Ingress config snapshot (placement preference).
        infra_config:   Infrastructure snapshot (topology modes).
        default_policy: Called with the same snapshot when explicit_count is None.
    """
    if explicit_count is not None:
        return explicit_count

    return default_policy(ingress_config, infra_config)
