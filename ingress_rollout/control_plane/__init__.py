"""
ingress_rollout/control_plane — rollout and placement policy for ingress controllers.

Public API:

    Topology:
        is_single_replica()     — placement preference + topology modes → bool
        single_replica()        — same, over IngressConfig / InfrastructureConfig

    Replicas:
        resolve_replicas()      — explicit count, else default replica policy
        determine_replicas()    — standard default replica policy (1 or 2)

    Policy:
        select_policy()         — strategy type → RolloutPolicy
        RolloutPolicy           — replicas + optional strategy + optional affinity
        RolloutTuning           — percentages and thresholds behind the table
        AffinityTemplate        — affinity minus the generation hash
        GenerationHashError     — raised when the hash step is skipped

    Service:
        compute_rollout_policy() — resolve + classify + select
        apply_rollout_policy()   — write a policy onto a Deployment
        RolloutPolicyService     — both, configured once
"""

from ingress_rollout.control_plane.topology import is_single_replica, single_replica
from ingress_rollout.control_plane.replicas import (
    DefaultReplicaPolicy,
    determine_replicas,
    resolve_replicas,
)
from ingress_rollout.control_plane.affinity import (
    AffinityTemplate,
    GenerationHashError,
    build_affinity_template,
)
from ingress_rollout.control_plane.policy_selector import (
    DEFAULT_TUNING,
    RolloutPolicy,
    RolloutTuning,
    select_policy,
)
from ingress_rollout.control_plane.rollout_service import (
    RolloutPolicyService,
    apply_rollout_policy,
    compute_rollout_policy,
)

__all__ = [
    "is_single_replica",
    "single_replica",
    "DefaultReplicaPolicy",
    "determine_replicas",
    "resolve_replicas",
    "AffinityTemplate",
    "GenerationHashError",
    "build_affinity_template",
    "DEFAULT_TUNING",
    "RolloutPolicy",
    "RolloutTuning",
    "select_policy",
    "RolloutPolicyService",
    "apply_rollout_policy",
    "compute_rollout_policy",
]
