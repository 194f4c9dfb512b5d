"""
ingress_rollout/control_plane/rollout_service.py
─────────────────────────────────────────────────
RolloutPolicyService: the entry point a reconciler calls.

Pipeline
─────────
  1. resolve_replicas()    explicit spec.replicas, else default policy
  2. single_replica()      which topology governs, is it SingleReplica?
  3. select_policy()       decision table on the publishing strategy
  4. apply_rollout_policy() write the result onto the caller's Deployment,
                            finalising the affinity with the generation hash

Steps 1-3 are compute_rollout_policy(): pure, no I/O, safe to call from
many reconcile workers at once. Repeated calls with the same snapshot
return equal policies.

Step 4 mutates the caller's Deployment. Writes for one ingress controller
must be serialised by the caller; this module holds no locks.

Write rules for step 4
───────────────────────
  replicas            always written
  strategy is None    strategy and affinity left untouched
  strategy is set     strategy written (an empty strategy resets to the
                      platform default); affinity replaced by the
                      finalised template, or cleared when the policy
                      has none
"""

from __future__ import annotations

import logging
from typing import Optional

from ingress_rollout.control_plane.affinity import GenerationHashError
from ingress_rollout.control_plane.policy_selector import (
    DEFAULT_TUNING,
    RolloutPolicy,
    RolloutTuning,
    select_policy,
)
from ingress_rollout.control_plane.replicas import (
    DefaultReplicaPolicy,
    determine_replicas,
    resolve_replicas,
)
from ingress_rollout.control_plane.topology import single_replica
from ingress_rollout.shared.models import (
    Deployment,
    InfrastructureConfig,
    IngressConfig,
    IngressControllerSpec,
)

logger = logging.getLogger(__name__)


def compute_rollout_policy(
    spec: IngressControllerSpec,
    ingress_config: IngressConfig,
    infra_config: InfrastructureConfig,
    default_policy: DefaultReplicaPolicy = determine_replicas,
    tuning: RolloutTuning = DEFAULT_TUNING,
) -> RolloutPolicy:
    """
    Compute the rollout policy for one ingress controller snapshot.

    Args:
        spec:           The IngressController spec (replicas, strategy type).
        ingress_config: Cluster ingress config (default placement).
        infra_config:   Infrastructure status (topology modes).
        default_policy: Replica count when spec.replicas is None.
        tuning:         Decision table numbers.
    """
    desired_replicas = resolve_replicas(spec.replicas, ingress_config, infra_config, default_policy)
    policy = select_policy(
        spec.endpoint_publishing_strategy,
        desired_replicas,
        single_replica(ingress_config, infra_config),
        deployment_name=spec.name,
        tuning=tuning,
    )

    logger.info(
        "Rollout policy for ingresscontroller %s: replicas=%d branch=%s affinity=%s",
        spec.name, policy.replicas, policy.reason, policy.configure_affinity,
    )
    return policy


def apply_rollout_policy(
    deployment: Deployment,
    policy: RolloutPolicy,
    generation_hash: Optional[str] = None,
) -> bool:
    """
    Write a RolloutPolicy onto a caller-owned Deployment.

    Args:
        deployment:      Mutated in place.
        policy:          Output of compute_rollout_policy() / select_policy().
        generation_hash: Pod template hash of the rollout being applied.
                         Required when policy.configure_affinity is True.

    Returns:
        policy.configure_affinity, i.e. whether an affinity policy was attached.

    Raises:
        GenerationHashError: affinity is required but generation_hash is missing
                             or empty, or the policy names no ingress
                             controller. The deployment is not modified.
    """
    affinity = None
    if policy.affinity is not None:
        if generation_hash is None:
            raise GenerationHashError(
                f"Deployment {deployment.name!r} needs a generation hash to attach "
                f"its affinity policy, got none."
            )
        affinity = policy.affinity.with_generation_hash(generation_hash)

    deployment.replicas = policy.replicas

    if policy.strategy is None:
        logger.debug("Deployment %s: strategy and affinity left unchanged", deployment.name)
        return policy.configure_affinity

    deployment.strategy = policy.strategy
    deployment.affinity = affinity
    return policy.configure_affinity


class RolloutPolicyService:
    """
    Stateless wrapper around compute + apply for reconcilers.

    Holds the default replica policy and tuning so a reconciler can be
    configured once. One instance can be shared across workers.

    Usage:
        service = RolloutPolicyService()
        policy = service.reconcile(spec, ingress_config, infra_config,
                                   deployment, generation_hash="7d9f8b")
    """

    def __init__(
        self,
        default_policy: DefaultReplicaPolicy = determine_replicas,
        tuning: RolloutTuning = DEFAULT_TUNING,
    ) -> None:
        self.default_policy = default_policy
        self.tuning = tuning

    def compute(
        self,
        spec: IngressControllerSpec,
        ingress_config: IngressConfig,
        infra_config: InfrastructureConfig,
    ) -> RolloutPolicy:
        return compute_rollout_policy(
            spec,
            ingress_config,
            infra_config,
            default_policy=self.default_policy,
            tuning=self.tuning,
        )

    def reconcile(
        self,
        spec: IngressControllerSpec,
        ingress_config: IngressConfig,
        infra_config: InfrastructureConfig,
        deployment: Deployment,
        generation_hash: Optional[str] = None,
    ) -> RolloutPolicy:
        """Compute the policy and apply it to deployment. Returns the policy."""
        policy = self.compute(spec, ingress_config, infra_config)
        apply_rollout_policy(deployment, policy, generation_hash)
        return policy

    def __repr__(self) -> str:
        return f"RolloutPolicyService(tuning={self.tuning!r})"
