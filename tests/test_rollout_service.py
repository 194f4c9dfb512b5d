"""
tests/test_rollout_service.py
──────────────────────────────
End-to-end: compute_rollout_policy + apply_rollout_policy + RolloutPolicyService.

Test groups:
    Group 1 — compute_rollout_policy (topology, replicas, idempotence)
    Group 2 — apply_rollout_policy write rules
    Group 3 — RolloutPolicyService
"""

from __future__ import annotations

from typing import Optional

import pytest

from ingress_rollout.control_plane.affinity import GenerationHashError
from ingress_rollout.control_plane.rollout_service import (
    RolloutPolicyService,
    apply_rollout_policy,
    compute_rollout_policy,
)
from ingress_rollout.shared.models import (
    Affinity,
    Deployment,
    DeploymentStrategy,
    DeploymentStrategyType,
    InfrastructureConfig,
    IngressConfig,
    IngressControllerSpec,
    PodAntiAffinity,
    RollingUpdateDeployment,
)


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────

def _spec(strategy: str = "LoadBalancerService", replicas: Optional[int] = None) -> IngressControllerSpec:
    return IngressControllerSpec(name="default", replicas=replicas, endpoint_publishing_strategy=strategy)


def _ha() -> tuple[IngressConfig, InfrastructureConfig]:
    return IngressConfig(default_placement="Workers"), InfrastructureConfig()


def _sno() -> tuple[IngressConfig, InfrastructureConfig]:
    return (
        IngressConfig(default_placement="Workers"),
        InfrastructureConfig(control_plane_topology="SingleReplica", infrastructure_topology="SingleReplica"),
    )


def _custom_deployment() -> Deployment:
    """A deployment that already carries a non-default strategy and affinity."""
    return Deployment(
        name="router-default",
        replicas=9,
        strategy=DeploymentStrategy(
            type=DeploymentStrategyType.RECREATE,
        ),
        affinity=Affinity(pod_anti_affinity=PodAntiAffinity()),
    )


# ─────────────────────────────────────────────────────────────────────────────
# Group 1 — compute_rollout_policy
# ─────────────────────────────────────────────────────────────────────────────

class TestComputeRolloutPolicy:
    @pytest.mark.parametrize("strategy", ["HostNetwork", "Private", "LoadBalancerService", "NodePortService", "Unknown"])
    def test_single_replica_topology(self, strategy: str):
        policy = compute_rollout_policy(_spec(strategy), *_sno())
        assert policy.replicas == 1
        assert policy.strategy.is_platform_default
        assert policy.configure_affinity is False

    @pytest.mark.parametrize("strategy", ["HostNetwork", "Private", "LoadBalancerService", "NodePortService", "Unknown"])
    @pytest.mark.parametrize("topology", [_ha, _sno])
    def test_explicit_replicas_win(self, strategy: str, topology):
        policy = compute_rollout_policy(_spec(strategy, replicas=7), *topology())
        assert policy.replicas == 7

    def test_default_replicas_for_ha(self):
        policy = compute_rollout_policy(_spec("LoadBalancerService"), *_ha())
        assert policy.replicas == 2
        assert policy.strategy.rolling_update.max_unavailable == "50%"

    def test_explicit_replicas_feed_threshold(self):
        policy = compute_rollout_policy(_spec("LoadBalancerService", replicas=4), *_ha())
        assert policy.strategy.rolling_update.max_unavailable == "25%"

    def test_control_plane_placement(self):
        ingress = IngressConfig(default_placement="ControlPlane")
        infra = InfrastructureConfig(control_plane_topology="SingleReplica", infrastructure_topology="HighlyAvailable")
        policy = compute_rollout_policy(_spec("HostNetwork"), ingress, infra)
        assert policy.reason == "single-replica"
        assert policy.replicas == 1

    def test_custom_default_policy(self):
        policy = compute_rollout_policy(_spec("Private"), *_ha(), default_policy=lambda i, f: 6)
        assert policy.replicas == 6
        assert policy.strategy.rolling_update.max_unavailable == "25%"

    @pytest.mark.parametrize("strategy", ["HostNetwork", "Private", "LoadBalancerService", "NodePortService", "Unknown"])
    def test_idempotent(self, strategy: str):
        first = compute_rollout_policy(_spec(strategy, replicas=3), *_ha())
        second = compute_rollout_policy(_spec(strategy, replicas=3), *_ha())
        assert first == second
        assert repr(first) == repr(second)

    def test_idempotent_applied_deployment(self):
        dumps = []
        for _ in range(2):
            deployment = Deployment(name="router-default")
            policy = compute_rollout_policy(_spec("NodePortService", replicas=3), *_ha())
            apply_rollout_policy(deployment, policy, generation_hash="5c7d9")
            dumps.append(deployment.model_dump_json())
        assert dumps[0] == dumps[1]


# ─────────────────────────────────────────────────────────────────────────────
# Group 2 — apply_rollout_policy
# ─────────────────────────────────────────────────────────────────────────────

class TestApplyRolloutPolicy:
    def test_unknown_strategy_leaves_strategy_and_affinity_untouched(self):
        deployment = _custom_deployment()
        before_strategy, before_affinity = deployment.strategy, deployment.affinity
        policy = compute_rollout_policy(_spec("Unknown", replicas=3), *_ha())

        configured = apply_rollout_policy(deployment, policy)

        assert configured is False
        assert deployment.replicas == 3
        assert deployment.strategy == before_strategy
        assert deployment.affinity == before_affinity

    def test_service_strategy_writes_strategy_and_finalised_affinity(self):
        deployment = Deployment(name="router-default")
        policy = compute_rollout_policy(_spec("LoadBalancerService", replicas=3), *_ha())

        configured = apply_rollout_policy(deployment, policy, generation_hash="5c7d9")

        assert configured is True
        assert deployment.replicas == 3
        assert deployment.strategy.rolling_update == RollingUpdateDeployment(max_unavailable="50%", max_surge="25%")
        required = deployment.affinity.pod_anti_affinity.required_during_scheduling_ignored_during_execution
        assert ["5c7d9"] in [r.values for r in required[0].label_selector.match_expressions]

    def test_missing_hash_raises_and_leaves_deployment_alone(self):
        deployment = _custom_deployment()
        before = deployment.model_dump()
        policy = compute_rollout_policy(_spec("LoadBalancerService", replicas=3), *_ha())

        with pytest.raises(GenerationHashError):
            apply_rollout_policy(deployment, policy)
        with pytest.raises(GenerationHashError):
            apply_rollout_policy(deployment, policy, generation_hash="")

        assert deployment.model_dump() == before

    def test_unnamed_ingress_controller_raises_and_leaves_deployment_alone(self):
        deployment = _custom_deployment()
        before = deployment.model_dump()
        spec = IngressControllerSpec(name="", replicas=3, endpoint_publishing_strategy="LoadBalancerService")
        policy = compute_rollout_policy(spec, *_ha())

        with pytest.raises(GenerationHashError):
            apply_rollout_policy(deployment, policy, generation_hash="5c7d9")

        assert deployment.model_dump() == before

    def test_host_network_clears_stale_affinity(self):
        deployment = _custom_deployment()
        policy = compute_rollout_policy(_spec("HostNetwork", replicas=3), *_ha())

        configured = apply_rollout_policy(deployment, policy, generation_hash="ignored")

        assert configured is False
        assert deployment.affinity is None
        assert deployment.strategy.rolling_update.max_surge == 0

    def test_single_replica_resets_to_platform_default(self):
        deployment = _custom_deployment()
        policy = compute_rollout_policy(_spec("LoadBalancerService"), *_sno())

        configured = apply_rollout_policy(deployment, policy)

        assert configured is False
        assert deployment.replicas == 1
        assert deployment.strategy.is_platform_default
        assert deployment.affinity is None


# ─────────────────────────────────────────────────────────────────────────────
# Group 3 — RolloutPolicyService
# ─────────────────────────────────────────────────────────────────────────────

class TestRolloutPolicyService:
    def test_reconcile(self):
        service = RolloutPolicyService()
        deployment = Deployment(name="router-default")

        policy = service.reconcile(_spec("Private"), *_ha(), deployment, generation_hash="abc")

        assert policy.configure_affinity is True
        assert deployment.replicas == 2
        assert deployment.affinity is not None

    def test_configured_default_policy(self):
        service = RolloutPolicyService(default_policy=lambda i, f: 4)
        policy = service.compute(_spec("NodePortService"), *_ha())
        assert policy.replicas == 4
        assert policy.strategy.rolling_update.max_unavailable == "25%"

    def test_repr(self):
        assert repr(RolloutPolicyService()).startswith("RolloutPolicyService(")
