"""
ingress_rollout/control_plane/policy_selector.py
─────────────────────────────────────────────────
RolloutPolicySelector: endpoint publishing strategy → rollout policy.

Decision table
───────────────
  single-replica topology      → reset to platform default strategy,
                                 no affinity
  HostNetwork                  → RollingUpdate, unavailable 25%, surge 0,
                                 no affinity
  Private / LoadBalancerService
  / NodePortService            → RollingUpdate, surge 25%,
                                 unavailable 50% (replicas < 4) or 25%,
                                 + affinity template
  anything else                → no override (strategy and affinity on the
                                 deployment are left as they are)

HostNetwork
────────────
HostNetwork ingress controllers are usually scaled to the size of the
node pool. Surge would need a spare node to schedule on, so the rollout
tolerates unavailability instead. No affinity either: the scheduler will
not put two pods that bind the same host ports on one node.

Service-backed strategies
──────────────────────────
The deployment controller must bring a new pod up before taking an old
one down, and the affinity template (see affinity.py) steers that new pod
onto a node that already has an old one.

Rounding dependency
────────────────────
The orchestrator rounds max_unavailable DOWN and max_surge UP. With 25%
unavailable and 2 or 3 replicas, the floor is 0 pods, and since the
required anti-affinity can block surge pods on small clusters the rollout
would stall. 50% below 4 replicas guarantees at least one pod can be
replaced. The crossover at 4 is tied to that rounding convention; a
platform that rounds differently needs the threshold re-derived, not
copied. RolloutTuning carries all of these values.

Output
───────
RolloutPolicy.strategy is None for "no override" and an empty
DeploymentStrategy() for the single-replica reset. RolloutPolicy.affinity
is an AffinityTemplate that the caller finalises with the generation hash.
select_policy() never raises; unknown strategy types fall into the
no-override arm so new platform types do not break reconciliation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from ingress_rollout.control_plane.affinity import (
    AFFINITY_WEIGHT,
    CONTROLLER_DEPLOYMENT_HASH_LABEL,
    CONTROLLER_DEPLOYMENT_LABEL,
    HOSTNAME_TOPOLOGY_KEY,
    AffinityTemplate,
    build_affinity_template,
)
from ingress_rollout.shared.models import (
    DeploymentStrategy,
    DeploymentStrategyType,
    EndpointPublishingStrategyType,
    IntOrString,
    RollingUpdateDeployment,
    percent,
)

logger = logging.getLogger(__name__)

LOW_REPLICA_THRESHOLD: int = 4
"""
Replica counts strictly below this use the wider max_unavailable.
Tuned against "round unavailable down, round surge up".
"""


@dataclass(frozen=True)
class RolloutTuning:
    """
    The numbers behind the decision table.

    Defaults reproduce the platform's policy; override fields to test or
    to retarget a platform with different rounding.
    """

    host_network_max_unavailable: IntOrString = percent(25)
    host_network_max_surge: IntOrString = 0

    max_surge: IntOrString = percent(25)
    low_replica_max_unavailable: IntOrString = percent(50)
    max_unavailable: IntOrString = percent(25)
    low_replica_threshold: int = LOW_REPLICA_THRESHOLD

    topology_key: str = HOSTNAME_TOPOLOGY_KEY
    affinity_weight: int = AFFINITY_WEIGHT
    deployment_label_key: str = CONTROLLER_DEPLOYMENT_LABEL
    hash_label_key: str = CONTROLLER_DEPLOYMENT_HASH_LABEL


DEFAULT_TUNING = RolloutTuning()


@dataclass(frozen=True)
class RolloutPolicy:
    """
    What the selector decided for one ingress controller.

    Fields:
        replicas  → Desired replica count. Always set.
        strategy  → Strategy to write, or None to leave the deployment's
                    strategy and affinity untouched. An empty
                    DeploymentStrategy() resets to the platform default.
        affinity  → Affinity template, or None. When set, the caller must
                    finalise it with the generation hash.
        reason    → Which branch produced this policy (for logs and tests).
    """

    replicas: int
    strategy: Optional[DeploymentStrategy] = None
    affinity: Optional[AffinityTemplate] = None
    reason: str = ""

    @property
    def sets_strategy(self) -> bool:
        """
        True when the caller must write strategy (and replace affinity).

        Also True for the single-replica reset to the platform default.
        """
        return self.strategy is not None

    @property
    def configure_affinity(self) -> bool:
        """True when the caller has to inject the generation hash."""
        return self.affinity is not None


def classify_strategy_type(strategy_type: str) -> Optional[EndpointPublishingStrategyType]:
    """The known strategy type for strategy_type, or None if unrecognised."""
    try:
        return EndpointPublishingStrategyType(strategy_type)
    except ValueError:
        return None


def select_policy(
    strategy_type: str,
    desired_replicas: int,
    is_single_replica: bool,
    deployment_name: str,
    tuning: RolloutTuning = DEFAULT_TUNING,
) -> RolloutPolicy:
    """
    Pick the rollout strategy and affinity template for an ingress controller.

    Args:
        strategy_type:     Endpoint publishing strategy type (may be unknown).
        desired_replicas:  Resolved replica count (see replicas.resolve_replicas).
        is_single_replica: Topology classifier result.
        deployment_name:   IngressController name used in the affinity selectors.
        tuning:            Threshold, percentage and label key overrides.

    Returns:
        RolloutPolicy. Never raises.
    """
    if is_single_replica:
        logger.debug("Single-replica topology: using platform default strategy")
        return RolloutPolicy(
            replicas=desired_replicas,
            strategy=DeploymentStrategy(),
            reason="single-replica",
        )

    kind = classify_strategy_type(strategy_type)

    match kind:
        case EndpointPublishingStrategyType.HOST_NETWORK:
            return RolloutPolicy(
                replicas=desired_replicas,
                strategy=_rolling_update(
                    max_unavailable=tuning.host_network_max_unavailable,
                    max_surge=tuning.host_network_max_surge,
                ),
                reason="host-network",
            )

        case (
            EndpointPublishingStrategyType.PRIVATE
            | EndpointPublishingStrategyType.LOAD_BALANCER_SERVICE
            | EndpointPublishingStrategyType.NODE_PORT_SERVICE
        ):
            max_unavailable = tuning.low_replica_max_unavailable
            if desired_replicas >= tuning.low_replica_threshold:
                max_unavailable = tuning.max_unavailable
            logger.debug(
                "%s with %d replicas: maxUnavailable=%s maxSurge=%s",
                kind.value, desired_replicas, max_unavailable, tuning.max_surge,
            )
            return RolloutPolicy(
                replicas=desired_replicas,
                strategy=_rolling_update(
                    max_unavailable=max_unavailable,
                    max_surge=tuning.max_surge,
                ),
                affinity=build_affinity_template(
                    deployment_name,
                    topology_key=tuning.topology_key,
                    weight=tuning.affinity_weight,
                    deployment_label_key=tuning.deployment_label_key,
                    hash_label_key=tuning.hash_label_key,
                ),
                reason="surge-with-affinity",
            )

        case _:
            logger.warning(
                "Unrecognised endpoint publishing strategy %r: leaving rollout strategy unchanged",
                strategy_type,
            )
            return RolloutPolicy(replicas=desired_replicas, reason="no-override")


def _rolling_update(max_unavailable: IntOrString, max_surge: IntOrString) -> DeploymentStrategy:
    return DeploymentStrategy(
        type=DeploymentStrategyType.ROLLING_UPDATE,
        rolling_update=RollingUpdateDeployment(
            max_unavailable=max_unavailable,
            max_surge=max_surge,
        ),
    )
