"""
ingress_rollout/control_plane/affinity.py
──────────────────────────────────────────
Affinity policy for surge-based rolling updates.

What the policy does
─────────────────────
During a rolling update we want each new pod to land on a node that
already runs an old pod of the same ingress controller, and we never want
two pods of the same generation on one node. Two terms get us there:

  1. Preferred pod affinity (weight 100, per hostname):
       deployment label In [<name>]  AND  hash label NotIn [<hash>]
     → pull new pods toward nodes hosting ANY other generation.

  2. Required pod anti-affinity (per hostname):
       deployment label In [<name>]  AND  hash label In [<hash>]
     → never co-locate two pods of the same generation.

Combined with maxSurge > 0, a node that had local endpoints at the start
of the rollout keeps them during and after it.

Two-step construction
──────────────────────
<hash> identifies the pod template generation. It belongs to the
deployment's rollout history, not to the policy, so the selector returns
an AffinityTemplate with no hash at all. The only way to get an Affinity
out of it is with_generation_hash(), which refuses an empty hash or an
empty ingress controller name. A selector with a missing value would match
every pod (NotIn []) or no pod (In [""]), and that cannot be produced
through this API.
"""

from __future__ import annotations

from dataclasses import dataclass

from ingress_rollout.shared.models import (
    Affinity,
    LabelSelector,
    LabelSelectorOperator,
    LabelSelectorRequirement,
    PodAffinity,
    PodAffinityTerm,
    PodAntiAffinity,
    WeightedPodAffinityTerm,
)

CONTROLLER_DEPLOYMENT_LABEL: str = "ingresscontroller.operator.openshift.io/deployment-ingresscontroller"
"""Pod label carrying the owning IngressController's name."""

CONTROLLER_DEPLOYMENT_HASH_LABEL: str = "ingresscontroller.operator.openshift.io/hash"
"""Pod label carrying the pod template generation hash."""

HOSTNAME_TOPOLOGY_KEY: str = "kubernetes.io/hostname"

AFFINITY_WEIGHT: int = 100


class GenerationHashError(Exception):
    """
    Raised when the affinity policy cannot be finalised: the generation hash
    step was skipped or given an empty value, or the template names no
    ingress controller.

    Attributes:
        reason: Human-readable explanation.
    """

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


@dataclass(frozen=True)
class AffinityTemplate:
    """
    The affinity policy minus the generation hash.

    Produced by build_affinity_template(); finalised by the caller with
    with_generation_hash() once the deployment's hash is known.
    """

    deployment_name: str
    deployment_label_key: str = CONTROLLER_DEPLOYMENT_LABEL
    hash_label_key: str = CONTROLLER_DEPLOYMENT_HASH_LABEL
    topology_key: str = HOSTNAME_TOPOLOGY_KEY
    weight: int = AFFINITY_WEIGHT

    def with_generation_hash(self, generation_hash: str) -> Affinity:
        """
        Finalise the template into a concrete Affinity.

        Args:
            generation_hash: Hash label value of the pod template being rolled out.

        Raises:
            GenerationHashError: if generation_hash or deployment_name is empty.
        """
        if not self.deployment_name:
            raise GenerationHashError(
                "Affinity needs a non-empty ingress controller name; "
                "an empty name would select no pods in either term."
            )
        if not generation_hash:
            raise GenerationHashError(
                f"Affinity for {self.deployment_name!r} needs a non-empty generation hash; "
                f"an empty hash would select every pod (NotIn) or none (In)."
            )

        colocate_with_other_generations = WeightedPodAffinityTerm(
            weight=self.weight,
            pod_affinity_term=self._term(LabelSelectorOperator.NOT_IN, generation_hash),
        )
        spread_same_generation = self._term(LabelSelectorOperator.IN, generation_hash)

        return Affinity(
            pod_affinity=PodAffinity(
                preferred_during_scheduling_ignored_during_execution=[colocate_with_other_generations],
            ),
            pod_anti_affinity=PodAntiAffinity(
                required_during_scheduling_ignored_during_execution=[spread_same_generation],
            ),
        )

    def _term(self, hash_operator: LabelSelectorOperator, generation_hash: str) -> PodAffinityTerm:
        return PodAffinityTerm(
            topology_key=self.topology_key,
            label_selector=LabelSelector(
                match_expressions=[
                    LabelSelectorRequirement(
                        key=self.deployment_label_key,
                        operator=LabelSelectorOperator.IN,
                        values=[self.deployment_name],
                    ),
                    LabelSelectorRequirement(
                        key=self.hash_label_key,
                        operator=hash_operator,
                        values=[generation_hash],
                    ),
                ],
            ),
        )


def build_affinity_template(
    deployment_name: str,
    topology_key: str = HOSTNAME_TOPOLOGY_KEY,
    weight: int = AFFINITY_WEIGHT,
    deployment_label_key: str = CONTROLLER_DEPLOYMENT_LABEL,
    hash_label_key: str = CONTROLLER_DEPLOYMENT_HASH_LABEL,
) -> AffinityTemplate:
    """Affinity template for the ingress controller named deployment_name."""
    return AffinityTemplate(
        deployment_name=deployment_name,
        deployment_label_key=deployment_label_key,
        hash_label_key=hash_label_key,
        topology_key=topology_key,
        weight=weight,
    )
