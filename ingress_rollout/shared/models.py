"""
ingress_rollout/shared/models.py
────────────────────────────────
Every data structure the rollout policy core reads or writes.

Design philosophy
-----------------
Inputs are snapshots the reconciler hands us (the ingress controller spec,
the cluster ingress config, the infrastructure status). Outputs are a
RolloutPolicy record plus the handful of deployment fields it is allowed
to touch. Nothing in here talks to an API server.

Field names are snake_case Python; the orchestrator's camelCase shows up
only in the enum *values* (e.g. "RollingUpdate", "NotIn") so that a
serialised model is readable next to a real Deployment manifest.

Reading guide
-------------
Read top-to-bottom. Each model builds on the ones above it.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# ─────────────────────────────────────────────────────────────────────────────
# SECTION 1: ENUMERATIONS
# ─────────────────────────────────────────────────────────────────────────────

class EndpointPublishingStrategyType(str, Enum):
    """
    How the ingress controller's endpoints are exposed.

    HOST_NETWORK            → Pods bind node ports directly.
    PRIVATE                 → Cluster-internal service only.
    LOAD_BALANCER_SERVICE   → Cloud load balancer in front of a service.
    NODE_PORT_SERVICE       → Service of type NodePort.

    The platform may add new types before this policy learns about them,
    so spec fields hold plain strings and are matched against these values.
    """
    HOST_NETWORK = "HostNetwork"
    PRIVATE = "Private"
    LOAD_BALANCER_SERVICE = "LoadBalancerService"
    NODE_PORT_SERVICE = "NodePortService"


class TopologyMode(str, Enum):
    """
    Availability mode of the control plane or of the worker infrastructure.

    SINGLE_REPLICA    → No redundancy (single-node clusters).
    HIGHLY_AVAILABLE  → Multiple nodes; the normal case.
    EXTERNAL          → Control plane hosted outside the cluster.
    """
    SINGLE_REPLICA = "SingleReplica"
    HIGHLY_AVAILABLE = "HighlyAvailable"
    EXTERNAL = "External"


class DefaultPlacement(str, Enum):
    """
    Where ingress controllers are placed by default.

    Decides which topology field (control plane or infrastructure)
    governs the ingress controller. Empty string means unset, which the
    platform treats as WORKERS.
    """
    WORKERS = "Workers"
    CONTROL_PLANE = "ControlPlane"
    UNSET = ""


class DeploymentStrategyType(str, Enum):
    ROLLING_UPDATE = "RollingUpdate"
    RECREATE = "Recreate"


class LabelSelectorOperator(str, Enum):
    IN = "In"
    NOT_IN = "NotIn"
    EXISTS = "Exists"
    DOES_NOT_EXIST = "DoesNotExist"


# An orchestrator int-or-string: 0 (absolute) or "25%" (percentage).
IntOrString = Union[int, str]


def percent(value: int) -> str:
    """Render a percentage in the orchestrator's int-or-string form."""
    return f"{value}%"


# ─────────────────────────────────────────────────────────────────────────────
# SECTION 2: INPUT SNAPSHOTS
# What the reconciler observed before calling us. Read-only.
# ─────────────────────────────────────────────────────────────────────────────

class IngressControllerSpec(BaseModel):
    """
    The user's desired state for one ingress controller.

    Fields:
        name                        → IngressController name. Also the value of
                                      the deployment label the affinity
                                      selectors match on.
        replicas                    → Explicit replica count. None means the
                                      user did not set one and the default
                                      replica policy decides.
        endpoint_publishing_strategy → Resolved publishing strategy type
                                      (from status, after defaulting).
                                      Unknown strings are allowed.
    """
    model_config = ConfigDict(frozen=True)

    name: str = Field("default", description="IngressController name")
    replicas: Optional[int] = Field(
        None, ge=0,
        description="Explicit replica count. None = use the default replica policy."
    )
    endpoint_publishing_strategy: str = Field(
        EndpointPublishingStrategyType.HOST_NETWORK.value,
        description="Endpoint publishing strategy type, e.g. 'LoadBalancerService'"
    )


class IngressConfig(BaseModel):
    """Cluster-wide ingress configuration status (the placement preference)."""
    model_config = ConfigDict(frozen=True)

    default_placement: str = Field(
        DefaultPlacement.UNSET.value,
        description="'ControlPlane' selects control-plane topology; anything else selects infrastructure topology"
    )


class InfrastructureConfig(BaseModel):
    """
    Cluster infrastructure status: the two topology modes.

    control_plane_topology   → Availability of the control-plane nodes.
    infrastructure_topology  → Availability of the worker (infra) nodes.
    """
    model_config = ConfigDict(frozen=True)

    control_plane_topology: str = Field(
        TopologyMode.HIGHLY_AVAILABLE.value,
        description="Control-plane topology mode"
    )
    infrastructure_topology: str = Field(
        TopologyMode.HIGHLY_AVAILABLE.value,
        description="Infrastructure (data-plane) topology mode"
    )


# ─────────────────────────────────────────────────────────────────────────────
# SECTION 3: DEPLOYMENT STRATEGY
# ─────────────────────────────────────────────────────────────────────────────

class RollingUpdateDeployment(BaseModel):
    """
    Rolling update parameters.

    The orchestrator rounds max_unavailable DOWN and max_surge UP when
    converting percentages to pod counts.
    """
    model_config = ConfigDict(frozen=True)

    max_unavailable: IntOrString = Field(..., description="e.g. '25%' or 1")
    max_surge: IntOrString = Field(..., description="e.g. '25%' or 0")


class DeploymentStrategy(BaseModel):
    """
    A deployment update strategy.

    An empty record (type=None, rolling_update=None) is the platform
    default: the orchestrator fills in its own rolling update values.
    """
    model_config = ConfigDict(frozen=True)

    type: Optional[DeploymentStrategyType] = None
    rolling_update: Optional[RollingUpdateDeployment] = None

    @property
    def is_platform_default(self) -> bool:
        return self.type is None and self.rolling_update is None


# ─────────────────────────────────────────────────────────────────────────────
# SECTION 4: AFFINITY
# Mirrors the orchestrator's pod (anti-)affinity API, trimmed to the
# fields this policy sets.
# ─────────────────────────────────────────────────────────────────────────────

class LabelSelectorRequirement(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str
    operator: LabelSelectorOperator
    values: List[str] = Field(default_factory=list)


class LabelSelector(BaseModel):
    """A label query. Requirements are ANDed."""
    model_config = ConfigDict(frozen=True)

    match_expressions: List[LabelSelectorRequirement] = Field(default_factory=list)


class PodAffinityTerm(BaseModel):
    """
    Pods matching label_selector, co-located when they share the value of
    the node label named by topology_key.
    """
    model_config = ConfigDict(frozen=True)

    topology_key: str
    label_selector: LabelSelector


class WeightedPodAffinityTerm(BaseModel):
    model_config = ConfigDict(frozen=True)

    weight: int = Field(..., ge=1, le=100)
    pod_affinity_term: PodAffinityTerm


class PodAffinity(BaseModel):
    model_config = ConfigDict(frozen=True)

    preferred_during_scheduling_ignored_during_execution: List[WeightedPodAffinityTerm] = Field(
        default_factory=list
    )
    required_during_scheduling_ignored_during_execution: List[PodAffinityTerm] = Field(
        default_factory=list
    )


class PodAntiAffinity(BaseModel):
    model_config = ConfigDict(frozen=True)

    preferred_during_scheduling_ignored_during_execution: List[WeightedPodAffinityTerm] = Field(
        default_factory=list
    )
    required_during_scheduling_ignored_during_execution: List[PodAffinityTerm] = Field(
        default_factory=list
    )


class Affinity(BaseModel):
    model_config = ConfigDict(frozen=True)

    pod_affinity: Optional[PodAffinity] = None
    pod_anti_affinity: Optional[PodAntiAffinity] = None


# ─────────────────────────────────────────────────────────────────────────────
# SECTION 5: DEPLOYMENT (caller-owned, mutable)
# ─────────────────────────────────────────────────────────────────────────────

class Deployment(BaseModel):
    """
    The subset of the router Deployment this core writes to.

    Owned by the caller (the reconciler). apply_rollout_policy() mutates
    replicas, strategy and affinity in place; nothing else is touched.
    """
    name: str = Field(..., description="Deployment name, e.g. 'router-default'")
    labels: Dict[str, str] = Field(default_factory=dict)
    replicas: Optional[int] = Field(None, ge=0)
    strategy: DeploymentStrategy = Field(default_factory=DeploymentStrategy)
    affinity: Optional[Affinity] = None
