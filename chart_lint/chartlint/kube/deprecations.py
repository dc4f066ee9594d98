"""Kubernetes API deprecation table.

Each entry records the release an API shape was deprecated in, the release it
stops being served in, and the shape that replaces it.
"""

from __future__ import annotations

from typing import NamedTuple

from chartlint.kube.version import KubeVersion


class DeprecatedAPI(NamedTuple):
    api_version: str
    kind: str
    deprecated: tuple[int, int]
    removed: tuple[int, int] | None
    replacement: str = ""


_APPS_V1_WORKLOADS = ("Deployment", "DaemonSet", "ReplicaSet", "StatefulSet")
_RBAC_KINDS = ("ClusterRole", "ClusterRoleBinding", "Role", "RoleBinding")

DEPRECATED_APIS: list[DeprecatedAPI] = [
    *(
        DeprecatedAPI("extensions/v1beta1", kind, (1, 8), (1, 16), f"apps/v1 {kind}")
        for kind in ("Deployment", "DaemonSet", "ReplicaSet")
    ),
    DeprecatedAPI("extensions/v1beta1", "NetworkPolicy", (1, 9), (1, 16), "networking.k8s.io/v1 NetworkPolicy"),
    DeprecatedAPI("extensions/v1beta1", "PodSecurityPolicy", (1, 10), (1, 16), "policy/v1beta1 PodSecurityPolicy"),
    DeprecatedAPI("extensions/v1beta1", "Ingress", (1, 14), (1, 22), "networking.k8s.io/v1 Ingress"),
    *(
        DeprecatedAPI("apps/v1beta1", kind, (1, 9), (1, 16), f"apps/v1 {kind}")
        for kind in ("Deployment", "StatefulSet")
    ),
    *(
        DeprecatedAPI("apps/v1beta2", kind, (1, 9), (1, 16), f"apps/v1 {kind}")
        for kind in _APPS_V1_WORKLOADS
    ),
    DeprecatedAPI("networking.k8s.io/v1beta1", "Ingress", (1, 19), (1, 22), "networking.k8s.io/v1 Ingress"),
    DeprecatedAPI("networking.k8s.io/v1beta1", "IngressClass", (1, 19), (1, 22), "networking.k8s.io/v1 IngressClass"),
    *(
        DeprecatedAPI("rbac.authorization.k8s.io/v1beta1", kind, (1, 17), (1, 22), f"rbac.authorization.k8s.io/v1 {kind}")
        for kind in _RBAC_KINDS
    ),
    *(
        DeprecatedAPI("rbac.authorization.k8s.io/v1alpha1", kind, (1, 17), (1, 22), f"rbac.authorization.k8s.io/v1 {kind}")
        for kind in _RBAC_KINDS
    ),
    DeprecatedAPI(
        "apiextensions.k8s.io/v1beta1", "CustomResourceDefinition", (1, 16), (1, 22),
        "apiextensions.k8s.io/v1 CustomResourceDefinition",
    ),
    *(
        DeprecatedAPI("admissionregistration.k8s.io/v1beta1", kind, (1, 16), (1, 22), f"admissionregistration.k8s.io/v1 {kind}")
        for kind in ("MutatingWebhookConfiguration", "ValidatingWebhookConfiguration")
    ),
    DeprecatedAPI("scheduling.k8s.io/v1beta1", "PriorityClass", (1, 14), (1, 22), "scheduling.k8s.io/v1 PriorityClass"),
    DeprecatedAPI("scheduling.k8s.io/v1alpha1", "PriorityClass", (1, 14), (1, 22), "scheduling.k8s.io/v1 PriorityClass"),
    *(
        DeprecatedAPI("storage.k8s.io/v1beta1", kind, (1, 19), (1, 22), f"storage.k8s.io/v1 {kind}")
        for kind in ("CSIDriver", "StorageClass", "VolumeAttachment")
    ),
    DeprecatedAPI("storage.k8s.io/v1beta1", "CSINode", (1, 17), (1, 22), "storage.k8s.io/v1 CSINode"),
    DeprecatedAPI("storage.k8s.io/v1beta1", "CSIStorageCapacity", (1, 24), (1, 27), "storage.k8s.io/v1 CSIStorageCapacity"),
    DeprecatedAPI("coordination.k8s.io/v1beta1", "Lease", (1, 19), (1, 22), "coordination.k8s.io/v1 Lease"),
    DeprecatedAPI(
        "certificates.k8s.io/v1beta1", "CertificateSigningRequest", (1, 19), (1, 22),
        "certificates.k8s.io/v1 CertificateSigningRequest",
    ),
    DeprecatedAPI("apiregistration.k8s.io/v1beta1", "APIService", (1, 19), (1, 22), "apiregistration.k8s.io/v1 APIService"),
    DeprecatedAPI("batch/v1beta1", "CronJob", (1, 21), (1, 25), "batch/v1 CronJob"),
    DeprecatedAPI("discovery.k8s.io/v1beta1", "EndpointSlice", (1, 21), (1, 25), "discovery.k8s.io/v1 EndpointSlice"),
    DeprecatedAPI("events.k8s.io/v1beta1", "Event", (1, 22), (1, 25), "events.k8s.io/v1 Event"),
    DeprecatedAPI("node.k8s.io/v1beta1", "RuntimeClass", (1, 22), (1, 25), "node.k8s.io/v1 RuntimeClass"),
    DeprecatedAPI("policy/v1beta1", "PodDisruptionBudget", (1, 21), (1, 25), "policy/v1 PodDisruptionBudget"),
    DeprecatedAPI("policy/v1beta1", "PodSecurityPolicy", (1, 21), (1, 25)),
    DeprecatedAPI("autoscaling/v2beta1", "HorizontalPodAutoscaler", (1, 22), (1, 25), "autoscaling/v2 HorizontalPodAutoscaler"),
    DeprecatedAPI("autoscaling/v2beta2", "HorizontalPodAutoscaler", (1, 23), (1, 26), "autoscaling/v2 HorizontalPodAutoscaler"),
    *(
        DeprecatedAPI("flowcontrol.apiserver.k8s.io/v1beta1", kind, (1, 23), (1, 26), f"flowcontrol.apiserver.k8s.io/v1beta3 {kind}")
        for kind in ("FlowSchema", "PriorityLevelConfiguration")
    ),
    *(
        DeprecatedAPI("flowcontrol.apiserver.k8s.io/v1beta2", kind, (1, 26), (1, 29), f"flowcontrol.apiserver.k8s.io/v1beta3 {kind}")
        for kind in ("FlowSchema", "PriorityLevelConfiguration")
    ),
    *(
        DeprecatedAPI("flowcontrol.apiserver.k8s.io/v1beta3", kind, (1, 29), (1, 32), f"flowcontrol.apiserver.k8s.io/v1 {kind}")
        for kind in ("FlowSchema", "PriorityLevelConfiguration")
    ),
]

_INDEX: dict[tuple[str, str], DeprecatedAPI] = {
    (api.api_version, api.kind): api for api in DEPRECATED_APIS
}


def lookup(api_version: str, kind: str) -> DeprecatedAPI | None:
    """Return the deprecation entry for an API shape, or None if it has none."""
    return _INDEX.get((api_version, kind))


def is_deprecated(api_version: str, kind: str, kube_version: KubeVersion) -> bool:
    """True if ``api_version``/``kind`` is deprecated as of ``kube_version``.

    Kinds outside the table (including custom resources) are never deprecated.
    """
    api = lookup(api_version, kind)
    if api is None:
        return False
    return kube_version.at_least(*api.deprecated)


def warning_message(api_version: str, kind: str) -> str:
    api = lookup(api_version, kind)
    if api is None:
        return ""
    message = f"{api.api_version} {api.kind} is deprecated in v{api.deprecated[0]}.{api.deprecated[1]}+"
    if api.removed is not None:
        message += f", unavailable in v{api.removed[0]}.{api.removed[1]}+"
    if api.replacement:
        message += f"; use {api.replacement}"
    return message
