# /*
# Copyright 2026 The Kubeflow Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */

"""Kubeflow platform dependency chain and its configuration patches."""

from __future__ import annotations

import copy
import json

import yaml

from notebooks_infra.constants import (
    CERT_MANAGER_SETTLE_SECONDS,
    DASHBOARD_CONFIGMAP,
    DASHBOARD_LINKS_KEY,
    DEFAULT_PROFILE_OWNER,
    DEX_CONFIG_KEY,
    DEX_CONFIGMAP,
    DEX_PASSWORD_CONNECTOR,
    DEX_REDIRECT_URIS,
    MESH_PROPAGATION_SECONDS,
    NOTEBOOKS_V2_MENU,
    NS_AUTH,
    NS_CERT_MANAGER,
    NS_DEFAULT_PROFILE,
    NS_ISTIO_SYSTEM,
    NS_KUBEFLOW,
    NS_OAUTH2_PROXY,
)
from notebooks_infra.installer import ConfigMapPatch, InstallStep
from notebooks_infra.kubectl import WaitCondition


# ============================================================================
# ConfigMap transforms
# ============================================================================

def merge_unique(existing: list, additions: list) -> list:
    """Append items not already present, keeping first-seen order."""
    merged = []
    for item in [*existing, *additions]:
        if item not in merged:
            merged.append(item)
    return merged


def patch_dex_config(raw: str) -> str:
    """Enable local password login and register the dev redirect URIs.

    The first static client's redirect URIs are merged with the local
    callback URLs rather than replaced.

    Args:
        raw: Dex ``config.yaml`` content.

    Returns:
        Updated ``config.yaml`` content.
    """
    try:
        config = yaml.safe_load(raw) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"dex config is not valid YAML: {e}") from e
    clients = config.get("staticClients") or []
    if not clients:
        raise ValueError("dex config has no staticClients to patch")
    client = clients[0]
    client["redirectURIs"] = merge_unique(client.get("redirectURIs") or [], list(DEX_REDIRECT_URIS))
    config.setdefault("oauth2", {})["passwordConnector"] = DEX_PASSWORD_CONNECTOR
    return yaml.safe_dump(config, sort_keys=False)


def patch_dashboard_links(raw: str) -> str:
    """Add the Notebooks v2 section to the central dashboard menu once.

    Args:
        raw: JSON content of the dashboard ``links`` key.

    Returns:
        Updated JSON content.
    """
    links = json.loads(raw)
    menu = links.setdefault("menuLinks", [])
    if not any(entry.get("text") == NOTEBOOKS_V2_MENU["text"] for entry in menu):
        menu.append(copy.deepcopy(NOTEBOOKS_V2_MENU))
    return json.dumps(links, indent=2)


def default_profile() -> dict:
    """Kubeflow Profile owned by the local development user."""
    return {
        "apiVersion": "kubeflow.org/v1beta1",
        "kind": "Profile",
        "metadata": {"name": NS_DEFAULT_PROFILE},
        "spec": {
            "owner": {"kind": "User", "name": DEFAULT_PROFILE_OWNER},
            "plugins": [],
            "resourceQuotaSpec": {},
        },
    }


# ============================================================================
# Step chain
# ============================================================================

def platform_steps(manifests_repo: str) -> list[InstallStep]:
    """Build the ordered platform dependency chain.

    Args:
        manifests_repo: Base URL of the kubeflow/manifests repository.

    Returns:
        Install steps; each one assumes every earlier step is ready.
    """
    repo = manifests_repo.rstrip("/")

    def remote(path: str) -> str:
        return f"{repo}/{path}"

    auth_pods = WaitCondition("pods", NS_AUTH, all_resources=True, timeout=180)
    dashboard_pods = WaitCondition("pod", NS_KUBEFLOW, selector="app=centraldashboard", timeout=300)

    return [
        InstallStep(
            name="cert-manager",
            apply_targets=(remote("common/cert-manager/base"),),
            settle_seconds=CERT_MANAGER_SETTLE_SECONDS,
            waits=(
                WaitCondition("pod", NS_CERT_MANAGER, selector="app.kubernetes.io/instance=cert-manager",
                              timeout=180),
                WaitCondition("deployment", NS_CERT_MANAGER, condition="condition=Available",
                              selector="app.kubernetes.io/instance=cert-manager", timeout=180),
            ),
        ),
        InstallStep(
            name="kubeflow-issuer",
            apply_targets=(remote("common/cert-manager/kubeflow-issuer/base"),),
        ),
        InstallStep(
            name="istio",
            apply_targets=(
                remote("common/kubeflow-namespace/base"),
                remote("common/istio/istio-crds/base"),
                remote("common/istio/istio-namespace/base"),
                remote("common/istio/istio-install/overlays/oauth2-proxy"),
            ),
            waits=(WaitCondition("pods", NS_ISTIO_SYSTEM, all_resources=True, timeout=300),),
        ),
        InstallStep(
            name="oauth2-proxy",
            apply_targets=(remote("common/oauth2-proxy/overlays/m2m-dex-only"),),
            waits=(WaitCondition("pod", NS_OAUTH2_PROXY, selector="app.kubernetes.io/name=oauth2-proxy",
                                 timeout=180),),
        ),
        InstallStep(
            name="dex",
            apply_targets=(remote("common/dex/overlays/oauth2-proxy"),),
            waits=(auth_pods,),
            patch=ConfigMapPatch(
                configmap=DEX_CONFIGMAP,
                namespace=NS_AUTH,
                key=DEX_CONFIG_KEY,
                transform=patch_dex_config,
                restart_deployment="dex",
            ),
        ),
        InstallStep(
            name="kubeflow-base",
            apply_targets=(
                remote("common/networkpolicies/base"),
                remote("common/kubeflow-roles/base"),
                remote("common/istio/kubeflow-istio-resources/base"),
            ),
        ),
        InstallStep(
            name="central-dashboard",
            apply_targets=(remote("applications/centraldashboard/overlays/oauth2-proxy"),),
            waits=(dashboard_pods,),
            patch=ConfigMapPatch(
                configmap=DASHBOARD_CONFIGMAP,
                namespace=NS_KUBEFLOW,
                key=DASHBOARD_LINKS_KEY,
                transform=patch_dashboard_links,
                restart_deployment="centraldashboard",
                delay_seconds=MESH_PROPAGATION_SECONDS,
            ),
        ),
        InstallStep(
            name="poddefaults",
            apply_targets=(remote("applications/admission-webhook/upstream/overlays/cert-manager"),),
            waits=(WaitCondition("pod", NS_KUBEFLOW, selector="app=poddefaults", timeout=300),),
        ),
        InstallStep(
            name="notebooks-v1",
            apply_targets=(remote("applications/jupyter/notebook-controller/upstream/overlays/kubeflow"),),
            waits=(WaitCondition("pod", NS_KUBEFLOW, selector="app=notebook-controller", timeout=300),),
        ),
        InstallStep(
            name="profile-controller",
            apply_targets=(remote("applications/profiles/upstream/overlays/kubeflow"),),
            waits=(WaitCondition("pod", NS_KUBEFLOW, selector="kustomize.component=profiles", timeout=300),),
        ),
        InstallStep(
            name="default-profile",
            manifests=(default_profile(),),
            waits=(WaitCondition("namespace", condition="jsonpath={.status.phase}=Active",
                                 name=NS_DEFAULT_PROFILE, timeout=180),),
        ),
    ]
