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

"""Constants for the cluster, platform dependencies, and application images."""

from __future__ import annotations

# -- Product --
PRODUCT_IMAGE_NAME = "kubeflow-notebooks-v2"

# -- Defaults --
DEFAULT_REGISTRY = "localhost"
DEFAULT_TAG_SUFFIX = "e2e-istio"
DEFAULT_CLUSTER_NAME = "kubeflow"
DEFAULT_LOGIN_REGISTRY = "docker.io"
DEFAULT_MANIFESTS_REPO = "https://github.com/kubeflow/manifests"

# -- kind cluster --
KIND_NODE_IMAGE = (
    "kindest/node:v1.32.0"
    "@sha256:c48c62eac5da28cdadcf560d1d8616cfa6783b58f0d94cf63ad1bf49600cb027"
)
KIND_PROVIDER_ENV = "KIND_EXPERIMENTAL_PROVIDER"
APISERVER_EXTRA_ARGS = {
    "service-account-issuer": "https://kubernetes.default.svc",
    "service-account-signing-key-file": "/etc/kubernetes/pki/sa.key",
}

# -- Container engines --
ENGINE_PODMAN = "podman"
ENGINE_DOCKER = "docker"
ENGINE_ENV_VAR = "CONTAINER_ENGINE"
ENGINE_SEARCH_ORDER = (ENGINE_PODMAN, ENGINE_DOCKER)

# -- Registry aliases --
DOCKER_HUB_ALIASES = (
    "docker.io",
    "index.docker.io",
    "registry-1.docker.io",
    "https://index.docker.io/v1/",
)

# -- Retry --
BUILD_MAX_ATTEMPTS = 3
BUILD_BACKOFF_SECONDS = (10, 30, 60)

# -- Resource limits --
MIN_SOFT_NOFILE = 4096
MIN_HARD_NOFILE = 65535

# -- Timing --
CERT_MANAGER_SETTLE_SECONDS = 30
MESH_PROPAGATION_SECONDS = 10
COMMAND_TIMEOUT_SECONDS = 1800

# -- Namespaces --
NS_CERT_MANAGER = "cert-manager"
NS_ISTIO_SYSTEM = "istio-system"
NS_OAUTH2_PROXY = "oauth2-proxy"
NS_AUTH = "auth"
NS_KUBEFLOW = "kubeflow"
NS_DEFAULT_PROFILE = "kubeflow-default-profile"
NS_CONTROLLER = "workspace-controller-system"
NS_WORKSPACES = "kubeflow-workspaces"

# -- Dex --
DEX_CONFIGMAP = "dex"
DEX_CONFIG_KEY = "config.yaml"
DEX_REDIRECT_URIS = (
    "http://localhost:8080/oauth2/callback",
    "http://kubeflow.local:8080/oauth2/callback",
    "http://[::1]:8080/oauth2/callback",
)
DEX_PASSWORD_CONNECTOR = "local"

# -- Central dashboard --
DASHBOARD_CONFIGMAP = "centraldashboard-config"
DASHBOARD_LINKS_KEY = "links"
NOTEBOOKS_V2_MENU = {
    "icon": "book",
    "items": [
        {"text": "Workspaces", "link": "/workspaces/workspaces"},
        {"text": "Workspace Kinds", "link": "/workspaces/workspacekinds"},
    ],
    "text": "Notebooks v2",
    "type": "section",
}

# -- Default profile --
DEFAULT_PROFILE_OWNER = "user@example.com"
DEFAULT_PROFILE_PASSWORD = "12341234"

# -- Relative paths --
REL_CONTROLLER_DIR = "workspaces/controller"
REL_BACKEND_DIR = "workspaces/backend"
REL_FRONTEND_DIR = "workspaces/frontend"
REL_FRONTEND_OVERLAY = "manifests/kustomize/overlays/istio"

# -- Access --
INGRESS_SERVICE = "svc/istio-ingressgateway"
INGRESS_PORT_MAPPING = "8080:80"
DASHBOARD_URL = "http://localhost:8080"
