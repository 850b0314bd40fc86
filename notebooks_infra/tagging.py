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

"""Content-addressed image references."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from notebooks_infra.config import EnvironmentConfig
from notebooks_infra.constants import PRODUCT_IMAGE_NAME
from notebooks_infra.hashing import content_hash

if TYPE_CHECKING:
    from notebooks_infra.pipeline import ComponentSpec


@dataclass(frozen=True)
class ImageTag:
    """Fully-qualified image reference derived from source content.

    Attributes:
        registry: Registry host, or empty for an unqualified reference.
        component: Component base name, e.g. ``backend``.
        tag_suffix: Environment suffix, e.g. ``e2e-istio``.
        content_hash: 8-hex-character content fingerprint.
        product: Image repository name.
    """

    registry: str
    component: str
    tag_suffix: str
    content_hash: str
    product: str = PRODUCT_IMAGE_NAME

    @property
    def repository(self) -> str:
        return f"{self.registry}/{self.product}" if self.registry else self.product

    @property
    def tag(self) -> str:
        return f"{self.component}-{self.tag_suffix}-{self.content_hash}"

    def __str__(self) -> str:
        return f"{self.repository}:{self.tag}"


def image_tag(component: ComponentSpec, env: EnvironmentConfig) -> ImageTag:
    """Derive the image tag for a component from its current source content.

    Args:
        component: Component whose sources are fingerprinted.
        env: Run-wide options carrying registry and tag suffix.

    Returns:
        ImageTag for the component's current sources.
    """
    return ImageTag(
        registry=env.registry,
        component=component.name,
        tag_suffix=env.tag_suffix,
        content_hash=content_hash(component.source_dir, component.excluded),
    )
