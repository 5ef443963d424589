"""Builder for the nginx Deployment.

The rendered pod reloads nginx in place when the mounted configuration
changes: an init container seeds two scripts into a shared emptyDir, and the
nginx container runs them instead of its default entrypoint. The watcher
compares ``cksum`` output of ``default.conf`` on every inotify event and
restarts the nginx service only when the checksum moved.
"""

from __future__ import annotations

import copy
from typing import Any

from ..constants import (
    COMPARE_IMAGE_NAME,
    CONF_VOLUME_KEY,
    CONF_VOLUME_MOUNT_PATH,
    CONF_VOLUME_NAME,
    INDEX_VOLUME_MOUNT_PATH,
    INDEX_VOLUME_NAME,
    INIT_CONTAINER_IMAGE,
    INIT_CONTAINER_NAME,
    KIND_DEPLOYMENT,
    POD_LABELS,
    RELOAD_VOLUME_MOUNT_PATH,
    RELOAD_VOLUME_NAME,
)
from .descriptor import Descriptor
from .metadata import create_child_metadata

INIT_COMMAND = r"""cat << EOT > /tmp/run-nginx.sh
apt-get update
apt-get install inotify-tools -y
nginx
EOT
chmod 500 /tmp/run-nginx.sh
cat << EOT > /tmp/auto-reload-nginx.sh
oldcksum=\`cksum /etc/nginx/conf.d/default.conf\`
inotifywait -e modify,move,create,delete -mr --timefmt '%d/%m/%y %H:%M' --format '%T' /etc/nginx/conf.d/ | \
while read date time; do
  newcksum=\`cksum /etc/nginx/conf.d/default.conf\`
  if [ "\${newcksum}" != "\${oldcksum}" ]; then
    echo "At \${time} on \${date}, config file update detected."
    oldcksum=\${newcksum}
    service nginx restart
  fi
done
EOT
chmod 500 /tmp/auto-reload-nginx.sh
"""

CONTAINER_COMMAND = "/tmp/run-nginx.sh && /tmp/auto-reload-nginx.sh"

MANAGED_VOLUMES = (CONF_VOLUME_NAME, INDEX_VOLUME_NAME, RELOAD_VOLUME_NAME)


def image_base_name(image: str) -> str:
    """Repository name of an image without registry, tag or digest.

    ``registry:5000/library/nginx:1.25`` -> ``nginx``
    """
    image = image.split("@", 1)[0]
    repository = image.rsplit("/", 1)[-1]
    return repository.split(":", 1)[0]


def create_init_container() -> dict[str, Any]:
    """Init container that writes the run and reload scripts."""
    return {
        "name": INIT_CONTAINER_NAME,
        "image": INIT_CONTAINER_IMAGE,
        "command": ["/bin/sh", "-c", INIT_COMMAND],
        "volumeMounts": [
            {"name": RELOAD_VOLUME_NAME, "mountPath": RELOAD_VOLUME_MOUNT_PATH},
        ],
    }


def create_volumes(config_map_name: str, index_key: str) -> list[dict[str, Any]]:
    """Volumes backing the nginx configuration, index page and scripts."""
    return [
        {
            "name": CONF_VOLUME_NAME,
            "configMap": {
                "name": config_map_name,
                "items": [{"key": CONF_VOLUME_KEY, "path": CONF_VOLUME_KEY}],
            },
        },
        {
            "name": INDEX_VOLUME_NAME,
            "configMap": {
                "name": config_map_name,
                "items": [{"key": index_key, "path": index_key}],
            },
        },
        {"name": RELOAD_VOLUME_NAME, "emptyDir": {}},
    ]


def _wire_nginx_container(container: dict[str, Any]) -> None:
    mounts = [m for m in container.get("volumeMounts") or [] if m.get("name") not in MANAGED_VOLUMES]
    container["volumeMounts"] = mounts + [
        {"name": CONF_VOLUME_NAME, "mountPath": CONF_VOLUME_MOUNT_PATH},
        {"name": INDEX_VOLUME_NAME, "mountPath": INDEX_VOLUME_MOUNT_PATH},
        {"name": RELOAD_VOLUME_NAME, "mountPath": RELOAD_VOLUME_MOUNT_PATH},
    ]
    container["command"] = ["/bin/sh", "-c", CONTAINER_COMMAND]


def create_pod_template(descriptor: Descriptor, index_key: str) -> dict[str, Any]:
    """Render the pod template with reload wiring.

    Args:
        descriptor: Parsed descriptor
        index_key: ConfigMap key holding the index page

    Returns:
        Pod template spec
    """
    template = copy.deepcopy(descriptor.deployment_spec.get("template") or {})

    metadata = template.setdefault("metadata", {})
    metadata["labels"] = {**(metadata.get("labels") or {}), **POD_LABELS}

    pod_spec = template.setdefault("spec", {})

    init_containers = [c for c in pod_spec.get("initContainers") or [] if c.get("name") != INIT_CONTAINER_NAME]
    pod_spec["initContainers"] = [create_init_container()] + init_containers

    for container in pod_spec.get("containers") or []:
        if image_base_name(container.get("image", "")) == COMPARE_IMAGE_NAME:
            _wire_nginx_container(container)
            break

    volumes = [v for v in pod_spec.get("volumes") or [] if v.get("name") not in MANAGED_VOLUMES]
    pod_spec["volumes"] = volumes + create_volumes(descriptor.config_map_name, index_key)

    return template


def create_deployment_from_descriptor(descriptor: Descriptor, index_key: str) -> dict[str, Any]:
    """Create the Deployment apply manifest.

    Args:
        descriptor: Parsed descriptor
        index_key: ConfigMap key holding the index page

    Returns:
        Deployment manifest
    """
    spec = copy.deepcopy(descriptor.deployment_spec)
    spec["selector"] = {"matchLabels": dict(POD_LABELS)}
    spec["template"] = create_pod_template(descriptor, index_key)

    return {
        "apiVersion": "apps/v1",
        "kind": KIND_DEPLOYMENT,
        "metadata": create_child_metadata(descriptor, descriptor.deployment_name),
        "spec": spec,
    }
