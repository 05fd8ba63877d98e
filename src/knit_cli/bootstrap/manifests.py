"""Manifest payloads applied during bootstrap.

Documents are built as plain dicts and serialized with PyYAML so they can be
piped to `kubectl apply -f -`. Remote manifests are referenced by URL at
pinned versions.
"""

from __future__ import annotations

from typing import Any

import yaml

# Pinned versions
CERT_MANAGER_RELEASE = "release-0.8"
CERT_MANAGER_CHART_VERSION = "v0.8.1"
FLUX_VERSION = "1.13.3"
SEALED_SECRETS_VERSION = "v0.8.1"

# Remote manifests and chart repositories
CERT_MANAGER_CRDS_URL = (
    "https://raw.githubusercontent.com/jetstack/cert-manager/"
    f"{CERT_MANAGER_RELEASE}/deploy/manifests/00-crds.yaml"
)
JETSTACK_REPO_URL = "https://charts.jetstack.io"
FLUX_DEPLOY_BASE_URL = "https://raw.githubusercontent.com/fluxcd/flux/{version}/deploy"
SEALED_SECRETS_CONTROLLER_URL = (
    "https://github.com/bitnami-labs/sealed-secrets/releases/download/"
    f"{SEALED_SECRETS_VERSION}/controller.yaml"
)

ACME_DIRECTORY_URL = "https://acme-v02.api.letsencrypt.org/directory"
ISSUER_NAME = "letsencrypt-prod"

SEALED_SECRETS_NAMESPACE = "kube-system"
SEALED_SECRETS_KEY_NAME = "sealed-secrets-key"


def flux_manifest_url(name: str, version: str = FLUX_VERSION) -> str:
    """URL of one of Flux's published deploy manifests (e.g. flux-secret.yaml)."""
    return f"{FLUX_DEPLOY_BASE_URL.format(version=version)}/{name}"


def to_yaml(documents: list[dict[str, Any]]) -> str:
    """Serialize documents as a multi-document YAML stream."""
    return yaml.dump_all(documents, default_flow_style=False, sort_keys=False)


def build_tiller_service_account() -> list[dict[str, Any]]:
    """Service account Tiller runs as."""
    return [
        {
            "apiVersion": "v1",
            "kind": "ServiceAccount",
            "metadata": {"name": "tiller", "namespace": "kube-system"},
        }
    ]


def build_tiller_role_binding() -> list[dict[str, Any]]:
    """Bind the tiller service account to cluster-admin."""
    return [
        {
            "apiVersion": "rbac.authorization.k8s.io/v1beta1",
            "kind": "ClusterRoleBinding",
            "metadata": {"labels": {"name": "tiller-admin"}, "name": "tiller-admin"},
            "roleRef": {
                "apiGroup": "rbac.authorization.k8s.io",
                "kind": "ClusterRole",
                "name": "cluster-admin",
            },
            "subjects": [
                {"kind": "ServiceAccount", "name": "tiller", "namespace": "kube-system"}
            ],
        }
    ]


def build_issuer(email: str) -> list[dict[str, Any]]:
    """Let's Encrypt production issuer using HTTP-01 validation."""
    return [
        {
            "apiVersion": "certmanager.k8s.io/v1alpha1",
            "kind": "Issuer",
            "metadata": {"name": ISSUER_NAME},
            "spec": {
                "acme": {
                    "server": ACME_DIRECTORY_URL,
                    "email": email,
                    "privateKeySecretRef": {"name": ISSUER_NAME},
                    "http01": {},
                }
            },
        }
    ]


def build_flux_deployment(git_repo: str, version: str = FLUX_VERSION) -> list[dict[str, Any]]:
    """Flux daemon watching git_repo on master."""
    return [
        {
            "apiVersion": "apps/v1",
            "kind": "Deployment",
            "metadata": {"name": "flux"},
            "spec": {
                "replicas": 1,
                "selector": {"matchLabels": {"name": "flux"}},
                "strategy": {"type": "Recreate"},
                "template": {
                    "metadata": {
                        "annotations": {"prometheus.io/port": "3031"},
                        "labels": {"name": "flux"},
                    },
                    "spec": {
                        "serviceAccountName": "flux",
                        "volumes": [
                            {
                                "name": "git-key",
                                "secret": {"secretName": "flux-git-deploy", "defaultMode": 0o400},
                            },
                            {"name": "git-keygen", "emptyDir": {"medium": "Memory"}},
                        ],
                        "containers": [
                            {
                                "name": "flux",
                                "image": f"docker.io/fluxcd/flux:{version}",
                                "imagePullPolicy": "IfNotPresent",
                                "resources": {"requests": {"cpu": "50m", "memory": "64Mi"}},
                                "ports": [{"containerPort": 3030}],
                                "volumeMounts": [
                                    {
                                        "name": "git-key",
                                        "mountPath": "/etc/fluxd/ssh",
                                        "readOnly": True,
                                    },
                                    {"name": "git-keygen", "mountPath": "/var/fluxd/keygen"},
                                ],
                                "args": [
                                    "--memcached-service=",
                                    "--ssh-keygen-dir=/var/fluxd/keygen",
                                    f"--git-url={git_repo}",
                                    "--git-branch=master",
                                    "--listen-metrics=:3031",
                                ],
                            }
                        ],
                    },
                },
            },
        }
    ]


def build_sealed_secrets_key(public: str, private: str) -> list[dict[str, Any]]:
    """TLS secret the sealed-secrets controller loads its master key from."""
    return [
        {
            "apiVersion": "v1",
            "kind": "Secret",
            "type": "kubernetes.io/tls",
            "metadata": {
                "name": SEALED_SECRETS_KEY_NAME,
                "namespace": SEALED_SECRETS_NAMESPACE,
            },
            "data": {"tls.crt": public, "tls.key": private},
        }
    ]
