"""Static catalog of the services discoli knows how to load.

Each :class:`SupportedService` lists its aliases and documented versions; the
first version is the default. :func:`lookup_service` accepts any of::

    container         # name, default version
    container:v1      # name with explicit version
    gke               # alias, default version
    gke:v1beta1       # alias with explicit version
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from discoli.exceptions import ServiceNotFound


@dataclass(frozen=True)
class SupportedService:
    """One catalog entry. The first of ``versions`` is the default."""

    name: str
    title: str
    category: str
    aliases: tuple[str, ...]
    versions: tuple[str, ...]

    @property
    def default_version(self) -> str:
        return self.versions[0]

    def api_ids(self) -> list[str]:
        return [f"{self.name}:{v}" for v in self.versions]


# fmt: off
SUPPORTED_SERVICES: tuple[SupportedService, ...] = (
    SupportedService("aiplatform",           "Vertex AI",                      "AI/ML",             ("vertex", "ai"),                 ("v1beta1", "v1")),
    SupportedService("alloydb",              "AlloyDB",                        "Databases",         ("alloy",),                       ("v1beta", "v1")),
    SupportedService("artifactregistry",     "Artifact Registry",              "Developer",         ("artifacts",),                   ("v1",)),
    SupportedService("bigquery",             "BigQuery",                       "Analytics",         ("bq",),                          ("v2",)),
    SupportedService("cloudbuild",           "Cloud Build",                    "Developer",         ("build",),                       ("v1", "v2")),
    SupportedService("cloudfunctions",       "Cloud Run functions",            "Serverless",        ("functions", "func"),            ("v2", "v2beta", "v2alpha", "v1")),
    SupportedService("cloudkms",             "Cloud Key Management Service",   "Security",          ("kms",),                         ("v1",)),
    SupportedService("cloudresourcemanager", "Cloud Resource Manager",         "Management",        ("resource-manager", "resource"), ("v3", "v2", "v2beta1", "v1", "v1beta1")),
    SupportedService("compute",              "Compute Engine",                 "Compute",           ("gce",),                         ("v1", "beta")),
    SupportedService("container",            "Google Kubernetes Engine",       "Compute",           ("gke",),                         ("v1", "v1beta1")),
    SupportedService("dataflow",             "Dataflow",                       "Analytics",         (),                               ("v1b3",)),
    SupportedService("iam",                  "Identity and Access Management", "Identity & Access", (),                               ("v1", "v2")),
    SupportedService("logging",              "Cloud Logging",                  "Operations",        ("log",),                         ("v2",)),
    SupportedService("pubsub",               "Cloud Pub/Sub",                  "Analytics",         (),                               ("v1",)),
    SupportedService("run",                  "Cloud Run Admin",                "Serverless",        ("cloudrun",),                    ("v2", "v1")),
    SupportedService("secretmanager",        "Secret Manager",                 "Security",          ("secret",),                      ("v1", "v1beta1")),
    SupportedService("spanner",              "Cloud Spanner",                  "Databases",         ("span",),                        ("v1",)),
    SupportedService("sqladmin",             "Cloud SQL Admin",                "Databases",         ("sql",),                         ("v1beta4", "v1")),
    SupportedService("storage",              "Cloud Storage",                  "Storage",           ("gs", "gcs"),                    ("v1",)),
)
# fmt: on


def find_service(name_or_alias: str) -> Optional[SupportedService]:
    """Return the catalog entry whose name or alias is *name_or_alias*."""
    for service in SUPPORTED_SERVICES:
        if service.name == name_or_alias or name_or_alias in service.aliases:
            return service
    return None


def lookup_service(service_ref: str) -> tuple[str, str]:
    """Resolve ``name[:version]`` or ``alias[:version]`` to ``(name, version)``.

    Raises:
        ServiceNotFound: Unknown name or alias, or a version the service
            does not list.

    Example::

        >>> lookup_service("gke")
        ('container', 'v1')
        >>> lookup_service("sql:v1")
        ('sqladmin', 'v1')
    """
    name_or_alias, _, version = service_ref.partition(":")
    service = find_service(name_or_alias)
    if service is None:
        raise ServiceNotFound(service_ref)
    if not version:
        return service.name, service.default_version
    if version not in service.versions:
        raise ServiceNotFound(
            service_ref,
            f"available versions are {', '.join(service.versions)}",
        )
    return service.name, version
