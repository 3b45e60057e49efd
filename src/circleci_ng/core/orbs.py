# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""
Orb registry operations over the GraphQL API.

Namespaces, orbs, versions, categories and orb validation. Listing queries
are cursor paginated: each page asks for the 20 edges after the last seen
cursor until ``pageInfo.hasNextPage`` is false.
"""

import logging
import re
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from circleci_ng.core.errors import APIError, CircleCIError, NotFoundError
from circleci_ng.core.graphql import GraphQLClient

logger = logging.getLogger(__name__)

PAGE_SIZE = 20
VERSION_SEGMENTS = ("major", "minor", "patch")

SERVER_COMPATIBILITY_ERROR = (
    "Your version of Server does not support validating orbs that refer to other private orbs. "
    "Please see the README for more information on server compatibility: "
    "https://github.com/CircleCI-Public/circleci-cli#server-compatibility"
)

_SEMVER_RE = re.compile(
    r"^v?(?P<major>\d+)\.(?P<minor>\d+)\.(?P<patch>\d+)"
    r"(?:-(?P<prerelease>[0-9A-Za-z.-]+))?(?:\+(?P<build>[0-9A-Za-z.-]+))?$"
)


def increment_version(version: str, segment: str) -> str:
    """Bump one segment of a semantic version.

    Incrementing ``patch`` on a pre-release drops the pre-release label
    instead of bumping the number, so ``1.2.3-rc1`` becomes ``1.2.3``.

    Args:
        version: Current semantic version
        segment: One of ``major``, ``minor`` or ``patch``

    Returns:
        The bumped version string
    """
    match = _SEMVER_RE.match(version.strip())
    if not match:
        raise CircleCIError(f"Invalid Semantic Version: {version}")
    if segment not in VERSION_SEGMENTS:
        raise CircleCIError(f"Invalid version segment {segment!r}, expected one of {', '.join(VERSION_SEGMENTS)}")

    major, minor, patch = (int(match.group(name)) for name in ("major", "minor", "patch"))
    if segment == "major":
        return f"{major + 1}.0.0"
    if segment == "minor":
        return f"{major}.{minor + 1}.0"
    if match.group("prerelease"):
        return f"{major}.{minor}.{patch}"
    return f"{major}.{minor}.{patch + 1}"


def orb_version_ref(orb: str) -> str:
    """Append ``@volatile`` to an orb reference that has no version."""
    if "@" in orb:
        return orb
    return f"{orb}@volatile"


def split_orb_name(name: str) -> List[str]:
    """Split ``<namespace>/<orb>`` into its two parts."""
    parts = name.split("/")
    if len(parts) != 2 or not all(parts):
        raise CircleCIError(f"Invalid orb {name}. Expected a namespace and orb in the form 'namespace/orb'")
    return parts


def load_yaml(path: str) -> str:
    """Read a YAML file, or standard input when ``path`` is ``-``."""
    try:
        if path == "-":
            return sys.stdin.read()
        return Path(path).read_text()
    except OSError as e:
        raise CircleCIError(f"Could not load config file at {path}: {e}") from e


def _mutation_errors(payload: Dict[str, Any]) -> None:
    errors = payload.get("errors") or []
    if errors:
        raise APIError("\n".join(str(e.get("message", "")) for e in errors))


@dataclass
class OrbVersion:
    version: str
    source: str = ""
    created_at: str = ""


@dataclass
class Orb:
    """An orb summary built from its latest published source."""
    name: str
    highest_version: str = ""
    description: str = ""
    commands: List[str] = field(default_factory=list)
    jobs: List[str] = field(default_factory=list)
    executors: List[str] = field(default_factory=list)
    versions: List[OrbVersion] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "version": self.highest_version,
            "description": self.description,
            "commands": self.commands,
            "jobs": self.jobs,
            "executors": self.executors,
        }


@dataclass
class OrbCollection:
    orbs: List[Orb] = field(default_factory=list)
    namespace: str = ""


@dataclass
class OrbConfigResponse:
    """Result of validating or processing an orb."""
    valid: bool
    source_yaml: str = ""
    output_yaml: str = ""


@dataclass
class OrbCategory:
    id: str
    name: str


def orb_from_versions(name: str, versions: List[Dict[str, Any]]) -> Orb:
    """Build an Orb from its version list, parsing the first version's source.

    Raises:
        yaml.YAMLError: If the source is not valid YAML
    """
    orb = Orb(
        name=name,
        highest_version=versions[0].get("version", ""),
        versions=[
            OrbVersion(v.get("version", ""), v.get("source", ""), v.get("createdAt", ""))
            for v in versions
        ],
    )
    source = yaml.safe_load(versions[0].get("source") or "") or {}
    if not isinstance(source, dict):
        raise yaml.YAMLError(f"orb source of {name} is not a mapping")
    orb.description = str(source.get("description") or "")
    orb.commands = sorted((source.get("commands") or {}).keys())
    orb.jobs = sorted((source.get("jobs") or {}).keys())
    orb.executors = sorted((source.get("executors") or {}).keys())
    return orb


class OrbClient:
    """Orb registry client."""

    def __init__(self, gql: GraphQLClient) -> None:
        self.gql = gql
        self._supports_owner_id: Optional[bool] = None

    def _run(self, query: str, **variables: Any) -> Dict[str, Any]:
        request = self.gql.new_request(query)
        for key, value in variables.items():
            request.var(key, value)
        return self.gql.run(request)

    # Namespaces and organizations

    def organization_id(self, org_name: str, vcs_type: str) -> str:
        query = """
        query($organizationName: String!, $organizationVcs: VCSType!) {
            organization(
                name: $organizationName
                vcsType: $organizationVcs
            ) {
                id
            }
        }"""
        data = self._run(query, organizationName=org_name, organizationVcs=vcs_type.upper())
        org_id = (data.get("organization") or {}).get("id")
        if not org_id:
            raise NotFoundError(f"Unable to find organization {org_name} of vcs-type {vcs_type}")
        return org_id

    def create_namespace_with_owner_id(self, name: str, owner_id: str) -> str:
        """Reserve a namespace for an organization id and return its id."""
        query = """
        mutation($name: String!, $organizationId: UUID!) {
            createNamespace(
                name: $name,
                organizationId: $organizationId
            ) {
                namespace {
                    id
                }
                errors {
                    message
                    type
                }
            }
        }"""
        data = self._run(query, name=name, organizationId=owner_id)
        payload = data.get("createNamespace") or {}
        _mutation_errors(payload)
        return (payload.get("namespace") or {}).get("id", "")

    def create_namespace(self, name: str, org_name: str, vcs_type: str) -> str:
        return self.create_namespace_with_owner_id(name, self.organization_id(org_name, vcs_type))

    def namespace_id(self, name: str) -> str:
        query = """
        query($name: String!) {
            registryNamespace(
                name: $name
            ){
                id
            }
        }"""
        data = self._run(query, name=name)
        namespace_id = (data.get("registryNamespace") or {}).get("id")
        if not namespace_id:
            raise NotFoundError(
                f"the namespace '{name}' does not exist. Did you misspell the namespace, "
                "or maybe you meant to create the namespace first?"
            )
        return namespace_id

    # Orbs

    def orb_id(self, namespace: str, orb: str) -> str:
        query = """
        query ($name: String!, $namespace: String) {
            orb(name: $name) {
                id
            }
            registryNamespace(name: $namespace) {
                id
            }
        }"""
        data = self._run(query, name=f"{namespace}/{orb}", namespace=namespace)
        orb_id = (data.get("orb") or {}).get("id")
        if orb_id:
            return orb_id
        if not (data.get("registryNamespace") or {}).get("id"):
            raise NotFoundError(f"the '{namespace}' namespace does not exist")
        raise NotFoundError(f"the '{orb}' orb does not exist in the '{namespace}' namespace")

    def create_orb(self, namespace: str, name: str, private: bool = False) -> str:
        """Reserve an orb name in a namespace and return the orb id."""
        query = """
        mutation($name: String!, $registryNamespaceId: UUID!, $isPrivate: Boolean!){
            createOrb(
                name: $name,
                registryNamespaceId: $registryNamespaceId,
                isPrivate: $isPrivate
            ){
                orb {
                    id
                }
                errors {
                    message
                    type
                }
            }
        }"""
        data = self._run(query, name=name, registryNamespaceId=self.namespace_id(namespace), isPrivate=private)
        payload = data.get("createOrb") or {}
        _mutation_errors(payload)
        return (payload.get("orb") or {}).get("id", "")

    def orb_latest_version(self, namespace: str, orb: str) -> str:
        """Return the latest published version, or ``0.0.0`` if there is none."""
        query = """
        query($name: String!) {
            orb(name: $name) {
                versions(count: 1) {
                    version
                }
            }
        }"""
        data = self._run(query, name=f"{namespace}/{orb}")
        versions = (data.get("orb") or {}).get("versions") or []
        if len(versions) != 1:
            return "0.0.0"
        return versions[0].get("version", "0.0.0")

    def orb_source(self, orb_ref: str) -> str:
        query = """
        query($orbVersionRef: String!) {
            orbVersion(orbVersionRef: $orbVersionRef) {
                id
                version
                orb { id }
                source
            }
        }"""
        data = self._run(query, orbVersionRef=orb_version_ref(orb_ref))
        orb_version = data.get("orbVersion") or {}
        if not orb_version.get("id"):
            raise NotFoundError(f"the {orb_ref} orb has never published a revision")
        return orb_version.get("source", "")

    def orb_info(self, orb_ref: str) -> Dict[str, Any]:
        """Return metadata about an orb version: versions, categories and usage."""
        query = """
        query($orbVersionRef: String!) {
            orbVersion(orbVersionRef: $orbVersionRef) {
                id
                version
                orb {
                    id
                    createdAt
                    name
                    namespace {
                        name
                    }
                    categories {
                        id
                        name
                    }
                    statistics {
                        last30DaysBuildCount,
                        last30DaysProjectCount,
                        last30DaysOrganizationCount
                    }
                    versions(count: 200) {
                        createdAt
                        version
                    }
                }
                source
                createdAt
            }
        }"""
        data = self._run(query, orbVersionRef=orb_version_ref(orb_ref))
        orb_version = data.get("orbVersion") or {}
        if not orb_version.get("id"):
            raise NotFoundError(f"the {orb_ref} orb has never published a revision")
        return orb_version

    def _collect_orbs(self, edges: List[Dict[str, Any]], orbs: List[Orb]) -> str:
        """Append parsed orbs from a page of edges, returning the last cursor."""
        cursor = ""
        for edge in edges:
            cursor = edge.get("cursor", cursor)
            node = edge.get("node") or {}
            versions = node.get("versions") or []
            if not versions:
                continue
            try:
                orbs.append(orb_from_versions(node.get("name", ""), versions))
            except yaml.YAMLError as e:
                logger.error(f"Corrupt Orb {node.get('name', '')} {versions[0].get('version', '')}: {e}")
        return cursor

    def list_orbs(self, uncertified: bool = False) -> OrbCollection:
        """List every orb in the registry, certified only unless ``uncertified``."""
        query = """
        query ListOrbs ($after: String!, $certifiedOnly: Boolean!) {
            orbs(first: %d, after: $after, certifiedOnly: $certifiedOnly) {
                totalCount,
                edges {
                    cursor
                    node {
                        name
                        versions(count: 1) {
                            version,
                            source
                        }
                    }
                }
                pageInfo {
                    hasNextPage
                }
            }
        }""" % PAGE_SIZE
        collection = OrbCollection()
        cursor = ""
        while True:
            data = self._run(query, after=cursor, certifiedOnly=not uncertified)
            page = data.get("orbs") or {}
            cursor = self._collect_orbs(page.get("edges") or [], collection.orbs) or cursor
            if not (page.get("pageInfo") or {}).get("hasNextPage"):
                return collection

    def list_namespace_orbs(self, namespace: str) -> OrbCollection:
        query = """
        query namespaceOrbs ($namespace: String, $after: String!) {
            registryNamespace(name: $namespace) {
                name
                orbs(first: %d, after: $after) {
                    edges {
                        cursor
                        node {
                            versions {
                                source
                                version
                            }
                            name
                        }
                    }
                    totalCount
                    pageInfo {
                        hasNextPage
                    }
                }
            }
        }""" % PAGE_SIZE
        collection = OrbCollection(namespace=namespace)
        cursor = ""
        while True:
            data = self._run(query, namespace=namespace, after=cursor)
            page = (data.get("registryNamespace") or {}).get("orbs") or {}
            cursor = self._collect_orbs(page.get("edges") or [], collection.orbs) or cursor
            if not (page.get("pageInfo") or {}).get("hasNextPage"):
                return collection

    # Versions

    def publish_orb(self, config_path: str, namespace: str, orb: str, version: str) -> str:
        """Publish an orb version and return the version the registry recorded."""
        query = """
        mutation($config: String!, $orbName: String, $namespaceName: String, $version: String!) {
            publishOrb(
                orbName: $orbName,
                namespaceName: $namespaceName,
                orbYaml: $config,
                version: $version
            ) {
                orb {
                    version
                }
                errors { message }
            }
        }"""
        data = self._run(
            query,
            config=load_yaml(config_path),
            orbName=orb,
            namespaceName=namespace,
            version=version,
        )
        payload = data.get("publishOrb") or {}
        _mutation_errors(payload)
        return (payload.get("orb") or {}).get("version", version)

    def increment_orb(self, config_path: str, namespace: str, orb: str, segment: str) -> str:
        """Publish ``config_path`` as the next ``segment`` version of an orb."""
        self.orb_id(namespace, orb)
        current = self.orb_latest_version(namespace, orb)
        version = increment_version(current, segment)
        published = self.publish_orb(config_path, namespace, orb, version)
        logger.debug(f"Bumped {namespace}/{orb} from {current} by {segment} to {version}")
        return published

    def promote_orb(self, namespace: str, orb: str, label: str, segment: str) -> Dict[str, Any]:
        """Promote a development version to the next ``segment`` semantic version."""
        self.orb_id(namespace, orb)
        version = increment_version(self.orb_latest_version(namespace, orb), segment)
        query = """
        mutation($orbName: String, $namespaceName: String, $devVersion: String!, $semanticVersion: String!) {
            promoteOrb(
                orbName: $orbName,
                namespaceName: $namespaceName,
                devVersion: $devVersion,
                semanticVersion: $semanticVersion
            ) {
                orb {
                    version
                    source
                }
                errors { message }
            }
        }"""
        data = self._run(
            query,
            orbName=orb,
            namespaceName=namespace,
            devVersion=label,
            semanticVersion=version,
        )
        payload = data.get("promoteOrb") or {}
        _mutation_errors(payload)
        return payload.get("orb") or {"version": version}

    def set_orb_listing(self, namespace: str, orb: str, listed: bool) -> bool:
        """List or unlist an orb in the registry."""
        query = """
        mutation($orbId: UUID!, $list: Boolean!) {
            setOrbListedStatus(
                orbId: $orbId,
                list: $list
            ) {
                listed
                errors {
                    message
                    type
                }
            }
        }"""
        data = self._run(query, orbId=self.orb_id(namespace, orb), list=listed)
        payload = data.get("setOrbListedStatus") or {}
        _mutation_errors(payload)
        return bool(payload.get("listed"))

    # Categories

    def list_categories(self) -> List[OrbCategory]:
        query = """
        query ListOrbCategories($after: String!) {
            orbCategories(first: %d, after: $after) {
                totalCount
                edges {
                    cursor
                    node {
                        id
                        name
                    }
                }
                pageInfo {
                    hasNextPage
                }
            }
        }""" % PAGE_SIZE
        categories: List[OrbCategory] = []
        cursor = ""
        while True:
            page = self._run(query, after=cursor).get("orbCategories") or {}
            for edge in page.get("edges") or []:
                cursor = edge.get("cursor", cursor)
                node = edge.get("node") or {}
                categories.append(OrbCategory(node.get("id", ""), node.get("name", "")))
            if not (page.get("pageInfo") or {}).get("hasNextPage"):
                return categories

    def category_id(self, name: str) -> str:
        query = """
        query ($name: String!) {
            orbCategoryByName(name: $name) {
                id
            }
        }"""
        category_id = (self._run(query, name=name).get("orbCategoryByName") or {}).get("id")
        if not category_id:
            raise NotFoundError(f"the '{name}' category does not exist")
        return category_id

    def add_or_remove_category(self, namespace: str, orb: str, category: str, add: bool) -> None:
        mutation = "addOrbToCategory" if add else "removeOrbFromCategory"
        query = """
        mutation($orbId: UUID!, $categoryId: UUID!) {
            %s(
                orbId: $orbId,
                categoryId: $categoryId
            ) {
                orbId
                categoryId
                errors {
                    message
                    type
                }
            }
        }""" % mutation
        data = self._run(query, orbId=self.orb_id(namespace, orb), categoryId=self.category_id(category))
        _mutation_errors(data.get(mutation) or {})

    # Validation

    def supports_owner_id(self) -> bool:
        """Check through introspection whether ``orbConfig`` takes an ``ownerId``."""
        if self._supports_owner_id is not None:
            return self._supports_owner_id

        query = """
        query IntrospectionQuery {
            __schema {
                queryType {
                    fields(includeDeprecated: true) {
                        name
                        args {
                            name
                            __typename
                            type {
                                name
                            }
                        }
                    }
                }
            }
        }"""
        try:
            data = self.gql.run(self.gql.new_request(query, authorized=False))
        except APIError as e:
            logger.debug(f"Schema introspection failed, assuming no ownerId support: {e}")
            data = {}

        fields = ((data.get("__schema") or {}).get("queryType") or {}).get("fields") or []
        self._supports_owner_id = any(
            f.get("name") == "orbConfig" and any(a.get("name") == "ownerId" for a in f.get("args") or [])
            for f in fields
        )
        return self._supports_owner_id

    def validate_orb(self, path: str, owner_id: str = "") -> OrbConfigResponse:
        """Validate an orb file through the ``orbConfig`` query.

        Raises:
            APIError: If the orb is invalid; the message lists every error
            CircleCIError: If ``owner_id`` is given but the server cannot use it
        """
        config = load_yaml(path)
        if self.supports_owner_id():
            query = """
            query ValidateOrb ($config: String!, $owner: UUID) {
                orbConfig(orbYaml: $config, ownerId: $owner) {
                    valid,
                    errors { message },
                    sourceYaml,
                    outputYaml
                }
            }"""
            variables: Dict[str, Any] = {"config": config}
            if owner_id:
                variables["owner"] = owner_id
        else:
            if owner_id:
                raise CircleCIError(SERVER_COMPATIBILITY_ERROR)
            query = """
            query ValidateOrb ($config: String!) {
                orbConfig(orbYaml: $config) {
                    valid,
                    errors { message },
                    sourceYaml,
                    outputYaml
                }
            }"""
            variables = {"config": config}

        result = self._run(query, **variables).get("orbConfig") or {}
        _mutation_errors(result)
        return OrbConfigResponse(
            valid=bool(result.get("valid")),
            source_yaml=result.get("sourceYaml", ""),
            output_yaml=result.get("outputYaml", ""),
        )

    def process_orb(self, path: str, owner_id: str = "") -> str:
        """Validate an orb and return its expanded YAML."""
        return self.validate_orb(path, owner_id).output_yaml
