"""
Bundle-Based Agent Catalog
==========================

Discovers agents from bundle manifests and parses their definition files.

Directory structure:
    {bundles_root}/{bundle}/bundle.yaml   - Bundle manifest
    {bundles_root}/{bundle}/agents/*.md   - Agent definition files

Manifest types:
    bundle      - ``agents`` list; only entries with ``entry_point: true`` are exposed
    standalone  - single ``agent`` entry

Invalid bundles are logged and skipped so one broken bundle never hides
the others.
"""

import os
from pathlib import Path
from typing import Any

import structlog
import yaml

from flint.core.domain.agent_definition import parse_agent_definition
from flint.core.domain.models import AgentDefinition

logger = structlog.get_logger()

MANIFEST_FILE = "bundle.yaml"
BUNDLE_TYPES = ("bundle", "standalone")


class ManifestError(ValueError):
    """A bundle manifest is structurally invalid."""


def validate_manifest(manifest: Any) -> None:
    """
    Validate the structure of a parsed bundle manifest.

    Raises:
        ManifestError: With a message naming the first problem found
    """
    if not isinstance(manifest, dict):
        raise ManifestError("Bundle manifest must be a YAML mapping")

    for field in ("type", "name", "version"):
        if not manifest.get(field):
            raise ManifestError(f"Bundle manifest missing required field: {field}")

    bundle_type = manifest["type"]
    if bundle_type not in BUNDLE_TYPES:
        raise ManifestError(
            f"Invalid bundle type: {bundle_type}. Must be 'bundle' or 'standalone'"
        )

    if bundle_type == "bundle":
        agents = manifest.get("agents")
        if not isinstance(agents, list):
            raise ManifestError(
                "Multi-agent bundle manifest missing required field: agents (must be a list)"
            )
        if not any(isinstance(a, dict) and a.get("entry_point") is True for a in agents):
            raise ManifestError(
                "Multi-agent bundle must have at least one agent with entry_point: true"
            )
    elif not isinstance(manifest.get("agent"), dict):
        raise ManifestError("Standalone bundle manifest missing required field: agent")


class BundleAgentCatalog:
    """
    Agent catalog backed by bundle directories.

    Agents are discovered lazily on first use and cached until
    ``clear_cache`` is called.

    Example:
        >>> catalog = BundleAgentCatalog("bmad/custom/bundles")
        >>> [agent.id for agent in catalog.list_agents()]
        ['analyst', 'procurement']
    """

    def __init__(self, bundles_root: str):
        """
        Initialize the catalog.

        Args:
            bundles_root: Directory containing one sub-directory per bundle
        """
        self.bundles_root = Path(bundles_root)
        self.logger = logger.bind(component="bundle_catalog")
        self._agents: dict[str, AgentDefinition] | None = None

    def clear_cache(self) -> None:
        self._agents = None

    def list_agents(self) -> list[AgentDefinition]:
        """Return every exposed agent, sorted by bundle then id."""
        return sorted(
            self._load().values(), key=lambda agent: (agent.bundle_name, agent.id)
        )

    async def get_agent(self, agent_id: str) -> AgentDefinition | None:
        """Return the agent with ``agent_id``, or None."""
        return self._load().get(agent_id)

    def _load(self) -> dict[str, AgentDefinition]:
        if self._agents is None:
            self._agents = {}
            for agent in self.discover():
                if agent.id in self._agents:
                    self.logger.warning(
                        "agent.duplicate_id",
                        agent_id=agent.id,
                        bundle=agent.bundle_name,
                    )
                    continue
                self._agents[agent.id] = agent
        return self._agents

    def discover(self) -> list[AgentDefinition]:
        """Scan the bundles root and parse every exposed agent."""
        if not self.bundles_root.is_dir():
            self.logger.info("bundles.directory_missing", path=str(self.bundles_root))
            return []

        agents: list[AgentDefinition] = []
        for bundle_dir in sorted(self.bundles_root.iterdir()):
            if not bundle_dir.is_dir():
                continue
            try:
                agents.extend(self._load_bundle(bundle_dir))
            except Exception as e:
                self.logger.warning(
                    "bundle.load_failed",
                    bundle=bundle_dir.name,
                    error=str(e),
                )

        self.logger.info(
            "bundles.discovered",
            agents=len(agents),
            path=str(self.bundles_root),
        )
        return agents

    def _load_bundle(self, bundle_dir: Path) -> list[AgentDefinition]:
        with open(bundle_dir / MANIFEST_FILE, "r", encoding="utf-8") as f:
            manifest = yaml.safe_load(f)

        validate_manifest(manifest)

        if manifest["type"] == "bundle":
            entries = [
                entry
                for entry in manifest["agents"]
                if isinstance(entry, dict) and entry.get("entry_point") is True
            ]
        else:
            entries = [manifest["agent"]]

        bundle_path = str(bundle_dir.resolve())
        return [
            self._load_agent(entry, str(manifest["name"]), bundle_path)
            for entry in entries
        ]

    def _load_agent(
        self, entry: dict[str, Any], bundle_name: str, bundle_path: str
    ) -> AgentDefinition:
        file_name = entry.get("file")
        if not file_name:
            raise ManifestError(f"Agent entry {entry.get('id', '?')} missing required field: file")

        file_path = os.path.normpath(os.path.join(bundle_path, str(file_name)))
        with open(file_path, "r", encoding="utf-8") as f:
            content = f.read()

        agent = parse_agent_definition(
            content,
            agent_id=str(entry.get("id", "")),
            file_path=file_path,
            bundle_name=bundle_name,
            bundle_path=bundle_path,
        )

        # Manifest metadata wins over the <agent> tag
        agent.id = str(entry.get("id") or agent.id)
        if not agent.id:
            raise ManifestError(f"Agent in {file_name} has no id")
        agent.name = str(entry.get("name") or agent.name)
        agent.title = str(entry.get("title") or agent.title)
        agent.icon = str(entry.get("icon") or agent.icon)
        agent.description = str(entry.get("description") or "")
        return agent
