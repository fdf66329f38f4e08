"""Shared fixtures: a small project tree with one bundle and the core files."""

import textwrap
from pathlib import Path

import pytest

from flint.application.settings import FlintSettings

AGENT_DOCUMENT = textwrap.dedent(
    """\
    # Casey

    <agent id="analyst" name="Casey" title="Financial Analyst" icon="💰">
      <persona>
        <role>Budget analyst for procurement requests</role>
        <identity>Ten years of corporate finance experience.</identity>
        <communication_style>Direct and numbers-first.</communication_style>
        <principles>Every figure needs a source.</principles>
      </persona>
      <critical-actions>
        <i>Load into memory {bundle-root}/config.yaml and set variables: user_name, communication_language</i>
        <i>Remember the user's name is {user_name}</i>
      </critical-actions>
      <cmds>
        <c cmd="*help">Show numbered command list</c>
        <c cmd="*budget" run-workflow="{bundle-root}/workflows/budget/workflow.yaml">Review a budget</c>
      </cmds>
    </agent>
    """
)

BUNDLE_MANIFEST = textwrap.dedent(
    """\
    type: bundle
    name: finance
    version: 1.0.0
    agents:
      - id: analyst
        name: Casey
        title: Financial Analyst
        file: agents/analyst.md
        entry_point: true
        description: Reviews budgets
      - id: helper
        name: Helper
        title: Internal helper
        file: agents/helper.md
        entry_point: false
    """
)

WORKFLOW_DEFINITION = textwrap.dedent(
    """\
    name: budget-review
    installed_path: "{bundle-root}/workflows/budget"
    config_source: "{bundle-root}/config.yaml"
    instructions: "{installed_path}/instructions.md"
    template: "{installed_path}/template.md"
    """
)


def write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture
def project(tmp_path):
    """Project root with core files, one bundle and an output directory."""
    root = tmp_path / "project"
    bundle = root / "bmad" / "custom" / "bundles" / "finance"

    write(root / "bmad" / "core" / "tasks" / "workflow.md", "# Workflow engine rules\n")
    write(root / "bmad" / "core" / "tasks" / "adv-elicit.md", "# Advanced elicitation\n")
    write(bundle / "bundle.yaml", BUNDLE_MANIFEST)
    write(bundle / "agents" / "analyst.md", AGENT_DOCUMENT)
    write(bundle / "config.yaml", "user_name: Alice\ncommunication_language: English\n")
    write(bundle / "workflows" / "budget" / "workflow.yaml", WORKFLOW_DEFINITION)
    write(bundle / "workflows" / "budget" / "instructions.md", "1. Ask for the budget\n")
    write(bundle / "workflows" / "budget" / "template.md", "# Budget {{title}}\n")
    (root / "data" / "conversations").mkdir(parents=True)

    return root


@pytest.fixture
def bundle_root(project):
    return project / "bmad" / "custom" / "bundles" / "finance"


@pytest.fixture
def settings(project):
    return FlintSettings(project_root=str(project))


@pytest.fixture
def context(settings, bundle_root):
    """Fresh PathContext rooted at the finance bundle."""
    return settings.path_context(str(bundle_root))


@pytest.fixture
def agent_document():
    return AGENT_DOCUMENT
