"""pytest integration for contract test suites.

Registered through the ``pytest11`` entry point. Provides:

- ``--calls-json`` / ``--scip-json``: override the document locations from
  ``callcontract.yaml``;
- ``--experimental``: run tests marked ``@pytest.mark.experimental``
  (also enabled by ``data.experimental`` in the config);
- ``contract_config`` and ``contract_data`` fixtures. The documents are
  loaded once per test session; every test that uses ``contract_data`` is
  tagged in the logs with its node id.

When a run with failures logged to a file, the summary names that file.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from callcontract.config import CallContractConfig, load_config
from callcontract.core.logging import configure_logging, contract_context, get_log_file_path
from callcontract.session import ContractData


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("callcontract", "call-graph contract tests")
    group.addoption(
        "--calls-json",
        action="store",
        default=None,
        help="Path to calls.json (overrides data.calls_json).",
    )
    group.addoption(
        "--scip-json",
        action="store",
        default=None,
        help="Path to the SCIP symbol index (overrides data.scip_json).",
    )
    group.addoption(
        "--experimental",
        action="store_true",
        default=False,
        help="Run contract tests marked experimental.",
    )


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "experimental: contract covering an experimental call kind; "
        "skipped unless --experimental is given",
    )


def _experimental_enabled(config: pytest.Config) -> bool:
    if config.getoption("--experimental"):
        return True
    return load_config(config.rootpath).data.experimental


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    marked = [item for item in items if item.get_closest_marker("experimental")]
    if not marked or _experimental_enabled(config):
        return
    skip = pytest.mark.skip(reason="experimental contract; run with --experimental")
    for item in marked:
        item.add_marker(skip)


@pytest.fixture(scope="session")
def contract_config(pytestconfig: pytest.Config) -> CallContractConfig:
    """Project configuration with command-line document overrides applied."""
    config = load_config(pytestconfig.rootpath)
    overrides: dict[str, object] = {}
    if calls := pytestconfig.getoption("--calls-json"):
        overrides["calls_json"] = str(Path(calls).resolve())
    if scip := pytestconfig.getoption("--scip-json"):
        overrides["scip_json"] = str(Path(scip).resolve())
    if pytestconfig.getoption("--experimental"):
        overrides["experimental"] = True
    if overrides:
        config = config.model_copy(update={"data": config.data.model_copy(update=overrides)})
    return config


@pytest.fixture(scope="session")
def _contract_data_session(
    pytestconfig: pytest.Config, contract_config: CallContractConfig
) -> ContractData:
    configure_logging(config=contract_config.logging)
    return ContractData.from_config(contract_config, pytestconfig.rootpath)


@pytest.fixture
def contract_data(
    request: pytest.FixtureRequest, _contract_data_session: ContractData
) -> Iterator[ContractData]:
    """The loaded documents, shared by every test in the session."""
    with contract_context(request.node.nodeid):
        yield _contract_data_session


def pytest_terminal_summary(terminalreporter: pytest.TerminalReporter) -> None:
    path = get_log_file_path()
    if path is not None and terminalreporter.stats.get("failed"):
        terminalreporter.write_line(f"callcontract log: {path}")
