"""Integration tests for DeploymentOrchestrator and the command line."""

import json
from pathlib import Path

import pytest
import responses

from crowdsale_deployments import (
    CyclicDependencyError,
    DeploymentOrchestrator,
    DeploymentRejectedError,
    NetworkMismatchError,
    UnknownArtifactError,
    deploy,
    load_artifacts,
)
from crowdsale_deployments.cli import main
from crowdsale_deployments.migrations import (
    CROWDSALE_ARTIFACTS,
    INTERACTIVE_CROWDSALE_TEST_CONTRACT,
    crowdsale_migration,
)
from crowdsale_deployments.types import ArtifactAddress, Deploy, Link, NetworkContext


class TestOrchestratorInitialization:
    """Test DeploymentOrchestrator initialization."""

    def test_unknown_network_profile(self, library_and_dependent, fake_transport):
        with pytest.raises(NetworkMismatchError):
            DeploymentOrchestrator(library_and_dependent, [], "ropsten", fake_transport)

    def test_default_registry_path(self, library_and_dependent, fake_transport, tmp_path,
                                   monkeypatch):
        monkeypatch.chdir(tmp_path)
        orchestrator = DeploymentOrchestrator(library_and_dependent, [], "development",
                                              fake_transport)

        assert orchestrator.registry_path == tmp_path / ".crowdsale-deployments" / "deployments.json"

    def test_accepts_network_context(self, library_and_dependent, fake_transport):
        context = NetworkContext(name="staging", host="10.0.0.5", port=8545)
        orchestrator = DeploymentOrchestrator(library_and_dependent, [], context, fake_transport)

        assert orchestrator.context is context


class TestRun:
    """Test the run() method."""

    def test_deploys_and_persists(self, library_and_dependent, fake_transport, registry_path):
        steps = [Deploy("B"), Link("A", "B"), Deploy("A")]

        report = deploy(library_and_dependent, steps, "development", fake_transport, registry_path)

        assert report.succeeded
        assert report.executed == [Deploy("A"), Link("A", "B"), Deploy("B")]

        with open(registry_path) as f:
            data = json.load(f)
        contracts = data["networks"]["development"]["contracts"]
        assert contracts["A"]["address"] == report.addresses["A"]
        assert contracts["B"]["links"] == {"A": report.addresses["A"]}

    def test_rerun_from_registry_file_is_idempotent(
        self, artifact_factory, fake_transport, registry_path
    ):
        steps = [Deploy("A"), Link("A", "B"), Deploy("B")]

        def fresh_artifacts():
            return [artifact_factory("A", "aa"), artifact_factory("B", "bb", ["A"])]

        first = deploy(fresh_artifacts(), steps, "development", fake_transport, registry_path)
        second = deploy(fresh_artifacts(), steps, "development", fake_transport, registry_path)

        assert len(fake_transport.submitted) == 2
        assert second.executed == []
        assert second.addresses == first.addresses

    def test_networks_tracked_separately(self, artifact_factory, fake_transport, registry_path):
        steps = [Deploy("A")]

        deploy([artifact_factory("A", "aa")], steps, "development", fake_transport, registry_path)
        deploy([artifact_factory("A", "aa")], steps, "coverage", fake_transport, registry_path)

        assert len(fake_transport.submitted) == 2
        with open(registry_path) as f:
            data = json.load(f)
        assert set(data["networks"]) == {"development", "coverage"}

    def test_reused_artifacts_deploy_fresh_on_each_network(
        self, library_and_dependent, fake_transport, registry_path
    ):
        steps = [Deploy("A"), Link("A", "B"), Deploy("B")]
        live = NetworkContext(name="live", host="localhost", port=8545)

        development = deploy(library_and_dependent, steps, "development", fake_transport,
                             registry_path)
        on_live = deploy(library_and_dependent, steps, live, fake_transport, registry_path)

        assert len(fake_transport.submitted) == 4
        assert on_live.executed == [Deploy("A"), Link("A", "B"), Deploy("B")]
        assert on_live.addresses["A"] != development.addresses["A"]
        assert library_and_dependent[1].links == {"A": on_live.addresses["A"]}

        with open(registry_path) as f:
            networks = json.load(f)["networks"]
        assert networks["development"]["contracts"]["A"]["address"] == development.addresses["A"]
        assert networks["live"]["contracts"]["A"]["address"] == on_live.addresses["A"]

    def test_subset_run_keeps_other_records(self, artifact_factory, fake_transport,
                                            registry_path):
        deploy([artifact_factory("A", "aa")], [Deploy("A")], "development", fake_transport,
               registry_path)
        deploy([artifact_factory("C", "cc")], [Deploy("C")], "development", fake_transport,
               registry_path)

        with open(registry_path) as f:
            contracts = json.load(f)["networks"]["development"]["contracts"]
        assert set(contracts) == {"A", "C"}

        report = deploy(
            [artifact_factory("A", "aa"), artifact_factory("C", "cc")],
            [Deploy("A"), Deploy("C")],
            "development",
            fake_transport,
            registry_path,
        )
        assert report.executed == []
        assert len(fake_transport.submitted) == 2

    def test_argument_reference_declared_later(self, artifact_factory, fake_transport,
                                               registry_path):
        artifacts = [artifact_factory("Sale", "5a"), artifact_factory("Token", "70")]
        steps = [Deploy("Sale", args=[ArtifactAddress("Token")]), Deploy("Token")]

        report = deploy(artifacts, steps, "development", fake_transport, registry_path)

        assert report.executed == [Deploy("Token"), steps[0]]
        assert fake_transport.submitted[1]["args"] == [report.addresses["Token"]]

    def test_cycle_fails_before_any_deployment(self, artifact_factory, fake_transport,
                                               registry_path):
        artifacts = [artifact_factory("X", "01", ["Y"]), artifact_factory("Y", "02", ["X"])]
        steps = [Deploy("X"), Deploy("Y"), Link("X", "Y"), Link("Y", "X")]

        with pytest.raises(CyclicDependencyError):
            deploy(artifacts, steps, "development", fake_transport, registry_path)

        assert fake_transport.submitted == []
        assert not registry_path.exists()

    def test_unknown_artifact_fails_before_any_deployment(
        self, library_and_dependent, fake_transport, registry_path
    ):
        steps = [Deploy("A"), Link("A", "Missing")]

        with pytest.raises(UnknownArtifactError):
            deploy(library_and_dependent, steps, "development", fake_transport, registry_path)

        assert fake_transport.submitted == []

    def test_failure_persists_partial_result(
        self, library_and_dependent, transport_factory, registry_path
    ):
        orchestrator = DeploymentOrchestrator(
            library_and_dependent,
            [Deploy("A"), Link("A", "B"), Deploy("B")],
            "development",
            transport_factory(reject=["bb"]),
            registry_path,
        )

        with pytest.raises(DeploymentRejectedError):
            orchestrator.run()

        assert orchestrator.report.failed_step == Deploy("B")
        with open(registry_path) as f:
            data = json.load(f)
        assert list(data["networks"]["development"]["contracts"]) == ["A"]


class TestCrowdsaleMigration:
    """Run the reference crowdsale migration."""

    def test_development_links_test_contract(self, build_dir, fake_transport, registry_path):
        artifacts = load_artifacts(build_dir, CROWDSALE_ARTIFACTS)

        report = deploy(
            artifacts.values(), crowdsale_migration(), "development", fake_transport, registry_path
        )

        assert set(report.addresses) == {
            "BasicMathLib",
            "TokenLib",
            "LinkedListLib",
            "InteractiveCrowdsaleLib",
        }
        test_contract = artifacts[INTERACTIVE_CROWDSALE_TEST_CONTRACT]
        assert test_contract.unresolved_libraries() == []
        assert artifacts["InteractiveCrowdsaleToken"].unresolved_libraries() == []

    def test_live_skips_test_contract_link(self, build_dir, fake_transport, registry_path):
        artifacts = load_artifacts(build_dir, CROWDSALE_ARTIFACTS)
        context = NetworkContext(name="live", host="localhost", port=8545)

        report = deploy(
            artifacts.values(), crowdsale_migration(), context, fake_transport, registry_path
        )

        assert report.succeeded
        assert [skipped.step for skipped in report.skipped] == [
            Link(
                "InteractiveCrowdsaleLib",
                INTERACTIVE_CROWDSALE_TEST_CONTRACT,
                networks=["development", "coverage"],
            )
        ]
        assert artifacts[INTERACTIVE_CROWDSALE_TEST_CONTRACT].links == {}
        assert len(fake_transport.submitted) == 4


class TestCommandLine:
    """Test the crowdsale-deploy entry point."""

    @responses.activate
    def test_deploys_over_json_rpc(self, build_dir: Path, registry_path: Path, capsys):
        rpc_url = "http://test-rpc.example.com"
        sender = "0x" + "5" * 40
        contract_number = iter(range(1, 100))

        def handle(request):
            body = json.loads(request.body)
            match body["method"]:
                case "eth_accounts":
                    result = [sender]
                case "eth_sendTransaction":
                    result = "0x" + f"{next(contract_number):064x}"
                case "eth_getTransactionReceipt":
                    index = int(body["params"][0], 16)
                    result = {"status": "0x1", "contractAddress": "0x" + f"{index:040x}"}
            return 200, {}, json.dumps({"jsonrpc": "2.0", "id": body["id"], "result": result})

        responses.add_callback(responses.POST, rpc_url, callback=handle)

        exit_code = main(
            [
                "--network", "development",
                "--build-dir", str(build_dir),
                "--registry", str(registry_path),
                "--rpc-url", rpc_url,
            ]
        )

        assert exit_code == 0
        output = capsys.readouterr().out
        assert "BasicMathLib: 0x" + f"{1:040x}" in output
        assert "InteractiveCrowdsaleLib: 0x" + f"{4:040x}" in output
        assert registry_path.exists()

    def test_missing_build_dir_exits_nonzero(self, tmp_path: Path, registry_path: Path):
        exit_code = main(
            ["--build-dir", str(tmp_path / "missing"), "--registry", str(registry_path)]
        )

        assert exit_code == 1

    @responses.activate
    def test_malformed_rpc_response_exits_nonzero(self, build_dir: Path, registry_path: Path):
        rpc_url = "http://test-rpc.example.com"
        responses.add(responses.POST, rpc_url, body="<html>bad gateway</html>", status=200)

        exit_code = main(
            [
                "--build-dir", str(build_dir),
                "--registry", str(registry_path),
                "--rpc-url", rpc_url,
            ]
        )

        assert exit_code == 1


def test_validate_order_exported():
    from crowdsale_deployments import validate_order

    assert validate_order([Deploy("A"), Link("A", "B"), Deploy("B")]) == []
