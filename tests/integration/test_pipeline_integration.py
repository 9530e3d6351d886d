"""integration tests for the repository extraction pipeline"""

import json
from pathlib import Path

import pytest

from src.compiler import find_all_contracts
from src.compiler.errors import ParseConfigError, ProjectCompileError, UnsupportedProjectTypeError
from src.compiler.pipeline import ProjectResolver
from src.models.contracts import ContractKindType, ProjectType
from src.utils.logging import PipelineLogger

HARDHAT_TS = 'import { HardhatUserConfig } from "hardhat/config";\n\nexport default {};\n'

END_TO_END_SOURCES = {
    "A.sol": {"version": "0.8.19", "bytecode": "0x608060", "imports": ["B.sol", "C.sol"]},
    "B.sol": {"bytecode": "0x"},
    "C.sol": {"bytecode": "0x6080ab"},
}


@pytest.fixture
def compile_with(build_output):
    """on_compile hook writing a build output chosen per root directory name"""

    def make(outputs):
        def on_compile(project_root: Path):
            sources = outputs.get(project_root.name)
            if sources is not None:
                build_output(project_root, sources)
        return on_compile

    return make


def write_hardhat_descriptor(project_root: Path) -> None:
    (project_root / "foundry.toml").write_text('[profile.default]\nsrc = "contracts"\nout = "out"\n', encoding="utf-8")


class TestProjectResolver:

    def test_end_to_end_single_root(self, foundry_project, fake_toolchain, compile_with):
        root = foundry_project("proj")
        toolchain = fake_toolchain(on_compile=compile_with({"proj": END_TO_END_SOURCES}))

        result = ProjectResolver(toolchain=toolchain, max_workers=4).extract_all(root)

        assert result.success
        by_name = {c.name: c for c in result.contracts}
        a = by_name["A"]
        assert repr(a.kind) == 'Contract(0x608060)'
        assert a.version == "0.8.19"
        assert [c.name for c in a.imported_contracts] == ["B", "C"]
        assert a.imported_contracts[0].kind.type == ContractKindType.INTERFACE
        assert a.imported_contracts[1].kind.type == ContractKindType.CONTRACT
        # interfaces lead the root's list
        assert result.contracts[0].name == "B"

    def test_monorepo_failure_isolation(self, tmp_path, fake_toolchain, compile_with):
        repo = tmp_path / "repo"
        for name in ("alpha", "beta", "gamma"):
            (repo / name).mkdir(parents=True)
            (repo / name / "foundry.toml").write_text("[profile.default]\n", encoding="utf-8")
        (repo / "legacy").mkdir()
        (repo / "legacy" / "truffle-config.js").write_text("module.exports = {};\n", encoding="utf-8")

        toolchain = fake_toolchain(
            failures={"beta:compile": (1, "Error: Compiler run failed")},
            on_compile=compile_with({
                "alpha": {"Alpha.sol": {"bytecode": "0x01"}},
                "gamma": {"Gamma.sol": {"bytecode": "0x02"}, "IGamma.sol": {"bytecode": "0x"}},
            }),
        )

        result = ProjectResolver(toolchain=toolchain, max_workers=2).extract_all(repo)

        assert [r.project_root.path.name for r in result.roots] == ["alpha", "gamma"]
        assert [c.name for c in result.contracts] == ["Alpha", "IGamma", "Gamma"]

        failures = {f.project_root.path.name: f for f in result.failures}
        assert set(failures) == {"beta", "legacy"}
        assert isinstance(failures["beta"].error, ProjectCompileError)
        assert failures["beta"].error.stderr == "Error: Compiler run failed"
        assert isinstance(failures["legacy"].error, UnsupportedProjectTypeError)
        assert not result.success
        # the truffle root never reached the toolchain
        assert all(cwd.name != "legacy" for _, cwd in toolchain.calls)

    def test_undecodable_remappings_fail_only_their_root(self, tmp_path, fake_toolchain, compile_with):
        repo = tmp_path / "repo"
        for name in ("a", "b"):
            (repo / name).mkdir(parents=True)
            (repo / name / "foundry.toml").write_text("[profile.default]\n", encoding="utf-8")
        (repo / "a" / "remappings.txt").write_bytes(b"\xff\xfe=bad\n")
        toolchain = fake_toolchain(on_compile=compile_with({
            "a": {"A.sol": {"bytecode": "0x01"}},
            "b": {"B.sol": {"bytecode": "0x02"}},
        }))

        result = ProjectResolver(toolchain=toolchain).extract_all(repo)

        assert [r.project_root.path.name for r in result.roots] == ["b"]
        assert [c.name for c in result.contracts] == ["B"]
        assert [f.project_root.path.name for f in result.failures] == ["a"]
        assert isinstance(result.failures[0].error, ParseConfigError)

    def test_hardhat_root(self, tmp_path, fake_toolchain, compile_with):
        repo = tmp_path / "repo"
        repo.mkdir()
        (repo / "hardhat.config.ts").write_text(HARDHAT_TS, encoding="utf-8")
        toolchain = fake_toolchain(
            on_init_foundry=write_hardhat_descriptor,
            on_compile=compile_with({"repo": {"contracts/Token.sol": {"bytecode": "0x6080"}}}),
        )

        result = ProjectResolver(toolchain=toolchain).extract_all(repo)

        assert result.roots[0].project_root.project_type == ProjectType.HARDHAT
        assert [c.name for c in result.contracts] == ["Token"]
        assert (repo / "hardhat.config.ts").read_text(encoding="utf-8").startswith(
            'import "@nomicfoundation/hardhat-foundry";'
        )

    def test_hardhat_compile_failure_yields_no_contracts(self, tmp_path, fake_toolchain):
        repo = tmp_path / "repo"
        repo.mkdir()
        (repo / "hardhat.config.js").write_text("module.exports = {};\n", encoding="utf-8")
        toolchain = fake_toolchain(
            failures={"compile": (1, "HH600: Compilation failed")},
            on_init_foundry=write_hardhat_descriptor,
        )

        result = ProjectResolver(toolchain=toolchain).extract_all(repo)

        assert result.contracts == []
        assert result.failures[0].error.stderr == "HH600: Compilation failed"

    def test_missing_cache_after_build(self, foundry_project, fake_toolchain):
        root = foundry_project("proj")

        result = ProjectResolver(toolchain=fake_toolchain()).extract_all(root)

        assert result.failures[0].error_type == "CacheReadError"

    def test_import_graph_and_event_log(self, foundry_project, fake_toolchain, compile_with, tmp_path):
        root = foundry_project("proj")
        toolchain = fake_toolchain(on_compile=compile_with({"proj": END_TO_END_SOURCES}))
        event_log = PipelineLogger(logs_dir=tmp_path / "logs", enable_sqlite=True)

        result = ProjectResolver(toolchain=toolchain, event_log=event_log, build_import_graph=True).extract_all(root)

        graph = result.roots[0].import_graph
        assert graph.has_edge(root.resolve() / "A.sol", root.resolve() / "B.sol")

        extractions = event_log.query_extractions()
        assert extractions[0]["source_files"] == 3
        assert extractions[0]["interfaces"] == 1

    def test_find_all_contracts(self, foundry_project, fake_toolchain, compile_with):
        root = foundry_project("proj")
        toolchain = fake_toolchain(on_compile=compile_with({"proj": END_TO_END_SOURCES}))

        contracts = find_all_contracts(root, toolchain=toolchain)

        assert sorted(c.name for c in contracts) == ["A", "B", "C"]


class TestCli:

    @pytest.fixture
    def cli_env(self, tmp_path, monkeypatch, fake_toolchain, compile_with):
        import main
        from src.config import config

        monkeypatch.setattr(config, "PROJECT_ROOT", tmp_path / "home")
        monkeypatch.setattr(config, "ENABLE_LOGGING", False)
        (tmp_path / "home").mkdir()

        toolchain = fake_toolchain(on_compile=compile_with({"proj": END_TO_END_SOURCES}))
        monkeypatch.setattr(main, "SubprocessToolchain", lambda: toolchain)
        return main

    def test_repo_json_report(self, cli_env, foundry_project, tmp_path):
        root = foundry_project("proj")
        output = tmp_path / "report.json"

        with pytest.raises(SystemExit) as exc_info:
            cli_env.main(["--repo", str(root), "--output-format", "json", "--output", str(output)])

        assert exc_info.value.code == 0
        data = json.loads(output.read_text(encoding="utf-8"))
        names = [c["name"] for c in data["roots"][0]["contracts"]]
        assert sorted(names) == ["A", "B", "C"]

    def test_validate_only(self, cli_env, foundry_project, capsys):
        root = foundry_project("proj")

        with pytest.raises(SystemExit) as exc_info:
            cli_env.main(["--repo", str(root), "--validate-only"])

        assert exc_info.value.code == 0
        assert "VALIDATION SUCCESSFUL" in capsys.readouterr().out

    def test_missing_repo_fails_validation(self, cli_env, tmp_path):
        with pytest.raises(SystemExit) as exc_info:
            cli_env.main(["--repo", str(tmp_path / "missing")])
        assert exc_info.value.code == 1

    def test_contests_batch_continues_after_failure(self, cli_env, tmp_path, monkeypatch, capsys):
        from src.config import config

        contests_dir = tmp_path / "contests"
        monkeypatch.setenv("CONTESTS_DIR", str(contests_dir))
        # "proj" is already checked out, cloning "broken" fails
        (contests_dir / "proj").mkdir(parents=True)
        (contests_dir / "proj" / "foundry.toml").write_text("[profile.default]\n", encoding="utf-8")
        cli_env.SubprocessToolchain().failures["broken:clone"] = (128, "fatal: repository not found")

        contests_file = tmp_path / "contests.json"
        contests_file.write_text(json.dumps([
            {"name": "Broken", "repo_uri": "https://github.com/org/broken"},
            {"name": "Proj", "repo_uri": "https://github.com/org/proj.git"},
            {"name": "Offline"},
        ]), encoding="utf-8")

        assert config.CONTESTS_DIR == contests_dir
        with pytest.raises(SystemExit) as exc_info:
            cli_env.main(["--contests", str(contests_file), "--output-format", "json"])

        assert exc_info.value.code == 0
        out = capsys.readouterr().out
        data = json.loads(out[out.index("{"):])
        by_name = {c["name"]: c for c in data["contests"]}
        assert by_name["Broken"]["contracts"] == []
        assert sorted(c["name"] for c in by_name["Proj"]["contracts"]) == ["A", "B", "C"]
