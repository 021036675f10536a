"""Tests for wprel.services.prune module."""

from __future__ import annotations

from pathlib import Path

from wprel.core.config import PruneConfig
from wprel.core.result import Ok
from wprel.output.console import MockConsole
from wprel.services.prune import DEFAULT_RULES, build_rules, plan_prune, prune_tree


def _touch(path: Path, content: str = "") -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def _plugin(tmp_path: Path) -> Path:
    root = tmp_path / "acme"
    for rel in (
        "acme.php",
        "README.txt",
        "composer.json",
        "composer.lock",
        "package.json",
        "package-lock.json",
        ".gitignore",
        "phpcs.xml",
        "phpstan.neon",
        "CLAUDE.md",
        "wprel.toml",
        ".git/HEAD",
        ".github/workflows/release.yml",
        "tests/Unit/FooTest.php",
        "docs/index.md",
        "src/Acme.php",
        "vendor/autoload.php",
        "vendor/acme/lib/composer.json",
        "vendor/acme/lib/.gitignore",
        "node_modules/x/package.json",
        "resources/Agents.md",
    ):
        _touch(root / rel)
    return root


class TestPlanPrune:
    def test_root_entries_and_nested_files(self, tmp_path: Path) -> None:
        root = _plugin(tmp_path)
        planned = {
            p.relative_to(root).as_posix() for p in plan_prune(root=root, rules=DEFAULT_RULES)
        }
        assert {
            ".git",
            ".github",
            "tests",
            "docs",
            "phpcs.xml",
            "phpstan.neon",
            "composer.lock",
            "package.json",
            "package-lock.json",
            ".gitignore",
            "CLAUDE.md",
            "wprel.toml",
            "vendor/acme/lib/composer.json",
            "vendor/acme/lib/.gitignore",
            "node_modules/x/package.json",
            "resources/Agents.md",
        } == planned

    def test_root_composer_json_survives(self, tmp_path: Path) -> None:
        root = _plugin(tmp_path)
        planned = plan_prune(root=root, rules=DEFAULT_RULES)
        assert root / "composer.json" not in planned

    def test_nothing_listed_inside_removed_directories(self, tmp_path: Path) -> None:
        root = _plugin(tmp_path)
        _touch(root / "tests" / "fixtures" / "composer.lock")
        planned = plan_prune(root=root, rules=DEFAULT_RULES)
        assert root / "tests" / "fixtures" / "composer.lock" not in planned

    def test_root_only_rules_ignore_nested_matches(self, tmp_path: Path) -> None:
        root = _plugin(tmp_path)
        _touch(root / "src" / "tests" / "keep.php")
        planned = plan_prune(root=root, rules=DEFAULT_RULES)
        assert root / "src" / "tests" not in planned


def test_build_rules_appends_extras() -> None:
    rules = build_rules(PruneConfig(extra_root=("Makefile",), extra_anywhere=("*.map",)))
    assert rules[: len(DEFAULT_RULES)] == DEFAULT_RULES
    assert [(r.pattern, r.scope) for r in rules[len(DEFAULT_RULES) :]] == [
        ("Makefile", "root"),
        ("*.map", "anywhere"),
    ]


class TestPruneTree:
    def test_removes(self, tmp_path: Path) -> None:
        root = _plugin(tmp_path)
        console = MockConsole()
        result = prune_tree(root=root, config=PruneConfig(), console=console)
        assert isinstance(result, Ok)
        assert not (root / ".git").exists()
        assert not (root / "tests").exists()
        assert not (root / "composer.lock").exists()
        assert not (root / "wprel.toml").exists()
        assert not (root / "vendor" / "acme" / "lib" / "composer.json").exists()
        assert (root / "composer.json").exists()
        assert (root / "vendor" / "autoload.php").exists()
        assert (root / "src" / "Acme.php").exists()
        assert (root / "acme.php").exists()
        assert console.find("rm tests")
        assert result.value.count == len(result.value.removed)

    def test_dry_run_keeps_files(self, tmp_path: Path) -> None:
        root = _plugin(tmp_path)
        result = prune_tree(root=root, config=PruneConfig(), console=MockConsole(), dry_run=True)
        assert isinstance(result, Ok)
        assert result.value.dry_run
        assert "tests" in result.value.removed
        assert (root / "tests").exists()
        assert (root / "composer.lock").exists()

    def test_extra_patterns(self, tmp_path: Path) -> None:
        root = _plugin(tmp_path)
        _touch(root / "Makefile")
        _touch(root / "dist" / "app.js.map")
        result = prune_tree(
            root=root,
            config=PruneConfig(extra_root=("Makefile",), extra_anywhere=("*.map",)),
            console=MockConsole(),
        )
        assert isinstance(result, Ok)
        assert not (root / "Makefile").exists()
        assert not (root / "dist" / "app.js.map").exists()

    def test_idempotent(self, tmp_path: Path) -> None:
        root = _plugin(tmp_path)
        prune_tree(root=root, config=PruneConfig(), console=MockConsole())
        second = prune_tree(root=root, config=PruneConfig(), console=MockConsole())
        assert isinstance(second, Ok)
        assert second.value.count == 0
