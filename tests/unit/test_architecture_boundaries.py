import ast
from pathlib import Path


def _imports(py_file: Path):
    tree = ast.parse(py_file.read_text(encoding="utf-8"), filename=str(py_file))
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                yield node.lineno, alias.name
        elif isinstance(node, ast.ImportFrom):
            yield node.lineno, node.module or ""


def _violations(layer: str, forbidden: str):
    repo_root = Path(__file__).resolve().parents[2]
    found = []
    for py_file in (repo_root / "abatch" / layer).rglob("*.py"):
        rel_path = py_file.relative_to(repo_root)
        for lineno, name in _imports(py_file):
            if name == forbidden or name.startswith(forbidden + "."):
                found.append(f"{rel_path}:{lineno} imports {name}")
    return found


def test_pipeline_layer_does_not_import_ui_layer():
    violations = _violations("pipeline", "abatch.ui")
    assert not violations, "Pipeline layer must not import UI layer:\n" + "\n".join(violations)


def test_domain_layer_does_not_import_infrastructure():
    violations = _violations("domain", "abatch.infrastructure")
    assert not violations, "Domain layer must not import infrastructure:\n" + "\n".join(violations)
