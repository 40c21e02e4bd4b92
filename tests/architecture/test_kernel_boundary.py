"""
Kernel Boundary & Invariants Contract.

Tests that enforce the kernel's architectural boundaries:

1. ledger_kernel/** may NOT import ledger_config. The kernel never
   depends upward; bridges in ledger_config translate configuration.

2. ledger_kernel/domain/** stays pure: no ORM, DB or service imports.

3. The raw movement primitive is only driven from the kernel services.

4. The ledger invariants declaration is complete and non-empty.

These tests read source code via AST; they cannot break anything.
"""

import ast
import glob
from pathlib import Path

from ledger_kernel.invariants import (
    ALL_LEDGER_INVARIANTS,
    FORBIDDEN_KERNEL_IMPORTS,
    LedgerInvariant,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_ROOT = Path(__file__).resolve().parents[2]


def _python_files(root: str) -> list[str]:
    """Return all .py files under root, relative to the repository root."""
    return sorted(
        str(Path(p).relative_to(_ROOT))
        for p in glob.glob(str(_ROOT / root / "**" / "*.py"), recursive=True)
    )


def _extract_imports(filepath: str) -> list[tuple[int, str]]:
    """Extract (line_number, module_string) for all imports in a file."""
    try:
        source = (_ROOT / filepath).read_text()
        tree = ast.parse(source, filename=filepath)
    except (SyntaxError, UnicodeDecodeError):
        return []

    results: list[tuple[int, str]] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                results.append((node.lineno, alias.name))
        elif isinstance(node, ast.ImportFrom):
            if node.module:
                results.append((node.lineno, node.module))
    return results


def _matches(module: str, prefix: str) -> bool:
    return module == prefix or module.startswith(f"{prefix}.")


# ---------------------------------------------------------------------------
# Test: Kernel has no upward dependencies
# ---------------------------------------------------------------------------


class TestKernelNoUpwardDependencies:
    """ledger_kernel/** must not import ledger_config."""

    def test_kernel_files_found(self):
        assert _python_files("ledger_kernel"), "ledger_kernel sources not found"

    def test_kernel_does_not_import_forbidden_packages(self):
        violations: list[str] = []

        for filepath in _python_files("ledger_kernel"):
            for lineno, module in _extract_imports(filepath):
                for prefix in FORBIDDEN_KERNEL_IMPORTS:
                    if _matches(module, prefix):
                        violations.append(f"  {filepath}:{lineno} imports '{module}'")

        assert not violations, (
            "Kernel boundary violation: ledger_kernel/** must not import "
            "upward packages:\n" + "\n".join(violations)
        )


# ---------------------------------------------------------------------------
# Test: Kernel domain purity
# ---------------------------------------------------------------------------


class TestKernelDomainPurity:
    """ledger_kernel/domain/** must not import ORM, DB or service code."""

    FORBIDDEN_MODULES = (
        "sqlalchemy",
        "sqlite3",
        "ledger_kernel.db",
        "ledger_kernel.models",
        "ledger_kernel.services",
    )

    def test_domain_no_orm_imports(self):
        violations: list[str] = []

        for filepath in _python_files("ledger_kernel/domain"):
            for lineno, module in _extract_imports(filepath):
                for forbidden in self.FORBIDDEN_MODULES:
                    if _matches(module, forbidden):
                        violations.append(f"  {filepath}:{lineno} imports '{module}'")

        assert not violations, (
            "Domain purity violation: ledger_kernel/domain/** must not "
            "import ORM or service modules:\n" + "\n".join(violations)
        )


# ---------------------------------------------------------------------------
# Test: Raw movement primitive gate
# ---------------------------------------------------------------------------


class TestSettlementPrimitiveGate:
    """Only kernel services open settlements or import FungibleLedger."""

    MODULE = "ledger_kernel.services.fungible_ledger"

    def test_config_does_not_drive_raw_moves(self):
        violations: list[str] = []
        for filepath in _python_files("ledger_config"):
            for lineno, module in _extract_imports(filepath):
                if _matches(module, self.MODULE):
                    violations.append(f"  {filepath}:{lineno} imports '{module}'")
            if "open_settlement" in (_ROOT / filepath).read_text():
                violations.append(f"  {filepath} calls open_settlement")

        assert not violations, (
            "Settlement isolation violation: ledger_config/** must go through "
            "TaxedLedger:\n" + "\n".join(violations)
        )


# ---------------------------------------------------------------------------
# Test: Invariants declaration
# ---------------------------------------------------------------------------


class TestInvariantsDeclaration:
    def test_all_invariants_declared(self):
        assert ALL_LEDGER_INVARIANTS == frozenset(LedgerInvariant)
        assert len(ALL_LEDGER_INVARIANTS) == 7

    def test_each_invariant_documented(self):
        source = (_ROOT / "ledger_kernel" / "invariants.py").read_text()
        tree = ast.parse(source)
        enum_class = next(
            node
            for node in tree.body
            if isinstance(node, ast.ClassDef) and node.name == "LedgerInvariant"
        )
        body = enum_class.body
        for index, node in enumerate(body):
            if isinstance(node, ast.Assign):
                docstring = body[index + 1]
                assert isinstance(docstring, ast.Expr) and isinstance(
                    docstring.value, ast.Constant
                ), f"{node.targets[0].id} has no docstring"
