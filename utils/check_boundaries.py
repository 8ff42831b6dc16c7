#!/usr/bin/env python3
# ruff: noqa: T201
"""Architectural boundary validation for Medication Reminders.

Run standalone: python utils/check_boundaries.py
Exit code 0 = all checks pass, 1 = violations found

Checks:
1. Purity Boundary - No homeassistant.* imports in pure modules or const.py
2. Write Ownership - Services, sensors and flows never write to storage
3. Store Access - Only the coordinator, managers and diagnostics touch the store
4. Persist Before Emit - Managers broadcast only after a successful write
5. Code Quality - Translation constants, lazy logging, type syntax, exceptions
"""

from __future__ import annotations

from pathlib import Path
import re
import sys
from typing import NamedTuple

# Base paths
REPO_ROOT = Path(__file__).parent.parent
COMPONENT_PATH = REPO_ROOT / "custom_components" / "medreminder"

# Pure modules that must not import homeassistant
PURE_MODULE_PATHS = [
    COMPONENT_PATH / "utils",
    COMPONENT_PATH / "engines",
    COMPONENT_PATH / "models.py",
    COMPONENT_PATH / "const.py",
    COMPONENT_PATH / "type_defs.py",
]

# Files that must not write to storage
NO_WRITE_FILES = [
    COMPONENT_PATH / "services.py",
    COMPONENT_PATH / "sensor.py",
    COMPONENT_PATH / "config_flow.py",
]

# Files allowed to use the `.store.` accessor
STORE_ACCESS_ALLOWLIST = {
    "coordinator.py",
    "diagnostics.py",
    "medication_manager.py",
    "system_manager.py",
}

# Broad exception catches are allowed in fire-and-forget delivery only
BARE_EXCEPTION_ALLOWLIST = [
    "reminder_manager.py",
]


class Violation(NamedTuple):
    """A boundary violation with context."""

    category: str
    file_path: Path
    line_number: int
    line_content: str
    message: str


def _python_files(paths: list[Path]) -> list[Path]:
    files: list[Path] = []
    for path in paths:
        if path.is_file():
            files.append(path)
        elif path.is_dir():
            files.extend(sorted(path.rglob("*.py")))
    return files


def _scan(
    files: list[Path], patterns: list[re.Pattern[str]], category: str, message: str
) -> list[Violation]:
    """Flag every line of `files` matching any of `patterns`."""
    violations = []
    for file_path in files:
        try:
            with open(file_path, encoding="utf-8") as f:
                for line_num, line in enumerate(f, start=1):
                    if any(pattern.search(line) for pattern in patterns):
                        violations.append(
                            Violation(
                                category=category,
                                file_path=file_path,
                                line_number=line_num,
                                line_content=line.strip(),
                                message=message,
                            )
                        )
        except OSError as e:
            print(f"Warning: Could not read {file_path}: {e}", file=sys.stderr)
    return violations


def find_ha_imports_in_pure_modules(
    component_path: Path = COMPONENT_PATH,
) -> list[Violation]:
    """Check: No homeassistant imports in pure modules."""
    paths = [component_path / p.relative_to(COMPONENT_PATH) for p in PURE_MODULE_PATHS]
    return _scan(
        _python_files(paths),
        [
            re.compile(r"^\s*from\s+homeassistant"),
            re.compile(r"^\s*import\s+homeassistant"),
        ],
        "PURITY",
        "Homeassistant import in pure module",
    )


def find_storage_writes_in_ui_layer(
    component_path: Path = COMPONENT_PATH,
) -> list[Violation]:
    """Check: No storage writes outside the managers."""
    files = [component_path / p.relative_to(COMPONENT_PATH) for p in NO_WRITE_FILES]
    return _scan(
        [f for f in files if f.exists()],
        [
            re.compile(r"\.async_set_many\("),
            re.compile(r"\.async_set\("),
            re.compile(r"\.async_set_medications\("),
            re.compile(r"\.async_set_updated_data\("),
        ],
        "CRUD",
        "Direct storage write in UI/Service layer - must delegate to a manager",
    )


def find_direct_store_access(component_path: Path = COMPONENT_PATH) -> list[Violation]:
    """Check: `.store.` accessor only in the coordinator, managers and diagnostics."""
    files = [
        f
        for f in _python_files([component_path])
        if f.name not in STORE_ACCESS_ALLOWLIST
    ]
    return _scan(
        files,
        [re.compile(r"\.store\.")],
        "CRUD",
        "Direct .store. access outside the storage owners",
    )


def find_emit_before_persist(component_path: Path = COMPONENT_PATH) -> list[Violation]:
    """Check: Within a manager method, persist must come before emit.

    Heuristic: if `self.emit(` appears on a line before the first commit in
    the same method, flag it.
    """
    violations = []
    managers_path = component_path / "managers"
    if not managers_path.exists():
        return violations

    emit_pattern = re.compile(r"self\.emit\(")
    persist_pattern = re.compile(r"_async_commit\(|\.async_set_many\(")
    method_pattern = re.compile(r"^\s+(async\s+)?def\s+(\w+)\s*\(")

    for file_path in sorted(managers_path.glob("*.py")):
        try:
            with open(file_path, encoding="utf-8") as f:
                lines = f.readlines()
        except OSError as e:
            print(f"Warning: Could not read {file_path}: {e}", file=sys.stderr)
            continue

        methods: list[tuple[str, int, int]] = []
        current_method: tuple[str, int] | None = None
        for i, line in enumerate(lines):
            method_match = method_pattern.match(line)
            if method_match:
                if current_method:
                    methods.append((current_method[0], current_method[1], i))
                current_method = (method_match.group(2), i)
        if current_method:
            methods.append((current_method[0], current_method[1], len(lines)))

        for method_name, start, end in methods:
            emit_lines = [i + 1 for i in range(start, end) if emit_pattern.search(lines[i])]
            persist_lines = [
                i + 1 for i in range(start, end) if persist_pattern.search(lines[i])
            ]
            if not emit_lines or not persist_lines:
                continue
            first_persist = min(persist_lines)
            for emit_line in emit_lines:
                if emit_line < first_persist:
                    violations.append(
                        Violation(
                            category="EMIT_ORDER",
                            file_path=file_path,
                            line_number=emit_line,
                            line_content=lines[emit_line - 1].strip(),
                            message=(
                                f"Emit before persist in {method_name}() - "
                                f"persist on line {first_persist}, emit on line {emit_line}"
                            ),
                        )
                    )

    return violations


def find_hardcoded_translation_keys(
    component_path: Path = COMPONENT_PATH,
) -> list[Violation]:
    """Check: translation_key must use const.TRANS_KEY_* constants."""
    violations = _scan(
        _python_files([component_path]),
        [
            re.compile(r'translation_key\s*=\s*["\']([^"\']+)["\']'),
            re.compile(r'translation_domain\s*=\s*["\'](?!medreminder)([^"\']+)["\']'),
        ],
        "TRANSLATION",
        "Use const.TRANS_KEY_* for translation_key, const.DOMAIN for translation_domain",
    )
    return [
        v
        for v in violations
        if "const.TRANS_KEY_" not in v.line_content
        and "const.DOMAIN" not in v.line_content
    ]


def find_fstrings_in_logging(component_path: Path = COMPONENT_PATH) -> list[Violation]:
    """Check: No f-strings in logging statements."""
    return _scan(
        _python_files([component_path]),
        [
            re.compile(
                r'(LOGGER|const\.LOGGER)\.(debug|info|warning|error|exception)\s*\(\s*f["\']'
            )
        ],
        "LOGGING",
        'Use lazy logging: logger.debug("msg: %s", var) not f"msg: {var}"',
    )


def find_old_typing_syntax(component_path: Path = COMPONENT_PATH) -> list[Violation]:
    """Check: Modern type syntax (str | None, not Optional[str])."""
    return _scan(
        _python_files([component_path]),
        [re.compile(r"\bOptional\[")],
        "TYPE_SYNTAX",
        'Use modern syntax: "str | None" instead of "Optional[str]"',
    )


def find_bare_exceptions(component_path: Path = COMPONENT_PATH) -> list[Violation]:
    """Check: No broad Exception catches outside the allow-list."""
    files = [
        f
        for f in _python_files([component_path])
        if not any(allowed == f.name for allowed in BARE_EXCEPTION_ALLOWLIST)
    ]
    return _scan(
        files,
        [
            re.compile(r"^\s*except\s*:"),
            re.compile(r"^\s*except\s+(Exception|BaseException)\b"),
        ],
        "EXCEPTION",
        "Use specific exception types, not bare Exception",
    )


CHECKS = [
    ("Purity Boundary", find_ha_imports_in_pure_modules),
    ("Write Ownership", find_storage_writes_in_ui_layer),
    ("Direct Store Access", find_direct_store_access),
    ("Emit Before Persist", find_emit_before_persist),
    ("Translation Constants", find_hardcoded_translation_keys),
    ("Logging Quality", find_fstrings_in_logging),
    ("Type Syntax", find_old_typing_syntax),
    ("Exception Handling", find_bare_exceptions),
]


def format_violations(violations: list[Violation], root: Path = REPO_ROOT) -> str:
    """Format violations for display."""
    if not violations:
        return ""

    by_category: dict[str, list[Violation]] = {}
    for v in violations:
        by_category.setdefault(v.category, []).append(v)

    output = []
    for category, items in sorted(by_category.items()):
        output.append(f"\n{'=' * 80}")
        output.append(f"❌ {category} VIOLATIONS ({len(items)} found)")
        output.append(f"{'=' * 80}")

        for v in items:
            try:
                rel_path = v.file_path.relative_to(root)
            except ValueError:
                rel_path = v.file_path
            output.append(f"\n📁 {rel_path}:{v.line_number}")
            output.append(f"   {v.line_content}")
            output.append(f"   ⚠️  {v.message}")

    return "\n".join(output)


def main() -> int:
    """Run all boundary checks."""
    print("🔍 Running architectural boundary checks...")
    print(f"   Checking: {COMPONENT_PATH.relative_to(REPO_ROOT)}\n")

    all_violations = []
    for check_name, check_func in CHECKS:
        print(f"   ⏳ Checking {check_name}...", end=" ")
        violations = check_func()
        if violations:
            print(f"❌ {len(violations)} violation(s)")
            all_violations.extend(violations)
        else:
            print("✅")

    if all_violations:
        print(format_violations(all_violations))
        print(f"\n{'=' * 80}")
        print(f"❌ FAILED: {len(all_violations)} boundary violation(s) found")
        print(f"{'=' * 80}\n")
        return 1

    print("\n" + "=" * 80)
    print("✅ SUCCESS: All architectural boundaries validated")
    print("=" * 80 + "\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
