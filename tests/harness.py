"""Shared helpers for data-driven .tests files.

Format:

    === test name
    input
    ---
    expected
    ---

Expected is `ok`, `error: <message substring>`, or one dotpath assertion
per line (`classes.0.name = Calculator`).
"""

from pathlib import Path

import pytest


def parse_tests_file(path: Path) -> list[tuple[str, str, str]]:
    """Parse .tests file into (name, input, expected) tuples."""
    lines = path.read_text().split("\n")
    result: list[tuple[str, str, str]] = []
    i = 0
    while i < len(lines):
        line = lines[i]
        if line.startswith("=== "):
            test_name = line[4:].strip()
            i += 1
            input_lines: list[str] = []
            while i < len(lines) and not lines[i].startswith("---"):
                input_lines.append(lines[i])
                i += 1
            if i < len(lines) and lines[i] == "---":
                i += 1
            expected_lines: list[str] = []
            while i < len(lines) and not lines[i].startswith("---"):
                expected_lines.append(lines[i])
                i += 1
            if i < len(lines) and lines[i] == "---":
                i += 1
            test_input = "\n".join(input_lines)
            expected = "\n".join(expected_lines).strip()
            result.append((test_name, test_input, expected))
        else:
            i += 1
    return result


def discover_tests(directory: Path) -> list[tuple[str, str, str]]:
    """Find all tests in a directory, returns (test_id, input, expected)."""
    results = []
    for test_file in sorted(directory.glob("*.tests")):
        for name, input_code, expected in parse_tests_file(test_file):
            results.append((f"{test_file.stem}/{name}", input_code, expected))
    return results


def parametrize_dir(metafunc, fixture: str, directory: Path) -> None:
    """Parametrize `<fixture>_input,<fixture>_expected` over a .tests directory."""
    if f"{fixture}_input" in metafunc.fixturenames:
        params = [
            pytest.param(input_code, expected, id=test_id)
            for test_id, input_code, expected in discover_tests(directory)
        ]
        metafunc.parametrize(f"{fixture}_input,{fixture}_expected", params)


def resolve_dotpath(obj: object, path: str) -> object:
    """Resolve a dot-separated path against a nested dict/list structure."""
    parts = path.split(".")
    current = obj
    i = 0
    while i < len(parts):
        part = parts[i]
        if part == "length":
            return len(current)
        if isinstance(current, list):
            current = current[int(part)]
            i += 1
        elif isinstance(current, dict):
            if part in current:
                current = current[part]
                i += 1
            else:
                found = False
                for j in range(i + 1, len(parts)):
                    composite = ".".join(parts[i : j + 1])
                    if composite in current:
                        current = current[composite]
                        i = j + 1
                        found = True
                        break
                if not found:
                    raise KeyError(part)
        else:
            raise KeyError(f"cannot traverse {type(current).__name__} with key {part!r}")
    return current


def to_comparable(value: object) -> str:
    """Convert a value to its string form for comparison."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str):
        return value
    return str(value)


def check_expected(run, source: str, expected: str) -> None:
    """Run `run(source)` and check it against ok / error: / dotpath assertions."""
    if expected == "ok":
        try:
            run(source)
        except Exception as e:
            pytest.fail(f"Expected ok, got error: {e}")
        return

    if expected.startswith("error:"):
        expected_msg = expected[6:].strip()
        try:
            run(source)
        except Exception as e:
            if expected_msg.lower() not in str(e).lower():
                pytest.fail(f"Expected error containing '{expected_msg}', got: {e}")
            return
        pytest.fail(f"Expected error containing '{expected_msg}', got ok")

    try:
        result = run(source)
    except Exception as e:
        pytest.fail(f"Run failed: {e}")

    for line in expected.split("\n"):
        line = line.strip()
        if not line:
            continue
        if " = " not in line:
            pytest.fail(f"Bad assertion (no ' = '): {line}")
        path, expected_val = line.split(" = ", 1)
        path = path.strip()
        expected_val = expected_val.strip()
        try:
            actual = resolve_dotpath(result, path)
        except (KeyError, IndexError, TypeError) as e:
            pytest.fail(f"Path '{path}' not found in result: {e}")
        actual_str = to_comparable(actual)
        if actual_str != expected_val:
            pytest.fail(
                f"Assertion failed: {path}\n"
                f"  expected: {expected_val!r}\n"
                f"  actual:   {actual_str!r}"
            )
