import os
from typing import Any

import pytest

from toy.toy_environment import Environment, new_environment
from toy.toy_evaluator import evaluate
from toy.toy_object import Object
from toy.toy_parser import parse

# Start coverage in subprocesses spawned by the CLI tests
if os.getenv("COVERAGE_PROCESS_START"):
    import coverage

    coverage.process_startup()


def run_source(source: str, env: Environment | None = None) -> Object | None:
    program, errors = parse(source)
    assert errors == [], f"unexpected parser errors: {errors}"
    return evaluate(program, env if env is not None else new_environment())


@pytest.fixture  # type: ignore[misc]
def run() -> Any:
    return run_source
