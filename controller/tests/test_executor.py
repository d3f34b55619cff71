"""Tests for build execution."""

import os

import pytest

from controller.src.config import Settings
from controller.src.models.db import Build
from controller.src.services.checkout import CheckoutError
from controller.src.services.executor import BuildExecutor

def fake_checkout(config_yaml=None):
    """Checkout stand-in that creates the working copy with an optional config file."""

    def checkout(reference, build_path, commit_id=None, branch=None, timeout=None):
        os.makedirs(build_path, exist_ok=True)
        if config_yaml:
            with open(os.path.join(build_path, ".gantry.yml"), "w") as f:
                f.write(config_yaml)
        return build_path

    return checkout

@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(build_root=str(tmp_path / "builds"), plugin_timeout=30, keep_working_copy=True)

def load(session_factory, build_id) -> Build:
    with session_factory() as session:
        return session.get(Build, build_id)

def test_successful_build(reporter, session_factory, make_build, settings):
    build = make_build()
    config = """
setup:
  shell:
    commands:
      - echo setup %BUILD_ID%
test:
  shell:
    commands:
      - echo testing %SHORT_COMMIT_ID%
deploy:
  shell:
    commands:
      - touch deployed
success:
  shell:
    commands:
      - echo yay
failure:
  shell:
    commands:
      - touch failure-ran
"""
    executor = BuildExecutor(reporter, settings, checkout=fake_checkout(config))

    assert executor.execute(build.id) is True

    stored = load(session_factory, build.id)
    assert stored.status == "success"
    assert stored.start_date is not None
    assert stored.finish_date is not None
    assert f"setup {build.id}" in stored.log
    assert "testing c1a2b3c" in stored.log
    assert stored.meta["plugin-summary"]["deploy"]["shell"]["status"] == "success"

    build_path = os.path.join(settings.build_root, str(build.id))
    assert os.path.exists(os.path.join(build_path, "deployed"))
    assert not os.path.exists(os.path.join(build_path, "failure-ran"))

def test_failed_setup_skips_test_and_deploy(reporter, session_factory, make_build, settings):
    build = make_build()
    config = """
setup:
  shell:
    commands:
      - exit 1
test:
  shell:
    commands:
      - touch tested
complete:
  shell:
    commands:
      - touch completed
failure:
  shell:
    commands:
      - touch failure-ran
"""
    executor = BuildExecutor(reporter, settings, checkout=fake_checkout(config))

    assert executor.execute(build.id) is False

    build_path = os.path.join(settings.build_root, str(build.id))
    assert not os.path.exists(os.path.join(build_path, "tested"))
    assert os.path.exists(os.path.join(build_path, "completed"))
    assert os.path.exists(os.path.join(build_path, "failure-ran"))
    assert load(session_factory, build.id).status == "failed"

def test_allowed_failures_do_not_fail_the_build(reporter, session_factory, make_build, settings):
    build = make_build()
    config = """
test:
  shell:
    allow_failures: true
    commands:
      - exit 1
"""
    executor = BuildExecutor(reporter, settings, checkout=fake_checkout(config))

    assert executor.execute(build.id) is True
    summary = load(session_factory, build.id).meta["plugin-summary"]
    assert summary["test"]["shell"]["status"] == "failed"

def test_stop_on_failure(reporter, make_build, settings):
    build = make_build()
    config = """
build_settings:
  stop_on_failure: true
test:
  flake8:
    binary_name: gantry-no-such-flake8
  shell:
    commands:
      - touch after-failure
"""
    executor = BuildExecutor(reporter, settings, checkout=fake_checkout(config))

    assert executor.execute(build.id) is False
    build_path = os.path.join(settings.build_root, str(build.id))
    assert not os.path.exists(os.path.join(build_path, "after-failure"))

def test_siblings_run_after_failure_by_default(reporter, make_build, settings):
    build = make_build()
    config = """
test:
  flake8:
    binary_name: gantry-no-such-flake8
  shell:
    commands:
      - touch after-failure
"""
    executor = BuildExecutor(reporter, settings, checkout=fake_checkout(config))

    assert executor.execute(build.id) is False
    build_path = os.path.join(settings.build_root, str(build.id))
    assert os.path.exists(os.path.join(build_path, "after-failure"))

def test_project_config_fallback(reporter, session_factory, make_build, settings):
    build = make_build(build_config="test:\n  shell:\n    commands: [echo from project]\n")
    executor = BuildExecutor(reporter, settings, checkout=fake_checkout())

    assert executor.execute(build.id) is True
    assert "from project" in load(session_factory, build.id).log

def test_invalid_config_fails_the_build(reporter, session_factory, make_build, settings):
    build = make_build()
    executor = BuildExecutor(reporter, settings, checkout=fake_checkout("test:\n  nope:\n"))

    assert executor.execute(build.id) is False
    stored = load(session_factory, build.id)
    assert stored.status == "failed"
    assert "Unknown plugin 'nope'" in stored.log

def test_checkout_failure(reporter, session_factory, make_build, settings):
    build = make_build()

    def failing_checkout(*args, **kwargs):
        raise CheckoutError("Failed to clone repository: not found")

    executor = BuildExecutor(reporter, settings, checkout=failing_checkout)

    assert executor.execute(build.id) is False
    assert "Failed to clone repository" in load(session_factory, build.id).log

def test_working_copy_is_removed(reporter, make_build, settings):
    build = make_build()
    settings.keep_working_copy = False
    executor = BuildExecutor(
        reporter, settings, checkout=fake_checkout("test:\n  shell:\n    commands: [echo hi]\n")
    )

    executor.execute(build.id)

    assert not os.path.exists(os.path.join(settings.build_root, str(build.id)))

def test_missing_build(reporter, settings):
    assert BuildExecutor(reporter, settings, checkout=fake_checkout()).execute(404) is False

def test_store_meta_keeps_other_keys(reporter, session_factory, make_build):
    build = make_build(meta={"existing": 1})

    reporter.store_meta(build.id, "pytest-meta", {"tests": 2})
    reporter.store_meta(build.id, "pytest-errors", 0)

    assert load(session_factory, build.id).meta == {
        "existing": 1,
        "pytest-meta": {"tests": 2},
        "pytest-errors": 0,
    }
