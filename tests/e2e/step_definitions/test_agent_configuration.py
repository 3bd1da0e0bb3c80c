"""Step definitions for proxy agent configuration scenarios."""

import json
import os
import subprocess
import sys
from pathlib import Path

import pytest
from pytest_bdd import given, parsers, scenarios, then, when


# Load scenarios from the feature file
scenarios("../features/agent_configuration.feature")


@pytest.fixture
def project_root():
    """Get the path of the project root."""
    return Path(__file__).parent.parent.parent.parent


@pytest.fixture
def fixtures_dir():
    """Get the path to test fixtures directory."""
    return Path(__file__).parent.parent / "fixtures"


@pytest.fixture
def command_result():
    """Store the result of running a command."""
    return {}


@pytest.fixture
def env_vars():
    """Store environment variables for the test."""
    return {}


def run_agent(project_root, env_vars, command_result, args):
    """Run the agent with --print-config-and-exit and store its output."""
    env = os.environ.copy()
    env.pop("PROXY_AGENT_ID", None)
    env.update(env_vars)

    try:
        result = subprocess.run(
            [sys.executable, "-m", "proxy_agent.main", "--print-config-and-exit", *args],
            capture_output=True,
            text=True,
            timeout=30,
            cwd=project_root,
            env=env,
        )
    except subprocess.TimeoutExpired:
        pytest.fail("Command timed out")

    command_result["returncode"] = result.returncode
    command_result["stdout"] = result.stdout
    command_result["stderr"] = result.stderr


def resolved_config(command_result):
    """Parse the JSON configuration printed on stdout."""
    try:
        return json.loads(command_result["stdout"])
    except json.JSONDecodeError as e:
        pytest.fail(
            f"Failed to parse JSON from output: {e}. stdout: {command_result['stdout']}"
        )


# Given steps
@given(parsers.parse('I set environment variable "{var_name}" to "{var_value}"'))
def set_environment_variable(env_vars, var_name, var_value):
    """Set an environment variable for the test."""
    env_vars[var_name] = var_value


# When steps
@when(parsers.re(r'I run the agent with args "(?P<args>.*)"'))
def run_agent_with_args(project_root, env_vars, command_result, args):
    """Run the agent with command line arguments only."""
    run_agent(project_root, env_vars, command_result, args.split())


@when(
    parsers.re(
        r'I run the agent with config file "(?P<config_file>[^"]+)" and args "(?P<args>.*)"'
    )
)
def run_agent_with_config_file(
    project_root, fixtures_dir, env_vars, command_result, config_file, args
):
    """Run the agent with a config file and additional arguments."""
    config_path = fixtures_dir / config_file
    run_agent(
        project_root,
        env_vars,
        command_result,
        ["--config", str(config_path), *args.split()],
    )


# Then steps
@then(parsers.parse("the exit code must be {code:d}"))
def check_exit_code(command_result, code):
    """Check the exit code of the command."""
    assert command_result["returncode"] == code, (
        f"Expected exit code {code}, got {command_result['returncode']}. "
        f"stdout: {command_result['stdout']}, stderr: {command_result['stderr']}"
    )


@then(parsers.parse('the option "{key}" must be "{expected_value}"'))
def check_option_value(command_result, key, expected_value):
    """Check a resolved option value."""
    options = resolved_config(command_result)["options"]
    assert str(options.get(key, "")) == expected_value, f"Full options: {options}"


@then(parsers.parse('the client "{key}" must be "{expected_value}"'))
def check_client_value(command_result, key, expected_value):
    """Check a value of the derived client configuration."""
    client = resolved_config(command_result)["client"]
    assert str(client.get(key, "")) == expected_value, f"Full client config: {client}"


@then(parsers.parse('the log must contain "{expected_text}"'))
def check_log_contains_text(command_result, expected_text):
    """Check that the log output contains the expected text."""
    combined_output = command_result["stdout"] + command_result["stderr"]
    assert expected_text in combined_output, (
        f"Expected text '{expected_text}' not found in output. "
        f"stdout: {command_result['stdout']}, stderr: {command_result['stderr']}"
    )
