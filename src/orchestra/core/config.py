"""3-layer configuration system for Orchestra.

Loads and merges configuration from:
1. Default settings (built-in)
2. Project config (.orchestra/config.yaml)
3. CLI parameters (override)
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Optional

import yaml

from .retry import RetryPolicy

PROJECT_DIR = ".orchestra"

DEFAULT_CONFIG: dict = {
    "project": {
        "name": "",
    },
    "ai": {
        "provider": "gemini",
        "temperature": 0.3,
        "timeout_seconds": 120,
        "gemini": {
            "model": "gemini-2.0-flash",
            "api_key_env": "GEMINI_API_KEY",
        },
        "anthropic": {
            "model": "claude-sonnet-4-5-20250929",
            "api_key_env": "ANTHROPIC_API_KEY",
            "max_tokens": 8000,
        },
        "openai": {
            "model": "gpt-4o",
            "api_key_env": "OPENAI_API_KEY",
            "max_tokens": 8000,
        },
        "ollama": {
            "endpoint": "http://localhost:11434",
            "model": "llama3.1:8b",
        },
        "mock": {
            "model": "mock",
        },
    },
    "retry": {
        "max_retries": 3,
        "initial_delay_seconds": 1.0,
        "max_delay_seconds": 8.0,
    },
    "synthesis": {
        "refinement_temperature": 0.2,
        "refinement_max_tokens": 4096,
        "mermaid_temperature": 0.1,
        "mermaid_max_tokens": 2048,
        "execution_temperature": 0.4,
        "codegen_max_tokens": 8192,
    },
    "testing": {
        "test_cases_dir": f"{PROJECT_DIR}/tests/cases",
        "results_dir": f"{PROJECT_DIR}/tests/results",
    },
}


def deep_merge(base: dict, override: dict) -> dict:
    """Deep merge two dicts. Arrays are replaced, not merged."""
    result = {}
    for key in base:
        result[key] = base[key]
    for key, value in override.items():
        base_value = result.get(key)
        if isinstance(base_value, dict) and isinstance(value, dict):
            result[key] = deep_merge(base_value, value)
        else:
            result[key] = value
    return result


def load_project_config(project_path: Path) -> dict:
    """Load project configuration from .orchestra/config.yaml."""
    config_path = project_path / PROJECT_DIR / "config.yaml"
    if not config_path.exists():
        return {}
    try:
        content = config_path.read_text(encoding="utf-8-sig")  # utf-8-sig strips BOM
        return yaml.safe_load(content) or {}
    except (OSError, yaml.YAMLError):
        return {}


def get_effective_config(
    project_path: Path,
    cli_overrides: Optional[dict] = None,
) -> dict:
    """Get the fully resolved configuration for a run."""
    config = copy.deepcopy(DEFAULT_CONFIG)

    project_config = load_project_config(project_path)
    if project_config:
        config = deep_merge(config, project_config)

    if cli_overrides:
        config = deep_merge(config, cli_overrides)

    config["_project_path"] = str(project_path)

    return config


def retry_policy_from_config(config: dict) -> RetryPolicy:
    """Build the retry policy from the 'retry' config section."""
    retry = config.get("retry") or {}
    defaults = RetryPolicy()
    return RetryPolicy(
        max_retries=int(retry.get("max_retries", defaults.max_retries)),
        initial_delay=float(retry.get("initial_delay_seconds", defaults.initial_delay)),
        max_delay=float(retry.get("max_delay_seconds", defaults.max_delay)),
    )


def initialize_project(project_path: Path) -> Path:
    """Create the .orchestra directory with a starter config. Returns its path."""
    project_dir = project_path / PROJECT_DIR
    for subdir in ("tests/cases", "tests/results"):
        (project_dir / subdir).mkdir(parents=True, exist_ok=True)

    config_path = project_dir / "config.yaml"
    if not config_path.exists():
        config_path.write_text(
            "# Orchestra project configuration\n"
            "\n"
            "project:\n"
            f'  name: "{project_path.name}"\n'
            "\n"
            "ai:\n"
            "  provider: gemini\n"
            "\n"
            "retry:\n"
            "  max_retries: 3\n"
            "  initial_delay_seconds: 1.0\n"
            "  max_delay_seconds: 8.0\n",
            encoding="utf-8",
        )
    return project_dir
