"""
Configuration loading and merging for davsync.

Handles hierarchical configuration from global and project-level files, the
template bootstrap for first runs, and validation of the WebDAV settings.
"""

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import click

from davsync.exceptions import ConfigInvalid

PROJECT_CONFIG_NAME = ".davsync.json"
PASSWORD_ENV_VAR = "DAVSYNC_PASSWORD"
DEFAULT_TIMEOUT = 60
PLACEHOLDER_VALUES = ("webdav.example.com", "your_username", "your_password")
REMOTE_KEYS = (
    "webdav_url",
    "username",
    "password",
    "ignore_ssl",
    "timeout",
    "dir_settle_delay",
    "log_dir",
)

CONFIG_TEMPLATE: Dict[str, Any] = {
    "webdav_url": "https://webdav.example.com/remote/path/",
    "ignore_ssl": False,
    "username": "your_username",
    "password": "your_password",
}


@dataclass(frozen=True)
class RemoteConfig:
    """Validated settings for one WebDAV remote."""

    webdav_url: str
    username: str
    password: str
    verify_ssl: bool = True
    timeout: float = DEFAULT_TIMEOUT
    dir_settle_delay: float = 0.0
    log_dir: Optional[str] = None


def global_config_locations() -> List[Path]:
    return [
        Path.home() / ".davsync" / "davsync.json",
        Path.home() / ".config" / "davsync" / "davsync.json",
    ]


def load_config_with_sources() -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """
    Load and merge configuration files with source tracking.

    Returns:
        Tuple of (merged_config, source_map) where source_map tracks which file
        contributed each piece of configuration.

    Raises:
        ConfigInvalid: If no configuration file exists. A template is written
            to the current directory first so the user has something to edit.
    """
    configs_to_merge: List[Tuple[Path, Dict[str, Any]]] = []
    source_map: Dict[str, Any] = {
        "settings": {},
        "bindings": {},
        "config_files": [],
    }

    # Global config is the base
    global_locations = global_config_locations()
    for loc in global_locations:
        if loc.exists():
            try:
                with open(loc, "r") as f:
                    configs_to_merge.append((loc, json.load(f)))
                    source_map["config_files"].append(str(loc))
                    break
            except json.JSONDecodeError as e:
                click.echo(f"Warning: Failed to parse '{loc}': {e}", err=True)

    # Collect all project config files from cwd up to the filesystem root
    project_configs: List[Path] = []
    current_dir = Path.cwd()

    while True:
        candidate = current_dir / PROJECT_CONFIG_NAME
        if candidate.exists():
            project_configs.append(candidate)

        parent = current_dir.parent
        if parent == current_dir:
            break
        current_dir = parent

    # Shallowest first so deeper configs override
    project_configs.reverse()

    for config_path in project_configs:
        try:
            with open(config_path, "r") as f:
                configs_to_merge.append((config_path, json.load(f)))
                source_map["config_files"].append(str(config_path))
        except json.JSONDecodeError as e:
            click.echo(f"Warning: Failed to parse '{config_path}': {e}", err=True)

    if not configs_to_merge:
        searched_paths = global_locations + [Path.cwd() / PROJECT_CONFIG_NAME]
        template_path = write_config_template(Path.cwd() / PROJECT_CONFIG_NAME)
        raise ConfigInvalid(
            "Configuration file not found. Checked: "
            f"{', '.join(str(p) for p in searched_paths)}\n"
            f"A config file has been created at {template_path}\n"
            "Please edit it and update the credentials and WebDAV location."
        )

    merged_config: Dict[str, Any] = {}

    for config_path, config in configs_to_merge:
        config_path_str = str(config_path)

        if "bindings" in config:
            merged_config.setdefault("bindings", {})

            for binding_name, binding_config in config["bindings"].items():
                binding_sources = source_map["bindings"].setdefault(
                    binding_name, {"defined_in": [], "properties": {}}
                )
                binding_sources["defined_in"].append(config_path_str)

                for prop_key in binding_config:
                    binding_sources["properties"].setdefault(prop_key, []).append(
                        config_path_str
                    )

                if binding_name in merged_config["bindings"]:
                    merged_config["bindings"][binding_name].update(binding_config)
                else:
                    merged_config["bindings"][binding_name] = dict(binding_config)

        # Other top-level keys: simple override
        for key in config:
            if key != "bindings":
                merged_config[key] = config[key]
                source_map["settings"].setdefault(key, []).append(config_path_str)

    return merged_config, source_map


def load_config() -> Dict[str, Any]:
    """
    Load and merge configuration files with inheritance.

    Search order and merging:
    1. Load global config from ~/.davsync/davsync.json or ~/.config/davsync/davsync.json (base)
    2. Walk up from cwd collecting all .davsync.json files
    3. Merge configs from root to current directory (deeper configs override)

    Merging rules:
    - bindings: Deeper configs can override or add new bindings (deep merge per binding)
    - Other top-level keys: Deeper configs override

    Returns:
        Dictionary containing the merged configuration.
    """
    merged_config, _ = load_config_with_sources()
    return merged_config


def write_config_template(path: Path) -> Path:
    """Write the starter configuration to path, leaving an existing file alone."""
    if not path.exists():
        with open(path, "w") as f:
            json.dump(CONFIG_TEMPLATE, f, indent=2)
            f.write("\n")
    return path


def parse_bool(value: Any) -> bool:
    """Accept JSON booleans as well as the "true"/"false" strings of older configs."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "on")
    return bool(value)


def get_remote_config(
    config: Dict[str, Any], alias: Optional[str] = None
) -> RemoteConfig:
    """
    Resolve and validate the WebDAV settings to use.

    Top-level keys are the defaults; a binding selected by alias overrides
    them key by key. The DAVSYNC_PASSWORD environment variable, when set,
    overrides the password.

    Args:
        config: Merged configuration dictionary.
        alias: Optional binding alias.

    Returns:
        Validated RemoteConfig.

    Raises:
        ConfigInvalid: If the alias is unknown, a required value is missing or
            template placeholders were never replaced.
    """
    settings = {key: config[key] for key in REMOTE_KEYS if key in config}

    if alias is not None:
        bindings = config.get("bindings", {})
        if alias not in bindings:
            raise ConfigInvalid(f"Binding '{alias}' not found in configuration.")
        settings.update(bindings[alias])

    env_password = os.environ.get(PASSWORD_ENV_VAR)
    if env_password:
        settings["password"] = env_password

    missing = [
        key for key in ("webdav_url", "username", "password") if not settings.get(key)
    ]
    if missing:
        raise ConfigInvalid(f"{', '.join(missing)} must be set in the configuration.")

    for key in ("webdav_url", "username", "password"):
        value = str(settings[key])
        if any(placeholder in value for placeholder in PLACEHOLDER_VALUES):
            raise ConfigInvalid(
                "Config file still contains default values. "
                "Update the credentials and WebDAV location."
            )

    webdav_url = str(settings["webdav_url"])
    if not webdav_url.endswith("/"):
        webdav_url += "/"

    try:
        timeout = float(settings.get("timeout", DEFAULT_TIMEOUT))
        settle_delay = float(settings.get("dir_settle_delay", 0.0))
    except (TypeError, ValueError) as e:
        raise ConfigInvalid(f"Invalid numeric setting: {e}") from e

    return RemoteConfig(
        webdav_url=webdav_url,
        username=str(settings["username"]),
        password=str(settings["password"]),
        verify_ssl=not parse_bool(settings.get("ignore_ssl", False)),
        timeout=timeout,
        dir_settle_delay=settle_delay,
        log_dir=settings.get("log_dir"),
    )


def mask_secrets(config: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of config with every password replaced by asterisks."""
    masked: Dict[str, Any] = {}
    for key, value in config.items():
        if key == "password" and value:
            masked[key] = "********"
        elif isinstance(value, dict):
            masked[key] = mask_secrets(value)
        else:
            masked[key] = value
    return masked


def show_config(merged_config: Dict[str, Any], source_map: Dict[str, Any]) -> None:
    """
    Display merged configuration with source annotations.

    Shows:
    1. List of config files in merge order
    2. Merged configuration as colored JSON (passwords masked)
    3. Source annotations for each item

    Args:
        merged_config: The final merged configuration.
        source_map: Dictionary tracking sources for each config item.
    """
    click.echo(
        click.style("\n📋 Configuration Files (merge order):", fg="cyan", bold=True)
    )
    for i, config_file in enumerate(source_map["config_files"], 1):
        click.echo(f"  {i}. {config_file}")

    click.echo(click.style("\n🔀 Merged Configuration:", fg="cyan", bold=True))
    formatted_json = json.dumps(mask_secrets(merged_config), indent=2)
    click.echo(click.style(formatted_json, fg="green"))

    click.echo(click.style("\n📍 Source Annotations:", fg="cyan", bold=True))

    if source_map.get("settings"):
        click.echo(click.style("\n  settings:", fg="yellow", bold=True))
        for key, sources in source_map["settings"].items():
            sources_str = ", ".join(str(s) for s in sources)
            click.echo(f"    • {click.style(key, fg='white')}")
            click.echo(f"      ↳ from: {click.style(sources_str, fg='blue')}")

    if source_map.get("bindings"):
        click.echo(click.style("\n  bindings:", fg="yellow", bold=True))
        for binding_name, binding_info in source_map["bindings"].items():
            click.echo(f"    • {click.style(binding_name, fg='white', bold=True)}")

            defined_in_str = ", ".join(str(s) for s in binding_info["defined_in"])
            click.echo(
                f"      ↳ defined in: {click.style(defined_in_str, fg='blue', dim=True)}"
            )

            for prop, sources in binding_info.get("properties", {}).items():
                sources_str = ", ".join(str(s) for s in sources)
                click.echo(
                    f"        - {click.style(prop, fg='magenta')}: from {click.style(sources_str, fg='blue', dim=True)}"
                )
